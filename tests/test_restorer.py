# tests/test_restorer.py
"""Writing solved values back into result trees."""

import random

import pytest

from stubsynth.config import SynthesisConfig
from stubsynth.errors import SchemaError
from stubsynth.parser import parse_expression
from stubsynth.paths import resolve_access
from stubsynth.random_values import RandomValueSynthesizer
from stubsynth.restorer import ObjectRestorer
from stubsynth.schema import TypeRef
from stubsynth.values import NullValue, ObjectValue, ScalarValue

from tests.conftest import method


@pytest.fixture
def parts(schema):
    random_values = RandomValueSynthesizer(schema, SynthesisConfig(), random.Random(3))
    return random_values, ObjectRestorer(schema, random_values)


def var(schema, m, text):
    return resolve_access(parse_expression(text), m, schema)


class TestRestore:

    def test_other_fields_untouched(self, schema, parts):
        random_values, restorer = parts
        m = method("m", returns="Foo")
        answer = random_values.synthesize(TypeRef("Foo"))
        bar, name = answer.get_field("bar"), answer.get_field("name")

        a = var(schema, m, "result.a")
        restored = restorer.restore(answer, {"$result$a": 7}, [a])

        assert restored is answer
        assert answer.get_field("a") == ScalarValue(TypeRef("Integer"), 7)
        assert answer.get_field("bar") is bar
        assert answer.get_field("name") is name

    def test_whole_value_replaced(self, schema, parts):
        _, restorer = parts
        m = method("m", returns="Integer")
        result = var(schema, m, "result")
        restored = restorer.restore(ScalarValue(TypeRef("Integer"), 1), {"$result": 42}, [result])
        assert restored.value == 42

    def test_null_intermediate_materialized(self, schema, parts):
        random_values, restorer = parts
        m = method("m", returns="Holder")
        answer = random_values.synthesize(TypeRef("Holder"))
        assert answer.get_field("bar").is_null

        v = var(schema, m, "result.bar.v")
        restorer.restore(answer, {"$result$bar$v": 4}, [v])

        bar = answer.get_field("bar")
        assert isinstance(bar, ObjectValue)
        assert bar.get_field("v").value == 4

    def test_null_root_materialized(self, schema, parts):
        _, restorer = parts
        m = method("m", returns="Hidden")
        x = var(schema, m, "result.x")
        restored = restorer.restore(NullValue(TypeRef("Hidden")), {"$result$x": 9}, [x])
        assert isinstance(restored, ObjectValue)
        assert restored.to_data() == {"x": 9}

    def test_parameters_and_unsolved_skipped(self, schema, parts):
        random_values, restorer = parts
        m = method("m", params=[("x", "Integer")], returns="Foo")
        answer = random_values.synthesize(TypeRef("Foo"))
        before = answer.to_data()
        variables = [var(schema, m, "x"), var(schema, m, "result.b")]
        restorer.restore(answer, {"$x": 100}, variables)
        assert answer.to_data() == before

    def test_real_and_bool_leaves(self, schema, parts):
        random_values, restorer = parts
        m = method("m", returns="Foo")
        answer = random_values.synthesize(TypeRef("Foo"))
        variables = [var(schema, m, "result.price"), var(schema, m, "result.flag")]
        restorer.restore(answer, {"$result$price": 1.51, "$result$flag": False}, variables)
        assert answer.get_field("price").value == 1.51
        assert answer.get_field("flag").value is False

    def test_descent_into_scalar_rejected(self, schema, parts):
        _, restorer = parts
        m = method("m", returns="Foo")
        v = var(schema, m, "result.bar.v")
        answer = ObjectValue(TypeRef("Foo"), fields={"bar": ScalarValue(TypeRef("Integer"), 1)})
        with pytest.raises(SchemaError):
            restorer.assign(answer, v, 3)
