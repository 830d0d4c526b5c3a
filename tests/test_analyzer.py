# tests/test_analyzer.py
"""Contract splitting, variable collection and bucketing."""

import pytest

from stubsynth.analyzer import analyze, collect_variables, split_contracts
from stubsynth.errors import UnsupportedExpressionError
from stubsynth.parser import parse_expression

from tests.conftest import method


class TestSplitAndCollect:

    def test_split(self):
        m = method("m", params=[("x", "Integer")], returns="Foo",
                   requires=["x > 0"], ensures=["result.a > x", "result.b > 1"])
        requires, ensures = split_contracts(m.contracts)
        assert len(requires) == 1
        assert len(ensures) == 2

    def test_collect_distinct(self, schema):
        m = method("m", params=[("x", "Integer")], returns="Foo")
        found = collect_variables(parse_expression("result.a > x && result.a < x * 2 && true"), m, schema)
        assert {v.canonical_name for v in found} == {"$result$a", "$x"}

    def test_literals_contribute_nothing(self, schema):
        m = method("m", returns="Foo")
        assert collect_variables(parse_expression("1 + 2 > 0"), m, schema) == set()

    def test_call_rejected(self, schema):
        m = method("m", returns="Foo")
        with pytest.raises(UnsupportedExpressionError) as info:
            collect_variables(parse_expression("len(result.items) > 0"), m, schema)
        assert info.value.node_kind == "CallExpr"

    def test_array_access_rejected(self, schema):
        m = method("m", returns="Foo")
        with pytest.raises(UnsupportedExpressionError):
            collect_variables(parse_expression("result.items[0] > 0"), m, schema)

    def test_unknown_node_rejected(self, schema):
        m = method("m", returns="Foo")
        with pytest.raises(UnsupportedExpressionError):
            collect_variables(object(), m, schema)


class TestBuckets:

    def test_primitive(self, schema):
        m = method("m", params=[("x", "Integer")], returns="Foo",
                   ensures=["result.a > x", "result.flag", "result.price >= 1.5"])
        analysis = analyze(m, schema)
        assert len(analysis.primitive) == 3
        assert not analysis.non_primitive and not analysis.regex
        names = [v.canonical_name for v in analysis.model_variables]
        assert sorted(names) == ["$result$a", "$result$flag", "$result$price", "$x"]
        assert len(names) == len(set(names))

    def test_non_primitive_assignment(self, schema):
        m = method("m", params=[("name", "String")], returns="Foo",
                   ensures=["result.name == name"])
        analysis = analyze(m, schema)
        assert not analysis.primitive
        [assignment] = analysis.non_primitive
        assert assignment.target.canonical_name == "$result$name"
        assert assignment.value == parse_expression("name")

    def test_regex(self, schema):
        m = method("m", returns="Foo", ensures=['rex: result.code == "[A-Z]{3}"'])
        analysis = analyze(m, schema)
        assert not analysis.primitive and not analysis.non_primitive
        [assignment] = analysis.regex
        assert assignment.target.canonical_name == "$result$code"

    def test_rex_name_wins_over_primitive(self, schema):
        m = method("m", returns="Foo", ensures=['rex: result.code == "[0-9]"', "result.a > 1"])
        analysis = analyze(m, schema)
        assert len(analysis.regex) == 1
        assert len(analysis.primitive) == 1

    def test_result_variables(self, schema):
        m = method("m", params=[("x", "Integer"), ("name", "String")], returns="Foo",
                   ensures=["result.a == x", "result.name == name", 'rex: result.code == "[a-z]"'])
        names = {v.canonical_name for v in analyze(m, schema).result_variables}
        assert names == {"$result$a", "$result$name", "$result$code"}

    def test_non_primitive_needs_equality(self, schema):
        m = method("m", params=[("name", "String")], returns="Foo",
                   ensures=["result.name != name"])
        with pytest.raises(UnsupportedExpressionError):
            analyze(m, schema)

    def test_non_primitive_target_must_be_result(self, schema):
        m = method("m", params=[("name", "String")], returns="Foo",
                   ensures=["name == result.name"])
        with pytest.raises(UnsupportedExpressionError):
            analyze(m, schema)

    def test_requires_kept_apart(self, schema):
        m = method("m", params=[("x", "Integer")], returns="Foo",
                   requires=["positive: x > 0"], ensures=["result.a > 0"])
        analysis = analyze(m, schema)
        assert [c.name for c in analysis.requires] == ["positive"]
        assert analysis.has_contracts
