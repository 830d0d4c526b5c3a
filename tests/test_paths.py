# tests/test_paths.py
"""Field path resolution against the structural schema."""

import pytest

from stubsynth.errors import ErrorCodes, SchemaError, UnsupportedExpressionError
from stubsynth.parser import parse_expression
from stubsynth.paths import (
    FieldPath,
    Root,
    flatten_access,
    relative_path,
    resolve_access,
)
from stubsynth.schema import SemanticType, TypeRef

from tests.conftest import method


@pytest.fixture
def get_foo():
    return method("getFoo", params=[("x", "Integer"), ("bar", "Bar")], returns="Foo")


class TestResolveAccess:

    def test_result_field(self, schema, get_foo):
        v = resolve_access(parse_expression("result.a"), get_foo, schema)
        assert v.canonical_name == "$result$a"
        assert v.path == FieldPath(Root.RESULT, "result", ("a",))
        assert v.semantic_type is SemanticType.INT
        assert v.is_result and not v.is_parameter

    def test_nested_result_field(self, schema, get_foo):
        v = resolve_access(parse_expression("result.bar.label"), get_foo, schema)
        assert v.canonical_name == "$result$bar$label"
        assert v.path.segments == ("bar", "label")
        assert v.semantic_type is SemanticType.STR

    def test_parameter_whole_value(self, schema, get_foo):
        v = resolve_access(parse_expression("x"), get_foo, schema)
        assert v.canonical_name == "$x"
        assert v.path.is_whole_value
        assert v.is_parameter

    def test_parameter_field(self, schema, get_foo):
        v = resolve_access(parse_expression("bar.v"), get_foo, schema)
        assert v.path.root is Root.PARAMETER
        assert v.path.root_name == "bar"
        assert v.type_ref == TypeRef("Integer")

    def test_struct_and_collection_leaves(self, schema, get_foo):
        assert resolve_access(parse_expression("result.bar"), get_foo, schema).semantic_type is SemanticType.STRUCT
        assert resolve_access(parse_expression("result.items"), get_foo, schema).semantic_type is SemanticType.STRUCT
        assert resolve_access(parse_expression("result.price"), get_foo, schema).semantic_type is SemanticType.REAL
        assert resolve_access(parse_expression("result.flag"), get_foo, schema).semantic_type is SemanticType.BOOL

    def test_result_wins_over_parameter_named_result(self, schema):
        m = method("odd", params=[("result", "Integer")], returns="Foo")
        v = resolve_access(parse_expression("result.a"), m, schema)
        assert v.path.root is Root.RESULT

    def test_deterministic(self, schema, get_foo):
        first = resolve_access(parse_expression("result.bar.v"), get_foo, schema)
        second = resolve_access(parse_expression("result.bar.v"), get_foo, schema)
        assert first.path == second.path
        assert first.type_ref == second.type_ref
        assert first.semantic_type is second.semantic_type


class TestResolveErrors:

    def test_unknown_root(self, schema, get_foo):
        with pytest.raises(SchemaError) as info:
            resolve_access(parse_expression("nobody.a"), get_foo, schema)
        assert info.value.code == ErrorCodes.UNKNOWN_ROOT

    def test_unknown_field(self, schema, get_foo):
        with pytest.raises(SchemaError) as info:
            resolve_access(parse_expression("result.nope"), get_foo, schema)
        assert info.value.code == ErrorCodes.UNKNOWN_FIELD
        assert "Field nope not found in type Foo" in str(info.value)
        assert any("result.nope" in n for n in info.value.notes)

    def test_descent_into_scalar(self, schema, get_foo):
        with pytest.raises(SchemaError) as info:
            resolve_access(parse_expression("result.a.b"), get_foo, schema)
        assert info.value.code == ErrorCodes.NOT_A_STRUCT

    def test_array_access(self, schema, get_foo):
        with pytest.raises(UnsupportedExpressionError):
            resolve_access(parse_expression("result.items[0]"), get_foo, schema)


class TestCanonicalNames:

    def test_flatten(self):
        assert flatten_access(parse_expression("a.b.c")) == ["a", "b", "c"]

    def test_relative_path(self):
        assert relative_path("$result$b$c") == ("b", "c")
        assert relative_path("$x") == ()

    def test_str(self):
        assert str(FieldPath(Root.RESULT, "result", ("a", "b"))) == "result.a.b"
