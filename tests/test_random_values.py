# tests/test_random_values.py
"""Random values for every shape of declared type."""

import logging
import random
import re

import pytest

from stubsynth.config import SynthesisConfig
from stubsynth.random_values import RandomValueSynthesizer
from stubsynth.schema import TypeRef
from stubsynth.values import (
    EnumValue,
    ListValue,
    MapValue,
    NullValue,
    ObjectValue,
    ScalarValue,
    SetValue,
    value_key,
)


def make(schema, seed=0, **overrides):
    return RandomValueSynthesizer(schema, SynthesisConfig(**overrides), random.Random(seed))


class TestScalars:

    def test_primitives(self, schema):
        gen = make(schema)
        i = gen.synthesize(TypeRef("Integer"))
        assert isinstance(i, ScalarValue) and 0 <= i.value < 1_000_000
        r = gen.synthesize(TypeRef("Double"))
        assert isinstance(r.value, float) and 0 <= r.value < 1e6
        assert isinstance(gen.synthesize(TypeRef("Boolean")).value, bool)

    def test_numbers_follow_int_bound(self, schema):
        gen = make(schema, int_bound=10)
        for _ in range(50):
            assert 0 <= gen.synthesize(TypeRef("Integer")).value < 10
            assert 0 <= gen.synthesize(TypeRef("Double")).value < 10

    def test_default_string_pattern(self, schema):
        gen = make(schema)
        for _ in range(20):
            assert re.fullmatch(r"[a-zA-Z0-9]{0,10}", gen.string())

    def test_explicit_pattern(self, schema):
        gen = make(schema)
        assert re.fullmatch(r"[A-Z]{3}[0-9]{2}", gen.string(r"[A-Z]{3}[0-9]{2}"))

    def test_void_is_null(self, schema):
        assert isinstance(make(schema).synthesize(TypeRef("Void")), NullValue)

    def test_enum_first_constant(self, schema):
        value = make(schema).synthesize(TypeRef("Color"))
        assert value == EnumValue(TypeRef("Color"), "RED")

    def test_empty_enum_is_null(self, schema, caplog):
        schema.add_enum("Nothing", [])
        with caplog.at_level(logging.WARNING, logger="stubsynth"):
            assert make(schema).synthesize(TypeRef("Nothing")).is_null
        assert "declares no constants" in caplog.text

    def test_unknown_type_is_null(self, schema, caplog):
        with caplog.at_level(logging.WARNING, logger="stubsynth"):
            assert make(schema).synthesize(TypeRef("Mystery")).is_null
        assert "not supported" in caplog.text

    def test_reproducible(self, schema):
        first = make(schema, seed=11).synthesize(TypeRef("Foo")).to_data()
        second = make(schema, seed=11).synthesize(TypeRef("Foo")).to_data()
        assert first == second


class TestStructs:

    def test_all_fields_present(self, schema):
        foo = make(schema).synthesize(TypeRef("Foo"))
        assert isinstance(foo, ObjectValue)
        assert list(foo.fields) == ["a", "b", "y", "price", "flag", "name", "code", "color", "bar", "items"]
        assert isinstance(foo.get_field("bar"), ObjectValue)

    def test_fields_outside_constructor_stay_null(self, schema):
        holder = make(schema).synthesize(TypeRef("Holder"))
        assert holder.constructor == ("count",)
        assert holder.get_field("bar").is_null
        assert not holder.get_field("count").is_null

    def test_no_constructor_is_null(self, schema, caplog):
        with caplog.at_level(logging.WARNING, logger="stubsynth"):
            assert isinstance(make(schema).synthesize(TypeRef("Hidden")), NullValue)
        assert "no public constructor" in caplog.text

    def test_recursive_type_terminates(self, schema):
        node = make(schema, max_depth=6).synthesize(TypeRef("Node"))
        count = 0
        while not node.is_null:
            count += 1
            node = node.get_field("next")
        assert count == 6

    def test_materialize_hidden(self, schema):
        obj = make(schema).materialize(TypeRef("Hidden"))
        assert isinstance(obj, ObjectValue)
        assert obj.get_field("x").is_null


class TestCollections:

    def test_top_level_list_sizes(self, schema):
        sizes = set()
        for seed in range(60):
            value = make(schema, seed=seed).synthesize(TypeRef.list_of("Foo"))
            assert isinstance(value, ListValue)
            sizes.add(len(value.items))
            for item in value.items:
                assert isinstance(item, ObjectValue)
                assert item.render().startswith("new Foo(")
        assert sizes <= set(range(10))
        assert len(sizes) > 1

    def test_nested_collection_non_empty(self, schema):
        for seed in range(20):
            foo = make(schema, seed=seed).synthesize(TypeRef("Foo"))
            assert 1 <= len(foo.get_field("items").items) <= 9

    def test_collections_empty_at_depth_limit(self, schema):
        gen = make(schema, max_depth=2)
        assert gen.synthesize(TypeRef.list_of("Integer"), depth=2).items == []

    def test_set_elements_distinct(self, schema):
        for seed in range(20):
            value = make(schema, seed=seed).synthesize(TypeRef.set_of("Boolean"))
            assert isinstance(value, SetValue)
            keys = [value_key(v) for v in value.items]
            assert len(keys) == len(set(keys)) <= 2

    def test_map_keys_distinct(self, schema):
        for seed in range(20):
            value = make(schema, seed=seed).synthesize(TypeRef.map_of("Color", "Integer"))
            assert isinstance(value, MapValue)
            assert len(value.entries) <= 1
        value = make(schema, seed=4).synthesize(TypeRef.map_of("String", "Bar"))
        keys = [k.value for k, _ in value.entries]
        assert len(keys) == len(set(keys))


@pytest.mark.parametrize("name", ["LocalDate", "LocalDateTime"])
def test_dates_render_as_parse_calls(schema, name):
    value = make(schema).synthesize(TypeRef(name))
    assert value.render().startswith(f'{name}.parse("')
