# tests/test_loader.py
"""S-expression API descriptors."""

import logging

import pytest

from stubsynth.errors import ContractSyntaxError, DescriptorError
from stubsynth.loader import load_descriptor, load_file
from stubsynth.schema import EnumType, StructType, TypeRef

from tests.conftest import PETSTORE_DESCRIPTOR


@pytest.fixture
def petstore():
    return load_descriptor(PETSTORE_DESCRIPTOR)


class TestLoad:

    def test_types(self, petstore):
        assert petstore.name == "petstore"
        color = petstore.lookup("Color")
        assert isinstance(color, EnumType)
        assert color.constants == ("RED", "GREEN", "BLUE")
        pet = petstore.lookup("Pet")
        assert isinstance(pet, StructType)
        assert pet.field_names() == ["name", "age", "weight", "color", "owner", "tag"]
        assert pet.widest_constructor() == ("name", "age", "weight", "color", "owner")

    def test_implicit_and_private_constructors(self, petstore):
        assert petstore.lookup("Owner").widest_constructor() == ("name", "age")
        assert petstore.lookup("Secret").widest_constructor() is None

    def test_methods(self, petstore):
        get_pet = petstore.method("getPet")
        assert [p.name for p in get_pet.parameters] == ["x"]
        assert get_pet.returns == TypeRef("Pet")
        assert [c.name for c in get_pet.requires] == ["positive"]
        assert [c.is_regex_ensures for c in get_pet.ensures] == [False, True]

    def test_generic_types(self, petstore):
        assert petstore.method("listPets").returns == TypeRef.list_of("Pet")
        assert petstore.method("pricedPets").parameters[0].type == TypeRef.map_of("String", "Integer")
        assert petstore.method("pricedPets").returns == TypeRef("Array", (TypeRef("Pet"),))

    def test_no_undefined_references(self, petstore):
        assert list(petstore.undefined_references()) == []

    def test_load_file(self, tmp_path):
        path = tmp_path / "petstore.sexp"
        path.write_text(PETSTORE_DESCRIPTOR, encoding="utf-8")
        assert set(load_file(path).methods) == {"getPet", "listPets", "pricedPets"}

    def test_undefined_reference_warns(self, caplog):
        text = "(api a (struct S (field x Missing)))"
        with caplog.at_level(logging.WARNING, logger="stubsynth"):
            load_descriptor(text)
        assert "unknown type Missing" in caplog.text


class TestErrors:

    @pytest.mark.parametrize("text", [
        "(api",
        "(service a)",
        "(api a (widget W))",
        "(api a (struct S (fields x Integer)))",
        "(api a (method m (param x)))",
        '(api a (enum "E" A))',
    ])
    def test_bad_forms(self, text):
        with pytest.raises(DescriptorError):
            load_descriptor(text)

    def test_error_carries_source(self):
        with pytest.raises(DescriptorError) as info:
            load_descriptor("(api a (widget W))", source="bad.sexp")
        assert info.value.loc.file == "bad.sexp"

    def test_bad_contract(self):
        text = '(api a (method m (returns Integer) (ensures "result >")))'
        with pytest.raises(ContractSyntaxError):
            load_descriptor(text)
