# tests/conftest.py
"""Shared fixtures: a small pet-store schema built in code and as a descriptor."""

import pytest

from stubsynth.ast_nodes import ContractKind
from stubsynth.parser import parse_clause
from stubsynth.schema import MethodDescriptor, ParameterDescriptor, TypeRef, TypeSchema

PETSTORE_DESCRIPTOR = r'''
;; pet store API used across the test-suite
(api petstore
  (enum Color RED GREEN BLUE)
  (struct Owner
    (field name String)
    (field age Integer))
  (struct Pet
    (field name String)
    (field age Integer)
    (field weight Double)
    (field color Color)
    (field owner Owner)
    (field tag String)
    (constructor name)
    (constructor name age weight color owner))
  (struct Secret (field code String) (private))
  (method getPet
    (param x Integer)
    (returns Pet)
    (requires "positive: x > 0")
    (ensures "result.age == x")
    (ensures "rex: result.name == \"[A-Z]{3}\""))
  (method listPets
    (param limit Integer)
    (returns List<Pet>))
  (method pricedPets
    (param tags "Map<String, Integer>")
    (returns "Pet[]")))
'''


def method(name, params=(), returns="Void", requires=(), ensures=()):
    """Build a MethodDescriptor from contract text."""
    contracts = tuple(
        [parse_clause(text, ContractKind.REQUIRES) for text in requires]
        + [parse_clause(text, ContractKind.ENSURES) for text in ensures]
    )
    return MethodDescriptor(
        name=name,
        parameters=tuple(ParameterDescriptor(n, TypeRef(t) if isinstance(t, str) else t) for n, t in params),
        returns=TypeRef(returns) if isinstance(returns, str) else returns,
        contracts=contracts,
    )


@pytest.fixture
def schema():
    """Foo/Bar/Node types shared by resolver, model and synthesizer tests."""
    s = TypeSchema(name="test")
    s.add_enum("Color", ["RED", "GREEN"])
    s.add_struct("Bar", [("v", "Integer"), ("label", "String")])
    s.add_struct("Foo", [
        ("a", "Integer"),
        ("b", "Integer"),
        ("y", "Integer"),
        ("price", "Double"),
        ("flag", "Boolean"),
        ("name", "String"),
        ("code", "String"),
        ("color", "Color"),
        ("bar", "Bar"),
        ("items", TypeRef.list_of("Integer")),
    ])
    s.add_struct("Holder", [("bar", "Bar"), ("count", "Integer")], constructors=[("count",)])
    s.add_struct("Node", [("value", "Integer"), ("next", "Node")])
    s.add_struct("Hidden", [("x", "Integer")], constructors=[])
    return s
