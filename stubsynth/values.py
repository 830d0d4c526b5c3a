# stubsynth/values.py
"""
Value trees for synthesized results.

A result is a tree of :class:`Value` nodes shaped like the method's declared
return type.  ``render()`` produces a constructor/literal expression for the
generated stub, ``to_data()`` produces plain Python data (JSON friendly).
"""

from __future__ import annotations

import datetime
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from stubsynth.errors import ErrorCodes, SchemaError
from stubsynth.schema import (
    BOOL_TYPES,
    DATE_TYPES,
    DATETIME_TYPES,
    EnumType,
    INT_TYPES,
    REAL_TYPES,
    STR_TYPES,
    StructType,
    TypeRef,
    TypeSchema,
)

_LONG_TYPES = frozenset({"long", "Long", "int64"})
_FLOAT_TYPES = frozenset({"float", "Float"})


class Value:
    """Base class of every value-tree node."""

    type_ref: TypeRef

    def render(self) -> str:
        raise NotImplementedError

    def to_data(self) -> Any:
        raise NotImplementedError

    @property
    def is_null(self) -> bool:
        return False


@dataclass
class NullValue(Value):
    type_ref: TypeRef = TypeRef("Void")

    def render(self) -> str:
        return "null"

    def to_data(self) -> Any:
        return None

    @property
    def is_null(self) -> bool:
        return True


@dataclass
class ScalarValue(Value):
    type_ref: TypeRef
    value: Any

    def render(self) -> str:
        v, name = self.value, self.type_ref.name
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, int):
            return f"{v}L" if name in _LONG_TYPES else str(v)
        if isinstance(v, float):
            return f"{v!r}f" if name in _FLOAT_TYPES else repr(v)
        if isinstance(v, datetime.datetime):
            return f'{name}.parse("{v.isoformat()}")'
        if isinstance(v, datetime.date):
            return f'{name}.parse("{v.isoformat()}")'
        return json.dumps(str(v))

    def to_data(self) -> Any:
        if isinstance(self.value, (datetime.date, datetime.datetime)):
            return self.value.isoformat()
        return self.value


@dataclass
class EnumValue(Value):
    type_ref: TypeRef
    constant: str

    def render(self) -> str:
        return f"{self.type_ref.name}.{self.constant}"

    def to_data(self) -> Any:
        return self.constant


@dataclass
class ObjectValue(Value):
    """An instance of a struct built through one of its public constructors.

    ``fields`` holds every declared field in declaration order; fields the
    constructor does not take start out as :class:`NullValue`.
    """
    type_ref: TypeRef
    constructor: Tuple[str, ...] = ()
    fields: Dict[str, Value] = field(default_factory=dict)

    def get_field(self, name: str) -> Value:
        try:
            return self.fields[name]
        except KeyError:
            raise SchemaError(
                f"Field {name} not found in type {self.type_ref.name}",
                code=ErrorCodes.UNKNOWN_FIELD,
                type_name=self.type_ref.name,
                field_name=name,
            ) from None

    def set_field(self, name: str, value: Value) -> None:
        if name not in self.fields:
            raise SchemaError(
                f"Field {name} not found in type {self.type_ref.name}",
                code=ErrorCodes.UNKNOWN_FIELD,
                type_name=self.type_ref.name,
                field_name=name,
            )
        self.fields[name] = value

    def render(self) -> str:
        args = ", ".join(self.fields[n].render() for n in self.constructor)
        text = f"new {self.type_ref.name}({args})"
        setters = [
            f"set{n[:1].upper()}{n[1:]}({v.render()});"
            for n, v in self.fields.items()
            if n not in self.constructor and not v.is_null
        ]
        if setters:
            text += " {{ " + " ".join(setters) + " }}"
        return text

    def to_data(self) -> Any:
        return {n: v.to_data() for n, v in self.fields.items()}


@dataclass
class ListValue(Value):
    type_ref: TypeRef
    items: List[Value] = field(default_factory=list)

    def render(self) -> str:
        inner = ", ".join(i.render() for i in self.items)
        if self.type_ref.name == "Array":
            element = self.type_ref.args[0] if self.type_ref.args else TypeRef("Object")
            return f"new {element}[]{{{inner}}}"
        return f"new ArrayList<>(Arrays.asList({inner}))"

    def to_data(self) -> Any:
        return [i.to_data() for i in self.items]


@dataclass
class SetValue(Value):
    type_ref: TypeRef
    items: List[Value] = field(default_factory=list)

    def render(self) -> str:
        return f"new HashSet<>(Arrays.asList({', '.join(i.render() for i in self.items)}))"

    def to_data(self) -> Any:
        return [i.to_data() for i in self.items]


@dataclass
class MapValue(Value):
    type_ref: TypeRef
    entries: List[Tuple[Value, Value]] = field(default_factory=list)

    def render(self) -> str:
        if not self.entries:
            return "new HashMap<>()"
        puts = " ".join(f"put({k.render()}, {v.render()});" for k, v in self.entries)
        return "new HashMap<>() {{ " + puts + " }}"

    def to_data(self) -> Any:
        keys = [k.to_data() for k, _ in self.entries]
        if all(isinstance(k, (str, int, float, bool)) for k in keys):
            return {k: v.to_data() for k, (_, v) in zip(keys, self.entries)}
        return [[k, v.to_data()] for k, (_, v) in zip(keys, self.entries)]


def value_key(value: Value) -> str:
    """Stable identity used to keep set elements and map keys distinct."""
    return json.dumps(value.to_data(), sort_keys=True, default=str)


# ═══════════════════════════════════════════════════════════════════════
#  Plain data → value tree
# ═══════════════════════════════════════════════════════════════════════

def from_data(type_ref: TypeRef, data: Any, schema: TypeSchema) -> Value:
    """Build a value tree of shape *type_ref* from plain Python *data*."""
    if isinstance(data, Value):
        return data
    if data is None:
        return NullValue(type_ref)

    name = type_ref.name
    if type_ref.is_list:
        element = type_ref.args[0] if type_ref.args else TypeRef("Object")
        return ListValue(type_ref, [from_data(element, d, schema) for d in _as_list(type_ref, data)])
    if type_ref.is_set:
        element = type_ref.args[0] if type_ref.args else TypeRef("Object")
        return SetValue(type_ref, [from_data(element, d, schema) for d in _as_list(type_ref, data)])
    if type_ref.is_map:
        key_t, value_t = (type_ref.args + (TypeRef("Object"), TypeRef("Object")))[:2]
        pairs = data.items() if isinstance(data, dict) else _as_list(type_ref, data)
        return MapValue(type_ref, [
            (from_data(key_t, k, schema), from_data(value_t, v, schema)) for k, v in pairs
        ])

    if name in BOOL_TYPES:
        return ScalarValue(type_ref, bool(data))
    if name in INT_TYPES:
        return ScalarValue(type_ref, _coerce(type_ref, data, int))
    if name in REAL_TYPES:
        return ScalarValue(type_ref, _coerce(type_ref, data, float))
    if name in STR_TYPES:
        return ScalarValue(type_ref, str(data))
    if name in DATE_TYPES:
        value = data if isinstance(data, datetime.date) else datetime.date.fromisoformat(str(data))
        return ScalarValue(type_ref, value)
    if name in DATETIME_TYPES:
        value = data if isinstance(data, datetime.datetime) else datetime.datetime.fromisoformat(str(data))
        return ScalarValue(type_ref, value)

    declared = schema.lookup(name)
    if isinstance(declared, EnumType):
        if data not in declared.constants:
            raise SchemaError(
                f"'{data}' is not a constant of enum {name}",
                code=ErrorCodes.UNKNOWN_FIELD,
                type_name=name,
                field_name=str(data),
            )
        return EnumValue(type_ref, str(data))
    if isinstance(declared, StructType):
        if not isinstance(data, dict):
            raise SchemaError(
                f"Cannot build {name} from {type(data).__name__}",
                code=ErrorCodes.NOT_A_STRUCT,
                type_name=name,
            )
        obj = ObjectValue(
            type_ref,
            constructor=declared.widest_constructor() or (),
            fields={f.name: NullValue(f.type) for f in declared.fields},
        )
        for key, item in data.items():
            obj.set_field(key, from_data(schema.field_type(type_ref, key), item, schema))
        return obj

    raise SchemaError(f"Unknown type '{type_ref}'", code=ErrorCodes.UNKNOWN_TYPE, type_name=str(type_ref))


def _as_list(type_ref: TypeRef, data: Any) -> list:
    if isinstance(data, (list, tuple, set, frozenset)):
        return list(data)
    raise SchemaError(f"Expected a sequence for {type_ref}, got {type(data).__name__}",
                      code=ErrorCodes.NOT_A_STRUCT, type_name=str(type_ref))


def _coerce(type_ref: TypeRef, data: Any, kind) -> Any:
    try:
        return kind(data)
    except (TypeError, ValueError):
        raise SchemaError(f"Cannot convert {data!r} to {type_ref}",
                          code=ErrorCodes.UNKNOWN_TYPE, type_name=str(type_ref)) from None


__all__ = [
    "Value", "NullValue", "ScalarValue", "EnumValue", "ObjectValue",
    "ListValue", "SetValue", "MapValue", "value_key", "from_data",
]
