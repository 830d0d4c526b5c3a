"""
schema.py — Structural type schema
==================================

An explicit, pre-resolved description of every type an API method can
receive or return.  Built once when the API descriptor is loaded and passed
to the resolver, analyzer and synthesizers; nothing is discovered at run
time.

    TypeRef            reference to a declared or built-in type (``List<Pet>``)
    FieldDescriptor    one named, typed field of a struct
    StructType         ordered fields + declared public constructors
    EnumType           ordered constants
    MethodDescriptor   name, parameters, return type, contracts
    TypeSchema         registry of the above
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from stubsynth.ast_nodes import ContractKind, ContractRecord
from stubsynth.errors import ErrorCodes, SchemaError

logger = logging.getLogger(__name__)


# ===================================================================
#  SEMANTIC TYPES
# ===================================================================

class SemanticType(enum.Enum):
    """Leaf classification used by the constraint model."""
    INT = "int"
    REAL = "real"
    BOOL = "bool"
    STR = "str"
    STRUCT = "struct"

    @property
    def is_solver_representable(self) -> bool:
        return self in (SemanticType.INT, SemanticType.REAL, SemanticType.BOOL)


INT_TYPES = frozenset({
    "int", "Integer", "integer", "int32", "int64",
    "long", "Long", "short", "Short", "byte", "Byte",
})
REAL_TYPES = frozenset({
    "double", "Double", "float", "Float", "number", "BigDecimal",
})
BOOL_TYPES = frozenset({"boolean", "Boolean", "bool"})
STR_TYPES = frozenset({"String", "string", "str", "char", "Character"})
DATE_TYPES = frozenset({"LocalDate", "date"})
DATETIME_TYPES = frozenset({
    "LocalDateTime", "OffsetDateTime", "ZonedDateTime", "Instant", "date-time",
})
VOID_TYPES = frozenset({"void", "Void"})

LIST_TYPES = frozenset({"List", "ArrayList", "Array"})
SET_TYPES = frozenset({"Set", "HashSet"})
MAP_TYPES = frozenset({"Map", "HashMap"})

_GENERIC_ARITY = {name: 1 for name in LIST_TYPES | SET_TYPES}
_GENERIC_ARITY.update({name: 2 for name in MAP_TYPES})


# ===================================================================
#  TYPE REFERENCES
# ===================================================================

@dataclass(frozen=True)
class TypeRef:
    """A possibly generic type reference.  ``T[]`` is ``Array<T>``."""
    name: str
    args: Tuple["TypeRef", ...] = ()

    @classmethod
    def of(cls, name: str) -> "TypeRef":
        return cls(name)

    @classmethod
    def list_of(cls, element: Union["TypeRef", str]) -> "TypeRef":
        return cls("List", (_as_ref(element),))

    @classmethod
    def set_of(cls, element: Union["TypeRef", str]) -> "TypeRef":
        return cls("Set", (_as_ref(element),))

    @classmethod
    def map_of(cls, key: Union["TypeRef", str], value: Union["TypeRef", str]) -> "TypeRef":
        return cls("Map", (_as_ref(key), _as_ref(value)))

    @property
    def is_list(self) -> bool:
        return self.name in LIST_TYPES

    @property
    def is_set(self) -> bool:
        return self.name in SET_TYPES

    @property
    def is_map(self) -> bool:
        return self.name in MAP_TYPES

    @property
    def is_collection(self) -> bool:
        return self.is_list or self.is_set or self.is_map

    def __str__(self) -> str:
        if self.name == "Array" and len(self.args) == 1:
            return f"{self.args[0]}[]"
        if not self.args:
            return self.name
        return f"{self.name}<{', '.join(str(a) for a in self.args)}>"


def _as_ref(value: Union[TypeRef, str]) -> TypeRef:
    return value if isinstance(value, TypeRef) else TypeRef(value)


# ===================================================================
#  DECLARED TYPES
# ===================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class StructType:
    """A structured type with ordered fields.

    ``constructors`` lists the public constructors as tuples of field
    names.  ``None`` means none were declared, in which case the implicit
    all-fields constructor is assumed; an empty tuple means the type has no
    public constructor at all.
    """
    name: str
    fields: Tuple[FieldDescriptor, ...] = ()
    constructors: Optional[Tuple[Tuple[str, ...], ...]] = None

    def field(self, name: str) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def widest_constructor(self) -> Optional[Tuple[str, ...]]:
        """Public constructor with the most parameters, first declared on ties."""
        if self.constructors is None:
            return tuple(self.field_names())
        best: Optional[Tuple[str, ...]] = None
        for ctor in self.constructors:
            if best is None or len(ctor) > len(best):
                best = ctor
        return best


@dataclass(frozen=True)
class EnumType:
    name: str
    constants: Tuple[str, ...]


DeclaredType = Union[StructType, EnumType]


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    parameters: Tuple[ParameterDescriptor, ...] = ()
    returns: TypeRef = TypeRef("Void")
    contracts: Tuple[ContractRecord, ...] = ()

    def parameter(self, name: str) -> Optional[ParameterDescriptor]:
        for p in self.parameters:
            if p.name == name:
                return p
        return None

    @property
    def requires(self) -> List[ContractRecord]:
        return [c for c in self.contracts if c.kind is ContractKind.REQUIRES]

    @property
    def ensures(self) -> List[ContractRecord]:
        return [c for c in self.contracts if c.kind is ContractKind.ENSURES]


# ===================================================================
#  SCHEMA REGISTRY
# ===================================================================

@dataclass
class TypeSchema:
    """Registry of declared types and methods for one API."""
    name: str = "api"
    types: Dict[str, DeclaredType] = field(default_factory=dict)
    methods: Dict[str, MethodDescriptor] = field(default_factory=dict)

    def add_struct(
        self,
        name: str,
        fields: Sequence[Tuple[str, Union[TypeRef, str]]],
        constructors: Optional[Sequence[Sequence[str]]] = None,
    ) -> StructType:
        struct = StructType(
            name=name,
            fields=tuple(FieldDescriptor(n, _as_ref(t)) for n, t in fields),
            constructors=None if constructors is None else tuple(tuple(c) for c in constructors),
        )
        self._register(struct)
        return struct

    def add_enum(self, name: str, constants: Sequence[str]) -> EnumType:
        enum_type = EnumType(name=name, constants=tuple(constants))
        self._register(enum_type)
        return enum_type

    def add_method(self, method: MethodDescriptor) -> MethodDescriptor:
        if method.name in self.methods:
            logger.warning("Method %s redeclared; keeping the last one", method.name)
        self.methods[method.name] = method
        return method

    def _register(self, declared: DeclaredType) -> None:
        if declared.name in self.types:
            logger.warning("Type %s redeclared; keeping the last one", declared.name)
        self.types[declared.name] = declared

    # -- lookup ---------------------------------------------------------

    def lookup(self, name: str) -> Optional[DeclaredType]:
        return self.types.get(name)

    def struct(self, type_ref: TypeRef) -> StructType:
        declared = self.types.get(type_ref.name) if not type_ref.args else None
        if not isinstance(declared, StructType):
            raise SchemaError(
                f"Type '{type_ref}' is not a structured type",
                code=ErrorCodes.NOT_A_STRUCT,
                type_name=str(type_ref),
            )
        return declared

    def field_type(self, owner: TypeRef, field_name: str) -> TypeRef:
        struct = self.struct(owner)
        descriptor = struct.field(field_name)
        if descriptor is None:
            raise SchemaError(
                f"Field {field_name} not found in type {struct.name}",
                code=ErrorCodes.UNKNOWN_FIELD,
                type_name=struct.name,
                field_name=field_name,
            )
        return descriptor.type

    def method(self, name: str) -> MethodDescriptor:
        try:
            return self.methods[name]
        except KeyError:
            raise SchemaError(f"Unknown method '{name}'", code=ErrorCodes.UNKNOWN_TYPE) from None

    def semantic_type(self, type_ref: TypeRef) -> SemanticType:
        if type_ref.args:
            return SemanticType.STRUCT
        if type_ref.name in INT_TYPES:
            return SemanticType.INT
        if type_ref.name in REAL_TYPES:
            return SemanticType.REAL
        if type_ref.name in BOOL_TYPES:
            return SemanticType.BOOL
        if type_ref.name in STR_TYPES:
            return SemanticType.STR
        return SemanticType.STRUCT

    def is_known(self, type_ref: TypeRef) -> bool:
        name = type_ref.name
        if name in _GENERIC_ARITY:
            return len(type_ref.args) == _GENERIC_ARITY[name] and all(
                self.is_known(a) for a in type_ref.args)
        return (
            name in self.types
            or name in INT_TYPES | REAL_TYPES | BOOL_TYPES | STR_TYPES
            or name in DATE_TYPES | DATETIME_TYPES | VOID_TYPES
        )

    def undefined_references(self) -> Iterator[str]:
        """Yield a message for every type reference with no declaration."""
        for declared in self.types.values():
            if isinstance(declared, StructType):
                for f in declared.fields:
                    if not self.is_known(f.type):
                        yield f"{declared.name}.{f.name}: unknown type {f.type}"
                for ctor in declared.constructors or ():
                    for name in ctor:
                        if declared.field(name) is None:
                            yield f"{declared.name}: constructor names unknown field {name}"
        for method in self.methods.values():
            if not self.is_known(method.returns):
                yield f"{method.name}: unknown return type {method.returns}"
            for p in method.parameters:
                if not self.is_known(p.type):
                    yield f"{method.name}({p.name}): unknown type {p.type}"
