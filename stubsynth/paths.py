"""
paths.py — Field path resolution
================================

Turns a chained variable access (``result.owner.age``, ``x``, ``req.limit``)
into a canonical :class:`FieldPath` and resolves the type of its leaf by
walking the structural schema one field at a time.

Canonical names flatten the path with ``$``: ``result.owner.age`` becomes
``$result$owner$age`` and a bare parameter ``x`` becomes ``$x``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Tuple

from stubsynth.ast_nodes import ArrayAccess, VariableAccess
from stubsynth.errors import ErrorCodes, SchemaError, UnsupportedExpressionError
from stubsynth.schema import MethodDescriptor, SemanticType, TypeRef, TypeSchema

FIELD_DELIMITER = "$"
RESULT_FIELD = "result"


class Root(enum.Enum):
    PARAMETER = "parameter"
    RESULT = "result"


@dataclass(frozen=True)
class FieldPath:
    """Route from a root value to one of its (possibly nested) fields.

    An empty ``segments`` tuple designates the root value itself.
    """
    root: Root
    root_name: str
    segments: Tuple[str, ...] = ()

    @property
    def is_whole_value(self) -> bool:
        return not self.segments

    @property
    def canonical_name(self) -> str:
        return FIELD_DELIMITER + FIELD_DELIMITER.join((self.root_name,) + self.segments)

    def __str__(self) -> str:
        return ".".join((self.root_name,) + self.segments)


@dataclass(frozen=True)
class ModelVariable:
    """A distinct field referenced by contracts; identity is the canonical name."""
    canonical_name: str
    semantic_type: SemanticType = field(compare=False)
    path: FieldPath = field(compare=False)
    type_ref: TypeRef = field(compare=False, default=TypeRef("Void"))

    @property
    def is_parameter(self) -> bool:
        return self.path.root is Root.PARAMETER

    @property
    def is_result(self) -> bool:
        return self.path.root is Root.RESULT

    def __str__(self) -> str:
        return f"{self.canonical_name}: {self.semantic_type.value}"


def flatten_access(access: VariableAccess) -> List[str]:
    """``a.b.c`` → ``["a", "b", "c"]``; array indexing is not a field path."""
    names: List[str] = []
    node = access
    while node is not None:
        if isinstance(node, ArrayAccess):
            raise UnsupportedExpressionError(
                f"Array access in '{access.dump()}' cannot be used as a field path",
                node_kind="ArrayAccess",
                loc=node.loc,
            )
        names.append(node.name)
        node = node.child
    return names


def relative_path(canonical_name: str) -> Tuple[str, ...]:
    """Segments below the root: ``$result$b$c`` → ``("b", "c")``, ``$x`` → ``()``."""
    parts = canonical_name.lstrip(FIELD_DELIMITER).split(FIELD_DELIMITER)
    return tuple(parts[1:])


def resolve_path(names: List[str], method: MethodDescriptor, schema: TypeSchema) -> Tuple[FieldPath, TypeRef]:
    """Resolve a flattened access against *method*'s parameters or its result."""
    head, rest = names[0], tuple(names[1:])
    if head == RESULT_FIELD:
        root, current = Root.RESULT, method.returns
    else:
        parameter = method.parameter(head)
        if parameter is None:
            raise SchemaError(
                f"'{head}' is neither 'result' nor a parameter of {method.name}",
                code=ErrorCodes.UNKNOWN_ROOT,
                field_name=head,
            )
        root, current = Root.PARAMETER, parameter.type

    for segment in rest:
        current = schema.field_type(current, segment)
    return FieldPath(root=root, root_name=head, segments=rest), current


def resolve_access(access: VariableAccess, method: MethodDescriptor, schema: TypeSchema) -> ModelVariable:
    """Resolve one variable access to a :class:`ModelVariable`."""
    try:
        path, leaf_type = resolve_path(flatten_access(access), method, schema)
    except SchemaError as exc:
        if exc.loc is None:
            exc.loc = access.loc
        exc.add_note(f"while resolving '{access.dump()}'")
        raise
    return ModelVariable(
        canonical_name=path.canonical_name,
        semantic_type=schema.semantic_type(leaf_type),
        path=path,
        type_ref=leaf_type,
    )
