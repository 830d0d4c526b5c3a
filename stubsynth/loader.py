"""stubsynth/loader.py – S-expression API descriptor → :class:`TypeSchema`.

Descriptor surface syntax
-------------------------
::

    (api <name>
      (enum   <Name> <CONST> ...)
      (struct <Name>
        (field <name> <type>) ...
        (constructor <field> ...) ...      ;; public constructors
        (private))                         ;; no public constructor
      (method <name>
        (param <name> <type>) ...
        (returns <type>)
        (requires "<label>: <expr>") ...
        (ensures  "<label>: <expr>") ...))

Types are symbols (``Integer``, ``List<Pet>``) or strings when they contain
spaces or brackets (``"Map<String, Pet>"``, ``"Pet[]"``).  A struct with no
``constructor`` form gets the implicit all-fields constructor.

Dispatch is on the head symbol of every form; anything unexpected raises
:class:`~stubsynth.errors.DescriptorError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import sexpdata
from sexpdata import Symbol

from stubsynth.ast_nodes import ContractKind, ContractRecord, Loc
from stubsynth.errors import DescriptorError
from stubsynth.parser import parse_clause, parse_type
from stubsynth.schema import MethodDescriptor, ParameterDescriptor, TypeRef, TypeSchema

logger = logging.getLogger(__name__)

Sexp = Any  # Union[list, Symbol, str, int, float]


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

class _Reader:
    """Shape checks bound to one source name, for error locations."""

    def __init__(self, source: str) -> None:
        self.source = source

    def error(self, message: str) -> DescriptorError:
        return DescriptorError(message, loc=Loc(self.source, 0, 0))

    def name(self, s: Sexp) -> str:
        if isinstance(s, Symbol):
            return str(s)
        raise self.error(f"Expected symbol, got {type(s).__name__}: {s!r}")

    def text(self, s: Sexp) -> str:
        if isinstance(s, (Symbol, str)):
            return str(s)
        raise self.error(f"Expected string or symbol, got {type(s).__name__}: {s!r}")

    def form(self, s: Sexp, min_len: int = 1, tag: Optional[str] = None) -> list:
        if not isinstance(s, list):
            raise self.error(f"Expected list{f' ({tag} ...)' if tag else ''}, got {s!r}")
        if len(s) < min_len:
            raise self.error(f"Form too short: expected at least {min_len} elements, got {s!r}")
        if tag is not None and self.head(s) != tag:
            raise self.error(f"Expected ({tag} ...), got ({self.head(s)} ...)")
        return s

    def head(self, s: list) -> str:
        if not s:
            raise self.error("Unexpected empty list")
        return self.name(s[0])

    def type_ref(self, s: Sexp) -> TypeRef:
        return parse_type(self.text(s), source=self.source)


# ═══════════════════════════════════════════════════════════════════════
#  Item parsers
# ═══════════════════════════════════════════════════════════════════════

_ITEM_DISPATCH: Dict[str, Callable[[_Reader, TypeSchema, list], None]] = {}


def _register(tag: str):
    def deco(fn):
        _ITEM_DISPATCH[tag] = fn
        return fn
    return deco


@_register("enum")
def _parse_enum(r: _Reader, schema: TypeSchema, s: list) -> None:
    r.form(s, min_len=2)
    schema.add_enum(r.name(s[1]), [r.name(c) for c in s[2:]])


@_register("struct")
def _parse_struct(r: _Reader, schema: TypeSchema, s: list) -> None:
    r.form(s, min_len=2)
    name = r.name(s[1])
    fields: List[Tuple[str, TypeRef]] = []
    constructors: Optional[List[List[str]]] = None
    for item in s[2:]:
        tag = r.head(r.form(item))
        if tag == "field":
            r.form(item, min_len=3)
            fields.append((r.name(item[1]), r.type_ref(item[2])))
        elif tag == "constructor":
            constructors = (constructors or []) + [[r.name(p) for p in item[1:]]]
        elif tag == "private":
            constructors = constructors or []
        else:
            raise r.error(f"Unknown struct item ({tag} ...) in {name}")
    schema.add_struct(name, fields, constructors)


def _parse_contract(r: _Reader, method: str, kind: ContractKind, s: list) -> ContractRecord:
    r.form(s, min_len=2)
    return parse_clause(r.text(s[1]), kind, source=f"{r.source}:{method}")


@_register("method")
def _parse_method(r: _Reader, schema: TypeSchema, s: list) -> None:
    r.form(s, min_len=2)
    name = r.name(s[1])
    parameters: List[ParameterDescriptor] = []
    returns = TypeRef("Void")
    contracts: List[ContractRecord] = []
    for item in s[2:]:
        tag = r.head(r.form(item))
        if tag == "param":
            r.form(item, min_len=3)
            parameters.append(ParameterDescriptor(r.name(item[1]), r.type_ref(item[2])))
        elif tag == "returns":
            r.form(item, min_len=2)
            returns = r.type_ref(item[1])
        elif tag in ("requires", "ensures"):
            contracts.append(_parse_contract(r, name, ContractKind(tag), item))
        else:
            raise r.error(f"Unknown method item ({tag} ...) in {name}")
    schema.add_method(MethodDescriptor(name, tuple(parameters), returns, tuple(contracts)))


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def load_descriptor(text: str, source: str = "<descriptor>") -> TypeSchema:
    """Parse a complete ``(api ...)`` descriptor."""
    r = _Reader(source)
    try:
        tree = sexpdata.loads(text, nil=None, true=None, false=None)
    except Exception as exc:
        raise r.error(f"Failed to parse S-expression: {exc}") from exc

    r.form(tree, min_len=2, tag="api")
    schema = TypeSchema(name=r.name(tree[1]))
    for item in tree[2:]:
        tag = r.head(r.form(item))
        parser = _ITEM_DISPATCH.get(tag)
        if parser is None:
            raise r.error(f"Unknown descriptor form: ({tag} ...)")
        parser(r, schema, item)

    for problem in schema.undefined_references():
        logger.warning("%s: %s", source, problem)
    logger.info("Loaded API %s: %d types, %d methods",
                schema.name, len(schema.types), len(schema.methods))
    return schema


def load_file(path: Union[str, Path]) -> TypeSchema:
    path = Path(path)
    return load_descriptor(path.read_text(encoding="utf-8"), source=str(path))


__all__ = ["load_descriptor", "load_file"]
