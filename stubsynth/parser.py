"""stubsynth/parser.py – contract text → expression AST.

Builds :mod:`stubsynth.ast_nodes` trees from the parse trees produced by
the PEG grammar in :mod:`stubsynth.grammar`.

Public API
----------
``parse_expression(text) -> Expr``
    Parse a bare expression such as ``result.a > 5``.

``parse_clause(text, kind) -> ContractRecord``
    Parse ``[label:] expr [;]`` into a contract of the given kind.

``parse_contract(text) -> ContractRecord``
    Parse ``requires|ensures [label:] expr [;]``.

``parse_contracts(text) -> list[ContractRecord]``
    Parse a block of contracts.

``parse_type(text) -> TypeRef``
    Parse a declared type reference (``Map<String, List<Pet>>``, ``Pet[]``).
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from parsimonious.exceptions import ParseError
from parsimonious.nodes import Node, NodeVisitor

from stubsynth.ast_nodes import (
    ArrayAccess,
    BinaryExpr,
    BinOp,
    BoolLiteral,
    CallExpr,
    ContractKind,
    ContractRecord,
    Expr,
    FloatLiteral,
    IntegerLiteral,
    Loc,
    StringLiteral,
    UnaryExpr,
    UnaryOp,
    VariableAccess,
)
from stubsynth.errors import ContractSyntaxError, ErrorCodes
from stubsynth.grammar import GRAMMAR
from stubsynth.schema import TypeRef

_ESCAPE = re.compile(r'\\(["\\])')


def _items(part: Any) -> list:
    """Children of an optional/repeated sub-expression (empty when unmatched)."""
    return part if isinstance(part, list) else []


class ContractASTBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into contract AST nodes."""

    unwrapped_exceptions = (ContractSyntaxError,)

    def __init__(self, text: str, source: str = "<contract>") -> None:
        self._text = text
        self._source = source

    def _loc(self, node: Node) -> Loc:
        start = node.start
        line = self._text.count("\n", 0, start) + 1
        col = start - (self._text.rfind("\n", 0, start) + 1) + 1
        return Loc(self._source, line, col)

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # Contracts
    # ─────────────────────────────────────────────────────────────

    def visit_contracts(self, node, visited_children):
        _, contracts = visited_children
        return _items(contracts)

    def visit_contract(self, node, visited_children):
        _, kind, _, label, expr, _, _, _ = visited_children
        name = _items(label)[0] if _items(label) else None
        return ContractRecord(kind=kind, expression=expr, name=name, loc=self._loc(node))

    def visit_clause(self, node, visited_children):
        _, label, expr, _, _, _ = visited_children
        name = _items(label)[0] if _items(label) else None
        return name, expr

    def visit_contract_kind(self, node, visited_children):
        return ContractKind(node.text)

    def visit_contract_label(self, node, visited_children):
        name, _, _, _ = visited_children
        return name

    # ─────────────────────────────────────────────────────────────
    # Binary chains
    # ─────────────────────────────────────────────────────────────

    def _fold(self, node, visited_children) -> Expr:
        first, rest = visited_children
        result = first
        for _, op, _, right in _items(rest):
            if not isinstance(op, BinOp):
                op = BinOp(op.text)
            result = BinaryExpr(op=op, left=result, right=right, loc=self._loc(node))
        return result

    visit_expr = _fold
    visit_and_expr = _fold
    visit_eq_expr = _fold
    visit_rel_expr = _fold
    visit_add_expr = _fold
    visit_mul_expr = _fold

    def _binop(self, node, visited_children):
        return BinOp(node.text)

    visit_eq_op = _binop
    visit_rel_op = _binop
    visit_add_op = _binop
    visit_mul_op = _binop

    # ─────────────────────────────────────────────────────────────
    # Unary / primary
    # ─────────────────────────────────────────────────────────────

    def _first(self, node, visited_children):
        return visited_children[0]

    visit_unary_expr = _first
    visit_primary = _first
    visit_literal = _first
    visit_access_tail = _first
    visit_type_atom = _first

    def visit_unary_op(self, node, visited_children):
        return UnaryOp(node.text)

    def visit_prefixed(self, node, visited_children):
        op, _, operand = visited_children
        if op is UnaryOp.NEG and isinstance(operand, IntegerLiteral):
            return IntegerLiteral(-operand.value, loc=self._loc(node))
        if op is UnaryOp.NEG and isinstance(operand, FloatLiteral):
            return FloatLiteral(-operand.value, loc=self._loc(node))
        return UnaryExpr(op=op, operand=operand, loc=self._loc(node))

    def visit_group(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return expr

    def visit_call(self, node, visited_children):
        name, _, _, _, arguments, _, _ = visited_children
        args = _items(arguments)[0] if _items(arguments) else []
        return CallExpr(name=name, args=tuple(args), loc=self._loc(node))

    def visit_arguments(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _items(rest)]

    def visit_access(self, node, visited_children):
        name, tails = visited_children
        child = None
        for kind, value, loc in reversed(_items(tails)):
            if kind == "member":
                child = VariableAccess(name=value, child=child, loc=loc)
            else:
                child = ArrayAccess(index=value, child=child, loc=loc)
        return VariableAccess(name=name, child=child, loc=self._loc(node))

    def visit_member(self, node, visited_children):
        _, _, _, name = visited_children
        return "member", name, self._loc(node)

    def visit_index(self, node, visited_children):
        _, _, _, expr, _, _ = visited_children
        return "index", expr, self._loc(node)

    # ─────────────────────────────────────────────────────────────
    # Literals & identifiers
    # ─────────────────────────────────────────────────────────────

    def visit_float_literal(self, node, visited_children):
        return FloatLiteral(float(node.text), loc=self._loc(node))

    def visit_integer_literal(self, node, visited_children):
        return IntegerLiteral(int(node.text), loc=self._loc(node))

    def visit_bool_literal(self, node, visited_children):
        return BoolLiteral(node.text == "true", loc=self._loc(node))

    def visit_string_literal(self, node, visited_children):
        return StringLiteral(_ESCAPE.sub(r"\1", node.text[1:-1]), loc=self._loc(node))

    def visit_identifier(self, node, visited_children):
        return node.text

    # ─────────────────────────────────────────────────────────────
    # Type references
    # ─────────────────────────────────────────────────────────────

    def visit_type_ref(self, node, visited_children):
        _, atom, suffixes, _ = visited_children
        ref = atom if isinstance(atom, TypeRef) else TypeRef(atom)
        for _ in _items(suffixes):
            ref = TypeRef("Array", (ref,))
        return ref

    def visit_generic_type(self, node, visited_children):
        name, _, _, _, first, rest, _, _ = visited_children
        args = [first] + [item[3] for item in _items(rest)]
        return TypeRef(name, tuple(args))

    def visit_type_name(self, node, visited_children):
        return node.text


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def _parse(rule: str, text: str, source: str, code=ErrorCodes.CONTRACT_SYNTAX) -> Any:
    try:
        tree = GRAMMAR[rule].parse(text)
    except ParseError as exc:
        raise ContractSyntaxError(
            f"Cannot parse {rule.replace('_', ' ')} {text!r}",
            text=text,
            code=code,
            loc=Loc(source, exc.line(), exc.column()),
        ) from None
    return ContractASTBuilder(text, source).visit(tree)


def parse_expression(text: str, source: str = "<contract>") -> Expr:
    return _parse("expr", text.strip(), source)


def parse_clause(text: str, kind: ContractKind, source: str = "<contract>") -> ContractRecord:
    name, expr = _parse("clause", text, source)
    return ContractRecord(kind=kind, expression=expr, name=name, loc=Loc(source, 1, 1))


def parse_contract(text: str, source: str = "<contract>") -> ContractRecord:
    return _parse("contract", text, source)


def parse_contracts(text: str, source: str = "<contract>") -> List[ContractRecord]:
    return _parse("contracts", text, source)


def parse_type(text: str, source: str = "<type>") -> TypeRef:
    return _parse("type_ref", text, source, code=ErrorCodes.TYPE_SYNTAX)


__all__ = [
    "ContractASTBuilder",
    "parse_expression", "parse_clause", "parse_contract", "parse_contracts",
    "parse_type",
]
