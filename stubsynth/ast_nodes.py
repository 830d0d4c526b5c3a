# stubsynth/ast_nodes.py
"""
Contract expression AST.

The node set is closed: every consumer dispatches with ``isinstance`` over
the members of ``Expr`` and reports anything else as unsupported.
Every node carries source location information for error reporting.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# ── Source Location ──────────────────────────────────────────────

@dataclass(frozen=True)
class Loc:
    """Source location for diagnostics."""
    file: str = "<contract>"
    line: int = 0
    col: int = 0

    def __str__(self):
        return f"{self.file}:{self.line}:{self.col}"


# ── Enums ────────────────────────────────────────────────────────

class UnaryOp(Enum):
    NOT = "!"
    NEG = "-"


class BinOp(Enum):
    OR = "||"
    AND = "&&"
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    @property
    def is_logical(self) -> bool:
        return self in (BinOp.AND, BinOp.OR)

    @property
    def is_relational(self) -> bool:
        return self in (BinOp.EQ, BinOp.NE, BinOp.LT, BinOp.GT, BinOp.LE, BinOp.GE)

    @property
    def is_arithmetic(self) -> bool:
        return self in (BinOp.ADD, BinOp.SUB, BinOp.MUL, BinOp.DIV, BinOp.MOD)


class ContractKind(Enum):
    REQUIRES = "requires"
    ENSURES = "ensures"


# ── Expressions ──────────────────────────────────────────────────

@dataclass(frozen=True)
class VariableAccess:
    """``name`` optionally followed by a child access (``a.b[0].c``)."""
    name: str
    child: Optional[Access] = None
    loc: Loc = field(default_factory=Loc, compare=False)

    def dump(self) -> str:
        if self.child is None:
            return self.name
        if isinstance(self.child, ArrayAccess):
            return self.name + self.child.dump()
        return f"{self.name}.{self.child.dump()}"


@dataclass(frozen=True)
class ArrayAccess:
    index: Expr
    child: Optional[Access] = None
    loc: Loc = field(default_factory=Loc, compare=False)

    def dump(self) -> str:
        text = f"[{dump_expr(self.index)}]"
        if self.child is None:
            return text
        if isinstance(self.child, ArrayAccess):
            return text + self.child.dump()
        return f"{text}.{self.child.dump()}"


Access = Union[VariableAccess, ArrayAccess]


@dataclass(frozen=True)
class IntegerLiteral:
    value: int
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class FloatLiteral:
    value: float
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class BoolLiteral:
    value: bool
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class StringLiteral:
    value: str
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class UnaryExpr:
    op: UnaryOp
    operand: Expr
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class BinaryExpr:
    op: BinOp
    left: Expr
    right: Expr
    loc: Loc = field(default_factory=Loc, compare=False)


@dataclass(frozen=True)
class CallExpr:
    """Procedure or function call, e.g. ``len(result.items)``."""
    name: str
    args: tuple[Expr, ...] = ()
    loc: Loc = field(default_factory=Loc, compare=False)


Literal = Union[IntegerLiteral, FloatLiteral, BoolLiteral, StringLiteral]

Expr = Union[
    VariableAccess, ArrayAccess, IntegerLiteral, FloatLiteral, BoolLiteral,
    StringLiteral, UnaryExpr, BinaryExpr, CallExpr,
]


# ── Contracts ────────────────────────────────────────────────────

REGEX_ENSURES = "rex"


@dataclass(frozen=True)
class ContractRecord:
    kind: ContractKind
    expression: Expr
    name: Optional[str] = None
    loc: Loc = field(default_factory=Loc, compare=False)

    @property
    def is_regex_ensures(self) -> bool:
        return self.kind is ContractKind.ENSURES and self.name == REGEX_ENSURES

    def dump(self) -> str:
        label = f"{self.name}: " if self.name else ""
        return f"{self.kind.value} {label}{dump_expr(self.expression)};"


# ── Pretty printing ──────────────────────────────────────────────

_PRECEDENCE = {
    BinOp.OR: 1, BinOp.AND: 2,
    BinOp.EQ: 3, BinOp.NE: 3,
    BinOp.LT: 4, BinOp.GT: 4, BinOp.LE: 4, BinOp.GE: 4,
    BinOp.ADD: 5, BinOp.SUB: 5,
    BinOp.MUL: 6, BinOp.DIV: 6, BinOp.MOD: 6,
}


def dump_expr(expr: Expr) -> str:
    """Render *expr* back to contract-language text."""
    if isinstance(expr, (VariableAccess, ArrayAccess)):
        return expr.dump()
    if isinstance(expr, BoolLiteral):
        return "true" if expr.value else "false"
    if isinstance(expr, StringLiteral):
        escaped = expr.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(expr, (IntegerLiteral, FloatLiteral)):
        return repr(expr.value)
    if isinstance(expr, UnaryExpr):
        return f"{expr.op.value}{_dump_operand(expr.operand, 7)}"
    if isinstance(expr, BinaryExpr):
        prec = _PRECEDENCE[expr.op]
        left = _dump_operand(expr.left, prec)
        right = _dump_operand(expr.right, prec + 1)
        return f"{left} {expr.op.value} {right}"
    if isinstance(expr, CallExpr):
        return f"{expr.name}({', '.join(dump_expr(a) for a in expr.args)})"
    return repr(expr)


def _dump_operand(expr: Expr, min_prec: int) -> str:
    text = dump_expr(expr)
    if isinstance(expr, BinaryExpr) and _PRECEDENCE[expr.op] < min_prec:
        return f"({text})"
    return text
