# stubsynth/evaluator.py
"""
Concrete evaluation of contract expressions over actual argument values.

Used for REQUIRES contracts (checked before any solving) and for the
right-hand sides of assignment-style and regex ENSURES contracts.  Operator
semantics match the constraint model: integer ``/`` is Euclidean, booleans
act as ``1``/``0`` next to numbers and numbers act as ``x != 0`` next to
``&&``, ``||`` and ``!``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from stubsynth.ast_nodes import (
    ArrayAccess,
    BinaryExpr,
    BinOp,
    BoolLiteral,
    CallExpr,
    Expr,
    FloatLiteral,
    IntegerLiteral,
    StringLiteral,
    UnaryExpr,
    UnaryOp,
    VariableAccess,
    dump_expr,
)
from stubsynth.errors import (
    ErrorCodes,
    PreconditionFailed,
    SchemaError,
    UnsupportedExpressionError,
    UnsupportedOperatorError,
)
from stubsynth.paths import flatten_access
from stubsynth.schema import MethodDescriptor
from stubsynth.values import ObjectValue, Value

logger = logging.getLogger(__name__)


def lookup_path(names: Sequence[str], arguments: Mapping[str, Any]) -> Any:
    """Follow ``names`` from a root argument down to a leaf value."""
    head = names[0]
    if head not in arguments:
        raise SchemaError(
            f"No value supplied for argument '{head}'",
            code=ErrorCodes.MISSING_ARGUMENT,
            field_name=head,
        )
    value = arguments[head]
    for name in names[1:]:
        if isinstance(value, ObjectValue):
            value = value.get_field(name)
        elif isinstance(value, Mapping) and name in value:
            value = value[name]
        else:
            raise SchemaError(
                f"Field {name} not found in value of '{'.'.join(names)}'",
                code=ErrorCodes.UNKNOWN_FIELD,
                field_name=name,
            )
    if isinstance(value, Value):
        return value.to_data()
    return value


def _truth(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    raise UnsupportedExpressionError(
        f"{type(value).__name__} value {value!r} used as a condition",
        node_kind="logic",
    )


def _number(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    raise UnsupportedExpressionError(
        f"{type(value).__name__} value {value!r} used in arithmetic",
        node_kind="arithmetic",
    )


def _int_div(a: int, b: int) -> int:
    """Euclidean division: the remainder is always non-negative."""
    r = a % abs(b)
    return (a - r) // b


def _arith(op: BinOp, a: Any, b: Any) -> Any:
    if op is BinOp.ADD and isinstance(a, str) and isinstance(b, str):
        return a + b
    a, b = _number(a), _number(b)
    if op is BinOp.ADD:
        return a + b
    if op is BinOp.SUB:
        return a - b
    if op is BinOp.MUL:
        return a * b
    if op is BinOp.DIV:
        if b == 0:
            raise ZeroDivisionError("division by zero")
        if isinstance(a, int) and isinstance(b, int):
            return _int_div(a, b)
        return a / b
    raise UnsupportedOperatorError(op.value)


def _compare(op: BinOp, a: Any, b: Any) -> bool:
    if op in (BinOp.EQ, BinOp.NE):
        if isinstance(a, bool) != isinstance(b, bool) and not (isinstance(a, str) or isinstance(b, str)):
            a, b = _number(a), _number(b)
        equal = a == b
        return equal if op is BinOp.EQ else not equal
    if not (isinstance(a, str) and isinstance(b, str)):
        a, b = _number(a), _number(b)
    if op is BinOp.LT:
        return a < b
    if op is BinOp.GT:
        return a > b
    if op is BinOp.LE:
        return a <= b
    return a >= b


def evaluate(expression: Expr, arguments: Mapping[str, Any]) -> Any:
    """Evaluate *expression* with variables bound from *arguments*."""
    if isinstance(expression, (IntegerLiteral, FloatLiteral, BoolLiteral, StringLiteral)):
        return expression.value
    if isinstance(expression, VariableAccess):
        try:
            return lookup_path(flatten_access(expression), arguments)
        except SchemaError as exc:
            if exc.loc is None:
                exc.loc = expression.loc
            raise
    if isinstance(expression, UnaryExpr):
        operand = evaluate(expression.operand, arguments)
        if expression.op is UnaryOp.NOT:
            return not _truth(operand)
        return -_number(operand)
    if isinstance(expression, BinaryExpr):
        op = expression.op
        if op is BinOp.MOD:
            raise UnsupportedOperatorError(op.value, loc=expression.loc)
        if op is BinOp.AND:
            return _truth(evaluate(expression.left, arguments)) and _truth(evaluate(expression.right, arguments))
        if op is BinOp.OR:
            return _truth(evaluate(expression.left, arguments)) or _truth(evaluate(expression.right, arguments))
        left = evaluate(expression.left, arguments)
        right = evaluate(expression.right, arguments)
        if op.is_relational:
            return _compare(op, left, right)
        return _arith(op, left, right)
    if isinstance(expression, (CallExpr, ArrayAccess)):
        raise UnsupportedExpressionError(
            f"Cannot evaluate '{dump_expr(expression)}'",
            node_kind=type(expression).__name__,
            loc=expression.loc,
        )
    raise UnsupportedExpressionError(
        f"Unsupported expression type: {type(expression).__name__}",
        node_kind=type(expression).__name__,
    )


def check_requires(method: MethodDescriptor, arguments: Mapping[str, Any]) -> None:
    """Raise :class:`PreconditionFailed` for the first REQUIRES contract that is false."""
    for contract in method.requires:
        try:
            holds = _truth(evaluate(contract.expression, arguments))
        except ZeroDivisionError:
            raise PreconditionFailed(contract.name, reason="division by zero", loc=contract.loc) from None
        except SchemaError as exc:
            if exc.code != ErrorCodes.MISSING_ARGUMENT:
                raise
            raise PreconditionFailed(
                contract.name,
                reason=exc.message,
                code=ErrorCodes.MISSING_ARGUMENT,
                loc=contract.loc,
            ) from None
        if not holds:
            logger.info("%s: precondition %s is false for %r",
                        method.name, contract.name or "unset name", dict(arguments))
            raise PreconditionFailed(contract.name, loc=contract.loc)
        logger.debug("%s: precondition %s holds", method.name, contract.name or "unset name")


__all__ = ["evaluate", "check_requires", "lookup_path"]
