# stubsynth/model.py
"""
Constraint Model Builder
========================

Compiles primitive ENSURES contracts into a z3 model.

Every :class:`ConstraintModel` owns a private ``z3.Context`` and solver, so
models built on different threads never share solver state.  Use it as a
context manager; leaving the block releases the solver and all variable
bindings.

Variable domains
----------------
* parameter Int/Real/Bool      bound to the actual argument value
* result Int                   ``[-int_bound, int_bound]``
* result Real                  ``[-int_bound, int_bound]``; preferably on the
                               ``real_precision`` grid (see :attr:`preferences`)
* result Bool                  free

Operators
---------
``&& || ! > < >= <= == != + - * /`` and unary ``-``.  ``/`` on two Int
terms is SMT-LIB ``div`` (Euclidean); with any Real operand it is real
division.  Every division also asserts ``divisor != 0``.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Tuple

import z3

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
from stubsynth.analyzer import ContractWithVariables
from stubsynth.config import SynthesisConfig
from stubsynth.errors import (
    ErrorCodes,
    SchemaError,
    UnsupportedExpressionError,
    UnsupportedOperatorError,
)
from stubsynth.evaluator import lookup_path
from stubsynth.paths import FIELD_DELIMITER, ModelVariable, flatten_access, relative_path
from stubsynth.schema import SemanticType

logger = logging.getLogger(__name__)


class ConstraintModel:
    """z3 variables and constraints for one synthesis call."""

    def __init__(
        self,
        method_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        config: Optional[SynthesisConfig] = None,
    ) -> None:
        self.method_name = method_name
        self.arguments: Mapping[str, Any] = arguments or {}
        self.config = config or SynthesisConfig()
        self.ctx: Optional[z3.Context] = z3.Context()
        self.solver: Optional[z3.Solver] = z3.Solver(ctx=self.ctx)
        self._variables: Dict[str, Tuple[ModelVariable, z3.ExprRef]] = {}
        self._scale = self.config.real_scale
        self._guards: List[z3.BoolRef] = []
        self._on_grid = z3.Bool("$on_grid", self.ctx)
        self._grid_steps: Dict[str, z3.ArithRef] = {}

    # -- lifecycle ------------------------------------------------------

    def __enter__(self) -> "ConstraintModel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._variables.clear()
        self._grid_steps.clear()
        self._guards = []
        self._on_grid = None
        self.solver = None
        self.ctx = None

    @property
    def closed(self) -> bool:
        return self.solver is None

    def _require_open(self) -> z3.Solver:
        if self.solver is None:
            raise RuntimeError(f"constraint model for {self.method_name} is closed")
        return self.solver

    # -- variables ------------------------------------------------------

    @property
    def variables(self) -> List[ModelVariable]:
        return [v for v, _ in self._variables.values()]

    @property
    def result_variables(self) -> List[ModelVariable]:
        return [v for v, _ in self._variables.values() if v.is_result]

    def raw(self, canonical_name: str) -> z3.ExprRef:
        """The z3 constant backing a variable."""
        return self._variables[canonical_name][1]

    def declare(self, variable: ModelVariable) -> z3.ExprRef:
        """Allocate the solver variable for *variable* once and post its domain."""
        if variable.canonical_name in self._variables:
            return self._variables[variable.canonical_name][1]

        solver = self._require_open()
        name, kind = variable.canonical_name, variable.semantic_type
        bound = self.config.int_bound
        if kind is SemanticType.INT:
            raw = z3.Int(name, self.ctx)
        elif kind is SemanticType.REAL:
            raw = z3.Real(name, self.ctx)
        elif kind is SemanticType.BOOL:
            raw = z3.Bool(name, self.ctx)
        else:
            raise UnsupportedExpressionError(
                f"Field {variable.path} of type {variable.type_ref} cannot be modelled",
                node_kind="VariableAccess",
            )

        if variable.is_parameter:
            value = lookup_path((variable.path.root_name,) + variable.path.segments, self.arguments)
            if value is None:
                raise SchemaError(
                    f"Argument field {variable.path} is null",
                    code=ErrorCodes.MISSING_ARGUMENT,
                    field_name=str(variable.path),
                )
            solver.add(raw == self._const(kind, value))
            logger.debug("%s: bind %s = %r", self.method_name, name, value)
        elif kind is SemanticType.INT:
            solver.add(raw >= -bound, raw <= bound)
        elif kind is SemanticType.REAL:
            solver.add(raw >= -bound, raw <= bound)
            step = z3.Int(name + FIELD_DELIMITER + "step", self.ctx)
            solver.add(z3.Implies(self._on_grid, z3.ToReal(step) == raw * self._scale))
            self._grid_steps[name] = step

        self._variables[name] = (variable, raw)
        return raw

    def _const(self, kind: SemanticType, value: Any) -> z3.ExprRef:
        if kind is SemanticType.BOOL:
            return z3.BoolVal(bool(value), self.ctx)
        if kind is SemanticType.INT:
            return z3.IntVal(int(value), self.ctx)
        return z3.RealVal(Fraction(repr(float(value))), self.ctx)

    def _term(self, canonical_name: str) -> z3.ExprRef:
        return self._variables[canonical_name][1]

    @property
    def preferences(self) -> List[z3.BoolRef]:
        """Assumptions to try first: result reals on the ``real_precision`` grid.

        When the contracts admit no grid solution the driver solves again
        without them and the reals keep their exact values.
        """
        if not self._grid_steps:
            return []
        return [self._on_grid]

    # -- contracts ------------------------------------------------------

    def post(self, contract: ContractWithVariables) -> None:
        """Translate and assert one primitive ENSURES contract."""
        solver = self._require_open()
        for variable in sorted(contract.variables, key=lambda v: v.canonical_name):
            self.declare(variable)
        self._guards = []
        term = self.translate(contract.contract.expression)
        if not z3.is_bool(term):
            raise UnsupportedExpressionError(
                f"Contract '{dump_expr(contract.contract.expression)}' is not a condition",
                node_kind=type(contract.contract.expression).__name__,
                loc=contract.contract.loc,
            )
        solver.add(term, *self._guards)
        logger.debug("%s: post %s", self.method_name, dump_expr(contract.contract.expression))

    def translate(self, expr: Expr) -> z3.ExprRef:
        """Post-order translation of *expr* into a z3 term."""
        if isinstance(expr, BoolLiteral):
            return z3.BoolVal(expr.value, self.ctx)
        if isinstance(expr, IntegerLiteral):
            return z3.IntVal(expr.value, self.ctx)
        if isinstance(expr, FloatLiteral):
            return z3.RealVal(Fraction(repr(expr.value)), self.ctx)
        if isinstance(expr, StringLiteral):
            raise UnsupportedExpressionError(
                f"String literal {dump_expr(expr)} cannot appear in a numeric constraint",
                node_kind="StringLiteral",
                loc=expr.loc,
            )
        if isinstance(expr, VariableAccess):
            return self._access(expr)
        if isinstance(expr, UnaryExpr):
            operand = self.translate(expr.operand)
            if expr.op is UnaryOp.NOT:
                return z3.Not(self._as_bool(operand))
            return -self._as_num(operand)
        if isinstance(expr, BinaryExpr):
            return self._binary(expr)
        if isinstance(expr, (CallExpr, ArrayAccess)):
            raise UnsupportedExpressionError(
                f"'{dump_expr(expr)}' cannot be translated to a constraint",
                node_kind=type(expr).__name__,
                loc=expr.loc,
            )
        raise UnsupportedExpressionError(
            f"Unsupported expression type: {type(expr).__name__}",
            node_kind=type(expr).__name__,
        )

    def _access(self, expr: VariableAccess) -> z3.ExprRef:
        canonical = FIELD_DELIMITER + FIELD_DELIMITER.join(flatten_access(expr))
        if canonical not in self._variables:
            raise UnsupportedExpressionError(
                f"'{expr.dump()}' was not declared in the model",
                node_kind="VariableAccess",
                loc=expr.loc,
            )
        return self._term(canonical)

    def _as_bool(self, term: z3.ExprRef) -> z3.BoolRef:
        if z3.is_bool(term):
            return term
        return term != self._zero_like(term)

    def _as_num(self, term: z3.ExprRef) -> z3.ArithRef:
        if z3.is_bool(term):
            return z3.If(term, z3.IntVal(1, self.ctx), z3.IntVal(0, self.ctx))
        return term

    def _zero_like(self, term: z3.ExprRef) -> z3.ExprRef:
        if z3.is_real(term):
            return z3.RealVal(0, self.ctx)
        return z3.IntVal(0, self.ctx)

    def _binary(self, expr: BinaryExpr) -> z3.ExprRef:
        op = expr.op
        left = self.translate(expr.left)
        right = self.translate(expr.right)

        if op is BinOp.AND:
            return z3.And(self._as_bool(left), self._as_bool(right))
        if op is BinOp.OR:
            return z3.Or(self._as_bool(left), self._as_bool(right))
        if op in (BinOp.EQ, BinOp.NE):
            if not (z3.is_bool(left) and z3.is_bool(right)):
                left, right = self._as_num(left), self._as_num(right)
            return left == right if op is BinOp.EQ else left != right

        left, right = self._as_num(left), self._as_num(right)
        if op is BinOp.LT:
            return left < right
        if op is BinOp.GT:
            return left > right
        if op is BinOp.LE:
            return left <= right
        if op is BinOp.GE:
            return left >= right
        if op is BinOp.ADD:
            return left + right
        if op is BinOp.SUB:
            return left - right
        if op is BinOp.MUL:
            return left * right
        if op is BinOp.DIV:
            self._guards.append(right != self._zero_like(right))
            return left / right
        raise UnsupportedOperatorError(op.value, loc=expr.loc)

    # -- solutions ------------------------------------------------------

    def decode(self, model: z3.ModelRef) -> Dict[str, Any]:
        """Concrete values of the result variables in *model*."""
        values: Dict[str, Any] = {}
        for name, (variable, raw) in self._variables.items():
            if not variable.is_result:
                continue
            value = model.eval(raw, model_completion=True)
            if variable.semantic_type is SemanticType.BOOL:
                values[name] = z3.is_true(value)
            elif variable.semantic_type is SemanticType.REAL:
                values[name] = self._decode_real(value)
            else:
                values[name] = value.as_long()
        return values

    def _decode_real(self, value: z3.ExprRef) -> float:
        if not z3.is_rational_value(value):
            value = value.approx(self.config.real_digits + 6)
        exact = value.as_fraction()
        if (exact * self._scale).denominator == 1:
            return round(float(exact), self.config.real_digits)
        return float(exact)

    def blocking_clause(self, model: z3.ModelRef) -> z3.BoolRef:
        """Excludes *model*'s assignment of the result variables."""
        differences = [
            raw != model.eval(raw, model_completion=True)
            for variable, raw in self._variables.values()
            if variable.is_result
        ]
        if not differences:
            return z3.BoolVal(False, self.ctx)
        return z3.Or(*differences)

    def to_smt2(self) -> str:
        return self._require_open().to_smt2()

    def describe(self) -> List[str]:
        """One line per variable: canonical name, type and path segments."""
        return [
            f"{v.canonical_name}: {v.semantic_type.value} {relative_path(v.canonical_name)}"
            for v, _ in self._variables.values()
        ]


def build_model(
    method_name: str,
    contracts: List[ContractWithVariables],
    arguments: Optional[Mapping[str, Any]] = None,
    config: Optional[SynthesisConfig] = None,
) -> ConstraintModel:
    """Create a model and post every contract of the primitive bucket."""
    model = ConstraintModel(method_name, arguments, config)
    try:
        for contract in contracts:
            model.post(contract)
    except BaseException:
        model.close()
        raise
    logger.debug("%s: model with %d variables and %d contracts",
                 method_name, len(model.variables), len(contracts))
    return model


__all__ = ["ConstraintModel", "build_model"]
