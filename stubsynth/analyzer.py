"""
analyzer.py — Contract analysis
===============================

Partitions a method's contracts into REQUIRES and ENSURES and, for every
ENSURES contract, collects the distinct fields it constrains.  ENSURES
contracts are then grouped into three buckets:

* primitive      every referenced field is Int/Real/Bool; posted to the solver
* non-primitive  some referenced field is not; applied as a direct assignment
* regex          contracts named ``rex``; the left field gets a string
                 generated from the right-hand pattern
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Set, Tuple

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
    StringLiteral,
    UnaryExpr,
    VariableAccess,
    dump_expr,
)
from stubsynth.errors import UnsupportedExpressionError
from stubsynth.paths import ModelVariable, resolve_access
from stubsynth.schema import MethodDescriptor, TypeSchema

logger = logging.getLogger(__name__)

_LITERALS = (IntegerLiteral, FloatLiteral, BoolLiteral, StringLiteral)


@dataclass(frozen=True)
class ContractWithVariables:
    contract: ContractRecord
    variables: FrozenSet[ModelVariable]

    @property
    def is_primitive(self) -> bool:
        return all(v.semantic_type.is_solver_representable for v in self.variables)


@dataclass(frozen=True)
class Assignment:
    """``target := value`` derived from a non-primitive or regex contract."""
    target: ModelVariable
    value: Expr
    contract: ContractRecord


@dataclass
class ContractAnalysis:
    method: MethodDescriptor
    requires: List[ContractRecord] = field(default_factory=list)
    ensures: List[ContractWithVariables] = field(default_factory=list)
    primitive: List[ContractWithVariables] = field(default_factory=list)
    non_primitive: List[Assignment] = field(default_factory=list)
    regex: List[Assignment] = field(default_factory=list)

    @property
    def model_variables(self) -> List[ModelVariable]:
        """Variables of the primitive bucket, one per canonical name, in first-seen order."""
        seen: Dict[str, ModelVariable] = {}
        for cwv in self.primitive:
            for v in sorted(cwv.variables, key=lambda mv: mv.canonical_name):
                seen.setdefault(v.canonical_name, v)
        return list(seen.values())

    @property
    def result_variables(self) -> List[ModelVariable]:
        """Every result-rooted variable the restorer must write."""
        seen: Dict[str, ModelVariable] = {}
        for v in self.model_variables:
            if v.is_result:
                seen.setdefault(v.canonical_name, v)
        for a in self.non_primitive + self.regex:
            seen.setdefault(a.target.canonical_name, a.target)
        return list(seen.values())

    @property
    def has_contracts(self) -> bool:
        return bool(self.requires or self.ensures)


def split_contracts(contracts) -> Tuple[List[ContractRecord], List[ContractRecord]]:
    requires = [c for c in contracts if c.kind is ContractKind.REQUIRES]
    ensures = [c for c in contracts if c.kind is ContractKind.ENSURES]
    return requires, ensures


def collect_variables(expression: Expr, method: MethodDescriptor, schema: TypeSchema) -> Set[ModelVariable]:
    """All distinct fields referenced by *expression*."""
    if isinstance(expression, BinaryExpr):
        return (collect_variables(expression.left, method, schema)
                | collect_variables(expression.right, method, schema))
    if isinstance(expression, UnaryExpr):
        return collect_variables(expression.operand, method, schema)
    if isinstance(expression, VariableAccess):
        return {resolve_access(expression, method, schema)}
    if isinstance(expression, _LITERALS):
        return set()
    if isinstance(expression, CallExpr):
        raise UnsupportedExpressionError(
            f"Procedure call '{dump_expr(expression)}' cannot be used in a contract",
            node_kind="CallExpr",
            loc=expression.loc,
        )
    if isinstance(expression, ArrayAccess):
        raise UnsupportedExpressionError(
            "Array access cannot be used as a contract operand",
            node_kind="ArrayAccess",
            loc=expression.loc,
        )
    raise UnsupportedExpressionError(
        f"Unsupported expression type: {type(expression).__name__}",
        node_kind=type(expression).__name__,
    )


def _assignment(cwv: ContractWithVariables, method: MethodDescriptor, schema: TypeSchema) -> Assignment:
    """Read ``result.x == <expr>`` as an assignment of ``<expr>`` to ``result.x``."""
    contract = cwv.contract
    expr = contract.expression
    if not (isinstance(expr, BinaryExpr) and expr.op is BinOp.EQ
            and isinstance(expr.left, VariableAccess)):
        raise UnsupportedExpressionError(
            f"Contract '{dump_expr(expr)}' must have the form <result field> == <value>",
            node_kind=type(expr).__name__,
            loc=contract.loc,
        ).with_hint("only equality can be applied to non-numeric fields")
    target = resolve_access(expr.left, method, schema)
    if not target.is_result:
        raise UnsupportedExpressionError(
            f"Left side of '{dump_expr(expr)}' must be rooted at 'result'",
            node_kind="VariableAccess",
            loc=expr.left.loc,
        )
    return Assignment(target=target, value=expr.right, contract=contract)


def analyze(method: MethodDescriptor, schema: TypeSchema) -> ContractAnalysis:
    """Compute the contract analysis of *method*."""
    requires, ensures = split_contracts(method.contracts)
    analysis = ContractAnalysis(method=method, requires=requires)

    for contract in ensures:
        cwv = ContractWithVariables(
            contract=contract,
            variables=frozenset(collect_variables(contract.expression, method, schema)),
        )
        analysis.ensures.append(cwv)

        if contract.is_regex_ensures:
            analysis.regex.append(_assignment(cwv, method, schema))
        elif cwv.is_primitive:
            analysis.primitive.append(cwv)
        else:
            analysis.non_primitive.append(_assignment(cwv, method, schema))

    logger.debug(
        "%s: %d requires, %d primitive, %d non-primitive, %d regex ensures",
        method.name, len(analysis.requires), len(analysis.primitive),
        len(analysis.non_primitive), len(analysis.regex),
    )
    return analysis
