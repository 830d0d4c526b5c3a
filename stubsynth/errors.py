# stubsynth/errors.py
"""
Error types for the stubsynth contract compiler.

Hierarchy
─────────
    SynthesisError (base)
    ├── SchemaError                 - field/type cannot be resolved
    ├── ContractSyntaxError         - contract text does not parse
    ├── DescriptorError             - malformed descriptor document
    ├── UnsupportedExpressionError  - AST node kind not modelled
    │   └── UnsupportedOperatorError
    ├── InfeasibleContractError     - no solution even after a reset
    │   └── SolveBudgetExceededError
    └── PreconditionFailed          - a REQUIRES contract evaluated false

Error codes follow ``STUB-XXXX``:
  - 1000-1999: schema resolution
  - 2000-2999: contract / descriptor syntax
  - 3000-3999: unsupported constructs
  - 4000-4999: solving
  - 5000-5999: preconditions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from stubsynth.ast_nodes import Loc


@dataclass(frozen=True)
class ErrorCode:
    """A unique error code such as ``STUB-1001``."""
    number: int
    name: str

    def __str__(self) -> str:
        return f"STUB-{self.number:04d}"


class ErrorCodes:
    UNKNOWN_ROOT = ErrorCode(1001, "unknown-root")
    UNKNOWN_FIELD = ErrorCode(1002, "unknown-field")
    NOT_A_STRUCT = ErrorCode(1003, "not-a-struct")
    UNKNOWN_TYPE = ErrorCode(1004, "unknown-type")
    MISSING_ARGUMENT = ErrorCode(1005, "missing-argument")

    CONTRACT_SYNTAX = ErrorCode(2001, "contract-syntax")
    TYPE_SYNTAX = ErrorCode(2002, "type-syntax")
    DESCRIPTOR_SYNTAX = ErrorCode(2003, "descriptor-syntax")

    UNSUPPORTED_EXPRESSION = ErrorCode(3001, "unsupported-expression")
    UNSUPPORTED_OPERATOR = ErrorCode(3002, "unsupported-operator")

    INFEASIBLE = ErrorCode(4001, "infeasible")
    SOLVE_BUDGET = ErrorCode(4002, "solve-budget-exceeded")

    PRECONDITION_FAILED = ErrorCode(5001, "precondition-failed")


class SynthesisError(Exception):
    """Base exception for every stubsynth failure.

    Carries a code, an optional source location of the offending contract
    text, a hint and free-form notes.
    """

    default_code: ErrorCode = ErrorCodes.UNSUPPORTED_EXPRESSION

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        loc: Optional[Loc] = None,
        hint: str = "",
        notes: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.loc = loc
        self.hint = hint
        self.notes: List[str] = list(notes or [])

    def add_note(self, note: str) -> "SynthesisError":
        self.notes.append(note)
        return self

    def with_hint(self, hint: str) -> "SynthesisError":
        self.hint = hint
        return self

    def to_dict(self) -> dict:
        return {
            "code": str(self.code),
            "kind": type(self).__name__,
            "message": self.message,
            "location": str(self.loc) if self.loc else None,
            "hint": self.hint or None,
            "notes": list(self.notes),
        }

    def __str__(self) -> str:
        prefix = f"{self.loc}: " if self.loc else ""
        text = f"{prefix}[{self.code}] {self.message}"
        for note in self.notes:
            text += f"\n  note: {note}"
        if self.hint:
            text += f"\n  hint: {self.hint}"
        return text


# ───────────────────────────────────────────────────────────────────────────────
# SCHEMA
# ───────────────────────────────────────────────────────────────────────────────

class SchemaError(SynthesisError):
    """A referenced field or type cannot be resolved against the schema."""

    default_code = ErrorCodes.UNKNOWN_FIELD

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        type_name: str = "",
        field_name: str = "",
        **kwargs,
    ) -> None:
        super().__init__(message, code=code, **kwargs)
        self.type_name = type_name
        self.field_name = field_name


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX
# ───────────────────────────────────────────────────────────────────────────────

class ContractSyntaxError(SynthesisError):
    """Contract or type-reference text that the grammar rejects."""

    default_code = ErrorCodes.CONTRACT_SYNTAX

    def __init__(self, message: str, text: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.text = text


class DescriptorError(SynthesisError):
    """Malformed S-expression descriptor document."""

    default_code = ErrorCodes.DESCRIPTOR_SYNTAX


# ───────────────────────────────────────────────────────────────────────────────
# UNSUPPORTED CONSTRUCTS
# ───────────────────────────────────────────────────────────────────────────────

class UnsupportedExpressionError(SynthesisError):
    """A contract uses an expression kind the compiler does not model."""

    default_code = ErrorCodes.UNSUPPORTED_EXPRESSION

    def __init__(self, message: str, node_kind: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.node_kind = node_kind


class UnsupportedOperatorError(UnsupportedExpressionError):
    """A binary or unary operator without a solver counterpart."""

    default_code = ErrorCodes.UNSUPPORTED_OPERATOR

    def __init__(self, operator: str, **kwargs) -> None:
        super().__init__(
            f"Unsupported operator '{operator}'",
            node_kind="operator",
            **kwargs,
        )
        self.operator = operator


# ───────────────────────────────────────────────────────────────────────────────
# SOLVING
# ───────────────────────────────────────────────────────────────────────────────

class InfeasibleContractError(SynthesisError):
    """The ensures contracts admit no solution, even after a solver reset."""

    default_code = ErrorCodes.INFEASIBLE

    def __init__(self, method_name: str = "", reason: str = "", **kwargs) -> None:
        msg = "Cannot find solution for the given constraints"
        if method_name:
            msg = f"Cannot find solution for the constraints of '{method_name}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, **kwargs)
        self.method_name = method_name


class SolveBudgetExceededError(InfeasibleContractError):
    """The solver gave up within the configured time budget."""

    default_code = ErrorCodes.SOLVE_BUDGET

    def __init__(self, method_name: str = "", timeout_ms: int = 0, **kwargs) -> None:
        super().__init__(
            method_name=method_name,
            reason=f"solver exceeded {timeout_ms} ms",
            **kwargs,
        )
        self.timeout_ms = timeout_ms


# ───────────────────────────────────────────────────────────────────────────────
# PRECONDITIONS
# ───────────────────────────────────────────────────────────────────────────────

class PreconditionFailed(SynthesisError):
    """A REQUIRES contract is false for the actual arguments."""

    default_code = ErrorCodes.PRECONDITION_FAILED

    def __init__(self, contract_name: Optional[str] = None, reason: str = "", **kwargs) -> None:
        label = contract_name if contract_name else "unset name"
        msg = f"Precondition with {label} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, **kwargs)
        self.contract_name = contract_name


__all__ = [
    "ErrorCode", "ErrorCodes",
    "SynthesisError", "SchemaError", "ContractSyntaxError", "DescriptorError",
    "UnsupportedExpressionError", "UnsupportedOperatorError",
    "InfeasibleContractError", "SolveBudgetExceededError",
    "PreconditionFailed",
]
