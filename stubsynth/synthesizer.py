# stubsynth/synthesizer.py
"""
End-to-end stub synthesis for one method invocation.

Usage::

    schema = load_file("petstore.sexp")
    synth = StubSynthesizer(schema, SynthesisConfig(seed=7))

    pet = synth.synthesize("getPet", {"x": 3})
    print(pet.render())          # new Pet("QXZ", 3)
    print(pet.to_data())         # {'name': 'QXZ', 'age': 3}

    outcome = synth.try_synthesize("getPet", {"x": -1})
    if not outcome.ok:
        print(outcome.error)     # [STUB-5001] Precondition with positive failed

Pipeline: random value of the return type, REQUIRES check, contract
analysis, constraint model, solver, restorer; then assignment-style and
regex ENSURES are applied.
"""

from __future__ import annotations

import logging
import random
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from stubsynth.analyzer import Assignment, ContractAnalysis, analyze
from stubsynth.config import SynthesisConfig
from stubsynth.errors import InfeasibleContractError, SynthesisError, UnsupportedExpressionError
from stubsynth.evaluator import check_requires, evaluate
from stubsynth.model import ConstraintModel, build_model
from stubsynth.random_values import RandomValueSynthesizer
from stubsynth.restorer import ObjectRestorer
from stubsynth.schema import MethodDescriptor, SemanticType, TypeSchema
from stubsynth.solver import MethodSession, SolverDriver
from stubsynth.values import Value

logger = logging.getLogger(__name__)

MethodRef = Union[str, MethodDescriptor]


@dataclass
class SynthesisOutcome:
    """Either a synthesized value or the error that prevented it."""
    value: Optional[Value] = None
    error: Optional[SynthesisError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Value) -> "SynthesisOutcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SynthesisError) -> "SynthesisOutcome":
        return cls(error=error)

    def unwrap(self) -> Value:
        if self.error is not None:
            raise self.error
        return self.value


class StubSynthesizer:
    """Produces contract-satisfying return values for the methods of a schema."""

    def __init__(self, schema: TypeSchema, config: Optional[SynthesisConfig] = None) -> None:
        self.schema = schema
        self.config = config or SynthesisConfig()
        for w in self.config.validate():
            logger.warning("SynthesisConfig: %s", w)

        self.rng = random.Random(self.config.seed)
        self.random_values = RandomValueSynthesizer(schema, self.config, self.rng)
        self.restorer = ObjectRestorer(schema, self.random_values)
        self.driver = SolverDriver(self.config)
        self._sessions: Dict[str, MethodSession] = {}
        self._sessions_lock = threading.Lock()

    # -- sessions -------------------------------------------------------

    def session(self, method_name: str) -> MethodSession:
        with self._sessions_lock:
            session = self._sessions.get(method_name)
            if session is None:
                session = MethodSession(method_name, solver_seed=self.rng.randrange(2 ** 31))
                self._sessions[method_name] = session
            return session

    def _method(self, method: MethodRef) -> MethodDescriptor:
        if isinstance(method, MethodDescriptor):
            return method
        return self.schema.method(method)

    # -- synthesis ------------------------------------------------------

    def model(self, method: MethodRef, arguments: Optional[Mapping[str, Any]] = None) -> ConstraintModel:
        """The constraint model of *method*'s primitive ENSURES; caller closes it."""
        method = self._method(method)
        analysis = analyze(method, self.schema)
        return build_model(method.name, analysis.primitive, dict(arguments or {}), self.config)

    def synthesize(self, method: MethodRef, arguments: Optional[Mapping[str, Any]] = None) -> Value:
        method = self._method(method)
        arguments = dict(arguments or {})
        answer = self.random_values.synthesize(method.returns)
        if not method.contracts:
            logger.debug("%s: no contracts; returning random value", method.name)
            return answer

        check_requires(method, arguments)
        analysis = analyze(method, self.schema)

        if analysis.primitive:
            with build_model(method.name, analysis.primitive, arguments, self.config) as model:
                solution = self.driver.solve(model, self.session(method.name))
            answer = self.restorer.restore(answer, solution, analysis.model_variables)

        for assignment in analysis.non_primitive:
            answer = self._apply(answer, assignment, arguments)
        for assignment in analysis.regex:
            answer = self._apply_regex(answer, assignment, arguments)
        return answer

    def try_synthesize(
        self, method: MethodRef, arguments: Optional[Mapping[str, Any]] = None
    ) -> SynthesisOutcome:
        try:
            return SynthesisOutcome.success(self.synthesize(method, arguments))
        except SynthesisError as exc:
            logger.info("synthesis failed: %s", exc)
            return SynthesisOutcome.failure(exc)

    def analysis(self, method: MethodRef) -> ContractAnalysis:
        return analyze(self._method(method), self.schema)

    # -- assignments ----------------------------------------------------

    def _evaluate(self, assignment: Assignment, arguments: Mapping[str, Any]) -> Any:
        try:
            return evaluate(assignment.value, arguments)
        except ZeroDivisionError:
            raise InfeasibleContractError(
                reason=f"division by zero in '{assignment.contract.dump()}'",
                loc=assignment.contract.loc,
            ) from None

    def _apply(self, answer: Value, assignment: Assignment, arguments: Mapping[str, Any]) -> Value:
        data = self._evaluate(assignment, arguments)
        return self.restorer.assign(answer, assignment.target, data)

    def _apply_regex(self, answer: Value, assignment: Assignment, arguments: Mapping[str, Any]) -> Value:
        target = assignment.target
        if target.semantic_type is not SemanticType.STR:
            raise UnsupportedExpressionError(
                f"Regex contract target {target.path} is {target.type_ref}, not a string",
                node_kind="VariableAccess",
                loc=assignment.contract.loc,
            )
        pattern = self._evaluate(assignment, arguments)
        if not isinstance(pattern, str):
            raise UnsupportedExpressionError(
                f"Regex contract for {target.path} does not evaluate to a pattern",
                node_kind=type(assignment.value).__name__,
                loc=assignment.contract.loc,
            )
        try:
            text = self.random_values.string(pattern)
        except (re.error, ValueError) as exc:
            raise UnsupportedExpressionError(
                f"Cannot generate a string for pattern {pattern!r}: {exc}",
                node_kind="StringLiteral",
                loc=assignment.contract.loc,
            ) from exc
        return self.restorer.assign(answer, target, text)


__all__ = ["StubSynthesizer", "SynthesisOutcome"]
