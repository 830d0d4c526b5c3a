# stubsynth/solver.py
"""
Solver driver and per-method enumeration sessions.

Successive calls of the same method walk through the feasible results: the
Nth call takes the first solution and then N-1 further ones, each further
solution blocked from repeating an earlier assignment of the result
variables.  When the walk runs dry the search is reset, the first solution
is returned and the session continues from the second one.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

import z3

from stubsynth.config import SynthesisConfig
from stubsynth.errors import InfeasibleContractError, SolveBudgetExceededError
from stubsynth.model import ConstraintModel

logger = logging.getLogger(__name__)


class MethodSession:
    """Call counter of one API method; starts at 1."""

    def __init__(self, method_name: str, solver_seed: int = 0) -> None:
        self.method_name = method_name
        self.solver_seed = solver_seed
        self._counter = 1
        self._lock = threading.Lock()

    @property
    def counter(self) -> int:
        with self._lock:
            return self._counter

    def claim(self) -> int:
        """Return the current index and advance the counter atomically."""
        with self._lock:
            index = self._counter
            self._counter += 1
            return index

    def rewind(self) -> None:
        """After a reset the first solution has been served; continue at the second."""
        with self._lock:
            self._counter = 2

    def __repr__(self) -> str:
        return f"MethodSession({self.method_name!r}, counter={self.counter})"


@dataclass
class Solution:
    """Result-variable values of one feasible assignment."""
    values: Dict[str, Any] = field(default_factory=dict)
    index: int = 1
    reset: bool = False

    def __contains__(self, canonical_name: str) -> bool:
        return canonical_name in self.values

    def __getitem__(self, canonical_name: str) -> Any:
        return self.values[canonical_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def get(self, canonical_name: str, default: Any = None) -> Any:
        return self.values.get(canonical_name, default)


class SolverDriver:
    """Runs a :class:`ConstraintModel` under the enumeration policy."""

    def __init__(self, config: Optional[SynthesisConfig] = None) -> None:
        self.config = config or SynthesisConfig()

    def _configure(self, model: ConstraintModel, session: MethodSession) -> None:
        model.solver.set("timeout", self.config.solver_timeout_ms)
        model.solver.set("random_seed", session.solver_seed)

    def next_solution(self, model: ConstraintModel) -> Optional[Dict[str, Any]]:
        """Find one more solution and block it; ``None`` when exhausted."""
        solver = model.solver
        preferences = model.preferences
        status = solver.check(*preferences)
        if status == z3.unsat and preferences:
            logger.debug("%s: no solution on the real grid; solving exactly", model.method_name)
            status = solver.check()
        if status == z3.unsat:
            return None
        if status == z3.unknown:
            logger.warning("%s: solver gave up within %d ms", model.method_name, self.config.solver_timeout_ms)
            raise SolveBudgetExceededError(model.method_name, self.config.solver_timeout_ms)
        found = solver.model()
        values = model.decode(found)
        solver.add(model.blocking_clause(found))
        return values

    def solve(self, model: ConstraintModel, session: MethodSession) -> Solution:
        index = session.claim()
        self._configure(model, session)
        model.solver.push()

        values = self.next_solution(model)
        for _ in range(index - 1):
            if values is None:
                break
            values = self.next_solution(model)

        if values is not None:
            logger.info("%s: solution #%d", model.method_name, index)
            return Solution(values=values, index=index)

        logger.info("%s: solutions exhausted at #%d; resetting search", model.method_name, index)
        model.solver.pop()
        model.solver.push()
        values = self.next_solution(model)
        session.rewind()
        if values is None:
            raise InfeasibleContractError(model.method_name)
        return Solution(values=values, index=1, reset=True)


__all__ = ["MethodSession", "Solution", "SolverDriver"]
