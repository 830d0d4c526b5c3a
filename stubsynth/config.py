# stubsynth/config.py
"""Tuning knobs shared by the model builder, solver and random synthesizer."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class SynthesisConfig:
    """Configuration for one :class:`~stubsynth.synthesizer.StubSynthesizer`."""
    # Constraint model
    int_bound: int = 1_000_000
    real_precision: float = 0.01

    # Solver
    solver_timeout_ms: int = 10_000
    seed: Optional[int] = None

    # Random values
    max_collection_size: int = 10
    max_depth: int = 6
    random_string_pattern: str = "[a-zA-Z0-9]{0,10}"

    @property
    def real_scale(self) -> int:
        """Grid steps per unit: ``0.01`` → ``100``."""
        return max(1, round(1 / self.real_precision))

    @property
    def real_digits(self) -> int:
        """Decimal places of ``real_precision``: ``0.01`` → ``2``."""
        return max(0, math.ceil(math.log10(self.real_scale)))

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.int_bound <= 0:
            warnings.append("int_bound must be positive")
        if not 0 < self.real_precision <= 1:
            warnings.append("real_precision must be in (0, 1]")
        elif abs(self.real_scale * self.real_precision - 1) > 1e-9:
            warnings.append(
                f"real_precision {self.real_precision} is not 1/n; using a grid of 1/{self.real_scale}")
        if self.solver_timeout_ms <= 0:
            warnings.append("solver_timeout_ms must be positive")
        if self.max_collection_size < 2:
            warnings.append("max_collection_size below 2 leaves nested collections empty")
        if self.max_depth <= 0:
            warnings.append("max_depth must be positive")
        try:
            re.compile(self.random_string_pattern)
        except re.error as exc:
            warnings.append(f"random_string_pattern is not a valid regex: {exc}")
        return warnings


__all__ = ["SynthesisConfig"]
