"""bfpatterns/config.py – tuning knobs for parsing, expansion and matching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

__all__ = ["MatcherConfig", "DEFAULT_CONFIG"]


@dataclass(frozen=True)
class MatcherConfig:
    """Tuning knobs for the matcher pipeline.

    max_steps
        Upper bound on elementary match steps per invocation.  Alternation
        and wildcards can make the search exponential; once the budget is
        spent the match ends with a budget-exceeded outcome.
    max_expansion_depth
        How deeply named patterns may call each other.
    allow_negative_cells
        Whether a variable may resolve to a cell left of the tape origin
        (the head position at the start of the code).
    permissive_patterns
        Ignore characters outside the pattern alphabet instead of
        rejecting them.
    """
    max_steps: int = 100_000
    max_expansion_depth: int = 32
    allow_negative_cells: bool = False
    permissive_patterns: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_steps <= 0:
            warnings.append("max_steps must be positive")
        if self.max_expansion_depth <= 0:
            warnings.append("max_expansion_depth must be positive")
        return warnings


DEFAULT_CONFIG = MatcherConfig()
