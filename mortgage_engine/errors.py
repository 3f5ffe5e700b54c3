"""Error types raised by the mortgage engine.

``ValidationError`` reports every rule a loan (or scenario set) breaks so a
form can show all problems at once. ``ComputationError`` is fatal to a single
calculation only; batch engines capture it per item.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class MortgageEngineError(Exception):
    """Base class for all engine errors."""


@dataclass(frozen=True)
class Violation:
    field: str  # e.g. "overpayment_plans[0].amount"
    code: str  # Stable machine-readable reason
    message: str


class ValidationError(MortgageEngineError):
    """Input rejected before any calculation ran.

    Attributes:
        violations: Every violation found, in check order.
    """

    def __init__(self, violations: Iterable[Violation], message: str | None = None):
        self.violations = tuple(violations)
        super().__init__(self._fmt(message or "Invalid input"))

    def _fmt(self, msg: str) -> str:
        if not self.violations:
            return msg
        details = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        return f"{msg} ({len(self.violations)} violation(s)): {details}"

    @property
    def codes(self) -> list[str]:
        return [v.code for v in self.violations]


class LimitExceededError(ValidationError):
    """A batch holds more items than the configured maximum."""

    def __init__(self, what: str, limit: int, actual: int):
        self.limit = limit
        self.actual = actual
        violation = Violation(
            field=what,
            code="limit_exceeded",
            message=f"At most {limit} {what} allowed, got {actual}",
        )
        super().__init__([violation], message=f"Too many {what}")


class ComputationError(MortgageEngineError):
    """Numerical degeneracy inside a single calculation."""
