from dataclasses import dataclass
from decimal import Decimal

from mortgage_engine.models.loan import LoanDetails
from mortgage_engine.models.results import CalculationResult


@dataclass(frozen=True)
class ComparedLoan:
    label: str
    loan: LoanDetails
    result: CalculationResult | None = None
    error: str | None = None  # Set when this loan alone failed to compute
    rank: int | None = None  # By total cost, 1 = cheapest
    savings_vs_worst: Decimal | None = None


@dataclass(frozen=True)
class ComparisonSummary:
    """Winners are positions in ``ComparisonResult.loans``; None if no loan computed."""
    best_by_monthly_payment: int | None = None
    best_by_total_interest: int | None = None
    best_by_total_cost: int | None = None
    worst_by_total_cost: int | None = None
    total_savings: Decimal = Decimal("0")
    average_rate: Decimal = Decimal("0")
    break_even_period: int | None = None


@dataclass(frozen=True)
class ComparisonResult:
    loans: tuple[ComparedLoan, ...]
    summary: ComparisonSummary

    def best(self, metric: str) -> ComparedLoan | None:
        """Loan that wins ``metric`` ("monthly_payment", "total_interest" or "total_cost")."""
        index = getattr(self.summary, f"best_by_{metric}")
        return None if index is None else self.loans[index]
