from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from mortgage_engine.models.loan import OverpaymentPlan
from mortgage_engine.models.results import CalculationResult, OverpaymentSavings


class OptimizationGoal(Enum):
    MAXIMIZE_INTEREST_SAVINGS = "maximizeInterestSavings"
    MINIMIZE_TIME = "minimizeTime"
    BALANCED = "balanced"  # Interest saved per unit overpaid


@dataclass(frozen=True)
class OptimizationParameters:
    max_monthly_overpayment: Decimal = Decimal("0")
    max_one_time_overpayment: Decimal = Decimal("0")
    goal: OptimizationGoal = OptimizationGoal.BALANCED


@dataclass(frozen=True)
class StrategyOutcome:
    """One candidate overpayment strategy, evaluated against the no-overpayment baseline."""
    name: str
    description: str
    overpayment_plans: tuple[OverpaymentPlan, ...]
    interest_saved: Decimal = Decimal("0")
    months_saved: int = 0
    total_overpayment: Decimal = Decimal("0")  # Actually applied, after clamping
    effectiveness_ratio: Decimal = Decimal("0")
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class YearlyInterestPoint:
    year: int
    baseline_total_interest: Decimal
    optimized_total_interest: Decimal


@dataclass(frozen=True)
class OptimizationResult:
    baseline: CalculationResult
    optimized: CalculationResult  # The baseline when no strategy applies
    strategies: tuple[StrategyOutcome, ...] = ()
    best: StrategyOutcome | None = None
    interest_saved: Decimal = Decimal("0")
    months_saved: int = 0
    yearly_interest: tuple[YearlyInterestPoint, ...] = ()


@dataclass(frozen=True)
class ImpactPoint:
    amount: Decimal  # Monthly overpayment
    interest_saved: Decimal
    months_saved: int


@dataclass(frozen=True)
class LumpSumComparison:
    lump_sum: OverpaymentSavings
    monthly: OverpaymentSavings
    break_even_month: int  # Months of the monthly amount needed to match the lump sum
