from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from mortgage_engine.models.results import CalculationResult


class ScenarioKind(Enum):
    RATE_CHANGE = "rate-change"
    STRESS_TEST = "stress-test"
    WHAT_IF = "what-if"


class StressLevel(Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Outcome(Enum):
    FAVORABLE = "favorable"
    NEUTRAL = "neutral"
    ADVERSE = "adverse"


@dataclass(frozen=True)
class StressProfile:
    rate_increase: Decimal  # Percentage points added to every rate period
    description: str


@dataclass(frozen=True)
class ScenarioDefinition:
    """A named mutation of a base loan.

    Only the parameters relevant to ``kind`` are read; the rest stay None.
    """
    id: str
    name: str
    kind: ScenarioKind
    rate_change: Decimal | None = None  # Percentage points
    stress_level: StressLevel | None = None
    extra_payment: Decimal | None = None  # Extra principal every month
    term_change: int | None = None  # Years
    payment_change: Decimal | None = None  # Percent of the initial payment


@dataclass(frozen=True)
class ScenarioImpact:
    monthly_payment_diff: Decimal
    total_interest_diff: Decimal
    total_cost_diff: Decimal
    term_diff_months: int
    payoff_change: str  # e.g. "+2 years, 3 months"
    risk_level: RiskLevel
    outcome: Outcome


@dataclass(frozen=True)
class ScenarioResult:
    definition: ScenarioDefinition
    result: CalculationResult | None = None
    impact: ScenarioImpact | None = None
    error: str | None = None  # Set when this scenario alone failed to compute

    @property
    def succeeded(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class ScenarioHighlight:
    scenario_id: str
    name: str
    total_interest_diff: Decimal
    total_cost_diff: Decimal


@dataclass(frozen=True)
class RiskAssessment:
    overall: RiskLevel = RiskLevel.LOW
    factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    baseline: CalculationResult
    scenarios: tuple[ScenarioResult, ...] = ()
    best_case: ScenarioHighlight | None = None
    worst_case: ScenarioHighlight | None = None
    recommendations: tuple[str, ...] = ()
    risk_assessment: RiskAssessment = field(default_factory=RiskAssessment)
