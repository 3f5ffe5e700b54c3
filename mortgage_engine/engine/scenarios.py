"""Scenario engine: rate-change, stress-test and what-if variants of a loan.

Each scenario is a new LoanDetails derived from the base and run through
the full calculation. A scenario that fails to compute is reported on its
own result; the others still complete.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Sequence

from mortgage_engine.config import settings
from mortgage_engine.errors import ComputationError
from mortgage_engine.engine.calculator import calculate
from mortgage_engine.engine.debt import initial_payment, monthly_rate, periods_to_repay
from mortgage_engine.engine.validation import validate, validate_scenarios
from mortgage_engine.models.loan import (
    LoanDetails,
    OverpaymentEffect,
    OverpaymentFrequency,
    OverpaymentPlan,
    RepaymentModel,
)
from mortgage_engine.models.results import CalculationResult
from mortgage_engine.models.scenario import (
    AnalysisResult,
    Outcome,
    RiskAssessment,
    RiskLevel,
    ScenarioDefinition,
    ScenarioHighlight,
    ScenarioImpact,
    ScenarioKind,
    ScenarioResult,
    StressLevel,
    StressProfile,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")

RATE_CHANGE_TEMPLATES: tuple[tuple[Decimal, str], ...] = (
    (Decimal("0.5"), "Small rate increase (+0.5%)"),
    (Decimal("1.0"), "Moderate rate increase (+1.0%)"),
    (Decimal("2.0"), "Large rate increase (+2.0%)"),
    (Decimal("-0.5"), "Small rate decrease (-0.5%)"),
    (Decimal("-1.0"), "Moderate rate decrease (-1.0%)"),
)

STRESS_TEST_PROFILES: dict[StressLevel, StressProfile] = {
    StressLevel.MILD: StressProfile(Decimal("1.0"), "Mild economic downturn"),
    StressLevel.MODERATE: StressProfile(Decimal("2.5"), "Moderate recession"),
    StressLevel.SEVERE: StressProfile(Decimal("5.0"), "Severe economic crisis"),
}


def rate_change_definitions() -> list[ScenarioDefinition]:
    return [
        ScenarioDefinition(
            id=f"rate-change-{i + 1}",
            name=description,
            kind=ScenarioKind.RATE_CHANGE,
            rate_change=change,
        )
        for i, (change, description) in enumerate(RATE_CHANGE_TEMPLATES)
    ]


def stress_test_definitions() -> list[ScenarioDefinition]:
    return [
        ScenarioDefinition(
            id=f"stress-{level.value}",
            name=profile.description,
            kind=ScenarioKind.STRESS_TEST,
            stress_level=level,
        )
        for level, profile in STRESS_TEST_PROFILES.items()
    ]


def _clamp_rate(rate: Decimal) -> Decimal:
    return min(max(rate, Decimal("0")), settings.max_interest_rate)


def _term_for_payment(loan: LoanDetails, target: Decimal) -> int:
    """Whole years needed to repay ``loan`` with an initial payment of at most ``target``.

    The payoff stretches; the term never shrinks below the loan's own.
    """
    rate = loan.initial_rate
    if loan.repayment_model is RepaymentModel.DECREASING_INSTALLMENTS:
        principal_part = target - loan.principal * monthly_rate(rate)
        if principal_part <= 0:
            raise ComputationError(f"Payment {target} does not cover the first period's interest")
        months = int((loan.principal / principal_part).to_integral_value(rounding=ROUND_CEILING))
    else:
        months = periods_to_repay(loan.principal, rate, target)

    years = -(-months // 12)
    if years > settings.max_loan_term_years:
        raise ComputationError(
            f"Payment {target} needs {years} years to repay the loan "
            f"(maximum {settings.max_loan_term_years})"
        )
    return max(years, loan.loan_term)


def apply_scenario(base: LoanDetails, definition: ScenarioDefinition) -> LoanDetails:
    """Derive the loan a scenario describes. ``base`` is left untouched.

    A payment cut extends the term to the whole number of years the lower
    payment needs; a payment rise becomes a monthly reduceTerm overpayment.

    Raises:
        ComputationError: a payment cut that never repays the loan within
            ``settings.max_loan_term_years``.
    """
    rate_delta = definition.rate_change or Decimal("0")
    if definition.kind is ScenarioKind.STRESS_TEST and definition.stress_level is not None:
        rate_delta += STRESS_TEST_PROFILES[definition.stress_level].rate_increase

    loan = base
    if rate_delta:
        loan = replace(loan, interest_rate_periods=tuple(
            replace(p, interest_rate=_clamp_rate(p.interest_rate + rate_delta))
            for p in loan.interest_rate_periods
        ))

    if definition.term_change:
        term = loan.loan_term + definition.term_change
        loan = replace(loan, loan_term=min(max(term, 1), settings.max_loan_term_years))

    extra_monthly = definition.extra_payment or Decimal("0")
    if definition.payment_change and definition.payment_change < 0:
        target = (
            initial_payment(loan) * (100 + definition.payment_change) / 100
        ).quantize(TWO_PLACES, ROUND_HALF_UP)
        loan = replace(loan, loan_term=_term_for_payment(loan, target))
    elif definition.payment_change:
        extra_monthly += (
            initial_payment(loan) * definition.payment_change / 100
        ).quantize(TWO_PLACES, ROUND_HALF_UP)

    if extra_monthly > 0:
        loan = replace(loan, overpayment_plans=loan.overpayment_plans + (
            OverpaymentPlan(
                amount=extra_monthly,
                start_month=1,
                is_recurring=True,
                frequency=OverpaymentFrequency.MONTHLY,
                effect=OverpaymentEffect.REDUCE_TERM,
            ),
        ))

    return loan


def describe_month_delta(months: int) -> str:
    """Signed, human-readable month difference, e.g. "-1 years, 4 months"."""
    if months == 0:
        return "No change"
    sign = "+" if months > 0 else "-"
    years, rest = divmod(abs(months), 12)
    if years and rest:
        return f"{sign}{years} years, {rest} months"
    if years:
        return f"{sign}{years} years"
    return f"{sign}{rest} months"


def _pct_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return Decimal("0")
    return part / whole * 100


def scenario_impact(baseline: CalculationResult, result: CalculationResult) -> ScenarioImpact:
    """Deltas of a scenario against the baseline, with risk and outcome tiers."""
    interest_diff = result.total_interest - baseline.total_interest
    cost_diff = result.total_cost - baseline.total_cost

    cost_increase_pct = _pct_of(cost_diff, baseline.total_cost)
    if cost_increase_pct > settings.risk_high_threshold_pct:
        risk = RiskLevel.HIGH
    elif cost_increase_pct > settings.risk_medium_threshold_pct:
        risk = RiskLevel.MEDIUM
    else:
        risk = RiskLevel.LOW

    band = baseline.total_interest * settings.neutral_interest_band_pct / 100
    if abs(interest_diff) <= band:
        outcome = Outcome.NEUTRAL
    elif interest_diff < 0:
        outcome = Outcome.FAVORABLE
    else:
        outcome = Outcome.ADVERSE

    term_diff = result.actual_term_months - baseline.actual_term_months
    return ScenarioImpact(
        monthly_payment_diff=result.monthly_payment - baseline.monthly_payment,
        total_interest_diff=interest_diff,
        total_cost_diff=cost_diff,
        term_diff_months=term_diff,
        payoff_change=describe_month_delta(term_diff),
        risk_level=risk,
        outcome=outcome,
    )


def run_scenario(
    base: LoanDetails, baseline: CalculationResult, definition: ScenarioDefinition
) -> ScenarioResult:
    try:
        result = calculate(apply_scenario(base, definition))
    except ComputationError as e:
        logger.warning("Scenario %s (%s) failed: %s", definition.id, definition.name, e)
        return ScenarioResult(definition=definition, error=str(e))
    return ScenarioResult(
        definition=definition,
        result=result,
        impact=scenario_impact(baseline, result),
    )


def run_scenarios(
    base: LoanDetails, definitions: Sequence[ScenarioDefinition]
) -> tuple[CalculationResult, list[ScenarioResult]]:
    """Calculate the baseline, then every scenario independently."""
    validate(base).raise_if_invalid("Invalid base loan")
    baseline = calculate(base)
    results = [run_scenario(base, baseline, d) for d in definitions]
    failed = sum(1 for r in results if not r.succeeded)
    logger.info("Ran %d scenarios (%d failed)", len(results), failed)
    return baseline, results


def generate_rate_change_scenarios(base: LoanDetails) -> list[ScenarioResult]:
    """Standard rate moves applied to every rate period of ``base``."""
    return run_scenarios(base, rate_change_definitions())[1]


def generate_stress_test_scenarios(base: LoanDetails) -> list[ScenarioResult]:
    """Mild, moderate and severe rate shocks."""
    return run_scenarios(base, stress_test_definitions())[1]


def _highlight(sr: ScenarioResult) -> ScenarioHighlight:
    return ScenarioHighlight(
        scenario_id=sr.definition.id,
        name=sr.definition.name,
        total_interest_diff=sr.impact.total_interest_diff,
        total_cost_diff=sr.impact.total_cost_diff,
    )


def assess_risk(baseline: CalculationResult, succeeded: list[ScenarioResult]) -> RiskAssessment:
    if not succeeded:
        return RiskAssessment()

    high_share = Decimal(sum(1 for s in succeeded if s.impact.risk_level is RiskLevel.HIGH)) / len(succeeded)
    if high_share > Decimal("0.5"):
        overall = RiskLevel.HIGH
    elif high_share > Decimal("0.25"):
        overall = RiskLevel.MEDIUM
    else:
        overall = RiskLevel.LOW

    factors: list[str] = []
    if overall is RiskLevel.HIGH:
        factors.append("High sensitivity to interest rate changes")
    worst_payment_jump = max(s.impact.monthly_payment_diff for s in succeeded)
    if worst_payment_jump > baseline.monthly_payment * Decimal("0.2"):
        factors.append("Significant payment increase in adverse scenarios")
    return RiskAssessment(overall=overall, factors=tuple(factors))


def _recommendations(
    baseline: CalculationResult,
    succeeded: list[ScenarioResult],
    best: ScenarioResult,
    worst: ScenarioResult,
) -> list[str]:
    recs: list[str] = []
    if best.impact.total_cost_diff < 0:
        recs.append(f"Consider {best.definition.name} to save {abs(best.impact.total_cost_diff):,.2f}")
    if worst.impact.risk_level is RiskLevel.HIGH:
        recs.append(
            "Prepare for potential rate increases - worst case could cost an additional "
            f"{worst.impact.total_cost_diff:,.2f}"
        )
    rate_moves = [s for s in succeeded if s.definition.kind is ScenarioKind.RATE_CHANGE]
    if rate_moves:
        avg = sum((s.impact.total_cost_diff for s in rate_moves), Decimal("0")) / len(rate_moves)
        if avg > baseline.total_cost * Decimal("0.1"):
            recs.append("Consider a fixed-rate loan to protect against rate volatility")
    return recs


def what_if(base: LoanDetails, definitions: Sequence[ScenarioDefinition]) -> AnalysisResult:
    """Run custom scenarios and rank them against the base loan.

    Best and worst cases are picked by total interest; ties go to the
    earlier definition.

    Raises:
        ValidationError: invalid base loan or scenario definitions.
        LimitExceededError: more definitions than ``settings.max_scenarios``.
    """
    validate_scenarios(definitions).raise_if_invalid("Invalid scenario definitions")
    baseline, results = run_scenarios(base, definitions)

    succeeded = [r for r in results if r.succeeded]
    if not succeeded:
        return AnalysisResult(baseline=baseline, scenarios=tuple(results))

    best = min(succeeded, key=lambda s: s.result.total_interest)
    worst = max(succeeded, key=lambda s: s.result.total_interest)
    return AnalysisResult(
        baseline=baseline,
        scenarios=tuple(results),
        best_case=_highlight(best),
        worst_case=_highlight(worst),
        recommendations=tuple(_recommendations(baseline, succeeded, best, worst)),
        risk_assessment=assess_risk(baseline, succeeded),
    )
