"""Overpayment optimization: which way of paying extra saves the most.

Each candidate strategy replaces the loan's own overpayment plans and is run
through the full calculation, then measured against the same loan with no
overpayments at all.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

from mortgage_engine.errors import ComputationError, ValidationError, Violation
from mortgage_engine.engine.calculator import calculate
from mortgage_engine.engine.validation import validate
from mortgage_engine.models.loan import (
    LoanDetails,
    OverpaymentFrequency,
    OverpaymentPlan,
)
from mortgage_engine.models.optimization import (
    ImpactPoint,
    LumpSumComparison,
    OptimizationGoal,
    OptimizationParameters,
    OptimizationResult,
    StrategyOutcome,
    YearlyInterestPoint,
)
from mortgage_engine.models.results import CalculationResult, OverpaymentSavings

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# (first month, last month, share of the monthly maximum)
GRADUATED_STAGES = (
    (1, 24, Decimal("0.5")),
    (25, 60, Decimal("0.75")),
    (61, None, Decimal("1")),
)


def _lump_sum(amount: Decimal) -> OverpaymentPlan:
    return OverpaymentPlan(amount=amount, start_month=1)


def _monthly(amount: Decimal, start: int = 1, end: int | None = None) -> OverpaymentPlan:
    return OverpaymentPlan(
        amount=amount,
        start_month=start,
        end_month=end,
        is_recurring=True,
        frequency=OverpaymentFrequency.MONTHLY,
    )


def candidate_strategies(params: OptimizationParameters) -> list[tuple[str, str, tuple[OverpaymentPlan, ...]]]:
    """(name, description, plans) for every strategy the limits allow. All reduce the term."""
    lump = params.max_one_time_overpayment
    monthly = params.max_monthly_overpayment
    strategies = []

    if lump > 0:
        strategies.append((
            "Lump Sum at Beginning",
            "Make a one-time lump sum payment at the beginning of the loan",
            (_lump_sum(lump),),
        ))
    if monthly > 0:
        strategies.append((
            "Regular Monthly Overpayments",
            "Make regular monthly overpayments throughout the loan term",
            (_monthly(monthly),),
        ))
    if lump > 0 and monthly > 0:
        strategies.append((
            "Combination Strategy",
            "Make a lump sum payment at the beginning and regular monthly overpayments",
            (_lump_sum(lump), _monthly(monthly)),
        ))
    if monthly > 0:
        strategies.append((
            "Graduated Overpayments",
            "Start with smaller overpayments and increase them over time",
            tuple(
                _monthly((monthly * share).quantize(TWO_PLACES, ROUND_HALF_UP), start, end)
                for start, end, share in GRADUATED_STAGES
            ),
        ))
    if lump > 0:
        strategies.append((
            "Quarterly Lump Sums",
            "Make quarterly lump sum payments",
            (OverpaymentPlan(
                amount=(lump / 4).quantize(TWO_PLACES, ROUND_HALF_UP),
                start_month=1,
                is_recurring=True,
                frequency=OverpaymentFrequency.QUARTERLY,
            ),),
        ))
    return strategies


def _savings(loan: LoanDetails, plans: tuple[OverpaymentPlan, ...]) -> tuple[CalculationResult, OverpaymentSavings]:
    result = calculate(replace(loan, overpayment_plans=plans))
    return result, result.time_or_payment_saved or OverpaymentSavings()


def _evaluate(loan: LoanDetails, name: str, description: str,
              plans: tuple[OverpaymentPlan, ...]) -> tuple[StrategyOutcome, CalculationResult | None]:
    try:
        result, saved = _savings(loan, plans)
    except ComputationError as e:
        logger.warning("Overpayment strategy %r failed: %s", name, e)
        return StrategyOutcome(name, description, plans, error=str(e)), None

    overpaid = sum((entry.overpayment_applied for entry in result.amortization_schedule), Decimal("0"))
    ratio = Decimal("0")
    if overpaid > 0:
        ratio = (saved.interest_saved / overpaid).quantize(FOUR_PLACES, ROUND_HALF_UP)
    return StrategyOutcome(
        name=name,
        description=description,
        overpayment_plans=plans,
        interest_saved=saved.interest_saved,
        months_saved=saved.months_saved,
        total_overpayment=overpaid,
        effectiveness_ratio=ratio,
    ), result


_GOAL_METRIC = {
    OptimizationGoal.MAXIMIZE_INTEREST_SAVINGS: lambda s: s.interest_saved,
    OptimizationGoal.MINIMIZE_TIME: lambda s: s.months_saved,
    OptimizationGoal.BALANCED: lambda s: s.effectiveness_ratio,
}


def _yearly_interest(baseline: CalculationResult, optimized: CalculationResult) -> list[YearlyInterestPoint]:
    """Cumulative interest per year for both ledgers; the shorter one holds its last value."""
    base = [y.total_interest for y in baseline.yearly_data]
    opt = [y.total_interest for y in optimized.yearly_data]
    points = []
    for i in range(max(len(base), len(opt))):
        points.append(YearlyInterestPoint(
            year=i + 1,
            baseline_total_interest=base[min(i, len(base) - 1)] if base else Decimal("0"),
            optimized_total_interest=opt[min(i, len(opt) - 1)] if opt else Decimal("0"),
        ))
    return points


def _check_amounts(**amounts: Decimal) -> None:
    violations = [
        Violation(name, "overpayment_amount_negative", f"{name.replace('_', ' ').capitalize()} cannot be negative")
        for name, value in amounts.items()
        if value < 0
    ]
    if violations:
        raise ValidationError(violations, "Invalid optimization parameters")


def optimize_overpayments(loan: LoanDetails, params: OptimizationParameters) -> OptimizationResult:
    """Evaluate every strategy the limits allow and pick the best for ``params.goal``.

    The loan's own overpayment plans are ignored. Ties go to the strategy
    listed first. With no positive limit there is nothing to optimize and
    the baseline is returned as the optimized result.

    Raises:
        ValidationError: invalid loan or negative limits.
    """
    _check_amounts(
        max_monthly_overpayment=params.max_monthly_overpayment,
        max_one_time_overpayment=params.max_one_time_overpayment,
    )
    validate(loan).raise_if_invalid("Invalid loan details")
    baseline = calculate(replace(loan, overpayment_plans=()))

    evaluated = [_evaluate(loan, *candidate) for candidate in candidate_strategies(params)]
    outcomes = [outcome for outcome, _ in evaluated]
    ok = [(i, outcome) for i, outcome in enumerate(outcomes) if outcome.succeeded]
    if not ok:
        return OptimizationResult(
            baseline=baseline,
            optimized=baseline,
            strategies=tuple(outcomes),
            yearly_interest=tuple(_yearly_interest(baseline, baseline)),
        )

    metric = _GOAL_METRIC[params.goal]
    best_index = min(ok, key=lambda io: (-metric(io[1]), io[0]))[0]
    best = outcomes[best_index]
    optimized = evaluated[best_index][1]
    logger.info(
        "Evaluated %d overpayment strategies; best for %s: %r saving %s",
        len(outcomes), params.goal.value, best.name, best.interest_saved,
    )
    return OptimizationResult(
        baseline=baseline,
        optimized=optimized,
        strategies=tuple(outcomes),
        best=best,
        interest_saved=best.interest_saved,
        months_saved=best.months_saved,
        yearly_interest=tuple(_yearly_interest(baseline, optimized)),
    )


def analyze_overpayment_impact(loan: LoanDetails, max_monthly_amount: Decimal, steps: int = 5) -> list[ImpactPoint]:
    """Savings from monthly overpayments at ``steps`` evenly spaced amounts up to the maximum."""
    if max_monthly_amount <= 0 or steps < 1:
        raise ValidationError([Violation(
            "max_monthly_amount" if max_monthly_amount <= 0 else "steps",
            "impact_range_empty",
            "Need a positive maximum amount and at least one step",
        )])
    validate(loan).raise_if_invalid("Invalid loan details")

    points = []
    for i in range(1, steps + 1):
        amount = (max_monthly_amount * i / steps).quantize(TWO_PLACES, ROUND_HALF_UP)
        _, saved = _savings(loan, (_monthly(amount),))
        points.append(ImpactPoint(amount=amount, interest_saved=saved.interest_saved,
                                  months_saved=saved.months_saved))
    return points


def compare_lump_sum_vs_regular(loan: LoanDetails, lump_sum: Decimal, monthly_amount: Decimal) -> LumpSumComparison:
    """One lump sum up front against a regular monthly overpayment."""
    if lump_sum <= 0 or monthly_amount <= 0:
        raise ValidationError([Violation(
            "lump_sum" if lump_sum <= 0 else "monthly_amount",
            "overpayment_amount_not_positive",
            "Overpayment amounts must be greater than zero",
        )])
    validate(loan).raise_if_invalid("Invalid loan details")

    _, lump_saved = _savings(loan, (_lump_sum(lump_sum),))
    _, monthly_saved = _savings(loan, (_monthly(monthly_amount),))
    return LumpSumComparison(
        lump_sum=lump_saved,
        monthly=monthly_saved,
        break_even_month=int((lump_sum / monthly_amount).to_integral_value(rounding=ROUND_CEILING)),
    )
