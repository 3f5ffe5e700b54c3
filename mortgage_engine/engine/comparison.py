"""Side-by-side comparison of independent loan offers.

Each loan runs through the full calculation on its own. A loan that fails
to compute is reported on its ComparedLoan; the rest are still ranked.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from mortgage_engine.config import settings
from mortgage_engine.errors import ComputationError, LimitExceededError, ValidationError, Violation
from mortgage_engine.engine.calculator import calculate
from mortgage_engine.engine.validation import validate
from mortgage_engine.models.comparison import ComparedLoan, ComparisonResult, ComparisonSummary
from mortgage_engine.models.loan import LoanDetails
from mortgage_engine.models.results import CalculationResult

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _validate_all(loans: Sequence[LoanDetails], min_loans: int, max_loans: int) -> None:
    if len(loans) > max_loans:
        raise LimitExceededError("loans", max_loans, len(loans))

    violations: list[Violation] = []
    if len(loans) < min_loans:
        violations.append(Violation("loans", "too_few_loans",
                                    f"At least {min_loans} loans are required for a comparison"))
    for i, loan in enumerate(loans):
        for v in validate(loan).violations:
            violations.append(replace(v, field=f"loans[{i}].{v.field}"))
    if violations:
        raise ValidationError(violations, "Invalid comparison input")


def _argmin(values: list[tuple[int, Decimal]]) -> int | None:
    # First occurrence wins ties
    if not values:
        return None
    return min(values, key=lambda iv: (iv[1], iv[0]))[0]


def _argmax(values: list[tuple[int, Decimal]]) -> int | None:
    if not values:
        return None
    return min(values, key=lambda iv: (-iv[1], iv[0]))[0]


def break_even_period(first: CalculationResult, second: CalculationResult) -> int | None:
    """First period where the initially dearer loan has paid no more in total.

    Cumulative outlay includes one-time fees and every payment, overpayment
    and recurring fee. A finished schedule adds nothing in later periods.
    Returns None when both start level or the lines never cross.
    """
    a_flows = [e.total_outlay for e in first.amortization_schedule]
    b_flows = [e.total_outlay for e in second.amortization_schedule]
    if not a_flows or not b_flows:
        return None

    cum_a = first.one_time_fees + a_flows[0]
    cum_b = second.one_time_fees + b_flows[0]
    if cum_a == cum_b:
        return None
    a_dearer = cum_a > cum_b

    for period in range(2, max(len(a_flows), len(b_flows)) + 1):
        if period <= len(a_flows):
            cum_a += a_flows[period - 1]
        if period <= len(b_flows):
            cum_b += b_flows[period - 1]
        if (cum_a <= cum_b) if a_dearer else (cum_b <= cum_a):
            return period
    return None


def compare(
    loans: Sequence[LoanDetails],
    labels: Sequence[str] | None = None,
    max_loans: int | None = None,
) -> ComparisonResult:
    """Calculate and rank 2 to ``max_loans`` loans.

    Args:
        loans: Loan offers, compared in input order.
        labels: Display names; default to each loan's name or "Loan N".
        max_loans: Override for ``settings.max_comparison_loans``.

    Raises:
        LimitExceededError: more loans than allowed.
        ValidationError: too few loans, or any loan is invalid (all
            violations are reported, prefixed with the loan position).
    """
    limit = max_loans if max_loans is not None else settings.max_comparison_loans
    _validate_all(loans, settings.min_comparison_loans, limit)

    if labels is None:
        labels = [loan.name or f"Loan {i + 1}" for i, loan in enumerate(loans)]
    elif len(labels) != len(loans):
        raise ValidationError([Violation("labels", "label_count_mismatch",
                                         f"Expected {len(loans)} labels, got {len(labels)}")])

    compared: list[ComparedLoan] = []
    for label, loan in zip(labels, loans):
        try:
            compared.append(ComparedLoan(label=label, loan=loan, result=calculate(loan)))
        except ComputationError as e:
            logger.warning("Comparison loan %r failed: %s", label, e)
            compared.append(ComparedLoan(label=label, loan=loan, error=str(e)))

    ok = [(i, c.result) for i, c in enumerate(compared) if c.result is not None]
    costs = [(i, r.total_cost) for i, r in ok]

    best_cost = _argmin(costs)
    worst_cost = _argmax(costs)
    total_savings = Decimal("0")
    if best_cost is not None:
        total_savings = compared[worst_cost].result.total_cost - compared[best_cost].result.total_cost

    # Rank by total cost, 1 = cheapest
    ranking = sorted(costs, key=lambda iv: (iv[1], iv[0]))
    ranks = {i: pos + 1 for pos, (i, _) in enumerate(ranking)}
    worst_total = compared[worst_cost].result.total_cost if worst_cost is not None else None
    compared = [
        replace(c, rank=ranks[i], savings_vs_worst=worst_total - c.result.total_cost)
        if i in ranks else c
        for i, c in enumerate(compared)
    ]

    average_rate = Decimal("0")
    if ok:
        average_rate = (
            sum((loans[i].initial_rate for i, _ in ok), Decimal("0")) / len(ok)
        ).quantize(TWO_PLACES, ROUND_HALF_UP)

    summary = ComparisonSummary(
        best_by_monthly_payment=_argmin([(i, r.monthly_payment) for i, r in ok]),
        best_by_total_interest=_argmin([(i, r.total_interest) for i, r in ok]),
        best_by_total_cost=best_cost,
        worst_by_total_cost=worst_cost,
        total_savings=total_savings,
        average_rate=average_rate,
        break_even_period=break_even_period(ok[0][1], ok[1][1]) if len(ok) >= 2 else None,
    )
    logger.info(
        "Compared %d loans (%d failed); best by total cost: %s, savings %s",
        len(compared), len(compared) - len(ok),
        compared[best_cost].label if best_cost is not None else None, total_savings,
    )
    return ComparisonResult(loans=tuple(compared), summary=summary)
