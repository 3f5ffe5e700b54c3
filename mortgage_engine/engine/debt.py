"""Amortization schedule computation.

Pure functions: Decimal in, dataclass out. No I/O.

The level payment is recomputed only when the active rate changes or a
reducePayment overpayment lowered the balance; otherwise it stays fixed and
overpayments shorten the schedule.

A rate change re-spreads the balance over the schedule's current end, so a
term already shortened by reduceTerm overpayments stays shortened. A
reducePayment overpayment restores the nominal end.
"""

import calendar
import logging
from datetime import date
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

from mortgage_engine.errors import ComputationError
from mortgage_engine.engine.fees import recurring_fees
from mortgage_engine.engine.validation import validate
from mortgage_engine.models.loan import (
    LoanDetails,
    OverpaymentEffect,
    OverpaymentPlan,
    RepaymentModel,
)
from mortgage_engine.models.results import AmortizationEntry

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ONE_CENT = Decimal("0.01")
ZERO = Decimal("0")
# Fractions of a period below this come from cent rounding of the payment
PERIOD_TOLERANCE = Decimal("0.01")


def add_months(dt: date, months: int) -> date:
    """Return the date ``months`` after ``dt``, clamping the day to month end."""
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def monthly_rate(annual_rate_pct: Decimal) -> Decimal:
    return annual_rate_pct / 100 / 12


def monthly_payment(balance: Decimal, annual_rate_pct: Decimal, periods: int) -> Decimal:
    """Fixed payment that amortizes ``balance`` over ``periods`` months."""
    if periods <= 0:
        raise ComputationError(f"Remaining term must be positive, got {periods} periods")
    if balance <= 0:
        return ZERO
    r = monthly_rate(annual_rate_pct)
    if r == 0:
        return (balance / periods).quantize(TWO_PLACES, ROUND_HALF_UP)

    # M = P * [r(1+r)^k] / [(1+r)^k - 1]
    factor = (1 + r) ** periods
    payment = balance * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def periods_to_repay(balance: Decimal, annual_rate_pct: Decimal, payment: Decimal) -> int:
    """Number of level payments of ``payment`` needed to clear ``balance``.

    n = ln(M / (M - rB)) / ln(1 + r), rounded up; B / M when r = 0.

    Raises:
        ComputationError: the payment never amortizes the balance.
    """
    if balance <= 0:
        return 0
    r = monthly_rate(annual_rate_pct)
    interest = balance * r
    if payment <= interest:
        raise ComputationError(f"Payment {payment} does not cover interest {interest:.2f}")
    if r == 0:
        n = balance / payment
    else:
        n = (payment / (payment - interest)).ln() / (1 + r).ln()
    return int(n.quantize(PERIOD_TOLERANCE).to_integral_value(rounding=ROUND_CEILING))


def _periods_left(model: RepaymentModel, balance: Decimal, annual_rate_pct: Decimal, installment: Decimal) -> int:
    if model is RepaymentModel.DECREASING_INSTALLMENTS:
        if installment <= 0:
            return 1
        return int((balance / installment).to_integral_value(rounding=ROUND_CEILING))
    return periods_to_repay(balance, annual_rate_pct, installment)


def _installment(model: RepaymentModel, balance: Decimal, annual_rate_pct: Decimal, periods: int) -> Decimal:
    """Level payment, or the constant principal portion for decreasing installments."""
    if model is RepaymentModel.DECREASING_INSTALLMENTS:
        if periods <= 0:
            raise ComputationError(f"Remaining term must be positive, got {periods} periods")
        return (balance / periods).quantize(TWO_PLACES, ROUND_HALF_UP)
    return monthly_payment(balance, annual_rate_pct, periods)


def initial_payment(loan: LoanDetails) -> Decimal:
    """First regular payment under the initial rate period."""
    rate = loan.initial_rate
    installment = _installment(loan.repayment_model, loan.principal, rate, loan.total_months)
    if loan.repayment_model is RepaymentModel.DECREASING_INSTALLMENTS:
        interest = (loan.principal * monthly_rate(rate)).quantize(TWO_PLACES, ROUND_HALF_UP)
        return installment + interest
    return installment


def _apply_overpayments(
    plans: tuple[OverpaymentPlan, ...], period: int, balance: Decimal
) -> tuple[Decimal, bool]:
    """Extra principal due this period, clamped to the balance.

    Returns (amount applied, whether the payment must be recomputed).
    """
    due = [plan for plan in plans if plan.fires_at(period)]
    if not due:
        return ZERO, False
    requested = sum((plan.amount for plan in due), ZERO)
    applied = min(requested, balance)
    reduce_payment = applied > 0 and any(
        plan.effect is OverpaymentEffect.REDUCE_PAYMENT for plan in due
    )
    return applied, reduce_payment


def amortize(loan: LoanDetails) -> list[AmortizationEntry]:
    """Generate the payment ledger for a loan.

    Args:
        loan: Loan definition; validated first, never modified.

    Raises:
        ValidationError: the loan breaks one or more input rules.
        ComputationError: the payment cannot cover the interest due.
    """
    validate(loan).raise_if_invalid("Invalid loan details")

    n_periods = loan.total_months
    model = loan.repayment_model
    balance = loan.principal
    installment = ZERO
    active_rate: Decimal | None = None
    recompute = True
    schedule_end = n_periods  # Last period of the schedule as it stands

    entries: list[AmortizationEntry] = []
    for period in range(1, n_periods + 1):
        rate = loan.rate_for_period(period)
        if recompute or rate != active_rate:
            remaining = schedule_end - period + 1
            installment = _installment(model, balance, rate, remaining)
            logger.debug(
                "Period %d: installment %s at %s%% over %d remaining periods",
                period, installment, rate, remaining,
            )
            active_rate = rate
            recompute = False

        interest = (balance * monthly_rate(rate)).quantize(TWO_PLACES, ROUND_HALF_UP)
        if model is RepaymentModel.DECREASING_INSTALLMENTS:
            principal_paid = installment
        else:
            principal_paid = installment - interest
        if principal_paid < 0:
            raise ComputationError(
                f"Payment {installment} does not cover interest {interest} in period {period}"
            )

        # Final payment adjustment: last scheduled period or payoff
        if principal_paid > balance or period == schedule_end:
            principal_paid = balance
        balance -= principal_paid

        overpayment, reduce_payment = _apply_overpayments(loan.overpayment_plans, period, balance)
        balance -= overpayment

        if balance < ONE_CENT:
            balance = ZERO

        if reduce_payment:
            recompute = True
            schedule_end = n_periods
        elif overpayment > 0 and balance > 0:
            schedule_end = min(period + _periods_left(model, balance, rate, installment), n_periods)
            logger.debug("Period %d: reduceTerm overpayment, schedule now ends at %d", period, schedule_end)

        entries.append(AmortizationEntry(
            period=period,
            date=add_months(loan.start_date, period - 1),
            payment_amount=interest + principal_paid,
            principal_portion=principal_paid,
            interest_portion=interest,
            overpayment_applied=overpayment,
            remaining_balance=balance,
            interest_rate=rate,
            fees=recurring_fees(balance, loan.additional_costs),
        ))

        if balance == 0:
            break

    return entries
