"""Single-loan orchestrator: validation, amortization, aggregation, fees, APR.

Pure computation. No I/O. LoanDetails in, CalculationResult out.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP

from mortgage_engine.engine.aggregation import aggregate
from mortgage_engine.engine.apr import compute_apr
from mortgage_engine.engine.debt import amortize, initial_payment
from mortgage_engine.engine.fees import one_time_fees
from mortgage_engine.models.loan import LoanDetails
from mortgage_engine.models.results import (
    AmortizationEntry,
    CalculationResult,
    OverpaymentSavings,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def calculate(loan: LoanDetails) -> CalculationResult:
    """Run the full calculation for one loan.

    Returns a fresh CalculationResult; the loan is never modified.
    """
    entries = amortize(loan)
    ledger = aggregate(entries)
    upfront = one_time_fees(loan.principal, loan.additional_costs)

    savings = None
    if loan.overpayment_plans:
        savings = overpayment_savings(loan, entries)

    apr = compute_apr(loan.principal, upfront, [e.total_outlay for e in entries])

    result = CalculationResult(
        principal=loan.principal,
        monthly_payment=initial_payment(loan),
        total_interest=ledger.total_interest,
        total_payment=ledger.total_payment + upfront,
        amortization_schedule=tuple(entries),
        yearly_data=ledger.yearly_data,
        time_or_payment_saved=savings,
        original_term_months=loan.total_months,
        actual_term_months=len(entries),
        one_time_fees=upfront,
        recurring_fees=ledger.total_fees,
        apr=apr,
        payoff_date=entries[-1].date if entries else None,
    )
    logger.debug(
        "Calculated %s: payment %s, interest %s over %d/%d periods",
        loan.name or "loan", result.monthly_payment, result.total_interest,
        result.actual_term_months, result.original_term_months,
    )
    return result


def overpayment_savings(loan: LoanDetails, entries: list[AmortizationEntry]) -> OverpaymentSavings:
    """Compare a ledger with the same loan minus its overpayment plans."""
    baseline = amortize(replace(loan, overpayment_plans=()))
    baseline_interest = sum((e.interest_portion for e in baseline), Decimal("0"))
    interest = sum((e.interest_portion for e in entries), Decimal("0"))

    # Last regular (non-terminal) payment vs the baseline at the same period
    idx = max(len(entries) - 2, 0)
    payment_reduction = Decimal("0")
    if entries and idx < len(baseline):
        payment_reduction = max(
            baseline[idx].payment_amount - entries[idx].payment_amount, Decimal("0")
        )

    return OverpaymentSavings(
        interest_saved=(baseline_interest - interest).quantize(TWO_PLACES, ROUND_HALF_UP),
        months_saved=max(len(baseline) - len(entries), 0),
        payment_reduction=payment_reduction,
    )
