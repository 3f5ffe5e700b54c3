"""Roll a payment ledger up into yearly buckets and totals.

Pure functions. No I/O.
"""

from decimal import Decimal
from typing import Sequence

from mortgage_engine.models.results import AmortizationEntry, LedgerSummary, YearlyData

PERIODS_PER_YEAR = 12


def yearly_summary(entries: Sequence[AmortizationEntry]) -> list[YearlyData]:
    """Group consecutive 12-period buckets; the last bucket may be shorter."""
    yearly: list[YearlyData] = []
    cumulative_interest = Decimal("0")

    for start in range(0, len(entries), PERIODS_PER_YEAR):
        bucket = entries[start:start + PERIODS_PER_YEAR]
        year_interest = sum((e.interest_portion for e in bucket), Decimal("0"))
        cumulative_interest += year_interest
        yearly.append(YearlyData(
            year=start // PERIODS_PER_YEAR + 1,
            payment=sum((e.payment_amount for e in bucket), Decimal("0")),
            principal=sum((e.principal_portion for e in bucket), Decimal("0")),
            interest=year_interest,
            overpayment=sum((e.overpayment_applied for e in bucket), Decimal("0")),
            fees=sum((e.fees for e in bucket), Decimal("0")),
            balance=bucket[-1].remaining_balance,
            total_interest=cumulative_interest,
        ))

    return yearly


def aggregate(entries: Sequence[AmortizationEntry]) -> LedgerSummary:
    """Yearly buckets plus ledger-wide totals. Empty input gives zeros."""
    yearly = yearly_summary(entries)
    total_interest = sum((y.interest for y in yearly), Decimal("0"))
    total_principal = sum((y.principal for y in yearly), Decimal("0"))
    total_overpayment = sum((y.overpayment for y in yearly), Decimal("0"))
    total_fees = sum((y.fees for y in yearly), Decimal("0"))
    total_payment = sum((y.payment for y in yearly), Decimal("0")) + total_overpayment + total_fees

    return LedgerSummary(
        yearly_data=tuple(yearly),
        total_interest=total_interest,
        total_principal=total_principal,
        total_overpayment=total_overpayment,
        total_fees=total_fees,
        total_payment=total_payment,
    )
