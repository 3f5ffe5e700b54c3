"""Loan fees: one-time origination and recurring insurance/administration.

Pure functions: Decimal in, Decimal out. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP

from mortgage_engine.models.loan import AdditionalCosts, FeeType

TWO_PLACES = Decimal("0.01")


def one_time_fees(principal: Decimal, costs: AdditionalCosts | None) -> Decimal:
    """Origination fee: fixed amount or percent of principal."""
    if costs is None:
        return Decimal("0")
    if costs.origination_fee_type is FeeType.FIXED:
        fee = costs.origination_fee
    else:
        fee = principal * costs.origination_fee / 100
    return fee.quantize(TWO_PLACES, ROUND_HALF_UP)


def recurring_fees(balance: Decimal, costs: AdditionalCosts | None) -> Decimal:
    """Insurance + administrative fees for one period.

    Percentage fees are annual rates on the remaining balance, charged monthly.
    """
    if costs is None:
        return Decimal("0")
    total = _periodic(costs.loan_insurance, costs.loan_insurance_type, balance)
    total += _periodic(costs.administrative_fees, costs.administrative_fees_type, balance)
    return total.quantize(TWO_PLACES, ROUND_HALF_UP)


def _periodic(amount: Decimal, fee_type: FeeType, balance: Decimal) -> Decimal:
    if fee_type is FeeType.FIXED:
        return amount
    return balance * amount / 100 / 12
