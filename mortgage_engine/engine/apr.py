"""Annual percentage rate from a payment ledger, using scipy.

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from scipy.optimize import brentq

TWO_PLACES = Decimal("0.01")


def compute_apr(
    principal: Decimal,
    one_time_fees: Decimal,
    cash_flows: Sequence[Decimal],
) -> Decimal:
    """Nominal annual rate (percent) equating the cash flows with net proceeds.

    cash_flows[t] is everything the borrower pays in month t + 1 (payment,
    overpayment and recurring fees). The borrower effectively receives
    principal minus one-time fees.

    Uses Brent's method on the monthly NPV function.
    """
    net_proceeds = float(principal - one_time_fees)
    cf_float = [float(cf) for cf in cash_flows]
    if not cf_float or net_proceeds <= 0 or sum(cf_float) <= net_proceeds:
        return Decimal("0")

    def npv(rate: float) -> float:
        return sum(cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cf_float)) - net_proceeds

    # Search monthly rates between 0% and 100%
    try:
        monthly = brentq(npv, 0.0, 1.0, xtol=1e-12, maxiter=1000)
    except ValueError:
        # No sign change in range
        return Decimal("0")
    return (Decimal(str(monthly)) * 12 * 100).quantize(TWO_PLACES, ROUND_HALF_UP)
