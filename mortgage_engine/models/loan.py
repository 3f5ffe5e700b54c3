from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class OverpaymentFrequency(Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class OverpaymentEffect(Enum):
    REDUCE_TERM = "reduceTerm"  # Keep the payment, finish sooner
    REDUCE_PAYMENT = "reducePayment"  # Keep the term, pay less


class RepaymentModel(Enum):
    EQUAL_INSTALLMENTS = "equalInstallments"  # Annuity
    DECREASING_INSTALLMENTS = "decreasingInstallments"  # Constant principal portion


class FeeType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


# Months between firings for recurring plans
_FREQUENCY_STEP = {
    OverpaymentFrequency.MONTHLY: 1,
    OverpaymentFrequency.QUARTERLY: 3,
    OverpaymentFrequency.ANNUAL: 12,
}


@dataclass(frozen=True)
class InterestRatePeriod:
    start_month: int
    interest_rate: Decimal  # Annual, percent (e.g. Decimal("4.5"))


@dataclass(frozen=True)
class OverpaymentPlan:
    amount: Decimal
    start_month: int  # 1-indexed payment period
    end_month: int | None = None  # Inclusive; None = until loan end
    is_recurring: bool = False
    frequency: OverpaymentFrequency = OverpaymentFrequency.ONE_TIME
    effect: OverpaymentEffect = OverpaymentEffect.REDUCE_TERM

    def fires_at(self, period: int) -> bool:
        """Whether this plan pays extra principal in the given period."""
        if period < self.start_month:
            return False
        if self.end_month is not None and period > self.end_month:
            return False
        if not self.is_recurring or self.frequency is OverpaymentFrequency.ONE_TIME:
            return period == self.start_month
        return (period - self.start_month) % _FREQUENCY_STEP[self.frequency] == 0


@dataclass(frozen=True)
class AdditionalCosts:
    """Fees on top of principal and interest.

    Origination is charged once at loan start: a currency amount, or a
    percent of principal. Insurance and administrative fees are charged
    every period: a currency amount, or an annual percent of the remaining
    balance.
    """
    origination_fee: Decimal = Decimal("0")
    origination_fee_type: FeeType = FeeType.FIXED
    loan_insurance: Decimal = Decimal("0")
    loan_insurance_type: FeeType = FeeType.FIXED
    administrative_fees: Decimal = Decimal("0")
    administrative_fees_type: FeeType = FeeType.FIXED


@dataclass(frozen=True)
class LoanDetails:
    principal: Decimal
    interest_rate_periods: tuple[InterestRatePeriod, ...]
    loan_term: int  # Years
    start_date: date  # Date of the first payment
    overpayment_plans: tuple[OverpaymentPlan, ...] = ()
    additional_costs: AdditionalCosts | None = None
    repayment_model: RepaymentModel = RepaymentModel.EQUAL_INSTALLMENTS
    name: str = ""
    currency: str = "USD"  # Label only

    def __post_init__(self):
        # Snapshot caller sequences so later mutation of a list cannot leak in
        object.__setattr__(self, "interest_rate_periods", tuple(self.interest_rate_periods))
        object.__setattr__(self, "overpayment_plans", tuple(self.overpayment_plans))

    @property
    def total_months(self) -> int:
        return self.loan_term * 12

    @property
    def sorted_rate_periods(self) -> list[InterestRatePeriod]:
        return sorted(self.interest_rate_periods, key=lambda p: p.start_month)

    @property
    def initial_rate(self) -> Decimal:
        return self.rate_for_period(0)

    def rate_for_period(self, period: int) -> Decimal:
        """Annual rate of the period with the greatest start_month <= period."""
        rate = None
        for rp in self.sorted_rate_periods:
            if rp.start_month > period:
                break
            rate = rp.interest_rate
        if rate is None:
            raise ValueError(f"No interest rate period covers month {period}")
        return rate
