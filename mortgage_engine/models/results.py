from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class AmortizationEntry:
    period: int  # 1-indexed
    date: date
    payment_amount: Decimal  # Scheduled payment actually made (interest + principal portion)
    principal_portion: Decimal
    interest_portion: Decimal
    overpayment_applied: Decimal
    remaining_balance: Decimal
    interest_rate: Decimal = Decimal("0")  # Active annual rate, percent
    fees: Decimal = Decimal("0")  # Recurring fees charged this period

    @property
    def total_outlay(self) -> Decimal:
        return self.payment_amount + self.overpayment_applied + self.fees


@dataclass(frozen=True)
class YearlyData:
    year: int
    payment: Decimal = Decimal("0")
    principal: Decimal = Decimal("0")
    interest: Decimal = Decimal("0")
    overpayment: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")  # Balance at the end of the year
    total_interest: Decimal = Decimal("0")  # Cumulative through this year


@dataclass(frozen=True)
class LedgerSummary:
    yearly_data: tuple[YearlyData, ...] = ()
    total_interest: Decimal = Decimal("0")
    total_principal: Decimal = Decimal("0")
    total_overpayment: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")  # Recurring only
    total_payment: Decimal = Decimal("0")  # Payments + overpayments + recurring fees


@dataclass(frozen=True)
class OverpaymentSavings:
    """Effect of a loan's overpayment plans versus the same loan without them."""
    interest_saved: Decimal = Decimal("0")
    months_saved: int = 0
    payment_reduction: Decimal = Decimal("0")  # Regular payment drop at the end of the ledger


@dataclass(frozen=True)
class CalculationResult:
    principal: Decimal
    monthly_payment: Decimal  # Initial rate period
    total_interest: Decimal
    total_payment: Decimal  # Everything paid, one-time fees included
    amortization_schedule: tuple[AmortizationEntry, ...] = ()
    yearly_data: tuple[YearlyData, ...] = ()
    time_or_payment_saved: OverpaymentSavings | None = None

    original_term_months: int = 0
    actual_term_months: int = 0
    one_time_fees: Decimal = Decimal("0")
    recurring_fees: Decimal = Decimal("0")
    apr: Decimal = Decimal("0")  # Percent
    payoff_date: date | None = None

    @property
    def total_cost(self) -> Decimal:
        """Principal + interest + all fees."""
        return self.principal + self.total_interest + self.one_time_fees + self.recurring_fees

    @property
    def total_fees(self) -> Decimal:
        return self.one_time_fees + self.recurring_fees
