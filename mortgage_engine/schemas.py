"""Pydantic schemas for caller payloads and exported results.

Request models parse loosely-typed input (JSON, forms) into the engine's
frozen dataclasses. Response models read the engine's results by attribute.
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from mortgage_engine.models.loan import (
    AdditionalCosts,
    FeeType,
    InterestRatePeriod,
    LoanDetails,
    OverpaymentEffect,
    OverpaymentFrequency,
    OverpaymentPlan,
    RepaymentModel,
)
from mortgage_engine.models.scenario import (
    Outcome,
    RiskLevel,
    ScenarioDefinition,
    ScenarioKind,
    StressLevel,
)


# ---- Request schemas ----

class InterestRatePeriodRequest(BaseModel):
    start_month: int = 0
    interest_rate: Decimal = Field(..., description="Annual rate in percent, e.g. 4.5")


class OverpaymentPlanRequest(BaseModel):
    amount: Decimal
    start_month: int = 1
    end_month: int | None = None
    is_recurring: bool = False
    frequency: OverpaymentFrequency = OverpaymentFrequency.ONE_TIME
    effect: OverpaymentEffect = OverpaymentEffect.REDUCE_TERM


class AdditionalCostsRequest(BaseModel):
    origination_fee: Decimal = Decimal("0")
    origination_fee_type: FeeType = FeeType.FIXED
    loan_insurance: Decimal = Decimal("0")
    loan_insurance_type: FeeType = FeeType.FIXED
    administrative_fees: Decimal = Decimal("0")
    administrative_fees_type: FeeType = FeeType.FIXED


class LoanDetailsRequest(BaseModel):
    principal: Decimal
    interest_rate_periods: list[InterestRatePeriodRequest] = Field(..., min_length=1)
    loan_term: int = Field(..., description="Years")
    start_date: datetime.date
    overpayment_plans: list[OverpaymentPlanRequest] = []
    additional_costs: AdditionalCostsRequest | None = None
    repayment_model: RepaymentModel = RepaymentModel.EQUAL_INSTALLMENTS
    name: str = ""
    currency: str = "USD"

    def to_domain(self) -> LoanDetails:
        """Build the engine's LoanDetails. Business rules are checked by the engine."""
        return LoanDetails(
            principal=self.principal,
            interest_rate_periods=tuple(
                InterestRatePeriod(p.start_month, p.interest_rate)
                for p in self.interest_rate_periods
            ),
            loan_term=self.loan_term,
            start_date=self.start_date,
            overpayment_plans=tuple(
                OverpaymentPlan(**p.model_dump()) for p in self.overpayment_plans
            ),
            additional_costs=(
                AdditionalCosts(**self.additional_costs.model_dump())
                if self.additional_costs is not None else None
            ),
            repayment_model=self.repayment_model,
            name=self.name,
            currency=self.currency,
        )


class ScenarioDefinitionRequest(BaseModel):
    id: str
    name: str
    kind: ScenarioKind = ScenarioKind.WHAT_IF
    rate_change: Decimal | None = None
    stress_level: StressLevel | None = None
    extra_payment: Decimal | None = None
    term_change: int | None = None
    payment_change: Decimal | None = None

    def to_domain(self) -> ScenarioDefinition:
        return ScenarioDefinition(**self.model_dump())


class ComparisonRequest(BaseModel):
    loans: list[LoanDetailsRequest]
    labels: list[str] | None = None


# ---- Response schemas ----

class AmortizationEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: int
    date: datetime.date
    payment_amount: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    overpayment_applied: Decimal
    remaining_balance: Decimal
    interest_rate: Decimal
    fees: Decimal


class YearlyDataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    year: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    overpayment: Decimal
    fees: Decimal
    balance: Decimal
    total_interest: Decimal


class OverpaymentSavingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    interest_saved: Decimal
    months_saved: int
    payment_reduction: Decimal


class CalculationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    principal: Decimal
    monthly_payment: Decimal
    total_interest: Decimal
    total_payment: Decimal
    total_cost: Decimal
    one_time_fees: Decimal
    recurring_fees: Decimal
    apr: Decimal
    original_term_months: int
    actual_term_months: int
    payoff_date: datetime.date | None = None
    time_or_payment_saved: OverpaymentSavingsResponse | None = None
    yearly_data: list[YearlyDataResponse] = []
    amortization_schedule: list[AmortizationEntryResponse] = []


class ScenarioImpactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    monthly_payment_diff: Decimal
    total_interest_diff: Decimal
    total_cost_diff: Decimal
    term_diff_months: int
    payoff_change: str
    risk_level: RiskLevel
    outcome: Outcome


class ScenarioResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    kind: ScenarioKind
    result: CalculationResponse | None = None
    impact: ScenarioImpactResponse | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, scenario) -> "ScenarioResultResponse":
        return cls(
            id=scenario.definition.id,
            name=scenario.definition.name,
            kind=scenario.definition.kind,
            result=(
                CalculationResponse.model_validate(scenario.result)
                if scenario.result is not None else None
            ),
            impact=(
                ScenarioImpactResponse.model_validate(scenario.impact)
                if scenario.impact is not None else None
            ),
            error=scenario.error,
        )


class ComparedLoanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    result: CalculationResponse | None = None
    error: str | None = None
    rank: int | None = None
    savings_vs_worst: Decimal | None = None


class ComparisonSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    best_by_monthly_payment: int | None = None
    best_by_total_interest: int | None = None
    best_by_total_cost: int | None = None
    worst_by_total_cost: int | None = None
    total_savings: Decimal
    average_rate: Decimal
    break_even_period: int | None = None


class ComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    loans: list[ComparedLoanResponse]
    summary: ComparisonSummaryResponse
