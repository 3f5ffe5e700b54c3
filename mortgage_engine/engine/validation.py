"""Input validation for loans and scenario sets.

Pure functions: every check runs and every violation is reported, so a
caller can show all problems at once. Nothing here raises unless asked to.
"""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from mortgage_engine.config import settings
from mortgage_engine.errors import LimitExceededError, ValidationError, Violation
from mortgage_engine.models.loan import LoanDetails
from mortgage_engine.models.scenario import ScenarioDefinition, ScenarioKind

# (min, max) accepted per what-if parameter
RATE_CHANGE_BOUNDS = (Decimal("-10"), Decimal("10"))
PAYMENT_CHANGE_BOUNDS = (Decimal("-50"), Decimal("200"))
EXTRA_PAYMENT_BOUNDS = (Decimal("0"), Decimal("100000"))
TERM_CHANGE_BOUNDS = (-20, 20)


@dataclass(frozen=True)
class ValidationOutcome:
    violations: tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def codes(self) -> list[str]:
        return [v.code for v in self.violations]

    def raise_if_invalid(self, message: str | None = None) -> None:
        if self.violations:
            raise ValidationError(self.violations, message)


def validate(loan: LoanDetails) -> ValidationOutcome:
    """Check a loan definition before it reaches the amortization engine."""
    violations: list[Violation] = []

    if loan.principal <= 0:
        violations.append(Violation("principal", "principal_not_positive",
                                    "Principal amount must be greater than zero"))

    violations.extend(_rate_period_violations(loan))

    if loan.loan_term <= 0:
        violations.append(Violation("loan_term", "loan_term_not_positive",
                                    "Loan term must be greater than zero"))
    elif loan.loan_term > settings.max_loan_term_years:
        violations.append(Violation(
            "loan_term", "loan_term_above_maximum",
            f"Loan term exceeds maximum allowed ({settings.max_loan_term_years} years)",
        ))

    for i, plan in enumerate(loan.overpayment_plans):
        prefix = f"overpayment_plans[{i}]"
        if plan.amount <= 0:
            violations.append(Violation(f"{prefix}.amount", "overpayment_amount_not_positive",
                                        "Overpayment amount must be greater than zero"))
        if plan.start_month < 1:
            violations.append(Violation(f"{prefix}.start_month", "overpayment_start_before_first_period",
                                        "Overpayment must start at payment 1 or later"))
        if plan.end_month is not None and plan.end_month <= plan.start_month:
            violations.append(Violation(f"{prefix}.end_month", "overpayment_end_not_after_start",
                                        "Overpayment end month must be after its start month"))

    if loan.additional_costs is not None:
        costs = loan.additional_costs
        for name in ("origination_fee", "loan_insurance", "administrative_fees"):
            if getattr(costs, name) < 0:
                violations.append(Violation(f"additional_costs.{name}", "negative_fee",
                                            "Fees cannot be negative"))

    return ValidationOutcome(tuple(violations))


def _rate_period_violations(loan: LoanDetails) -> list[Violation]:
    periods = loan.interest_rate_periods
    if not periods:
        return [Violation("interest_rate_periods", "no_rate_periods",
                          "At least one interest rate period is required")]

    violations: list[Violation] = []
    if min(p.start_month for p in periods) != 0:
        violations.append(Violation("interest_rate_periods", "first_rate_period_not_at_zero",
                                    "The first interest rate period must start at month 0"))

    counts = Counter(p.start_month for p in periods)
    for start_month, n in sorted(counts.items()):
        if n > 1:
            violations.append(Violation(
                "interest_rate_periods", "duplicate_rate_period_start",
                f"{n} interest rate periods start at month {start_month}",
            ))

    for i, period in enumerate(periods):
        prefix = f"interest_rate_periods[{i}]"
        if period.start_month < 0:
            violations.append(Violation(f"{prefix}.start_month", "rate_period_start_negative",
                                        "Interest rate period cannot start before month 0"))
        if period.interest_rate < 0:
            violations.append(Violation(f"{prefix}.interest_rate", "negative_interest_rate",
                                        "Interest rate cannot be negative"))
        elif period.interest_rate > settings.max_interest_rate:
            violations.append(Violation(
                f"{prefix}.interest_rate", "interest_rate_above_maximum",
                f"Interest rate exceeds maximum allowed ({settings.max_interest_rate}%)",
            ))
    return violations


def validate_scenarios(
    definitions: Sequence[ScenarioDefinition],
    max_scenarios: int | None = None,
) -> ValidationOutcome:
    """Check a set of custom scenario definitions.

    Raises LimitExceededError for oversize sets; everything else is reported
    as violations.
    """
    limit = max_scenarios if max_scenarios is not None else settings.max_scenarios
    if len(definitions) > limit:
        raise LimitExceededError("scenarios", limit, len(definitions))
    if not definitions:
        return ValidationOutcome((Violation("scenarios", "no_scenarios",
                                            "At least one scenario is required"),))

    violations: list[Violation] = []
    for i, d in enumerate(definitions):
        prefix = f"scenarios[{i}]"
        if not d.name or not d.name.strip():
            violations.append(Violation(f"{prefix}.name", "scenario_name_missing",
                                        f"Scenario {i + 1} must have a name"))
        if d.kind is ScenarioKind.RATE_CHANGE and d.rate_change is None:
            violations.append(Violation(f"{prefix}.rate_change", "rate_change_missing",
                                        "Rate-change scenarios need a rate change"))
        if d.kind is ScenarioKind.STRESS_TEST and d.stress_level is None:
            violations.append(Violation(f"{prefix}.stress_level", "stress_level_missing",
                                        "Stress-test scenarios need a stress level"))

        checks = (
            ("rate_change", d.rate_change, RATE_CHANGE_BOUNDS, "%"),
            ("payment_change", d.payment_change, PAYMENT_CHANGE_BOUNDS, "%"),
            ("extra_payment", d.extra_payment, EXTRA_PAYMENT_BOUNDS, ""),
            ("term_change", d.term_change, TERM_CHANGE_BOUNDS, " years"),
        )
        for name, value, (low, high), unit in checks:
            if value is not None and not low <= value <= high:
                violations.append(Violation(
                    f"{prefix}.{name}", f"{name}_out_of_range",
                    f"{name.replace('_', ' ').capitalize()} must be between {low}{unit} and {high}{unit}",
                ))

    return ValidationOutcome(tuple(violations))
