"""Canonical loan fixtures used across all engine tests.

Fixture: $250K, 4.5% fixed, 30yr, first payment Jan 2025.
"""

import pytest
from datetime import date
from decimal import Decimal

from mortgage_engine.models.loan import InterestRatePeriod, LoanDetails


def make_loan(
    principal="250000",
    rate="4.5",
    term=30,
    start=date(2025, 1, 1),
    **kwargs,
) -> LoanDetails:
    """Single-rate loan; extra keyword arguments go straight to LoanDetails."""
    kwargs.setdefault("interest_rate_periods", (InterestRatePeriod(0, Decimal(rate)),))
    return LoanDetails(
        principal=Decimal(principal),
        loan_term=term,
        start_date=start,
        **kwargs,
    )


@pytest.fixture
def canonical_loan() -> LoanDetails:
    """$250K at 4.5% for 30 years, no overpayments or fees."""
    return make_loan()


@pytest.fixture
def fifteen_year_loan() -> LoanDetails:
    """$200K at 3.5% for 15 years."""
    return make_loan(principal="200000", rate="3.5", term=15)


@pytest.fixture
def zero_rate_loan() -> LoanDetails:
    """$120K interest-free over 10 years."""
    return make_loan(principal="120000", rate="0", term=10)


@pytest.fixture
def ten_year_loan() -> LoanDetails:
    """$100K at 6% for 10 years; short enough for overpayment tests."""
    return make_loan(principal="100000", rate="6", term=10)
