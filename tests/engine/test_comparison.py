from decimal import Decimal
from unittest.mock import patch

import pytest

from mortgage_engine.engine.calculator import calculate
from mortgage_engine.engine.comparison import break_even_period, compare
from mortgage_engine.errors import ComputationError, LimitExceededError, ValidationError
from tests.conftest import make_loan


@pytest.fixture
def two_rates():
    return [
        make_loan(principal="200000", rate="3.5", term=15, name="Credit union"),
        make_loan(principal="200000", rate="4.5", term=15, name="Big bank"),
    ]


class TestCompare:
    def test_lower_rate_wins_total_interest(self, two_rates):
        result = compare(two_rates)
        assert result.summary.best_by_total_interest == 0
        assert result.summary.best_by_monthly_payment == 0
        assert result.summary.best_by_total_cost == 0
        assert result.summary.worst_by_total_cost == 1
        assert result.best("total_interest").label == "Credit union"

    def test_total_savings(self, two_rates):
        result = compare(two_rates)
        cheap, dear = (c.result for c in result.loans)
        assert result.summary.total_savings == dear.total_cost - cheap.total_cost > 0

    def test_ranks_and_savings_vs_worst(self, two_rates):
        result = compare(two_rates)
        assert [c.rank for c in result.loans] == [1, 2]
        assert result.loans[0].savings_vs_worst == result.summary.total_savings
        assert result.loans[1].savings_vs_worst == Decimal("0")

    def test_average_rate(self, two_rates):
        assert compare(two_rates).summary.average_rate == Decimal("4.00")

    def test_ties_go_to_first(self):
        loans = [make_loan(), make_loan()]
        summary = compare(loans).summary
        assert summary.best_by_total_cost == 0
        assert summary.best_by_monthly_payment == 0
        assert summary.total_savings == Decimal("0")

    def test_default_labels(self):
        result = compare([make_loan(), make_loan(rate="5")])
        assert [c.label for c in result.loans] == ["Loan 1", "Loan 2"]

    def test_explicit_labels(self, two_rates):
        result = compare(two_rates, labels=["A", "B"])
        assert [c.label for c in result.loans] == ["A", "B"]

    def test_label_count_mismatch(self, two_rates):
        with pytest.raises(ValidationError):
            compare(two_rates, labels=["A"])


class TestLimits:
    def test_more_than_five(self):
        with pytest.raises(LimitExceededError) as exc:
            compare([make_loan()] * 6)
        assert exc.value.limit == 5

    def test_max_override(self):
        result = compare([make_loan(term=5)] * 6, max_loans=6)
        assert len(result.loans) == 6

    def test_fewer_than_two(self):
        with pytest.raises(ValidationError) as exc:
            compare([make_loan()])
        assert exc.value.codes == ["too_few_loans"]

    def test_invalid_loan_prefixed(self):
        with pytest.raises(ValidationError) as exc:
            compare([make_loan(), make_loan(principal="0")])
        assert exc.value.violations[0].field == "loans[1].principal"


class TestPartialFailure:
    def test_failed_loan_reported_others_ranked(self):
        def flaky(loan):
            if loan.name == "bad":
                raise ComputationError("boom")
            return calculate(loan)

        loans = [make_loan(rate="5"), make_loan(name="bad"), make_loan(rate="4")]
        with patch("mortgage_engine.engine.comparison.calculate", side_effect=flaky):
            result = compare(loans)

        assert result.loans[1].error == "boom"
        assert result.loans[1].result is None
        assert result.loans[1].rank is None
        assert result.summary.best_by_total_cost == 2
        assert result.summary.worst_by_total_cost == 0
        assert [c.rank for c in result.loans] == [2, None, 1]


class TestBreakEven:
    def test_shorter_term_breaks_even(self):
        short = calculate(make_loan(principal="200000", rate="3.5", term=15))
        long = calculate(make_loan(principal="200000", rate="3.5", term=30))
        period = break_even_period(short, long)
        assert 180 < period <= 360

    def test_never_crosses(self, two_rates):
        cheap, dear = (calculate(loan) for loan in two_rates)
        assert break_even_period(cheap, dear) is None

    def test_identical(self, canonical_loan):
        result = calculate(canonical_loan)
        assert break_even_period(result, result) is None

    def test_in_summary(self, two_rates):
        assert compare(two_rates).summary.break_even_period is None
