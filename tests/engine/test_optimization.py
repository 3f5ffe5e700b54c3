from decimal import Decimal, ROUND_HALF_UP
from unittest.mock import patch

import pytest

from mortgage_engine.engine.calculator import calculate
from mortgage_engine.engine.optimization import (
    analyze_overpayment_impact,
    candidate_strategies,
    compare_lump_sum_vs_regular,
    optimize_overpayments,
)
from mortgage_engine.errors import ComputationError, ValidationError
from mortgage_engine.models.loan import OverpaymentFrequency, OverpaymentPlan
from mortgage_engine.models.optimization import OptimizationGoal, OptimizationParameters
from tests.conftest import make_loan


def _params(monthly="0", lump="0", goal=OptimizationGoal.BALANCED) -> OptimizationParameters:
    return OptimizationParameters(
        max_monthly_overpayment=Decimal(monthly),
        max_one_time_overpayment=Decimal(lump),
        goal=goal,
    )


class TestCandidateStrategies:
    def test_lump_sum_only(self):
        names = [name for name, _, _ in candidate_strategies(_params(lump="10000"))]
        assert names == ["Lump Sum at Beginning", "Quarterly Lump Sums"]

    def test_monthly_only(self):
        names = [name for name, _, _ in candidate_strategies(_params(monthly="200"))]
        assert names == ["Regular Monthly Overpayments", "Graduated Overpayments"]

    def test_both_limits(self):
        names = [name for name, _, _ in candidate_strategies(_params(monthly="200", lump="10000"))]
        assert names == [
            "Lump Sum at Beginning",
            "Regular Monthly Overpayments",
            "Combination Strategy",
            "Graduated Overpayments",
            "Quarterly Lump Sums",
        ]

    def test_graduated_stages(self):
        strategies = dict((name, plans) for name, _, plans in candidate_strategies(_params(monthly="200")))
        plans = strategies["Graduated Overpayments"]
        assert [p.amount for p in plans] == [Decimal("100.00"), Decimal("150.00"), Decimal("200.00")]
        assert [(p.start_month, p.end_month) for p in plans] == [(1, 24), (25, 60), (61, None)]

    def test_quarterly_splits_lump_sum(self):
        strategies = dict((name, plans) for name, _, plans in candidate_strategies(_params(lump="10000")))
        (plan,) = strategies["Quarterly Lump Sums"]
        assert plan.amount == Decimal("2500.00")
        assert plan.is_recurring
        assert plan.frequency is OverpaymentFrequency.QUARTERLY

    def test_no_limits(self):
        assert candidate_strategies(_params()) == []


class TestOptimizeOverpayments:
    def test_best_for_interest_savings(self, ten_year_loan):
        result = optimize_overpayments(
            ten_year_loan,
            _params(monthly="200", lump="10000", goal=OptimizationGoal.MAXIMIZE_INTEREST_SAVINGS),
        )
        assert len(result.strategies) == 5
        assert result.best.interest_saved == max(s.interest_saved for s in result.strategies)
        assert result.interest_saved == result.best.interest_saved > 0
        assert result.optimized.total_interest < result.baseline.total_interest

    def test_combination_beats_its_parts(self, ten_year_loan):
        result = optimize_overpayments(ten_year_loan, _params(monthly="200", lump="10000"))
        by_name = {s.name: s for s in result.strategies}
        combined = by_name["Combination Strategy"].interest_saved
        assert combined > by_name["Lump Sum at Beginning"].interest_saved
        assert combined > by_name["Regular Monthly Overpayments"].interest_saved

    def test_best_for_time(self, ten_year_loan):
        result = optimize_overpayments(
            ten_year_loan, _params(monthly="200", lump="10000", goal=OptimizationGoal.MINIMIZE_TIME),
        )
        assert result.months_saved == max(s.months_saved for s in result.strategies)
        assert result.optimized.actual_term_months == 120 - result.months_saved

    def test_balanced_uses_effectiveness_ratio(self, ten_year_loan):
        result = optimize_overpayments(ten_year_loan, _params(monthly="200", lump="10000"))
        assert result.best.effectiveness_ratio == max(s.effectiveness_ratio for s in result.strategies)
        assert result.best.effectiveness_ratio > 0
        for s in result.strategies:
            assert s.total_overpayment > 0

    def test_lump_sum_ratio(self, ten_year_loan):
        result = optimize_overpayments(ten_year_loan, _params(lump="10000"))
        lump = result.strategies[0]
        assert lump.total_overpayment == Decimal("10000")
        assert lump.effectiveness_ratio == (lump.interest_saved / 10000).quantize(Decimal("0.0001"), ROUND_HALF_UP)

    def test_no_limits_returns_baseline(self, ten_year_loan):
        result = optimize_overpayments(ten_year_loan, _params())
        assert result.best is None
        assert result.strategies == ()
        assert result.optimized == result.baseline
        assert result.interest_saved == Decimal("0")

    def test_loan_plans_ignored(self, ten_year_loan):
        loan = make_loan(principal="100000", rate="6", term=10, overpayment_plans=(
            OverpaymentPlan(amount=Decimal("5000"), start_month=1),
        ))
        result = optimize_overpayments(loan, _params(monthly="200"))
        assert result.baseline == calculate(ten_year_loan)

    def test_yearly_interest_series(self, ten_year_loan):
        result = optimize_overpayments(ten_year_loan, _params(monthly="200", lump="10000"))
        points = result.yearly_interest
        assert [p.year for p in points] == list(range(1, 11))
        assert points[-1].baseline_total_interest == result.baseline.total_interest
        # Optimized ledger ends early and holds its last value
        assert points[-1].optimized_total_interest == result.optimized.total_interest
        assert all(p.optimized_total_interest <= p.baseline_total_interest for p in points)

    def test_negative_limit(self, ten_year_loan):
        with pytest.raises(ValidationError) as exc:
            optimize_overpayments(ten_year_loan, _params(monthly="-1"))
        assert exc.value.codes == ["overpayment_amount_negative"]

    def test_invalid_loan(self):
        with pytest.raises(ValidationError):
            optimize_overpayments(make_loan(principal="0"), _params(monthly="200"))

    def test_failed_strategy_reported(self, ten_year_loan):
        def flaky(loan):
            if any(p.frequency is OverpaymentFrequency.QUARTERLY for p in loan.overpayment_plans):
                raise ComputationError("boom")
            return calculate(loan)

        with patch("mortgage_engine.engine.optimization.calculate", side_effect=flaky):
            result = optimize_overpayments(
                ten_year_loan,
                _params(lump="10000", goal=OptimizationGoal.MAXIMIZE_INTEREST_SAVINGS),
            )

        lump, quarterly = result.strategies
        assert quarterly.error == "boom"
        assert not quarterly.succeeded
        assert result.best.name == lump.name


class TestOverpaymentImpact:
    def test_evenly_spaced_amounts(self, ten_year_loan):
        points = analyze_overpayment_impact(ten_year_loan, Decimal("500"))
        assert [p.amount for p in points] == [
            Decimal("100.00"), Decimal("200.00"), Decimal("300.00"), Decimal("400.00"), Decimal("500.00"),
        ]

    def test_savings_grow_with_amount(self, ten_year_loan):
        points = analyze_overpayment_impact(ten_year_loan, Decimal("500"))
        for prev, cur in zip(points, points[1:]):
            assert cur.interest_saved > prev.interest_saved
            assert cur.months_saved >= prev.months_saved

    def test_custom_steps(self, ten_year_loan):
        points = analyze_overpayment_impact(ten_year_loan, Decimal("300"), steps=3)
        assert [p.amount for p in points] == [Decimal("100.00"), Decimal("200.00"), Decimal("300.00")]

    @pytest.mark.parametrize("amount,steps", [("0", 5), ("500", 0)])
    def test_empty_range(self, ten_year_loan, amount, steps):
        with pytest.raises(ValidationError) as exc:
            analyze_overpayment_impact(ten_year_loan, Decimal(amount), steps=steps)
        assert exc.value.codes == ["impact_range_empty"]


class TestLumpSumVsRegular:
    def test_both_save(self, ten_year_loan):
        result = compare_lump_sum_vs_regular(ten_year_loan, Decimal("12000"), Decimal("500"))
        assert result.lump_sum.interest_saved > 0
        assert result.monthly.interest_saved > 0
        assert result.break_even_month == 24

    def test_break_even_rounds_up(self, ten_year_loan):
        result = compare_lump_sum_vs_regular(ten_year_loan, Decimal("1000"), Decimal("300"))
        assert result.break_even_month == 4

    def test_non_positive_amount(self, ten_year_loan):
        with pytest.raises(ValidationError) as exc:
            compare_lump_sum_vs_regular(ten_year_loan, Decimal("1000"), Decimal("0"))
        assert exc.value.codes == ["overpayment_amount_not_positive"]
