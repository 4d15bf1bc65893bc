"""Unit tests for allocation distribution summaries."""

import pytest

from bonus_engine.allocation.summary import generate_allocation_summary, gini_coefficient, iqr_outliers
from bonus_engine.config.allocation import AllocationRule, BonusPool
from bonus_engine.models import AllocationResult, CoefficientSet, EmployeeSnapshot


def _result(employee_id, total, *, department="Sales", tier=None, min_applied=False, adjustment=0.0):
    base = round((total - adjustment) * 0.8, 2)
    return AllocationResult(
        employee_id=employee_id,
        pool_id="pool",
        rule_id="rule",
        period="2024",
        allocation_method="score_based",
        original_score=0.5,
        final_score=0.5,
        coefficients=CoefficientSet(),
        base_amount=base,
        performance_amount=round(total - adjustment - base, 2),
        adjustment_amount=adjustment,
        total_amount=total,
        snapshot=EmployeeSnapshot(
            name=employee_id,
            department_id=department.lower(),
            department_name=department,
            position_name=None,
            position_level=None,
        ),
        min_amount_applied=min_applied,
        tier_level=tier,
    )


class TestGini:
    def test_equal_amounts(self):
        assert gini_coefficient([10, 10, 10]) == pytest.approx(0.0)

    def test_concentrated_amounts(self):
        assert gini_coefficient([0, 0, 0, 10]) == pytest.approx(0.75)

    def test_empty_and_zero(self):
        assert gini_coefficient([]) == 0.0
        assert gini_coefficient([0, 0]) == 0.0


class TestIqrOutliers:
    def test_flags_values_beyond_fences(self):
        outliers = iqr_outliers([10, 11, 12, 13, 100])
        assert outliers["indices"] == [4]
        assert outliers["upper_bound"] == pytest.approx(16.0)

    def test_too_few_values(self):
        assert iqr_outliers([1, 100, 1000])["indices"] == []


class TestGenerateAllocationSummary:
    POOL = BonusPool.from_totals("pool", "2024", 100_000)
    RULE = AllocationRule(id="rule")

    def test_statistics_and_groups(self):
        results = [
            _result("A", 40_000, tier="top"),
            _result("B", 30_000, department="Engineering", tier="top"),
            _result("C", 20_000, department="Engineering", tier="rest", min_applied=True, adjustment=5_000),
        ]
        summary = generate_allocation_summary(results, self.POOL, self.RULE)

        assert summary.employee_count == 3
        assert summary.total_allocated == pytest.approx(90_000)
        assert summary.remaining_amount == pytest.approx(10_000)
        assert summary.allocation_ratio == pytest.approx(0.9)
        assert summary.median_amount == pytest.approx(30_000)
        assert summary.min_guard_count == 1
        assert summary.invalid_results == 0
        departments = {row["department"]: row for row in summary.by_department}
        assert departments["Engineering"]["count"] == 2
        assert departments["Engineering"]["total_amount"] == pytest.approx(50_000)
        assert {row["tier"] for row in summary.by_tier} == {"top", "rest"}

    def test_invalid_results_are_reported(self):
        broken = _result("A", 40_000)
        broken = AllocationResult(**{**broken.__dict__, "total_amount": 45_000})
        summary = generate_allocation_summary([broken], self.POOL, self.RULE)
        assert summary.invalid_results == 1
        assert "A: total_amount" in summary.violations[0]

    def test_empty_results(self):
        summary = generate_allocation_summary([], self.POOL, self.RULE)
        assert summary.employee_count == 0
        assert summary.remaining_amount == pytest.approx(100_000)
