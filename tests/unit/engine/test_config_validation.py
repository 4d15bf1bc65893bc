"""Unit tests for structural validation of configs and results."""

import pytest

from bonus_engine.config import AllocationRule, BonusPool, WeightConfig
from bonus_engine.validation import (
    validate_allocation_result,
    validate_calculation_result,
    validate_pool,
    validate_rule,
    validate_tiers,
    validate_weight_config,
)
from tests.fixtures import make_calculation


class TestValidateWeightConfig:
    def test_default_model_is_valid(self):
        assert validate_weight_config(WeightConfig(id="wc")) == []

    def test_partial_weights_take_defaults(self):
        assert validate_weight_config({"id": "wc", "weights": {"profit_contribution": 0.4}}) == []

    def test_weights_must_sum_to_one(self):
        violations = validate_weight_config(
            {"id": "wc", "weights": {"profit_contribution": 0.5, "position_value": 0.3, "performance": 0.3}}
        )
        assert violations == ["main weights must sum to 1.0 (got 1.1000)"]

    def test_sum_within_tolerance(self):
        config = {"weights": {"profit_contribution": 0.405, "position_value": 0.3, "performance": 0.3}}
        assert validate_weight_config(config) == []

    def test_out_of_range_and_non_numeric(self):
        violations = validate_weight_config(
            {"weights": {"profit_contribution": 1.5, "position_value": "high", "performance": 0.3}}
        )
        assert any("profit_contribution must be between 0 and 1" in v for v in violations)
        assert any("position_value must be a number" in v for v in violations)

    def test_unknown_methods(self):
        violations = validate_weight_config({"calculation_method": "median", "normalization_method": "robust"})
        assert "unknown calculation_method: 'median'" in violations
        assert "unknown normalization_method: 'robust'" in violations


class TestValidatePool:
    def test_derived_amounts(self):
        pool = BonusPool.from_totals(
            "pool", "2024", 1_000_000, pool_ratio=0.5, reserve_ratio=0.02, special_ratio=0.03
        )
        assert pool.pool_amount == pytest.approx(500_000)
        assert pool.distributable_amount == pytest.approx(475_000)
        assert validate_pool(pool) == []

    def test_raw_mapping_problems(self):
        violations = validate_pool({"id": "pool", "total_amount": 0, "reserve_ratio": 0.6})
        assert "period is required" in violations
        assert "total_amount must be greater than 0 (got 0)" in violations
        assert any(v.startswith("reserve_ratio must be between 0 and 0.5") for v in violations)

    def test_pool_amount_must_match(self):
        violations = validate_pool({"period": "2024", "total_amount": 100, "pool_ratio": 0.5, "pool_amount": 60})
        assert len(violations) == 1
        assert "does not match" in violations[0]


class TestValidateRule:
    def test_default_model_is_valid(self):
        assert validate_rule(AllocationRule(id="r")) == []

    def test_ratio_sum(self):
        violations = validate_rule({"id": "r", "base_allocation_ratio": 0.7, "performance_allocation_ratio": 0.2})
        assert violations == [
            "base_allocation_ratio + performance_allocation_ratio must equal 1.0 (got 0.9000)"
        ]

    def test_tier_based_requires_tiers(self):
        assert "tier_based allocation requires tier_config" in validate_rule(
            {"id": "r", "allocation_method": "tier_based"}
        )

    def test_hybrid_requires_tiers(self):
        assert validate_rule(AllocationRule(id="r", allocation_method="hybrid")) == [
            "hybrid allocation requires tier_config"
        ]

    def test_unknown_methods(self):
        violations = validate_rule({"allocation_method": "lottery", "score_distribution_method": "sigmoid"})
        assert "unknown allocation_method: 'lottery'" in violations
        assert "unknown score_distribution_method: 'sigmoid'" in violations

    def test_bounds_ordering(self):
        violations = validate_rule({"min_bonus_amount": 5_000, "max_bonus_amount": 1_000, "min_bonus_ratio": -1})
        assert "max_bonus_amount (1000) must not be less than min_bonus_amount (5000)" in violations
        assert "min_bonus_ratio must be a non-negative number (got -1)" in violations

    def test_non_positive_allocation_limit(self):
        assert any("total_allocation_limit" in v for v in validate_rule({"total_allocation_limit": 0}))


class TestValidateTiers:
    def test_valid_tiers(self):
        tiers = [{"name": "A", "min_score": 0.8, "ratio": 0.6}, {"name": "B", "min_score": 0.5, "ratio": 0.4}]
        assert validate_tiers(tiers) == []

    def test_problems_are_reported_together(self):
        tiers = [
            {"name": "A", "min_score": 0.8, "ratio": 0.7},
            {"name": "A", "min_score": 1.5, "ratio": 0.5},
            {"min_score": 0.1, "ratio": 0},
        ]
        violations = validate_tiers(tiers)
        assert "tier 'A': duplicate tier name" in violations
        assert "tier 'A': min_score must be in [0, 1] (got 1.5)" in violations
        assert "tier[2]: name is required" in violations
        assert "tier[2]: ratio must be in (0, 1] (got 0)" in violations

    def test_sum_is_checked_when_every_ratio_is_valid(self):
        tiers = [{"name": "A", "min_score": 0.8, "ratio": 0.7}, {"name": "B", "min_score": 0.5, "ratio": 0.5}]
        assert validate_tiers(tiers) == ["tier ratios must sum to 1.0 (got 1.2000)"]


class TestValidateResults:
    def test_allocation_result_parts_must_add_up(self):
        result = {
            "employee_id": "E1",
            "pool_id": "pool",
            "rule_id": "rule",
            "base_amount": 800,
            "performance_amount": 200,
            "adjustment_amount": 50,
            "total_amount": 1_000,
        }
        violations = validate_allocation_result(result)
        assert violations == ["total_amount 1000 does not equal base + performance + adjustment (1050.00)"]

    def test_allocation_result_negative_and_missing(self):
        violations = validate_allocation_result({"base_amount": -1, "performance_amount": 0, "total_amount": -1})
        assert "employee_id is required" in violations
        assert "base_amount must not be negative (got -1)" in violations

    def test_calculation_result(self):
        assert validate_calculation_result(make_calculation("E1", 0.5)) == []

    def test_calculation_result_negative_final(self):
        violations = validate_calculation_result(make_calculation("E1", -0.2))
        assert violations == ["final_score must not be negative (got -0.2)"]

    def test_validators_never_raise(self):
        assert validate_tiers([object()]) != []
        assert validate_pool("not a pool") != []
