"""Integration tests for pool allocation over scored employees."""

import json

import pytest

from bonus_engine.allocation.strategies import AllocationOptions
from bonus_engine.allocation_service import AllocationService
from bonus_engine.config import AllocationRule, PoolStatus
from bonus_engine.exceptions import (
    ConfigurationNotFoundError,
    EmptyEligibleSetError,
    InsufficientBudgetError,
    InvalidConfigurationError,
)
from bonus_engine.logger import get_logger

PERIOD = "2024"
ALL_IDS = ["E1", "E2", "E3", "E4", "E5"]
CAP = 100_000


@pytest.fixture
def scored(services):
    scoring, allocation = services
    scoring.batch_score_employees(ALL_IDS, PERIOD, "wc-test")
    return allocation


def _add_rule(dataset, **fields):
    rule = AllocationRule(**fields)
    dataset.config_store.rules[rule.id] = rule
    return rule.id


class TestScoreBasedAllocation:
    def test_simulation_writes_nothing(self, scored, sample_dataset):
        run = scored.allocate_pool("pool-2024", "rule-linear", AllocationOptions(simulate=True))

        assert run.simulated
        assert len(run.results) == 5
        assert sample_dataset.config_store.get_pool("pool-2024").status is PoolStatus.DRAFT
        assert sample_dataset.result_store.list_allocation_results("pool-2024") == []

    def test_commit_marks_pool_allocated(self, scored, sample_dataset):
        run = scored.allocate_pool("pool-2024", "rule-linear")

        pool = sample_dataset.config_store.get_pool("pool-2024")
        assert pool.status is PoolStatus.ALLOCATED
        assert pool.allocated_count == 5
        assert pool.allocated_amount == pytest.approx(run.total_allocated)
        assert len(sample_dataset.result_store.list_allocation_results("pool-2024")) == 5
        assert all(r.run_id == run.run_id for r in run.results)

    def test_budget_cap_holds(self, scored):
        run = scored.allocate_pool("pool-2024", "rule-linear", AllocationOptions(simulate=True))
        total = sum(r.total_amount for r in run.results)

        # coefficients push the raw split past the cap, so every line is scaled
        assert total <= CAP + 0.01
        assert total == pytest.approx(CAP, abs=1.0)
        assert all(r.budget_cap_delta < 0 for r in run.results)

    def test_result_records(self, scored):
        run = scored.allocate_pool("pool-2024", "rule-linear", AllocationOptions(simulate=True))
        by_id = {r.employee_id: r for r in run.results}

        assert max(run.results, key=lambda r: r.total_amount).employee_id == "E1"
        assert by_id["E1"].coefficients.performance == 1.2
        assert by_id["E4"].coefficients.performance == 0.8
        assert by_id["E1"].snapshot.department_name == "Sales"
        assert by_id["E1"].allocation_method == "score_based"
        for result in run.results:
            assert result.total_amount == pytest.approx(
                result.base_amount + result.performance_amount + result.adjustment_amount, abs=0.01
            )
            assert scored.validate_result(result) == []

    def test_summary(self, scored):
        run = scored.allocate_pool("pool-2024", "rule-linear", AllocationOptions(simulate=True))
        assert run.summary.employee_count == 5
        assert run.summary.invalid_results == 0
        assert run.summary.total_allocated == pytest.approx(run.total_allocated)
        assert 0 < run.summary.gini_coefficient < 1

    def test_weight_config_filter(self, scored):
        run = scored.allocate_pool(
            "pool-2024", "rule-linear", AllocationOptions(simulate=True, weight_config_id="wc-test")
        )
        assert len(run.results) == 5
        with pytest.raises(EmptyEligibleSetError):
            scored.allocate_pool(
                "pool-2024", "rule-linear", AllocationOptions(simulate=True, weight_config_id="wc-other")
            )


class TestTierBasedAllocation:
    def test_tiers_are_normalized_and_assigned(self, scored):
        run = scored.allocate_pool("pool-2024", "rule-tiers", AllocationOptions(simulate=True))
        tiers = {r.employee_id: r.tier_level for r in run.results}

        assert tiers == {"E1": "top", "E5": "top", "E3": "top", "E2": "rest", "E4": "rest"}
        by_id = {r.employee_id: r for r in run.results}
        # 7/12 of the pool shared by three, 5/12 by two, then coefficients
        assert by_id["E5"].total_amount == pytest.approx(CAP * 7 / 12 / 3, abs=0.02)
        assert by_id["E2"].total_amount == pytest.approx(CAP * 5 / 12 / 2, abs=0.02)
        assert sum(r.total_amount for r in run.results) <= CAP + 0.01


class TestGuardRails:
    def test_minimum_is_applied_and_budget_reconciled(self, scored, sample_dataset):
        rule_id = _add_rule(sample_dataset, id="rule-floor", reserve_ratio=0.0, min_bonus_amount=15_000)
        run = scored.allocate_pool("pool-2024", rule_id, AllocationOptions(simulate=True))
        by_id = {r.employee_id: r for r in run.results}

        assert by_id["E4"].min_amount_applied
        assert by_id["E4"].total_amount == pytest.approx(15_000)
        assert by_id["E4"].original_calculated_amount < 15_000
        assert sum(r.total_amount for r in run.results) <= CAP + 0.01


class TestAllocationErrors:
    def test_unknown_pool(self, scored):
        with pytest.raises(ConfigurationNotFoundError):
            scored.allocate_pool("pool-missing", "rule-linear")

    def test_invalid_rule_is_rejected(self, scored, sample_dataset):
        rule_id = _add_rule(
            sample_dataset, id="rule-bad", base_allocation_ratio=0.5, performance_allocation_ratio=0.2
        )
        with pytest.raises(InvalidConfigurationError, match="must equal 1.0"):
            scored.allocate_pool("pool-2024", rule_id)
        assert sample_dataset.result_store.list_allocation_results("pool-2024") == []

    def test_hybrid_rule_without_tiers_is_rejected(self, scored, sample_dataset):
        rule_id = _add_rule(sample_dataset, id="rule-hybrid-bare", allocation_method="hybrid", reserve_ratio=0.0)
        with pytest.raises(InvalidConfigurationError, match="hybrid allocation requires tier_config"):
            scored.allocate_pool("pool-2024", rule_id, AllocationOptions(simulate=True))

    def test_no_available_budget(self, scored, sample_dataset):
        rule_id = _add_rule(sample_dataset, id="rule-all-reserve", reserve_ratio=1.0)
        with pytest.raises(InsufficientBudgetError):
            scored.allocate_pool("pool-2024", rule_id)
        assert sample_dataset.config_store.get_pool("pool-2024").status is PoolStatus.DRAFT

    def test_nobody_eligible(self, scored, sample_dataset):
        rule_id = _add_rule(sample_dataset, id="rule-strict", min_score_threshold=5.0)
        with pytest.raises(EmptyEligibleSetError):
            scored.allocate_pool("pool-2024", rule_id)

    def test_unscored_period(self, services):
        _, allocation = services
        with pytest.raises(EmptyEligibleSetError):
            allocation.allocate_pool("pool-2024", "rule-linear")


class TestRunLogging:
    def test_injected_run_logger_records_commit(self, services, sample_dataset, tmp_path):
        scoring, _ = services
        scoring.batch_score_employees(ALL_IDS, PERIOD, "wc-test")
        run_logger = get_logger(run_id="alloc-run", log_dir=tmp_path)
        allocation = AllocationService(
            sample_dataset.directory,
            sample_dataset.config_store,
            sample_dataset.result_store,
            run_logger=run_logger,
        )
        run = allocation.allocate_pool("pool-2024", "rule-linear")
        run_logger.close()

        assert run.run_id == "alloc-run"
        messages = [json.loads(line)["message"] for line in (tmp_path / "bonus_engine.log").read_text().splitlines()]
        assert messages == ["Allocation started", "Allocation committed"]


class TestValidationWrappers:
    def test_pool_and_rule(self, services, sample_dataset):
        _, allocation = services
        assert allocation.validate_pool(sample_dataset.config_store.get_pool("pool-2024")) == []
        # standalone validation reports raw tier ratios
        assert allocation.validate_rule(sample_dataset.config_store.get_rule("rule-tiers")) == [
            "tier ratios must sum to 1.0 (got 1.2000)"
        ]
