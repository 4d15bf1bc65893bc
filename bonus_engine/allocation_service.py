"""Allocation service: distribute a bonus pool under an allocation rule.

Flow: load and validate pool/rule -> select eligible scored employees ->
dispatch to the rule's strategy -> enforce budget cap and guard rails ->
validate every result -> commit atomically (skipped when simulating).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .allocation.constraints import ConstrainedAllocation, enforce_constraints
from .allocation.eligibility import select_eligible
from .allocation.strategies import AllocationOptions, dispatch
from .allocation.summary import AllocationSummary, generate_allocation_summary
from .allocation.tiers import normalize_tiers
from .config.allocation import AllocationRule, BonusPool, PoolStatus
from .config.engine import EngineSettings
from .exceptions import (
    AllocationValidationError,
    BonusEngineError,
    CalculationContext,
    InvalidConfigurationError,
)
from .interfaces import ConfigStore, DirectoryService, ResultStore
from .logger import ProductionLogger, get_logger
from .models import AllocationResult, CalculationResult, EmployeeProfile, EmployeeSnapshot
from .numeric import round_amount
from .validation import validate_allocation_result, validate_pool, validate_rule

logger = logging.getLogger(__name__)


@dataclass
class AllocationRun:
    """Results of one allocation call."""
    run_id: str
    pool: BonusPool
    rule: AllocationRule
    results: List[AllocationResult] = field(default_factory=list)
    summary: Optional[AllocationSummary] = None
    simulated: bool = False

    @property
    def total_allocated(self) -> float:
        return round_amount(sum(r.total_amount for r in self.results))


def latest_per_employee(results: List[CalculationResult]) -> List[CalculationResult]:
    """Keep the most recent result per employee when several weight configs scored a period."""
    latest: Dict[str, CalculationResult] = {}
    for result in results:
        current = latest.get(result.employee_id)
        if current is None or result.calculated_at > current.calculated_at:
            latest[result.employee_id] = result
    return list(latest.values())


class AllocationService:
    """Entry point for pool allocation and configuration validation."""

    def __init__(
        self,
        directory: DirectoryService,
        config_store: ConfigStore,
        result_store: ResultStore,
        settings: Optional[EngineSettings] = None,
        run_logger: Optional[ProductionLogger] = None,
    ):
        self.directory = directory
        self.config_store = config_store
        self.result_store = result_store
        self.settings = settings or EngineSettings()
        self.run_logger = run_logger

    def _validated_config(self, pool: BonusPool, rule: AllocationRule, context: CalculationContext):
        tolerance = self.settings.tolerance.weight_sum
        # Tier ratios are auto-normalized, so they are checked after normalization
        effective_rule = rule.model_copy(update={"tier_config": normalize_tiers(rule.tier_config, tolerance)})
        violations = validate_pool(pool, self.settings.tolerance.amount) + validate_rule(effective_rule, tolerance)
        if violations:
            raise InvalidConfigurationError(
                f"Pool {pool.id} / rule {rule.id} failed validation",
                violations=violations,
                context=context,
            )

    def _profiles(self, results: List[CalculationResult]) -> Dict[str, EmployeeProfile]:
        profiles: Dict[str, EmployeeProfile] = {}
        for result in results:
            try:
                profiles[result.employee_id] = self.directory.get_profile(result.employee_id)
            except BonusEngineError as e:
                logger.warning(f"Skipping {result.employee_id} for allocation: {e.message}")
        return profiles

    def _build_results(
        self,
        lines: List[ConstrainedAllocation],
        pool: BonusPool,
        rule: AllocationRule,
        run_id: str,
    ) -> List[AllocationResult]:
        precision = rule.calculation_precision
        results = []
        for line in lines:
            employee = line.raw.employee
            base = round_amount(line.base_amount, precision)
            performance = round_amount(line.performance_amount, precision)
            adjustment = round_amount(line.adjustment_amount, precision)
            results.append(
                AllocationResult(
                    employee_id=employee.employee_id,
                    pool_id=pool.id,
                    rule_id=rule.id,
                    period=pool.period,
                    allocation_method=rule.allocation_method.value,
                    original_score=employee.calculation.total_score,
                    final_score=employee.final_score,
                    coefficients=line.raw.coefficients,
                    base_amount=base,
                    performance_amount=performance,
                    adjustment_amount=adjustment,
                    total_amount=round_amount(base + performance + adjustment, precision),
                    snapshot=EmployeeSnapshot.from_profile(employee.profile),
                    min_amount_applied=line.min_amount_applied,
                    max_amount_applied=line.max_amount_applied,
                    original_calculated_amount=line.original_calculated_amount,
                    budget_cap_delta=line.budget_cap_delta,
                    tier_level=line.raw.tier_level,
                    run_id=run_id,
                )
            )
        return results

    def allocate_pool(
        self, pool_id: str, rule_id: str, options: Optional[AllocationOptions] = None
    ) -> AllocationRun:
        """Allocate ``pool_id`` under ``rule_id``.

        With ``options.simulate`` every step runs but nothing is written.

        Raises:
            ConfigurationError: unknown or invalid pool/rule, unsupported method
            BudgetError: non-positive available amount or no eligible employees
            AllocationValidationError: final results failed validation
        """
        options = options or AllocationOptions()
        pool = self.config_store.get_pool(pool_id)
        rule = self.config_store.get_rule(rule_id)
        if self.run_logger is not None:
            return self._allocate(pool, rule, options, self.run_logger)

        run_logger = get_logger(
            log_level=self.settings.logging.level, log_dir=self.settings.logging.log_dir
        )
        try:
            return self._allocate(pool, rule, options, run_logger)
        finally:
            run_logger.close()

    def _allocate(
        self,
        pool: BonusPool,
        rule: AllocationRule,
        options: AllocationOptions,
        run_logger: ProductionLogger,
    ) -> AllocationRun:
        pool_id, rule_id, run_id = pool.id, rule.id, run_logger.run_id
        context = CalculationContext(period=pool.period, pool_id=pool_id, rule_id=rule_id, operation="allocate")

        self._validated_config(pool, rule, context)
        if pool.status is PoolStatus.ALLOCATED and not options.simulate:
            logger.warning(f"Pool {pool_id} is already allocated; producing a new result set")

        run_logger.info(
            "Allocation started",
            pool_id=pool_id,
            rule_id=rule_id,
            period=pool.period,
            method=rule.allocation_method.value,
            simulate=options.simulate,
        )

        calculations = self.result_store.list_calculation_results(pool.period, options.weight_config_id)
        if options.weight_config_id is None:
            calculations = latest_per_employee(calculations)
        eligible = select_eligible(
            calculations, self._profiles(calculations), rule, options.as_of or date.today()
        )

        raw = dispatch(pool, rule, eligible, options)
        lines = enforce_constraints(raw, pool, rule, self.settings.tolerance.amount)
        results = self._build_results(lines, pool, rule, run_id)

        violations = [
            f"{r.employee_id}: {v}"
            for r in results
            for v in validate_allocation_result(r, self.settings.tolerance.amount)
        ]
        if violations:
            run_logger.error("Allocation failed validation", pool_id=pool_id, violations=violations[:20])
            raise AllocationValidationError(violations, context=context)

        run = AllocationRun(
            run_id=run_id,
            pool=pool,
            rule=rule,
            results=results,
            summary=generate_allocation_summary(results, pool, rule),
            simulated=options.simulate,
        )

        if options.simulate:
            run_logger.info("Allocation simulated", pool_id=pool_id, total=run.total_allocated, count=len(results))
        else:
            run.pool = self.result_store.commit_allocation(pool_id, results)
            run_logger.info("Allocation committed", pool_id=pool_id, total=run.total_allocated, count=len(results))
        return run

    def validate_pool(self, pool) -> List[str]:
        return validate_pool(pool, self.settings.tolerance.amount)

    def validate_rule(self, rule) -> List[str]:
        return validate_rule(rule, self.settings.tolerance.weight_sum)

    def validate_result(self, result) -> List[str]:
        return validate_allocation_result(result, self.settings.tolerance.amount)
