"""Collaborator interfaces consumed by the scoring and allocation services.

Implementations live outside the engine; ``bonus_engine.memory_store`` provides
dictionary-backed versions for tests, the CLI and small deployments.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .config.allocation import AllocationRule, BonusPool
from .config.scoring import Dimension, WeightConfig
from .models import AllocationResult, CalculationResult, DimensionScore, EmployeeProfile


@runtime_checkable
class DirectoryService(Protocol):
    def get_profile(self, employee_id: str) -> EmployeeProfile:
        """Employee joined with department and position.

        Raises:
            EmployeeNotFoundError: unknown employee id
        """

    def list_employee_ids(self) -> List[str]:
        ...


@runtime_checkable
class DimensionScoreProvider(Protocol):
    dimension: Dimension

    def get_score(
        self, employee_id: str, period: str, options: Optional[Mapping[str, Any]] = None
    ) -> Optional[DimensionScore]:
        """Raw score for one employee, or None when there is no data."""

    def get_population(
        self, period: str, options: Optional[Mapping[str, Any]] = None
    ) -> List[float]:
        """Every raw value for the period, used as the normalization reference."""


@runtime_checkable
class ConfigStore(Protocol):
    def get_pool(self, pool_id: str) -> BonusPool:
        ...

    def get_rule(self, rule_id: str) -> AllocationRule:
        ...

    def get_weight_config(self, weight_config_id: str) -> WeightConfig:
        ...


@runtime_checkable
class ResultStore(Protocol):
    def save_calculation_results(self, results: Sequence[CalculationResult]) -> None:
        ...

    def list_calculation_results(
        self, period: str, weight_config_id: Optional[str] = None
    ) -> List[CalculationResult]:
        ...

    def update_rankings(self, results: Sequence[CalculationResult]) -> int:
        """Persist rank fields for a whole cohort in one unit."""

    def invalidate_rankings(self, period: str, weight_config_id: str) -> int:
        """Clear rank fields for a period after a partial re-score."""

    def commit_allocation(self, pool_id: str, results: Sequence[AllocationResult]) -> BonusPool:
        """Persist results and mark the pool allocated, all or nothing."""
