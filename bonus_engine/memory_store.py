"""Dictionary-backed collaborators and a YAML dataset loader.

Used by the CLI and the test-suite, and suitable for small single-process
deployments. Stores are guarded by one lock each; ``commit_allocation`` writes
results and the pool status under a single lock so readers never observe one
without the other.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import ValidationError

from .config.allocation import AllocationRule, BonusPool, PoolStatus
from .config.scoring import Dimension, WeightConfig
from .exceptions import ConfigurationNotFoundError, EmployeeNotFoundError, InvalidConfigurationError
from .models import (
    AllocationResult,
    CalculationResult,
    Department,
    DimensionScore,
    Employee,
    EmployeeProfile,
    Position,
)
from .numeric import is_number

logger = logging.getLogger(__name__)


class InMemoryDirectory:
    def __init__(
        self,
        employees: Iterable[Employee] = (),
        departments: Iterable[Department] = (),
        positions: Iterable[Position] = (),
    ):
        self.employees: Dict[str, Employee] = {e.id: e for e in employees}
        self.departments: Dict[str, Department] = {d.id: d for d in departments}
        self.positions: Dict[str, Position] = {p.id: p for p in positions}

    def get_profile(self, employee_id: str) -> EmployeeProfile:
        employee = self.employees.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return EmployeeProfile(
            employee=employee,
            department=self.departments.get(employee.department_id or ""),
            position=self.positions.get(employee.position_id or ""),
        )

    def list_employee_ids(self) -> List[str]:
        return list(self.employees)


class InMemoryScoreProvider:
    """Raw scores for one dimension keyed by (employee_id, period)."""

    def __init__(self, dimension: Dimension, scores: Optional[Mapping[Tuple[str, str], DimensionScore]] = None):
        self.dimension = dimension
        self.scores: Dict[Tuple[str, str], DimensionScore] = dict(scores or {})

    def set_score(self, employee_id: str, period: str, value: float, source_version: Optional[str] = None) -> None:
        self.scores[(employee_id, period)] = DimensionScore(self.dimension, value, source_version)

    def get_score(self, employee_id: str, period: str, options: Optional[Mapping[str, Any]] = None) -> Optional[DimensionScore]:
        return self.scores.get((employee_id, period))

    def get_population(self, period: str, options: Optional[Mapping[str, Any]] = None) -> List[float]:
        return [
            s.value for (_, p), s in sorted(self.scores.items()) if p == period and is_number(s.value)
        ]


class InMemoryConfigStore:
    def __init__(
        self,
        pools: Iterable[BonusPool] = (),
        rules: Iterable[AllocationRule] = (),
        weight_configs: Iterable[WeightConfig] = (),
    ):
        self.pools: Dict[str, BonusPool] = {p.id: p for p in pools}
        self.rules: Dict[str, AllocationRule] = {r.id: r for r in rules}
        self.weight_configs: Dict[str, WeightConfig] = {w.id: w for w in weight_configs}
        self.lock = threading.RLock()

    def get_pool(self, pool_id: str) -> BonusPool:
        with self.lock:
            if pool_id not in self.pools:
                raise ConfigurationNotFoundError("BonusPool", pool_id)
            return self.pools[pool_id]

    def get_rule(self, rule_id: str) -> AllocationRule:
        if rule_id not in self.rules:
            raise ConfigurationNotFoundError("AllocationRule", rule_id)
        return self.rules[rule_id]

    def get_weight_config(self, weight_config_id: str) -> WeightConfig:
        if weight_config_id not in self.weight_configs:
            raise ConfigurationNotFoundError("WeightConfig", weight_config_id)
        return self.weight_configs[weight_config_id]


class InMemoryResultStore:
    """Result sink; shares the config store's lock to update pool status atomically."""

    def __init__(self, config_store: InMemoryConfigStore):
        self.config_store = config_store
        self._lock = config_store.lock
        self.calculations: Dict[Tuple[str, str, str], CalculationResult] = {}
        self.allocations: Dict[str, List[AllocationResult]] = {}

    def save_calculation_results(self, results: Sequence[CalculationResult]) -> None:
        with self._lock:
            for result in results:
                self.calculations[result.key] = copy.deepcopy(result)

    def list_calculation_results(self, period: str, weight_config_id: Optional[str] = None) -> List[CalculationResult]:
        with self._lock:
            return [
                copy.deepcopy(r)
                for key, r in sorted(self.calculations.items())
                if r.period == period and (weight_config_id is None or r.weight_config_id == weight_config_id)
            ]

    def update_rankings(self, results: Sequence[CalculationResult]) -> int:
        with self._lock:
            missing = [r.key for r in results if r.key not in self.calculations]
            if missing:
                raise KeyError(f"Cannot rank unsaved results: {missing[:5]}")
            for r in results:
                stored = self.calculations[r.key]
                stored.score_rank = r.score_rank
                stored.percentile_rank = r.percentile_rank
                stored.department_rank = r.department_rank
                stored.level_rank = r.level_rank
            return len(results)

    def invalidate_rankings(self, period: str, weight_config_id: str) -> int:
        with self._lock:
            cleared = 0
            for r in self.calculations.values():
                if r.period == period and r.weight_config_id == weight_config_id and r.is_ranked:
                    r.clear_ranks()
                    cleared += 1
            return cleared

    def commit_allocation(self, pool_id: str, results: Sequence[AllocationResult]) -> BonusPool:
        with self._lock:
            pool = self.config_store.get_pool(pool_id)
            updated = pool.model_copy(
                update={
                    "status": PoolStatus.ALLOCATED,
                    "allocated_amount": round(sum(r.total_amount for r in results), 2),
                    "allocated_count": len(results),
                }
            )
            self.allocations[pool_id] = list(results)
            self.config_store.pools[pool_id] = updated
            return updated

    def list_allocation_results(self, pool_id: str) -> List[AllocationResult]:
        with self._lock:
            return list(self.allocations.get(pool_id, []))


# =============================================================================
# Dataset loading
# =============================================================================

@dataclass
class Dataset:
    """Everything needed to run scoring and allocation from one YAML file."""
    period: str
    directory: InMemoryDirectory
    providers: Dict[Dimension, InMemoryScoreProvider]
    config_store: InMemoryConfigStore
    result_store: InMemoryResultStore
    source: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def _parse_date(raw: Any) -> Optional[date]:
    if raw is None or isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw))


def build_dataset(data: Mapping[str, Any], source: Optional[Path] = None, *, strict: bool = True) -> Dataset:
    """Build in-memory collaborators from a parsed dataset mapping.

    With ``strict=False`` pools, rules and weight configs that fail model
    validation are skipped (and logged) instead of raising, so they can still
    be reported by ``bonus_engine.validation`` from ``Dataset.raw``.
    """
    period = str(data.get("period", ""))
    path = str(source) if source else None

    departments = [Department(id=str(d["id"]), name=d.get("name", str(d["id"]))) for d in data.get("departments", [])]
    positions = [
        Position(id=str(p["id"]), name=p.get("name", str(p["id"])), level=p.get("level"))
        for p in data.get("positions", [])
    ]
    employees = [
        Employee(
            id=str(e["id"]),
            name=e.get("name", str(e["id"])),
            department_id=e.get("department_id"),
            position_id=e.get("position_id"),
            status=e.get("status", "active"),
            hire_date=_parse_date(e.get("hire_date")),
            business_lines=list(e.get("business_lines", [])),
        )
        for e in data.get("employees", [])
    ]

    providers = {d: InMemoryScoreProvider(d) for d in Dimension}
    for entry in data.get("scores", []):
        entry_period = str(entry.get("period", period))
        for dimension, provider in providers.items():
            if dimension.value in entry and entry[dimension.value] is not None:
                provider.set_score(
                    str(entry["employee_id"]), entry_period, entry[dimension.value], entry.get("source_version")
                )

    def _models(key: str, model):
        built = []
        for item in data.get(key, []):
            try:
                built.append(model(**item))
            except ValidationError as e:
                if strict:
                    raise InvalidConfigurationError(
                        f"Invalid {model.__name__} '{item.get('id')}'", config_path=path, original_exception=e
                    ) from e
                logger.warning(f"Skipping invalid {model.__name__} '{item.get('id')}': {e}")
        return built

    config_store = InMemoryConfigStore(
        pools=_models("pools", BonusPool),
        rules=_models("rules", AllocationRule),
        weight_configs=_models("weight_configs", WeightConfig),
    )
    return Dataset(
        period=period,
        directory=InMemoryDirectory(employees, departments, positions),
        providers=providers,
        config_store=config_store,
        result_store=InMemoryResultStore(config_store),
        source=source,
        raw=dict(data),
    )


def load_dataset(path: Union[str, Path], *, strict: bool = True) -> Dataset:
    """Load a YAML dataset file.

    Raises:
        FileNotFoundError: if ``path`` does not exist
        InvalidConfigurationError: malformed YAML or (when strict) invalid records
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Dataset file not found: {p}")
    try:
        with open(p, "r") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as e:
        raise InvalidConfigurationError("Dataset is not valid YAML", config_path=str(p), original_exception=e) from e
    if not isinstance(data, dict):
        raise InvalidConfigurationError("Dataset root must be a mapping", config_path=str(p))
    return build_dataset(data, p, strict=strict)
