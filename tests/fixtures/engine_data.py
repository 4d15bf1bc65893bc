"""Record factories and in-memory datasets for scoring and allocation tests."""

from __future__ import annotations

import copy
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import pytest
import yaml

from bonus_engine.allocation_service import AllocationService
from bonus_engine.config import AllocationRule, BonusPool, EngineSettings
from bonus_engine.memory_store import Dataset, build_dataset
from bonus_engine.models import (
    CalculationResult,
    Department,
    DimensionTriple,
    EligibleEmployee,
    Employee,
    EmployeeProfile,
    Position,
)
from bonus_engine.service import ScoringService

AS_OF = date(2024, 12, 31)


def make_profile(
    employee_id: str,
    *,
    department_id: Optional[str] = "sales",
    level: Optional[str] = None,
    status: str = "active",
    hire_date: Optional[date] = None,
    business_lines=(),
) -> EmployeeProfile:
    """Directory profile with an optional department and leveled position."""
    employee = Employee(
        id=employee_id,
        name=f"Employee {employee_id}",
        department_id=department_id,
        position_id=f"pos-{level}" if level else None,
        status=status,
        hire_date=hire_date,
        business_lines=list(business_lines),
    )
    department = Department(id=department_id, name=department_id.title()) if department_id else None
    position = Position(id=f"pos-{level}", name=f"{level} role", level=level) if level else None
    return EmployeeProfile(employee=employee, department=department, position=position)


def make_calculation(
    employee_id: str,
    final_score: float,
    *,
    performance: float = 0.5,
    period: str = "2024",
    weight_config_id: str = "wc-test",
    department_id: Optional[str] = "sales",
    level: Optional[str] = None,
) -> CalculationResult:
    """Calculation result whose scores are all ``final_score`` except raw performance."""
    raw = DimensionTriple(final_score, final_score, performance)
    return CalculationResult(
        employee_id=employee_id,
        period=period,
        weight_config_id=weight_config_id,
        raw_scores=raw,
        normalized_scores=raw,
        weighted_scores=raw,
        total_score=final_score,
        adjusted_score=final_score,
        final_score=final_score,
        department_id=department_id,
        position_level=level,
    )


def make_eligible(
    employee_id: str,
    final_score: float,
    *,
    performance: float = 0.5,
    level: Optional[str] = None,
    department_id: Optional[str] = "sales",
    tenure_months: Optional[float] = None,
) -> EligibleEmployee:
    return EligibleEmployee(
        profile=make_profile(employee_id, department_id=department_id, level=level),
        calculation=make_calculation(
            employee_id, final_score, performance=performance, department_id=department_id, level=level
        ),
        tenure_months=tenure_months,
    )


@pytest.fixture
def pool_100k() -> BonusPool:
    return BonusPool.from_totals("pool-test", "2024", 100_000)


@pytest.fixture
def score_rule() -> AllocationRule:
    """Linear score-based rule with no reserve and no guard rails."""
    return AllocationRule(id="rule-linear", reserve_ratio=0.0)


@pytest.fixture
def equal_tier_rule() -> AllocationRule:
    return AllocationRule(
        id="rule-tiers",
        allocation_method="tier_based",
        reserve_ratio=0.0,
        tier_config=[
            {"name": "top", "min_score": 0.7, "ratio": 0.6},
            {"name": "rest", "min_score": 0.0, "ratio": 0.4},
        ],
    )


_SAMPLE_DATASET: Dict = {
    "period": "2024",
    "departments": [
        {"id": "sales", "name": "Sales"},
        {"id": "engineering", "name": "Engineering"},
    ],
    "positions": [
        {"id": "lead", "name": "Lead", "level": "senior"},
        {"id": "ic", "name": "Individual Contributor", "level": "middle"},
        {"id": "assoc", "name": "Associate", "level": "junior"},
    ],
    "employees": [
        {"id": "E1", "name": "Ada", "department_id": "sales", "position_id": "lead", "hire_date": "2015-01-01"},
        {"id": "E2", "name": "Ben", "department_id": "sales", "position_id": "ic", "hire_date": "2019-06-01"},
        {"id": "E3", "name": "Cai", "department_id": "engineering", "position_id": "ic", "hire_date": "2020-03-01"},
        {"id": "E4", "name": "Dee", "department_id": "engineering", "position_id": "assoc", "hire_date": "2022-09-01"},
        {"id": "E5", "name": "Eli", "department_id": "engineering", "position_id": "lead", "hire_date": "2017-11-01"},
    ],
    "scores": [
        {"employee_id": "E1", "profit_contribution": 0.9, "position_value": 0.8, "performance": 0.85, "source_version": "v1"},
        {"employee_id": "E2", "profit_contribution": 0.7, "position_value": 0.6, "performance": 0.65, "source_version": "v1"},
        {"employee_id": "E3", "profit_contribution": 0.6, "position_value": 0.7, "performance": 0.75, "source_version": "v1"},
        {"employee_id": "E4", "profit_contribution": 0.3, "position_value": 0.4, "performance": 0.35, "source_version": "v1"},
        {"employee_id": "E5", "profit_contribution": 0.8, "position_value": 0.9, "performance": 0.7, "source_version": "v1"},
    ],
    "weight_configs": [
        {
            "id": "wc-test",
            "weights": {"profit_contribution": 0.4, "position_value": 0.3, "performance": 0.3},
            "calculation_method": "weighted_sum",
            "normalization_method": "percentile",
        }
    ],
    "pools": [{"id": "pool-2024", "period": "2024", "total_amount": 100000}],
    "rules": [
        {"id": "rule-linear", "allocation_method": "score_based", "reserve_ratio": 0.05},
        {
            "id": "rule-tiers",
            "allocation_method": "tier_based",
            "reserve_ratio": 0.0,
            "tier_config": [
                {"name": "top", "min_score": 0.5, "ratio": 0.7},
                {"name": "rest", "min_score": 0.0, "ratio": 0.5},
            ],
        },
    ],
}


@pytest.fixture
def sample_dataset_dict() -> Dict:
    """A fresh deep copy of the five-employee dataset mapping."""
    return copy.deepcopy(_SAMPLE_DATASET)


@pytest.fixture
def sample_dataset(sample_dataset_dict) -> Dataset:
    return build_dataset(sample_dataset_dict)


@pytest.fixture
def services(sample_dataset):
    """(scoring, allocation) services over the sample dataset with two-employee batches."""
    settings = EngineSettings(batch={"batch_size": 2, "max_workers": 2})
    scoring = ScoringService(
        directory=sample_dataset.directory,
        providers=sample_dataset.providers,
        config_store=sample_dataset.config_store,
        result_store=sample_dataset.result_store,
        settings=settings,
    )
    allocation = AllocationService(
        directory=sample_dataset.directory,
        config_store=sample_dataset.config_store,
        result_store=sample_dataset.result_store,
        settings=settings,
    )
    yield scoring, allocation
    scoring.shutdown()


@pytest.fixture
def dataset_file(tmp_path: Path, sample_dataset_dict) -> Path:
    path = tmp_path / "dataset.yaml"
    path.write_text(yaml.safe_dump(sample_dataset_dict, sort_keys=False))
    return path
