"""Domain records shared by scoring and allocation.

Directory records and calculation/allocation results are plain dataclasses;
configuration lives in ``bonus_engine.config`` as pydantic models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .config.scoring import Dimension

ACTIVE_STATUS = "active"


# =============================================================================
# Directory records
# =============================================================================

@dataclass(frozen=True)
class Department:
    id: str
    name: str


@dataclass(frozen=True)
class Position:
    id: str
    name: str
    level: Optional[str] = None


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    department_id: Optional[str] = None
    position_id: Optional[str] = None
    status: str = ACTIVE_STATUS
    hire_date: Optional[date] = None
    business_lines: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


@dataclass(frozen=True)
class EmployeeProfile:
    """An employee joined with their department and position."""
    employee: Employee
    department: Optional[Department] = None
    position: Optional[Position] = None

    @property
    def employee_id(self) -> str:
        return self.employee.id

    @property
    def department_id(self) -> Optional[str]:
        return self.employee.department_id

    @property
    def position_level(self) -> Optional[str]:
        if self.position and self.position.level:
            return self.position.level.strip().lower()
        return None

    def tenure_months(self, as_of: date) -> Optional[float]:
        """Whole-and-fractional months since hire, or None without a hire date."""
        if self.employee.hire_date is None:
            return None
        return (as_of - self.employee.hire_date).days / 30.0


# =============================================================================
# Scores
# =============================================================================

@dataclass(frozen=True)
class DimensionScore:
    """A raw dimension score plus the version of the source data behind it."""
    dimension: Dimension
    value: float
    source_version: Optional[str] = None


@dataclass(frozen=True)
class DimensionTriple:
    """One value per scoring dimension."""
    profit_contribution: float
    position_value: float
    performance: float

    def get(self, dimension: Dimension) -> float:
        return getattr(self, dimension.value)

    def as_tuple(self) -> tuple:
        return (self.profit_contribution, self.position_value, self.performance)

    def mean(self) -> float:
        return sum(self.as_tuple()) / 3.0

    @classmethod
    def from_mapping(cls, values: Dict[Dimension, float]) -> "DimensionTriple":
        return cls(
            profit_contribution=values[Dimension.PROFIT_CONTRIBUTION],
            position_value=values[Dimension.POSITION_VALUE],
            performance=values[Dimension.PERFORMANCE],
        )


@dataclass
class CalculationResult:
    """Scoring output keyed by (employee_id, period, weight_config_id).

    Rank fields stay None until the ranking pass writes them.
    """
    employee_id: str
    period: str
    weight_config_id: str
    raw_scores: DimensionTriple
    normalized_scores: DimensionTriple
    weighted_scores: DimensionTriple
    total_score: float
    adjusted_score: float
    final_score: float
    department_id: Optional[str] = None
    position_level: Optional[str] = None
    score_rank: Optional[int] = None
    percentile_rank: Optional[float] = None
    department_rank: Optional[int] = None
    level_rank: Optional[int] = None
    source_versions: Dict[str, Optional[str]] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)
    calculated_at: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> tuple:
        return (self.employee_id, self.period, self.weight_config_id)

    @property
    def is_ranked(self) -> bool:
        return self.score_rank is not None

    def clear_ranks(self) -> None:
        self.score_rank = None
        self.percentile_rank = None
        self.department_rank = None
        self.level_rank = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["calculated_at"] = self.calculated_at.isoformat()
        return data


@dataclass(frozen=True)
class EligibleEmployee:
    """A scored employee that passed the rule's eligibility filters."""
    profile: EmployeeProfile
    calculation: CalculationResult
    tenure_months: Optional[float] = None

    @property
    def employee_id(self) -> str:
        return self.profile.employee_id

    @property
    def final_score(self) -> float:
        return self.calculation.final_score

    @property
    def performance_score(self) -> float:
        return self.calculation.raw_scores.performance


# =============================================================================
# Allocation
# =============================================================================

@dataclass(frozen=True)
class CoefficientSet:
    base: float = 1.0
    performance: float = 1.0
    position: float = 1.0
    department: float = 1.0
    special: float = 1.0
    final: float = 1.0
    defaulted: tuple = ()


@dataclass(frozen=True)
class EmployeeSnapshot:
    """Employee attributes frozen at allocation time."""
    name: str
    department_id: Optional[str]
    department_name: Optional[str]
    position_name: Optional[str]
    position_level: Optional[str]

    @classmethod
    def from_profile(cls, profile: EmployeeProfile) -> "EmployeeSnapshot":
        return cls(
            name=profile.employee.name,
            department_id=profile.department_id,
            department_name=profile.department.name if profile.department else None,
            position_name=profile.position.name if profile.position else None,
            position_level=profile.position_level,
        )


@dataclass(frozen=True)
class AllocationResult:
    """One employee's bonus for one (pool, rule) run. Never mutated."""
    employee_id: str
    pool_id: str
    rule_id: str
    period: str
    allocation_method: str
    original_score: float
    final_score: float
    coefficients: CoefficientSet
    base_amount: float
    performance_amount: float
    adjustment_amount: float
    total_amount: float
    snapshot: EmployeeSnapshot
    min_amount_applied: bool = False
    max_amount_applied: bool = False
    original_calculated_amount: Optional[float] = None
    budget_cap_delta: float = 0.0
    tier_level: Optional[str] = None
    run_id: Optional[str] = None
    calculated_at: datetime = field(default_factory=datetime.now)

    @property
    def final_coeff(self) -> float:
        return self.coefficients.final

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["calculated_at"] = self.calculated_at.isoformat()
        return data
