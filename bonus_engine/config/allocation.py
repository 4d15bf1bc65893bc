"""Bonus pool and allocation rule configuration.

Ratio fields are left unconstrained on purpose so ``bonus_engine.validation``
can report every problem at once; allocation refuses to run on a pool or rule
with violations.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PoolStatus(str, Enum):
    DRAFT = "draft"
    ALLOCATED = "allocated"


class AllocationMethod(str, Enum):
    """Strategy used to turn a pool into per-employee amounts."""
    SCORE_BASED = "score_based"
    TIER_BASED = "tier_based"
    POOL_PERCENTAGE = "pool_percentage"
    FIXED_AMOUNT = "fixed_amount"
    HYBRID = "hybrid"


class ScoreDistributionMethod(str, Enum):
    """Curve mapping a final score to its share under score_based allocation."""
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    STEP = "step"


# =============================================================================
# Bonus Pool
# =============================================================================

class BonusPool(BaseModel):
    """Money available for one period.

    ``pool_amount`` defaults to ``total_amount * pool_ratio`` and
    ``distributable_amount`` to ``pool_amount * (1 - reserve_ratio - special_ratio)``.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    period: str
    total_amount: float
    pool_ratio: float = 1.0
    reserve_ratio: float = 0.0
    special_ratio: float = 0.0
    pool_amount: Optional[float] = None
    distributable_amount: Optional[float] = None
    status: PoolStatus = PoolStatus.DRAFT
    allocated_amount: float = 0.0
    allocated_count: int = 0

    @model_validator(mode="after")
    def _derive_amounts(self) -> "BonusPool":
        if self.pool_amount is None:
            self.pool_amount = self.total_amount * self.pool_ratio
        if self.distributable_amount is None:
            self.distributable_amount = self.pool_amount * (
                1 - self.reserve_ratio - self.special_ratio
            )
        return self

    @classmethod
    def from_totals(
        cls,
        pool_id: str,
        period: str,
        total_amount: float,
        *,
        pool_ratio: float = 1.0,
        reserve_ratio: float = 0.0,
        special_ratio: float = 0.0,
    ) -> "BonusPool":
        """Build a draft pool with derived pool and distributable amounts."""
        return cls(
            id=pool_id,
            period=period,
            total_amount=total_amount,
            pool_ratio=pool_ratio,
            reserve_ratio=reserve_ratio,
            special_ratio=special_ratio,
        )


# =============================================================================
# Allocation Rule
# =============================================================================

class TierDefinition(BaseModel):
    """A named score bracket with its own share of the pool."""
    model_config = ConfigDict(frozen=True)

    name: str
    min_score: float
    ratio: float
    description: Optional[str] = None


class SpecialRules(BaseModel):
    """Opt-in special coefficient adjustments."""
    model_config = ConfigDict(frozen=True)

    new_employee_reduction: bool = False
    excellent_employee_bonus: bool = False
    key_position_bonus: bool = False


class AllocationRule(BaseModel):
    """Versioned policy governing how a pool is split among eligible employees."""
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: Optional[str] = None
    version: int = 1

    allocation_method: AllocationMethod = AllocationMethod.SCORE_BASED
    score_distribution_method: ScoreDistributionMethod = ScoreDistributionMethod.LINEAR
    exponential_factor: float = 2.0
    fixed_amount: float = 10000.0

    base_allocation_ratio: float = 0.8
    performance_allocation_ratio: float = 0.2
    reserve_ratio: float = 0.05

    min_score_threshold: float = 0.0
    max_score_threshold: Optional[float] = None

    # Applicability filters; empty means "no restriction"
    business_lines: List[str] = Field(default_factory=list)
    departments: List[str] = Field(default_factory=list)
    position_levels: List[str] = Field(default_factory=list)

    tier_config: List[TierDefinition] = Field(default_factory=list)

    # Guard rails; relative ratios are multiples of the cohort average
    min_bonus_amount: Optional[float] = None
    max_bonus_amount: Optional[float] = None
    min_bonus_ratio: Optional[float] = None
    max_bonus_ratio: Optional[float] = None
    total_allocation_limit: float = 1.0

    # Values may be malformed; coefficient lookup falls back to 1.0
    position_level_weights: Dict[str, Any] = Field(default_factory=dict)
    department_weights: Dict[str, Any] = Field(default_factory=dict)

    special_rules: SpecialRules = Field(default_factory=SpecialRules)
    calculation_precision: int = Field(default=2, ge=0, le=6)
