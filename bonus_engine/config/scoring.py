"""Weight configuration for three-dimensional scoring.

A ``WeightConfig`` is frozen: once a calculation result references it, edits
must be published as a new config id/version.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CalculationMethod(str, Enum):
    """How the three weighted dimension scores combine."""
    WEIGHTED_SUM = "weighted_sum"
    WEIGHTED_PRODUCT = "weighted_product"
    HYBRID = "hybrid"


class NormalizationMethod(str, Enum):
    """How a raw dimension score is placed relative to its population."""
    Z_SCORE = "z_score"
    MIN_MAX = "min_max"
    RANK_BASED = "rank_based"
    PERCENTILE = "percentile"


class Dimension(str, Enum):
    PROFIT_CONTRIBUTION = "profit_contribution"
    POSITION_VALUE = "position_value"
    PERFORMANCE = "performance"


# =============================================================================
# Weights
# =============================================================================

class MainWeights(BaseModel):
    """Top-level dimension weights; must sum to 1 within tolerance."""
    model_config = ConfigDict(frozen=True)

    profit_contribution: float = Field(default=0.4, ge=0, le=1)
    position_value: float = Field(default=0.3, ge=0, le=1)
    performance: float = Field(default=0.3, ge=0, le=1)

    def total(self) -> float:
        return self.profit_contribution + self.position_value + self.performance

    def for_dimension(self, dimension: Dimension) -> float:
        return getattr(self, dimension.value)


class ProfitSubWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    direct_contribution: float = Field(default=0.4, ge=0, le=1)
    workload: float = Field(default=0.3, ge=0, le=1)
    quality: float = Field(default=0.2, ge=0, le=1)
    position_value: float = Field(default=0.1, ge=0, le=1)


class PositionSubWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_complexity: float = Field(default=0.25, ge=0, le=1)
    responsibility: float = Field(default=0.25, ge=0, le=1)
    decision_impact: float = Field(default=0.2, ge=0, le=1)
    experience: float = Field(default=0.15, ge=0, le=1)
    market_value: float = Field(default=0.15, ge=0, le=1)


class PerformanceSubWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    work_output: float = Field(default=0.25, ge=0, le=1)
    work_quality: float = Field(default=0.2, ge=0, le=1)
    work_efficiency: float = Field(default=0.15, ge=0, le=1)
    collaboration: float = Field(default=0.15, ge=0, le=1)
    innovation: float = Field(default=0.1, ge=0, le=1)
    leadership: float = Field(default=0.1, ge=0, le=1)
    learning: float = Field(default=0.05, ge=0, le=1)


class SubWeights(BaseModel):
    """Per-dimension sub-weights, carried for audit alongside results."""
    model_config = ConfigDict(frozen=True)

    profit: ProfitSubWeights = Field(default_factory=ProfitSubWeights)
    position: PositionSubWeights = Field(default_factory=PositionSubWeights)
    performance: PerformanceSubWeights = Field(default_factory=PerformanceSubWeights)


class AdjustmentSettings(BaseModel):
    """Multiplicative adjustments applied after combination."""
    model_config = ConfigDict(frozen=True)

    excellence_bonus: float = Field(default=0.1, ge=0, le=1, description="Ratio added when the raw mean exceeds 0.9")
    performance_multiplier: float = Field(default=1.1, gt=0, le=5)
    position_level_multiplier: float = Field(default=1.2, gt=0, le=5, description="Multiplier for senior levels")


# =============================================================================
# Weight Config
# =============================================================================

class WeightConfig(BaseModel):
    """Versioned weights and method choices governing score combination."""
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str
    name: Optional[str] = None
    version: int = Field(default=1, ge=1)

    weights: MainWeights = Field(default_factory=MainWeights)
    sub_weights: SubWeights = Field(default_factory=SubWeights)

    calculation_method: CalculationMethod = CalculationMethod.WEIGHTED_SUM
    normalization_method: NormalizationMethod = NormalizationMethod.Z_SCORE
    adjustments: AdjustmentSettings = Field(default_factory=AdjustmentSettings)

    effective_from: Optional[date] = None
    effective_to: Optional[date] = None

    def is_effective(self, on: date) -> bool:
        """True when ``on`` falls inside the validity window (open ends allowed)."""
        if self.effective_from and on < self.effective_from:
            return False
        if self.effective_to and on > self.effective_to:
            return False
        return True

    def extract_weights(self) -> Dict[str, Dict[str, Any]]:
        """Main and sub-weights as plain dicts for result audit trails."""
        return {
            "main": self.weights.model_dump(),
            "profit": self.sub_weights.profit.model_dump(),
            "position": self.sub_weights.position.model_dump(),
            "performance": self.sub_weights.performance.model_dump(),
        }
