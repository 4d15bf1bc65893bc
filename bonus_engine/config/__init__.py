"""Configuration package for the bonus engine.

Submodules:
- scoring: WeightConfig and the scoring method enums
- allocation: BonusPool, AllocationRule, tiers and special rules
- engine: runtime settings (batching, cache, tolerances, logging)
- loader: YAML loading with BONUS_ environment overrides
"""

from .allocation import (
    AllocationMethod,
    AllocationRule,
    BonusPool,
    PoolStatus,
    ScoreDistributionMethod,
    SpecialRules,
    TierDefinition,
)
from .engine import (
    BatchSettings,
    CacheSettings,
    EngineSettings,
    LoggingSettings,
    ToleranceSettings,
)
from .loader import load_engine_config
from .scoring import (
    AdjustmentSettings,
    CalculationMethod,
    Dimension,
    MainWeights,
    NormalizationMethod,
    SubWeights,
    WeightConfig,
)

__all__ = [
    # Scoring
    "AdjustmentSettings",
    "CalculationMethod",
    "Dimension",
    "MainWeights",
    "NormalizationMethod",
    "SubWeights",
    "WeightConfig",
    # Allocation
    "AllocationMethod",
    "AllocationRule",
    "BonusPool",
    "PoolStatus",
    "ScoreDistributionMethod",
    "SpecialRules",
    "TierDefinition",
    # Engine
    "BatchSettings",
    "CacheSettings",
    "EngineSettings",
    "LoggingSettings",
    "ToleranceSettings",
    "load_engine_config",
]
