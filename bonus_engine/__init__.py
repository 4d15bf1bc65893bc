"""
Bonus scoring and allocation engine.

Turns raw per-employee profit contribution, position value and performance
scores into ranked final scores, then distributes a bonus pool across the
eligible cohort under a configurable allocation rule.

Entry points:
- ScoringService: score_employee, batch_score_employees, recalculate_rankings
- AllocationService: allocate_pool, validate_pool, validate_rule, validate_result
"""

from _version import __version__

from .allocation.strategies import AllocationOptions
from .allocation_service import AllocationRun, AllocationService
from .batch import BatchError, BatchOutcome, BatchScoringOrchestrator
from .config import (
    AllocationMethod,
    AllocationRule,
    BonusPool,
    CalculationMethod,
    Dimension,
    EngineSettings,
    NormalizationMethod,
    ScoreDistributionMethod,
    TierDefinition,
    WeightConfig,
    load_engine_config,
)
from .exceptions import (
    AllocationValidationError,
    BonusEngineError,
    BudgetError,
    ConfigurationError,
    DataError,
    ErrorCategory,
)
from .memory_store import Dataset, load_dataset
from .models import AllocationResult, CalculationResult
from .service import ScoringService, TaskState, TaskStatus
from .validation import (
    validate_allocation_result,
    validate_calculation_result,
    validate_pool,
    validate_rule,
    validate_tiers,
    validate_weight_config,
)

__all__ = [
    "__version__",
    # Services
    "AllocationOptions",
    "AllocationRun",
    "AllocationService",
    "BatchError",
    "BatchOutcome",
    "BatchScoringOrchestrator",
    "ScoringService",
    "TaskState",
    "TaskStatus",
    # Configuration
    "AllocationMethod",
    "AllocationRule",
    "BonusPool",
    "CalculationMethod",
    "Dimension",
    "EngineSettings",
    "NormalizationMethod",
    "ScoreDistributionMethod",
    "TierDefinition",
    "WeightConfig",
    "load_engine_config",
    # Records
    "AllocationResult",
    "CalculationResult",
    "Dataset",
    "load_dataset",
    # Errors
    "AllocationValidationError",
    "BonusEngineError",
    "BudgetError",
    "ConfigurationError",
    "DataError",
    "ErrorCategory",
    # Validation
    "validate_allocation_result",
    "validate_calculation_result",
    "validate_pool",
    "validate_rule",
    "validate_tiers",
    "validate_weight_config",
]
