"""Pool allocation: eligibility, coefficients, strategies, constraints, summaries."""

from .coefficients import calculate_coefficients, lookup_weight, performance_coefficient, special_coefficient
from .constraints import ConstrainedAllocation, ConstraintEnforcer, budget_cap, enforce_constraints
from .eligibility import ineligibility_reason, select_eligible
from .strategies import (
    AllocationContext,
    AllocationOptions,
    AllocationStrategy,
    RawAllocation,
    dispatch,
    get_distribution,
    get_strategy,
    step_multiplier,
)
from .summary import AllocationSummary, generate_allocation_summary, gini_coefficient, iqr_outliers
from .tiers import assign_tier, normalize_tiers

__all__ = [
    "AllocationContext",
    "AllocationOptions",
    "AllocationStrategy",
    "AllocationSummary",
    "ConstrainedAllocation",
    "ConstraintEnforcer",
    "RawAllocation",
    "assign_tier",
    "budget_cap",
    "calculate_coefficients",
    "dispatch",
    "enforce_constraints",
    "generate_allocation_summary",
    "get_distribution",
    "get_strategy",
    "gini_coefficient",
    "ineligibility_reason",
    "iqr_outliers",
    "lookup_weight",
    "normalize_tiers",
    "performance_coefficient",
    "select_eligible",
    "special_coefficient",
    "step_multiplier",
]
