"""Allocation strategies: pool + rule + eligible cohort -> raw base/performance amounts.

One strategy object per ``AllocationMethod``, selected once per allocation call
through ``get_strategy``. Score-based allocation further selects one
``ScoreDistribution`` curve per call.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from ..config.allocation import (
    AllocationMethod,
    AllocationRule,
    BonusPool,
    ScoreDistributionMethod,
    TierDefinition,
)
from ..exceptions import (
    EmptyEligibleSetError,
    InsufficientBudgetError,
    MissingTierConfigError,
    UnsupportedMethodError,
)
from ..models import CoefficientSet, EligibleEmployee
from ..numeric import round_amount, safe_parse
from .coefficients import calculate_coefficients
from .tiers import assign_tier, normalize_tiers

logger = logging.getLogger(__name__)

DEFAULT_EXPONENTIAL_FACTOR = 2.0
DEFAULT_FIXED_AMOUNT = 10000.0

# (exclusive upper bound on the share of the cohort ranked ahead, multiplier)
STEP_BUCKETS = ((0.1, 2.0), (0.3, 1.5), (0.6, 1.0), (0.8, 0.8))
STEP_BOTTOM_MULTIPLIER = 0.6

HYBRID_SHARES = {
    AllocationMethod.SCORE_BASED: 0.5,
    AllocationMethod.TIER_BASED: 0.3,
    AllocationMethod.POOL_PERCENTAGE: 0.2,
}


@dataclass(frozen=True)
class AllocationOptions:
    """Per-call allocation switches."""
    simulate: bool = False
    fixed_amount: Optional[float] = None
    exponential_factor: Optional[float] = None
    weight_config_id: Optional[str] = None
    as_of: Optional[date] = None


@dataclass
class RawAllocation:
    """Dispatcher output for one employee, before constraints."""
    employee: EligibleEmployee
    coefficients: CoefficientSet
    base_amount: float
    performance_amount: float
    tier_level: Optional[str] = None

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id

    @property
    def total(self) -> float:
        return self.base_amount + self.performance_amount


@dataclass
class AllocationContext:
    pool: BonusPool
    rule: AllocationRule
    available_amount: float
    options: AllocationOptions = field(default_factory=AllocationOptions)
    tiers: List[TierDefinition] = field(default_factory=list)
    coefficients: Dict[str, CoefficientSet] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        pool: BonusPool,
        rule: AllocationRule,
        employees: Sequence[EligibleEmployee],
        options: Optional[AllocationOptions] = None,
    ) -> "AllocationContext":
        """Compute the available amount and per-employee coefficients.

        Raises:
            InsufficientBudgetError: available amount is not positive
            EmptyEligibleSetError: no eligible employees
        """
        available = pool.total_amount * (1 - rule.reserve_ratio)
        if not math.isfinite(available) or available <= 0:
            raise InsufficientBudgetError(available if math.isfinite(available) else 0.0)
        if not employees:
            raise EmptyEligibleSetError(pool.period)
        return cls(
            pool=pool,
            rule=rule,
            available_amount=available,
            options=options or AllocationOptions(),
            tiers=normalize_tiers(rule.tier_config),
            coefficients={e.employee_id: calculate_coefficients(e, rule) for e in employees},
        )

    @property
    def precision(self) -> int:
        return self.rule.calculation_precision


# =============================================================================
# Score distribution curves
# =============================================================================

class ScoreDistribution(ABC):
    method: ScoreDistributionMethod

    @abstractmethod
    def shares(self, employees: Sequence[EligibleEmployee], context: AllocationContext) -> List[float]:
        """Fraction of each allocation ratio that goes to each employee."""


def _proportional(weights: Sequence[float]) -> List[float]:
    total = sum(weights)
    if total <= 0 or not math.isfinite(total):
        return [0.0 for _ in weights]
    return [w / total for w in weights]


class LinearDistribution(ScoreDistribution):
    method = ScoreDistributionMethod.LINEAR

    def shares(self, employees, context):
        return _proportional([e.final_score for e in employees])


class ExponentialDistribution(ScoreDistribution):
    method = ScoreDistributionMethod.EXPONENTIAL

    def shares(self, employees, context):
        raw_factor = context.options.exponential_factor
        if raw_factor is None:
            raw_factor = context.rule.exponential_factor
        k = safe_parse(raw_factor, DEFAULT_EXPONENTIAL_FACTOR, positive=True).value
        return _proportional([e.final_score ** k for e in employees])


class LogarithmicDistribution(ScoreDistribution):
    method = ScoreDistributionMethod.LOGARITHMIC

    def shares(self, employees, context):
        return _proportional([math.log(e.final_score + 1) for e in employees])


def step_multiplier(rank: int, cohort_size: int) -> float:
    """Bucket multiplier for a 1-based rank within a cohort.

    The top rank is always in the first bucket, whatever the cohort size.
    """
    ahead = (rank - 1) / cohort_size
    for upper, multiplier in STEP_BUCKETS:
        if ahead < upper:
            return multiplier
    return STEP_BOTTOM_MULTIPLIER


class StepDistribution(ScoreDistribution):
    """Linear share times a rank-bucket multiplier; shares may exceed 1 in total."""

    method = ScoreDistributionMethod.STEP

    def shares(self, employees, context):
        linear = _proportional([e.final_score for e in employees])
        ordered = sorted(employees, key=lambda e: (-e.final_score, e.employee_id))
        ranks = {e.employee_id: i + 1 for i, e in enumerate(ordered)}
        n = len(employees)
        return [
            share * step_multiplier(ranks[e.employee_id], n)
            for e, share in zip(employees, linear)
        ]


_DISTRIBUTIONS: Dict[ScoreDistributionMethod, ScoreDistribution] = {
    d.method: d
    for d in (LinearDistribution(), ExponentialDistribution(), LogarithmicDistribution(), StepDistribution())
}


def get_distribution(method: Union[ScoreDistributionMethod, str]) -> ScoreDistribution:
    try:
        return _DISTRIBUTIONS[ScoreDistributionMethod(method)]
    except (ValueError, KeyError):
        raise UnsupportedMethodError(
            "score distribution method", method, [m.value for m in _DISTRIBUTIONS]
        ) from None


# =============================================================================
# Allocation strategies
# =============================================================================

class AllocationStrategy(ABC):
    """Base strategy: compute a pre-coefficient amount per employee, then split.

    Subclasses return the amount each employee would receive before the
    base/performance split and before coefficients are applied.
    """

    method: AllocationMethod

    @abstractmethod
    def gross_amounts(
        self, employees: Sequence[EligibleEmployee], context: AllocationContext
    ) -> Dict[str, float]:
        """Amount per employee id before ratio split and coefficients."""

    def tier_levels(
        self, employees: Sequence[EligibleEmployee], context: AllocationContext
    ) -> Dict[str, Optional[str]]:
        return {}

    def allocate(
        self, employees: Sequence[EligibleEmployee], context: AllocationContext
    ) -> List[RawAllocation]:
        gross = self.gross_amounts(employees, context)
        tiers = self.tier_levels(employees, context)
        rule = context.rule
        allocations = []
        for employee in employees:
            coefficients = context.coefficients[employee.employee_id]
            amount = gross.get(employee.employee_id, 0.0)
            allocations.append(
                RawAllocation(
                    employee=employee,
                    coefficients=coefficients,
                    base_amount=_finish(amount * rule.base_allocation_ratio * coefficients.final, context),
                    performance_amount=_finish(
                        amount * rule.performance_allocation_ratio * coefficients.final, context
                    ),
                    tier_level=tiers.get(employee.employee_id),
                )
            )
        return allocations


def _finish(amount: float, context: AllocationContext) -> float:
    return round_amount(max(0.0, amount), context.precision)


class ScoreBasedStrategy(AllocationStrategy):
    method = AllocationMethod.SCORE_BASED

    def gross_amounts(self, employees, context):
        distribution = get_distribution(context.rule.score_distribution_method)
        shares = distribution.shares(employees, context)
        return {
            e.employee_id: context.available_amount * share
            for e, share in zip(employees, shares)
        }


class TierBasedStrategy(AllocationStrategy):
    """Each tier's share of the pool is split evenly among its members."""

    method = AllocationMethod.TIER_BASED

    def _assignments(self, employees, context) -> Dict[str, Optional[TierDefinition]]:
        return {e.employee_id: assign_tier(e.final_score, context.tiers) for e in employees}

    def gross_amounts(self, employees, context):
        if not context.tiers:
            raise MissingTierConfigError(context.rule.id)
        assignments = self._assignments(employees, context)
        members: Dict[str, int] = {}
        for tier in assignments.values():
            members[tier.name] = members.get(tier.name, 0) + 1
        return {
            employee_id: context.available_amount * tier.ratio / members[tier.name]
            for employee_id, tier in assignments.items()
        }

    def tier_levels(self, employees, context):
        return {
            employee_id: tier.name if tier else None
            for employee_id, tier in self._assignments(employees, context).items()
        }


class PoolPercentageStrategy(AllocationStrategy):
    method = AllocationMethod.POOL_PERCENTAGE

    def gross_amounts(self, employees, context):
        share = context.available_amount / len(employees)
        return {e.employee_id: share for e in employees}


class FixedAmountStrategy(AllocationStrategy):
    method = AllocationMethod.FIXED_AMOUNT

    def gross_amounts(self, employees, context):
        raw = context.options.fixed_amount
        if raw is None:
            raw = context.rule.fixed_amount
        amount = safe_parse(raw, DEFAULT_FIXED_AMOUNT).value
        return {e.employee_id: amount for e in employees}


class HybridStrategy(AllocationStrategy):
    """Blend of score-based, tier-based and pool-percentage totals.

    Component totals already include coefficients, so the blended amount is
    only re-split by the rule ratios.
    """

    method = AllocationMethod.HYBRID

    def _component_totals(self, employees, context) -> Dict[AllocationMethod, Dict[str, float]]:
        if not context.tiers:
            raise MissingTierConfigError(context.rule.id)
        totals: Dict[AllocationMethod, Dict[str, float]] = {}
        for method in HYBRID_SHARES:
            allocations = _STRATEGIES[method].allocate(employees, context)
            totals[method] = {a.employee_id: a.total for a in allocations}
        return totals

    def gross_amounts(self, employees, context):
        totals = self._component_totals(employees, context)
        return {
            e.employee_id: sum(
                share * totals[method].get(e.employee_id, 0.0)
                for method, share in HYBRID_SHARES.items()
            )
            for e in employees
        }

    def tier_levels(self, employees, context):
        return _STRATEGIES[AllocationMethod.TIER_BASED].tier_levels(employees, context)

    def allocate(self, employees, context):
        gross = self.gross_amounts(employees, context)
        tiers = self.tier_levels(employees, context)
        rule = context.rule
        return [
            RawAllocation(
                employee=e,
                coefficients=context.coefficients[e.employee_id],
                base_amount=_finish(gross[e.employee_id] * rule.base_allocation_ratio, context),
                performance_amount=_finish(gross[e.employee_id] * rule.performance_allocation_ratio, context),
                tier_level=tiers.get(e.employee_id),
            )
            for e in employees
        ]


_STRATEGIES: Dict[AllocationMethod, AllocationStrategy] = {
    s.method: s
    for s in (
        ScoreBasedStrategy(),
        TierBasedStrategy(),
        PoolPercentageStrategy(),
        FixedAmountStrategy(),
        HybridStrategy(),
    )
}


def get_strategy(method: Union[AllocationMethod, str]) -> AllocationStrategy:
    """Look up the strategy for ``method``.

    Raises:
        UnsupportedMethodError: if ``method`` is not a known allocation method
    """
    try:
        return _STRATEGIES[AllocationMethod(method)]
    except (ValueError, KeyError):
        raise UnsupportedMethodError(
            "allocation method", method, [m.value for m in _STRATEGIES]
        ) from None


def dispatch(
    pool: BonusPool,
    rule: AllocationRule,
    employees: Sequence[EligibleEmployee],
    options: Optional[AllocationOptions] = None,
) -> List[RawAllocation]:
    """Select the rule's strategy once and produce raw allocations."""
    strategy = get_strategy(rule.allocation_method)
    context = AllocationContext.build(pool, rule, employees, options)
    logger.info(
        f"Allocating {context.available_amount:.2f} across {len(employees)} employees "
        f"using {strategy.method.value}"
    )
    return strategy.allocate(employees, context)
