"""Budget cap and per-employee guard rails over raw allocations.

Passes, in order:

1. Budget cap: when base + performance across the cohort exceeds
   ``pool.total_amount * rule.total_allocation_limit``, scale every employee's
   base and performance amounts down proportionally. The per-employee delta is
   kept in ``budget_cap_delta``; it is already reflected in base/performance
   and therefore not added to ``adjustment_amount``.
2. Guard rails against the post-cap total: absolute min, relative min,
   absolute max, relative max. Relative guards are multiples of ``cap / n``.
   The delta from the pre-guard total goes into ``adjustment_amount``.
3. Reconciliation: if raised minimums pushed the cohort back over the cap,
   shrink employees not lifted by a minimum; if that cannot absorb the excess,
   shrink everyone. Reductions also land in ``adjustment_amount``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config.allocation import AllocationRule, BonusPool
from ..numeric import round_amount, round_amount_down, safe_parse
from .strategies import RawAllocation

logger = logging.getLogger(__name__)


@dataclass
class ConstrainedAllocation:
    raw: RawAllocation
    base_amount: float
    performance_amount: float
    adjustment_amount: float = 0.0
    min_amount_applied: bool = False
    max_amount_applied: bool = False
    original_calculated_amount: Optional[float] = None
    budget_cap_delta: float = 0.0

    @property
    def employee_id(self) -> str:
        return self.raw.employee_id

    @property
    def total_amount(self) -> float:
        return self.base_amount + self.performance_amount + self.adjustment_amount


def budget_cap(pool: BonusPool, rule: AllocationRule) -> float:
    return pool.total_amount * rule.total_allocation_limit


def _optional(raw) -> Optional[float]:
    if raw is None:
        return None
    parsed = safe_parse(raw, 0.0)
    return None if parsed.was_defaulted else parsed.value


class ConstraintEnforcer:
    """Applies the budget cap, guard rails and reconciliation to one cohort."""

    def __init__(self, pool: BonusPool, rule: AllocationRule, tolerance: float = 0.01):
        self.pool = pool
        self.rule = rule
        self.tolerance = tolerance
        self.precision = rule.calculation_precision
        self.cap = budget_cap(pool, rule)

    def enforce(self, allocations: Sequence[RawAllocation]) -> List[ConstrainedAllocation]:
        lines = [
            ConstrainedAllocation(raw=a, base_amount=a.base_amount, performance_amount=a.performance_amount)
            for a in allocations
        ]
        if not lines:
            return lines
        self._apply_budget_cap(lines)
        self._apply_guard_rails(lines)
        self._reconcile(lines)
        return lines

    def _apply_budget_cap(self, lines: List[ConstrainedAllocation]) -> None:
        total = sum(line.base_amount + line.performance_amount for line in lines)
        if total <= self.cap or total <= 0:
            return

        factor = max(self.cap, 0.0) / total
        logger.info(f"Raw allocation {total:.2f} exceeds cap {self.cap:.2f}; scaling by {factor:.6f}")
        for line in lines:
            before = line.base_amount + line.performance_amount
            line.base_amount = round_amount_down(line.base_amount * factor, self.precision)
            line.performance_amount = round_amount_down(line.performance_amount * factor, self.precision)
            line.budget_cap_delta = round_amount(
                line.base_amount + line.performance_amount - before, self.precision
            )

    def _apply_guard_rails(self, lines: List[ConstrainedAllocation]) -> None:
        rule = self.rule
        average = self.cap / len(lines)
        min_abs = _optional(rule.min_bonus_amount)
        min_rel = _optional(rule.min_bonus_ratio)
        max_abs = _optional(rule.max_bonus_amount)
        max_rel = _optional(rule.max_bonus_ratio)

        for line in lines:
            before = line.total_amount
            amount = before
            if min_abs is not None and amount < min_abs:
                amount = min_abs
                line.min_amount_applied = True
            if min_rel is not None and amount < average * min_rel:
                amount = average * min_rel
                line.min_amount_applied = True
            if max_abs is not None and amount > max_abs:
                amount = max_abs
                line.max_amount_applied = True
            if max_rel is not None and amount > average * max_rel:
                amount = average * max_rel
                line.max_amount_applied = True

            if amount != before:
                line.adjustment_amount = round_amount(
                    line.adjustment_amount + amount - before, self.precision
                )
                line.original_calculated_amount = round_amount(before, self.precision)

    def _reconcile(self, lines: List[ConstrainedAllocation]) -> None:
        total = sum(line.total_amount for line in lines)
        excess = total - self.cap
        if excess <= self.tolerance / 2:
            return

        flexible = [l for l in lines if not l.min_amount_applied and l.total_amount > 0]
        if sum(l.total_amount for l in flexible) < excess:
            flexible = [l for l in lines if l.total_amount > 0]
        available = sum(l.total_amount for l in flexible)
        if available <= 0:
            return

        factor = max(available - excess, 0.0) / available
        logger.warning(
            f"Guard rails pushed allocation to {total:.2f} over cap {self.cap:.2f}; "
            f"shrinking {len(flexible)} allocations by {factor:.6f}"
        )
        for line in flexible:
            before = line.total_amount
            target = round_amount_down(before * factor, self.precision)
            if line.original_calculated_amount is None:
                line.original_calculated_amount = round_amount(before, self.precision)
            line.adjustment_amount = round_amount(
                line.adjustment_amount + target - before, self.precision
            )


def enforce_constraints(
    allocations: Sequence[RawAllocation],
    pool: BonusPool,
    rule: AllocationRule,
    tolerance: float = 0.01,
) -> List[ConstrainedAllocation]:
    return ConstraintEnforcer(pool, rule, tolerance).enforce(allocations)
