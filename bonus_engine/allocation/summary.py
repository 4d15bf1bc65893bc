"""Distribution and fairness summary for an allocation run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from ..config.allocation import AllocationRule, BonusPool
from ..models import AllocationResult
from ..validation import validate_allocation_result


def gini_coefficient(amounts: Sequence[float]) -> float:
    """Gini coefficient of non-negative amounts; 0 for empty or all-zero input."""
    values = np.sort(np.asarray(amounts, dtype=float))
    n = values.size
    if n == 0 or values.sum() <= 0:
        return 0.0
    index = np.arange(1, n + 1)
    return float((2 * np.sum(index * values)) / (n * values.sum()) - (n + 1) / n)


def iqr_outliers(amounts: Sequence[float]) -> Dict[str, Any]:
    """Amounts outside [Q1 - 1.5 IQR, Q3 + 1.5 IQR]."""
    values = np.asarray(amounts, dtype=float)
    if values.size < 4:
        return {"lower_bound": None, "upper_bound": None, "indices": []}
    q1, q3 = np.percentile(values, [25, 75])
    iqr = q3 - q1
    lower, upper = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    indices = [int(i) for i in np.flatnonzero((values < lower) | (values > upper))]
    return {"lower_bound": float(lower), "upper_bound": float(upper), "indices": indices}


@dataclass
class AllocationSummary:
    employee_count: int = 0
    total_allocated: float = 0.0
    mean_amount: float = 0.0
    median_amount: float = 0.0
    min_amount: float = 0.0
    max_amount: float = 0.0
    std_dev: float = 0.0
    pool_amount: float = 0.0
    allocation_ratio: float = 0.0
    remaining_amount: float = 0.0
    gini_coefficient: float = 0.0
    variation_coefficient: float = 0.0
    min_guard_count: int = 0
    max_guard_count: int = 0
    by_department: List[Dict[str, Any]] = field(default_factory=list)
    by_tier: List[Dict[str, Any]] = field(default_factory=list)
    outliers: List[str] = field(default_factory=list)
    valid_results: int = 0
    invalid_results: int = 0
    violations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def allocations_frame(results: Sequence[AllocationResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "employee_id": r.employee_id,
                "name": r.snapshot.name,
                "department": r.snapshot.department_name or r.snapshot.department_id or "unknown",
                "tier": r.tier_level or "none",
                "final_score": r.final_score,
                "final_coeff": r.coefficients.final,
                "base_amount": r.base_amount,
                "performance_amount": r.performance_amount,
                "adjustment_amount": r.adjustment_amount,
                "total_amount": r.total_amount,
                "min_amount_applied": r.min_amount_applied,
                "max_amount_applied": r.max_amount_applied,
            }
            for r in results
        ]
    )


def _group_summary(frame: pd.DataFrame, column: str) -> List[Dict[str, Any]]:
    grouped = (
        frame.groupby(column)["total_amount"]
        .agg(["count", "sum", "mean"])
        .reset_index()
        .sort_values(column)
    )
    return [
        {
            column: row[column],
            "count": int(row["count"]),
            "total_amount": round(float(row["sum"]), 2),
            "mean_amount": round(float(row["mean"]), 2),
        }
        for _, row in grouped.iterrows()
    ]


def generate_allocation_summary(
    results: Sequence[AllocationResult], pool: BonusPool, rule: AllocationRule
) -> AllocationSummary:
    """Statistics, fairness metrics and validation roll-up for one run."""
    pool_amount = pool.total_amount * rule.total_allocation_limit
    if not results:
        return AllocationSummary(pool_amount=pool_amount, remaining_amount=pool_amount)

    frame = allocations_frame(results)
    amounts = frame["total_amount"]
    total = float(amounts.sum())
    mean = float(amounts.mean())
    std = float(amounts.std(ddof=0))

    violations: List[str] = []
    invalid = 0
    for result in results:
        found = validate_allocation_result(result)
        if found:
            invalid += 1
            violations.extend(f"{result.employee_id}: {v}" for v in found)

    outlier_indices = iqr_outliers(amounts.tolist())["indices"]

    return AllocationSummary(
        employee_count=len(results),
        total_allocated=round(total, 2),
        mean_amount=round(mean, 2),
        median_amount=round(float(amounts.median()), 2),
        min_amount=round(float(amounts.min()), 2),
        max_amount=round(float(amounts.max()), 2),
        std_dev=round(std, 2),
        pool_amount=round(pool_amount, 2),
        allocation_ratio=total / pool_amount if pool_amount > 0 else 0.0,
        remaining_amount=round(pool_amount - total, 2),
        gini_coefficient=gini_coefficient(amounts.tolist()),
        variation_coefficient=std / mean if mean > 0 else 0.0,
        min_guard_count=int(frame["min_amount_applied"].sum()),
        max_guard_count=int(frame["max_amount_applied"].sum()),
        by_department=_group_summary(frame, "department"),
        by_tier=_group_summary(frame, "tier"),
        outliers=[str(frame.iloc[i]["employee_id"]) for i in outlier_indices],
        valid_results=len(results) - invalid,
        invalid_results=invalid,
        violations=violations,
    )
