"""Summary statistics over a period's calculation results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable

import pandas as pd

from ..models import CalculationResult


@dataclass
class ScoreStatistics:
    count: int = 0
    mean_score: float = 0.0
    max_score: float = 0.0
    min_score: float = 0.0
    std_dev: float = 0.0
    dimension_means: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def results_frame(results: Iterable[CalculationResult]) -> pd.DataFrame:
    """Flatten results into one row per employee."""
    rows = [
        {
            "employee_id": r.employee_id,
            "department_id": r.department_id,
            "position_level": r.position_level,
            "profit_contribution": r.raw_scores.profit_contribution,
            "position_value": r.raw_scores.position_value,
            "performance": r.raw_scores.performance,
            "total_score": r.total_score,
            "final_score": r.final_score,
            "score_rank": r.score_rank,
            "percentile_rank": r.percentile_rank,
        }
        for r in results
    ]
    return pd.DataFrame(rows)


def calculate_statistics(results: Iterable[CalculationResult]) -> ScoreStatistics:
    """Count, mean, extremes and population std of final scores, plus raw dimension means."""
    frame = results_frame(results)
    if frame.empty:
        return ScoreStatistics()

    scores = frame["final_score"]
    return ScoreStatistics(
        count=int(len(frame)),
        mean_score=float(scores.mean()),
        max_score=float(scores.max()),
        min_score=float(scores.min()),
        std_dev=float(scores.std(ddof=0)),
        dimension_means={
            column: float(frame[column].mean())
            for column in ("profit_contribution", "position_value", "performance")
        },
    )
