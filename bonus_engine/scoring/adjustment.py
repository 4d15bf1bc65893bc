"""Multiplicative score adjustments.

Order is fixed and recorded step by step for audit:
excellence bonus, performance multiplier, position-level multiplier, floor at 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config.scoring import AdjustmentSettings
from ..models import DimensionTriple

EXCELLENCE_THRESHOLD = 0.9
HIGH_PERFORMANCE_THRESHOLD = 0.8
MIDDLE_LEVEL_MULTIPLIER = 1.0
JUNIOR_LEVEL_MULTIPLIER = 0.8


@dataclass
class AdjustmentBreakdown:
    composite_score: float
    final_score: float
    steps: List[Tuple[str, float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "composite_score": self.composite_score,
            "final_score": self.final_score,
            "steps": [{"adjustment": name, "factor": factor} for name, factor in self.steps],
        }


def level_multiplier(level: Optional[str], settings: AdjustmentSettings) -> float:
    """senior -> configured multiplier, middle -> 1.0, junior -> 0.8, other -> 1.0."""
    normalized = (level or "").strip().lower()
    if normalized == "senior":
        return settings.position_level_multiplier
    if normalized == "middle":
        return MIDDLE_LEVEL_MULTIPLIER
    if normalized == "junior":
        return JUNIOR_LEVEL_MULTIPLIER
    return 1.0


def apply_adjustments(
    composite_score: float,
    raw_scores: DimensionTriple,
    position_level: Optional[str],
    settings: AdjustmentSettings,
) -> AdjustmentBreakdown:
    score = composite_score
    steps: List[Tuple[str, float]] = []

    if raw_scores.mean() > EXCELLENCE_THRESHOLD:
        factor = 1 + settings.excellence_bonus
        score *= factor
        steps.append(("excellence_bonus", factor))

    if raw_scores.performance > HIGH_PERFORMANCE_THRESHOLD:
        score *= settings.performance_multiplier
        steps.append(("performance_multiplier", settings.performance_multiplier))

    if position_level:
        factor = level_multiplier(position_level, settings)
        score *= factor
        steps.append(("position_level_multiplier", factor))

    final = max(0.0, score)
    if final != score:
        steps.append(("floor", 0.0))
    return AdjustmentBreakdown(composite_score=composite_score, final_score=final, steps=steps)
