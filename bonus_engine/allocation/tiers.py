"""Tier normalization and assignment."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..config.allocation import TierDefinition

logger = logging.getLogger(__name__)


def normalize_tiers(tiers: Sequence[TierDefinition], tolerance: float = 0.01) -> List[TierDefinition]:
    """Rescale tier ratios to sum to 1 when they are outside ``tolerance``.

    Ratios already within tolerance are returned untouched. The input is never
    mutated; rescaled tiers are new objects.
    """
    tiers = list(tiers)
    total = sum(t.ratio for t in tiers)
    if not tiers or total <= 0 or abs(total - 1.0) <= tolerance:
        return tiers

    logger.warning(f"Tier ratios sum to {total:.4f}; normalizing to 1.0")
    return [t.model_copy(update={"ratio": t.ratio / total}) for t in tiers]


def sort_tiers(tiers: Sequence[TierDefinition]) -> List[TierDefinition]:
    """Highest min_score first."""
    return sorted(tiers, key=lambda t: t.min_score, reverse=True)


def assign_tier(score: float, tiers: Sequence[TierDefinition]) -> Optional[TierDefinition]:
    """Highest tier whose min_score the score meets; else the lowest tier.

    Returns None only when there are no tiers.
    """
    ordered = sort_tiers(tiers)
    if not ordered:
        return None
    for tier in ordered:
        if score >= tier.min_score:
            return tier
    return ordered[-1]
