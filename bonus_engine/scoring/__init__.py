"""Three-dimensional scoring: normalize, combine, adjust, rank."""

from .adjustment import AdjustmentBreakdown, apply_adjustments, level_multiplier
from .combiner import Combination, Combiner, apply_weights, get_combiner
from .normalizer import Normalizer, get_normalizer, normalize
from .ranking import rank_results
from .statistics import ScoreStatistics, calculate_statistics, results_frame

__all__ = [
    "AdjustmentBreakdown",
    "Combination",
    "Combiner",
    "Normalizer",
    "ScoreStatistics",
    "apply_adjustments",
    "apply_weights",
    "calculate_statistics",
    "get_combiner",
    "get_normalizer",
    "level_multiplier",
    "normalize",
    "rank_results",
    "results_frame",
]
