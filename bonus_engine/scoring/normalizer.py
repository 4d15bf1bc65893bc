"""Population-relative normalization of raw dimension scores.

Every normalizer is a pure function of ``(value, population)``. An empty
population is treated as ``[value]`` so single-employee scoring stays defined.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Union

import numpy as np

from ..config.scoring import NormalizationMethod
from ..exceptions import UnsupportedMethodError

logger = logging.getLogger(__name__)


def _as_population(value: float, population: Sequence[float]) -> np.ndarray:
    values = np.asarray([p for p in population if p is not None], dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return np.asarray([value], dtype=float)
    return values


class Normalizer(ABC):
    """Strategy interface for one normalization method."""

    method: NormalizationMethod

    @abstractmethod
    def normalize(self, value: float, population: Sequence[float]) -> float:
        """Return ``value`` normalized against ``population``."""


class ZScoreNormalizer(Normalizer):
    """(value - mean) / population std; 0 when the population has no spread."""

    method = NormalizationMethod.Z_SCORE

    def normalize(self, value: float, population: Sequence[float]) -> float:
        values = _as_population(value, population)
        std = float(np.std(values))
        if std == 0:
            return 0.0
        return float((value - float(np.mean(values))) / std)


class MinMaxNormalizer(Normalizer):
    """(value - min) / (max - min); 0.5 when every value is equal."""

    method = NormalizationMethod.MIN_MAX

    def normalize(self, value: float, population: Sequence[float]) -> float:
        values = _as_population(value, population)
        lo, hi = float(values.min()), float(values.max())
        if hi == lo:
            return 0.5
        return (value - lo) / (hi - lo)


class RankBasedNormalizer(Normalizer):
    """1 - (descending_rank - 1) / N, ties sharing the best rank."""

    method = NormalizationMethod.RANK_BASED

    def normalize(self, value: float, population: Sequence[float]) -> float:
        values = _as_population(value, population)
        rank = 1 + int(np.count_nonzero(values > value))
        return 1.0 - (rank - 1) / values.size


class PercentileNormalizer(Normalizer):
    """Fraction of the population at or below ``value``."""

    method = NormalizationMethod.PERCENTILE

    def normalize(self, value: float, population: Sequence[float]) -> float:
        values = _as_population(value, population)
        return int(np.count_nonzero(values <= value)) / values.size


_NORMALIZERS: Dict[NormalizationMethod, Normalizer] = {
    n.method: n
    for n in (
        ZScoreNormalizer(),
        MinMaxNormalizer(),
        RankBasedNormalizer(),
        PercentileNormalizer(),
    )
}


def get_normalizer(method: Union[NormalizationMethod, str]) -> Normalizer:
    """Look up the normalizer for ``method``.

    Raises:
        UnsupportedMethodError: if no normalizer is registered for ``method``
    """
    try:
        return _NORMALIZERS[NormalizationMethod(method)]
    except (ValueError, KeyError):
        raise UnsupportedMethodError(
            "normalization method", method, [m.value for m in _NORMALIZERS]
        ) from None


def normalize(
    value: float,
    population: Sequence[float],
    method: Union[NormalizationMethod, str] = NormalizationMethod.Z_SCORE,
) -> float:
    return get_normalizer(method).normalize(value, population)
