"""Combination of three weighted dimension scores into one composite."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Sequence, Union

from ..config.scoring import CalculationMethod, MainWeights
from ..exceptions import UnsupportedMethodError
from ..models import DimensionTriple

HYBRID_SUM_SHARE = 0.7
HYBRID_PRODUCT_SHARE = 0.3
HYBRID_PRODUCT_EXPONENTS = (1 / 3, 1 / 3, 1 / 3)


@dataclass(frozen=True)
class Combination:
    weighted: DimensionTriple
    total_score: float


def apply_weights(normalized: DimensionTriple, weights: MainWeights) -> DimensionTriple:
    return DimensionTriple(
        profit_contribution=normalized.profit_contribution * weights.profit_contribution,
        position_value=normalized.position_value * weights.position_value,
        performance=normalized.performance * weights.performance,
    )


def _weighted_sum(weighted: DimensionTriple) -> float:
    return sum(weighted.as_tuple())


def _weighted_product(weighted: DimensionTriple, exponents: Sequence[float]) -> float:
    product = 1.0
    for term, exponent in zip(weighted.as_tuple(), exponents):
        # z-scores can push a term below -1; a negative base has no real power
        product *= max(term + 1.0, 0.0) ** exponent
    return product - 1.0


class Combiner(ABC):
    """Strategy interface for one calculation method."""

    method: CalculationMethod

    def combine(self, normalized: DimensionTriple, weights: MainWeights) -> Combination:
        weighted = apply_weights(normalized, weights)
        return Combination(weighted=weighted, total_score=self.total(weighted, weights))

    @abstractmethod
    def total(self, weighted: DimensionTriple, weights: MainWeights) -> float:
        """Composite score from already-weighted terms."""


class WeightedSumCombiner(Combiner):
    method = CalculationMethod.WEIGHTED_SUM

    def total(self, weighted: DimensionTriple, weights: MainWeights) -> float:
        return _weighted_sum(weighted)


class WeightedProductCombiner(Combiner):
    """Product of (weighted_i + 1) ** weight_i, minus one."""

    method = CalculationMethod.WEIGHTED_PRODUCT

    def total(self, weighted: DimensionTriple, weights: MainWeights) -> float:
        exponents = (weights.profit_contribution, weights.position_value, weights.performance)
        return _weighted_product(weighted, exponents)


class HybridCombiner(Combiner):
    """0.7 x weighted sum + 0.3 x weighted product with equal exponents."""

    method = CalculationMethod.HYBRID

    def total(self, weighted: DimensionTriple, weights: MainWeights) -> float:
        return (
            HYBRID_SUM_SHARE * _weighted_sum(weighted)
            + HYBRID_PRODUCT_SHARE * _weighted_product(weighted, HYBRID_PRODUCT_EXPONENTS)
        )


_COMBINERS: Dict[CalculationMethod, Combiner] = {
    c.method: c for c in (WeightedSumCombiner(), WeightedProductCombiner(), HybridCombiner())
}


def get_combiner(method: Union[CalculationMethod, str]) -> Combiner:
    try:
        return _COMBINERS[CalculationMethod(method)]
    except (ValueError, KeyError):
        raise UnsupportedMethodError(
            "calculation method", method, [m.value for m in _COMBINERS]
        ) from None
