"""Unit tests for weighted score combination."""

import math

import pytest

from bonus_engine.config.scoring import CalculationMethod, MainWeights
from bonus_engine.exceptions import UnsupportedMethodError
from bonus_engine.models import DimensionTriple
from bonus_engine.scoring.combiner import apply_weights, get_combiner

WEIGHTS = MainWeights(profit_contribution=0.4, position_value=0.3, performance=0.3)


class TestApplyWeights:
    def test_multiplies_each_dimension_by_its_weight(self):
        weighted = apply_weights(DimensionTriple(1.0, 1.0, 1.0), WEIGHTS)
        assert weighted.as_tuple() == pytest.approx((0.4, 0.3, 0.3))


class TestWeightedSum:
    def test_total_is_sum_of_weighted_terms(self):
        combination = get_combiner("weighted_sum").combine(DimensionTriple(0.5, 0.5, 0.5), WEIGHTS)
        assert combination.total_score == pytest.approx(0.5)
        assert combination.weighted.profit_contribution == pytest.approx(0.2)

    def test_negative_z_scores_pass_through(self):
        combination = get_combiner("weighted_sum").combine(DimensionTriple(-1.0, 0.0, 0.0), WEIGHTS)
        assert combination.total_score == pytest.approx(-0.4)


class TestWeightedProduct:
    def test_zero_terms_give_zero(self):
        combination = get_combiner("weighted_product").combine(DimensionTriple(0.0, 0.0, 0.0), WEIGHTS)
        assert combination.total_score == pytest.approx(0.0)

    def test_uses_weights_as_exponents(self):
        combination = get_combiner("weighted_product").combine(DimensionTriple(1.0, 1.0, 1.0), WEIGHTS)
        expected = (1.4 ** 0.4) * (1.3 ** 0.3) * (1.3 ** 0.3) - 1
        assert combination.total_score == pytest.approx(expected)

    def test_term_below_minus_one_is_clamped(self):
        # weighted profit term is -2.0, so its base is clamped at zero
        combination = get_combiner("weighted_product").combine(DimensionTriple(-5.0, 0.0, 0.0), WEIGHTS)
        assert combination.total_score == pytest.approx(-1.0)
        assert not math.isnan(combination.total_score)


class TestHybrid:
    def test_blends_sum_and_equal_exponent_product(self):
        normalized = DimensionTriple(1.0, 0.5, 0.0)
        weighted = apply_weights(normalized, WEIGHTS)
        terms = weighted.as_tuple()
        product = 1.0
        for term in terms:
            product *= (term + 1) ** (1 / 3)
        expected = 0.7 * sum(terms) + 0.3 * (product - 1)

        combination = get_combiner(CalculationMethod.HYBRID).combine(normalized, WEIGHTS)
        assert combination.total_score == pytest.approx(expected)


class TestRegistry:
    def test_every_method_is_registered(self):
        for method in CalculationMethod:
            assert get_combiner(method).method is method

    def test_unknown_method_raises(self):
        with pytest.raises(UnsupportedMethodError):
            get_combiner("geometric_mean")
