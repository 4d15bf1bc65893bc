"""Unit tests for tier normalization and assignment."""

import pytest

from bonus_engine.allocation.tiers import assign_tier, normalize_tiers, sort_tiers
from bonus_engine.config.allocation import TierDefinition


def _tiers(*specs):
    return [TierDefinition(name=name, min_score=min_score, ratio=ratio) for name, min_score, ratio in specs]


class TestNormalizeTiers:
    def test_ratios_summing_to_one_are_untouched(self):
        tiers = _tiers(("A", 0.8, 0.6), ("B", 0.5, 0.4))
        normalized = normalize_tiers(tiers)
        assert [t.ratio for t in normalized] == [0.6, 0.4]
        assert all(a is b for a, b in zip(normalized, tiers))

    def test_ratios_outside_tolerance_are_rescaled(self):
        tiers = _tiers(("A", 0.8, 0.7), ("B", 0.5, 0.5))
        normalized = normalize_tiers(tiers)
        assert [round(t.ratio, 3) for t in normalized] == [0.583, 0.417]
        assert sum(t.ratio for t in normalized) == pytest.approx(1.0)

    def test_input_is_not_mutated(self):
        tiers = _tiers(("A", 0.8, 0.7), ("B", 0.5, 0.5))
        normalize_tiers(tiers)
        assert [t.ratio for t in tiers] == [0.7, 0.5]

    def test_within_tolerance_is_kept(self):
        tiers = _tiers(("A", 0.8, 0.605), ("B", 0.5, 0.4))
        assert [t.ratio for t in normalize_tiers(tiers)] == [0.605, 0.4]

    def test_empty(self):
        assert normalize_tiers([]) == []


class TestAssignTier:
    TIERS = _tiers(("B", 0.5, 0.4), ("A", 0.8, 0.6))

    def test_sorted_highest_first(self):
        assert [t.name for t in sort_tiers(self.TIERS)] == ["A", "B"]

    @pytest.mark.parametrize("score,expected", [(0.9, "A"), (0.8, "A"), (0.79, "B"), (0.5, "B")])
    def test_highest_tier_met(self, score, expected):
        assert assign_tier(score, self.TIERS).name == expected

    def test_below_every_threshold_falls_to_lowest_tier(self):
        assert assign_tier(0.1, self.TIERS).name == "B"

    def test_no_tiers(self):
        assert assign_tier(0.9, []) is None
