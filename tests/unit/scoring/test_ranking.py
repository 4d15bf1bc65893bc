"""Unit tests for cohort ranking and score statistics."""

import pytest

from bonus_engine.scoring.ranking import rank_results
from bonus_engine.scoring.statistics import calculate_statistics, results_frame
from tests.fixtures import make_calculation


def _cohort():
    return [
        make_calculation("A", 0.5, department_id="sales", level="middle"),
        make_calculation("B", 0.9, department_id="sales", level="senior"),
        make_calculation("C", 0.5, department_id="engineering", level=None),
        make_calculation("D", 0.7, department_id=None, level="middle"),
    ]


class TestRankResults:
    def test_global_rank_breaks_ties_by_employee_id(self):
        ordered = rank_results(_cohort())
        assert [r.employee_id for r in ordered] == ["B", "D", "A", "C"]
        assert [r.score_rank for r in ordered] == [1, 2, 3, 4]

    def test_percentile_rank(self):
        ranked = {r.employee_id: r for r in rank_results(_cohort())}
        assert ranked["B"].percentile_rank == pytest.approx(100.0)
        assert ranked["C"].percentile_rank == pytest.approx(25.0)

    def test_department_and_level_ranks(self):
        ranked = {r.employee_id: r for r in rank_results(_cohort())}
        assert ranked["B"].department_rank == 1
        assert ranked["A"].department_rank == 2
        assert ranked["C"].department_rank == 1
        # a missing department forms its own "unknown" group
        assert ranked["D"].department_rank == 1
        assert ranked["D"].level_rank == 1
        assert ranked["A"].level_rank == 2
        assert ranked["C"].level_rank == 1

    def test_ranks_are_stable_across_reruns(self):
        first = [(r.employee_id, r.score_rank) for r in rank_results(_cohort())]
        second = [(r.employee_id, r.score_rank) for r in rank_results(list(reversed(_cohort())))]
        assert first == second

    def test_empty_cohort(self):
        assert rank_results([]) == []


class TestScoreStatistics:
    def test_population_statistics(self):
        stats = calculate_statistics(
            [make_calculation("A", 0.2), make_calculation("B", 0.4), make_calculation("C", 0.6)]
        )
        assert stats.count == 3
        assert stats.mean_score == pytest.approx(0.4)
        assert stats.min_score == pytest.approx(0.2)
        assert stats.max_score == pytest.approx(0.6)
        assert stats.std_dev == pytest.approx((0.08 / 3) ** 0.5)
        assert stats.dimension_means["performance"] == pytest.approx(0.5)

    def test_empty_results(self):
        stats = calculate_statistics([])
        assert stats.count == 0
        assert stats.to_dict()["mean_score"] == 0.0

    def test_results_frame_has_one_row_per_employee(self):
        frame = results_frame(_cohort())
        assert len(frame) == 4
        assert set(frame["employee_id"]) == {"A", "B", "C", "D"}
