"""Cohort ranking of calculation results.

Ranks are only meaningful over a closed cohort: callers pass every result for
one (period, weight config). Ties on final score are broken by employee id so
re-runs over the same cohort produce identical ranks.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..models import CalculationResult

logger = logging.getLogger(__name__)

UNKNOWN_GROUP = "unknown"


def _ordering_key(result: CalculationResult):
    return (-result.final_score, result.employee_id)


def _group_key(value: Optional[str]) -> str:
    return value if value else UNKNOWN_GROUP


def rank_results(results: Iterable[CalculationResult]) -> List[CalculationResult]:
    """Write global, department and level ranks onto ``results`` in place.

    Returns:
        The results in rank order.
    """
    ordered = sorted(results, key=_ordering_key)
    total = len(ordered)

    for index, result in enumerate(ordered):
        rank = index + 1
        result.score_rank = rank
        result.percentile_rank = (total - rank + 1) / total * 100

    by_department: Dict[str, List[CalculationResult]] = defaultdict(list)
    by_level: Dict[str, List[CalculationResult]] = defaultdict(list)
    for result in ordered:
        by_department[_group_key(result.department_id)].append(result)
        by_level[_group_key(result.position_level)].append(result)

    for group in by_department.values():
        for index, result in enumerate(group):
            result.department_rank = index + 1
    for group in by_level.values():
        for index, result in enumerate(group):
            result.level_rank = index + 1

    logger.debug(
        f"Ranked {total} results across {len(by_department)} departments and {len(by_level)} levels"
    )
    return ordered
