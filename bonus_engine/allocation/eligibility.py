"""Eligibility selection for allocation."""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping

from ..config.allocation import AllocationRule
from ..models import CalculationResult, EligibleEmployee, EmployeeProfile
from ..numeric import is_number

logger = logging.getLogger(__name__)


def _matches_filters(profile: EmployeeProfile, rule: AllocationRule) -> bool:
    if rule.business_lines and not set(profile.employee.business_lines) & set(rule.business_lines):
        return False
    if rule.departments and profile.department_id not in rule.departments:
        return False
    if rule.position_levels:
        allowed = {level.lower() for level in rule.position_levels}
        if profile.position_level not in allowed:
            return False
    return True


def ineligibility_reason(
    result: CalculationResult, profile: EmployeeProfile, rule: AllocationRule
) -> str | None:
    """Why ``result`` is excluded from allocation under ``rule``, or None if eligible."""
    score = result.final_score
    if not profile.employee.is_active:
        return f"status is {profile.employee.status}"
    if not is_number(score) or score <= 0:
        return "final score is not positive"
    if score < rule.min_score_threshold:
        return f"final score {score:.4f} below threshold {rule.min_score_threshold}"
    if rule.max_score_threshold is not None and score > rule.max_score_threshold:
        return f"final score {score:.4f} above threshold {rule.max_score_threshold}"
    if not _matches_filters(profile, rule):
        return "outside rule applicability filters"
    return None


def select_eligible(
    results: Iterable[CalculationResult],
    profiles: Mapping[str, EmployeeProfile],
    rule: AllocationRule,
    as_of: date,
) -> List[EligibleEmployee]:
    """Join results with directory profiles and keep the eligible ones.

    Returned in deterministic order: final score descending, then employee id.
    """
    eligible: List[EligibleEmployee] = []
    excluded: Dict[str, str] = {}
    for result in results:
        profile = profiles.get(result.employee_id)
        if profile is None:
            excluded[result.employee_id] = "not in directory"
            continue
        reason = ineligibility_reason(result, profile, rule)
        if reason:
            excluded[result.employee_id] = reason
            continue
        eligible.append(
            EligibleEmployee(
                profile=profile,
                calculation=result,
                tenure_months=profile.tenure_months(as_of),
            )
        )

    for employee_id, reason in excluded.items():
        logger.debug(f"Excluded {employee_id}: {reason}")
    logger.info(f"Eligible employees: {len(eligible)} (excluded {len(excluded)})")
    return sorted(eligible, key=lambda e: (-e.final_score, e.employee_id))
