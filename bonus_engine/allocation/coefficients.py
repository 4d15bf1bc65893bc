"""Per-employee allocation coefficients.

Every coefficient falls back to a neutral 1.0 on missing or malformed input and
the calculator never raises. Which inputs were defaulted is recorded on the
returned ``CoefficientSet`` for audit.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from ..config.allocation import AllocationRule
from ..models import CoefficientSet, EligibleEmployee
from ..numeric import clamp, nan_safe_product, safe_parse

logger = logging.getLogger(__name__)

HIGH_PERFORMANCE = 0.8
LOW_PERFORMANCE = 0.4
HIGH_PERFORMANCE_COEFF = 1.2
LOW_PERFORMANCE_COEFF = 0.8

NEW_EMPLOYEE_MONTHS = 12
NEW_EMPLOYEE_FACTOR = 0.5
EXCELLENT_SCORE = 0.9
EXCELLENT_FACTOR = 1.3
KEY_POSITION_LEVEL = "senior"
KEY_POSITION_FACTOR = 1.1
SPECIAL_MIN = 0.1
SPECIAL_MAX = 5.0

FINAL_COEFF_FLOOR = 0.1


def performance_coefficient(performance_score: Any) -> float:
    """> 0.8 -> 1.2, < 0.4 -> 0.8, otherwise (or unparseable) 1.0."""
    parsed = safe_parse(performance_score, 1.0)
    if parsed.was_defaulted:
        return 1.0
    if parsed.value > HIGH_PERFORMANCE:
        return HIGH_PERFORMANCE_COEFF
    if parsed.value < LOW_PERFORMANCE:
        return LOW_PERFORMANCE_COEFF
    return 1.0


def weight_entry(weights: Optional[Mapping[str, Any]], key: Optional[str]) -> Any:
    """Raw map value for ``key``; keys match exactly first, then case-insensitively."""
    if not weights or key is None:
        return None
    if key in weights:
        return weights[key]
    folded = key.strip().lower()
    for name, value in weights.items():
        if str(name).strip().lower() == folded:
            return value
    return None


def lookup_weight(weights: Optional[Mapping[str, Any]], key: Optional[str]) -> float:
    """Positive numeric weight for ``key`` or 1.0."""
    return safe_parse(weight_entry(weights, key), 1.0, positive=True).value


def special_coefficient(
    rule: AllocationRule,
    final_score: Any,
    position_level: Optional[str],
    tenure_months: Any,
) -> float:
    rules = rule.special_rules
    coeff = 1.0

    tenure = safe_parse(tenure_months, 0.0)
    if rules.new_employee_reduction and not tenure.was_defaulted and tenure.value < NEW_EMPLOYEE_MONTHS:
        coeff *= NEW_EMPLOYEE_FACTOR

    score = safe_parse(final_score, 0.0)
    if rules.excellent_employee_bonus and not score.was_defaulted and score.value > EXCELLENT_SCORE:
        coeff *= EXCELLENT_FACTOR

    if rules.key_position_bonus and (position_level or "").lower() == KEY_POSITION_LEVEL:
        coeff *= KEY_POSITION_FACTOR

    return clamp(coeff, SPECIAL_MIN, SPECIAL_MAX)


def calculate_coefficients(employee: EligibleEmployee, rule: AllocationRule) -> CoefficientSet:
    """Compute the five coefficients and their floored product for one employee."""
    level = employee.profile.position_level
    department_id = employee.profile.department_id
    defaulted: List[str] = []

    if safe_parse(employee.performance_score).was_defaulted:
        defaulted.append("performance")
    if rule.position_level_weights and level is not None and safe_parse(
        weight_entry(rule.position_level_weights, level), positive=True
    ).was_defaulted:
        defaulted.append("position")
    if rule.department_weights and department_id is not None and safe_parse(
        weight_entry(rule.department_weights, department_id), positive=True
    ).was_defaulted:
        defaulted.append("department")

    base = 1.0
    performance = performance_coefficient(employee.performance_score)
    position = lookup_weight(rule.position_level_weights, level)
    department = lookup_weight(rule.department_weights, department_id)
    special = special_coefficient(rule, employee.final_score, level, employee.tenure_months)

    final = max(FINAL_COEFF_FLOOR, nan_safe_product((base, performance, position, department, special)))

    if defaulted:
        logger.debug(f"Coefficient inputs defaulted for {employee.employee_id}: {', '.join(defaulted)}")

    return CoefficientSet(
        base=base,
        performance=performance,
        position=position,
        department=department,
        special=special,
        final=final,
        defaulted=tuple(defaulted),
    )
