"""Structural validation of configuration and results.

Every validator returns a list of human-readable violations and never raises:
callers decide whether a non-empty list is fatal. Inputs may be pydantic
models, dataclasses or plain mappings (as read from YAML or JSON).
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import BaseModel

from .config.allocation import AllocationMethod, AllocationRule, BonusPool, ScoreDistributionMethod
from .config.scoring import CalculationMethod, MainWeights, NormalizationMethod, WeightConfig
from .numeric import is_number

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01
MAX_RESERVE_RATIO = 0.5
MAX_SPECIAL_RATIO = 0.5
TIERED_METHODS = {AllocationMethod.TIER_BASED.value, AllocationMethod.HYBRID.value}


def _as_mapping(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, Mapping):
        return dict(obj)
    return {}


def _with_defaults(data: Dict[str, Any], model: type) -> Dict[str, Any]:
    """Fill keys the model would default, so raw mappings validate like parsed models."""
    merged = dict(data)
    for name, info in model.model_fields.items():
        if name not in merged and not info.is_required():
            merged[name] = info.get_default(call_default_factory=True)
    return merged


def _value(raw: Any) -> Any:
    return raw.value if isinstance(raw, Enum) else raw


def _check_ratio(
    violations: List[str], data: Mapping[str, Any], key: str, *, upper: float = 1.0, required: bool = True
) -> None:
    raw = data.get(key)
    if raw is None:
        if required:
            violations.append(f"{key} is required")
        return
    if not is_number(raw):
        violations.append(f"{key} must be a number (got {raw!r})")
    elif raw < 0 or raw > upper:
        violations.append(f"{key} must be between 0 and {upper} (got {raw})")


# =============================================================================
# Weight configuration
# =============================================================================

def validate_weight_config(config: Any, tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    """Main weights present, in [0, 1] and summing to 1; methods known."""
    try:
        data = _with_defaults(_as_mapping(config), WeightConfig)
        violations: List[str] = []
        weights = _with_defaults(_as_mapping(data.get("weights")), MainWeights)
        keys = ("profit_contribution", "position_value", "performance")
        for key in keys:
            _check_ratio(violations, weights, key)
        if all(is_number(weights.get(k)) for k in keys):
            total = sum(weights[k] for k in keys)
            if abs(total - 1.0) > tolerance:
                violations.append(f"main weights must sum to 1.0 (got {total:.4f})")

        calculation = _value(data.get("calculation_method", CalculationMethod.WEIGHTED_SUM))
        if calculation not in {m.value for m in CalculationMethod}:
            violations.append(f"unknown calculation_method: {calculation!r}")
        normalization = _value(data.get("normalization_method", NormalizationMethod.Z_SCORE))
        if normalization not in {m.value for m in NormalizationMethod}:
            violations.append(f"unknown normalization_method: {normalization!r}")
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Weight config validation failed unexpectedly")
        return [f"weight config could not be validated: {e}"]


# =============================================================================
# Pool
# =============================================================================

def validate_pool(pool: Any, tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    try:
        data = _with_defaults(_as_mapping(pool), BonusPool)
        violations: List[str] = []
        if not data.get("period"):
            violations.append("period is required")

        total = data.get("total_amount")
        if not is_number(total) or total <= 0:
            violations.append(f"total_amount must be greater than 0 (got {total!r})")

        _check_ratio(violations, data, "pool_ratio")
        _check_ratio(violations, data, "reserve_ratio", upper=MAX_RESERVE_RATIO, required=False)
        _check_ratio(violations, data, "special_ratio", upper=MAX_SPECIAL_RATIO, required=False)

        reserve, special = data.get("reserve_ratio") or 0, data.get("special_ratio") or 0
        if is_number(reserve) and is_number(special) and reserve + special > 1:
            violations.append(f"reserve_ratio + special_ratio must not exceed 1 (got {reserve + special})")

        pool_amount, ratio = data.get("pool_amount"), data.get("pool_ratio")
        if pool_amount is not None and is_number(total) and is_number(ratio):
            if not is_number(pool_amount):
                violations.append(f"pool_amount must be a number (got {pool_amount!r})")
            elif abs(pool_amount - total * ratio) > tolerance:
                violations.append(
                    f"pool_amount {pool_amount} does not match total_amount x pool_ratio ({total * ratio:.2f})"
                )
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Pool validation failed unexpectedly")
        return [f"pool could not be validated: {e}"]


# =============================================================================
# Rule and tiers
# =============================================================================

def validate_tiers(tiers: Sequence[Any], tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    """Unique names, ratios in (0, 1] summing to 1, min_score in [0, 1]."""
    try:
        violations: List[str] = []
        seen = set()
        ratios = []
        for index, tier in enumerate(tiers or []):
            data = _as_mapping(tier)
            name = data.get("name")
            label = f"tier[{index}]" if not name else f"tier '{name}'"
            if not name:
                violations.append(f"{label}: name is required")
            elif name in seen:
                violations.append(f"{label}: duplicate tier name")
            else:
                seen.add(name)

            ratio = data.get("ratio")
            if not is_number(ratio) or ratio <= 0 or ratio > 1:
                violations.append(f"{label}: ratio must be in (0, 1] (got {ratio!r})")
            else:
                ratios.append(ratio)

            min_score = data.get("min_score")
            if not is_number(min_score) or min_score < 0 or min_score > 1:
                violations.append(f"{label}: min_score must be in [0, 1] (got {min_score!r})")

        if ratios and len(ratios) == len(tiers) and abs(sum(ratios) - 1.0) > tolerance:
            violations.append(f"tier ratios must sum to 1.0 (got {sum(ratios):.4f})")
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Tier validation failed unexpectedly")
        return [f"tier config could not be validated: {e}"]


def validate_rule(rule: Any, tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    try:
        data = _with_defaults(_as_mapping(rule), AllocationRule)
        violations: List[str] = []

        method = _value(data.get("allocation_method"))
        if method not in {m.value for m in AllocationMethod}:
            violations.append(f"unknown allocation_method: {method!r}")
        distribution = _value(data.get("score_distribution_method", ScoreDistributionMethod.LINEAR))
        if distribution not in {m.value for m in ScoreDistributionMethod}:
            violations.append(f"unknown score_distribution_method: {distribution!r}")

        for key in ("base_allocation_ratio", "performance_allocation_ratio", "reserve_ratio"):
            _check_ratio(violations, data, key)
        base, perf = data.get("base_allocation_ratio"), data.get("performance_allocation_ratio")
        if is_number(base) and is_number(perf) and abs(base + perf - 1.0) > tolerance:
            violations.append(
                f"base_allocation_ratio + performance_allocation_ratio must equal 1.0 (got {base + perf:.4f})"
            )

        limit = data.get("total_allocation_limit", 1.0)
        if not is_number(limit) or limit <= 0:
            violations.append(f"total_allocation_limit must be greater than 0 (got {limit!r})")

        for low_key, high_key in (
            ("min_score_threshold", "max_score_threshold"),
            ("min_bonus_amount", "max_bonus_amount"),
            ("min_bonus_ratio", "max_bonus_ratio"),
        ):
            low, high = data.get(low_key), data.get(high_key)
            for key, raw in ((low_key, low), (high_key, high)):
                if raw is not None and (not is_number(raw) or raw < 0):
                    violations.append(f"{key} must be a non-negative number (got {raw!r})")
            if is_number(low) and is_number(high) and high < low:
                violations.append(f"{high_key} ({high}) must not be less than {low_key} ({low})")

        tiers = data.get("tier_config") or []
        if method in TIERED_METHODS and not tiers:
            violations.append(f"{method} allocation requires tier_config")
        violations.extend(validate_tiers(tiers, tolerance))
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Rule validation failed unexpectedly")
        return [f"rule could not be validated: {e}"]


# =============================================================================
# Results
# =============================================================================

def validate_allocation_result(result: Any, tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    try:
        data = _as_mapping(result)
        violations: List[str] = []
        for key in ("employee_id", "pool_id", "rule_id"):
            if not data.get(key):
                violations.append(f"{key} is required")

        for key in ("base_amount", "performance_amount", "total_amount"):
            raw = data.get(key)
            if not is_number(raw):
                violations.append(f"{key} must be a number (got {raw!r})")
            elif raw < 0:
                violations.append(f"{key} must not be negative (got {raw})")
        adjustment = data.get("adjustment_amount", 0.0)
        if not is_number(adjustment):
            violations.append(f"adjustment_amount must be a number (got {adjustment!r})")

        parts = [data.get(k) for k in ("base_amount", "performance_amount")] + [adjustment]
        total = data.get("total_amount")
        if all(is_number(p) for p in parts) and is_number(total):
            if abs(total - sum(parts)) > tolerance:
                violations.append(
                    f"total_amount {total} does not equal base + performance + adjustment ({sum(parts):.2f})"
                )
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Allocation result validation failed unexpectedly")
        return [f"allocation result could not be validated: {e}"]


def validate_calculation_result(result: Any) -> List[str]:
    """Keys present; scores numeric; final score non-negative."""
    try:
        data = _as_mapping(result)
        violations: List[str] = []
        for key in ("employee_id", "period", "weight_config_id"):
            if not data.get(key):
                violations.append(f"{key} is required")

        for group in ("raw_scores", "normalized_scores", "weighted_scores"):
            scores = _as_mapping(data.get(group))
            for key in ("profit_contribution", "position_value", "performance"):
                if not is_number(scores.get(key)):
                    violations.append(f"{group}.{key} must be a number (got {scores.get(key)!r})")

        for key in ("total_score", "adjusted_score", "final_score"):
            if not is_number(data.get(key)):
                violations.append(f"{key} must be a number (got {data.get(key)!r})")
        final = data.get("final_score")
        if is_number(final) and final < 0:
            violations.append(f"final_score must not be negative (got {final})")
        return violations
    except Exception as e:  # validators report, they do not raise
        logger.exception("Calculation result validation failed unexpectedly")
        return [f"calculation result could not be validated: {e}"]
