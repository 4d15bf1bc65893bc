"""Numeric helpers shared by scoring and allocation.

``safe_parse`` centralizes the neutral-default policy: any missing, non-numeric,
NaN or infinite input collapses to a caller-chosen default and reports that it
did so, so coefficient and ratio code never has to repeat the checks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Any, Iterable


@dataclass(frozen=True)
class SafeValue:
    """A parsed number plus whether the default was substituted."""
    value: float
    was_defaulted: bool


def safe_parse(raw: Any, default: float = 1.0, *, positive: bool = False) -> SafeValue:
    """Parse ``raw`` as a finite float, falling back to ``default``.

    Args:
        raw: Value to parse. Strings are accepted; booleans are not.
        default: Value returned when ``raw`` is unusable.
        positive: When True, zero and negative values are also unusable.

    Returns:
        SafeValue with the parsed or default value.
    """
    if raw is None or isinstance(raw, bool):
        return SafeValue(default, True)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return SafeValue(default, True)
    if math.isnan(value) or math.isinf(value):
        return SafeValue(default, True)
    if positive and value <= 0:
        return SafeValue(default, True)
    return SafeValue(value, False)


def safe_float(raw: Any, default: float = 0.0) -> float:
    """Shorthand for ``safe_parse(raw, default).value``."""
    return safe_parse(raw, default).value


def is_number(raw: Any) -> bool:
    """True for finite ints and floats (booleans excluded)."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return False
    return math.isfinite(raw)


def round_amount(value: float, places: int = 2) -> float:
    """Round half-up to ``places`` decimals for monetary amounts."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def nan_safe_product(factors: Iterable[float]) -> float:
    """Multiply factors, treating any NaN intermediate as a neutral 1.0."""
    result = 1.0
    for factor in factors:
        result *= safe_parse(factor, 1.0).value
        if math.isnan(result):
            result = 1.0
    return result


def round_amount_down(value: float, places: int = 2) -> float:
    """Truncate toward zero at ``places`` decimals so scaled totals never overshoot a cap."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_DOWN))
