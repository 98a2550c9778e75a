"""Numeric coercion for monetary amounts and percentages.

Invariants:
1. Absent or non-numeric inputs become 0.0, never NaN
2. NaN/Inf never propagate into a total
3. Percentages live in [0, 100] with 2 decimal places
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

__all__ = [
    "PERCENT_MAX",
    "PERCENT_MIN",
    "clamp_percent",
    "round_half_up",
    "to_amount",
]

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0


def to_amount(value: Any) -> float:
    """Coerce a raw field into a finite float.

    Numeric strings are parsed ("12.5" -> 12.5). Booleans, None, empty
    strings, garbage and non-finite values all become 0.0.

    Examples:
        >>> to_amount("12.5")
        12.5
        >>> to_amount(None)
        0.0
        >>> to_amount(float("nan"))
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a cashier does (0.125 -> 0.13), not banker's rounding."""
    try:
        quantum = Decimal(1).scaleb(-places)
        return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0.0


def clamp_percent(value: Any) -> float:
    """Coerce, clamp to [0, 100] and round a percentage to 2 decimals.

    Examples:
        >>> clamp_percent("35")
        35.0
        >>> clamp_percent(140)
        100.0
        >>> clamp_percent(33.3333)
        33.33
    """
    number = to_amount(value)
    number = min(max(number, PERCENT_MIN), PERCENT_MAX)
    return round_half_up(number, 2)
