"""Core primitives shared by the calendar and the aggregator."""

from .money import PERCENT_MAX, PERCENT_MIN, clamp_percent, round_half_up, to_amount
from .time import ensure_utc, format_utc_iso8601, get_current_utc, parse_utc_iso8601, to_instant

__all__ = [
    # Money
    "PERCENT_MAX",
    "PERCENT_MIN",
    "clamp_percent",
    "round_half_up",
    "to_amount",
    # Time
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "parse_utc_iso8601",
    "to_instant",
]
