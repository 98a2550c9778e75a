"""UTC discipline helpers for barberbook.

Every instant that flows through the calendar and the aggregator is a
timezone-aware ``datetime`` in UTC:
- Record timestamps arrive as ISO-8601 strings from the backend
- Naive datetimes are interpreted as UTC
- Civil (wall-clock) readings are derived on demand, never stored
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "parse_utc_iso8601",
    "to_instant",
]


def get_current_utc() -> datetime:
    """Get current time in UTC.

    This is the only ambient clock in the package; callers read it once
    and pass the value down as ``now``.

    Returns
    -------
    datetime
        Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize a datetime to an aware UTC instant.

    Parameters
    ----------
    dt
        Datetime (naive values are read as UTC)

    Returns
    -------
    datetime
        Aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Parameters
    ----------
    dt
        Datetime to format (with or without timezone)

    Returns
    -------
    str
        ISO-8601 UTC string (e.g., "2025-10-08T12:30:00+00:00")

    Example
    -------
    >>> from datetime import datetime, timezone
    >>> dt = datetime(2025, 10, 8, 12, 30, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2025-10-08T12:30:00+00:00'
    """
    return ensure_utc(dt).isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Parameters
    ----------
    iso_string
        ISO-8601 formatted string ("Z" suffix accepted)

    Returns
    -------
    datetime
        Datetime in UTC

    Raises
    ------
    ValueError
        If string is not valid ISO-8601

    Example
    -------
    >>> dt = parse_utc_iso8601("2025-10-08T14:30:00+02:00")
    >>> dt.hour  # Converted to UTC
    12
    """
    iso_string = iso_string.strip().replace("Z", "+00:00")
    return ensure_utc(datetime.fromisoformat(iso_string))


def to_instant(value: Any) -> datetime | None:
    """Coerce a record timestamp into a UTC instant.

    Accepts datetimes and ISO-8601 strings. Anything else, including
    unparseable strings, yields ``None`` so that the record simply falls
    outside every window.

    Parameters
    ----------
    value
        Raw ``created_at`` value from a record snapshot

    Returns
    -------
    datetime | None
        UTC instant or None
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return parse_utc_iso8601(value)
        except ValueError:
            return None
    return None
