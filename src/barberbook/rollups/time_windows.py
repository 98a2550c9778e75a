"""Business calendar in a fixed civil timezone.

Resolves UTC instants into Cairo wall-clock readings and builds the
boundary instants the shop reports on, independent of the host's local
timezone:

- Business day: 12:00 noon to 06:00 the next morning
- Business week: Monday 12:00 to the following Monday 06:00
- Month and year: civil midnight on the 1st

Handles DST: every civil reading is resolved against the offset in force
at that instant, never a constant offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Literal

import pytz

from ..core.time import ensure_utc, format_utc_iso8601
from ..observability.loguru_config import get_logger

__all__ = [
    "BUSINESS_DAY_END_HOUR",
    "BUSINESS_DAY_START_HOUR",
    "CAIRO_TIMEZONE",
    "WINDOW_NAMES",
    "CivilDate",
    "CivilDateTime",
    "PeriodBoundaries",
    "ReportPreset",
    "TimeWindowBounds",
    "WindowName",
    "business_day_range",
    "civil_date_of",
    "civil_datetime_of",
    "civil_day_span",
    "civil_instant",
    "civil_weekday_of",
    "current_period_boundaries",
    "is_within_operating_hours",
    "report_date_range",
    "timezone_offset_minutes",
]

logger = get_logger("calendar")

CAIRO_TIMEZONE = "Africa/Cairo"

BUSINESS_DAY_START_HOUR = 12
BUSINESS_DAY_END_HOUR = 6
WEEK_START_HOUR = 12
WEEK_END_HOUR = 6

WindowName = Literal["today", "week", "month", "year"]
WINDOW_NAMES: tuple[WindowName, ...] = ("today", "week", "month", "year")

ReportPreset = Literal["today", "week", "month", "year"]

_WEEKDAY_SUNDAY_FIRST = (1, 2, 3, 4, 5, 6, 0)  # indexed by date.weekday()


@dataclass(frozen=True)
class CivilDate:
    """Wall-clock calendar date in the civil timezone."""

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: date) -> CivilDate:
        return cls(value.year, value.month, value.day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def shift(self, days: int) -> CivilDate:
        """Add (or subtract) days with month/year rollover."""
        return CivilDate.from_date(self.to_date() + timedelta(days=days))

    def isoformat(self) -> str:
        return self.to_date().isoformat()


@dataclass(frozen=True)
class CivilDateTime:
    """Wall-clock date and time in the civil timezone."""

    date: CivilDate
    hour: int
    minute: int
    second: int

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def month(self) -> int:
        return self.date.month

    @property
    def day(self) -> int:
        return self.date.day


@dataclass(frozen=True)
class TimeWindowBounds:
    """UTC window ``[start, end)`` or ``[start, end]`` for a named period.

    Attributes
    ----------
    name : str
        Window name ("today", "week", "month", "year", or a custom label)
    start : datetime
        Window start in UTC (inclusive)
    end : datetime | None
        Window end in UTC, None for an open-ended window
    end_inclusive : bool
        Whether an instant equal to ``end`` belongs to the window
    """

    name: str
    start: datetime
    end: datetime | None
    end_inclusive: bool = False

    def contains(self, instant: datetime) -> bool:
        """Check whether an instant falls inside the window."""
        instant = ensure_utc(instant)
        if instant < self.start:
            return False
        if self.end is None:
            return True
        if self.end_inclusive:
            return instant <= self.end
        return instant < self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "start_utc": format_utc_iso8601(self.start),
            "end_utc": format_utc_iso8601(self.end) if self.end else None,
            "end_inclusive": self.end_inclusive,
        }


@dataclass(frozen=True)
class PeriodBoundaries:
    """Boundary instants derived from ``now`` in the civil timezone.

    ``start_of_today``/``end_of_today`` are the business-day range
    (noon to 06:00), not midnight. ``start_of_calendar_day`` is civil
    midnight of the current date.
    """

    now: datetime
    timezone: str
    week_start_date: CivilDate
    start_of_today: datetime
    end_of_today: datetime
    start_of_calendar_day: datetime
    start_of_week: datetime
    end_of_week: datetime
    start_of_month: datetime
    end_of_month: datetime
    start_of_year: datetime
    end_of_year: datetime

    def window(self, name: str) -> TimeWindowBounds:
        """Get the UTC window for a named period.

        Raises
        ------
        ValueError
            If the window name is unknown
        """
        if name == "today":
            return TimeWindowBounds("today", self.start_of_today, self.end_of_today, end_inclusive=True)
        elif name == "week":
            return TimeWindowBounds("week", self.start_of_week, self.end_of_week)
        elif name == "month":
            return TimeWindowBounds("month", self.start_of_month, self.end_of_month)
        elif name == "year":
            return TimeWindowBounds("year", self.start_of_year, self.end_of_year)
        else:
            raise ValueError(f"Unknown window type: {name}")

    def windows(self, names: tuple[str, ...] | list[str] = WINDOW_NAMES) -> dict[str, TimeWindowBounds]:
        return {name: self.window(name) for name in names}

    def to_dict(self) -> dict[str, Any]:
        return {
            "now": format_utc_iso8601(self.now),
            "timezone": self.timezone,
            "week_start_date": self.week_start_date.isoformat(),
            "start_of_today": format_utc_iso8601(self.start_of_today),
            "end_of_today": format_utc_iso8601(self.end_of_today),
            "start_of_calendar_day": format_utc_iso8601(self.start_of_calendar_day),
            "start_of_week": format_utc_iso8601(self.start_of_week),
            "end_of_week": format_utc_iso8601(self.end_of_week),
            "start_of_month": format_utc_iso8601(self.start_of_month),
            "end_of_month": format_utc_iso8601(self.end_of_month),
            "start_of_year": format_utc_iso8601(self.start_of_year),
            "end_of_year": format_utc_iso8601(self.end_of_year),
        }


def _resolve_timezone(timezone_str: str | tzinfo) -> tzinfo:
    if isinstance(timezone_str, str):
        return pytz.timezone(timezone_str)
    return timezone_str


def _tz_name(timezone_str: str | tzinfo) -> str:
    return timezone_str if isinstance(timezone_str, str) else str(timezone_str)


def civil_datetime_of(instant: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> CivilDateTime:
    """Read the wall clock in ``timezone_str`` at an instant.

    Parameters
    ----------
    instant
        Instant to resolve (naive values are read as UTC)
    timezone_str
        IANA timezone name

    Returns
    -------
    CivilDateTime
        Wall-clock reading
    """
    local = ensure_utc(instant).astimezone(_resolve_timezone(timezone_str))
    return CivilDateTime(
        date=CivilDate(local.year, local.month, local.day),
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def civil_date_of(instant: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> CivilDate:
    """Calendar date observed in ``timezone_str`` at an instant."""
    return civil_datetime_of(instant, timezone_str).date


def civil_weekday_of(instant: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> int:
    """Weekday observed in ``timezone_str``, Sunday = 0 ... Saturday = 6."""
    return _WEEKDAY_SUNDAY_FIRST[civil_date_of(instant, timezone_str).to_date().weekday()]


def timezone_offset_minutes(instant: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> int:
    """Offset of the civil timezone at an instant, in minutes.

    Computed as the wall-clock reading interpreted as UTC minus the
    instant itself, so Cairo in winter (UTC+2) gives 120.

    Parameters
    ----------
    instant
        Instant at which the offset is resolved
    timezone_str
        IANA timezone name

    Returns
    -------
    int
        Offset in minutes (positive east of Greenwich)
    """
    utc = ensure_utc(instant).replace(microsecond=0)
    wall = utc.astimezone(_resolve_timezone(timezone_str)).replace(tzinfo=None)
    delta = wall - utc.replace(tzinfo=None)
    return round(delta.total_seconds() / 60)


def _utc_from_fields(year: int, month: int, day: int, hour: int, minute: int, second: int) -> datetime:
    # Out-of-range month/day/time fields roll over instead of raising
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=pytz.UTC)
    return base + timedelta(days=day - 1, hours=hour, minutes=minute, seconds=second)


def civil_instant(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    timezone_str: str | tzinfo = CAIRO_TIMEZONE,
) -> datetime:
    """Build the instant whose wall clock in ``timezone_str`` reads the given fields.

    Two steps: read the fields as UTC to get a candidate instant, resolve
    the offset at that candidate and subtract it. When the offset at the
    adjusted instant differs (the candidate sat across a DST transition)
    the offset is resolved once more against the adjusted instant.

    Parameters
    ----------
    year, month, day, hour, minute, second
        Wall-clock fields (overflowing values roll over)
    timezone_str
        IANA timezone name

    Returns
    -------
    datetime
        Aware UTC instant

    Example
    -------
    >>> civil_instant(2025, 1, 6, 12, 0, 0, "Africa/Cairo").isoformat()
    '2025-01-06T10:00:00+00:00'
    """
    tz = _resolve_timezone(timezone_str)
    candidate = _utc_from_fields(year, month, day, hour, minute, second)

    offset = timezone_offset_minutes(candidate, tz)
    instant = candidate - timedelta(minutes=offset)

    adjusted = timezone_offset_minutes(instant, tz)
    if adjusted != offset:
        instant = candidate - timedelta(minutes=adjusted)

    return instant


def _instant_on(civil: CivilDate, hour: int, tz: tzinfo) -> datetime:
    return civil_instant(civil.year, civil.month, civil.day, hour, 0, 0, tz)


def business_day_range(now: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> TimeWindowBounds:
    """Trading day containing (or just before) ``now``.

    Before noon the trading day started at noon of the previous date and
    ends at 06:00 today; from noon on it started today at 12:00 and ends
    tomorrow at 06:00. The end instant is inclusive.

    Parameters
    ----------
    now
        Current instant
    timezone_str
        IANA timezone name

    Returns
    -------
    TimeWindowBounds
        Window named "today"
    """
    tz = _resolve_timezone(timezone_str)
    local = civil_datetime_of(now, tz)

    start_date = local.date if local.hour >= BUSINESS_DAY_START_HOUR else local.date.shift(-1)
    start = _instant_on(start_date, BUSINESS_DAY_START_HOUR, tz)
    end = _instant_on(start_date.shift(1), BUSINESS_DAY_END_HOUR, tz)

    return TimeWindowBounds("today", start, end, end_inclusive=True)


def is_within_operating_hours(now: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> bool:
    """Check whether the shop is open at ``now``.

    Open from 12:00 up to, but not including, 06:00 civil time. Cashiers
    may only sign in while the shop is open.
    """
    local = civil_datetime_of(now, timezone_str)
    return local.hour >= BUSINESS_DAY_START_HOUR or local.hour < BUSINESS_DAY_END_HOUR


def current_period_boundaries(now: datetime, timezone_str: str | tzinfo = CAIRO_TIMEZONE) -> PeriodBoundaries:
    """Compute every reporting boundary for ``now`` in the civil timezone.

    The business week starts Monday at 12:00 and ends the following
    Monday at 06:00. Between Monday 00:00 and 12:00 the previous week is
    still the current one. Between Monday 06:00 and 12:00 the shop is
    closed and ``now`` lies after ``end_of_week``.

    Parameters
    ----------
    now
        Current instant (naive values are read as UTC)
    timezone_str
        IANA timezone name

    Returns
    -------
    PeriodBoundaries
        All boundary instants in UTC

    Example
    -------
    >>> from datetime import datetime, timezone
    >>> b = current_period_boundaries(datetime(2025, 1, 8, 10, 0, tzinfo=timezone.utc))
    >>> b.start_of_week.isoformat()  # Monday Jan 6, 12:00 Cairo
    '2025-01-06T10:00:00+00:00'
    """
    tz = _resolve_timezone(timezone_str)
    now = ensure_utc(now)

    today = civil_date_of(now, tz)
    weekday = civil_weekday_of(now, tz)
    days_since_monday = (weekday + 6) % 7

    monday = today.shift(-days_since_monday)
    start_of_week = _instant_on(monday, WEEK_START_HOUR, tz)

    if now < start_of_week:
        # Monday morning before the noon changeover
        monday = monday.shift(-7)
        start_of_week = _instant_on(monday, WEEK_START_HOUR, tz)

    end_of_week = _instant_on(monday.shift(7), WEEK_END_HOUR, tz)

    business_day = business_day_range(now, tz)

    logger.debug(
        "Resolved period boundaries",
        now=format_utc_iso8601(now),
        timezone=_tz_name(timezone_str),
        week_start=monday.isoformat(),
    )

    return PeriodBoundaries(
        now=now,
        timezone=_tz_name(timezone_str),
        week_start_date=monday,
        start_of_today=business_day.start,
        end_of_today=business_day.end,  # type: ignore[arg-type]
        start_of_calendar_day=_instant_on(today, 0, tz),
        start_of_week=start_of_week,
        end_of_week=end_of_week,
        start_of_month=civil_instant(today.year, today.month, 1, 0, 0, 0, tz),
        end_of_month=civil_instant(today.year, today.month + 1, 1, 0, 0, 0, tz),
        start_of_year=civil_instant(today.year, 1, 1, 0, 0, 0, tz),
        end_of_year=civil_instant(today.year + 1, 1, 1, 0, 0, 0, tz),
    )


def report_date_range(
    preset: ReportPreset,
    now: datetime,
    timezone_str: str | tzinfo = CAIRO_TIMEZONE,
) -> tuple[CivilDate, CivilDate]:
    """First and last civil dates of a report preset.

    Calendar presets used by the reports screen: "week" runs Monday to
    Sunday here, not the noon-to-06:00 business week.

    Raises
    ------
    ValueError
        If the preset is unknown
    """
    today = civil_date_of(now, timezone_str)

    if preset == "today":
        return today, today
    elif preset == "week":
        monday = today.shift(-today.to_date().weekday())
        return monday, monday.shift(6)
    elif preset == "month":
        first = CivilDate(today.year, today.month, 1)
        next_first = CivilDate.from_date(date(today.year + today.month // 12, today.month % 12 + 1, 1))
        return first, next_first.shift(-1)
    elif preset == "year":
        return CivilDate(today.year, 1, 1), CivilDate(today.year, 12, 31)
    else:
        raise ValueError(f"Unknown report preset: {preset}")


def civil_day_span(
    first: CivilDate,
    last: CivilDate,
    timezone_str: str | tzinfo = CAIRO_TIMEZONE,
    name: str = "range",
) -> TimeWindowBounds:
    """Window from civil midnight of ``first`` to civil midnight after ``last``."""
    tz = _resolve_timezone(timezone_str)
    return TimeWindowBounds(
        name,
        _instant_on(first, 0, tz),
        _instant_on(last.shift(1), 0, tz),
    )
