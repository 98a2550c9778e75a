"""Tests for the Cairo business calendar.

Cairo runs UTC+2 in winter and UTC+3 in summer (since 2023: last Friday of
April 00:00 to last Thursday of October 24:00).
"""

from datetime import datetime, timedelta, timezone

import pytest

from barberbook.rollups.time_windows import (
    CivilDate,
    business_day_range,
    civil_date_of,
    civil_datetime_of,
    civil_day_span,
    civil_instant,
    civil_weekday_of,
    current_period_boundaries,
    is_within_operating_hours,
    report_date_range,
    timezone_offset_minutes,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_timezone_offset_winter_and_summer():
    """Offset is resolved per instant, never a constant."""
    assert timezone_offset_minutes(utc(2025, 1, 15, 12)) == 120
    assert timezone_offset_minutes(utc(2025, 7, 15, 12)) == 180
    assert timezone_offset_minutes(utc(2025, 1, 15, 12), "UTC") == 0
    assert timezone_offset_minutes(utc(2025, 1, 15, 12), "Asia/Kolkata") == 330


def test_civil_date_of_crosses_midnight_before_utc():
    # 22:30 UTC on Jan 5 is already 00:30 Jan 6 in Cairo
    assert civil_date_of(utc(2025, 1, 5, 22, 30)) == CivilDate(2025, 1, 6)
    assert civil_date_of(utc(2025, 1, 5, 21, 30)) == CivilDate(2025, 1, 5)


def test_civil_weekday_sunday_is_zero():
    assert civil_weekday_of(utc(2025, 1, 5, 10)) == 0  # Sunday
    assert civil_weekday_of(utc(2025, 1, 6, 10)) == 1  # Monday
    assert civil_weekday_of(utc(2025, 1, 11, 10)) == 6  # Saturday


def test_civil_weekday_uses_cairo_not_utc():
    # Sunday 22:30 UTC is Monday 00:30 in Cairo
    assert civil_weekday_of(utc(2025, 1, 5, 22, 30)) == 1
    assert civil_weekday_of(utc(2025, 1, 5, 22, 30), "UTC") == 0


def test_civil_instant_winter():
    assert civil_instant(2025, 1, 6, 12, 0, 0).isoformat() == "2025-01-06T10:00:00+00:00"


def test_civil_instant_summer():
    assert civil_instant(2025, 7, 14, 12, 0, 0) == utc(2025, 7, 14, 9)


def test_civil_instant_around_spring_forward():
    """Cairo skips 00:00-01:00 on Friday Apr 25, 2025."""
    assert civil_instant(2025, 4, 24, 12) == utc(2025, 4, 24, 10)
    assert civil_instant(2025, 4, 25, 6) == utc(2025, 4, 25, 3)
    assert civil_instant(2025, 4, 25, 12) == utc(2025, 4, 25, 9)


def test_civil_instant_around_fall_back():
    """Cairo returns to UTC+2 at the end of Thursday Oct 30, 2025."""
    assert civil_instant(2025, 10, 30, 12) == utc(2025, 10, 30, 9)
    assert civil_instant(2025, 10, 31, 12) == utc(2025, 10, 31, 10)


def test_civil_instant_rolls_over_overflowing_fields():
    assert civil_instant(2025, 1, 32) == civil_instant(2025, 2, 1)
    assert civil_instant(2025, 13, 1) == civil_instant(2026, 1, 1)
    assert civil_instant(2025, 3, 0) == civil_instant(2025, 2, 28)


@pytest.mark.parametrize(
    "instant",
    [
        utc(2025, 1, 8, 10),
        utc(2025, 4, 24, 21, 30),
        utc(2025, 4, 26, 8),
        utc(2025, 7, 1, 23, 59),
        utc(2025, 10, 30, 20, 0),
        utc(2025, 12, 31, 22, 15),
    ],
)
@pytest.mark.parametrize("hour,minute,second", [(0, 0, 0), (6, 0, 0), (12, 0, 0), (23, 59, 59)])
def test_civil_instant_round_trip(instant, hour, minute, second):
    """The instant built from a civil date reads back the requested wall clock."""
    day = civil_date_of(instant)
    built = civil_instant(day.year, day.month, day.day, hour, minute, second)

    reading = civil_datetime_of(built)
    assert reading.date == day
    assert (reading.hour, reading.minute, reading.second) == (hour, minute, second)


def test_business_day_before_noon():
    """At 11:59 Cairo the business day ends at 06:00 today."""
    now = utc(2025, 1, 8, 9, 59)  # 11:59 Cairo, Wednesday

    window = business_day_range(now)

    assert window.start == civil_instant(2025, 1, 7, 12)
    assert window.end == civil_instant(2025, 1, 8, 6)
    assert window.end_inclusive is True


def test_business_day_after_noon():
    """At 12:01 Cairo the business day is today 12:00 to tomorrow 06:00."""
    now = utc(2025, 1, 8, 10, 1)

    window = business_day_range(now)

    assert window.start == civil_instant(2025, 1, 8, 12)
    assert window.end == civil_instant(2025, 1, 9, 6)


def test_business_day_after_midnight_belongs_to_previous_date():
    # 01:00 Cairo on Jan 9 is still the Jan 8 shift
    window = business_day_range(utc(2025, 1, 8, 23))

    assert window.start == utc(2025, 1, 8, 10)
    assert window.end == utc(2025, 1, 9, 4)


def test_business_day_end_is_inclusive():
    window = business_day_range(utc(2025, 1, 8, 12))

    assert window.contains(window.end)
    assert window.contains(window.start)
    assert not window.contains(window.start - timedelta(seconds=1))
    assert not window.contains(window.end + timedelta(seconds=1))


def test_boundaries_midweek():
    now = utc(2025, 1, 8, 10)  # Wednesday 12:00 Cairo

    b = current_period_boundaries(now)

    assert b.week_start_date == CivilDate(2025, 1, 6)
    assert b.start_of_week == utc(2025, 1, 6, 10)
    assert b.end_of_week == utc(2025, 1, 13, 4)
    assert b.start_of_today == utc(2025, 1, 8, 10)
    assert b.end_of_today == utc(2025, 1, 9, 4)
    assert b.start_of_calendar_day == utc(2025, 1, 7, 22)
    assert b.start_of_month == utc(2024, 12, 31, 22)
    assert b.end_of_month == utc(2025, 1, 31, 22)
    assert b.start_of_year == utc(2024, 12, 31, 22)
    assert b.end_of_year == utc(2025, 12, 31, 22)


def test_boundaries_sunday_night_stays_in_week():
    b = current_period_boundaries(utc(2025, 1, 12, 20))  # Sunday 22:00 Cairo

    assert b.start_of_week == utc(2025, 1, 6, 10)
    assert b.end_of_week == utc(2025, 1, 13, 4)


def test_boundaries_monday_before_six_rolls_back():
    """Monday 03:00 Cairo still belongs to the previous business week."""
    now = utc(2025, 1, 13, 1)

    b = current_period_boundaries(now)

    assert b.week_start_date == CivilDate(2025, 1, 6)
    assert b.start_of_week <= now < b.end_of_week


def test_boundaries_monday_morning_gap():
    """Between Monday 06:00 and 12:00 the shop is closed: now lies past the week end."""
    now = utc(2025, 1, 13, 8)  # Monday 10:00 Cairo

    b = current_period_boundaries(now)

    assert b.start_of_week == utc(2025, 1, 6, 10)
    assert b.end_of_week == utc(2025, 1, 13, 4)
    assert b.start_of_week <= now
    assert now >= b.end_of_week


def test_boundaries_monday_noon_starts_new_week():
    now = utc(2025, 1, 13, 10)  # Monday 12:00 Cairo

    b = current_period_boundaries(now)

    assert b.start_of_week == now
    assert b.week_start_date == CivilDate(2025, 1, 13)


def test_boundaries_week_across_fall_back():
    """A week spanning the October transition is one hour longer."""
    b = current_period_boundaries(utc(2025, 11, 1, 10))  # Saturday

    assert b.start_of_week == utc(2025, 10, 27, 9)  # 12:00 EEST
    assert b.end_of_week == utc(2025, 11, 3, 4)  # 06:00 EET
    assert b.end_of_week - b.start_of_week == timedelta(days=6, hours=19)


def test_boundaries_december_rolls_into_next_year():
    b = current_period_boundaries(utc(2025, 12, 15, 10))

    assert b.end_of_month == utc(2025, 12, 31, 22)
    assert b.end_of_month == b.end_of_year


def test_boundaries_week_across_new_year():
    b = current_period_boundaries(utc(2026, 1, 1, 12))  # Thursday

    assert b.week_start_date == CivilDate(2025, 12, 29)
    assert b.start_of_week == utc(2025, 12, 29, 10)
    assert b.end_of_week == utc(2026, 1, 5, 4)


def test_boundaries_accept_naive_now_as_utc():
    assert current_period_boundaries(datetime(2025, 1, 8, 10)) == current_period_boundaries(utc(2025, 1, 8, 10))


def test_boundaries_are_deterministic():
    now = utc(2025, 3, 3, 13)
    assert current_period_boundaries(now) == current_period_boundaries(now)


def test_week_contains_now_outside_monday_gap():
    """start_of_week <= now always; now < end_of_week except Monday 06:00-12:00."""
    now = utc(2025, 1, 1)
    while now < utc(2026, 1, 1):
        b = current_period_boundaries(now)
        local = civil_datetime_of(now)
        in_week_gap = civil_weekday_of(now) == 1 and 6 <= local.hour < 12
        in_day_gap = 6 <= local.hour < 12

        assert b.start_of_week <= now
        assert b.start_of_today <= now
        if not in_week_gap:
            assert now < b.end_of_week
        if not in_day_gap:
            assert now <= b.end_of_today

        now += timedelta(hours=5, minutes=30)


def test_window_lookup():
    b = current_period_boundaries(utc(2025, 1, 8, 10))

    assert b.window("today").end_inclusive is True
    assert b.window("week").end_inclusive is False
    assert set(b.windows()) == {"today", "week", "month", "year"}

    with pytest.raises(ValueError, match="Unknown window type"):
        b.window("decade")


def test_boundaries_to_dict():
    data = current_period_boundaries(utc(2025, 1, 8, 10)).to_dict()

    assert data["timezone"] == "Africa/Cairo"
    assert data["week_start_date"] == "2025-01-06"
    assert data["start_of_week"] == "2025-01-06T10:00:00+00:00"


def test_report_date_range_presets():
    now = utc(2025, 1, 8, 10)

    assert report_date_range("today", now) == (CivilDate(2025, 1, 8), CivilDate(2025, 1, 8))
    assert report_date_range("week", now) == (CivilDate(2025, 1, 6), CivilDate(2025, 1, 12))
    assert report_date_range("month", now) == (CivilDate(2025, 1, 1), CivilDate(2025, 1, 31))
    assert report_date_range("year", now) == (CivilDate(2025, 1, 1), CivilDate(2025, 12, 31))


def test_report_date_range_month_ends():
    assert report_date_range("month", utc(2024, 2, 10))[1] == CivilDate(2024, 2, 29)
    assert report_date_range("month", utc(2025, 12, 10))[1] == CivilDate(2025, 12, 31)


def test_report_date_range_unknown_preset():
    with pytest.raises(ValueError, match="Unknown report preset"):
        report_date_range("quarter", utc(2025, 1, 8))  # type: ignore[arg-type]


def test_civil_day_span():
    window = civil_day_span(CivilDate(2025, 1, 6), CivilDate(2025, 1, 12))

    assert window.start == utc(2025, 1, 5, 22)
    assert window.end == utc(2025, 1, 12, 22)
    assert window.contains(utc(2025, 1, 12, 21, 59))
    assert not window.contains(utc(2025, 1, 12, 22))


def test_civil_date_shift_rolls_months():
    assert CivilDate(2025, 1, 31).shift(1) == CivilDate(2025, 2, 1)
    assert CivilDate(2025, 1, 1).shift(-1) == CivilDate(2024, 12, 31)
    assert CivilDate(2024, 2, 28).shift(1).isoformat() == "2024-02-29"


@pytest.mark.parametrize(
    "instant,expected",
    [
        (utc(2025, 1, 8, 3, 59), True),  # 05:59
        (utc(2025, 1, 8, 4, 0), False),  # 06:00
        (utc(2025, 1, 8, 9, 59), False),  # 11:59
        (utc(2025, 1, 8, 10, 0), True),  # 12:00
        (utc(2025, 1, 8, 21, 59), True),  # 23:59
        (utc(2025, 1, 8, 22, 0), True),  # 00:00
    ],
)
def test_operating_hours_boundaries(instant, expected):
    assert is_within_operating_hours(instant) is expected


def test_operating_hours_follow_summer_time():
    # UTC+3: noon is 09:00 UTC
    assert not is_within_operating_hours(utc(2025, 7, 1, 8, 59))
    assert is_within_operating_hours(utc(2025, 7, 1, 9, 0))
    assert is_within_operating_hours(utc(2025, 7, 1, 9, 0), "UTC") is False
