"""Tests for UTC time helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from barberbook.core.time import ensure_utc, format_utc_iso8601, get_current_utc, parse_utc_iso8601, to_instant


def test_get_current_utc_is_aware():
    now = get_current_utc()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_ensure_utc_reads_naive_as_utc():
    assert ensure_utc(datetime(2025, 1, 8, 10)) == datetime(2025, 1, 8, 10, tzinfo=timezone.utc)


def test_ensure_utc_converts_offsets():
    cairo = timezone(timedelta(hours=2))
    assert ensure_utc(datetime(2025, 1, 8, 12, tzinfo=cairo)) == datetime(2025, 1, 8, 10, tzinfo=timezone.utc)


def test_format_and_parse():
    dt = datetime(2025, 10, 8, 12, 30, tzinfo=timezone.utc)
    assert format_utc_iso8601(dt) == "2025-10-08T12:30:00+00:00"
    assert parse_utc_iso8601("2025-10-08T14:30:00+02:00") == dt
    assert parse_utc_iso8601(" 2025-10-08T12:30:00Z ") == dt


def test_parse_invalid():
    with pytest.raises(ValueError):
        parse_utc_iso8601("not a date")


def test_to_instant():
    expected = datetime(2025, 1, 6, 11, tzinfo=timezone.utc)

    assert to_instant("2025-01-06T13:00:00+02:00") == expected
    assert to_instant("2025-01-06T11:00:00") == expected
    assert to_instant(datetime(2025, 1, 6, 11)) == expected
    assert to_instant("garbage") is None
    assert to_instant("") is None
    assert to_instant(None) is None
    assert to_instant(1736161200) is None
