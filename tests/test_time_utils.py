"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from app.utils.time import minutes_from_now, parse_timestamp, to_iso, within_window

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def test_parse_timestamp_handles_postgrest_formats() -> None:
    """Zulu and offset timestamps should parse to the same aware UTC value."""
    zulu = parse_timestamp("2026-03-01T12:00:00Z")
    offset = parse_timestamp("2026-03-01T13:00:00+01:00")
    assert zulu == offset == NOW
    assert zulu.tzinfo is not None


def test_parse_timestamp_missing_and_naive() -> None:
    """Missing values stay None and naive datetimes are treated as UTC."""
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp(datetime(2026, 3, 1, 12, 0)) == NOW


def test_to_iso_round_trips_through_parse() -> None:
    """Serialized timestamps should parse back to the same instant."""
    assert to_iso(None) is None
    assert parse_timestamp(to_iso(NOW)) == NOW


def test_minutes_from_now_uses_base() -> None:
    """Offsets should be computed from the supplied base time."""
    assert minutes_from_now(10, base=NOW) == NOW + timedelta(minutes=10)


def test_within_window_bounds_are_inclusive_and_optional() -> None:
    """Unset bounds are open; set bounds include their endpoints."""
    start = NOW - timedelta(hours=1)
    end = NOW + timedelta(hours=1)
    assert within_window(start, end, NOW)
    assert within_window(start, NOW, NOW)
    assert within_window(None, None, NOW)
    assert within_window(None, to_iso(end), NOW)
    assert not within_window(to_iso(end), None, NOW)
    assert not within_window(None, start, NOW)
