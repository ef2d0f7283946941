"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def minutes_from_now(minutes: int, base: datetime | None = None) -> datetime:
    """Return an aware UTC datetime ``minutes`` after ``base`` (or now)."""
    return (base or now_utc()) + timedelta(minutes=minutes)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a PostgREST timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return None

    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Serialize an optional datetime for a PostgREST payload."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def within_window(
    start_at: str | datetime | None,
    end_at: str | datetime | None,
    now: datetime | None = None,
) -> bool:
    """Return whether ``now`` lies in ``[start_at, end_at]``; unset bounds are open."""
    current = now or now_utc()
    start = parse_timestamp(start_at)
    end = parse_timestamp(end_at)
    if start is not None and current < start:
        return False
    if end is not None and current > end:
        return False
    return True
