from __future__ import annotations

from datetime import datetime, timedelta, timezone

ONE_MS = timedelta(milliseconds=1)


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_iso(dt: datetime) -> str:
    """Render an aware datetime as UTC ISO-8601 with millisecond precision."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(ts: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp string.
    Naive values are taken as UTC. Returns None if ts is falsy.
    """
    if not ts:
        return None
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between start and end (non-negative)."""
    return max((end - start) // ONE_MS, 0)
