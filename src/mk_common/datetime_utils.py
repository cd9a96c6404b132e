"""UTC datetime utilities."""

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def coerce_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of a stored timestamp into an aware datetime.

    Accepts datetime objects, ISO-8601 strings, epoch seconds or milliseconds,
    and ``{"seconds": ..., "nanoseconds": ...}`` maps as exported by document
    stores. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict) and "seconds" in value:
        seconds = value.get("seconds") or 0
        nanos = value.get("nanoseconds") or 0
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Millisecond epochs are 13 digits for any date after 2001
        seconds = value / 1000 if value > 10_000_000_000 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def time_ago(value: datetime | None, now: datetime | None = None) -> str:
    """Compact relative time label: 'Just now', '5m ago', '3h ago', '2d ago', '1w ago'."""
    if value is None:
        return ""
    now = now or utc_now()
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    weeks = days // 7
    if weeks < 4:
        return f"{weeks}w ago"
    return value.strftime("%b %d, %Y")
