"""UTC timestamp helpers shared by the store and services.

All persisted timestamps use the same ``YYYY-MM-DDTHH:MM:SSZ`` format so they
sort lexically in SQLite.
"""

from __future__ import annotations

from datetime import UTC, datetime

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def to_timestamp(dt: datetime) -> str:
    """Format *dt* as a UTC ISO 8601 string."""
    return dt.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 date or date-time string into an aware UTC datetime.

    Naive values (including bare ``YYYY-MM-DD`` dates) are taken as UTC.

    Raises:
        ValueError: If *value* is not a valid ISO 8601 string.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def relative_time(timestamp: str, now: datetime | None = None) -> str:
    """Render *timestamp* as a coarse "N units ago" label.

    Args:
        timestamp: A stored UTC timestamp.
        now: Reference time; defaults to the current time.

    Returns:
        ``"Just now"``, ``"N minutes ago"``, ``"N hours ago"`` or ``"N days ago"``.
    """
    now = now or utc_now()
    minutes = (now - parse_timestamp(timestamp)).total_seconds() / 60

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{int(minutes)} minutes ago"
    if minutes < 1440:
        return f"{int(minutes // 60)} hours ago"
    return f"{int(minutes // 1440)} days ago"
