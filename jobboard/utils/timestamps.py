"""UTC timestamp helpers.

All datetimes handled by the lifecycle (deadlines, applied_at, reviewed_at)
are timezone-aware UTC. Naive values coming from callers or from SQLite are
interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return ``dt`` as aware UTC, treating naive values as UTC.

    Example:
        >>> ensure_utc(datetime(2026, 1, 5, 9, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 string (``Z`` suffix allowed) into aware UTC.

    Returns None for blank or unparseable input.
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """Format as ISO 8601 UTC with a ``Z`` suffix.

    Example:
        >>> format_timestamp(datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc))
        '2026-01-05T09:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")
