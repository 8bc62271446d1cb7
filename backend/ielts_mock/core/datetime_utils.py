"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Use this instead of datetime.now(timezone.utc) so tests can patch the clock.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite may return timezone-naive datetimes even when stored as timezone-aware.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def session_deadline(
    started_at: datetime, duration_minutes: int, grace_seconds: int = 0
) -> datetime:
    """
    Latest moment answers are accepted for a timed module.

    Args:
        started_at: When the session started
        duration_minutes: Module time limit
        grace_seconds: Allowance for network latency and clock skew

    Returns:
        Timezone-aware deadline
    """
    return ensure_timezone_aware(started_at) + timedelta(
        minutes=duration_minutes, seconds=grace_seconds
    )


def is_past_deadline(
    started_at: datetime,
    duration_minutes: int,
    grace_seconds: int = 0,
    now: Optional[datetime] = None,
) -> bool:
    """True once now is later than the session deadline."""
    current = ensure_timezone_aware(now) if now is not None else utc_now()
    return current > session_deadline(started_at, duration_minutes, grace_seconds)
