"""Time helpers for expiry arithmetic.

All store timestamps are Unix milliseconds (UTC).
"""

from datetime import datetime, timezone

MILLIS_PER_SECOND = 1000
MILLIS_PER_MINUTE = 60 * MILLIS_PER_SECOND
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR


def days_to_millis(days: int) -> int:
    """Convert a whole number of days to milliseconds.

    Raises:
        ValueError: If days is negative
    """
    if days < 0:
        raise ValueError(f"Days must not be negative: {days}")
    return days * MILLIS_PER_DAY


def expiry_from(start_millis: int, days: int) -> int:
    """Expiry timestamp `days` after `start_millis`."""
    return start_millis + days_to_millis(days)


def duration_to_millis(days: int = 0, hours: int = 0, minutes: int = 0) -> int:
    """Convert a days/hours/minutes offset to milliseconds.

    Raises:
        ValueError: If any component is negative
    """
    if days < 0 or hours < 0 or minutes < 0:
        raise ValueError("Duration components must not be negative")
    return days * MILLIS_PER_DAY + hours * MILLIS_PER_HOUR + minutes * MILLIS_PER_MINUTE


def millis_to_iso(millis: int) -> str:
    """Format a timestamp as an ISO 8601 UTC date-time."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


def format_date(millis: int) -> str:
    """Format a timestamp as a calendar date for user-facing messages."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def days_remaining(expiry_millis: int, now_millis: int) -> int:
    """Whole days left before expiry (0 once expired)."""
    if expiry_millis <= now_millis:
        return 0
    return (expiry_millis - now_millis) // MILLIS_PER_DAY
