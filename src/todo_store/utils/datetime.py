"""Datetime utilities with consistent UTC timezone handling.

All timestamps handled by the store are timezone-aware UTC datetimes with
millisecond precision, which is what the persisted ``createdAt`` format can
represent.
"""

from datetime import datetime, timezone
from typing import Optional


MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 365 * DAY


def now_utc() -> datetime:
    """Return current datetime in UTC timezone.

    Returns:
        Current datetime with timezone=UTC
    """
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime in UTC, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def truncate_to_millis(dt: datetime) -> datetime:
    """Drop sub-millisecond precision so the value survives a round trip."""
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def to_timestamp_string(dt: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Args:
        dt: Datetime to format; naive values are assumed to be UTC

    Returns:
        Fixed-format timestamp string
    """
    aware = ensure_aware(dt)
    # year is padded by hand, %Y is not zero-padded below 1000 on glibc
    return f"{aware.year:04d}-{aware:%m-%dT%H:%M:%S}.{aware.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a persisted timestamp string into an aware UTC datetime.

    Accepts the fixed ``...Z`` format as well as any ISO 8601 string with an
    explicit offset or none at all (assumed UTC).

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    try:
        return ensure_aware(parsed)
    except OverflowError as e:
        # e.g. year 1 with a positive offset has no UTC equivalent
        raise ValueError(f"timestamp out of range: {value!r}") from e


def relative_time(dt: datetime, now: Optional[datetime] = None) -> str:
    """Describe how long ago ``dt`` was, e.g. "3 minutes ago"."""
    now = ensure_aware(now) if now is not None else now_utc()
    elapsed = (now - ensure_aware(dt)).total_seconds()

    for unit_seconds, unit in ((YEAR, "year"), (MONTH, "month"), (WEEK, "week"),
                               (DAY, "day"), (HOUR, "hour"), (MINUTE, "minute")):
        if elapsed >= unit_seconds:
            count = int(elapsed // unit_seconds)
            suffix = "" if count == 1 else "s"
            return f"{count} {unit}{suffix} ago"

    return "just now"
