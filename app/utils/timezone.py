"""
Time helpers for the mirror.

All timestamps are stored as naive UTC datetimes (the `games` and `liveodds`
columns are `timestamp without time zone`), so every helper here returns
naive values already converted to UTC.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

UTC = timezone.utc

# Odds rows older than this are evicted before each odds write
LIVEODDS_RETENTION = timedelta(days=1)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    """Midnight (UTC) of the current calendar day."""
    now = now or utc_now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def liveodds_cutoff(now: Optional[datetime] = None) -> datetime:
    """Oldest `fetched_at` an odds row may have and still be kept."""
    return (now or utc_now()) - LIVEODDS_RETENTION


def parse_unix_maybe(value: str) -> Optional[datetime]:
    """
    Parse a Unix-epoch seconds string into a naive UTC datetime.

    Blank, non-integer and non-positive values yield None rather than an error;
    upstream timestamps are not trusted.

    Examples:
        >>> parse_unix_maybe("1700000000")
        datetime.datetime(2023, 11, 14, 22, 13, 20)
        >>> parse_unix_maybe("0") is None
        True
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        seconds = int(value)
    except ValueError:
        return None
    if seconds <= 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=UTC).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None
