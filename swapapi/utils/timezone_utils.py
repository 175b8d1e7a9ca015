"""
Timezone utilities

All instants in the system are handled in UTC.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return the current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Convert a datetime to aware UTC; naive values are assumed to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)
