import math
from datetime import date, datetime, timedelta
from typing import Tuple

from swapapi.utils.timezone_utils import ensure_utc


def derive_shift_date(shift_start: datetime) -> date:
    """
    Calendar date a shift belongs to: the UTC date of its start instant.

    Both schedule creation and schedule updates go through this function so
    the stored shift_date never drifts from shift_start.

    An instant of 06:00 at UTC+9 on 2 March is 21:00 UTC on 1 March, so its
    shift_date is 1 March.
    """
    return ensure_utc(shift_start).date()


def utc_day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Return [start, end) instants of a UTC calendar day."""
    start = ensure_utc(datetime(day.year, day.month, day.day))
    return start, start + timedelta(days=1)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded to the nearest minute (halves round up)."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return math.floor(seconds / 60 + 0.5)
