"""Small numeric and calendar helpers."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round to ndigits with halves going up.

    Python's built-in round() uses banker's rounding, which turns 30.5 into
    30. Displayed averages and percentages round 30.5 to 31.

    Example:
        >>> round_half_up(30.5)
        31.0
        >>> round_half_up(180.25, 1)
        180.3
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def to_local(ts: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Return the naive wall-clock time of a timestamp in the user's zone.

    Naive timestamps are assumed to already be local and pass through.
    Aware timestamps are converted to ``tz`` (or the system local zone when
    ``tz`` is None) and stripped of their offset.
    """
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(tz).replace(tzinfo=None)


def local_now(tz: Optional[tzinfo] = None) -> datetime:
    """Current naive wall-clock time in ``tz``, to the second."""
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def local_today(tz: Optional[tzinfo] = None) -> date:
    """Current calendar date in ``tz``."""
    return local_now(tz).date()


def local_date(ts: datetime, tz: Optional[tzinfo] = None) -> date:
    """Return the calendar date of a timestamp in the user's local day."""
    return to_local(ts, tz).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return inclusive naive [start, end] datetimes covering a local calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def trailing_dates(today: date, days: int) -> list[date]:
    """Return ``days`` consecutive dates ending at ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def day_name(day: date) -> str:
    """Return the English weekday name of a date."""
    return DAY_NAMES[day.weekday()]
