"""Trailing rolling average for weight tracking.

Day-to-day scale readings swing by a pound or more from water retention,
glycogen, sodium and gut contents. A trailing mean over the most recent
readings filters that noise while still following the underlying trend:

    avg_i = mean(W_{max(0, i-N+1)}, ..., W_i)

The window counts *entries*, not calendar days. Two readings logged on the
same day both occupy a slot, which shortens the time span the average
covers. Near the start of a history the window simply holds fewer entries.

The average is causal: point i only looks at readings at or before i, so
earlier points never change when new readings arrive.
"""

from __future__ import annotations

from typing import Iterable

from healthcore.tracking.models import Measurement, RollingAveragePoint
from healthcore.utils import local_date, round_half_up

# Default window: last 7 readings
DEFAULT_WINDOW = 7


def trailing_mean(values: list[float], window: int) -> list[float]:
    """
    Mean of each value and up to ``window - 1`` values before it.

    Args:
        values: Series in chronological order
        window: Maximum number of entries averaged per point

    Returns:
        List of means, same length as ``values``

    Example:
        >>> trailing_mean([180.0, 179.0, 181.0], 2)
        [180.0, 179.5, 180.0]
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")

    means = []
    for i in range(len(values)):
        recent = values[max(0, i - window + 1) : i + 1]
        means.append(sum(recent) / len(recent))
    return means


def rolling_average(
    logs: Iterable[Measurement],
    window_days: int = DEFAULT_WINDOW,
) -> list[RollingAveragePoint]:
    """
    Smooth a weight series with a trailing window of recent entries.

    Args:
        logs: Reconciled weight readings in any order
        window_days: Number of most recent *entries* averaged per point
                     (named for the common one-reading-a-day case)

    Returns:
        One point per reading, in chronological order, with the average
        rounded to 0.1 lb and the raw reading alongside
    """
    ordered = sorted(logs, key=lambda m: m.timestamp)
    if not ordered:
        return []

    means = trailing_mean([m.value for m in ordered], window_days)

    return [
        RollingAveragePoint(
            date=local_date(m.timestamp),
            avg=round_half_up(mean, 1),
            raw=m.value,
        )
        for m, mean in zip(ordered, means)
    ]
