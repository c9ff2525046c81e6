"""Goal-date estimates and weight trajectory projections.

All projections work on smoothed points from ``rolling_average`` and use
simple, explainable heuristics: a straight line through the recent trend.
There are no confidence intervals and no seasonality.

The projector never extrapolates a flat or rising trend toward a lower
goal weight; it reports "no estimate" (None) instead.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Sequence, Union

import numpy as np

from healthcore.constants import GOAL_REACHED
from healthcore.tracking.models import ProjectionPoint, RollingAveragePoint
from healthcore.utils import round_half_up

# Points used for the recent trend
TREND_POINTS = 14
# Minimum history before a goal date is estimated
MIN_POINTS_FOR_GOAL_DATE = 7
# Minimum history before a trajectory is fitted
MIN_POINTS_FOR_TRAJECTORY = 3
# Days between projected checkpoints
CHECKPOINT_INTERVAL_DAYS = 7
DEFAULT_PROJECTION_DAYS = 180

GoalEstimate = Union[date, str, None]


def estimate_goal_date(
    points: Sequence[RollingAveragePoint],
    goal_weight: float,
) -> GoalEstimate:
    """
    Estimate when the smoothed weight will reach ``goal_weight``.

    Uses the average daily loss between the first and last of the most
    recent 14 points.

    Args:
        points: Rolling average points in chronological order
        goal_weight: Target weight in lbs

    Returns:
        - None with fewer than 7 points, or when the recent window shows no
          net loss (or spans zero days)
        - The string "Goal reached!" when the latest average is at or below
          the goal
        - Otherwise the projected date
    """
    if len(points) < MIN_POINTS_FOR_GOAL_DATE:
        return None

    recent = points[-TREND_POINTS:]
    if len(recent) < 2:
        return None

    first, last = recent[0], recent[-1]
    days_between = (last.date - first.date).days

    if days_between == 0 or last.avg >= first.avg:
        return None  # not losing

    loss_per_day = (first.avg - last.avg) / days_between
    remaining = last.avg - goal_weight

    if remaining <= 0:
        return GOAL_REACHED

    days_to_goal = math.ceil(remaining / loss_per_day)
    return last.date + timedelta(days=days_to_goal)


def weekly_weight_change_rate(points: Sequence[RollingAveragePoint]) -> float | None:
    """
    Compare the mean of the last 7 points with the mean of the 7 before.

    Args:
        points: Rolling average points in chronological order

    Returns:
        Change in lbs (negative = losing), rounded to 0.1, or None with
        fewer than 14 points. There is no shorter fallback window.
    """
    if len(points) < TREND_POINTS:
        return None

    recent = points[-7:]
    older = points[-14:-7]

    recent_avg = sum(p.avg for p in recent) / len(recent)
    older_avg = sum(p.avg for p in older) / len(older)

    return round_half_up(recent_avg - older_avg, 1)


def fit_trend_line(values: Sequence[float]) -> tuple[float, float]:
    """
    Ordinary least squares line through ``values`` against their index.

    Args:
        values: y values; x is 0, 1, 2, ...

    Returns:
        Tuple of (slope, intercept). A single value gives slope 0.
    """
    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)

    x_mean = x.mean()
    y_mean = y.mean()
    denominator = float(((x - x_mean) ** 2).sum())

    slope = float(((x - x_mean) * (y - y_mean)).sum()) / denominator if denominator else 0.0
    intercept = float(y_mean) - slope * float(x_mean)
    return slope, intercept


def project_weight_trajectory(
    points: Sequence[RollingAveragePoint],
    goal_weight: float,
    projection_days: int = DEFAULT_PROJECTION_DAYS,
) -> list[ProjectionPoint]:
    """
    Project weekly weight checkpoints from the recent linear trend.

    A line is fitted over the last 14 points (x = point index). Checkpoints
    are emitted at day offsets 1, 8, 15, ... from the last point's date. When
    a checkpoint would fall below the goal, the goal weight is emitted once
    and projection stops.

    Args:
        points: Rolling average points in chronological order
        goal_weight: Target weight in lbs
        projection_days: How far ahead to project

    Returns:
        Projected checkpoints; empty with fewer than 3 points
    """
    if len(points) < MIN_POINTS_FOR_TRAJECTORY:
        return []

    recent = points[-TREND_POINTS:]
    n = len(recent)
    slope, intercept = fit_trend_line([p.avg for p in recent])
    last_date = recent[-1].date

    projections: list[ProjectionPoint] = []
    for offset in range(1, projection_days + 1, CHECKPOINT_INTERVAL_DAYS):
        checkpoint = last_date + timedelta(days=offset)
        projected = round_half_up(intercept + slope * (n - 1 + offset), 1)

        if projected < goal_weight:
            projections.append(ProjectionPoint(date=checkpoint, projected=goal_weight))
            break

        projections.append(ProjectionPoint(date=checkpoint, projected=projected))

    return projections
