"""Weight and workout tracking analytics.

Raw readings from several integrations are reconciled into one series,
smoothed with a trailing average of recent entries, and projected toward a
goal weight with a straight-line trend.

Key components:
- Source reconciliation (authority-ranked duplicate removal)
- Rolling average (last N entries)
- Goal-date estimate, weekly change rate and weekly trajectory checkpoints
"""

from __future__ import annotations

from healthcore.tracking.models import (
    Measurement,
    NutritionEntry,
    RollingAveragePoint,
    StreakState,
    WorkoutEntry,
)
from healthcore.tracking.projection import (
    estimate_goal_date,
    project_weight_trajectory,
    weekly_weight_change_rate,
)
from healthcore.tracking.reconcile import reconcile, reconcile_measurements, reconcile_workouts
from healthcore.tracking.rolling import rolling_average

__all__ = [
    "Measurement",
    "NutritionEntry",
    "RollingAveragePoint",
    "StreakState",
    "WorkoutEntry",
    "estimate_goal_date",
    "project_weight_trajectory",
    "reconcile",
    "reconcile_measurements",
    "reconcile_workouts",
    "rolling_average",
    "weekly_weight_change_rate",
]
