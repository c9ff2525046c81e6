"""Weekly summary and weight trend report built from stored logs."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Union

from healthcore.config import get_settings
from healthcore.constants import CALORIE_TARGET, PROTEIN_TARGET_G
from healthcore.nutrition.adherence import daily_totals
from healthcore.tracking.models import Measurement, ProjectionPoint, RollingAveragePoint
from healthcore.tracking.projection import (
    estimate_goal_date,
    project_weight_trajectory,
    weekly_weight_change_rate,
)
from healthcore.tracking.queries import (
    FoodQueries,
    WaterQueries,
    WeightQueries,
    WorkoutQueries,
)
from healthcore.tracking.reconcile import reconcile_measurements, reconcile_workouts
from healthcore.tracking.rolling import rolling_average
from healthcore.utils import local_date, round_half_up

SUMMARY_DAYS = 7


@dataclass
class WeeklySummary:
    """Seven-day averages of weight, food, workouts and water."""

    avg_weight: Optional[float]
    weight_count: int
    avg_calories: Optional[int]
    avg_protein: Optional[int]
    total_workouts: int
    avg_water_oz: Optional[int]
    daily_calories: dict[date, float] = field(default_factory=dict)
    daily_protein: dict[date, float] = field(default_factory=dict)
    calorie_target: int = CALORIE_TARGET
    protein_target: int = PROTEIN_TARGET_G

    def to_dict(self) -> dict:
        return {
            "period": f"{SUMMARY_DAYS}d",
            "avgWeight": self.avg_weight,
            "weightCount": self.weight_count,
            "avgCalories": self.avg_calories,
            "avgProtein": self.avg_protein,
            "calorieTarget": self.calorie_target,
            "proteinTarget": self.protein_target,
            "totalWorkouts": self.total_workouts,
            "avgWaterOz": self.avg_water_oz,
            "dailyCalories": {d.isoformat(): v for d, v in self.daily_calories.items()},
            "dailyProtein": {d.isoformat(): v for d, v in self.daily_protein.items()},
        }


@dataclass
class TrendReport:
    """Smoothed weight history with goal estimates."""

    goal_weight: float
    points: list[RollingAveragePoint]
    goal_date: Union[date, str, None]
    weekly_change: Optional[float]
    trajectory: list[ProjectionPoint]

    @property
    def latest(self) -> Optional[RollingAveragePoint]:
        return self.points[-1] if self.points else None

    def to_dict(self) -> dict:
        goal_date = self.goal_date.isoformat() if isinstance(self.goal_date, date) else self.goal_date
        return {
            "goalWeight": self.goal_weight,
            "currentAvg": self.latest.avg if self.latest else None,
            "goalDate": goal_date,
            "weeklyChange": self.weekly_change,
            "rollingAverage": [
                {"date": p.date.isoformat(), "avg": p.avg, "raw": p.raw} for p in self.points
            ],
            "trajectory": [
                {"date": p.date.isoformat(), "projected": p.projected} for p in self.trajectory
            ],
        }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def weekly_summary(conn: sqlite3.Connection, now: Optional[datetime] = None) -> WeeklySummary:
    """
    Summarize the last seven days.

    Weights and workouts are reconciled first, so a reading mirrored by two
    integrations is counted once. Calorie and protein averages are over days
    with food logged; the water average is over days with water logged.

    Args:
        conn: Database connection
        now: End of the window (default: now in the profile's zone)
    """
    if now is None:
        now = get_settings().profile.now()
    start = now - timedelta(days=SUMMARY_DAYS)

    weights = reconcile_measurements(WeightQueries.get_weights(conn, start, now))
    workouts = reconcile_workouts(WorkoutQueries.get_workouts(conn, start, now))
    food_logs = FoodQueries.get_food_logs(conn, start, now)
    water_logs = WaterQueries.get_water_logs(conn, start, now)

    totals = daily_totals(food_logs)
    daily_calories = {day: t.calories for day, t in sorted(totals.items())}
    daily_protein = {day: t.protein_g for day, t in sorted(totals.items())}

    water_days = {local_date(w.timestamp) for w in water_logs}
    total_water = sum(w.amount_oz for w in water_logs)

    return WeeklySummary(
        avg_weight=round_half_up(_mean([w.value for w in weights]), 1) if weights else None,
        weight_count=len(weights),
        avg_calories=int(round_half_up(_mean(list(daily_calories.values())))) if daily_calories else None,
        avg_protein=int(round_half_up(_mean(list(daily_protein.values())))) if daily_protein else None,
        total_workouts=len(workouts),
        avg_water_oz=int(round_half_up(total_water / len(water_days))) if water_days else None,
        daily_calories=daily_calories,
        daily_protein=daily_protein,
    )


def trend_report(
    measurements: list[Measurement],
    goal_weight: float,
    window: int = 7,
) -> TrendReport:
    """
    Reconcile, smooth and project a weight history.

    Args:
        measurements: Raw readings from every source
        goal_weight: Target weight in lbs
        window: Rolling window in entries

    Returns:
        TrendReport; estimates are None (or empty) when history is too short
    """
    points = rolling_average(reconcile_measurements(measurements), window)
    return TrendReport(
        goal_weight=goal_weight,
        points=points,
        goal_date=estimate_goal_date(points, goal_weight),
        weekly_change=weekly_weight_change_rate(points),
        trajectory=project_weight_trajectory(points, goal_weight),
    )
