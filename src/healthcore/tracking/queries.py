"""Database queries for tracking logs and streak state.

Timestamps are stored as naive ISO-8601 text in the profile's local zone
(second precision), so lexical order is chronological and range filters are
plain string comparisons.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from healthcore.config import get_settings
from healthcore.constants import WEIGHT_DEDUP_WINDOW_MIN, WORKOUT_DEDUP_WINDOW_MIN
from healthcore.tracking.models import (
    ActivitySummary,
    FoodItem,
    Measurement,
    MobilityEntry,
    NutritionEntry,
    StreakState,
    WaterEntry,
    WorkoutEntry,
)
from healthcore.tracking.reconcile import is_duplicate_measurement, is_duplicate_workout
from healthcore.utils import day_bounds, to_local

logger = logging.getLogger(__name__)


def to_db_timestamp(ts: datetime) -> str:
    """Serialize a timestamp for storage.

    Aware values become wall-clock time in the profile's zone, the same zone
    that decides which day is "today".
    """
    if ts.tzinfo is not None:
        ts = to_local(ts, get_settings().profile.tz)
    return ts.isoformat(timespec="seconds")


def from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def local_timestamp(ts: datetime) -> datetime:
    """The naive value a timestamp will have once stored."""
    return from_db_timestamp(to_db_timestamp(ts))


def _range_params(start: datetime, end: datetime) -> tuple[str, str]:
    return to_db_timestamp(start), to_db_timestamp(end)


class WeightQueries:
    """Database queries for weight readings."""

    @staticmethod
    def _row_to_measurement(row) -> Measurement:
        return Measurement(
            timestamp=from_db_timestamp(row["timestamp"]),
            value=row["weight_lbs"],
            source=row["source"],
            body_fat_pct=row["body_fat_pct"],
            log_id=row["log_id"],
        )

    @staticmethod
    def get_weights(
        conn: sqlite3.Connection,
        start: datetime,
        end: datetime,
    ) -> list[Measurement]:
        """Readings with start <= timestamp <= end, oldest first, unreconciled."""
        rows = conn.execute(
            """
            SELECT log_id, timestamp, weight_lbs, source, body_fat_pct
            FROM weight_logs
            WHERE timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp
            """,
            _range_params(start, end),
        ).fetchall()
        return [WeightQueries._row_to_measurement(row) for row in rows]

    @staticmethod
    def get_all_weights(conn: sqlite3.Connection) -> list[Measurement]:
        """Every stored reading, oldest first."""
        rows = conn.execute(
            """
            SELECT log_id, timestamp, weight_lbs, source, body_fat_pct
            FROM weight_logs ORDER BY timestamp
            """
        ).fetchall()
        return [WeightQueries._row_to_measurement(row) for row in rows]

    @staticmethod
    def add_weight(
        conn: sqlite3.Connection,
        measurement: Measurement,
    ) -> Optional[Measurement]:
        """
        Store a reading unless an equal-or-better source already covers it.

        Stored readings within ±30 minutes are checked with the same duplicate
        test used at read time.

        Returns:
            The stored reading with its log_id, or None when skipped
        """
        measurement = replace(measurement, timestamp=local_timestamp(measurement.timestamp))
        window = timedelta(minutes=WEIGHT_DEDUP_WINDOW_MIN)
        nearby = WeightQueries.get_weights(
            conn, measurement.timestamp - window, measurement.timestamp + window
        )
        if any(is_duplicate_measurement(measurement, kept) for kept in nearby):
            logger.info(
                "Skipped duplicate weight %.1f from %s at %s",
                measurement.value,
                measurement.source,
                measurement.timestamp,
            )
            return None

        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO weight_logs (timestamp, weight_lbs, source, body_fat_pct)
            VALUES (?, ?, ?, ?)
            """,
            (
                to_db_timestamp(measurement.timestamp),
                measurement.value,
                measurement.source,
                measurement.body_fat_pct,
            ),
        )
        conn.commit()

        if cursor.rowcount == 0:
            return None

        return Measurement(
            timestamp=measurement.timestamp,
            value=measurement.value,
            source=measurement.source,
            body_fat_pct=measurement.body_fat_pct,
            log_id=cursor.lastrowid,
        )

    @staticmethod
    def insert_many(conn: sqlite3.Connection, measurements: Iterable[Measurement]) -> int:
        """
        Bulk insert readings, ignoring rows with an existing (timestamp, source).

        Returns:
            Number of rows actually inserted
        """
        before = conn.total_changes
        conn.executemany(
            """
            INSERT OR IGNORE INTO weight_logs (timestamp, weight_lbs, source, body_fat_pct)
            VALUES (?, ?, ?, ?)
            """,
            [
                (to_db_timestamp(m.timestamp), m.value, m.source, m.body_fat_pct)
                for m in measurements
            ],
        )
        conn.commit()
        return conn.total_changes - before


class FoodQueries:
    """Database queries for food logs."""

    @staticmethod
    def add_food(conn: sqlite3.Connection, entry: NutritionEntry) -> NutritionEntry:
        """Store a meal and return it with its log_id."""
        cursor = conn.execute(
            """
            INSERT INTO food_logs (timestamp, meal_type, items_json, total_calories,
                                   protein_g, carbs_g, fat_g, lapse_context)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                to_db_timestamp(entry.timestamp),
                entry.meal_type,
                json.dumps([item.to_dict() for item in entry.items]),
                entry.total_calories,
                entry.protein_g,
                entry.carbs_g,
                entry.fat_g,
                entry.lapse_context,
            ),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_food_logs(
        conn: sqlite3.Connection,
        start: datetime,
        end: datetime,
    ) -> list[NutritionEntry]:
        """Meals with start <= timestamp <= end, oldest first."""
        rows = conn.execute(
            """
            SELECT log_id, timestamp, meal_type, items_json, total_calories,
                   protein_g, carbs_g, fat_g, lapse_context
            FROM food_logs
            WHERE timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp
            """,
            _range_params(start, end),
        ).fetchall()

        return [
            NutritionEntry(
                timestamp=from_db_timestamp(row["timestamp"]),
                meal_type=row["meal_type"],
                items=[FoodItem.from_dict(item) for item in json.loads(row["items_json"] or "[]")],
                total_calories=row["total_calories"],
                protein_g=row["protein_g"],
                carbs_g=row["carbs_g"],
                fat_g=row["fat_g"],
                lapse_context=row["lapse_context"],
                log_id=row["log_id"],
            )
            for row in rows
        ]


class WorkoutQueries:
    """Database queries for workouts."""

    @staticmethod
    def get_workouts(
        conn: sqlite3.Connection,
        start: datetime,
        end: datetime,
    ) -> list[WorkoutEntry]:
        """Workouts with start <= timestamp <= end, oldest first, unreconciled."""
        rows = conn.execute(
            """
            SELECT log_id, timestamp, type, duration_min, calories_burned,
                   avg_hr, external_id, source
            FROM workouts
            WHERE timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp
            """,
            _range_params(start, end),
        ).fetchall()

        return [
            WorkoutEntry(
                timestamp=from_db_timestamp(row["timestamp"]),
                type=row["type"],
                duration_min=row["duration_min"],
                calories_burned=row["calories_burned"],
                avg_hr=row["avg_hr"],
                external_id=row["external_id"],
                source=row["source"],
                log_id=row["log_id"],
            )
            for row in rows
        ]

    @staticmethod
    def add_workout(conn: sqlite3.Connection, workout: WorkoutEntry) -> Optional[WorkoutEntry]:
        """
        Store a workout unless it duplicates one already stored.

        Returns:
            The stored workout with its log_id, or None when skipped
        """
        workout.timestamp = local_timestamp(workout.timestamp)
        if workout.external_id:
            existing = conn.execute(
                "SELECT log_id FROM workouts WHERE external_id = ?",
                (workout.external_id,),
            ).fetchone()
            if existing:
                logger.info("Skipped workout with known external id %s", workout.external_id)
                return None

        window = timedelta(minutes=WORKOUT_DEDUP_WINDOW_MIN)
        nearby = WorkoutQueries.get_workouts(
            conn, workout.timestamp - window, workout.timestamp + window
        )
        if any(is_duplicate_workout(workout, kept) for kept in nearby):
            logger.info("Skipped duplicate %s workout at %s", workout.type, workout.timestamp)
            return None

        cursor = conn.execute(
            """
            INSERT INTO workouts (timestamp, type, duration_min, calories_burned,
                                  avg_hr, external_id, source)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                to_db_timestamp(workout.timestamp),
                workout.type,
                workout.duration_min,
                workout.calories_burned,
                workout.avg_hr,
                workout.external_id,
                workout.source,
            ),
        )
        conn.commit()
        workout.log_id = cursor.lastrowid
        return workout


class WaterQueries:
    """Database queries for water intake."""

    @staticmethod
    def add_water(conn: sqlite3.Connection, entry: WaterEntry) -> WaterEntry:
        cursor = conn.execute(
            "INSERT INTO water_logs (timestamp, amount_oz) VALUES (?, ?)",
            (to_db_timestamp(entry.timestamp), entry.amount_oz),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_water_logs(
        conn: sqlite3.Connection,
        start: datetime,
        end: datetime,
    ) -> list[WaterEntry]:
        rows = conn.execute(
            """
            SELECT log_id, timestamp, amount_oz FROM water_logs
            WHERE timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp
            """,
            _range_params(start, end),
        ).fetchall()
        return [
            WaterEntry(
                timestamp=from_db_timestamp(row["timestamp"]),
                amount_oz=row["amount_oz"],
                log_id=row["log_id"],
            )
            for row in rows
        ]


class MobilityQueries:
    """Database queries for mobility routines."""

    @staticmethod
    def add_mobility(conn: sqlite3.Connection, entry: MobilityEntry) -> MobilityEntry:
        cursor = conn.execute(
            """
            INSERT INTO mobility_logs (date, routine_type, exercises_json, pain_level)
            VALUES (?, ?, ?, ?)
            """,
            (
                entry.date.isoformat(),
                entry.routine_type,
                json.dumps(entry.exercises_completed),
                entry.pain_level,
            ),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_mobility_logs(
        conn: sqlite3.Connection,
        start_date: date,
        end_date: date,
    ) -> list[MobilityEntry]:
        rows = conn.execute(
            """
            SELECT log_id, date, routine_type, exercises_json, pain_level
            FROM mobility_logs
            WHERE date >= ? AND date <= ?
            ORDER BY date
            """,
            (start_date.isoformat(), end_date.isoformat()),
        ).fetchall()
        return [
            MobilityEntry(
                date=date.fromisoformat(row["date"]),
                routine_type=row["routine_type"],
                exercises_completed=json.loads(row["exercises_json"] or "[]"),
                pain_level=row["pain_level"],
                log_id=row["log_id"],
            )
            for row in rows
        ]


class StreakQueries:
    """Database queries for the check-in streak."""

    @staticmethod
    def _row_to_state(row) -> StreakState:
        last = row["last_check_in_date"]
        return StreakState(
            current_streak=row["current_streak"],
            longest_streak=row["longest_streak"],
            last_check_in_date=date.fromisoformat(last) if last else None,
            freezes_remaining=row["freezes_remaining"],
            freezes_used=row["freezes_used"],
            streak_id=row["id"],
        )

    @staticmethod
    def get_streak(conn: sqlite3.Connection) -> Optional[StreakState]:
        row = conn.execute(
            """
            SELECT id, current_streak, longest_streak, last_check_in_date,
                   freezes_remaining, freezes_used
            FROM streaks ORDER BY id LIMIT 1
            """
        ).fetchone()
        return StreakQueries._row_to_state(row) if row else None

    @staticmethod
    def get_or_create(conn: sqlite3.Connection) -> StreakState:
        """Return the streak row, creating the initial state if missing."""
        state = StreakQueries.get_streak(conn)
        if state is not None:
            return state

        initial = StreakState()
        cursor = conn.execute(
            """
            INSERT INTO streaks (current_streak, longest_streak, last_check_in_date,
                                 freezes_remaining, freezes_used)
            VALUES (?, ?, NULL, ?, ?)
            """,
            (
                initial.current_streak,
                initial.longest_streak,
                initial.freezes_remaining,
                initial.freezes_used,
            ),
        )
        conn.commit()
        initial.streak_id = cursor.lastrowid
        return initial

    @staticmethod
    def apply_check_in(
        conn: sqlite3.Connection,
        previous: StreakState,
        new: StreakState,
    ) -> bool:
        """
        Write ``new`` only if the row still has ``previous``'s last check-in date.

        The update is a single conditional statement, so two concurrent
        check-ins cannot both apply: the loser matches zero rows.

        Returns:
            True if this call's update was applied
        """
        if previous.streak_id is None:
            raise ValueError("Cannot update streak without streak_id")

        last = previous.last_check_in_date
        cursor = conn.execute(
            """
            UPDATE streaks
            SET current_streak = ?, longest_streak = ?, last_check_in_date = ?,
                freezes_remaining = ?, freezes_used = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND last_check_in_date IS ?
            """,
            (
                new.current_streak,
                new.longest_streak,
                new.last_check_in_date.isoformat() if new.last_check_in_date else None,
                new.freezes_remaining,
                new.freezes_used,
                previous.streak_id,
                last.isoformat() if last else None,
            ),
        )
        conn.commit()
        return cursor.rowcount == 1


def activity_summary(conn: sqlite3.Connection, day: date) -> ActivitySummary:
    """Count what was logged on a local calendar day."""
    start, end = day_bounds(day)
    params = _range_params(start, end)

    def count(table: str) -> int:
        row = conn.execute(
            f"SELECT COUNT(*) FROM {table} WHERE timestamp >= ? AND timestamp <= ?",
            params,
        ).fetchone()
        return row[0] if row else 0

    water = conn.execute(
        "SELECT COALESCE(SUM(amount_oz), 0) FROM water_logs WHERE timestamp >= ? AND timestamp <= ?",
        params,
    ).fetchone()
    mobility = conn.execute(
        "SELECT COUNT(*) FROM mobility_logs WHERE date = ?",
        (day.isoformat(),),
    ).fetchone()

    return ActivitySummary(
        food_count=count("food_logs"),
        workout_count=count("workouts"),
        weight_count=count("weight_logs"),
        mobility_count=mobility[0] if mobility else 0,
        water_oz=float(water[0]) if water else 0.0,
    )
