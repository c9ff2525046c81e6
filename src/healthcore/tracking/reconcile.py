"""Source reconciliation for weight readings and workouts.

The same real-world event often reaches us more than once: a Withings scale
reading is mirrored into Apple Health and both integrations report it, or a
treadmill session is imported from Precor and again from HealthKit. These
functions collapse such near-duplicates into a single record.

Reconciliation is a read-time view. Inputs are never modified and nothing is
written back to the store.

Weight rule:
    Sort by timestamp, ties broken by source rank (most authoritative first).
    A candidate is dropped when an already-kept reading lies within ±30 min,
    differs by less than 0.5 lbs, and the candidate's rank is equal or worse.

Workout rule:
    Drop a candidate whose external_id matches a kept workout. Otherwise drop
    it when a kept workout started within ±15 min and its duration differs by
    at most 5 min. Duration stands in for "same session"; calories and heart
    rate are not compared.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from healthcore.constants import (
    WEIGHT_DEDUP_TOLERANCE_LBS,
    WEIGHT_DEDUP_WINDOW_MIN,
    WORKOUT_DEDUP_DURATION_MIN,
    WORKOUT_DEDUP_WINDOW_MIN,
)
from healthcore.tracking.models import Measurement, WorkoutEntry

_WEIGHT_WINDOW = timedelta(minutes=WEIGHT_DEDUP_WINDOW_MIN)
_WORKOUT_WINDOW = timedelta(minutes=WORKOUT_DEDUP_WINDOW_MIN)


def is_duplicate_measurement(candidate: Measurement, kept: Measurement) -> bool:
    """
    Return True if ``candidate`` should be dropped in favor of ``kept``.

    A Withings reading is never dropped in favor of a manual one, but a manual
    entry is dropped when an equal-or-better source already covers it.

    Args:
        candidate: Reading being considered
        kept: Reading that already survived reconciliation

    Returns:
        True when both describe the same event and ``kept`` is at least as
        authoritative as ``candidate``
    """
    if abs(candidate.timestamp - kept.timestamp) > _WEIGHT_WINDOW:
        return False
    if abs(candidate.value - kept.value) >= WEIGHT_DEDUP_TOLERANCE_LBS:
        return False
    return candidate.rank >= kept.rank


def is_duplicate_workout(candidate: WorkoutEntry, kept: WorkoutEntry) -> bool:
    """Return True if ``candidate`` describes the same session as ``kept``."""
    if candidate.external_id and candidate.external_id == kept.external_id:
        return True
    if abs(candidate.timestamp - kept.timestamp) > _WORKOUT_WINDOW:
        return False
    return abs(candidate.duration_min - kept.duration_min) <= WORKOUT_DEDUP_DURATION_MIN


def reconcile_measurements(records: Iterable[Measurement]) -> list[Measurement]:
    """
    Deduplicate weight readings reported by multiple sources.

    Args:
        records: Readings in any order

    Returns:
        Surviving readings in chronological order. Output is never longer
        than the input.

    Example:
        >>> from datetime import datetime
        >>> t = datetime(2025, 1, 6, 7, 2)
        >>> reconcile_measurements([
        ...     Measurement(t, 215.4, "apple_health"),
        ...     Measurement(t, 215.4, "withings"),
        ... ])
        [Measurement(..., value=215.4, source='withings', ...)]
    """
    ordered = sorted(records, key=lambda m: (m.timestamp, m.rank))

    kept: list[Measurement] = []
    for record in ordered:
        if any(is_duplicate_measurement(record, existing) for existing in kept):
            continue
        kept.append(record)

    return kept


# Weight readings are the default reconciliation target.
reconcile = reconcile_measurements


def reconcile_workouts(workouts: Iterable[WorkoutEntry]) -> list[WorkoutEntry]:
    """
    Deduplicate workouts imported from several integrations.

    Args:
        workouts: Workouts in any order

    Returns:
        Surviving workouts in chronological order
    """
    ordered = sorted(workouts, key=lambda w: w.timestamp)

    kept: list[WorkoutEntry] = []
    for workout in ordered:
        if any(is_duplicate_workout(workout, existing) for existing in kept):
            continue
        kept.append(workout)

    return kept
