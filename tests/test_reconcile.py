"""Tests for source reconciliation of weights and workouts."""

from __future__ import annotations

from datetime import datetime, timedelta

from conftest import weight

from healthcore.constants import SOURCE_RANKS, UNKNOWN_SOURCE_RANK
from healthcore.tracking.models import Measurement, WorkoutEntry, source_rank
from healthcore.tracking.reconcile import (
    is_duplicate_measurement,
    is_duplicate_workout,
    reconcile,
    reconcile_measurements,
    reconcile_workouts,
)


def workout(ts: str, duration: float, source: str = "manual", external_id=None) -> WorkoutEntry:
    return WorkoutEntry(
        timestamp=datetime.fromisoformat(ts),
        type="elliptical",
        duration_min=duration,
        source=source,
        external_id=external_id,
    )


class TestSourceRank:
    """Tests for source authority ranks."""

    def test_known_ranks(self) -> None:
        """Withings outranks manual, which outranks Apple Health and TrendWeight."""
        assert SOURCE_RANKS["withings"] < SOURCE_RANKS["manual"]
        assert SOURCE_RANKS["manual"] < SOURCE_RANKS["apple_health"]
        assert SOURCE_RANKS["apple_health"] < SOURCE_RANKS["trendweight"]

    def test_unknown_source_ranks_last(self) -> None:
        """Unrecognized sources are less authoritative than every known one."""
        assert source_rank("fitbit") == UNKNOWN_SOURCE_RANK
        assert all(rank < UNKNOWN_SOURCE_RANK for rank in SOURCE_RANKS.values())


class TestDuplicateMeasurement:
    """Tests for the single-pair duplicate test."""

    def test_same_reading_worse_source_is_duplicate(self) -> None:
        """An Apple Health mirror of a Withings reading is dropped."""
        kept = weight("2025-01-06T07:02:00", 215.4, "withings")
        candidate = weight("2025-01-06T07:03:00", 215.4, "apple_health")
        assert is_duplicate_measurement(candidate, kept)

    def test_better_source_never_dropped(self) -> None:
        """A Withings reading is not dropped in favor of a manual one."""
        kept = weight("2025-01-06T07:00:00", 215.4, "manual")
        candidate = weight("2025-01-06T07:05:00", 215.4, "withings")
        assert not is_duplicate_measurement(candidate, kept)

    def test_equal_rank_is_duplicate(self) -> None:
        """Two manual entries of the same weigh-in collapse."""
        kept = weight("2025-01-06T07:00:00", 215.4)
        candidate = weight("2025-01-06T07:10:00", 215.6)
        assert is_duplicate_measurement(candidate, kept)

    def test_outside_time_window(self) -> None:
        """Readings 31 minutes apart are separate weigh-ins."""
        kept = weight("2025-01-06T07:00:00", 215.4, "withings")
        candidate = weight("2025-01-06T07:31:00", 215.4, "apple_health")
        assert not is_duplicate_measurement(candidate, kept)

    def test_time_window_boundary_inclusive(self) -> None:
        """Exactly 30 minutes apart still counts as the same event."""
        kept = weight("2025-01-06T07:00:00", 215.4, "withings")
        candidate = weight("2025-01-06T07:30:00", 215.4, "apple_health")
        assert is_duplicate_measurement(candidate, kept)

    def test_value_tolerance_is_strict(self) -> None:
        """A difference of exactly 0.5 lbs is a different reading."""
        kept = weight("2025-01-06T07:00:00", 215.0, "withings")
        candidate = weight("2025-01-06T07:01:00", 215.5, "apple_health")
        assert not is_duplicate_measurement(candidate, kept)


class TestReconcileMeasurements:
    """Tests for reconcile_measurements."""

    def test_empty(self) -> None:
        """No readings in, no readings out."""
        assert reconcile_measurements([]) == []

    def test_alias(self) -> None:
        """reconcile is the weight reconciler."""
        assert reconcile is reconcile_measurements

    def test_keeps_most_authoritative_on_tie(self) -> None:
        """Simultaneous readings keep the best-ranked source regardless of input order."""
        t = "2025-01-06T07:02:00"
        result = reconcile_measurements([
            weight(t, 215.4, "trendweight"),
            weight(t, 215.4, "apple_health"),
            weight(t, 215.4, "withings"),
        ])
        assert len(result) == 1
        assert result[0].source == "withings"

    def test_later_better_source_survives(self) -> None:
        """A better source logged after a worse one is kept alongside it."""
        result = reconcile_measurements([
            weight("2025-01-06T07:00:00", 215.4, "apple_health"),
            weight("2025-01-06T07:05:00", 215.4, "withings"),
        ])
        assert [m.source for m in result] == ["apple_health", "withings"]

    def test_distinct_days_kept(self) -> None:
        """Daily readings are never merged."""
        readings = [
            weight(f"2025-01-0{day}T07:00:00", 215.0 - day * 0.2, "withings") for day in range(1, 8)
        ]
        assert len(reconcile_measurements(readings)) == 7

    def test_output_chronological_and_inputs_untouched(self) -> None:
        """Output is sorted by time and the input list is not modified."""
        readings = [
            weight("2025-01-07T07:00:00", 214.0),
            weight("2025-01-06T07:00:00", 215.0),
        ]
        snapshot = list(readings)
        result = reconcile_measurements(readings)
        assert [m.value for m in result] == [215.0, 214.0]
        assert readings == snapshot

    def test_no_surviving_pair_is_reducible(self) -> None:
        """Mirrored readings reported after the original never survive next to it."""
        base = datetime(2025, 1, 6, 7, 0)
        readings = []
        for day in range(5):
            taken = base + timedelta(days=day)
            value = 215.0 - day * 0.3
            readings.append(Measurement(taken, value, "withings"))
            readings.append(Measurement(taken + timedelta(minutes=2), value, "apple_health"))
            readings.append(Measurement(taken + timedelta(minutes=4), value + 0.1, "manual"))
            readings.append(Measurement(taken, value, "trendweight"))

        result = reconcile_measurements(readings)

        assert len(result) <= len(readings)
        assert [m.source for m in result] == ["withings"] * 5
        for a in result:
            for b in result:
                if a is b:
                    continue
                close = abs(a.timestamp - b.timestamp) <= timedelta(minutes=30) and abs(a.value - b.value) < 0.5
                assert not (close and a.rank < b.rank)


class TestReconcileWorkouts:
    """Tests for reconcile_workouts."""

    def test_same_external_id(self) -> None:
        """Workouts sharing an external id collapse even hours apart."""
        kept = workout("2025-01-06T12:00:00", 40, "precor", external_id="abc")
        candidate = workout("2025-01-06T18:00:00", 20, "apple_health", external_id="abc")
        assert is_duplicate_workout(candidate, kept)

    def test_close_start_similar_duration(self) -> None:
        """Starts within 15 minutes and durations within 5 minutes are the same session."""
        result = reconcile_workouts([
            workout("2025-01-06T12:00:00", 40, "precor"),
            workout("2025-01-06T12:10:00", 44, "apple_health"),
        ])
        assert len(result) == 1
        assert result[0].source == "precor"

    def test_different_duration_kept(self) -> None:
        """A much longer session at the same time is a different workout."""
        result = reconcile_workouts([
            workout("2025-01-06T12:00:00", 20),
            workout("2025-01-06T12:05:00", 45),
        ])
        assert len(result) == 2

    def test_far_apart_kept(self) -> None:
        """Sessions 16 minutes apart are both kept."""
        result = reconcile_workouts([
            workout("2025-01-06T12:00:00", 30),
            workout("2025-01-06T12:16:00", 30),
        ])
        assert len(result) == 2
