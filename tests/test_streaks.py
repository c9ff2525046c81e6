"""Tests for the check-in streak state machine and its persistence."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from healthcore.config import reload_settings
from healthcore.streaks import service
from healthcore.streaks.evaluator import (
    CheckInStatus,
    evaluate_check_in,
    has_activity_today,
    missed_days,
)
from healthcore.streaks.service import check_in
from healthcore.tracking.models import ActivitySummary, Measurement, StreakState, WaterEntry
from healthcore.tracking.queries import StreakQueries, WaterQueries, WeightQueries


def state(current=3, longest=5, last=date(2024, 1, 10), freezes=1) -> StreakState:
    return StreakState(
        current_streak=current,
        longest_streak=longest,
        last_check_in_date=last,
        freezes_remaining=freezes,
    )


class TestEvaluateCheckIn:
    """Tests for evaluate_check_in."""

    def test_consecutive_day(self) -> None:
        """Checking in the day after extends the streak."""
        result = evaluate_check_in(state(), date(2024, 1, 11), True)
        assert result.status == CheckInStatus.STREAK_UPDATED
        assert result.state.current_streak == 4
        assert result.state.longest_streak == 5
        assert result.state.last_check_in_date == date(2024, 1, 11)
        assert result.state.freezes_remaining == 1

    def test_freeze_covers_missed_day(self) -> None:
        """Missing the 12th and checking in on the 13th spends the freeze."""
        result = evaluate_check_in(state(), date(2024, 1, 13), True)
        assert result.status == CheckInStatus.FREEZE_USED
        assert result.freeze_used
        assert result.state.current_streak == 4
        assert result.state.freezes_remaining == 0
        assert result.state.freezes_used == 1

    def test_no_freeze_resets(self) -> None:
        """Without a freeze the same gap resets the streak."""
        result = evaluate_check_in(state(freezes=0), date(2024, 1, 13), True)
        assert result.status == CheckInStatus.STREAK_RESET
        assert result.state.current_streak == 1
        assert result.state.longest_streak == 5

    def test_long_gap_resets(self) -> None:
        """A gap of more than one missed day resets even with a freeze."""
        result = evaluate_check_in(state(), date(2024, 1, 20), True)
        assert result.status == CheckInStatus.STREAK_RESET
        assert result.state.current_streak == 1
        assert result.state.freezes_remaining == 1

    def test_already_checked_in(self) -> None:
        """A second check-in on the same day is a no-op."""
        before = state(last=date(2024, 1, 11))
        result = evaluate_check_in(before, date(2024, 1, 11), True)
        assert result.status == CheckInStatus.ALREADY_CHECKED_IN
        assert result.state == before
        assert not result.changed

    def test_no_activity(self) -> None:
        """Nothing logged today leaves the state alone."""
        before = state()
        result = evaluate_check_in(before, date(2024, 1, 11), False)
        assert result.status == CheckInStatus.NO_ACTIVITY_TODAY
        assert result.state == before

    def test_first_check_in(self) -> None:
        """A fresh user starts a streak of one."""
        result = evaluate_check_in(StreakState(), date(2024, 1, 11), True)
        assert result.status == CheckInStatus.STREAK_UPDATED
        assert result.state.current_streak == 1
        assert result.state.longest_streak == 1

    def test_longest_raised(self) -> None:
        """The longest streak follows the current one upward."""
        result = evaluate_check_in(state(current=5, longest=5), date(2024, 1, 11), True)
        assert result.state.longest_streak == 6

    def test_input_not_mutated(self) -> None:
        """The evaluator returns a new state object."""
        before = state()
        evaluate_check_in(before, date(2024, 1, 11), True)
        assert before.current_streak == 3
        assert before.last_check_in_date == date(2024, 1, 10)

    def test_to_dict(self) -> None:
        """The response body carries the state and status."""
        result = evaluate_check_in(state(), date(2024, 1, 11), True)
        assert result.to_dict() == {
            "current_streak": 4,
            "longest_streak": 5,
            "last_check_in_date": "2024-01-11",
            "freezes_remaining": 1,
            "status": "streak_updated",
        }


class TestMissedDays:
    """Tests for the noon-anchored missed day count."""

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2024, 1, 12), 0),
            (date(2024, 1, 13), 1),
            (date(2024, 1, 14), 2),
        ],
    )
    def test_from_start_of_day(self, today: date, expected: int) -> None:
        """Counted from midnight of the check-in day."""
        assert missed_days(date(2024, 1, 10), datetime.combine(today, time.min)) == expected

    def test_later_in_the_day(self) -> None:
        """Checking in after noon counts the extra half day."""
        assert missed_days(date(2024, 1, 10), datetime(2024, 1, 12, 18, 0)) == 1


class TestHasActivityToday:
    """Tests for has_activity_today."""

    def test_nothing(self) -> None:
        """An empty day is not activity."""
        assert not has_activity_today(ActivitySummary())

    def test_any_log(self) -> None:
        """A single log of any kind counts."""
        assert has_activity_today(ActivitySummary(mobility_count=1))
        assert has_activity_today(ActivitySummary(weight_count=1))

    def test_water_threshold(self) -> None:
        """Water counts from 8 oz."""
        assert not has_activity_today(ActivitySummary(water_oz=7.5))
        assert has_activity_today(ActivitySummary(water_oz=8))


class TestCheckInService:
    """Tests for check_in against the database."""

    TODAY = date(2024, 1, 11)

    def _log_weight(self, db, day: date) -> None:
        with db.get_connection() as conn:
            WeightQueries.add_weight(
                conn, Measurement(datetime.combine(day, time(7)), 200.0, "withings")
            )

    def test_no_activity(self, temp_db) -> None:
        """Without logs the initial state is stored and returned."""
        result = check_in(temp_db, today=self.TODAY)
        assert result.status == CheckInStatus.NO_ACTIVITY_TODAY
        assert result.state.current_streak == 0
        assert result.state.freezes_remaining == 1

    def test_check_in_persists(self, temp_db) -> None:
        """A check-in is written and a repeat on the same day is a no-op."""
        self._log_weight(temp_db, self.TODAY)

        first = check_in(temp_db, today=self.TODAY)
        assert first.status == CheckInStatus.STREAK_UPDATED
        assert first.state.current_streak == 1

        second = check_in(temp_db, today=self.TODAY)
        assert second.status == CheckInStatus.ALREADY_CHECKED_IN
        assert second.state.current_streak == 1

        with temp_db.get_connection() as conn:
            stored = StreakQueries.get_streak(conn)
        assert stored.last_check_in_date == self.TODAY
        assert stored.longest_streak == 1

    def test_consecutive_days(self, temp_db) -> None:
        """Two days in a row build a streak of two."""
        yesterday = date(2024, 1, 10)
        self._log_weight(temp_db, yesterday)
        self._log_weight(temp_db, self.TODAY)

        check_in(temp_db, today=yesterday)
        result = check_in(temp_db, today=self.TODAY)
        assert result.state.current_streak == 2

    def test_water_below_threshold(self, temp_db) -> None:
        """A sip of water is not a check-in."""
        with temp_db.get_connection() as conn:
            WaterQueries.add_water(conn, WaterEntry(datetime.combine(self.TODAY, time(9)), 4))
        assert check_in(temp_db, today=self.TODAY).status == CheckInStatus.NO_ACTIVITY_TODAY

    def test_concurrent_check_in_not_applied_twice(self, temp_db, monkeypatch) -> None:
        """A check-in working from a stale read keeps the stored streak."""
        self._log_weight(temp_db, self.TODAY)
        check_in(temp_db, today=self.TODAY)

        with temp_db.get_connection() as conn:
            stored = StreakQueries.get_streak(conn)

        stale = StreakState(
            current_streak=0,
            longest_streak=0,
            last_check_in_date=None,
            freezes_remaining=1,
            streak_id=stored.streak_id,
        )
        monkeypatch.setattr(service.StreakQueries, "get_or_create", staticmethod(lambda conn: stale))

        result = check_in(temp_db, today=self.TODAY)
        assert result.status == CheckInStatus.ALREADY_CHECKED_IN
        assert result.state.current_streak == 1

        with temp_db.get_connection() as conn:
            assert StreakQueries.get_streak(conn).current_streak == 1

    def _two_day_streak(self, db) -> None:
        for day in (date(2024, 1, 9), date(2024, 1, 10)):
            self._log_weight(db, day)
            check_in(db, today=day)

    def test_single_missed_day_resets_by_default(self, temp_db) -> None:
        """Counted from midnight, missing only the 11th keeps the freeze."""
        self._two_day_streak(temp_db)
        self._log_weight(temp_db, date(2024, 1, 12))

        result = check_in(temp_db, today=date(2024, 1, 12))
        assert result.status == CheckInStatus.STREAK_RESET
        assert result.state.current_streak == 1
        assert result.state.freezes_remaining == 1

    def test_single_missed_day_after_noon_spends_freeze(self, temp_db) -> None:
        """Counted from the current time, the same gap spends the freeze."""
        self._two_day_streak(temp_db)
        self._log_weight(temp_db, date(2024, 1, 12))

        result = check_in(temp_db, today=date(2024, 1, 12), now=datetime(2024, 1, 12, 13))
        assert result.status == CheckInStatus.FREEZE_USED
        assert result.state.current_streak == 3
        assert result.state.freezes_remaining == 0

    def test_default_day_is_profile_day(self, temp_db, isolated_settings, tmp_path, far_timezone) -> None:
        """Without an explicit day the profile zone decides which day it is."""
        (tmp_path / "config.yaml").write_text(f"profile:\n  timezone: {far_timezone}\n")
        profile = reload_settings().profile
        with temp_db.get_connection() as conn:
            WeightQueries.add_weight(conn, Measurement(profile.now(), 200.0, "manual"))

        result = check_in(temp_db)
        assert result.status == CheckInStatus.STREAK_UPDATED
        assert result.state.last_check_in_date == profile.today()
        assert result.state.last_check_in_date != date.today()


class TestApplyCheckIn:
    """Tests for the conditional streak update."""

    def test_stale_previous_rejected(self, temp_db) -> None:
        """Only the first of two updates from the same read applies."""
        with temp_db.get_connection() as conn:
            initial = StreakQueries.get_or_create(conn)
            first = evaluate_check_in(initial, date(2024, 1, 11), True).state
            second = evaluate_check_in(initial, date(2024, 1, 11), True).state

            assert StreakQueries.apply_check_in(conn, initial, first)
            assert not StreakQueries.apply_check_in(conn, initial, second)
            assert StreakQueries.get_streak(conn).current_streak == 1

    def test_requires_id(self, temp_db) -> None:
        """A state that was never stored cannot be updated."""
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                StreakQueries.apply_check_in(conn, StreakState(), StreakState(current_streak=1, longest_streak=1))
