"""Daily check-in streak state machine.

A streak counts consecutive local days with any logged activity. One
transition function moves the persisted state forward:

    already checked in today     -> unchanged, "already_checked_in"
    no activity today            -> unchanged, "no_activity_today"
    last check-in was yesterday  -> current + 1
    exactly one missed day and a
    freeze is available          -> consume a freeze, current + 1
    otherwise                    -> current = 1

Afterwards ``longest_streak`` is raised to ``current_streak`` if needed and
``last_check_in_date`` becomes today. A fresh user starts with no check-ins
and one freeze.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from healthcore.constants import WATER_CHECK_IN_OZ
from healthcore.tracking.models import ActivitySummary, StreakState

# Missed days are counted from midday of the last check-in.
_ANCHOR = time(12, 0)


class CheckInStatus(str, Enum):
    """Outcome of a check-in attempt."""

    ALREADY_CHECKED_IN = "already_checked_in"
    NO_ACTIVITY_TODAY = "no_activity_today"
    STREAK_UPDATED = "streak_updated"
    STREAK_RESET = "streak_reset"
    FREEZE_USED = "freeze_used"


@dataclass
class CheckInResult:
    """New streak state plus what happened."""

    state: StreakState
    status: CheckInStatus
    freeze_used: bool = False

    @property
    def changed(self) -> bool:
        return self.status not in (
            CheckInStatus.ALREADY_CHECKED_IN,
            CheckInStatus.NO_ACTIVITY_TODAY,
        )

    def to_dict(self) -> dict:
        last = self.state.last_check_in_date
        return {
            "current_streak": self.state.current_streak,
            "longest_streak": self.state.longest_streak,
            "last_check_in_date": last.isoformat() if last else None,
            "freezes_remaining": self.state.freezes_remaining,
            "status": self.status.value,
        }


def has_activity_today(summary: ActivitySummary) -> bool:
    """Any food, workout, weight or mobility log today, or at least 8 oz of water."""
    return (
        summary.food_count > 0
        or summary.workout_count > 0
        or summary.weight_count > 0
        or summary.mobility_count > 0
        or summary.water_oz >= WATER_CHECK_IN_OZ
    )


def missed_days(last_check_in: date, now: datetime) -> int:
    """
    Whole days missed between the last check-in and ``now``.

    Counted as full days elapsed since noon of the last check-in day, minus
    the day being checked in. With ``now`` at the start of the day:

        last 2024-01-10, now 2024-01-12 00:00 -> 0
        last 2024-01-10, now 2024-01-13 00:00 -> 1
    """
    anchor = datetime.combine(last_check_in, _ANCHOR, tzinfo=now.tzinfo)
    elapsed = (now - anchor) / timedelta(days=1)
    return math.floor(elapsed) - 1


def evaluate_check_in(
    state: StreakState,
    today: date,
    has_activity: bool,
    now: Optional[datetime] = None,
) -> CheckInResult:
    """
    Apply one day's check-in to a streak.

    Pure: ``state`` is never modified; the result carries a new state.

    Args:
        state: Persisted streak state
        today: The user's local calendar day
        has_activity: Whether anything was logged today
        now: Moment used for the missed-day count (default: start of today)

    Returns:
        CheckInResult with the new state and status
    """
    last = state.last_check_in_date

    if last == today:
        return CheckInResult(state=state, status=CheckInStatus.ALREADY_CHECKED_IN)
    if not has_activity:
        return CheckInResult(state=state, status=CheckInStatus.NO_ACTIVITY_TODAY)

    if now is None:
        now = datetime.combine(today, time.min)

    freeze_used = False
    freezes_remaining = state.freezes_remaining
    freezes_used = state.freezes_used

    if last is not None and last == today - timedelta(days=1):
        current = state.current_streak + 1
    elif last is not None and freezes_remaining > 0 and missed_days(last, now) == 1:
        current = state.current_streak + 1
        freezes_remaining -= 1
        freezes_used += 1
        freeze_used = True
    else:
        current = 1

    new_state = replace(
        state,
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_check_in_date=today,
        freezes_remaining=freezes_remaining,
        freezes_used=freezes_used,
    )

    if freeze_used:
        status = CheckInStatus.FREEZE_USED
    elif current == 1 and state.current_streak > 1:
        status = CheckInStatus.STREAK_RESET
    else:
        status = CheckInStatus.STREAK_UPDATED

    return CheckInResult(state=new_state, status=status, freeze_used=freeze_used)
