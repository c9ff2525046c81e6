"""Check-in against the stored streak."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from healthcore.config import get_settings
from healthcore.db import DatabaseConnection
from healthcore.streaks.evaluator import (
    CheckInResult,
    CheckInStatus,
    evaluate_check_in,
    has_activity_today,
)
from healthcore.tracking.queries import StreakQueries, activity_summary

logger = logging.getLogger(__name__)


def check_in(
    db: DatabaseConnection,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> CheckInResult:
    """
    Run today's check-in: read state and activity, evaluate, write back.

    The write is conditional on the last check-in date that was read. When a
    concurrent check-in has already moved the streak, the stored state is
    returned with status ``already_checked_in`` rather than applying a
    second increment.

    Missed days are counted from noon of the last check-in day, and ``now``
    defaults to midnight at the start of ``today``. With that default a
    single missed day (last check-in on the 10th, check-in on the 12th)
    counts as zero missed days, so the streak resets and the freeze is kept.
    The freeze is spent only when the count is exactly one, which by default
    means the 10th to the 13th. Passing the actual current time as ``now``
    (the 12th after noon) lets a single missed day spend the freeze.

    Args:
        db: Database connection manager
        today: Local calendar day (default: today in the profile's zone)
        now: Moment used to count missed days (default: start of ``today``)
    """
    if today is None:
        today = get_settings().profile.today()

    with db.get_connection() as conn:
        state = StreakQueries.get_or_create(conn)
        summary = activity_summary(conn, today)
        result = evaluate_check_in(state, today, has_activity_today(summary), now=now)

        if not result.changed:
            logger.debug("Check-in for %s: %s", today, result.status.value)
            return result

        if not StreakQueries.apply_check_in(conn, state, result.state):
            logger.warning("Concurrent check-in detected for %s; keeping stored streak", today)
            stored = StreakQueries.get_streak(conn) or state
            return CheckInResult(state=stored, status=CheckInStatus.ALREADY_CHECKED_IN)

    logger.info(
        "Check-in for %s: %s (current=%d, longest=%d)",
        today,
        result.status.value,
        result.state.current_streak,
        result.state.longest_streak,
        extra={"healthcore_streak": result.state.current_streak},
    )
    return result
