"""Daily check-in streaks."""

from healthcore.streaks.evaluator import (
    CheckInResult,
    CheckInStatus,
    evaluate_check_in,
    has_activity_today,
)

__all__ = ["CheckInResult", "CheckInStatus", "evaluate_check_in", "has_activity_today"]
