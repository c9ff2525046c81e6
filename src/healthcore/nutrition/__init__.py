"""Nutrition aggregates and calorie targets."""

from __future__ import annotations

from healthcore.nutrition.adherence import (
    DailyAdherence,
    MacroBreakdown,
    daily_totals,
    macro_breakdown,
    weekly_calorie_adherence,
)
from healthcore.nutrition.targets import CalorieTargets, calculate_targets

__all__ = [
    "CalorieTargets",
    "DailyAdherence",
    "MacroBreakdown",
    "calculate_targets",
    "daily_totals",
    "macro_breakdown",
    "weekly_calorie_adherence",
]
