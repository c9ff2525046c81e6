"""Calendar free time and workout slot suggestions."""

from __future__ import annotations

from healthcore.schedule.availability import (
    FreeSlot,
    SmartSchedule,
    build_smart_schedule,
    day_schedule,
    free_slots,
    ranked_suggestions,
    score_slot,
    simple_best_slot,
)
from healthcore.schedule.calendar import CalendarEvent, FileCalendarSource, StaticCalendarSource

__all__ = [
    "CalendarEvent",
    "FileCalendarSource",
    "FreeSlot",
    "SmartSchedule",
    "StaticCalendarSource",
    "build_smart_schedule",
    "day_schedule",
    "free_slots",
    "ranked_suggestions",
    "score_slot",
    "simple_best_slot",
]
