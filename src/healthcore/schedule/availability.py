"""Free-time extraction and workout slot scoring.

Free slots are the gaps between busy (non all-day) calendar events inside a
fixed daily window, 06:00 to 21:00 local time. Gaps shorter than 30 minutes
are dropped.

Slots are scored against the preferred workout windows:

    11:00-13:00 (lunch break)   +30
    16:00-20:00 (after work)    +20
    06:00-09:00 (early)         +10
    any other time              +5
    45+ minutes                 +15
    60+ minutes                 +10 more
    Saturday or Sunday          +5

Two selection policies exist on purpose:

- ``ranked_suggestions``: across many days, slots of 40+ minutes ranked by
  score, top 10. Used by the smart-schedule view.
- ``simple_best_slot``: within one day, the first slot of 45+ minutes, else
  the first slot of any size. Used by the single-day calendar sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional, Sequence

from healthcore.constants import (
    DAY_END,
    DAY_START,
    MIN_SLOT_MIN,
    SIMPLE_BEST_SLOT_MIN,
    SUGGESTION_SLOT_MIN,
    TOP_SUGGESTIONS,
)
from healthcore.schedule.calendar import CalendarEvent
from healthcore.utils import day_name, local_date, round_half_up, to_local


@dataclass(frozen=True)
class BusyInterval:
    """A span of time that is not available."""

    start: datetime
    end: datetime


@dataclass
class FreeSlot:
    """A gap in the calendar long enough to be useful."""

    start: datetime
    end: datetime
    duration_min: int
    score: int

    @property
    def date(self) -> date:
        return self.start.date()

    @property
    def day_of_week(self) -> str:
        return day_name(self.start.date())

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "durationMin": self.duration_min,
            "startTime": format_clock(self.start),
            "endTime": format_clock(self.end),
            "score": self.score,
        }


@dataclass
class DaySchedule:
    """One day's events and free slots."""

    date: date
    events: list[CalendarEvent] = field(default_factory=list)
    free_slots: list[FreeSlot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "events": [e.to_dict() for e in self.events],
            "freeSlots": [s.to_dict() for s in self.free_slots],
        }


@dataclass
class SmartSchedule:
    """Free slots over several days plus the best workout suggestions."""

    days: int
    day_schedules: dict[date, DaySchedule]
    top_suggestions: list[FreeSlot]

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "daySchedules": {d.isoformat(): s.to_dict() for d, s in self.day_schedules.items()},
            "topSuggestions": [s.to_dict() for s in self.top_suggestions],
        }


def format_clock(moment: datetime) -> str:
    """Format a time like "2:00 PM"."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def score_slot(slot_start: datetime, duration_min: float) -> int:
    """
    Score a slot by time of day, length and weekday. Pure and additive.

    Args:
        slot_start: Local start time of the slot
        duration_min: Slot length in minutes

    Returns:
        Integer score, higher is better
    """
    hour = slot_start.hour
    score = 0

    # Time-of-day terms are mutually exclusive
    if 11 <= hour < 13:
        score += 30
    elif 16 <= hour < 20:
        score += 20
    elif 6 <= hour < 9:
        score += 10
    else:
        score += 5

    if duration_min >= 45:
        score += 15
    if duration_min >= 60:
        score += 10

    if slot_start.weekday() >= 5:
        score += 5

    return score


def day_window(
    day: date,
    start: time = DAY_START,
    end: time = DAY_END,
) -> tuple[datetime, datetime]:
    """Return the naive [start, end) datetimes of a day's availability window."""
    return datetime.combine(day, start), datetime.combine(day, end)


def _make_slot(start: datetime, end: datetime) -> Optional[FreeSlot]:
    gap_min = (end - start).total_seconds() / 60
    if gap_min < MIN_SLOT_MIN:
        return None
    return FreeSlot(
        start=start,
        end=end,
        duration_min=int(round_half_up(gap_min)),
        score=score_slot(start, gap_min),
    )


def free_slots(
    busy: Iterable[BusyInterval],
    day: date,
    start: time = DAY_START,
    end: time = DAY_END,
    tz: Optional[tzinfo] = None,
) -> list[FreeSlot]:
    """
    Find gaps of 30+ minutes between busy intervals within a day's window.

    Busy intervals are sorted by start and walked with a cursor that only
    moves forward, so overlapping or nested meetings are absorbed. Busy time
    outside the window is clipped away.

    Args:
        busy: Busy intervals, any order, may overlap
        day: Calendar day to inspect
        start: Window start (default 06:00)
        end: Window end (default 21:00)
        tz: Zone that busy times with a UTC offset are read in (default:
            system local time). The window is naive wall-clock time.

    Returns:
        Free slots in chronological order, each scored
    """
    window_start, window_end = day_window(day, start, end)
    busy = [BusyInterval(to_local(b.start, tz), to_local(b.end, tz)) for b in busy]

    slots: list[FreeSlot] = []
    cursor = window_start

    for interval in sorted(busy, key=lambda b: b.start):
        if interval.start >= window_end:
            break
        if interval.start > cursor:
            slot = _make_slot(cursor, interval.start)
            if slot:
                slots.append(slot)
        cursor = max(cursor, min(interval.end, window_end))

    if cursor < window_end:
        slot = _make_slot(cursor, window_end)
        if slot:
            slots.append(slot)

    return slots


def busy_intervals(events: Iterable[CalendarEvent]) -> list[BusyInterval]:
    """Timed events as busy intervals; all-day events are ignored."""
    return [
        BusyInterval(start=e.start, end=e.end)
        for e in events
        if not e.all_day and e.end > e.start
    ]


def ranked_suggestions(
    slots: Iterable[FreeSlot],
    min_duration: int = SUGGESTION_SLOT_MIN,
    limit: int = TOP_SUGGESTIONS,
) -> list[FreeSlot]:
    """
    Best workout slots across days: 40+ minutes, highest score first, top 10.

    Ties keep their input order.
    """
    eligible = [s for s in slots if s.duration_min >= min_duration]
    eligible.sort(key=lambda s: s.score, reverse=True)
    return eligible[:limit]


def simple_best_slot(slots: Sequence[FreeSlot]) -> Optional[FreeSlot]:
    """First slot of 45+ minutes, falling back to the first slot at all."""
    for slot in slots:
        if slot.duration_min >= SIMPLE_BEST_SLOT_MIN:
            return slot
    return slots[0] if slots else None


def events_on(events: Iterable[CalendarEvent], day: date, tz: Optional[tzinfo] = None) -> list[CalendarEvent]:
    """Events that start on ``day`` in local time."""
    return [e for e in events if local_date(e.start, tz) == day]


def day_schedule(
    events: Iterable[CalendarEvent],
    day: date,
    tz: Optional[tzinfo] = None,
) -> DaySchedule:
    """
    Events and chronological free slots for one day.

    Event times with a UTC offset are converted to wall-clock time in ``tz``
    (system local time when None) before the day is matched and walked.
    """
    day_events = [e.localized(tz) for e in events_on(events, day, tz)]
    slots = free_slots(busy_intervals(day_events), day)
    return DaySchedule(date=day, events=day_events, free_slots=slots)


def build_smart_schedule(
    events: Iterable[CalendarEvent],
    start_day: date,
    days: int,
    tz: Optional[tzinfo] = None,
) -> SmartSchedule:
    """
    Free slots for ``days`` consecutive days plus ranked suggestions.

    Each day's free slots are ordered by score (best first). Top suggestions
    are the union over all days, filtered and ranked by ``ranked_suggestions``.
    """
    events = list(events)
    schedules: dict[date, DaySchedule] = {}

    for offset in range(days):
        day = start_day + timedelta(days=offset)
        schedule = day_schedule(events, day, tz)
        schedule.free_slots.sort(key=lambda s: s.score, reverse=True)
        schedules[day] = schedule

    all_slots = [slot for s in schedules.values() for slot in s.free_slots]
    return SmartSchedule(
        days=days,
        day_schedules=schedules,
        top_suggestions=ranked_suggestions(all_slots),
    )
