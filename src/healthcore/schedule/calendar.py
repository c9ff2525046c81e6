"""Calendar collaborator: read-only access to the user's events.

The analytics only need busy intervals, so a calendar source exposes one
method, ``list_events(start, end)``. Two outcomes must stay distinct:

- ``CalendarNotConnected``: the user never connected a calendar
- ``CalendarUnavailable``: a connected calendar could not be read

``FileCalendarSource`` reads events from a YAML file, which is how a synced
calendar export (or a test fixture) is fed to the CLI and HTTP app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, tzinfo
from pathlib import Path
from typing import Optional, Protocol

import yaml

from healthcore.errors import CalendarNotConnected, CalendarUnavailable
from healthcore.utils import to_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar event. All-day events never count as busy time."""

    id: str
    summary: str
    start: datetime
    end: datetime
    all_day: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "summary": self.summary,
            "start": self.start.date().isoformat() if self.all_day else self.start.isoformat(),
            "end": self.end.date().isoformat() if self.all_day else self.end.isoformat(),
            "allDay": self.all_day,
        }

    def localized(self, tz: Optional[tzinfo] = None) -> "CalendarEvent":
        """Copy with start and end as naive wall-clock time in ``tz``."""
        if self.start.tzinfo is None and self.end.tzinfo is None:
            return self
        return replace(self, start=to_local(self.start, tz), end=to_local(self.end, tz))


class CalendarSource(Protocol):
    """Anything that can list events overlapping a time range."""

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        ...


def _parse_moment(value) -> tuple[datetime, bool]:
    """Parse an event start/end. Date-only values mark an all-day event."""
    if isinstance(value, datetime):
        return value, False
    if isinstance(value, date):
        return datetime.combine(value, time.min), True

    text = str(value).strip()
    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min), True
    return datetime.fromisoformat(text), False


def parse_event(data: dict, index: int = 0, tz: Optional[tzinfo] = None) -> CalendarEvent:
    """
    Build a CalendarEvent from a mapping.

    Accepted keys: id, summary, start, end, all_day. Missing titles become
    "(No title)". Times with a UTC offset (2025-01-06T09:00:00-05:00) are
    converted to naive wall-clock time in ``tz``. Raises ValueError if start
    or end is missing or malformed.
    """
    if "start" not in data or "end" not in data:
        raise ValueError(f"event {index} needs both 'start' and 'end'")

    start, start_all_day = _parse_moment(data["start"])
    end, _ = _parse_moment(data["end"])

    return CalendarEvent(
        id=str(data.get("id") or f"event-{index}"),
        summary=data.get("summary") or "(No title)",
        start=start,
        end=end,
        all_day=bool(data.get("all_day", start_all_day)),
    ).localized(tz)


class StaticCalendarSource:
    """In-memory calendar, mostly for tests and previews.

    Events are held as naive wall-clock time in ``tz``; range bounds are
    converted the same way before comparing.
    """

    def __init__(self, events: list[CalendarEvent], tz: Optional[tzinfo] = None):
        self.tz = tz
        self.events = [e.localized(tz) for e in events]

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        start, end = to_local(start, self.tz), to_local(end, self.tz)
        return sorted(
            (e for e in self.events if e.start < end and e.end > start),
            key=lambda e: e.start,
        )


class FileCalendarSource:
    """Calendar backed by a YAML file of events.

    File format::

        events:
          - id: abc
            summary: Standup
            start: 2025-01-06T09:00:00
            end: 2025-01-06T09:30:00
          - summary: Holiday
            start: 2025-01-07
            end: 2025-01-08
    """

    def __init__(self, events_path: Optional[Path], tz: Optional[tzinfo] = None):
        """
        Args:
            events_path: Path to the events file. None means the user never
                         connected a calendar.
            tz: Zone that event times with a UTC offset are converted to
                (default: system local time)
        """
        self.events_path = events_path
        self.tz = tz

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        if self.events_path is None:
            raise CalendarNotConnected("Calendar not connected")

        try:
            with open(self.events_path) as f:
                data = yaml.safe_load(f) or {}
            raw_events = data.get("events", []) if isinstance(data, dict) else data
            events = [parse_event(item, i, self.tz) for i, item in enumerate(raw_events or [])]
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to read calendar file %s: %s", self.events_path, e)
            raise CalendarUnavailable(f"Failed to read calendar: {e}") from e

        return StaticCalendarSource(events, self.tz).list_events(start, end)
