"""Tests for calendar sources."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from healthcore.errors import CalendarNotConnected, CalendarUnavailable
from healthcore.schedule.calendar import (
    CalendarEvent,
    FileCalendarSource,
    StaticCalendarSource,
    parse_event,
)

EVENTS_YAML = """\
events:
  - id: standup
    summary: Standup
    start: 2025-06-16T09:00:00
    end: 2025-06-16T09:30:00
  - summary: Company holiday
    start: 2025-06-17
    end: 2025-06-18
  - id: late
    start: "2025-06-20T18:00:00"
    end: "2025-06-20T19:00:00"
"""

RANGE = (datetime(2025, 6, 16), datetime(2025, 6, 23))
EASTERN = timezone(timedelta(hours=-5))


class TestParseEvent:
    """Tests for parse_event."""

    def test_timed_event(self) -> None:
        """ISO strings give a timed event."""
        event = parse_event({"summary": "Gym", "start": "2025-06-16T07:00:00", "end": "2025-06-16T08:00:00"})
        assert event.start == datetime(2025, 6, 16, 7)
        assert not event.all_day
        assert event.id == "event-0"

    def test_date_only_is_all_day(self) -> None:
        """Date-only values mark an all-day event."""
        event = parse_event({"start": "2025-06-17", "end": "2025-06-18"}, 3)
        assert event.all_day
        assert event.summary == "(No title)"
        assert event.id == "event-3"

    def test_missing_end(self) -> None:
        """Events need both ends."""
        with pytest.raises(ValueError, match="start' and 'end"):
            parse_event({"start": "2025-06-17T09:00:00"})

    def test_to_dict(self) -> None:
        """All-day events serialize their dates only."""
        event = CalendarEvent("h", "Holiday", datetime(2025, 6, 17), datetime(2025, 6, 18), all_day=True)
        assert event.to_dict() == {
            "id": "h",
            "summary": "Holiday",
            "start": "2025-06-17",
            "end": "2025-06-18",
            "allDay": True,
        }


class TestStaticCalendarSource:
    """Tests for StaticCalendarSource."""

    def test_range_overlap(self) -> None:
        """Only events overlapping the range come back, sorted by start."""
        events = [
            CalendarEvent("b", "B", datetime(2025, 6, 16, 14), datetime(2025, 6, 16, 15)),
            CalendarEvent("a", "A", datetime(2025, 6, 16, 9), datetime(2025, 6, 16, 10)),
            CalendarEvent("c", "C", datetime(2025, 6, 25, 9), datetime(2025, 6, 25, 10)),
        ]
        found = StaticCalendarSource(events).list_events(*RANGE)
        assert [e.id for e in found] == ["a", "b"]


class TestFileCalendarSource:
    """Tests for FileCalendarSource."""

    def test_not_connected(self) -> None:
        """No events file means the calendar was never connected."""
        with pytest.raises(CalendarNotConnected):
            FileCalendarSource(None).list_events(*RANGE)

    def test_missing_file_is_unavailable(self, tmp_path) -> None:
        """A configured file that cannot be read is an outage."""
        with pytest.raises(CalendarUnavailable):
            FileCalendarSource(tmp_path / "missing.yaml").list_events(*RANGE)

    def test_malformed_event_is_unavailable(self, tmp_path) -> None:
        """Bad event data is reported as unavailable, not as not connected."""
        path = tmp_path / "events.yaml"
        path.write_text("events:\n  - summary: no times\n")
        with pytest.raises(CalendarUnavailable):
            FileCalendarSource(path).list_events(*RANGE)

    def test_reads_events(self, tmp_path) -> None:
        """YAML timestamps, quoted strings and dates are all accepted."""
        path = tmp_path / "events.yaml"
        path.write_text(EVENTS_YAML)
        events = FileCalendarSource(path).list_events(*RANGE)

        assert [e.id for e in events] == ["standup", "event-1", "late"]
        assert events[0].start == datetime(2025, 6, 16, 9)
        assert events[1].all_day
        assert events[1].start.date() == date(2025, 6, 17)
        assert events[2].end == datetime(2025, 6, 20, 19)

    def test_empty_file(self, tmp_path) -> None:
        """An empty file is a connected calendar with no events."""
        path = tmp_path / "events.yaml"
        path.write_text("")
        assert FileCalendarSource(path).list_events(*RANGE) == []


class TestUtcOffsets:
    """Event times that carry a UTC offset."""

    def test_parse_converts_to_zone(self) -> None:
        """Offset strings become naive wall-clock time in the given zone."""
        event = parse_event(
            {"start": "2025-06-16T14:00:00+00:00", "end": "2025-06-16T15:00:00+00:00"},
            tz=EASTERN,
        )
        assert event.start == datetime(2025, 6, 16, 9)
        assert event.end == datetime(2025, 6, 16, 10)
        assert event.start.tzinfo is None

    def test_static_source_mixed_events(self) -> None:
        """Aware and naive events are filtered against naive bounds together."""
        events = [
            CalendarEvent(
                "call",
                "Call",
                datetime(2025, 6, 16, 9, tzinfo=EASTERN),
                datetime(2025, 6, 16, 10, tzinfo=EASTERN),
            ),
            CalendarEvent("gym", "Gym", datetime(2025, 6, 16, 7), datetime(2025, 6, 16, 8)),
        ]
        found = StaticCalendarSource(events, EASTERN).list_events(*RANGE)
        assert [e.id for e in found] == ["gym", "call"]
        assert found[1].start == datetime(2025, 6, 16, 9)

    def test_file_with_offsets(self, tmp_path) -> None:
        """Offset times in the YAML file are read in the source's zone."""
        path = tmp_path / "events.yaml"
        path.write_text(
            "events:\n"
            "  - id: call\n"
            "    start: 2025-06-16T09:00:00-05:00\n"
            "    end: \"2025-06-16T15:00:00+00:00\"\n"
        )
        events = FileCalendarSource(path, EASTERN).list_events(*RANGE)
        assert events[0].start == datetime(2025, 6, 16, 9)
        assert events[0].end == datetime(2025, 6, 16, 10)
