"""Tests for the HTTP API."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from healthcore.api import create_app
from healthcore.config import Settings
from healthcore.db import DatabaseConnection
from healthcore.errors import CalendarUnavailable
from healthcore.schedule.calendar import CalendarEvent, FileCalendarSource, StaticCalendarSource
from healthcore.tracking.models import Measurement, NutritionEntry
from healthcore.tracking.queries import FoodQueries, WeightQueries


class BrokenCalendar:
    """A connected calendar that always fails."""

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        raise CalendarUnavailable("timeout")


def today_at(hh: int, mm: int = 0, days: int = 0) -> datetime:
    return datetime.combine(date.today() + timedelta(days=days), time(hh, mm))


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def make_client(temp_db, settings):
    def make(calendar=None) -> TestClient:
        app = create_app(db=temp_db, calendar=calendar or FileCalendarSource(None), settings=settings)
        return TestClient(app)

    return make


class TestCalendarEndpoints:
    """Tests for /smart-schedule and /calendar/day."""

    def test_not_connected(self, make_client) -> None:
        """A calendar that was never connected is not an error."""
        client = make_client()
        for path in ("/smart-schedule", "/calendar/day"):
            response = client.get(path)
            assert response.status_code == 200
            assert response.json() == {"connected": False, "error": "Calendar not connected"}

    def test_unavailable(self, make_client) -> None:
        """A connected calendar that fails answers 500."""
        client = make_client(BrokenCalendar())
        response = client.get("/smart-schedule")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to load calendar"}

    def test_smart_schedule(self, make_client) -> None:
        """Free slots for each requested day plus suggestions."""
        calendar = StaticCalendarSource(
            [CalendarEvent("m", "Meeting", today_at(9), today_at(17))]
        )
        data = make_client(calendar).get("/smart-schedule", params={"days": 3}).json()

        assert data["connected"] is True
        assert data["days"] == 3
        assert len(data["daySchedules"]) == 3
        today = data["daySchedules"][date.today().isoformat()]
        assert [e["summary"] for e in today["events"]] == ["Meeting"]
        assert {s["startTime"] for s in today["freeSlots"]} == {"6:00 AM", "5:00 PM"}
        assert 0 < len(data["topSuggestions"]) <= 10

    def test_days_clamped(self, make_client) -> None:
        """The look-ahead is clamped to 14 days."""
        data = make_client(StaticCalendarSource([])).get("/smart-schedule", params={"days": 60}).json()
        assert data["days"] == 14
        assert len(data["topSuggestions"]) == 10

    def test_calendar_day(self, make_client) -> None:
        """A single day with its suggested slot."""
        day = date.today() + timedelta(days=1)
        calendar = StaticCalendarSource(
            [CalendarEvent("m", "Meeting", today_at(6, days=1), today_at(6, 40, days=1))]
        )
        data = make_client(calendar).get("/calendar/day", params={"date": day.isoformat()}).json()

        assert data["date"] == day.isoformat()
        assert data["connected"] is True
        assert data["suggestedSlot"]["startTime"] == "6:40 AM"
        assert len(data["freeSlots"]) == 1

    @pytest.fixture
    def offset_calendar(self, tmp_path) -> FileCalendarSource:
        """Today 09:00-17:00 local, written with the host's UTC offset."""
        path = tmp_path / "events.yaml"
        path.write_text(
            "events:\n"
            "  - summary: Workday\n"
            f"    start: {today_at(9).astimezone().isoformat()}\n"
            f"    end: {today_at(17).astimezone().isoformat()}\n"
        )
        return FileCalendarSource(path)

    def test_smart_schedule_offset_events(self, make_client, offset_calendar) -> None:
        """Events with a UTC offset are placed at their local wall-clock time."""
        response = make_client(offset_calendar).get("/smart-schedule", params={"days": 1})
        assert response.status_code == 200

        today = response.json()["daySchedules"][date.today().isoformat()]
        assert [e["summary"] for e in today["events"]] == ["Workday"]
        assert {s["startTime"] for s in today["freeSlots"]} == {"6:00 AM", "5:00 PM"}

    def test_calendar_day_offset_events(self, make_client, offset_calendar) -> None:
        """The single-day view handles offset times too."""
        response = make_client(offset_calendar).get("/calendar/day")
        assert response.status_code == 200

        data = response.json()
        assert [(s["startTime"], s["endTime"]) for s in data["freeSlots"]] == [
            ("6:00 AM", "9:00 AM"),
            ("5:00 PM", "9:00 PM"),
        ]
        assert data["suggestedSlot"]["startTime"] == "6:00 AM"


class TestInsightEndpoints:
    """Tests for the insight and trend endpoints."""

    def test_weekly_empty(self, make_client) -> None:
        """An empty store still returns the full shape."""
        data = make_client().get("/insights/weekly").json()
        assert data["period"] == "7d"
        assert data["avgWeight"] is None
        assert data["calorieTarget"] == 1800

    def test_patterns(self, make_client, temp_db) -> None:
        """Patterns come back with the window length."""
        with temp_db.get_connection() as conn:
            for offset in range(14):
                FoodQueries.add_food(
                    conn,
                    NutritionEntry(today_at(12, days=-offset), "lunch", total_calories=1700, protein_g=120),
                )
        data = make_client().get("/insights/patterns").json()
        assert data["days"] == 14
        assert [i["id"] for i in data["insights"]] == ["on-target"]

    def test_patterns_days_validated(self, make_client) -> None:
        """Out-of-range windows are rejected."""
        assert make_client().get("/insights/patterns", params={"days": 0}).status_code == 422

    def test_weight_trend(self, make_client, temp_db, settings) -> None:
        """The trend uses the configured goal unless one is given."""
        with temp_db.get_connection() as conn:
            for offset in range(3):
                WeightQueries.add_weight(
                    conn, Measurement(today_at(7, days=offset - 3), 200.0 - offset, "withings")
                )
        client = make_client()

        data = client.get("/weight/trend").json()
        assert data["goalWeight"] == settings.profile.goal_weight_lbs
        assert data["currentAvg"] == 199.0
        assert len(data["rollingAverage"]) == 3

        assert client.get("/weight/trend", params={"goal": 190}).json()["goalWeight"] == 190

    def test_store_unavailable(self, make_client, tmp_path) -> None:
        """A store failure answers 500 with an error message."""
        client = make_client()
        client.app.state.db = DatabaseConnection(tmp_path)  # a directory, not a database
        response = client.get("/insights/weekly")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate insights"}


class TestStreakEndpoint:
    """Tests for POST /streaks/check-in."""

    def test_no_activity_then_check_in(self, make_client, temp_db) -> None:
        """Logging something turns a no-op into a check-in."""
        client = make_client()
        assert client.post("/streaks/check-in").json()["status"] == "no_activity_today"

        with temp_db.get_connection() as conn:
            WeightQueries.add_weight(conn, Measurement(today_at(0, 1), 200.0, "manual"))

        data = client.post("/streaks/check-in").json()
        assert data["status"] == "streak_updated"
        assert data["current_streak"] == 1
        assert data["last_check_in_date"] == date.today().isoformat()

        assert client.post("/streaks/check-in").json()["status"] == "already_checked_in"

    def test_store_unavailable(self, make_client, tmp_path) -> None:
        """A store failure answers 500."""
        client = make_client()
        client.app.state.db = DatabaseConnection(tmp_path)
        response = client.post("/streaks/check-in")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to check in"}
