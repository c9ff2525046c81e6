"""
HTTP API

Thin FastAPI layer over the analytics core: each endpoint fetches records
from the store (or events from the calendar), runs the pure functions and
returns their JSON view.

A calendar that was never connected is not an error: calendar endpoints
answer 200 with ``connected: false``. A connected calendar that fails to
load, or a store that fails, answers 500 with an ``error`` body.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Generator, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from healthcore.config import Settings, get_settings
from healthcore.constants import CALORIE_TARGET, MAX_SCHEDULE_DAYS
from healthcore.db import DatabaseConnection, get_db
from healthcore.errors import CalendarNotConnected, CalendarUnavailable, StoreUnavailable
from healthcore.insights.patterns import detect_patterns
from healthcore.log import setup_logging
from healthcore.schedule.availability import build_smart_schedule, day_schedule, simple_best_slot
from healthcore.schedule.calendar import CalendarSource, FileCalendarSource
from healthcore.streaks.service import check_in
from healthcore.tracking.queries import FoodQueries, WeightQueries, WorkoutQueries
from healthcore.tracking.reconcile import reconcile_workouts
from healthcore.tracking.summary import trend_report, weekly_summary

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> DatabaseConnection:
    return request.app.state.db


def get_calendar(request: Request) -> CalendarSource:
    return request.app.state.calendar


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _today(settings: Settings) -> date:
    return settings.profile.today()


@contextmanager
def store_connection(db: DatabaseConnection, action: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a store connection, reporting sqlite failures as StoreUnavailable."""
    try:
        with db.get_connection() as conn:
            yield conn
    except sqlite3.Error as e:
        logger.exception("Store error while trying to %s", action)
        raise StoreUnavailable(f"Failed to {action}") from e


@router.get("/smart-schedule")
def smart_schedule(
    days: int = Query(default=7, description="Days to look ahead (clamped to 1-14)"),
    calendar: CalendarSource = Depends(get_calendar),
    settings: Settings = Depends(get_app_settings),
):
    """
    Free slots per day and the top workout suggestions for the next N days.
    """
    num_days = min(MAX_SCHEDULE_DAYS, max(1, days))
    start_day = _today(settings)
    range_start = datetime.combine(start_day, time.min)
    range_end = range_start + timedelta(days=num_days)

    try:
        events = calendar.list_events(range_start, range_end)
    except CalendarNotConnected:
        return {"connected": False, "error": "Calendar not connected"}

    schedule = build_smart_schedule(events, start_day, num_days, settings.profile.tz)
    return {**schedule.to_dict(), "connected": True}


@router.get("/calendar/day")
def calendar_day(
    day: Optional[date] = Query(default=None, alias="date", description="Day to inspect (default today)"),
    calendar: CalendarSource = Depends(get_calendar),
    settings: Settings = Depends(get_app_settings),
):
    """
    One day's events, free slots and a suggested workout slot.
    """
    if day is None:
        day = _today(settings)
    range_start = datetime.combine(day, time.min)

    try:
        events = calendar.list_events(range_start, range_start + timedelta(days=1))
    except CalendarNotConnected:
        return {"connected": False, "error": "Calendar not connected"}

    schedule = day_schedule(events, day, settings.profile.tz)
    suggested = simple_best_slot(schedule.free_slots)
    return {
        "date": day.isoformat(),
        **schedule.to_dict(),
        "suggestedSlot": suggested.to_dict() if suggested else None,
        "connected": True,
    }


@router.get("/insights/weekly")
def insights_weekly(
    db: DatabaseConnection = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Seven-day averages for the dashboard."""
    with store_connection(db, "generate insights") as conn:
        summary = weekly_summary(conn, now=settings.profile.now())
    return summary.to_dict()


@router.get("/insights/patterns")
def insights_patterns(
    days: int = Query(default=14, ge=1, le=90),
    db: DatabaseConnection = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Behavioral patterns over the trailing window."""
    today = _today(settings)
    start = datetime.combine(today - timedelta(days=days - 1), time.min)
    end = datetime.combine(today, time.max)

    with store_connection(db, "detect patterns") as conn:
        food_logs = FoodQueries.get_food_logs(conn, start, end)
        workouts = reconcile_workouts(WorkoutQueries.get_workouts(conn, start, end))

    insights = detect_patterns(food_logs, workouts, CALORIE_TARGET, days=days, today=today)
    return {"days": days, "insights": [i.to_dict() for i in insights]}


@router.get("/weight/trend")
def weight_trend(
    goal: Optional[float] = Query(default=None, gt=0, description="Goal weight in lbs"),
    db: DatabaseConnection = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Rolling average, goal date and projected trajectory."""
    goal_weight = goal if goal is not None else settings.profile.goal_weight_lbs
    with store_connection(db, "load weight trend") as conn:
        measurements = WeightQueries.get_all_weights(conn)
    return trend_report(measurements, goal_weight).to_dict()


@router.post("/streaks/check-in")
def streak_check_in(
    db: DatabaseConnection = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Record today's check-in if anything was logged."""
    try:
        result = check_in(db, today=_today(settings))
    except sqlite3.Error as e:
        logger.exception("Streak check-in failed")
        raise StoreUnavailable("Failed to check in") from e
    return result.to_dict()


def create_app(
    db: Optional[DatabaseConnection] = None,
    calendar: Optional[CalendarSource] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the HTTP app.

    Args:
        db: Store to use (default: the global database from settings)
        calendar: Calendar source (default: the events file from settings)
        settings: Settings (default: loaded from the config file)
    """
    if settings is None:
        settings = get_settings()
    setup_logging(settings.logging.format, settings.logging.level)

    if db is None:
        db = get_db()
    db.ensure_schema()

    if calendar is None:
        calendar = FileCalendarSource(settings.calendar.events_path, settings.profile.tz)

    app = FastAPI(title="healthcore", version="0.1.0")
    app.state.db = db
    app.state.calendar = calendar
    app.state.settings = settings

    @app.exception_handler(CalendarUnavailable)
    async def calendar_unavailable_handler(request: Request, exc: CalendarUnavailable):
        logger.error("Calendar unavailable: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Failed to load calendar"})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(router)
    return app
