"""CLI interface using Typer."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from healthcore.agent import AgentResponse, create_response, error_response
from healthcore.config import get_settings
from healthcore.constants import (
    CALORIE_TARGET,
    GOAL_REACHED,
    MAX_SCHEDULE_DAYS,
    PROTEIN_TARGET_G,
    WATER_GOAL_OZ,
)
from healthcore.db import get_db
from healthcore.errors import CalendarNotConnected, CalendarUnavailable
from healthcore.log import setup_logging
from healthcore.tracking.models import (
    FoodItem,
    Measurement,
    MobilityEntry,
    NutritionEntry,
    WaterEntry,
    WorkoutEntry,
)
from healthcore.tracking.queries import (
    FoodQueries,
    MobilityQueries,
    StreakQueries,
    WaterQueries,
    WeightQueries,
    WorkoutQueries,
)
from healthcore.utils import round_half_up

app = typer.Typer(
    help="Personal health tracking: weight trends, nutrition, streaks and workout scheduling",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
weight_app = typer.Typer(help="Log weight and view the smoothed trend")
food_app = typer.Typer(help="Log meals and check calorie adherence")
workout_app = typer.Typer(help="Log workouts")
water_app = typer.Typer(help="Log water intake")
mobility_app = typer.Typer(help="Log mobility routines")
streak_app = typer.Typer(help="Daily check-in streak")
insights_app = typer.Typer(help="Weekly summary and behavioral patterns")
schedule_app = typer.Typer(help="Find workout slots in your calendar")
import_app = typer.Typer(help="Import historical data")

app.add_typer(weight_app, name="weight")
app.add_typer(food_app, name="food")
app.add_typer(workout_app, name="workout")
app.add_typer(water_app, name="water")
app.add_typer(mobility_app, name="mobility")
app.add_typer(streak_app, name="streak")
app.add_typer(insights_app, name="insights")
app.add_typer(schedule_app, name="schedule")
app.add_typer(import_app, name="import")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: AgentResponse) -> None:
    """Print an agent response as JSON on stdout."""
    print(response.to_json())


def fail(command: str, message: str, json_output: bool, suggestions: Optional[list[str]] = None) -> NoReturn:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        output_json(error_response(command, message, suggestions))
    else:
        console.print(f"[red]{message}[/red]")
        for suggestion in suggestions or []:
            console.print(f"  {suggestion}")
    raise typer.Exit(1)


def ensure_tables() -> None:
    """Ensure tracking tables exist (idempotent)."""
    get_db().ensure_schema()


def parse_when(value: Optional[str], command: str, json_output: bool) -> datetime:
    """Parse an --at option (ISO date or datetime); default now."""
    if not value:
        return get_settings().profile.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        fail(command, f"Invalid date/time: {value}", json_output, ["Use YYYY-MM-DD or YYYY-MM-DDTHH:MM"])


def parse_day(value: Optional[str], command: str, json_output: bool) -> date:
    """Parse a --date option; default today."""
    if not value:
        return get_settings().profile.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        fail(command, f"Invalid date: {value}", json_output, ["Use YYYY-MM-DD"])


def today_range(days: int) -> tuple[datetime, datetime]:
    """[start of the first day, end of today] for a trailing window."""
    today = get_settings().profile.today()
    return (
        datetime.combine(today - timedelta(days=days - 1), time.min),
        datetime.combine(today, time.max),
    )


@app.callback()
def main() -> None:
    """Configure logging from settings before any command."""
    settings = get_settings()
    setup_logging(settings.logging.format, settings.logging.level)


# Callbacks for tracking sub-apps to auto-create tables on first use
@weight_app.callback()
def weight_callback() -> None:
    """Ensure tracking tables exist before any weight command."""
    ensure_tables()


@food_app.callback()
def food_callback() -> None:
    """Ensure tracking tables exist before any food command."""
    ensure_tables()


@workout_app.callback()
def workout_callback() -> None:
    ensure_tables()


@water_app.callback()
def water_callback() -> None:
    ensure_tables()


@mobility_app.callback()
def mobility_callback() -> None:
    ensure_tables()


@streak_app.callback()
def streak_callback() -> None:
    ensure_tables()


@insights_app.callback()
def insights_callback() -> None:
    ensure_tables()


@import_app.callback()
def import_callback() -> None:
    ensure_tables()


# ============================================================================
# Weight
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in lbs"),
    source: str = typer.Option("manual", "--source", "-s", help="withings, manual, apple_health or trendweight"),
    body_fat: Optional[float] = typer.Option(None, "--body-fat", help="Body fat percentage"),
    at: Optional[str] = typer.Option(None, "--at", help="When (YYYY-MM-DDTHH:MM, default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add a weight reading (skipped if another source already logged it)."""
    if weight <= 0:
        fail("weight add", "Weight must be positive", json_output)

    timestamp = parse_when(at, "weight add", json_output)
    reading = Measurement(timestamp=timestamp, value=weight, source=source, body_fat_pct=body_fat)

    with get_db().get_connection() as conn:
        stored = WeightQueries.add_weight(conn, reading)

    data = {
        "weight_lbs": weight,
        "source": source,
        "timestamp": timestamp.isoformat(),
        "skipped_duplicate": stored is None,
    }
    if stored is None:
        summary = f"Skipped {weight:.1f} lbs: already logged by an equal or better source"
    else:
        summary = f"Logged {weight:.1f} lbs ({source})"

    if json_output:
        output_json(create_response("weight add", data=data, human_summary=summary))
    elif stored is None:
        console.print(f"[yellow]{summary}[/yellow]")
    else:
        console.print(f"[green]Logged:[/green] {weight:.1f} lbs at {timestamp:%Y-%m-%d %H:%M} ({source})")


@weight_app.command("list")
def weight_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of days to show"),
    raw: bool = typer.Option(False, "--raw", help="Show every reading without reconciliation"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weight readings, one per real weigh-in."""
    from healthcore.tracking.reconcile import reconcile_measurements

    start, end = today_range(days)
    with get_db().get_connection() as conn:
        readings = WeightQueries.get_weights(conn, start, end)

    if not raw:
        readings = reconcile_measurements(readings)

    if json_output:
        output_json(
            create_response(
                "weight list",
                data={
                    "entries": [
                        {
                            "timestamp": m.timestamp.isoformat(),
                            "weight_lbs": m.value,
                            "source": m.source,
                            "body_fat_pct": m.body_fat_pct,
                        }
                        for m in readings
                    ]
                },
                human_summary=f"{len(readings)} entries over {days} days",
            )
        )
        return

    if not readings:
        console.print("No weight entries found")
        return

    table = Table(title=f"Weight History (last {days} days)")
    table.add_column("When", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Source")
    table.add_column("Body fat", justify="right")

    for m in readings:
        table.add_row(
            m.timestamp.strftime("%Y-%m-%d %H:%M"),
            f"{m.value:.1f}",
            m.source,
            f"{m.body_fat_pct:.1f}%" if m.body_fat_pct is not None else "",
        )

    console.print(table)


@weight_app.command("trend")
def weight_trend(
    goal: Optional[float] = typer.Option(None, "--goal", "-g", help="Goal weight in lbs (default from config)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the rolling average, goal date and projected trajectory."""
    from healthcore.tracking.summary import trend_report

    goal_weight = goal if goal is not None else get_settings().profile.goal_weight_lbs
    with get_db().get_connection() as conn:
        measurements = WeightQueries.get_all_weights(conn)

    report = trend_report(measurements, goal_weight)

    if report.latest is None:
        if json_output:
            output_json(create_response("weight trend", data=report.to_dict(), human_summary="Need more data"))
        else:
            console.print("Need more data: no weight entries yet")
        return

    if isinstance(report.goal_date, date):
        goal_text = report.goal_date.isoformat()
    elif report.goal_date == GOAL_REACHED:
        goal_text = GOAL_REACHED
    else:
        goal_text = "no estimate"

    summary = f"7-entry avg {report.latest.avg:.1f} lbs, goal {goal_weight:.1f} lbs: {goal_text}"

    if json_output:
        output_json(create_response("weight trend", data=report.to_dict(), human_summary=summary))
        return

    console.print(f"[bold]Current average:[/bold] {report.latest.avg:.1f} lbs")
    if report.weekly_change is not None:
        color = "green" if report.weekly_change < 0 else "yellow"
        console.print(f"[bold]Weekly change:[/bold] [{color}]{report.weekly_change:+.1f} lbs[/{color}]")
    else:
        console.print("[bold]Weekly change:[/bold] need 14 readings")
    console.print(f"[bold]Goal ({goal_weight:.1f} lbs):[/bold] {goal_text}")

    if report.trajectory:
        table = Table(title="Projected Trajectory")
        table.add_column("Date", style="cyan")
        table.add_column("Projected", justify="right")
        for point in report.trajectory:
            table.add_row(point.date.isoformat(), f"{point.projected:.1f}")
        console.print(table)


# ============================================================================
# Food
# ============================================================================


@food_app.command("add")
def food_add(
    meal_type: str = typer.Argument(..., help="breakfast, lunch, dinner, snack or drink"),
    calories: float = typer.Argument(..., help="Total calories"),
    protein: float = typer.Option(0.0, "--protein", "-p", help="Protein (g)"),
    carbs: float = typer.Option(0.0, "--carbs", "-c", help="Carbs (g)"),
    fat: float = typer.Option(0.0, "--fat", "-f", help="Fat (g)"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Item name"),
    lapse: Optional[str] = typer.Option(
        None, "--lapse", help="Overeating trigger: home, restaurant, social, stressed, bored, screen_time"
    ),
    at: Optional[str] = typer.Option(None, "--at", help="When (YYYY-MM-DDTHH:MM, default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a meal."""
    timestamp = parse_when(at, "food add", json_output)
    items = [FoodItem(name=name, calories=calories, protein_g=protein, carbs_g=carbs, fat_g=fat)] if name else []

    try:
        entry = NutritionEntry(
            timestamp=timestamp,
            meal_type=meal_type.lower(),
            items=items,
            total_calories=calories,
            protein_g=protein,
            carbs_g=carbs,
            fat_g=fat,
            lapse_context=lapse,
        )
    except ValueError as e:
        fail("food add", str(e), json_output)

    with get_db().get_connection() as conn:
        FoodQueries.add_food(conn, entry)

    summary = f"Logged {entry.meal_type}: {calories:.0f} cal, {protein:.0f}g protein"
    if json_output:
        output_json(
            create_response(
                "food add",
                data={
                    "log_id": entry.log_id,
                    "meal_type": entry.meal_type,
                    "total_calories": calories,
                    "protein_g": protein,
                    "carbs_g": carbs,
                    "fat_g": fat,
                    "timestamp": timestamp.isoformat(),
                },
                human_summary=summary,
            )
        )
    else:
        console.print(f"[green]{summary}[/green]")


@food_app.command("adherence")
def food_adherence(
    days: int = typer.Option(7, "--days", "-d", help="Number of days"),
    target: int = typer.Option(CALORIE_TARGET, "--target", "-t", help="Daily calorie target"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Daily calories against the target."""
    from healthcore.nutrition.adherence import weekly_calorie_adherence

    start, end = today_range(days)
    with get_db().get_connection() as conn:
        logs = FoodQueries.get_food_logs(conn, start, end)

    rows = weekly_calorie_adherence(logs, target, days=days, today=get_settings().profile.today())
    logged = [r for r in rows if r.calories > 0]
    on_target = sum(1 for r in logged if r.delta <= 0)
    summary = f"At or under {target} cal on {on_target} of {len(logged)} logged days"

    if json_output:
        output_json(
            create_response(
                "food adherence",
                data={"target": target, "days": [r.to_dict() for r in rows]},
                human_summary=summary,
            )
        )
        return

    table = Table(title=f"Calorie Adherence (target {target})")
    table.add_column("Date", style="cyan")
    table.add_column("Calories", justify="right")
    table.add_column("Delta", justify="right")

    for r in rows:
        if r.calories == 0:
            table.add_row(r.date.isoformat(), "-", "")
            continue
        color = "green" if r.delta <= 0 else "red"
        table.add_row(r.date.isoformat(), f"{r.calories:.0f}", f"[{color}]{r.delta:+.0f}[/{color}]")

    console.print(table)
    console.print(summary)


@food_app.command("macros")
def food_macros(
    days: int = typer.Option(1, "--days", "-d", help="Number of days (1 = today)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Macro grams and their share of energy."""
    from healthcore.nutrition.adherence import macro_breakdown

    start, end = today_range(days)
    with get_db().get_connection() as conn:
        logs = FoodQueries.get_food_logs(conn, start, end)

    breakdown = macro_breakdown(logs)
    summary = (
        f"P {breakdown.protein_g}g ({breakdown.protein_pct}%) / "
        f"C {breakdown.carbs_g}g ({breakdown.carbs_pct}%) / "
        f"F {breakdown.fat_g}g ({breakdown.fat_pct}%)"
    )

    if json_output:
        output_json(create_response("food macros", data=breakdown.to_dict(), human_summary=summary))
        return

    table = Table(title="Macros" if days == 1 else f"Macros (last {days} days)")
    table.add_column("Macro", style="cyan")
    table.add_column("Grams", justify="right")
    table.add_column("Energy %", justify="right")
    table.add_row("Protein", str(breakdown.protein_g), f"{breakdown.protein_pct}%")
    table.add_row("Carbs", str(breakdown.carbs_g), f"{breakdown.carbs_pct}%")
    table.add_row("Fat", str(breakdown.fat_g), f"{breakdown.fat_pct}%")
    console.print(table)
    if days == 1:
        console.print(f"Protein target: {PROTEIN_TARGET_G}g")


# ============================================================================
# Workout, water, mobility
# ============================================================================


@workout_app.command("add")
def workout_add(
    workout_type: str = typer.Argument(..., help="Workout type, e.g. elliptical"),
    duration: float = typer.Argument(..., help="Duration in minutes"),
    calories: float = typer.Option(0.0, "--calories", "-c", help="Calories burned"),
    avg_hr: Optional[float] = typer.Option(None, "--hr", help="Average heart rate"),
    external_id: Optional[str] = typer.Option(None, "--external-id", help="Id from the source system"),
    source: str = typer.Option("manual", "--source", "-s", help="precor, apple_health or manual"),
    at: Optional[str] = typer.Option(None, "--at", help="Start time (YYYY-MM-DDTHH:MM, default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a workout (skipped if the same session is already stored)."""
    timestamp = parse_when(at, "workout add", json_output)
    try:
        workout = WorkoutEntry(
            timestamp=timestamp,
            type=workout_type,
            duration_min=duration,
            calories_burned=calories,
            avg_hr=avg_hr,
            external_id=external_id,
            source=source,
        )
    except ValueError as e:
        fail("workout add", str(e), json_output)

    with get_db().get_connection() as conn:
        stored = WorkoutQueries.add_workout(conn, workout)

    if stored is None:
        summary = f"Skipped {workout_type}: same session already logged"
    else:
        summary = f"Logged {duration:.0f} min {workout_type}"

    if json_output:
        output_json(
            create_response(
                "workout add",
                data={
                    "type": workout_type,
                    "duration_min": duration,
                    "timestamp": timestamp.isoformat(),
                    "skipped_duplicate": stored is None,
                },
                human_summary=summary,
            )
        )
    else:
        console.print(f"[yellow]{summary}[/yellow]" if stored is None else f"[green]{summary}[/green]")


@water_app.command("add")
def water_add(
    amount_oz: float = typer.Argument(..., help="Amount in fluid ounces"),
    at: Optional[str] = typer.Option(None, "--at", help="When (default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log water intake."""
    if amount_oz <= 0:
        fail("water add", "Amount must be positive", json_output)

    timestamp = parse_when(at, "water add", json_output)
    day_start = datetime.combine(timestamp.date(), time.min)
    day_end = datetime.combine(timestamp.date(), time.max)

    with get_db().get_connection() as conn:
        WaterQueries.add_water(conn, WaterEntry(timestamp=timestamp, amount_oz=amount_oz))
        total = sum(w.amount_oz for w in WaterQueries.get_water_logs(conn, day_start, day_end))

    summary = f"Logged {amount_oz:.0f} oz ({total:.0f}/{WATER_GOAL_OZ} oz today)"
    if json_output:
        output_json(
            create_response(
                "water add",
                data={"amount_oz": amount_oz, "day_total_oz": total, "goal_oz": WATER_GOAL_OZ},
                human_summary=summary,
            )
        )
    else:
        console.print(f"[green]{summary}[/green]")


@mobility_app.command("add")
def mobility_add(
    routine: str = typer.Argument(..., help="quick_5min or full_10min"),
    exercises: Optional[list[str]] = typer.Option(None, "--exercise", "-e", help="Exercise completed (repeatable)"),
    pain: Optional[int] = typer.Option(None, "--pain", help="Pain level 1-5"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a mobility routine."""
    day = parse_day(date_str, "mobility add", json_output)
    try:
        entry = MobilityEntry(
            date=day,
            routine_type=routine,
            exercises_completed=list(exercises or []),
            pain_level=pain,
        )
    except ValueError as e:
        fail("mobility add", str(e), json_output)

    with get_db().get_connection() as conn:
        MobilityQueries.add_mobility(conn, entry)

    summary = f"Logged {routine} mobility routine on {day}"
    if json_output:
        output_json(
            create_response(
                "mobility add",
                data={"date": day.isoformat(), "routine_type": routine, "pain_level": pain},
                human_summary=summary,
            )
        )
    else:
        console.print(f"[green]{summary}[/green]")


# ============================================================================
# Streak
# ============================================================================


@streak_app.command("check-in")
def streak_check_in(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Check in for today if anything was logged."""
    from healthcore.streaks.service import check_in

    result = check_in(get_db(), today=get_settings().profile.today())
    data = result.to_dict()

    messages = {
        "already_checked_in": "Already checked in today",
        "no_activity_today": "Nothing logged today yet. Log something to keep your streak",
        "streak_updated": f"Streak: {result.state.current_streak} days",
        "streak_reset": "Streak restarted at 1 day",
        "freeze_used": f"Streak freeze used. Streak: {result.state.current_streak} days",
    }
    summary = messages[result.status.value]

    if json_output:
        output_json(create_response("streak check-in", data=data, human_summary=summary))
        return

    color = "yellow" if result.status.value in ("no_activity_today", "streak_reset") else "green"
    console.print(f"[{color}]{summary}[/{color}]")
    console.print(f"Longest: {result.state.longest_streak} days, freezes left: {result.state.freezes_remaining}")


@streak_app.command("show")
def streak_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the current streak without checking in."""
    with get_db().get_connection() as conn:
        state = StreakQueries.get_or_create(conn)

    data = {
        "current_streak": state.current_streak,
        "longest_streak": state.longest_streak,
        "last_check_in_date": state.last_check_in_date.isoformat() if state.last_check_in_date else None,
        "freezes_remaining": state.freezes_remaining,
        "freezes_used": state.freezes_used,
    }
    summary = f"Current streak {state.current_streak} days (longest {state.longest_streak})"

    if json_output:
        output_json(create_response("streak show", data=data, human_summary=summary))
        return

    console.print(f"[bold]Current:[/bold] {state.current_streak} days")
    console.print(f"[bold]Longest:[/bold] {state.longest_streak} days")
    console.print(f"[bold]Last check-in:[/bold] {data['last_check_in_date'] or 'never'}")
    console.print(f"[bold]Freezes left:[/bold] {state.freezes_remaining}")


# ============================================================================
# Insights
# ============================================================================


@insights_app.command("weekly")
def insights_weekly(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Seven-day averages of weight, calories, protein, workouts and water."""
    from healthcore.tracking.summary import weekly_summary

    with get_db().get_connection() as conn:
        summary = weekly_summary(conn)

    data = summary.to_dict()
    human = (
        f"{summary.weight_count} weigh-ins, avg {summary.avg_calories or 0} cal/day, "
        f"{summary.total_workouts} workouts"
    )

    if json_output:
        output_json(create_response("insights weekly", data=data, human_summary=human))
        return

    def show(value, unit: str = "") -> str:
        return "-" if value is None else f"{value}{unit}"

    table = Table(title="Last 7 Days")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Target", justify="right")
    table.add_row("Avg weight", show(summary.avg_weight, " lbs"), "")
    table.add_row("Weigh-ins", str(summary.weight_count), "")
    table.add_row("Avg calories", show(summary.avg_calories), str(summary.calorie_target))
    table.add_row("Avg protein", show(summary.avg_protein, "g"), f"{summary.protein_target}g")
    table.add_row("Workouts", str(summary.total_workouts), "")
    table.add_row("Avg water", show(summary.avg_water_oz, " oz"), "")
    console.print(table)


@insights_app.command("patterns")
def insights_patterns(
    days: int = typer.Option(14, "--days", "-d", help="Window length in days"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Detect eating patterns over the recent window."""
    from healthcore.insights.patterns import detect_patterns
    from healthcore.tracking.reconcile import reconcile_workouts

    start, end = today_range(days)
    with get_db().get_connection() as conn:
        food_logs = FoodQueries.get_food_logs(conn, start, end)
        workouts = reconcile_workouts(WorkoutQueries.get_workouts(conn, start, end))

    insights = detect_patterns(
        food_logs, workouts, CALORIE_TARGET, days=days, today=get_settings().profile.today()
    )
    summary = f"{len(insights)} patterns found in the last {days} days"

    if json_output:
        output_json(
            create_response(
                "insights patterns",
                data={"days": days, "insights": [i.to_dict() for i in insights]},
                human_summary=summary,
            )
        )
        return

    if not insights:
        console.print("No patterns yet. Keep logging!")
        return

    for insight in insights:
        color = "green" if insight.type == "positive" else "yellow"
        console.print(f"[{color}]{insight.title}[/{color}]")
        console.print(f"  {insight.detail}")


# ============================================================================
# Schedule
# ============================================================================


def _load_events(start: datetime, end: datetime, command: str, json_output: bool):
    from healthcore.schedule.calendar import FileCalendarSource

    settings = get_settings()
    source = FileCalendarSource(settings.calendar.events_path, settings.profile.tz)
    try:
        return source.list_events(start, end)
    except CalendarNotConnected:
        fail(
            command,
            "Calendar not connected",
            json_output,
            ["Set calendar.events_path in ~/.healthcore/config.yaml"],
        )
    except CalendarUnavailable:
        fail(command, "Failed to load calendar", json_output)


@schedule_app.command("smart")
def schedule_smart(
    days: int = typer.Option(7, "--days", "-d", help="Days to look ahead (1-14)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Rank the best workout slots over the coming days."""
    from healthcore.schedule.availability import build_smart_schedule

    profile = get_settings().profile
    num_days = min(MAX_SCHEDULE_DAYS, max(1, days))
    today = profile.today()
    start = datetime.combine(today, time.min)
    events = _load_events(start, start + timedelta(days=num_days), "schedule smart", json_output)

    schedule = build_smart_schedule(events, today, num_days, profile.tz)
    summary = f"{len(schedule.top_suggestions)} workout slots over {num_days} days"

    if json_output:
        output_json(create_response("schedule smart", data=schedule.to_dict(), human_summary=summary))
        return

    if not schedule.top_suggestions:
        console.print("No free slots of 40+ minutes found")
        return

    table = Table(title="Suggested Workout Slots")
    table.add_column("Day", style="cyan")
    table.add_column("Time")
    table.add_column("Minutes", justify="right")
    table.add_column("Score", justify="right")
    for slot in schedule.top_suggestions:
        start_time = slot.to_dict()["startTime"]
        end_time = slot.to_dict()["endTime"]
        table.add_row(
            f"{slot.day_of_week} {slot.date.isoformat()}",
            f"{start_time} - {end_time}",
            str(slot.duration_min),
            str(slot.score),
        )
    console.print(table)


@schedule_app.command("day")
def schedule_day(
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show one day's free time and a suggested workout slot."""
    from healthcore.schedule.availability import day_schedule, simple_best_slot

    day = parse_day(date_str, "schedule day", json_output)
    start = datetime.combine(day, time.min)
    events = _load_events(start, start + timedelta(days=1), "schedule day", json_output)

    schedule = day_schedule(events, day, get_settings().profile.tz)
    suggested = simple_best_slot(schedule.free_slots)

    if json_output:
        data = {
            "date": day.isoformat(),
            **schedule.to_dict(),
            "suggestedSlot": suggested.to_dict() if suggested else None,
        }
        summary = (
            f"Suggested slot {suggested.to_dict()['startTime']}" if suggested else "No free slots"
        )
        output_json(create_response("schedule day", data=data, human_summary=summary))
        return

    console.print(f"[bold]{day.isoformat()}[/bold]: {len(schedule.events)} events")
    for slot in schedule.free_slots:
        view = slot.to_dict()
        marker = " [green]<- suggested[/green]" if slot is suggested else ""
        console.print(f"  Free {view['startTime']} - {view['endTime']} ({slot.duration_min} min){marker}")
    if not schedule.free_slots:
        console.print("  No free slots")


# ============================================================================
# Import and targets
# ============================================================================


@import_app.command("trendweight")
def import_trendweight(
    csv_path: Path = typer.Argument(..., help="TrendWeight CSV export", exists=True, dir_okay=False),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Import weight history from a TrendWeight export."""
    from healthcore.importers.trendweight import import_trendweight_csv

    try:
        with get_db().get_connection() as conn:
            result = import_trendweight_csv(csv_path, conn)
    except ValueError as e:
        fail("import trendweight", str(e), json_output)

    summary = f"Imported {result.imported} readings ({result.skipped} skipped, {result.errors} errors)"
    if json_output:
        output_json(create_response("import trendweight", data=result.to_dict(), human_summary=summary))
        return

    console.print(f"[green]{summary}[/green]")
    if result.earliest and result.latest:
        console.print(f"Date range: {result.earliest} to {result.latest}")


@app.command()
def targets(
    weight: float = typer.Option(..., "--weight", "-w", help="Current weight (lbs)"),
    height: float = typer.Option(..., "--height", help="Height (inches)"),
    age: int = typer.Option(..., "--age", help="Age (years)"),
    sex: str = typer.Option(..., "--sex", help="male or female"),
    activity: str = typer.Option("lightly_active", "--activity", "-a", help="Activity level"),
    goal: Optional[float] = typer.Option(None, "--goal", "-g", help="Goal weight (default from config)"),
    rate: float = typer.Option(1.0, "--rate", "-r", help="Planned loss in lbs/week"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Calculate BMR, TDEE, and calorie and macro targets."""
    from healthcore.nutrition.targets import ActivityLevel, Sex, calculate_targets

    try:
        result = calculate_targets(
            weight_lbs=weight,
            height_inches=height,
            age=age,
            sex=Sex(sex.lower()),
            activity_level=ActivityLevel(activity.lower()),
            goal_weight_lbs=goal if goal is not None else get_settings().profile.goal_weight_lbs,
            weekly_loss_lbs=rate,
            today=get_settings().profile.today(),
        )
    except ValueError as e:
        fail("targets", str(e), json_output)

    if json_output:
        output_json(
            create_response(
                "targets",
                data={
                    "bmr": int(round_half_up(result.bmr)),
                    "tdee": result.tdee,
                    "calorie_target": result.calorie_target,
                    "protein_g": result.macros.protein_g,
                    "carbs_g": result.macros.carbs_g,
                    "fat_g": result.macros.fat_g,
                    "bmi": result.bmi,
                    "projected_goal_date": result.projected_goal_date,
                },
                human_summary=f"{result.calorie_target} kcal/day",
            )
        )
    else:
        console.print(result.summary())


if __name__ == "__main__":
    app()
