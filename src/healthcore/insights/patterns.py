"""Behavioral pattern detection over recent food and workout logs.

"Why did I overeat Friday?" answered from data. Each rule is an independent
predicate over a trailing window of daily aggregates that may produce
insights. Rules run in the fixed order of ``RULES`` and their insights are
appended in that order: output order is part of the contract, and there is
no severity ranking. No rule suppresses another.

Rules, in order:
    1. Day-of-week overeating: a weekday seen at least twice in the window
       averages more than 115% of target (zero-log days count as 0 kcal).
    2. Rest-day eating: among days with food data, rest days average more
       than 110% of workout days.
    3. Lunch skipping: more than 3 weekdays in the window, and at least 2 of
       them have logged meals but no lunch.
    4. Low protein: more than 3 days with protein logged, averaging under 80%
       of the protein target.
    5. On target: more than 3 days with food data, at least 60% of them at or
       under 105% of target.
    6. Lapse context: the most frequent lapse tag occurs at least 3 times.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Callable, Iterable, Optional

from healthcore.constants import PROTEIN_TARGET_G
from healthcore.nutrition.adherence import daily_totals
from healthcore.tracking.models import InsightType, Insight, NutritionEntry, WorkoutEntry
from healthcore.utils import day_name, local_date, round_half_up, trailing_dates

OVEREATING_RATIO = 1.15
REST_DAY_RATIO = 1.1
ON_TARGET_RATIO = 1.05
ON_TARGET_SHARE = 0.6
LOW_PROTEIN_RATIO = 0.8
MIN_WEEKDAY_OCCURRENCES = 2
MIN_LUNCH_SKIPS = 2
MIN_DAYS_WITH_DATA = 3  # rules need strictly more than this
MIN_LAPSE_COUNT = 3

LAPSE_LABELS = {
    "home": "at home",
    "restaurant": "at restaurants",
    "social": "at social events",
    "stressed": "when stressed",
    "bored": "when bored",
    "screen_time": "during screen time",
}


@dataclass
class PatternWindow:
    """Daily aggregates for the trailing window, newest day first."""

    days: int
    calorie_target: float
    dates: list[date]
    calories: dict[date, float]
    protein: dict[date, float]
    meal_types: dict[date, list[str]]
    workout_days: set[date]
    lapse_counts: Counter = field(default_factory=Counter)

    @property
    def days_with_data(self) -> list[date]:
        return [d for d in self.dates if self.calories[d] > 0]


Rule = Callable[[PatternWindow], list[Insight]]


def build_window(
    food_logs: Iterable[NutritionEntry],
    workouts: Iterable[WorkoutEntry],
    calorie_target: float,
    days: int,
    today: date,
    tz: Optional[tzinfo] = None,
) -> PatternWindow:
    """Aggregate raw logs into the per-day maps the rules read."""
    food_logs = list(food_logs)
    # Newest first: weekday insights come out in this order.
    dates = list(reversed(trailing_dates(today, days)))
    totals = daily_totals(food_logs, tz)

    calories = {}
    protein = {}
    meal_types = {}
    for day in dates:
        bucket = totals.get(day)
        calories[day] = bucket.calories if bucket else 0
        protein[day] = bucket.protein_g if bucket else 0
        meal_types[day] = list(bucket.meal_types) if bucket else []

    lapse_counts: Counter = Counter()
    for log in food_logs:
        if log.lapse_context:
            lapse_counts[log.lapse_context] += 1

    return PatternWindow(
        days=days,
        calorie_target=calorie_target,
        dates=dates,
        calories=calories,
        protein=protein,
        meal_types=meal_types,
        workout_days={local_date(w.timestamp, tz) for w in workouts},
        lapse_counts=lapse_counts,
    )


def day_of_week_overeating(window: PatternWindow) -> list[Insight]:
    by_weekday: dict[str, list[float]] = {}
    for day in window.dates:
        by_weekday.setdefault(day_name(day), []).append(window.calories[day])

    target = window.calorie_target
    insights = []
    for weekday, cals in by_weekday.items():
        avg = sum(cals) / len(cals)
        if avg > target * OVEREATING_RATIO and len(cals) >= MIN_WEEKDAY_OCCURRENCES:
            over_pct = round_half_up((avg - target) / target * 100)
            insights.append(
                Insight(
                    id=f"overeat-{weekday}",
                    type=InsightType.OVEREATING.value,
                    title=f"{weekday}s tend to be high-calorie days",
                    detail=(
                        f"Avg {round_half_up(avg):.0f} cal on {weekday}s ({over_pct:.0f}% over target). "
                        f"Consider pre-planning {weekday} meals."
                    ),
                )
            )
    return insights


def rest_day_eating(window: PatternWindow) -> list[Insight]:
    workout_cals = [window.calories[d] for d in window.days_with_data if d in window.workout_days]
    rest_cals = [window.calories[d] for d in window.days_with_data if d not in window.workout_days]

    if not workout_cals or not rest_cals:
        return []

    workout_avg = sum(workout_cals) / len(workout_cals)
    rest_avg = sum(rest_cals) / len(rest_cals)
    if rest_avg <= workout_avg * REST_DAY_RATIO:
        return []

    return [
        Insight(
            id="rest-day-overeat",
            type=InsightType.CORRELATION.value,
            title="You eat more on rest days",
            detail=(
                f"Rest days avg {round_half_up(rest_avg):.0f} cal vs "
                f"{round_half_up(workout_avg):.0f} cal on workout days. "
                "Exercise may help regulate appetite."
            ),
        )
    ]


def lunch_skipping(window: PatternWindow) -> list[Insight]:
    weekdays = [d for d in window.dates if d.weekday() < 5]
    skips = sum(
        1 for d in weekdays if window.meal_types[d] and "lunch" not in window.meal_types[d]
    )

    if len(weekdays) <= 3 or skips < MIN_LUNCH_SKIPS:
        return []

    return [
        Insight(
            id="skip-lunch",
            type=InsightType.SKIPPING.value,
            title=f"Lunch skipped {skips} of {len(weekdays)} workdays",
            detail=(
                "Skipping lunch often leads to overeating at dinner. "
                "Consider pre-logging a lunch from your favorites."
            ),
        )
    ]


def low_protein(window: PatternWindow) -> list[Insight]:
    values = [p for p in window.protein.values() if p > 0]
    if len(values) <= MIN_DAYS_WITH_DATA:
        return []

    avg = sum(values) / len(values)
    if avg >= PROTEIN_TARGET_G * LOW_PROTEIN_RATIO:
        return []

    return [
        Insight(
            id="low-protein",
            type=InsightType.SUGGESTION.value,
            title=f"Protein averaging {round_half_up(avg):.0f}g/day",
            detail=(
                f"Target is {PROTEIN_TARGET_G}g. Low protein accelerates muscle loss during "
                "weight loss. Try adding a protein source to each meal."
            ),
        )
    ]


def on_target(window: PatternWindow) -> list[Insight]:
    with_data = window.days_with_data
    hits = [d for d in with_data if window.calories[d] <= window.calorie_target * ON_TARGET_RATIO]

    if len(with_data) <= MIN_DAYS_WITH_DATA or len(hits) / len(with_data) < ON_TARGET_SHARE:
        return []

    return [
        Insight(
            id="on-target",
            type=InsightType.POSITIVE.value,
            title=f"On target {len(hits)} of {len(with_data)} days",
            detail="Solid adherence. Consistency beats perfection.",
        )
    ]


def lapse_context(window: PatternWindow) -> list[Insight]:
    if not window.lapse_counts:
        return []

    # most_common keeps first-seen order among ties
    tag, count = window.lapse_counts.most_common(1)[0]
    if count < MIN_LAPSE_COUNT:
        return []

    return [
        Insight(
            id="lapse-pattern",
            type=InsightType.OVEREATING.value,
            title=f"Overeating most often {LAPSE_LABELS.get(tag, tag)}",
            detail=(
                f"{count} instances in the last {window.days} days. "
                "Consider specific strategies for this trigger."
            ),
        )
    ]


RULES: tuple[Rule, ...] = (
    day_of_week_overeating,
    rest_day_eating,
    lunch_skipping,
    low_protein,
    on_target,
    lapse_context,
)


def detect_patterns(
    food_logs: Iterable[NutritionEntry],
    workouts: Iterable[WorkoutEntry],
    calorie_target: float,
    days: int = 14,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> list[Insight]:
    """
    Run every pattern rule over the trailing ``days``-day window.

    Args:
        food_logs: Food log entries (outside-window entries only feed the
                   lapse-context tally)
        workouts: Workouts, used to split workout days from rest days
        calorie_target: Daily calorie target
        days: Window length ending today
        today: Anchor day (default: today)
        tz: Local timezone for aware timestamps

    Returns:
        Insights in rule order; empty when nothing stands out
    """
    if today is None:
        today = date.today()

    window = build_window(food_logs, workouts, calorie_target, days, today, tz)

    insights: list[Insight] = []
    for rule in RULES:
        insights.extend(rule(window))
    return insights
