"""Data models for weight, nutrition, workout and streak tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from healthcore.constants import SOURCE_RANKS, UNKNOWN_SOURCE_RANK


class MeasurementSource(str, Enum):
    """Origin of a weight reading."""

    WITHINGS = "withings"
    MANUAL = "manual"
    APPLE_HEALTH = "apple_health"
    TRENDWEIGHT = "trendweight"


class MealType(str, Enum):
    """Meal slot of a food log entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    DRINK = "drink"


class LapseContext(str, Enum):
    """Situational trigger recorded with an overeating event."""

    HOME = "home"
    RESTAURANT = "restaurant"
    SOCIAL = "social"
    STRESSED = "stressed"
    BORED = "bored"
    SCREEN_TIME = "screen_time"


class InsightType(str, Enum):
    """Category of a detected behavioral pattern."""

    OVEREATING = "overeating"
    SKIPPING = "skipping"
    CORRELATION = "correlation"
    POSITIVE = "positive"
    SUGGESTION = "suggestion"


VALID_WORKOUT_SOURCES = ("precor", "apple_health", "manual")
VALID_ROUTINE_TYPES = ("quick_5min", "full_10min")


def source_rank(source: str) -> int:
    """Return the authority rank of a source (lower is more authoritative)."""
    return SOURCE_RANKS.get(str(source), UNKNOWN_SOURCE_RANK)


@dataclass(frozen=True)
class Measurement:
    """A single weight reading from one source."""

    timestamp: datetime
    value: float  # lbs
    source: str = MeasurementSource.MANUAL.value
    body_fat_pct: Optional[float] = None
    log_id: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.source, MeasurementSource):
            object.__setattr__(self, "source", self.source.value)

    @property
    def rank(self) -> int:
        return source_rank(self.source)


@dataclass
class FoodItem:
    """One item inside a logged meal."""

    name: str
    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FoodItem":
        return cls(
            name=str(data.get("name", "")),
            calories=float(data.get("calories") or 0),
            protein_g=float(data.get("protein_g") or 0),
            carbs_g=float(data.get("carbs_g") or 0),
            fat_g=float(data.get("fat_g") or 0),
        )


@dataclass
class NutritionEntry:
    """A logged meal with its item list and totals."""

    timestamp: datetime
    meal_type: str
    items: list[FoodItem] = field(default_factory=list)
    total_calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    lapse_context: Optional[str] = None
    log_id: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.meal_type, MealType):
            self.meal_type = self.meal_type.value
        valid_meals = tuple(m.value for m in MealType)
        if self.meal_type not in valid_meals:
            raise ValueError(f"meal_type must be one of {valid_meals}, got '{self.meal_type}'")
        if isinstance(self.lapse_context, LapseContext):
            self.lapse_context = self.lapse_context.value


@dataclass
class WorkoutEntry:
    """A completed workout session."""

    timestamp: datetime
    type: str
    duration_min: float
    calories_burned: float = 0.0
    avg_hr: Optional[float] = None
    external_id: Optional[str] = None
    source: str = "manual"
    log_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.source not in VALID_WORKOUT_SOURCES:
            raise ValueError(
                f"source must be one of {VALID_WORKOUT_SOURCES}, got '{self.source}'"
            )


@dataclass
class WaterEntry:
    """Water intake in fluid ounces."""

    timestamp: datetime
    amount_oz: float
    log_id: Optional[int] = None


@dataclass
class MobilityEntry:
    """A completed mobility routine (logged per calendar date)."""

    date: date
    routine_type: str
    exercises_completed: list[str] = field(default_factory=list)
    pain_level: Optional[int] = None  # 1-5
    log_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.routine_type not in VALID_ROUTINE_TYPES:
            raise ValueError(
                f"routine_type must be one of {VALID_ROUTINE_TYPES}, got '{self.routine_type}'"
            )
        if self.pain_level is not None and not 1 <= self.pain_level <= 5:
            raise ValueError(f"pain_level must be between 1 and 5, got {self.pain_level}")


@dataclass(frozen=True)
class RollingAveragePoint:
    """Smoothed weight at one measurement (derived, never stored)."""

    date: date
    avg: float
    raw: float


@dataclass(frozen=True)
class ProjectionPoint:
    """Projected weight at a future checkpoint."""

    date: date
    projected: float


@dataclass
class Insight:
    """A detected behavioral pattern.

    ``id`` is a stable slug so clients can diff insight lists between calls.
    """

    id: str
    type: str
    title: str
    detail: str

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type, "title": self.title, "detail": self.detail}


@dataclass
class StreakState:
    """Persisted per-user streak counters."""

    current_streak: int = 0
    longest_streak: int = 0
    last_check_in_date: Optional[date] = None
    freezes_remaining: int = 1
    freezes_used: int = 0
    streak_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.current_streak < 0 or self.longest_streak < 0:
            raise ValueError("streak counters cannot be negative")
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) cannot be below "
                f"current_streak ({self.current_streak})"
            )


@dataclass
class ActivitySummary:
    """Counts of today's logged activity, used for streak check-in."""

    food_count: int = 0
    workout_count: int = 0
    weight_count: int = 0
    mobility_count: int = 0
    water_oz: float = 0.0
