"""Daily nutrition aggregates, calorie adherence and macro energy split."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Iterable, Optional

from healthcore.constants import KCAL_PER_G_CARBS, KCAL_PER_G_FAT, KCAL_PER_G_PROTEIN
from healthcore.tracking.models import NutritionEntry
from healthcore.utils import local_date, round_half_up, trailing_dates


@dataclass
class DailyTotals:
    """Sum of one local day's food logs."""

    date: date
    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    meal_types: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.meal_types)


@dataclass
class DailyAdherence:
    """Calories for one day compared with the target."""

    date: date
    calories: float
    target: float
    delta: float  # calories - target

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "calories": self.calories,
            "target": self.target,
            "delta": self.delta,
        }


@dataclass
class MacroBreakdown:
    """Macro grams and their share of macro energy (not of logged calories)."""

    protein_g: int
    carbs_g: int
    fat_g: int
    protein_pct: int
    carbs_pct: int
    fat_pct: int

    def to_dict(self) -> dict:
        return {
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "protein_pct": self.protein_pct,
            "carbs_pct": self.carbs_pct,
            "fat_pct": self.fat_pct,
        }


def daily_totals(
    logs: Iterable[NutritionEntry],
    tz: Optional[tzinfo] = None,
) -> dict[date, DailyTotals]:
    """
    Bucket food logs by local calendar day.

    Args:
        logs: Food log entries in any order
        tz: Local timezone for aware timestamps (None = system local)

    Returns:
        Mapping of date -> DailyTotals, only for days with at least one log
    """
    totals: dict[date, DailyTotals] = {}
    for log in logs:
        day = local_date(log.timestamp, tz)
        bucket = totals.setdefault(day, DailyTotals(date=day))
        bucket.calories += log.total_calories or 0
        bucket.protein_g += log.protein_g or 0
        bucket.carbs_g += log.carbs_g or 0
        bucket.fat_g += log.fat_g or 0
        bucket.meal_types.append(log.meal_type)
    return totals


def weekly_calorie_adherence(
    logs: Iterable[NutritionEntry],
    target: float,
    days: int = 7,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> list[DailyAdherence]:
    """
    Daily calorie totals for the trailing ``days`` days against a target.

    Always returns exactly ``days`` entries, most recent last. Days without
    logs appear with 0 calories.

    Args:
        logs: Food log entries
        target: Daily calorie target
        days: Number of days to report
        today: Last day of the window (default: today)
        tz: Local timezone for aware timestamps

    Returns:
        List of DailyAdherence, oldest first
    """
    if today is None:
        today = date.today()

    totals = daily_totals(logs, tz)
    result = []
    for day in trailing_dates(today, days):
        calories = totals[day].calories if day in totals else 0
        result.append(
            DailyAdherence(date=day, calories=calories, target=target, delta=calories - target)
        )
    return result


def macro_energy(protein_g: float, carbs_g: float, fat_g: float) -> float:
    """Energy from macros using Atwater factors (4/4/9 kcal per gram)."""
    return (
        protein_g * KCAL_PER_G_PROTEIN
        + carbs_g * KCAL_PER_G_CARBS
        + fat_g * KCAL_PER_G_FAT
    )


def macro_breakdown(logs: Iterable[NutritionEntry]) -> MacroBreakdown:
    """
    Total macro grams and each macro's share of macro energy.

    Percentages are computed from protein*4 + carbs*4 + fat*9, independent of
    any logged ``total_calories``. If items were logged inconsistently the
    percentages can disagree with the displayed calorie total; that is
    expected.

    Example:
        protein 45 g, carbs 60 g, fat 20 g -> energy 600 kcal
        -> protein_pct 30, carbs_pct 40, fat_pct 30

    Returns:
        MacroBreakdown; all percentages are 0 when no macro grams are logged
    """
    protein = carbs = fat = 0.0
    for log in logs:
        protein += log.protein_g or 0
        carbs += log.carbs_g or 0
        fat += log.fat_g or 0

    total = macro_energy(protein, carbs, fat)

    def pct(kcal: float) -> int:
        return int(round_half_up(kcal / total * 100)) if total > 0 else 0

    return MacroBreakdown(
        protein_g=int(round_half_up(protein)),
        carbs_g=int(round_half_up(carbs)),
        fat_g=int(round_half_up(fat)),
        protein_pct=pct(protein * KCAL_PER_G_PROTEIN),
        carbs_pct=pct(carbs * KCAL_PER_G_CARBS),
        fat_pct=pct(fat * KCAL_PER_G_FAT),
    )
