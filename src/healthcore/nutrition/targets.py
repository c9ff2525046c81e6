"""Calorie and macro targets for weight-loss planning.

Uses the Mifflin-St Jeor equation for BMR, which is the most accurate of the
common formulas for overweight adults, and Harris-Benedict activity factors
for TDEE.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from healthcore.constants import (
    CALORIE_TARGET,
    KCAL_PER_G_CARBS,
    KCAL_PER_G_FAT,
    KCAL_PER_G_PROTEIN,
)
from healthcore.utils import round_half_up


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity level for TDEE calculation."""
    SEDENTARY = "sedentary"                  # Desk job, little exercise
    LIGHTLY_ACTIVE = "lightly_active"        # Light exercise 1-3 days/week
    MODERATELY_ACTIVE = "moderately_active"  # Moderate exercise 3-5 days/week
    VERY_ACTIVE = "very_active"              # Hard exercise most days


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
}

LBS_TO_KG = 0.453592
INCHES_TO_CM = 2.54
# 3500 kcal per lb of body weight / 7 days
DAILY_DEFICIT_PER_WEEKLY_LB = 500
MIN_SAFE_CALORIES = 1500


@dataclass
class MacroTargets:
    """Daily macro targets in grams."""

    protein_g: int
    carbs_g: int
    fat_g: int


@dataclass
class CalorieTargets:
    """Calculated daily targets for a profile."""

    bmr: float
    tdee: int
    calorie_target: int
    macros: MacroTargets
    bmi: float
    projected_goal_date: Optional[date]

    def summary(self) -> str:
        """Human-readable summary of targets."""
        lines = [
            f"BMR:     {self.bmr:.0f} kcal/day",
            f"TDEE:    {self.tdee} kcal/day",
            f"Target:  {self.calorie_target} kcal/day",
            f"Macros:  P {self.macros.protein_g}g / C {self.macros.carbs_g}g / F {self.macros.fat_g}g",
            f"BMI:     {self.bmi:.1f}",
        ]
        if self.projected_goal_date:
            lines.append(f"Goal by: {self.projected_goal_date.isoformat()}")
        return "\n".join(lines)


def calculate_bmr(weight_lbs: float, height_inches: float, age: int, sex: Sex) -> float:
    """
    Calculate Basal Metabolic Rate using Mifflin-St Jeor.

    Args:
        weight_lbs: Body weight in pounds
        height_inches: Height in inches
        age: Age in years
        sex: Biological sex

    Returns:
        BMR in kcal/day
    """
    weight_kg = weight_lbs * LBS_TO_KG
    height_cm = height_inches * INCHES_TO_CM

    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def calculate_tdee(bmr: float, activity_level: ActivityLevel = ActivityLevel.LIGHTLY_ACTIVE) -> int:
    """Total Daily Energy Expenditure, rounded to whole kcal."""
    return int(round_half_up(bmr * ACTIVITY_MULTIPLIERS[activity_level]))


def calculate_calorie_target(
    tdee: float,
    weekly_loss_lbs: float = 1.0,
    min_calories: int = MIN_SAFE_CALORIES,
) -> int:
    """
    Daily calorie target for a planned weekly loss, floored at a safe minimum.

    Args:
        tdee: Total Daily Energy Expenditure
        weekly_loss_lbs: Planned loss per week (1 lb/week = 500 kcal/day deficit)
        min_calories: Lowest target ever returned
    """
    deficit = weekly_loss_lbs * DAILY_DEFICIT_PER_WEEKLY_LB
    return max(int(round_half_up(tdee - deficit)), min_calories)


def calculate_macros(
    calorie_target: float,
    protein_pct: float = 0.30,
    carbs_pct: float = 0.40,
    fat_pct: float = 0.30,
) -> MacroTargets:
    """Convert an energy split into gram targets."""
    if abs(protein_pct + carbs_pct + fat_pct - 1.0) > 0.01:
        raise ValueError(
            f"macro percentages must sum to 1.0, got {protein_pct + carbs_pct + fat_pct:.2f}"
        )
    return MacroTargets(
        protein_g=int(round_half_up(calorie_target * protein_pct / KCAL_PER_G_PROTEIN)),
        carbs_g=int(round_half_up(calorie_target * carbs_pct / KCAL_PER_G_CARBS)),
        fat_g=int(round_half_up(calorie_target * fat_pct / KCAL_PER_G_FAT)),
    )


def calculate_bmi(weight_lbs: float, height_inches: float) -> float:
    """Body Mass Index from imperial units, rounded to 0.1."""
    return round_half_up(weight_lbs / (height_inches * height_inches) * 703, 1)


def projected_goal_date(
    current_weight: float,
    goal_weight: float,
    weekly_loss_rate: float = 1.0,
    today: Optional[date] = None,
) -> Optional[date]:
    """
    Date the goal is reached at a constant planned loss rate.

    Returns None when the goal is already reached or the rate is not positive.
    """
    if today is None:
        today = date.today()
    to_lose = current_weight - goal_weight
    if to_lose <= 0 or weekly_loss_rate <= 0:
        return None
    return today + timedelta(days=math.ceil(to_lose / weekly_loss_rate * 7))


def calculate_targets(
    weight_lbs: float,
    height_inches: float,
    age: int,
    sex: Sex,
    activity_level: ActivityLevel = ActivityLevel.LIGHTLY_ACTIVE,
    goal_weight_lbs: Optional[float] = None,
    weekly_loss_lbs: float = 1.0,
    calorie_cap: int = CALORIE_TARGET,
    today: Optional[date] = None,
) -> CalorieTargets:
    """
    Full target calculation for a profile.

    The calorie target is capped at ``calorie_cap`` (the plan's fixed daily
    target) so the computed figure never exceeds what the insights compare
    against.
    """
    bmr = calculate_bmr(weight_lbs, height_inches, age, sex)
    tdee = calculate_tdee(bmr, activity_level)
    target = min(calculate_calorie_target(tdee, weekly_loss_lbs), calorie_cap)

    goal_date = None
    if goal_weight_lbs is not None:
        goal_date = projected_goal_date(weight_lbs, goal_weight_lbs, weekly_loss_lbs, today)

    return CalorieTargets(
        bmr=bmr,
        tdee=tdee,
        calorie_target=target,
        macros=calculate_macros(target),
        bmi=calculate_bmi(weight_lbs, height_inches),
        projected_goal_date=goal_date,
    )
