"""Fixed targets and thresholds shared across the analytics core.

These values are part of the public contract of the insights and schedule
outputs, so they live in code rather than in the YAML settings.
"""

from __future__ import annotations

from datetime import time

# Daily nutrition targets
CALORIE_TARGET = 1800
PROTEIN_TARGET_G = 135  # 30% of 1800 kcal / 4 kcal per g
CARBS_TARGET_G = 180
FAT_TARGET_G = 60
WATER_GOAL_OZ = 64

# Atwater factors (kcal per gram)
KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

# Source authority for weight readings: lower rank wins.
# New sources are a one-line addition here.
SOURCE_RANKS: dict[str, int] = {
    "withings": 10,
    "manual": 20,
    "apple_health": 30,
    "trendweight": 40,
}
UNKNOWN_SOURCE_RANK = 50

# Reconciliation windows
WEIGHT_DEDUP_WINDOW_MIN = 30
WEIGHT_DEDUP_TOLERANCE_LBS = 0.5
WORKOUT_DEDUP_WINDOW_MIN = 15
WORKOUT_DEDUP_DURATION_MIN = 5

# Calendar window and slot sizes
DAY_START = time(6, 0)
DAY_END = time(21, 0)
MIN_SLOT_MIN = 30
SUGGESTION_SLOT_MIN = 40
SIMPLE_BEST_SLOT_MIN = 45
TOP_SUGGESTIONS = 10
MAX_SCHEDULE_DAYS = 14

# Streaks
WATER_CHECK_IN_OZ = 8
INITIAL_FREEZES = 1

# Import validation bounds
MAX_WEIGHT_LBS = 500
MAX_BODY_FAT_PCT = 100

GOAL_REACHED = "Goal reached!"
