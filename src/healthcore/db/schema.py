"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Weight readings from every source; reconciliation happens at read time
CREATE TABLE IF NOT EXISTS weight_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    weight_lbs REAL NOT NULL CHECK(weight_lbs > 0),
    source TEXT NOT NULL DEFAULT 'manual',
    body_fat_pct REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(timestamp, source)
);

CREATE INDEX IF NOT EXISTS idx_weight_logs_timestamp ON weight_logs(timestamp);

-- Meals with their item list stored as JSON
CREATE TABLE IF NOT EXISTS food_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    meal_type TEXT NOT NULL CHECK(meal_type IN ('breakfast', 'lunch', 'dinner', 'snack', 'drink')),
    items_json TEXT NOT NULL DEFAULT '[]',
    total_calories REAL NOT NULL DEFAULT 0,
    protein_g REAL NOT NULL DEFAULT 0,
    carbs_g REAL NOT NULL DEFAULT 0,
    fat_g REAL NOT NULL DEFAULT 0,
    lapse_context TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_food_logs_timestamp ON food_logs(timestamp);

-- Workouts from Precor, Apple Health or manual entry
CREATE TABLE IF NOT EXISTS workouts (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    type TEXT NOT NULL,
    duration_min REAL NOT NULL,
    calories_burned REAL NOT NULL DEFAULT 0,
    avg_hr REAL,
    external_id TEXT,
    source TEXT NOT NULL DEFAULT 'manual' CHECK(source IN ('precor', 'apple_health', 'manual')),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_workouts_timestamp ON workouts(timestamp);
CREATE INDEX IF NOT EXISTS idx_workouts_external_id ON workouts(external_id);

CREATE TABLE IF NOT EXISTS water_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    amount_oz REAL NOT NULL CHECK(amount_oz > 0)
);

CREATE INDEX IF NOT EXISTS idx_water_logs_timestamp ON water_logs(timestamp);

-- Mobility routines are logged per calendar date
CREATE TABLE IF NOT EXISTS mobility_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    date DATE NOT NULL,
    routine_type TEXT NOT NULL CHECK(routine_type IN ('quick_5min', 'full_10min')),
    exercises_json TEXT NOT NULL DEFAULT '[]',
    pain_level INTEGER CHECK(pain_level BETWEEN 1 AND 5 OR pain_level IS NULL)
);

CREATE INDEX IF NOT EXISTS idx_mobility_logs_date ON mobility_logs(date);

-- Check-in streak (single row)
CREATE TABLE IF NOT EXISTS streaks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    current_streak INTEGER NOT NULL DEFAULT 0 CHECK(current_streak >= 0),
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_check_in_date DATE,
    freezes_remaining INTEGER NOT NULL DEFAULT 1 CHECK(freezes_remaining >= 0),
    freezes_used INTEGER NOT NULL DEFAULT 0,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    CHECK(longest_streak >= current_streak)
);
"""

TABLES = (
    "weight_logs",
    "food_logs",
    "workouts",
    "water_logs",
    "mobility_logs",
    "streaks",
)


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
