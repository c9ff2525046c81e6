"""Pytest fixtures for healthcore tests."""

from __future__ import annotations

import tempfile
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from healthcore.config import reload_settings
from healthcore.db.connection import DatabaseConnection, set_db
from healthcore.tracking.models import Measurement, NutritionEntry


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at an empty config so the user's real config is never read."""
    monkeypatch.setenv("HEALTHCORE_CONFIG", str(tmp_path / "config.yaml"))
    settings = reload_settings()
    yield settings
    monkeypatch.delenv("HEALTHCORE_CONFIG")
    reload_settings()


@pytest.fixture
def global_db(temp_db, isolated_settings):
    """Install the temporary database as the global instance."""
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture
def far_timezone() -> str:
    """A zone whose calendar day differs from the host's right now.

    UTC+14 and UTC-11 are always on different days, so at most one of them
    matches the host.
    """
    for name in ("Pacific/Kiritimati", "Pacific/Pago_Pago"):
        if datetime.now(ZoneInfo(name)).date() != date.today():
            return name
    raise AssertionError("no zone differs from the host day")


def weight(ts: str, value: float, source: str = "manual") -> Measurement:
    """Shorthand for a reading at an ISO timestamp."""
    return Measurement(timestamp=datetime.fromisoformat(ts), value=value, source=source)


def meal(ts: str, meal_type: str, calories: float, protein: float = 0.0, **kwargs) -> NutritionEntry:
    """Shorthand for a food log at an ISO timestamp."""
    return NutritionEntry(
        timestamp=datetime.fromisoformat(ts),
        meal_type=meal_type,
        total_calories=calories,
        protein_g=protein,
        **kwargs,
    )
