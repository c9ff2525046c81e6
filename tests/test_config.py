"""Tests for settings and logging setup."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from healthcore.config import Settings, get_settings
from healthcore.log import JSONFormatter, setup_logging


class TestSettings:
    """Tests for Settings load and save."""

    def test_defaults_when_missing(self, tmp_path) -> None:
        """A missing config file gives defaults."""
        settings = Settings.load(tmp_path / "nope.yaml")
        assert settings.calendar.events_path is None
        assert settings.profile.goal_weight_lbs == 185.0
        assert settings.profile.tz is None
        assert settings.logging.format == "text"

    def test_load(self, tmp_path) -> None:
        """Values in the YAML file override defaults."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "database:\n"
            f"  path: {tmp_path / 'h.db'}\n"
            "calendar:\n"
            "  events_path: ~/events.yaml\n"
            "profile:\n"
            "  goal_weight_lbs: 175\n"
            "  timezone: America/Chicago\n"
            "logging:\n"
            "  level: debug\n"
            "  format: json\n"
        )
        settings = Settings.load(path)
        assert settings.database.path == tmp_path / "h.db"
        assert settings.calendar.events_path == Path("~/events.yaml").expanduser()
        assert settings.profile.goal_weight_lbs == 175.0
        assert settings.profile.timezone == "America/Chicago"
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "json"

    def test_save_and_reload(self, tmp_path) -> None:
        """Saved settings load back unchanged."""
        path = tmp_path / "sub" / "config.yaml"
        settings = Settings()
        settings.profile.goal_weight_lbs = 170.0
        settings.calendar.events_path = tmp_path / "events.yaml"
        settings.save(path)

        loaded = Settings.load(path)
        assert loaded.profile.goal_weight_lbs == 170.0
        assert loaded.calendar.events_path == tmp_path / "events.yaml"

    def test_env_override(self, isolated_settings, tmp_path) -> None:
        """HEALTHCORE_CONFIG points the global settings at another file."""
        assert get_settings() is isolated_settings
        assert isolated_settings.calendar.events_path is None

    def test_profile_day_follows_timezone(self, far_timezone) -> None:
        """today() and now() are read in the profile zone, not the host's."""
        settings = Settings()
        settings.profile.timezone = far_timezone

        assert settings.profile.today() == datetime.now(ZoneInfo(far_timezone)).date()
        assert settings.profile.today() != date.today()
        assert settings.profile.now().tzinfo is None
        assert settings.profile.now().microsecond == 0

    def test_profile_day_defaults_to_host(self) -> None:
        """Without a timezone the host's local day is used."""
        assert Settings().profile.today() == date.today()


class TestLogging:
    """Tests for logging setup."""

    def test_json_formatter(self) -> None:
        """Records become one JSON object with healthcore_ extras."""
        record = logging.LogRecord("healthcore.test", logging.INFO, __file__, 1, "hello %s", ("there",), None)
        record.healthcore_records = 3
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello there"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "healthcore.test"
        assert entry["healthcore_records"] == 3

    def test_setup_replaces_handlers(self) -> None:
        """Setup leaves exactly one handler with the chosen format."""
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging("json", "warning")
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)

            setup_logging("text", "bogus")
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
