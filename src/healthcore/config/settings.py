"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import yaml

from healthcore.utils import local_now, local_today

CONFIG_ENV_VAR = "HEALTHCORE_CONFIG"


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".healthcore"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "healthcore.db"


def default_config_path() -> Path:
    """Return the config file path, honoring the HEALTHCORE_CONFIG override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return _default_config_dir() / "config.yaml"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class CalendarConfig:
    """Calendar configuration. No events file means not connected."""

    events_path: Optional[Path] = None


@dataclass
class ProfileConfig:
    """Personal goal and locale."""

    goal_weight_lbs: float = 185.0
    timezone: Optional[str] = None  # IANA name; None = system local time

    @property
    def tz(self) -> Optional[tzinfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    def now(self) -> datetime:
        """Naive wall-clock time in the profile's zone."""
        return local_now(self.tz)

    def today(self) -> date:
        """The user's current calendar day. Every "today" comes from here."""
        return local_today(self.tz)


@dataclass
class LoggingConfig:
    """Log output configuration."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    profile: ProfileConfig = field(default_factory=ProfileConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses $HEALTHCORE_CONFIG
                         or ~/.healthcore/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if db_data.get("path"):
                settings.database.path = Path(db_data["path"]).expanduser()

        if "calendar" in data:
            cal_data = data["calendar"] or {}
            if cal_data.get("events_path"):
                settings.calendar.events_path = Path(cal_data["events_path"]).expanduser()

        if "profile" in data:
            profile_data = data["profile"] or {}
            if "goal_weight_lbs" in profile_data:
                settings.profile.goal_weight_lbs = float(profile_data["goal_weight_lbs"])
            if "timezone" in profile_data:
                settings.profile.timezone = profile_data["timezone"]

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()
            if "format" in log_data:
                settings.logging.format = log_data["format"]

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses the default path
        """
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "calendar": {
                "events_path": str(self.calendar.events_path) if self.calendar.events_path else None,
            },
            "profile": {
                "goal_weight_lbs": self.profile.goal_weight_lbs,
                "timezone": self.profile.timezone,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
