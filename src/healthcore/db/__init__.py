"""SQLite persistence for tracking logs and streak state."""

from healthcore.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
