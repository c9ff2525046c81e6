"""healthcore: reconciliation and analytics core for personal health tracking."""

__version__ = "0.1.0"
