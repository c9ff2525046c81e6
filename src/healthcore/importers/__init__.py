"""Bulk importers for historical data."""

from healthcore.importers.trendweight import ImportResult, import_trendweight_csv

__all__ = ["ImportResult", "import_trendweight_csv"]
