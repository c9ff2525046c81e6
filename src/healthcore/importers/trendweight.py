"""Import weight history from a TrendWeight CSV export.

TrendWeight exports columns like ``Date, Weight, TrendWeight, BodyFat``.
Header names are matched case-insensitively against the common variants.
Malformed rows are skipped and counted; they never abort the import.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional

import pandas as pd

from healthcore.constants import MAX_BODY_FAT_PCT, MAX_WEIGHT_LBS
from healthcore.tracking.models import Measurement, MeasurementSource
from healthcore.tracking.queries import WeightQueries

logger = logging.getLogger(__name__)

DATE_COLUMNS = ("date", "datetime", "timestamp")
WEIGHT_COLUMNS = ("weight", "scaleweight", "scale weight", "scale_weight")
TREND_COLUMNS = ("trendweight", "trend", "trend_weight", "trend weight")
BODY_FAT_COLUMNS = ("bodyfat", "body_fat", "bodyfat%", "body fat", "fat%")

BATCH_SIZE = 200
# US-style dates have no time of day; readings are assumed to be morning weigh-ins
US_DATE_TIME = time(8, 0)


@dataclass
class ImportResult:
    """Counts from one import run."""

    imported: int
    skipped: int
    errors: int
    duplicates: int
    earliest: Optional[date]
    latest: Optional[date]

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "duplicates": self.duplicates,
            "dateRange": {
                "earliest": self.earliest.isoformat() if self.earliest else None,
                "latest": self.latest.isoformat() if self.latest else None,
            },
        }


def normalize_header(name) -> str:
    return str(name).strip().lower().replace('"', "")


def _find_column(headers: list[str], candidates: tuple[str, ...]) -> Optional[int]:
    for i, header in enumerate(headers):
        if header in candidates:
            return i
    return None


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an export date: ISO-8601 first, then M/D/YYYY at 08:00.

    Returns None when the value is empty or unparseable.
    """
    value = value.strip()
    if not value:
        return None

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass

    parts = value.split("/")
    if len(parts) != 3:
        return None
    try:
        month, day, year = (int(p) for p in parts)
        return datetime.combine(date(year, month, day), US_DATE_TIME)
    except ValueError:
        return None


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return None if pd.isna(number) else number


class TrendWeightImporter:
    """Handles importing weight readings from TrendWeight CSV exports."""

    def __init__(self, conn: sqlite3.Connection, batch_size: int = BATCH_SIZE):
        """Initialize the importer.

        Args:
            conn: SQLite database connection
            batch_size: Rows inserted per statement batch
        """
        self.conn = conn
        self.batch_size = batch_size

    def parse(self, df: pd.DataFrame) -> tuple[list[Measurement], int]:
        """
        Turn a raw export table into readings.

        Args:
            df: CSV contents read as strings

        Returns:
            Tuple of (readings in file order, number of skipped rows)

        Raises:
            ValueError: If the date column or both weight columns are missing
        """
        headers = [normalize_header(c) for c in df.columns]

        date_idx = _find_column(headers, DATE_COLUMNS)
        weight_idx = _find_column(headers, WEIGHT_COLUMNS)
        trend_idx = _find_column(headers, TREND_COLUMNS)
        body_fat_idx = _find_column(headers, BODY_FAT_COLUMNS)

        if date_idx is None:
            raise ValueError(
                "Could not find a 'Date' column in the CSV header. "
                f"Found columns: {', '.join(headers)}"
            )
        if weight_idx is None and trend_idx is None:
            raise ValueError(
                "Could not find a 'Weight' or 'TrendWeight' column. "
                f"Found columns: {', '.join(headers)}"
            )
        value_idx = weight_idx if weight_idx is not None else trend_idx

        readings: list[Measurement] = []
        skipped = 0

        for row in df.itertuples(index=False):
            cells = [str(c).strip().replace('"', "") for c in row]
            if not any(cells):
                continue

            timestamp = parse_timestamp(cells[date_idx])
            if timestamp is None:
                skipped += 1
                continue

            weight = _parse_number(cells[value_idx]) if cells[value_idx] else None
            if weight is None or weight <= 0 or weight > MAX_WEIGHT_LBS:
                skipped += 1
                continue

            body_fat = None
            if body_fat_idx is not None and cells[body_fat_idx]:
                bf = _parse_number(cells[body_fat_idx])
                if bf is not None and 0 < bf < MAX_BODY_FAT_PCT:
                    body_fat = bf

            readings.append(
                Measurement(
                    timestamp=timestamp,
                    value=weight,
                    source=MeasurementSource.TRENDWEIGHT.value,
                    body_fat_pct=body_fat,
                )
            )

        return readings, skipped

    def load_from_csv(self, csv_path: Path) -> ImportResult:
        """Load readings from a CSV file.

        Args:
            csv_path: Path to the TrendWeight export

        Returns:
            ImportResult with imported, skipped, error and duplicate counts

        Raises:
            ValueError: If the file has no data rows, required columns are
                missing, or no row is valid
        """
        try:
            df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        except pd.errors.EmptyDataError as e:
            raise ValueError("CSV appears empty or has no data rows") from e

        if df.empty:
            raise ValueError("CSV appears empty or has no data rows")

        readings, skipped = self.parse(df)
        if not readings:
            raise ValueError(f"No valid records found. {skipped} rows were skipped.")

        imported = errors = duplicates = 0
        for start in range(0, len(readings), self.batch_size):
            batch = readings[start : start + self.batch_size]
            try:
                inserted = WeightQueries.insert_many(self.conn, batch)
            except sqlite3.Error:
                self.conn.rollback()
                logger.exception("Batch insert failed for rows %d-%d", start, start + len(batch) - 1)
                errors += len(batch)
                continue
            imported += inserted
            duplicates += len(batch) - inserted

        logger.info(
            "TrendWeight import from %s: %d imported, %d skipped, %d errors",
            csv_path,
            imported,
            skipped,
            errors,
            extra={"healthcore_records": imported},
        )

        return ImportResult(
            imported=imported,
            skipped=skipped,
            errors=errors,
            duplicates=duplicates,
            earliest=min(r.timestamp for r in readings).date(),
            latest=max(r.timestamp for r in readings).date(),
        )


def import_trendweight_csv(csv_path: Path, conn: sqlite3.Connection) -> ImportResult:
    """Convenience function to import a TrendWeight export."""
    return TrendWeightImporter(conn).load_from_csv(csv_path)
