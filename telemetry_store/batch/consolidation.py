"""
Daily consolidation of interval files.

Merges every interval file of one telemetry path and one completed UTC day
into a single chronologically sorted file. Sources are archived under
processed/ only after the merged file validated; a failing path is
quarantined and skipped without affecting the rest of the run.
"""

import os
import shutil
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from telemetry_store.batch.readers.file_reader import FileReader
from telemetry_store.batch.writers.parquet_writer import TypedBatchWriter
from telemetry_store.batch.writers.quarantine_writer import QuarantineWriter
from telemetry_store.core.validators.file_validator import FileValidator
from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger, log_operation
from telemetry_store.storage.layout import (
    PROCESSED_DIR,
    archive_directory,
    consolidated_file_name,
    interval_file_date,
    is_consolidated_file,
    is_data_file,
    telemetry_path_from_file,
    walk_data_directories,
)

logger = get_logger(__name__)

CONSOLIDATION_OPERATION = "consolidation"
DEFAULT_LOOKBACK_DAYS = 7


def chronological_key(row: dict[str, Any]) -> str:
    """Sort key: received_timestamp, else signalk_timestamp."""
    return row.get("received_timestamp") or row.get("signalk_timestamp") or ""


def sort_rows(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Stable chronological sort; ties keep their original order."""
    return sorted(rows, key=chronological_key)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyConsolidator:
    """
    Merges a day's interval files per telemetry-path directory.
    """

    def __init__(
        self,
        writer: TypedBatchWriter | None = None,
        validator: FileValidator | None = None,
        quarantine_writer: QuarantineWriter | None = None,
        reader: FileReader | None = None,
        filename_prefix: str = "signalk_data",
    ):
        """
        Initialize daily consolidator.

        Args:
            writer: Typed batch writer for merged files
            validator: Validator applied to every merged file
            quarantine_writer: Destination for merged files failing validation
            reader: Reader for columnar and JSON interval files
            filename_prefix: Data file name prefix
        """
        self.validator = validator or FileValidator()
        self.quarantine_writer = quarantine_writer or QuarantineWriter()
        self.writer = writer or TypedBatchWriter(validator=self.validator, quarantine_writer=self.quarantine_writer)
        self.reader = reader or FileReader()
        self.filename_prefix = filename_prefix

    def consolidate_daily(self, root: str | Path, day: date, today: date | None = None) -> int:
        """
        Consolidate every telemetry-path directory for one day.

        Args:
            root: Root data directory
            day: UTC calendar day to consolidate
            today: Current UTC day (defaults to the system clock)

        Returns:
            Number of directories consolidated

        Raises:
            ValueError: If day is not strictly before today
        """
        # Only completed UTC days
        today = today or utc_today()
        if day >= today:
            raise ValueError(f"Cannot consolidate {day.isoformat()}: only days before {today.isoformat()} are complete")

        # Interval files grouped by telemetry-path directory
        groups = self.collect_day_files(root, day)
        consolidated = 0

        with metrics.track_duration(metrics.consolidation_duration_seconds):
            with log_operation("Daily consolidation", logger=logger, day=day.isoformat(), directories=len(groups)):
                for directory, sources in groups.items():
                    # One failing directory never stops the others
                    try:
                        if self.consolidate_directory(directory, sources, day):
                            consolidated += 1
                    except Exception as e:
                        metrics.increment_counter(metrics.consolidations_total, status="error")
                        logger.error(
                            f"Consolidation of {directory} for {day.isoformat()} failed: {e}",
                            extra={"directory": str(directory), "day": day.isoformat()},
                            exc_info=True,
                        )

        logger.info(
            f"Consolidated {consolidated} of {len(groups)} directories for {day.isoformat()}",
            extra={"day": day.isoformat(), "consolidated": consolidated, "directories": len(groups)}
        )
        return consolidated

    def consolidate_missed_days(
        self,
        root: str | Path,
        today: date | None = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> dict[date, int]:
        """
        Catch up on completed days that still have interval files.

        Args:
            root: Root data directory
            today: Current UTC day (defaults to the system clock)
            lookback_days: How many completed days to look back

        Returns:
            Day -> number of directories consolidated, for days with files
        """
        today = today or utc_today()
        earliest = today - timedelta(days=lookback_days)

        # Days still holding interval files inside the lookback window
        pending_days = set()
        for _directory, files in walk_data_directories(root):
            for path in files:
                if not self.is_interval_file(path):
                    continue
                file_day = interval_file_date(path)
                if file_day is not None and earliest <= file_day < today:
                    pending_days.add(file_day)

        results = {}
        for day in sorted(pending_days):
            results[day] = self.consolidate_daily(root, day, today=today)
        return results

    def collect_day_files(self, root: str | Path, day: date) -> dict[Path, list[Path]]:
        """
        Interval files of one day, grouped by directory.

        Archive directories and consolidated files are excluded; files are
        sorted by name within each group.
        """
        groups: dict[Path, list[Path]] = {}
        for directory, files in walk_data_directories(root):
            members = [path for path in files if self.is_interval_file(path) and interval_file_date(path) == day]
            if members:
                groups[directory] = members
        return groups

    def is_interval_file(self, path: Path) -> bool:
        return (
            path.name.startswith(f"{self.filename_prefix}_")
            and is_data_file(path)
            and not is_consolidated_file(path)
        )

    def consolidate_directory(self, directory: Path, sources: list[Path], day: date) -> bool:
        """
        Merge one directory's interval files for a day.

        Args:
            directory: Telemetry-path directory
            sources: Interval files of that day, in name order
            day: Day being consolidated

        Returns:
            True if a validated consolidated file was produced and the
            sources were archived
        """
        target = directory / consolidated_file_name(self.filename_prefix, day)
        staging = target.with_name(f"{target.stem}_merging{target.suffix}")

        # Rows of an earlier run come first so late files never replace them
        rows: list[dict[str, Any]] = []
        if target.exists():
            rows.extend(self.reader.read_rows(target))

        # Unreadable sources stay where they are
        readable: list[Path] = []
        for source in sources:
            try:
                rows.extend(self.reader.read_rows(source))
                readable.append(source)
            except Exception as e:
                logger.warning(
                    f"Skipping unreadable interval file {source.name}: {e}",
                    extra={"file_path": str(source), "day": day.isoformat()}
                )

        if not readable:
            logger.warning(f"No readable interval files in {directory} for {day.isoformat()}")
            metrics.increment_counter(metrics.consolidations_total, status="error")
            return False

        # Sort, then write under a staging name
        rows = sort_rows(rows)
        telemetry_path = telemetry_path_from_file(readable[0], self.filename_prefix) or rows[0].get("path")
        self.writer.write(rows, staging, path_hint=telemetry_path, validate=False)

        # Validate before anything is archived
        check = self.validator.check(staging)
        if not check.is_valid:
            entry = self.quarantine_writer.quarantine(
                staging, CONSOLIDATION_OPERATION, check.reason or "File failed validation after consolidation"
            )
            metrics.increment_counter(metrics.consolidations_total, status="quarantined")
            logger.error(
                f"Consolidated file for {directory} failed validation, sources left in place",
                extra={
                    "directory": str(directory),
                    "day": day.isoformat(),
                    "quarantine_path": entry.quarantine_path,
                    "reason": check.reason,
                }
            )
            return False

        # Swap in the merged file, then archive its sources
        os.replace(staging, target)
        self.archive_sources(readable)

        metrics.increment_counter(metrics.consolidations_total, status="success")
        logger.info(
            f"Consolidated {len(readable)} files into {target.name}",
            extra={"directory": str(directory), "day": day.isoformat(), "rows": len(rows)}
        )
        return True

    def archive_sources(self, sources: list[Path]) -> None:
        """Move consolidated interval files into processed/."""
        for source in sources:
            processed_dir = archive_directory(source, PROCESSED_DIR)
            processed_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(processed_dir / source.name))
