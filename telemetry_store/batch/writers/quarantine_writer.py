"""
Quarantine writer for data files that failed validation.

Moves the offending file into a sibling quarantine/ directory and appends one
line per event to quarantine/quarantine.log. Quarantined files are never
deleted.
"""

import shutil
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from telemetry_store.core.models import QuarantineEntry
from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger
from telemetry_store.storage.layout import (
    QUARANTINE_DIR,
    QUARANTINE_LOG,
    archive_directory,
    compact_timestamp,
    walk_data_directories,
)

logger = get_logger(__name__)


class QuarantineWriter:
    """
    Moves invalid data files aside and keeps the quarantine log.
    """

    def quarantine(self, path: str | Path, operation: str, reason: str) -> QuarantineEntry:
        """
        Move a file into its sibling quarantine directory.

        Args:
            path: File that failed validation
            operation: Operation that produced the file (write, consolidation)
            reason: Human-readable reason

        Returns:
            QuarantineEntry describing the event
        """
        path = Path(path)
        quarantine_dir = archive_directory(path, QUARANTINE_DIR)
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        file_size = path.stat().st_size if path.exists() else 0
        entry = QuarantineEntry(
            quarantined_at=datetime.now(timezone.utc),
            operation=operation,
            file_size=file_size,
            reason=reason,
            original_path=str(path),
        )

        destination = quarantine_dir / path.name
        if destination.exists():
            destination = quarantine_dir / f"{path.stem}_{compact_timestamp(entry.quarantined_at)}{path.suffix}"

        if path.exists():
            shutil.move(str(path), str(destination))
        entry = entry.model_copy(update={"quarantine_path": str(destination)})

        with open(quarantine_dir / QUARANTINE_LOG, "a", encoding="utf-8") as log:
            log.write(entry.to_log_line())

        metrics.increment_counter(metrics.quarantine_events_total, operation=operation)
        logger.warning(
            f"Quarantined {path.name}: {reason}",
            extra={
                "operation": operation,
                "file_path": str(path),
                "quarantine_path": str(destination),
                "file_size": file_size,
            }
        )

        return entry


def read_log(quarantine_dir: str | Path) -> list[QuarantineEntry]:
    """
    Parse the quarantine log of one quarantine directory.

    Args:
        quarantine_dir: A quarantine/ directory

    Returns:
        Entries in log order; malformed lines are skipped
    """
    log_path = Path(quarantine_dir) / QUARANTINE_LOG
    if not log_path.exists():
        return []

    entries = []
    with open(log_path, encoding="utf-8") as f:
        for line in f:
            entry = QuarantineEntry.from_log_line(line)
            if entry is None:
                logger.debug(f"Skipping malformed quarantine log line in {log_path}")
                continue
            entries.append(entry)
    return entries


def quarantine_statistics(root: str | Path) -> dict[str, Any]:
    """
    Get quarantine statistics for a data directory tree.

    Args:
        root: Root data directory

    Returns:
        Dictionary with statistics:
        - total_quarantined: Quarantine events logged
        - by_operation: Count by operation
        - total_bytes: Sum of logged file sizes
        - directories: Quarantine directories holding a log
    """
    stats: dict[str, Any] = {
        "total_quarantined": 0,
        "by_operation": {},
        "total_bytes": 0,
        "directories": [],
    }

    by_operation: Counter = Counter()
    for directory, _files in walk_data_directories(root):
        quarantine_dir = directory / QUARANTINE_DIR
        entries = read_log(quarantine_dir)
        if not entries:
            continue
        stats["directories"].append(str(quarantine_dir))
        for entry in entries:
            stats["total_quarantined"] += 1
            stats["total_bytes"] += entry.file_size
            by_operation[entry.operation] += 1

    stats["by_operation"] = dict(by_operation)
    return stats
