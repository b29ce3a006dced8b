"""
Schema repair of existing columnar files.

Rewrites files whose declared schema the auditor rejects. The original is
always backed up byte-for-byte into a sibling repaired/ directory before
anything else happens.
"""

import os
import shutil
from pathlib import Path

from telemetry_store.batch.readers.parquet_reader import ParquetFileReader
from telemetry_store.batch.writers.parquet_writer import TypedBatchWriter
from telemetry_store.core.models import RepairReport, RepairResult, SchemaAuditReport
from telemetry_store.core.schema.audit import SchemaAuditor
from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger, log_operation
from telemetry_store.storage.layout import (
    PARQUET_EXTENSION,
    REPAIRED_DIR,
    archive_directory,
    context_label,
    telemetry_path_from_file,
    walk_data_directories,
)

logger = get_logger(__name__)

AUDIT_ERROR_PREFIX = "ERROR - "
REPAIR_ERROR_PREFIX = "REPAIR ERROR - "


def backup_file_path(path: str | Path) -> Path:
    path = Path(path)
    return archive_directory(path, REPAIRED_DIR) / f"{path.stem}_BACKUP{path.suffix}"


def repaired_file_path(path: str | Path) -> Path:
    path = Path(path)
    return archive_directory(path, REPAIRED_DIR) / f"{path.stem}_REPAIRED{path.suffix}"


class SchemaRepairer:
    """
    Audit and repair the declared schemas of existing files.

    A file the auditor accepts is never touched, so repairing twice is
    the same as repairing once.
    """

    def __init__(
        self,
        auditor: SchemaAuditor | None = None,
        writer: TypedBatchWriter | None = None,
        reader: ParquetFileReader | None = None,
        filename_prefix: str = "signalk_data",
    ):
        """
        Initialize schema repairer.

        Args:
            auditor: Schema auditor deciding whether a file needs repair
            writer: Typed batch writer used to re-encode repaired files
            reader: Columnar file reader
            filename_prefix: Prefix used to recover the telemetry path of a file
        """
        self.auditor = auditor or SchemaAuditor(filename_prefix=filename_prefix)
        self.writer = writer or TypedBatchWriter(inferrer=self.auditor.inferrer)
        self.reader = reader or ParquetFileReader()
        self.filename_prefix = filename_prefix

    def repair_file(self, path: str | Path) -> RepairResult:
        """
        Repair one file if its declared schema has violations.

        Args:
            path: Columnar file to repair

        Returns:
            RepairResult; repaired_file_path is set only when a corrected
            copy was written
        """
        path = Path(path)
        audit = self.auditor.audit_file(path)

        if audit.is_valid:
            metrics.increment_counter(metrics.files_repaired_total, status="skipped")
            return RepairResult(needs_repair=False)

        # Unreadable files cannot be repaired
        if not audit.has_schema:
            metrics.increment_counter(metrics.files_repaired_total, status="error")
            return RepairResult(needs_repair=False, violations=audit.violations)

        # Byte-identical backup before reading anything
        backup_path = None
        try:
            backup_path = backup_file_path(path)
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, backup_path)

            rows = self.reader.read_rows(path)
            if not rows:
                metrics.increment_counter(metrics.files_repaired_total, status="skipped")
                return RepairResult(
                    needs_repair=False,
                    violations=["File contains no data"],
                    backup_file_path=str(backup_path),
                )

            # Re-infer the schema from the stored rows
            telemetry_path = telemetry_path_from_file(path, self.filename_prefix) or rows[0].get("path")
            detection = self.auditor.inferrer.detect_schema(rows, path_hint=telemetry_path)

            target = repaired_file_path(path)
            self.writer.write(rows, target, column_schema=detection.column_schema, operation="repair")
        except Exception as e:
            metrics.increment_counter(metrics.files_repaired_total, status="error")
            logger.error(f"Repair of {path.name} failed: {e}", extra={"file_path": str(path)}, exc_info=True)
            return RepairResult(
                needs_repair=True,
                violations=[f"{REPAIR_ERROR_PREFIX}{e}"],
                backup_file_path=str(backup_path) if backup_path and backup_path.exists() else None,
            )

        metrics.increment_counter(metrics.files_repaired_total, status="repaired")
        logger.info(
            f"Repaired {path.name}",
            extra={
                "file_path": str(path),
                "violations": audit.violations,
                "repaired_file_path": str(target),
                "backup_file_path": str(backup_path),
            }
        )
        return RepairResult(
            needs_repair=True,
            violations=audit.violations,
            repaired_file_path=str(target),
            backup_file_path=str(backup_path),
        )

    def audit_directory(self, root: str | Path) -> SchemaAuditReport:
        """
        Audit every columnar file below root.

        Args:
            root: Root data directory

        Returns:
            SchemaAuditReport with per-file violation strings
        """
        root = Path(root)
        report = SchemaAuditReport()
        contexts: set[str] = set()

        with log_operation("Schema audit", logger=logger, root=str(root)):
            for path in self.iter_columnar_files(root):
                report.total_files += 1
                label = context_label(path, root)
                if label:
                    contexts.add(label)

                result = self.auditor.audit_file(path)
                relative = path.relative_to(root)
                # Files that could not be read count as having no schema
                if not result.has_schema:
                    report.no_schema_found += 1
                    report.violation_details.extend(f"{relative}: {v}" for v in result.violations)
                    continue

                report.schemas_found += 1
                if result.is_valid:
                    report.correct_schemas += 1
                else:
                    report.violation_files += 1
                    report.violation_details.extend(f"{relative}: {v}" for v in result.violations)

        report.contexts = sorted(contexts)
        return report

    def repair_directory(self, root: str | Path, in_place: bool = False) -> RepairReport:
        """
        Repair every columnar file below root.

        Args:
            root: Root data directory
            in_place: Move each repaired file over its original (the backup
                      stays in repaired/)

        Returns:
            RepairReport
        """
        root = Path(root)
        report = RepairReport()

        with log_operation("Schema repair", logger=logger, root=str(root), in_place=in_place):
            for path in self.iter_columnar_files(root):
                report.total_files += 1
                result = self.repair_file(path)
                relative = path.relative_to(root)

                if result.backup_file_path:
                    report.backups_created += 1

                # Read and repair failures are reported, not counted as repairs
                errors = [v for v in result.violations if v.startswith((AUDIT_ERROR_PREFIX, REPAIR_ERROR_PREFIX))]
                if errors:
                    report.errors.extend(f"{relative}: {e}" for e in errors)
                    continue

                if not result.repaired_file_path:
                    continue
                report.files_repaired += 1

                # Repaired copy replaces the original, backup stays in repaired/
                if in_place:
                    os.replace(result.repaired_file_path, path)
                    report.files_swapped += 1
                    logger.info(f"Replaced {relative} with its repaired copy")

        return report

    def iter_columnar_files(self, root: Path):
        """Columnar files below root, archives excluded."""
        for _directory, files in walk_data_directories(root):
            for path in files:
                if path.suffix.lower() == PARQUET_EXTENSION:
                    yield path
