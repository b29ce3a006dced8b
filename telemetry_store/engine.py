"""
Storage engine context.

Holds the metadata provider and every component built from one
StorageSettings, so callers pass a single object around instead of relying
on module-level state.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

from telemetry_store.batch.consolidation import DailyConsolidator
from telemetry_store.batch.readers.file_reader import FileReader
from telemetry_store.batch.readers.parquet_reader import ParquetFileReader
from telemetry_store.batch.repair import SchemaRepairer
from telemetry_store.batch.writers.parquet_writer import TypedBatchWriter
from telemetry_store.batch.writers.quarantine_writer import QuarantineWriter
from telemetry_store.core.config.settings import StorageSettings
from telemetry_store.core.models import (
    RepairReport,
    RepairResult,
    SchemaAuditReport,
    SchemaValidationResult,
    TelemetryRecord,
    record_to_row,
)
from telemetry_store.core.schema.audit import SchemaAuditor
from telemetry_store.core.schema.inference import SchemaInferrer
from telemetry_store.core.schema.metadata import HttpMetadataProvider, MetadataProvider
from telemetry_store.core.validators.file_validator import FileValidator
from telemetry_store.storage.layout import interval_file_path


class StorageEngine:
    """
    Entry point for writing, auditing, repairing and consolidating files.

    Usage:
        with StorageEngine.from_settings(settings) as engine:
            engine.write_batch(records)
            engine.consolidate_missed_days()
    """

    def __init__(self, settings: StorageSettings, metadata_provider: MetadataProvider | None = None):
        """
        Initialize storage engine.

        Args:
            settings: Storage settings
            metadata_provider: Metadata source (HTTP provider built from settings when None)
        """
        self.settings = settings
        self._owns_provider = metadata_provider is None
        self.metadata_provider = metadata_provider or HttpMetadataProvider(
            base_url=settings.metadata_base_url,
            timeout=settings.metadata_timeout,
        )

        parquet_reader = ParquetFileReader()
        self.inferrer = SchemaInferrer(self.metadata_provider)
        self.validator = FileValidator(settings.min_file_size_bytes, parquet_reader)
        self.quarantine_writer = QuarantineWriter()
        self.writer = TypedBatchWriter(
            inferrer=self.inferrer,
            validator=self.validator,
            quarantine_writer=self.quarantine_writer,
            compression=settings.compression,
        )
        self.auditor = SchemaAuditor(
            inferrer=self.inferrer,
            reader=parquet_reader,
            sample_size=settings.audit_sample_size,
            filename_prefix=settings.filename_prefix,
        )
        self.repairer = SchemaRepairer(
            auditor=self.auditor,
            writer=self.writer,
            reader=parquet_reader,
            filename_prefix=settings.filename_prefix,
        )
        self.consolidator = DailyConsolidator(
            writer=self.writer,
            validator=self.validator,
            quarantine_writer=self.quarantine_writer,
            reader=FileReader(),
            filename_prefix=settings.filename_prefix,
        )

    @classmethod
    def from_settings(cls, settings: StorageSettings | None = None, **overrides) -> "StorageEngine":
        """Build an engine from settings (defaults when None)."""
        settings = settings or StorageSettings()
        return cls(settings, **overrides)

    @property
    def root(self) -> Path:
        return Path(self.settings.output_directory)

    def write_batch(
        self,
        records: Sequence[TelemetryRecord | Mapping[str, Any]],
        moment: datetime | None = None,
    ) -> Path:
        """
        Write one context:path batch to its next interval file.

        Args:
            records: Batch of records sharing one context and path
            moment: Timestamp embedded in the file name (defaults to now)

        Returns:
            Path of the written file
        """
        if not records:
            raise ValueError("Cannot write an empty batch")

        # The first record names the context and path of the batch
        first = record_to_row(records[0])
        filepath = interval_file_path(
            self.root,
            first.get("context") or "vessels.self",
            first["path"],
            self.settings.filename_prefix,
            moment,
            self.settings.self_context,
        )
        return self.writer.write(records, filepath, path_hint=first["path"])

    def write_file(
        self,
        records: Sequence[TelemetryRecord | Mapping[str, Any]],
        filepath: str | Path,
        path_hint: str | None = None,
    ) -> Path:
        """Write a batch to an explicit destination."""
        return self.writer.write(records, filepath, path_hint=path_hint)

    def validate_file(self, path: str | Path) -> bool:
        return self.validator.validate(path)

    def audit_file(self, path: str | Path) -> SchemaValidationResult:
        return self.auditor.audit_file(path)

    def repair_file(self, path: str | Path) -> RepairResult:
        return self.repairer.repair_file(path)

    def audit_directory(self, root: str | Path | None = None) -> SchemaAuditReport:
        return self.repairer.audit_directory(root or self.root)

    def repair_directory(self, root: str | Path | None = None, in_place: bool = False) -> RepairReport:
        return self.repairer.repair_directory(root or self.root, in_place=in_place)

    def consolidate_day(self, day: date, root: str | Path | None = None, today: date | None = None) -> int:
        """Consolidate one completed UTC day; returns directories consolidated."""
        return self.consolidator.consolidate_daily(root or self.root, day, today=today)

    def consolidate_missed_days(self, root: str | Path | None = None, today: date | None = None) -> dict[date, int]:
        """Consolidate every completed day within the configured lookback."""
        return self.consolidator.consolidate_missed_days(
            root or self.root,
            today=today,
            lookback_days=self.settings.consolidation_lookback_days,
        )

    def close(self) -> None:
        if self._owns_provider and isinstance(self.metadata_provider, HttpMetadataProvider):
            self.metadata_provider.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
