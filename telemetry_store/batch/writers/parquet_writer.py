"""
Typed batch writer for columnar files.

Encodes a batch under one ColumnSchema with pyarrow. An encode failure never
discards the batch: it is persisted as line-delimited JSON into a sibling
failed/ directory before the error is raised.
"""

import json
import math
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from telemetry_store.batch.writers.quarantine_writer import QuarantineWriter
from telemetry_store.core.errors import BatchWriteError, FileValidationError
from telemetry_store.core.models import ColumnSchema, ColumnType, TelemetryRecord, record_to_row
from telemetry_store.core.schema.inference import SchemaInferrer
from telemetry_store.core.schema.values import is_safe_integer, parse_boolean, parse_number
from telemetry_store.core.validators.file_validator import FileValidator
from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger
from telemetry_store.storage.layout import FAILED_DIR, archive_directory

logger = get_logger(__name__)

ARROW_TYPES = {
    ColumnType.DOUBLE: pa.float64(),
    ColumnType.BOOLEAN: pa.bool_(),
    ColumnType.UTF8: pa.string(),
}

DEFAULT_COMPRESSION = "snappy"


def coerce_value(value: Any, column_type: ColumnType) -> Any:
    """
    Coerce one raw value to a column type.

    Never raises: a value that cannot be represented as a number in a
    DOUBLE column is written as null.

    Args:
        value: Raw attribute value
        column_type: Target column type

    Returns:
        Python value matching the arrow type of the column
    """
    if value is None:
        return None

    # Integers beyond 2**53 would lose precision as doubles
    if isinstance(value, int) and not isinstance(value, bool) and not is_safe_integer(value):
        value = str(value)

    if column_type == ColumnType.DOUBLE:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            number = float(value)
            return number if math.isfinite(number) else None
        if isinstance(value, str):
            return parse_number(value)
        return None

    if column_type == ColumnType.BOOLEAN:
        # Special handling for strings (avoid "false" -> True)
        if isinstance(value, str):
            parsed = parse_boolean(value.lower())
            if parsed is not None:
                return parsed
            number = parse_number(value)
            if number is not None:
                return number != 0
            return bool(value.strip())
        return bool(value)

    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def fallback_file_path(filepath: str | Path) -> Path:
    """failed/<stem>_FAILED.jsonl beside the intended columnar file."""
    filepath = Path(filepath)
    return archive_directory(filepath, FAILED_DIR) / f"{filepath.stem}_FAILED.jsonl"


class TypedBatchWriter:
    """
    Writes a batch of records as one typed columnar file.

    The schema is inferred from the batch unless one is supplied. After a
    successful encode the file is validated; a file that fails validation
    is quarantined and the write fails.
    """

    def __init__(
        self,
        inferrer: SchemaInferrer | None = None,
        validator: FileValidator | None = None,
        quarantine_writer: QuarantineWriter | None = None,
        compression: str = DEFAULT_COMPRESSION,
    ):
        """
        Initialize typed batch writer.

        Args:
            inferrer: Schema inferrer for batches written without a schema
            validator: Post-write file validator
            quarantine_writer: Destination for files failing validation
            compression: Parquet compression codec
        """
        self.inferrer = inferrer or SchemaInferrer()
        self.validator = validator or FileValidator()
        self.quarantine_writer = quarantine_writer or QuarantineWriter()
        self.compression = compression

    def write(
        self,
        records: Sequence[TelemetryRecord | Mapping[str, Any]],
        filepath: str | Path,
        column_schema: ColumnSchema | None = None,
        path_hint: str | None = None,
        validate: bool = True,
        operation: str = "write",
    ) -> Path:
        """
        Write a batch to a columnar file.

        Args:
            records: Batch of records or row mappings
            filepath: Destination file (parent directories are created)
            column_schema: Schema to write with (inferred when None)
            path_hint: Telemetry path for metadata lookup during inference
            validate: Validate the written file and quarantine it on failure
            operation: Operation name recorded in the quarantine log

        Returns:
            Path of the written file

        Raises:
            SchemaInferenceError: If the batch is empty and no schema was given
            BatchWriteError: If encoding failed (batch persisted as JSON)
            FileValidationError: If the written file failed validation
        """
        filepath = Path(filepath)
        rows = [record_to_row(record) for record in records]

        # Infer the schema unless the caller fixed one
        if column_schema is None:
            column_schema = self.inferrer.detect_schema(rows, path_hint).column_schema

        filepath.parent.mkdir(parents=True, exist_ok=True)

        try:
            with metrics.track_duration(metrics.write_duration_seconds):
                table = self.build_table(rows, column_schema)
                pq.write_table(table, filepath, compression=self.compression)
        except Exception as e:
            # A partially written footer must not be mistaken for data
            filepath.unlink(missing_ok=True)
            fallback_path = self.write_fallback(rows, filepath)
            metrics.record_batch_written(len(rows), status="encode_failure")
            logger.error(
                f"Failed to write {filepath.name}: {e}",
                extra={"file_path": str(filepath), "fallback_path": str(fallback_path), "rows": len(rows)},
                exc_info=True,
            )
            raise BatchWriteError(filepath, fallback_path, f"Failed to write {filepath.name}: {e}") from e

        # Invalid files are quarantined, the batch survives as JSON
        if validate:
            check = self.validator.check(filepath)
            if not check.is_valid:
                entry = self.quarantine_writer.quarantine(filepath, operation, check.reason or "invalid file")
                self.write_fallback(rows, filepath)
                metrics.record_batch_written(len(rows), status="validation_failure")
                raise FileValidationError(filepath, entry.quarantine_path, check.reason or "invalid file")

        metrics.record_batch_written(len(rows), status="success")
        logger.debug(
            f"Wrote {len(rows)} rows to {filepath.name}",
            extra={"file_path": str(filepath), "rows": len(rows), "columns": column_schema.names}
        )
        return filepath

    def prepare_rows(self, rows: Sequence[Mapping[str, Any]], column_schema: ColumnSchema) -> list[dict[str, Any]]:
        """
        Coerce every row to the schema.

        Attributes absent from the schema are dropped; columns absent from a
        row are null.
        """
        return [
            {name: coerce_value(row.get(name), column_type) for name, column_type in column_schema.fields.items()}
            for row in rows
        ]

    def build_table(self, rows: Sequence[Mapping[str, Any]], column_schema: ColumnSchema) -> pa.Table:
        """Build the arrow table for a batch."""
        arrow_schema = pa.schema([
            pa.field(name, ARROW_TYPES[column_type]) for name, column_type in column_schema.fields.items()
        ])
        return pa.Table.from_pylist(self.prepare_rows(rows, column_schema), schema=arrow_schema)

    def write_fallback(self, rows: Sequence[Mapping[str, Any]], filepath: str | Path) -> Path | None:
        """
        Persist the unmodified batch as line-delimited JSON.

        Args:
            rows: Original rows of the batch
            filepath: Columnar file the batch was meant for

        Returns:
            Path of the fallback file, or None if it could not be written
        """
        fallback_path = fallback_file_path(filepath)
        try:
            fallback_path.parent.mkdir(parents=True, exist_ok=True)
            with open(fallback_path, "a", encoding="utf-8") as f:
                for row in rows:
                    f.write(json.dumps(row, default=str) + "\n")
        except OSError as e:
            logger.critical(
                f"Could not persist fallback for {Path(filepath).name}: {e}",
                extra={"file_path": str(filepath), "fallback_path": str(fallback_path)}
            )
            return None

        metrics.increment_counter(metrics.fallback_writes_total)
        logger.warning(
            f"Persisted {len(rows)} rows as JSON fallback: {fallback_path}",
            extra={"file_path": str(filepath), "fallback_path": str(fallback_path), "rows": len(rows)}
        )
        return fallback_path
