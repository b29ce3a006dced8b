"""
Schema audit of existing columnar files.

Re-applies the inference heuristic to a bounded sample of a file and
reports every column whose declared type disagrees. Violations are
findings, never exceptions.
"""

from pathlib import Path
from typing import Any

from telemetry_store.batch.readers.parquet_reader import ParquetFileReader
from telemetry_store.core.models import ColumnType, SchemaValidationResult
from telemetry_store.core.models.data_record import VALUE_JSON
from telemetry_store.core.schema.inference import (
    TIMESTAMP_COLUMNS,
    VALUE,
    SchemaInferrer,
    is_exploded_columns,
    is_structural_column,
)
from telemetry_store.core.schema.values import resolve_by_content
from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger
from telemetry_store.storage.layout import telemetry_path_from_file

logger = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 100

# Declared types that must never appear in a store file
INTEGER_TYPES = frozenset({"BIGINT", "INT32", "INT16", "INT8", "UINT64", "UINT32", "UINT16", "UINT8"})


class SchemaAuditor:
    """
    Compares a file's declared column types with what its data shows.
    """

    def __init__(
        self,
        inferrer: SchemaInferrer | None = None,
        reader: ParquetFileReader | None = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        filename_prefix: str = "signalk_data",
    ):
        """
        Initialize schema auditor.

        Args:
            inferrer: Schema inferrer whose metadata provider is consulted
            reader: Columnar file reader
            sample_size: Number of leading rows inspected per file
            filename_prefix: Prefix used to recover the telemetry path of a file
        """
        self.inferrer = inferrer or SchemaInferrer()
        self.reader = reader or ParquetFileReader()
        self.sample_size = sample_size
        self.filename_prefix = filename_prefix

    def audit_file(self, path: str | Path) -> SchemaValidationResult:
        """
        Audit the declared schema of one file.

        Args:
            path: Columnar file to audit

        Returns:
            SchemaValidationResult; has_schema is False when the file
            could not be read at all
        """
        path = Path(path)
        try:
            declared = self.reader.read_declared_types(path)
            sample = self.reader.read_sample(path, self.sample_size)
        except Exception as e:
            logger.warning(f"Cannot read schema of {path}: {e}", extra={"file_path": str(path)})
            return SchemaValidationResult(
                is_valid=False,
                violations=[f"ERROR - {e}"],
                is_exploded_file=False,
                has_schema=False,
            )

        # Telemetry path from the directory layout, else from the data
        is_exploded = is_exploded_columns(declared)
        telemetry_path = telemetry_path_from_file(path, self.filename_prefix)
        if not telemetry_path and sample:
            telemetry_path = sample[0].get("path") or ""

        violations = []
        for name, declared_type in declared.items():
            violation = self.check_column(name, declared_type, sample, is_exploded, telemetry_path)
            if violation:
                violations.append(violation)

        if violations:
            metrics.increment_counter(metrics.schema_violations_total, len(violations))
            logger.info(
                f"{path.name}: {len(violations)} schema violation(s)",
                extra={"file_path": str(path), "violations": violations}
            )

        return SchemaValidationResult(
            is_valid=not violations,
            violations=violations,
            is_exploded_file=is_exploded,
            has_schema=True,
        )

    def check_column(
        self,
        name: str,
        declared_type: str,
        sample: list[dict[str, Any]],
        is_exploded: bool,
        telemetry_path: str,
    ) -> str | None:
        """
        Check one declared column against the sampled data.

        Returns:
            Violation string, or None when the column is fine
        """
        # Timestamps are always text
        if name in TIMESTAMP_COLUMNS:
            if declared_type != ColumnType.UTF8.value:
                return f"{name} should be UTF8, got {declared_type}"
            return None

        # Exempt columns
        if name == VALUE_JSON or is_structural_column(name):
            return None
        if is_exploded and name == VALUE:
            return None

        if declared_type in INTEGER_TYPES:
            return f"{name} is {declared_type}, should be DOUBLE"

        # Same content-then-metadata verdict as inference
        verdict = resolve_by_content(row.get(name) for row in sample)

        # Empty sample: only metadata can decide
        if verdict is None:
            units = self.inferrer.lookup_numeric_units(name, telemetry_path)
            if units and declared_type != ColumnType.DOUBLE.value:
                return f"{name} has numeric units ({units}) but is {declared_type}, should be DOUBLE"
            return None

        if verdict.value == declared_type:
            return None
        if declared_type == ColumnType.UTF8.value and verdict == ColumnType.DOUBLE:
            return f"{name} contains numbers but is UTF8, should be DOUBLE"
        if declared_type == ColumnType.UTF8.value and verdict == ColumnType.BOOLEAN:
            return f"{name} contains booleans but is UTF8, should be BOOLEAN"
        return f"{name} is {declared_type}, should be {verdict.value}"
