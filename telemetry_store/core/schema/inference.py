"""
Schema inference for telemetry batches.

Decides one columnar type per attribute from heterogeneous, partially empty
and dynamically typed samples. Evidence from the batch itself always wins;
path metadata is consulted only for attributes the batch cannot type.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from telemetry_store.core.errors import SchemaInferenceError
from telemetry_store.core.models import (
    ColumnSchema,
    ColumnType,
    SchemaDetectionResult,
    TelemetryRecord,
    record_to_row,
)
from telemetry_store.core.models.data_record import EXPLODED_PREFIX, VALUE_JSON
from telemetry_store.core.schema.metadata import MetadataProvider, NullMetadataProvider
from telemetry_store.core.schema.values import resolve_by_content
from telemetry_store.observability.logger import get_logger

logger = get_logger(__name__)

VALUE = "value"
TIMESTAMP_COLUMNS = ("received_timestamp", "signalk_timestamp")
STRUCTURAL_COLUMNS = frozenset({*TIMESTAMP_COLUMNS, "context", "path", "meta"})


def is_structural_column(name: str) -> bool:
    """Timestamps, context, path, meta and source* columns are always UTF8."""
    return name in STRUCTURAL_COLUMNS or name.startswith("source")


def is_exploded_component(name: str) -> bool:
    """value_<component> columns, excluding value_json."""
    return name.startswith(EXPLODED_PREFIX) and name != VALUE_JSON


def is_exploded_columns(columns: Iterable[str]) -> bool:
    """A column set is exploded if it holds any value_<component> column."""
    return any(is_exploded_component(name) for name in columns)


class SchemaInferrer:
    """
    Infers a ColumnSchema for a batch of telemetry records.

    Per attribute:
    1. Structural attributes are forced to UTF8.
    2. value_json is passed through as UTF8 without analysis; value is
       dropped entirely from exploded batches.
    3. The non-null values decide (BOOLEAN, DOUBLE or UTF8). Raw integers
       count as numbers, so an all-integer attribute is DOUBLE and no
       integer column is ever produced; integers mixed with text or
       booleans make the attribute UTF8 so every value is kept.
    4. Attributes without any non-null value fall back to path metadata
       (DOUBLE for numeric units), except exploded components.
    5. Anything still unresolved is UTF8.
    """

    def __init__(self, metadata_provider: MetadataProvider | None = None):
        """
        Initialize schema inferrer.

        Args:
            metadata_provider: Source of declared units for empty attributes
        """
        self.metadata_provider = metadata_provider or NullMetadataProvider()

    def detect_schema(
        self,
        records: Sequence[TelemetryRecord | Mapping[str, Any]],
        path_hint: str | None = None,
    ) -> SchemaDetectionResult:
        """
        Infer the column schema of a batch.

        Args:
            records: Batch of records or row mappings (at least one)
            path_hint: Telemetry path used for metadata lookup
                       (defaults to the first record's path)

        Returns:
            SchemaDetectionResult

        Raises:
            SchemaInferenceError: If the batch is empty
        """
        rows = [record_to_row(record) for record in records]
        if not rows:
            raise SchemaInferenceError("Cannot create a column schema for an empty batch")

        columns = sorted(set().union(*(row.keys() for row in rows)))
        is_exploded = is_exploded_columns(columns)
        if path_hint is None:
            path_hint = rows[0].get("path")

        logger.debug(
            f"Schema detection for {len(rows)} records",
            extra={"path": path_hint, "columns": columns, "is_exploded_file": is_exploded}
        )

        fields: dict[str, ColumnType] = {}
        for name in columns:
            if name == VALUE_JSON:
                fields[name] = ColumnType.UTF8
                continue

            if is_exploded and name == VALUE:
                # Always empty once the payload was flattened
                continue

            if is_structural_column(name):
                fields[name] = ColumnType.UTF8
                continue

            values = [row.get(name) for row in rows]
            fields[name] = self.resolve_column(name, values, path_hint)

        schema = ColumnSchema(fields=fields)
        logger.debug(
            f"Schema detection complete: {len(schema)} fields",
            extra={"path": path_hint, "schema": {k: v.value for k, v in fields.items()}}
        )

        return SchemaDetectionResult(
            column_schema=schema,
            is_exploded_file=is_exploded,
            field_count=len(schema),
        )

    def resolve_column(self, name: str, values: Sequence[Any], path: str | None) -> ColumnType:
        """
        Resolve the type of one value-bearing attribute.

        Args:
            name: Attribute name
            values: Every raw value of the attribute in the batch
            path: Telemetry path for metadata lookup

        Returns:
            Column type
        """
        present = [value for value in values if value is not None]

        # Observed values first, integers included as numbers
        resolved = resolve_by_content(present)
        if resolved is not None:
            return resolved

        units = self.lookup_numeric_units(name, path)
        if units:
            logger.debug(f"{name}: DOUBLE from metadata units {units}")
            return ColumnType.DOUBLE

        return ColumnType.UTF8

    def lookup_numeric_units(self, name: str, path: str | None) -> str | None:
        """
        Numeric unit symbol declared for path, if metadata applies to name.

        Exploded components never consult metadata: the path's unit
        describes the whole object, not its members.
        """
        if is_exploded_component(name) or not path:
            return None
        return self.metadata_provider.numeric_units(path)
