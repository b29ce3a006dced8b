"""
Core data models for the telemetry storage engine.

All models use Pydantic for runtime validation and type safety.
"""

from .column_schema import ColumnSchema, ColumnType, SchemaDetectionResult
from .data_record import TelemetryRecord, record_to_row
from .quarantine_record import QuarantineEntry
from .repair_result import RepairReport, RepairResult, SchemaAuditReport
from .validation_result import FileCheckResult, SchemaValidationResult

__all__ = [
    "TelemetryRecord",
    "record_to_row",
    "ColumnType",
    "ColumnSchema",
    "SchemaDetectionResult",
    "QuarantineEntry",
    "FileCheckResult",
    "SchemaValidationResult",
    "RepairResult",
    "RepairReport",
    "SchemaAuditReport",
]
