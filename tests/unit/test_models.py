"""
Unit tests for Pydantic data models.
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from telemetry_store.core.models import (
    ColumnSchema,
    ColumnType,
    QuarantineEntry,
    SchemaValidationResult,
    TelemetryRecord,
    record_to_row,
)
from telemetry_store.core.models.data_record import iso_timestamp

RECEIVED_AT = datetime(2025, 7, 14, 18, 47, 12, 345678, tzinfo=timezone.utc)


@pytest.mark.unit
class TestTelemetryRecord:
    """Tests for TelemetryRecord"""

    def test_iso_timestamp_has_milliseconds(self):
        assert iso_timestamp(RECEIVED_AT) == "2025-07-14T18:47:12.345Z"

    def test_scalar_delta(self):
        record = TelemetryRecord.from_delta(
            context="vessels.self",
            path="navigation.speedOverGround",
            value=3.2,
            timestamp="2025-07-14T18:47:12.000Z",
            received_at=RECEIVED_AT,
        )

        assert record.value == 3.2
        assert record.value_json is None
        assert record.received_timestamp == "2025-07-14T18:47:12.345Z"
        assert record.signalk_timestamp == "2025-07-14T18:47:12.000Z"

    def test_source_timestamp_defaults_to_receipt(self):
        record = TelemetryRecord.from_delta("vessels.self", "navigation.state", "moored", received_at=RECEIVED_AT)
        assert record.signalk_timestamp == record.received_timestamp

    def test_object_delta_is_exploded(self):
        position = {"latitude": 37.8, "longitude": -122.4, "extra": {"nested": 1}}
        record = TelemetryRecord.from_delta("vessels.self", "navigation.position", position, received_at=RECEIVED_AT)
        row = record.as_row()

        assert row["value"] is None
        assert json.loads(row["value_json"]) == position
        assert row["value_latitude"] == 37.8
        assert row["value_longitude"] == -122.4
        assert "value_extra" not in row

    def test_list_delta_only_sets_value_json(self):
        record = TelemetryRecord.from_delta("vessels.self", "notifications.list", [1, 2], received_at=RECEIVED_AT)
        row = record.as_row()

        assert row["value"] is None
        assert json.loads(row["value_json"]) == [1, 2]
        assert not any(name.startswith("value_") and name != "value_json" for name in row)

    def test_source_is_split(self):
        source = {"label": "n2k", "type": "NMEA2000", "pgn": 129026, "src": 3}
        record = TelemetryRecord.from_delta(
            "vessels.self", "navigation.courseOverGroundTrue", 1.2, source=source, received_at=RECEIVED_AT
        )

        assert json.loads(record.source) == source
        assert record.source_type == "NMEA2000"
        assert record.source_pgn == 129026
        assert record.source_src == "3"

    def test_meta_is_json_text(self):
        record = TelemetryRecord.from_delta(
            "vessels.self", "navigation.speedOverGround", 1.0, meta={"units": "m/s"}, received_at=RECEIVED_AT
        )
        assert json.loads(record.meta) == {"units": "m/s"}

    def test_record_is_immutable(self):
        record = TelemetryRecord.from_delta("vessels.self", "navigation.state", "moored", received_at=RECEIVED_AT)
        with pytest.raises(ValidationError):
            record.value = "anchored"

    def test_only_component_attributes_allowed(self):
        with pytest.raises(ValidationError):
            TelemetryRecord(
                received_timestamp="2025-07-14T18:47:12.345Z",
                signalk_timestamp="2025-07-14T18:47:12.345Z",
                context="vessels.self",
                path="navigation.state",
                unexpected="x",
            )

    def test_record_to_row_accepts_mappings(self):
        row = {"path": "navigation.state", "value": "moored"}
        assert record_to_row(row) == row
        assert record_to_row(row) is not row


@pytest.mark.unit
class TestColumnSchema:
    """Tests for ColumnSchema"""

    def test_mapping_behaviour(self):
        schema = ColumnSchema(fields={"path": ColumnType.UTF8, "value": ColumnType.DOUBLE})

        assert schema.names == ["path", "value"]
        assert len(schema) == 2
        assert "value" in schema
        assert schema["value"] == ColumnType.DOUBLE

    def test_integer_columns_rejected(self):
        with pytest.raises(ValidationError):
            ColumnSchema(fields={"value": ColumnType.BIGINT})


@pytest.mark.unit
class TestQuarantineEntry:
    """Tests for QuarantineEntry"""

    def test_log_line_format(self):
        entry = QuarantineEntry(
            quarantined_at=RECEIVED_AT,
            operation="consolidation",
            file_size=42,
            reason="File too small",
            original_path="/data/x/signalk_data_2025-07-14_consolidated.parquet",
        )

        assert entry.to_log_line() == (
            "2025-07-14T18:47:12.345Z | consolidation | 42 bytes | File too small | "
            "/data/x/signalk_data_2025-07-14_consolidated.parquet\n"
        )

    def test_multiline_reason_stays_on_one_line(self):
        entry = QuarantineEntry(
            quarantined_at=RECEIVED_AT,
            operation="write",
            file_size=7,
            reason="File cannot be read: bad footer\nexpected PAR1\r\nat offset 0",
            original_path="/data/x.parquet",
        )

        line = entry.to_log_line()

        assert line.count("\n") == 1
        assert "\r" not in line
        parsed = QuarantineEntry.from_log_line(line)
        assert parsed.reason == "File cannot be read: bad footer expected PAR1 at offset 0"
        assert parsed.original_path == "/data/x.parquet"

    def test_parse_log_line(self):
        entry = QuarantineEntry.from_log_line(
            "2025-07-14T18:47:12.345Z | write | 10 bytes | reason | with pipe | /data/x.parquet\n"
        )

        assert entry.operation == "write"
        assert entry.file_size == 10
        assert entry.reason == "reason | with pipe"
        assert entry.original_path == "/data/x.parquet"
        assert entry.quarantined_at.tzinfo is not None

    @pytest.mark.parametrize("line", ["", "garbage", "2025-07-14 | write | ten bytes | r | /x", "bad | write | 1 bytes | r | /x"])
    def test_malformed_lines(self, line):
        assert QuarantineEntry.from_log_line(line) is None

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            QuarantineEntry(operation="write", file_size=-1, reason="r", original_path="/x")


@pytest.mark.unit
class TestSchemaValidationResult:
    """Tests for SchemaValidationResult"""

    def test_valid_result_without_violations(self):
        result = SchemaValidationResult(is_valid=True)
        assert result.violations == []
        assert result.has_schema is True

    def test_valid_with_violations_rejected(self):
        with pytest.raises(ValidationError):
            SchemaValidationResult(is_valid=True, violations=["value is BIGINT, should be DOUBLE"])
