"""
TelemetryRecord model representing one timestamped telemetry sample.
"""

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, model_validator

EXPLODED_PREFIX = "value_"
VALUE_JSON = "value_json"


def iso_timestamp(moment: datetime | None = None) -> str:
    """Render a UTC instant as ISO 8601 with millisecond precision and a Z suffix."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class TelemetryRecord(BaseModel):
    """
    One telemetry sample, immutable once created.

    Object-valued samples are flattened: the whole object is kept as JSON
    text in value_json and every scalar member becomes its own
    value_<component> attribute, while value stays null.

    Attributes:
        received_timestamp: Ingest-side wall clock (ISO 8601)
        signalk_timestamp: Source-asserted time (ISO 8601)
        context: Logical entity identifier, e.g. vessels.self
        path: Dot-separated telemetry path
        value: Scalar payload (number, string, boolean or null)
        value_json: Full nested object as JSON text
        source: Source object as JSON text
        source_label: Source label ($source)
        source_type: Source bus type (NMEA2000, NMEA0183, ...)
        source_pgn: NMEA 2000 PGN
        source_src: Source address on the bus
        meta: Path metadata as JSON text
    """

    received_timestamp: str
    signalk_timestamp: str
    context: str
    path: str
    value: Any = None
    value_json: str | None = None
    source: str | None = None
    source_label: str | None = None
    source_type: str | None = None
    source_pgn: int | None = None
    source_src: str | None = None
    meta: str | None = None

    @model_validator(mode="after")
    def check_component_attributes(self):
        """Only flattened value_<component> attributes may be added."""
        for name in (self.model_extra or {}):
            if not name.startswith(EXPLODED_PREFIX) or name == VALUE_JSON:
                raise ValueError(f"Unexpected attribute '{name}': only value_<component> attributes are allowed")
        return self

    @classmethod
    def from_delta(
        cls,
        context: str,
        path: str,
        value: Any,
        timestamp: str | None = None,
        source: Mapping[str, Any] | None = None,
        source_label: str | None = None,
        meta: Mapping[str, Any] | None = None,
        received_at: datetime | None = None,
    ) -> "TelemetryRecord":
        """
        Build a record from one telemetry update.

        Args:
            context: Entity the update belongs to
            path: Telemetry path
            value: JSON payload of the update
            timestamp: Source-asserted timestamp (defaults to receipt time)
            source: Source description object
            source_label: Source label
            meta: Metadata object for the path
            received_at: Receipt instant (defaults to now, UTC)

        Returns:
            TelemetryRecord
        """
        received = iso_timestamp(received_at)
        attributes: dict[str, Any] = {
            "received_timestamp": received,
            "signalk_timestamp": timestamp or received,
            "context": context or "vessels.self",
            "path": path,
            "source_label": source_label,
            "meta": json.dumps(meta) if meta else None,
        }

        if source:
            attributes["source"] = json.dumps(source)
            attributes["source_type"] = source.get("type")
            attributes["source_pgn"] = source.get("pgn")
            src = source.get("src")
            attributes["source_src"] = str(src) if src is not None else None

        if isinstance(value, Mapping):
            attributes["value_json"] = json.dumps(value)
            for key, member in value.items():
                if isinstance(member, (str, int, float, bool)):
                    attributes[f"{EXPLODED_PREFIX}{key}"] = member
        elif isinstance(value, list):
            attributes["value_json"] = json.dumps(value)
        else:
            attributes["value"] = value

        return cls(**attributes)

    def as_row(self) -> dict[str, Any]:
        """Attribute mapping including flattened components."""
        return self.model_dump()

    class Config:
        frozen = True
        extra = "allow"
        json_schema_extra = {
            "example": {
                "received_timestamp": "2025-07-14T18:47:12.345Z",
                "signalk_timestamp": "2025-07-14T18:47:12.000Z",
                "context": "vessels.urn:mrn:imo:mmsi:368396230",
                "path": "navigation.position",
                "value": None,
                "value_json": "{\"latitude\": 37.8, \"longitude\": -122.4}",
                "value_latitude": 37.8,
                "value_longitude": -122.4,
                "source_label": "gps.GP",
                "source_type": "NMEA0183",
            }
        }


def record_to_row(record: TelemetryRecord | Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalise a record into a plain attribute mapping.

    Rows read back from files are already mappings; freshly ingested
    samples are TelemetryRecord instances.
    """
    if isinstance(record, TelemetryRecord):
        return record.as_row()
    return dict(record)
