"""
QuarantineEntry model representing a data file moved aside after failing validation.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

LOG_SEPARATOR = " | "


class QuarantineEntry(BaseModel):
    """
    A data file moved to a quarantine archive.

    Quarantined files are never deleted automatically.

    Attributes:
        quarantined_at: When the file was quarantined (UTC)
        operation: Operation that produced the file (write, consolidation)
        file_size: Size of the file in bytes
        reason: Human-readable reason
        original_path: Where the file lived before quarantine
        quarantine_path: Where the file lives now
    """

    quarantined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str
    file_size: int = Field(0, ge=0)
    reason: str
    original_path: str
    quarantine_path: str | None = None

    def to_log_line(self) -> str:
        """Render the append-only quarantine.log line for this entry."""
        timestamp = self.quarantined_at.astimezone(timezone.utc).isoformat(timespec="milliseconds")
        timestamp = timestamp.replace("+00:00", "Z")

        # One event per line, whatever the exception text held
        reason = self.reason.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")

        return LOG_SEPARATOR.join([
            timestamp,
            self.operation,
            f"{self.file_size} bytes",
            reason,
            self.original_path,
        ]) + "\n"

    @classmethod
    def from_log_line(cls, line: str) -> "QuarantineEntry | None":
        """Parse a quarantine.log line; returns None for malformed lines."""
        parts = line.rstrip("\n").split(LOG_SEPARATOR)
        if len(parts) < 5:
            return None

        timestamp, operation, size, *reason_parts, original_path = parts
        size_text = size.removesuffix(" bytes")
        if not size_text.isdigit():
            return None

        try:
            quarantined_at = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return None

        return cls(
            quarantined_at=quarantined_at,
            operation=operation,
            file_size=int(size_text),
            reason=LOG_SEPARATOR.join(reason_parts),
            original_path=original_path,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "quarantined_at": "2025-07-15T00:05:00.123Z",
                "operation": "consolidation",
                "file_size": 42,
                "reason": "File failed validation after consolidation",
                "original_path": "/data/vessels/self/navigation/speedOverGround/signalk_data_2025-07-14_consolidated.parquet",
                "quarantine_path": "/data/vessels/self/navigation/speedOverGround/quarantine/signalk_data_2025-07-14_consolidated.parquet",
            }
        }
