"""
Exceptions raised by the storage engine.

Schema violations found on existing files are not exceptions; they are
reported through SchemaValidationResult. Metadata lookup failures are never
raised at all.
"""

from pathlib import Path


class StorageError(Exception):
    """Base class for storage engine failures."""
    pass


class SchemaInferenceError(StorageError):
    """Raised when no column schema can be produced for a batch."""
    pass


class BatchWriteError(StorageError):
    """
    Raised when a batch could not be encoded into a columnar file.

    The batch has already been persisted as line-delimited JSON at
    fallback_path by the time this is raised.
    """

    def __init__(self, filepath: str | Path, fallback_path: str | Path | None, message: str):
        self.filepath = Path(filepath)
        self.fallback_path = Path(fallback_path) if fallback_path else None
        self.message = message
        super().__init__(message)


class FileValidationError(StorageError):
    """Raised when a freshly written file fails structural validation."""

    def __init__(self, filepath: str | Path, quarantine_path: str | Path, reason: str):
        self.filepath = Path(filepath)
        self.quarantine_path = Path(quarantine_path)
        self.reason = reason
        super().__init__(
            f"{self.filepath.name} failed validation after write ({reason}), "
            f"moved to quarantine: {self.quarantine_path}"
        )
