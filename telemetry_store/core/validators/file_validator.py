"""
FileValidator - structural validation of a written columnar file.
"""

from pathlib import Path

from telemetry_store.batch.readers.parquet_reader import ParquetFileReader
from telemetry_store.core.models import FileCheckResult

# A columnar file below this size cannot hold a footer and one row group
DEFAULT_MIN_FILE_SIZE = 100


class FileValidator:
    """
    Checks, in order, that a file exists, is larger than a minimum byte
    floor, and opens with at least one row on read-back.

    The validator only reports; moving a failed file to quarantine is up to
    the caller.
    """

    def __init__(self, min_size_bytes: int = DEFAULT_MIN_FILE_SIZE, reader: ParquetFileReader | None = None):
        """
        Initialize file validator.

        Args:
            min_size_bytes: Files of this size or smaller are rejected
            reader: Columnar file reader used for the read-back check
        """
        self.min_size_bytes = min_size_bytes
        self.reader = reader or ParquetFileReader()

    def check(self, path: str | Path) -> FileCheckResult:
        """
        Validate a file and explain the outcome.

        Args:
            path: File to validate

        Returns:
            FileCheckResult with the reason of the first failed check
        """
        path = Path(path)
        if not path.is_file():
            return FileCheckResult(path=str(path), is_valid=False, reason="File does not exist")

        file_size = path.stat().st_size
        if file_size <= self.min_size_bytes:
            return FileCheckResult(
                path=str(path),
                is_valid=False,
                reason=f"File too small ({file_size} bytes, minimum {self.min_size_bytes + 1})",
                file_size=file_size,
            )

        try:
            rows = self.reader.read_sample(path, 1)
        except Exception as e:
            return FileCheckResult(
                path=str(path),
                is_valid=False,
                reason=f"File cannot be read: {e}",
                file_size=file_size,
            )

        if not rows:
            return FileCheckResult(path=str(path), is_valid=False, reason="File contains no rows", file_size=file_size)

        return FileCheckResult(path=str(path), is_valid=True, file_size=file_size)

    def validate(self, path: str | Path) -> bool:
        """Whether the file passes every check."""
        return self.check(path).is_valid
