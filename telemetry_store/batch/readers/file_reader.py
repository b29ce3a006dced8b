"""
Generic data file reader dispatching on file extension.
"""

from pathlib import Path
from typing import Any

from .json_reader import JsonFileReader
from .parquet_reader import ParquetFileReader


class FileReader:
    """
    Reads rows from any data file the store produces.
    """

    def __init__(self):
        self.parquet_reader = ParquetFileReader()
        self.json_reader = JsonFileReader()

    def read_rows(self, file_path: str | Path) -> list[dict[str, Any]]:
        """
        Read every row of a data file.

        Args:
            file_path: Path to a .parquet, .json or .jsonl file

        Returns:
            Rows as attribute mappings

        Raises:
            ValueError: If the file format is unsupported
        """
        suffix = Path(file_path).suffix.lower()
        if suffix == ".parquet":
            return self.parquet_reader.read_rows(file_path)
        elif suffix in (".json", ".jsonl"):
            return self.json_reader.read_rows(file_path)
        else:
            raise ValueError(f"Unsupported file format: {suffix or Path(file_path).name}")
