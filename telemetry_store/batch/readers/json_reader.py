"""
Reader for JSON data files.

Covers the line-delimited fallback files written after an encode failure
and legacy JSON interval files (a single array or object per file).
"""

import json
from pathlib import Path
from typing import Any


class JsonFileReader:
    """
    Reads rows from .jsonl and .json files.
    """

    def read_rows(self, file_path: str | Path) -> list[dict[str, Any]]:
        """
        Read every row of a JSON data file.

        Args:
            file_path: Path to a .jsonl or .json file

        Returns:
            Rows as attribute mappings

        Raises:
            ValueError: If the file holds something other than objects
        """
        file_path = Path(file_path)
        with open(file_path, encoding="utf-8") as f:
            if file_path.suffix.lower() == ".jsonl":
                rows = [json.loads(line) for line in f if line.strip()]
            else:
                content = f.read()
                if not content.strip():
                    return []
                payload = json.loads(content)
                rows = payload if isinstance(payload, list) else [payload]

        for row in rows:
            if not isinstance(row, dict):
                raise ValueError(f"{file_path.name} contains a non-object row: {row!r}")
        return rows
