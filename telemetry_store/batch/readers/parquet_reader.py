"""
Columnar file reader using pyarrow.
"""

from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq


def declared_type_name(arrow_type: pa.DataType) -> str:
    """
    Name of the columnar type a file declares for one column.

    Args:
        arrow_type: Arrow type read from the file schema

    Returns:
        DOUBLE, BOOLEAN, UTF8, BIGINT, INT32, TIMESTAMP, NULL, or the
        upper-cased arrow type name for anything else
    """
    if pa.types.is_floating(arrow_type):
        return "DOUBLE"
    if pa.types.is_boolean(arrow_type):
        return "BOOLEAN"
    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return "UTF8"
    if pa.types.is_int64(arrow_type) or pa.types.is_uint64(arrow_type):
        return "BIGINT"
    if pa.types.is_integer(arrow_type):
        return "INT32"
    if pa.types.is_timestamp(arrow_type):
        return "TIMESTAMP"
    if pa.types.is_null(arrow_type):
        return "NULL"
    return str(arrow_type).upper()


class ParquetFileReader:
    """
    Reads rows and declared schemas back from columnar files.
    """

    def read_rows(self, file_path: str | Path) -> list[dict[str, Any]]:
        """
        Read every row of a file.

        Args:
            file_path: Path to the columnar file

        Returns:
            Rows as attribute mappings, in file order
        """
        table = pq.read_table(file_path)
        return table.to_pylist()

    def read_sample(self, file_path: str | Path, limit: int) -> list[dict[str, Any]]:
        """Read at most the first limit rows of a file."""
        parquet_file = pq.ParquetFile(file_path)
        rows: list[dict[str, Any]] = []
        for batch in parquet_file.iter_batches(batch_size=limit):
            rows.extend(batch.to_pylist())
            if len(rows) >= limit:
                break
        return rows[:limit]

    def read_declared_types(self, file_path: str | Path) -> dict[str, str]:
        """Column name -> declared type name, in file column order."""
        schema = pq.read_schema(file_path)
        return {field.name: declared_type_name(field.type) for field in schema}

    def count_rows(self, file_path: str | Path) -> int:
        """Row count from the file footer."""
        return pq.ParquetFile(file_path).metadata.num_rows
