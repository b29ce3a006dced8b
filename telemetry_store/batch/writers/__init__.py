"""
Data file writers.
"""

from .parquet_writer import TypedBatchWriter, coerce_value, fallback_file_path
from .quarantine_writer import QuarantineWriter, quarantine_statistics, read_log

__all__ = [
    "TypedBatchWriter",
    "QuarantineWriter",
    "coerce_value",
    "fallback_file_path",
    "quarantine_statistics",
    "read_log",
]
