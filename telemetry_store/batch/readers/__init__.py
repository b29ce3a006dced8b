"""
Data file readers.
"""

from .file_reader import FileReader
from .json_reader import JsonFileReader
from .parquet_reader import ParquetFileReader, declared_type_name

__all__ = [
    "FileReader",
    "JsonFileReader",
    "ParquetFileReader",
    "declared_type_name",
]
