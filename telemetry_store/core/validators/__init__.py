"""
Validation of data files written by the store.
"""

from .file_validator import DEFAULT_MIN_FILE_SIZE, FileValidator

__all__ = [
    "DEFAULT_MIN_FILE_SIZE",
    "FileValidator",
]
