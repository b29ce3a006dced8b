"""
Unit tests for FileValidator.
"""

import pyarrow as pa
import pytest

from telemetry_store.core.validators import DEFAULT_MIN_FILE_SIZE, FileValidator


@pytest.mark.unit
class TestFileValidator:
    """Tests for FileValidator.check"""

    def test_missing_file(self, tmp_path):
        result = FileValidator().check(tmp_path / "signalk_data_x.parquet")

        assert not result.is_valid
        assert result.reason == "File does not exist"

    def test_tiny_file(self, tmp_path):
        path = tmp_path / "signalk_data_x.parquet"
        path.write_bytes(b"PAR1")

        result = FileValidator().check(path)

        assert not result.is_valid
        assert result.reason == f"File too small (4 bytes, minimum {DEFAULT_MIN_FILE_SIZE + 1})"
        assert result.file_size == 4

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "signalk_data_x.parquet"
        path.write_bytes(b"not a columnar file " * 20)

        result = FileValidator().check(path)

        assert not result.is_valid
        assert result.reason.startswith("File cannot be read: ")

    def test_valid_file(self, tmp_path, parquet_file_factory):
        path = parquet_file_factory(
            tmp_path / "signalk_data_x.parquet",
            {"path": (pa.string(), ["navigation.speedOverGround"]), "value": (pa.float64(), [3.2])},
        )

        result = FileValidator().check(path)

        assert result.is_valid
        assert result.reason is None
        assert FileValidator().validate(path)

    def test_file_without_rows(self, tmp_path, parquet_file_factory):
        path = parquet_file_factory(tmp_path / "signalk_data_x.parquet", {"value": (pa.float64(), [])})

        result = FileValidator(min_size_bytes=0).check(path)

        assert not result.is_valid
        assert result.reason == "File contains no rows"

    def test_directory_is_not_a_file(self, tmp_path):
        assert not FileValidator().validate(tmp_path)
