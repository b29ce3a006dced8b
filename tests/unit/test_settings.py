"""
Unit tests for storage settings loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from telemetry_store.core.config import SettingsLoader, StorageSettings, environment_overrides, load_settings


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "storage.yaml"
    path.write_text(
        "storage:\n"
        "  output_directory: /var/lib/telemetry\n"
        "  self_context: vessels.urn:mrn:imo:mmsi:368396230\n"
        "  audit_sample_size: 25\n"
    )
    return path


@pytest.mark.unit
class TestStorageSettings:
    """Tests for StorageSettings defaults and validation"""

    def test_defaults(self):
        settings = StorageSettings()

        assert settings.output_directory == Path("data")
        assert settings.filename_prefix == "signalk_data"
        assert settings.self_context == "vessels.self"
        assert settings.audit_sample_size == 100
        assert settings.consolidation_lookback_days == 7
        assert settings.metrics_port is None

    def test_log_level_is_normalised(self):
        assert StorageSettings(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("log_level", "VERBOSE"),
        ("log_format", "xml"),
        ("filename_prefix", ""),
        ("filename_prefix", "a/b"),
        ("audit_sample_size", 0),
        ("metadata_timeout", 0),
        ("consolidation_lookback_days", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            StorageSettings(**{field: value})


@pytest.mark.unit
class TestSettingsLoader:
    """Tests for SettingsLoader"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SettingsLoader(tmp_path / "missing.yaml")

    def test_missing_section(self, tmp_path):
        path = tmp_path / "storage.yaml"
        path.write_text("other:\n  key: value\n")

        with pytest.raises(ValueError, match="storage"):
            SettingsLoader(path).load(environ={})

    def test_yaml_values(self, config_file):
        settings = SettingsLoader(config_file).load(environ={})

        assert settings.output_directory == Path("/var/lib/telemetry")
        assert settings.self_context == "vessels.urn:mrn:imo:mmsi:368396230"
        assert settings.audit_sample_size == 25

    def test_environment_wins_over_yaml(self, config_file):
        settings = SettingsLoader(config_file).load(
            environ={"TELEMETRY_STORE_AUDIT_SAMPLE_SIZE": "10", "LOG_LEVEL": "warning"}
        )

        assert settings.audit_sample_size == 10
        assert settings.log_level == "WARNING"

    def test_invalid_yaml_values(self, tmp_path):
        path = tmp_path / "storage.yaml"
        path.write_text("storage:\n  audit_sample_size: -3\n")

        with pytest.raises(ValueError):
            SettingsLoader(path).load(environ={})


@pytest.mark.unit
class TestEnvironment:
    """Tests for environment overrides"""

    def test_prefixed_variables(self):
        overrides = environment_overrides({
            "TELEMETRY_STORE_OUTPUT_DIRECTORY": "/tmp/x",
            "TELEMETRY_STORE_UNKNOWN": "ignored",
            "METRICS_PORT": "9102",
        })

        assert overrides == {"output_directory": "/tmp/x", "metrics_port": "9102"}

    def test_prefixed_variable_beats_shared(self):
        overrides = environment_overrides({"LOG_FORMAT": "json", "TELEMETRY_STORE_LOG_FORMAT": "text"})
        assert overrides == {"log_format": "text"}

    def test_load_settings_without_file(self):
        settings = load_settings(environ={"TELEMETRY_STORE_METRICS_PORT": "9102"})
        assert settings.metrics_port == 9102

    def test_load_settings_with_file(self, config_file):
        assert load_settings(config_file, environ={}).audit_sample_size == 25
