"""
Storage engine configuration.

Loads settings from the `storage:` section of a YAML file, with
TELEMETRY_STORE_<FIELD> environment variables taking precedence.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "TELEMETRY_STORE_"


class StorageSettings(BaseModel):
    """
    Settings shared by every storage engine component.

    Attributes:
        output_directory: Root data directory
        filename_prefix: Prefix of every data file name
        self_context: Context identifier that vessels.self resolves to
        metadata_base_url: Root URL of the telemetry server metadata API
        metadata_timeout: Metadata request timeout in seconds
        audit_sample_size: Rows inspected per file by the schema auditor
        min_file_size_bytes: Files of this size or smaller fail validation
        compression: Parquet compression codec
        consolidation_lookback_days: Completed days checked by missed-day catch-up
        log_level: Logging level
        log_format: json or text
        metrics_port: Port of the Prometheus endpoint (disabled when None)
    """

    output_directory: Path = Path("data")
    filename_prefix: str = "signalk_data"
    self_context: str = "vessels.self"
    metadata_base_url: str = "http://localhost:3000"
    metadata_timeout: float = Field(2.0, gt=0)
    audit_sample_size: int = Field(100, ge=1)
    min_file_size_bytes: int = Field(100, ge=0)
    compression: str = "snappy"
    consolidation_lookback_days: int = Field(7, ge=1)
    log_level: str = "INFO"
    log_format: str = "json"
    metrics_port: int | None = None

    @field_validator("filename_prefix")
    @classmethod
    def check_prefix(cls, v):
        """The prefix is joined to timestamps with an underscore."""
        if not v or "/" in v:
            raise ValueError("filename_prefix must be a non-empty file name fragment")
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError(f"log_format must be 'json' or 'text', got '{v}'")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "output_directory": "/var/lib/telemetry",
                "filename_prefix": "signalk_data",
                "self_context": "vessels.urn:mrn:imo:mmsi:368396230",
                "metadata_base_url": "http://localhost:3000",
                "metadata_timeout": 2.0,
            }
        }


def environment_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Settings given as environment variables.

    TELEMETRY_STORE_<FIELD> sets <field>; the shared LOG_LEVEL, LOG_FORMAT
    and METRICS_PORT variables are honoured when no prefixed one is set.
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    # Shared variables first, prefixed ones win
    for shared in ("LOG_LEVEL", "LOG_FORMAT", "METRICS_PORT"):
        if environ.get(shared):
            overrides[shared.lower()] = environ[shared]

    for name in StorageSettings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value:
            overrides[name] = value

    return overrides


class SettingsLoader:
    """
    Loads StorageSettings from a YAML configuration file.

    Expected YAML format:
    ```yaml
    storage:
      output_directory: /var/lib/telemetry
      filename_prefix: signalk_data
      self_context: vessels.urn:mrn:imo:mmsi:368396230
      metadata_base_url: http://localhost:3000
      metadata_timeout: 2.0
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the settings loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Storage configuration file not found: {config_path}")

    def load(self, environ: dict[str, str] | None = None) -> StorageSettings:
        """
        Parse the configuration file and apply environment overrides.

        Returns:
            StorageSettings

        Raises:
            ValueError: If the file has no 'storage' section or invalid values
        """
        # Load YAML
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "storage" not in config:
            raise ValueError("Configuration file must contain 'storage' section")

        section = config["storage"] or {}
        if not isinstance(section, dict):
            raise ValueError("'storage' section must be a mapping")

        # Environment overrides the file
        return StorageSettings(**{**section, **environment_overrides(environ)})


def load_settings(config_path: str | Path | None = None, environ: dict[str, str] | None = None) -> StorageSettings:
    """
    Settings from a YAML file if given, else defaults plus environment.

    Args:
        config_path: Optional YAML configuration file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        StorageSettings
    """
    if config_path:
        return SettingsLoader(config_path).load(environ)
    return StorageSettings(**environment_overrides(environ))
