"""
Pytest configuration and fixtures for telemetry-store tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from telemetry_store.core.config.settings import StorageSettings
from telemetry_store.core.models import TelemetryRecord
from telemetry_store.core.schema.metadata import StaticMetadataProvider
from telemetry_store.engine import StorageEngine


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't touch more than one component"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests across components on a real filesystem"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that drive the engine or the admin CLI"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DATA DIRECTORY FIXTURES
# =======================

VESSEL_ID = "urn:mrn:imo:mmsi:368396230"
SPEED_PATH = "navigation.speedOverGround"


@pytest.fixture(scope="function")
def data_root(tmp_path) -> Path:
    """
    Provide an empty root data directory

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the root data directory
    """
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture(scope="function")
def speed_dir(data_root) -> Path:
    """Telemetry directory of navigation.speedOverGround for the test vessel"""
    directory = data_root / "vessels" / VESSEL_ID.replace(":", "_") / "navigation" / "speedOverGround"
    directory.mkdir(parents=True)
    return directory


# =======================
# METADATA FIXTURES
# =======================

@pytest.fixture(scope="function")
def metadata_provider() -> StaticMetadataProvider:
    """
    Offline metadata provider with a few declared units

    Returns:
        StaticMetadataProvider
    """
    return StaticMetadataProvider({
        SPEED_PATH: "m/s",
        "environment.depth.belowKeel": "m",
        "navigation.state": "",
        "electrical.batteries.1.name": "string",
    })


# =======================
# ENGINE FIXTURES
# =======================

@pytest.fixture(scope="function")
def settings(data_root) -> StorageSettings:
    return StorageSettings(
        output_directory=data_root,
        self_context=f"vessels.{VESSEL_ID}",
    )


@pytest.fixture(scope="function")
def engine(settings, metadata_provider) -> StorageEngine:
    """Storage engine wired to the offline metadata provider"""
    with StorageEngine.from_settings(settings, metadata_provider=metadata_provider) as storage:
        yield storage


# =======================
# RECORD AND FILE FACTORIES
# =======================

def make_row(
    value: Any,
    received: str,
    path: str = SPEED_PATH,
    context: str = f"vessels.{VESSEL_ID}",
    **extra,
) -> dict[str, Any]:
    """Row mapping as the ingestion side produces it"""
    row = {
        "received_timestamp": received,
        "signalk_timestamp": received,
        "context": context,
        "path": path,
        "value": value,
        "source_label": "gps.GP",
    }
    row.update(extra)
    return row


@pytest.fixture
def row_factory() -> Callable[..., dict[str, Any]]:
    return make_row


@pytest.fixture
def record_factory() -> Callable[..., TelemetryRecord]:
    """Build TelemetryRecord instances from delta values"""
    def _make(value: Any, path: str = SPEED_PATH, minute: int = 0, second: int = 0) -> TelemetryRecord:
        received_at = datetime(2025, 7, 14, 18, minute, second, tzinfo=timezone.utc)
        return TelemetryRecord.from_delta(
            context=f"vessels.{VESSEL_ID}",
            path=path,
            value=value,
            source={"label": "gps", "type": "NMEA0183", "talker": "GP"},
            source_label="gps.GP",
            received_at=received_at,
        )
    return _make


def write_arrow_file(path: Path, columns: dict[str, tuple[pa.DataType, list[Any]]]) -> Path:
    """
    Write a parquet file with explicit arrow column types

    Args:
        path: Destination file
        columns: Column name -> (arrow type, values)

    Returns:
        Path of the written file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.table({name: pa.array(values, type=arrow_type) for name, (arrow_type, values) in columns.items()})
    pq.write_table(table, path)
    return path


@pytest.fixture
def parquet_file_factory() -> Callable[..., Path]:
    return write_arrow_file


@pytest.fixture
def bigint_file(speed_dir) -> Path:
    """Legacy interval file that declares value as a 64-bit integer"""
    return write_arrow_file(
        speed_dir / "signalk_data_2025-07-14T1847.parquet",
        {
            "received_timestamp": (pa.string(), ["2025-07-14T18:47:01.000Z", "2025-07-14T18:47:02.000Z"]),
            "signalk_timestamp": (pa.string(), ["2025-07-14T18:47:01.000Z", "2025-07-14T18:47:02.000Z"]),
            "context": (pa.string(), [f"vessels.{VESSEL_ID}"] * 2),
            "path": (pa.string(), [SPEED_PATH] * 2),
            "value": (pa.int64(), [3, 4]),
        },
    )

