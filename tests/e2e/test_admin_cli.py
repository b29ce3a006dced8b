"""
End-to-end tests for the admin CLI.

Each command runs through main() against a temporary data tree.
"""

from datetime import timedelta

import pytest

from telemetry_store.batch.consolidation import utc_today
from telemetry_store.batch.writers.parquet_writer import TypedBatchWriter
from telemetry_store.batch.writers.quarantine_writer import QuarantineWriter
from telemetry_store.cli.admin_cli import main


@pytest.fixture(autouse=True)
def cli_environment(tmp_path, monkeypatch):
    """Isolate the CLI from the developer's environment and any .env file"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TELEMETRY_STORE_METADATA_BASE_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("TELEMETRY_STORE_METADATA_TIMEOUT", "0.2")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    for name in ("METRICS_PORT", "TELEMETRY_STORE_METRICS_PORT", "TELEMETRY_STORE_OUTPUT_DIRECTORY", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def write_interval(directory, stamp, row_factory):
    return TypedBatchWriter().write(
        [row_factory(1.0, f"{stamp[:10]}T00:00:01.000Z")],
        directory / f"signalk_data_{stamp}.parquet",
    )


@pytest.mark.e2e
def test_audit_reports_violations(data_root, bigint_file, capsys):
    exit_code = main(["--root", str(data_root), "audit-schemas"])

    out = capsys.readouterr().out
    assert exit_code == 1
    assert "SCHEMA AUDIT REPORT" in out
    assert "value is BIGINT, should be DOUBLE" in out


@pytest.mark.e2e
def test_audit_of_clean_tree(data_root, speed_dir, row_factory, capsys):
    write_interval(speed_dir, "2025-07-14T1800", row_factory)

    assert main(["--root", str(data_root), "audit-schemas"]) == 0
    assert "Files with violations:  0" in capsys.readouterr().out


@pytest.mark.e2e
def test_repair_in_place(data_root, bigint_file, capsys):
    exit_code = main(["--root", str(data_root), "repair-schemas", "--in-place"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Files repaired:    1" in out
    assert "Files swapped:     1" in out
    assert main(["--root", str(data_root), "audit-schemas"]) == 0


@pytest.mark.e2e
def test_consolidate_date(data_root, speed_dir, row_factory, capsys):
    write_interval(speed_dir, "2025-07-14T1800", row_factory)

    exit_code = main(["--root", str(data_root), "consolidate", "--date", "2025-07-14"])

    assert exit_code == 0
    assert "Consolidated 1 directories for 2025-07-14" in capsys.readouterr().out
    assert (speed_dir / "signalk_data_2025-07-14_consolidated.parquet").exists()


@pytest.mark.e2e
def test_consolidate_missed(data_root, speed_dir, row_factory, capsys):
    yesterday = utc_today() - timedelta(days=1)
    write_interval(speed_dir, f"{yesterday.isoformat()}T0000", row_factory)

    assert main(["--root", str(data_root), "consolidate", "--missed"]) == 0
    assert yesterday.isoformat() in capsys.readouterr().out


@pytest.mark.e2e
@pytest.mark.parametrize("value", ["2025-13-01", "yesterday", "2999-01-01"])
def test_consolidate_rejects_bad_dates(data_root, value, capsys):
    assert main(["--root", str(data_root), "consolidate", "--date", value]) == 2
    assert "Error:" in capsys.readouterr().out


@pytest.mark.e2e
def test_consolidate_requires_a_target(data_root):
    with pytest.raises(SystemExit):
        main(["--root", str(data_root), "consolidate"])


@pytest.mark.e2e
def test_quarantine_stats(data_root, speed_dir, capsys):
    tiny = speed_dir / "signalk_data_2025-07-14T1800.parquet"
    tiny.write_bytes(b"PAR1")
    QuarantineWriter().quarantine(tiny, "write", "File too small (4 bytes, minimum 101)")

    assert main(["--root", str(data_root), "quarantine-stats"]) == 0

    out = capsys.readouterr().out
    assert "Total quarantined: 1" in out
    assert "write" in out


@pytest.mark.e2e
def test_settings_from_dotenv(tmp_path, data_root, monkeypatch, capsys):
    # Registered with monkeypatch so the value load_dotenv sets is undone
    monkeypatch.setenv("TELEMETRY_STORE_OUTPUT_DIRECTORY", "")
    monkeypatch.delenv("TELEMETRY_STORE_OUTPUT_DIRECTORY")
    (tmp_path / ".env").write_text(f"TELEMETRY_STORE_OUTPUT_DIRECTORY={data_root}\n")

    assert main(["quarantine-stats"]) == 0
    assert f"Root: {data_root}" in capsys.readouterr().out


@pytest.mark.e2e
def test_validate_file(data_root, speed_dir, row_factory, bigint_file, capsys):
    good = write_interval(speed_dir, "2025-07-14T1800", row_factory)
    broken = speed_dir / "signalk_data_2025-07-14T1900.parquet"
    broken.write_bytes(b"PAR1")

    assert main(["--root", str(data_root), "validate-file", "--file", str(good)]) == 0
    assert "Schema: correct" in capsys.readouterr().out

    assert main(["--root", str(data_root), "validate-file", "--file", str(bigint_file)]) == 1
    assert "value is BIGINT, should be DOUBLE" in capsys.readouterr().out

    assert main(["--root", str(data_root), "validate-file", "--file", str(broken)]) == 1
    assert "Valid:  no (File too small" in capsys.readouterr().out


@pytest.mark.e2e
def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out
