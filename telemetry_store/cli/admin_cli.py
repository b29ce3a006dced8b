"""
Admin CLI for managing the telemetry store.

Usage:
    telemetry-store-admin audit-schemas [--root <dir>]
    telemetry-store-admin repair-schemas [--root <dir>] [--in-place]
    telemetry-store-admin consolidate (--date YYYY-MM-DD | --missed) [--root <dir>]
    telemetry-store-admin quarantine-stats [--root <dir>]
    telemetry-store-admin validate-file --file <path>
"""

import argparse
import sys
from datetime import date

from dotenv import find_dotenv, load_dotenv

from telemetry_store.batch.writers.quarantine_writer import quarantine_statistics
from telemetry_store.core.config.settings import load_settings
from telemetry_store.engine import StorageEngine
from telemetry_store.observability.logger import configure_logging, get_logger
from telemetry_store.observability.metrics import start_metrics_server

logger = get_logger(__name__)


def build_engine(args) -> StorageEngine:
    """Create a storage engine from the config file, environment and --root."""
    settings = load_settings(args.config)
    if args.root:
        settings = settings.model_copy(update={"output_directory": args.root})
    configure_logging(settings.log_level, settings.log_format)
    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)
    return StorageEngine.from_settings(settings)


def audit_schemas_command(args) -> int:
    """
    Audit the declared schema of every columnar file.

    Args:
        args: Command line arguments

    Returns:
        Exit code (1 when violations were found)
    """
    with build_engine(args) as engine:
        logger.info(f"Auditing schemas under {engine.root}")
        report = engine.audit_directory()

        print(f"\n{'=' * 60}")
        print("SCHEMA AUDIT REPORT")
        print(f"Root: {engine.root}")
        print(f"{'=' * 60}\n")

        print(f"  Files scanned:          {report.total_files}")
        print(f"  Contexts:               {len(report.contexts)}")
        print(f"  Files with schema:      {report.schemas_found}")
        print(f"  Files without schema:   {report.no_schema_found}")
        print(f"  Correct schemas:        {report.correct_schemas}")
        print(f"  Files with violations:  {report.violation_files}")

        if report.violation_details:
            print("\nViolations:")
            for detail in report.violation_details[:args.limit]:
                print(f"  - {detail}")
            remaining = len(report.violation_details) - args.limit
            if remaining > 0:
                print(f"  ... and {remaining} more")

        print(f"\n{'=' * 60}\n")
        return 1 if report.violation_files or report.no_schema_found else 0


def repair_schemas_command(args) -> int:
    """
    Repair every columnar file whose schema has violations.

    Args:
        args: Command line arguments

    Returns:
        Exit code (1 when any file could not be repaired)
    """
    with build_engine(args) as engine:
        logger.info(f"Repairing schemas under {engine.root}", extra={"in_place": args.in_place})
        report = engine.repair_directory(in_place=args.in_place)

        print(f"\n{'=' * 60}")
        print("SCHEMA REPAIR REPORT")
        print(f"Root: {engine.root}")
        print(f"{'=' * 60}\n")

        print(f"  Files scanned:     {report.total_files}")
        print(f"  Files repaired:    {report.files_repaired}")
        print(f"  Backups created:   {report.backups_created}")
        if args.in_place:
            print(f"  Files swapped:     {report.files_swapped}")

        if report.errors:
            print("\nErrors:")
            for error in report.errors:
                print(f"  - {error}")

        print(f"\n{'=' * 60}\n")
        return 1 if report.errors else 0


def consolidate_command(args) -> int:
    """
    Consolidate one day, or every missed day within the lookback.

    Args:
        args: Command line arguments

    Returns:
        Exit code
    """
    with build_engine(args) as engine:
        if args.missed:
            results = engine.consolidate_missed_days()
            if not results:
                print("\nNo missed days to consolidate.\n")
                return 0
            print("\nConsolidated directories per day:")
            for day, count in results.items():
                print(f"  {day.isoformat()}  {count:>6}")
            print()
            return 0

        try:
            day = date.fromisoformat(args.date)
        except ValueError:
            print(f"\nError: invalid date '{args.date}', expected YYYY-MM-DD")
            return 2

        try:
            count = engine.consolidate_day(day)
        except ValueError as e:
            print(f"\nError: {e}")
            return 2

        print(f"\nConsolidated {count} directories for {day.isoformat()}\n")
        return 0


def quarantine_stats_command(args) -> int:
    """
    Display quarantine statistics.

    Args:
        args: Command line arguments

    Returns:
        Exit code
    """
    settings = load_settings(args.config)
    root = args.root or settings.output_directory
    logger.info(f"Getting quarantine statistics for {root}")

    stats = quarantine_statistics(root)

    print(f"\n{'=' * 60}")
    print("QUARANTINE STATISTICS")
    print(f"Root: {root}")
    print(f"{'=' * 60}\n")

    print("Overall:")
    print(f"  Total quarantined: {stats['total_quarantined']}")
    print(f"  Total bytes:       {stats['total_bytes']}")
    print(f"  Directories:       {len(stats['directories'])}\n")

    print("By Operation:")
    for operation, count in sorted(
        stats["by_operation"].items(),
        key=lambda x: x[1],
        reverse=True
    ):
        print(f"  {operation:<30} {count:>8}")

    print(f"\n{'=' * 60}\n")
    return 0


def validate_file_command(args) -> int:
    """
    Validate one data file and audit its schema.

    Args:
        args: Command line arguments

    Returns:
        Exit code (1 when the file is invalid)
    """
    with build_engine(args) as engine:
        check = engine.validator.check(args.file)
        print(f"\nFile: {args.file}")
        print(f"  Size:   {check.file_size} bytes")
        if not check.is_valid:
            print(f"  Valid:  no ({check.reason})\n")
            return 1

        print("  Valid:  yes")
        audit = engine.audit_file(args.file)
        print(f"  Exploded: {'yes' if audit.is_exploded_file else 'no'}")
        if audit.is_valid:
            print("  Schema: correct\n")
            return 0

        print("  Schema violations:")
        for violation in audit.violations:
            print(f"    - {violation}")
        print()
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telemetry-store-admin",
        description="Admin CLI for the telemetry store",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global options
    parser.add_argument(
        "--config",
        help="Path to YAML configuration file (optional)"
    )
    parser.add_argument(
        "--root",
        help="Root data directory (overrides the configuration)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # audit-schemas command
    audit_parser = subparsers.add_parser(
        "audit-schemas",
        help="Audit the schema of every columnar file"
    )
    audit_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum number of violations to display (default: 50)"
    )

    # repair-schemas command
    repair_parser = subparsers.add_parser(
        "repair-schemas",
        help="Repair files with schema violations"
    )
    repair_parser.add_argument(
        "--in-place",
        action="store_true",
        help="Replace each original with its repaired copy (backups are kept)"
    )

    # consolidate command
    consolidate_parser = subparsers.add_parser(
        "consolidate",
        help="Merge a day's interval files per telemetry path"
    )
    target = consolidate_parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--date",
        help="UTC day to consolidate (YYYY-MM-DD)"
    )
    target.add_argument(
        "--missed",
        action="store_true",
        help="Consolidate every completed day within the lookback window"
    )

    # quarantine-stats command
    subparsers.add_parser(
        "quarantine-stats",
        help="Display quarantine statistics"
    )

    # validate-file command
    validate_parser = subparsers.add_parser(
        "validate-file",
        help="Validate a single data file"
    )
    validate_parser.add_argument(
        "--file",
        required=True,
        help="Path to the data file"
    )

    return parser


COMMANDS = {
    "audit-schemas": audit_schemas_command,
    "repair-schemas": repair_schemas_command,
    "consolidate": consolidate_command,
    "quarantine-stats": quarantine_stats_command,
    "validate-file": validate_file_command,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for admin CLI."""
    load_dotenv(find_dotenv(usecwd=True))

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Command {args.command} failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
