"""
On-disk layout of the telemetry store.

<root>/<context-dir>/<telemetry/path/segments>/
    <prefix>_<YYYY-MM-DDTHHMMSS>.parquet        interval files
    <prefix>_<YYYY-MM-DD>_consolidated.parquet   consolidated files
    processed/ quarantine/ failed/ repaired/     archives
"""

import re
from datetime import date, datetime, timezone
from pathlib import Path

PARQUET_EXTENSION = ".parquet"
DATA_EXTENSIONS = (".parquet", ".json", ".jsonl")
CONSOLIDATED_MARKER = "_consolidated"

PROCESSED_DIR = "processed"
QUARANTINE_DIR = "quarantine"
FAILED_DIR = "failed"
REPAIRED_DIR = "repaired"
QUARANTINE_LOG = "quarantine.log"

# Directories no walk ever descends into
ARCHIVE_DIRECTORIES = frozenset({
    PROCESSED_DIR,
    QUARANTINE_DIR,
    FAILED_DIR,
    REPAIRED_DIR,
    "claude-schemas",
})

# Top-level context kinds that start a context directory
CONTEXT_ROOTS = ("vessels", "meteo", "aircraft", "aton", "sar", "shore")

_INTERVAL_DATE = re.compile(r"_(\d{4})-(\d{2})-(\d{2})T\d{4,6}\.[A-Za-z]+$")


def _clean_segment(text: str) -> str:
    return text.replace(":", "_")


def context_directory(context: str, self_context: str = "vessels.self") -> Path:
    """
    Relative directory for a context.

    vessels.self resolves to the configured self context first.
    """
    if context == "vessels.self":
        context = self_context

    for root in ("vessels", "meteo"):
        prefix = f"{root}."
        if context.startswith(prefix):
            return Path(root) / _clean_segment(context[len(prefix):])

    return Path(*_clean_segment(context).split("."))


def telemetry_directory(root: str | Path, context: str, path: str, self_context: str = "vessels.self") -> Path:
    """Leaf directory holding the data files of one context:path pair."""
    return Path(root) / context_directory(context, self_context) / Path(*path.split("."))


def compact_timestamp(moment: datetime) -> str:
    """YYYY-MM-DDTHHMMSS in UTC."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H%M%S")


def interval_file_name(prefix: str, moment: datetime, extension: str = PARQUET_EXTENSION) -> str:
    return f"{prefix}_{compact_timestamp(moment)}{extension}"


def interval_file_path(
    root: str | Path,
    context: str,
    path: str,
    prefix: str,
    moment: datetime | None = None,
    self_context: str = "vessels.self",
) -> Path:
    """Destination of the next interval file for a context:path pair."""
    moment = moment or datetime.now(timezone.utc)
    directory = telemetry_directory(root, context, path, self_context)
    return directory / interval_file_name(prefix, moment)


def consolidated_file_name(prefix: str, day: date) -> str:
    return f"{prefix}_{day.isoformat()}{CONSOLIDATED_MARKER}{PARQUET_EXTENSION}"


def is_consolidated_file(path: str | Path) -> bool:
    return CONSOLIDATED_MARKER in Path(path).name


def is_data_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in DATA_EXTENSIONS


def interval_file_date(path: str | Path) -> date | None:
    """UTC day embedded in an interval file name, or None."""
    match = _INTERVAL_DATE.search(Path(path).name)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def archive_directory(path: str | Path, kind: str) -> Path:
    """Archive directory that sits beside a data file."""
    return Path(path).parent / kind


def walk_data_directories(root: str | Path):
    """
    Yield (directory, file paths) for every directory below root.

    Archive directories are pruned; files are returned sorted by name.
    """
    root = Path(root)
    if not root.is_dir():
        return

    pending = [root]
    while pending:
        directory = pending.pop()
        files = []
        subdirectories = []
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                if entry.name not in ARCHIVE_DIRECTORIES:
                    subdirectories.append(entry)
            elif entry.is_file():
                files.append(entry)
        yield directory, files
        pending.extend(reversed(subdirectories))


def telemetry_path_from_file(path: str | Path, prefix: str = "signalk_data") -> str:
    """
    Recover the dotted telemetry path of a data file from its directory.

    <...>/vessels/<id>/navigation/speedOverGround/<prefix>_... gives
    navigation.speedOverGround. Archive directories between the telemetry
    directory and the file are ignored. Returns an empty string when the
    file does not follow the prefix convention or no context root is found.
    """
    path = Path(path)
    if not path.name.startswith(f"{prefix}_"):
        return ""

    directories = [part for part in path.parent.parts if part not in ARCHIVE_DIRECTORIES]
    for index in range(len(directories) - 1, -1, -1):
        if directories[index] in CONTEXT_ROOTS:
            segments = directories[index + 2:]
            return ".".join(segments)
    return ""


def context_label(path: str | Path, root: str | Path) -> str | None:
    """Context directory of a data file relative to root, e.g. vessels/<id>."""
    parts = Path(path).relative_to(root).parts
    for index, part in enumerate(parts[:-2]):
        if part in CONTEXT_ROOTS:
            return f"{part}/{parts[index + 1]}"
    return None
