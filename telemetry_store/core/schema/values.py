"""
Classification of dynamically typed telemetry values.

Every attribute value is mapped onto a closed set of kinds before any
schema decision is made, and textual values are parsed with fallible
parsers that return None instead of raising.
"""

import math
import re
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from telemetry_store.core.models.column_schema import ColumnType

# Largest integer a double represents exactly (2**53 - 1)
MAX_SAFE_INTEGER = 9007199254740991

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


class ValueKind(str, Enum):
    """Kind of a raw attribute value."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"


def classify_value(value: Any) -> ValueKind:
    """
    Map a raw value onto its kind.

    bool is checked before int because bool is an int subclass.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (Mapping, list, tuple)):
        return ValueKind.OBJECT
    return ValueKind.STRING


def parse_number(text: str) -> float | None:
    """
    Parse a finite decimal number.

    Returns None for empty strings, non-numeric text, NaN and infinities.
    """
    text = text.strip()
    if not _NUMBER_PATTERN.match(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def parse_boolean(text: str) -> bool | None:
    """Parse exactly 'true' or 'false' (surrounding whitespace ignored)."""
    text = text.strip()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def is_safe_integer(value: int) -> bool:
    """Whether an integer converts to a double without losing precision."""
    return -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER


def content_kind(value: Any) -> ValueKind:
    """
    Kind a value exhibits once stringified and trimmed.

    Numbers stay numbers (non-finite floats count as text), booleans stay
    booleans, and strings are sniffed for 'true'/'false' or a finite number.
    """
    kind = classify_value(value)

    # Unsafe integers are written as text, so judge them as text
    if kind == ValueKind.INTEGER and not is_safe_integer(value):
        return content_kind(str(value))

    if kind == ValueKind.NUMBER:
        return ValueKind.NUMBER if math.isfinite(value) else ValueKind.STRING

    if kind == ValueKind.STRING:
        text = value if isinstance(value, str) else str(value)
        if parse_boolean(text) is not None:
            return ValueKind.BOOLEAN
        if parse_number(text) is not None:
            return ValueKind.NUMBER
        return ValueKind.STRING

    return kind


def resolve_by_content(values: Iterable[Any]) -> ColumnType | None:
    """
    Decide a column type from observed values alone.

    Args:
        values: Raw values of one attribute (nulls are ignored)

    Returns:
        BOOLEAN if every value is a boolean, DOUBLE if every value is a
        finite number, UTF8 if any value is neither, None if there were no
        non-null values
    """
    all_boolean = True
    all_numeric = True
    seen = False

    for value in values:
        if value is None:
            continue
        seen = True
        kind = content_kind(value)
        if kind == ValueKind.BOOLEAN:
            all_numeric = False
        elif kind in (ValueKind.NUMBER, ValueKind.INTEGER):
            all_boolean = False
        else:
            return ColumnType.UTF8

    if not seen:
        return None
    if all_numeric:
        return ColumnType.DOUBLE
    if all_boolean:
        return ColumnType.BOOLEAN
    return ColumnType.UTF8
