"""
Shared value helpers for the Dynaform core.

Comparison and coercion rules used by the condition evaluator, plus
date parsing for date inputs.
"""

import math
from datetime import date, datetime
from typing import Any

from dateutil import parser as dateutil_parser


def parse_date(value: str) -> date | None:
    """Parse a date string into a date object.

    Supports ISO 8601 formats (YYYY-MM-DD) and datetime strings.
    Returns None if the value cannot be parsed.

    Args:
        value: The date string to parse.

    Returns:
        A date object, or None if parsing fails.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = dateutil_parser.parse(value)
        # If the input is a datetime, extract just the date part
        if isinstance(parsed, datetime):
            return parsed.date()
        return parsed
    except (ValueError, TypeError, OverflowError):
        return None


def is_number(value: Any) -> bool:
    """True for int/float values, excluding booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> float:
    """Coerce a value to float for ordered comparisons.

    Booleans become 1.0/0.0 and numeric strings are parsed. None and
    blank strings count as 0.0, so an empty field still compares.
    Unparseable strings, containers and other objects become NaN, which
    fails every comparison.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality with no coercion.

    Booleans never equal numbers, numbers compare by value (1 == 1.0),
    everything else must share a type and compare equal.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if left is None or right is None:
        return left is None and right is None
    if type(left) is not type(right):
        return False
    return left == right


def values_equal(left: Any, right: Any) -> bool:
    """Equality used by the equals/not_equals operators.

    Strict equality plus one coercion: a numeric string equals the number
    it parses to, so text inputs can match numeric rule values.
    """
    if strict_equals(left, right):
        return True
    if is_number(left) and isinstance(right, str):
        return _numeric_string_equals(right, left)
    if is_number(right) and isinstance(left, str):
        return _numeric_string_equals(left, right)
    return False


def _numeric_string_equals(text: str, number: int | float) -> bool:
    if not text.strip():
        return False
    parsed = to_number(text)
    if math.isnan(parsed):
        return False
    return parsed == number


def is_empty_value(value: Any) -> bool:
    """A value is empty if it is None, an empty string, or an empty list."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False
