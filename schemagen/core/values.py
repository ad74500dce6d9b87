"""JSON value helpers: type names, exact numeric comparison, structural equality."""

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction
from typing import Any, Sequence


NUMBER_TYPES = (int, float, Decimal)


def is_number(value: Any) -> bool:
    return isinstance(value, NUMBER_TYPES) and not isinstance(value, bool)


def is_integral(value: Any) -> bool:
    """True for numbers with no fractional part, regardless of representation."""
    if not is_number(value):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return value.is_finite() and value == value.to_integral_value()


def json_type(value: Any) -> str:
    """Return the JSON type name of a parsed value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "integer" if is_integral(value) else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"{type(value).__name__} is not a JSON value")


def _is_finite(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


def to_fraction(value: Any) -> Fraction:
    """Exact rational value of a JSON number.

    Floats go through ``repr`` so that a float parsed from ``0.0075`` is
    75/10000 rather than its binary approximation.
    """
    if isinstance(value, int):
        return Fraction(value)
    if not _is_finite(value):
        raise ValueError(f"non-finite number {value!r}")
    if isinstance(value, float):
        return Fraction(repr(value))
    return Fraction(value)


def compare_numbers(left: Any, right: Any) -> int:
    # Fraction orders correctly against float infinities
    a = to_fraction(left) if _is_finite(left) else float(left)
    b = to_fraction(right) if _is_finite(right) else float(right)
    return (a > b) - (a < b)


def is_multiple_of(value: Any, divisor: Any) -> bool:
    if not (_is_finite(value) and _is_finite(divisor)):
        return False
    return to_fraction(value) % to_fraction(divisor) == 0


def json_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if is_number(left) and is_number(right):
        return compare_numbers(left, right) == 0
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            json_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(json_equal(value, right[key]) for key, value in left.items())
    if type(left) is not type(right):
        return False
    return left == right


def unique(items: Sequence[Any]) -> bool:
    for i, item in enumerate(items):
        for other in items[i + 1:]:
            if json_equal(item, other):
                return False
    return True
