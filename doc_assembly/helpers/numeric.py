"""Arithmetic helpers.

Every operand passes through :func:`doc_assembly.values.to_number`, so
non-numeric input counts as ``0`` and division or modulo by zero yields ``0``
instead of raising.

Examples
--------
>>> add("2", 3), divide(1, 0), modulo(-7, 3)
(5, 0, -1)
>>> round_half_up(2.5, 0), percentage(1, 3)
(3.0, '33.3%')
"""

from __future__ import annotations

import decimal
import math

from doc_assembly.values import Number, to_int, to_number

from .registry import HelperKind, HelperRegistry


def round_half_up(value: object, decimals: object = 2) -> float:
    """Round ``value`` to ``decimals`` places, halves away from zero."""
    places = max(to_int(decimals), 0)
    quantum = decimal.Decimal(1).scaleb(-places)
    rounded = decimal.Decimal(repr(to_number(value))).quantize(
        quantum, rounding=decimal.ROUND_HALF_UP
    )
    return float(rounded)


def add(left: object = None, right: object = None) -> Number:
    """Return ``left + right``."""
    return to_number(left) + to_number(right)


def subtract(left: object = None, right: object = None) -> Number:
    """Return ``left - right``."""
    return to_number(left) - to_number(right)


def multiply(left: object = None, right: object = None) -> Number:
    """Return ``left * right``."""
    return to_number(left) * to_number(right)


def divide(left: object = None, right: object = None) -> Number:
    """Return ``left / right`` or ``0`` when ``right`` is zero."""
    divisor = to_number(right)
    if divisor == 0:
        return 0
    return to_number(left) / divisor


def modulo(left: object = None, right: object = None) -> Number:
    """Return the truncated remainder, keeping the sign of ``left``."""
    divisor = to_number(right)
    if divisor == 0:
        return 0
    dividend = to_number(left)
    remainder = math.fmod(dividend, divisor)
    if isinstance(dividend, int) and isinstance(divisor, int):
        return int(remainder)
    return remainder


def percentage(value: object = None, total: object = None, decimals: object = 1) -> str:
    """Return ``value`` as a percentage of ``total`` with fixed decimals."""
    whole = to_number(total)
    if whole == 0:
        return "0%"
    percent = to_number(value) / whole * 100
    return f"{round_half_up(percent, decimals):.{max(to_int(decimals), 0)}f}%"


def ceil(value: object = None) -> int:
    """Round up to the nearest integer."""
    return math.ceil(to_number(value))


def floor(value: object = None) -> int:
    """Round down to the nearest integer."""
    return math.floor(to_number(value))


def absolute(value: object = None) -> Number:
    """Return the absolute value."""
    return abs(to_number(value))


def maximum(*values: object) -> Number:
    """Return the largest argument, or ``0`` without arguments."""
    return max((to_number(value) for value in values), default=0)


def minimum(*values: object) -> Number:
    """Return the smallest argument, or ``0`` without arguments."""
    return min((to_number(value) for value in values), default=0)


def register(registry: HelperRegistry) -> None:
    """Register the arithmetic helpers on ``registry``."""
    helpers = {
        "add": add,
        "subtract": subtract,
        "multiply": multiply,
        "divide": divide,
        "modulo": modulo,
        "percentage": percentage,
        "round": round_half_up,
        "ceil": ceil,
        "floor": floor,
        "abs": absolute,
        "max": maximum,
        "min": minimum,
    }
    for name, fn in helpers.items():
        registry.register(name, HelperKind.VALUE, fn)


__all__ = [
    "absolute",
    "add",
    "ceil",
    "divide",
    "floor",
    "maximum",
    "minimum",
    "modulo",
    "multiply",
    "percentage",
    "register",
    "round_half_up",
    "subtract",
]
