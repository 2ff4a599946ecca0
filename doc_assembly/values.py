"""Coercion rules shared by the template engine and the helper registry.

Templates are written against loosely typed data, so every conversion here
degrades to a safe value instead of raising: non-numeric input becomes ``0``,
``None`` renders as the empty string and missing properties resolve to
``None``.

Examples
--------
>>> stringify(True), stringify(12.0), stringify(None)
('true', '12', '')
>>> to_number(" 4.5 "), to_number("n/a")
(4.5, 0)
"""

from __future__ import annotations

import collections.abc as cabc
import decimal
import math
import typing as typ

from markupsafe import Markup

Number = int | float


def stringify(value: object) -> str:
    """Render ``value`` the way template output expects it."""
    match value:
        case None:
            return ""
        case Markup():
            return value
        case bool():
            return "true" if value else "false"
        case float() if math.isnan(value) or math.isinf(value):
            return "0"
        case float() if value.is_integer():
            return str(int(value))
        case float():
            return repr(value)
        case str():
            return value
        case cabc.Mapping():
            return "[object Object]"
        case list() | tuple():
            return ",".join(stringify(item) for item in value)
        case _:
            return str(value)


def to_number(value: object) -> Number:
    """Coerce ``value`` to a number, returning ``0`` for anything unusable."""
    result: Number = 0
    match value:
        case bool():
            result = int(value)
        case int():
            result = value
        case float():
            result = 0 if math.isnan(value) or math.isinf(value) else value
        case decimal.Decimal():
            result = float(value) if value.is_finite() else 0
        case str():
            text = value.strip().replace(",", "")
            if text:
                try:
                    result = int(text)
                except ValueError:
                    try:
                        parsed = float(text)
                    except ValueError:
                        parsed = 0.0
                    result = 0 if math.isnan(parsed) or math.isinf(parsed) else parsed
    return result


def to_int(value: object) -> int:
    """Coerce ``value`` to an integer via :func:`to_number`."""
    return int(to_number(value))


def is_empty(value: object, *, include_zero: bool = False) -> bool:
    """Return ``True`` when ``value`` counts as falsy inside a template."""
    if value is None or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float) and value == 0:
        return not include_zero
    if isinstance(value, str):
        return value == ""
    if isinstance(value, list | tuple):
        return len(value) == 0
    return False


def is_truthy(value: object) -> bool:
    """Return ``False`` only for ``None``, ``False``, zero, NaN and ``""``.

    Unlike :func:`is_empty`, empty lists and mappings count as truthy.
    """
    match value:
        case None | False:
            return False
        case float() if math.isnan(value):
            return False
        case int() | float():
            return value != 0
        case str():
            return value != ""
        case _:
            return True


def is_blank(value: object) -> bool:
    """Return ``True`` for empty values, empty mappings and whitespace strings."""
    if isinstance(value, cabc.Mapping):
        return len(value) == 0
    if isinstance(value, str):
        return value.strip() == ""
    return is_empty(value)


def get_property(value: object, name: str) -> object:
    """Look up ``name`` on a mapping or sequence, returning ``None`` if absent."""
    if isinstance(value, cabc.Mapping):
        return typ.cast("cabc.Mapping[str, object]", value).get(name)
    if isinstance(value, list | tuple | str):
        if name == "length":
            return len(value)
        if isinstance(value, list | tuple) and name.isdigit():
            index = int(name)
            return value[index] if index < len(value) else None
    return None


def to_builtins(value: object) -> object:
    """Return a JSON-friendly copy of ``value`` built from dicts and lists."""
    if isinstance(value, cabc.Mapping):
        return {str(key): to_builtins(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [to_builtins(item) for item in value]
    if isinstance(value, Markup):
        return str(value)
    return value


__all__ = [
    "Number",
    "get_property",
    "is_blank",
    "is_empty",
    "is_truthy",
    "stringify",
    "to_builtins",
    "to_int",
    "to_number",
]
