"""Comparison and conditional helpers.

Block helpers in this module (``ifEquals``, ``or``, ``isEmpty`` ...) choose
between the body and the ``{{else}}`` branch. Value helpers (``gt``, ``eq`` ...)
return booleans so they can be nested as subexpressions, for example
``{{#if (gt total 100)}}``.
"""

from __future__ import annotations

import msgspec
from loguru import logger

from doc_assembly.values import is_blank, is_truthy, to_builtins, to_number

from .registry import BlockCall, HelperKind, HelperRegistry


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def loose_equals(left: object, right: object) -> bool:
    """Compare two values the way a loosely typed template expects.

    Examples
    --------
    >>> loose_equals("5", 5), loose_equals("a", "b"), loose_equals(None, "")
    (True, False, False)
    """
    if left is None or right is None:
        return left is None and right is None
    if _is_number(left) or _is_number(right) or isinstance(left, bool) or isinstance(right, bool):
        return to_number(left) == to_number(right)
    return left == right


def strict_equals(left: object, right: object) -> bool:
    """Compare two values without type coercion."""
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def if_equals(block: BlockCall, left: object = None, right: object = None, **_hash: object) -> str:
    """Render the body when the two arguments are loosely equal."""
    return block.fn() if loose_equals(left, right) else block.inverse()


def if_not_equals(
    block: BlockCall, left: object = None, right: object = None, **_hash: object
) -> str:
    """Render the body when the two arguments differ."""
    return block.inverse() if loose_equals(left, right) else block.fn()


def or_helper(block: BlockCall, *values: object, **_hash: object) -> str:
    """Render the body when any argument is truthy."""
    return block.fn() if any(is_truthy(value) for value in values) else block.inverse()


def and_helper(block: BlockCall, *values: object, **_hash: object) -> str:
    """Render the body when every argument is truthy."""
    return block.fn() if all(is_truthy(value) for value in values) else block.inverse()


def not_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body when the argument is falsy."""
    return block.inverse() if is_truthy(value) else block.fn()


def is_empty_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body for ``None``, blank strings and empty collections."""
    return block.fn() if is_blank(value) else block.inverse()


def is_not_empty_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body unless the argument is empty."""
    return block.inverse() if is_blank(value) else block.fn()


def default_helper(value: object = None, fallback: object = None) -> object:
    """Return ``value`` when truthy, otherwise ``fallback``."""
    return value if is_truthy(value) else fallback


def json_helper(value: object = None) -> str:
    """Return ``value`` as indented JSON."""
    encoded = msgspec.json.encode(to_builtins(value))
    return msgspec.json.format(encoded, indent=2).decode("utf-8")


def debug_helper(value: object = None, **_hash: object) -> str:
    """Log ``value`` and render nothing."""
    logger.debug("Template debug: {!r}", value)
    return ""


def register(registry: HelperRegistry) -> None:
    """Register the comparison and conditional helpers on ``registry``."""
    block_helpers = {
        "ifEquals": if_equals,
        "ifNotEquals": if_not_equals,
        "or": or_helper,
        "and": and_helper,
        "not": not_helper,
        "isEmpty": is_empty_helper,
        "isNotEmpty": is_not_empty_helper,
    }
    for name, fn in block_helpers.items():
        registry.register(name, HelperKind.BLOCK, fn)

    value_helpers = {
        "gt": lambda left=None, right=None: to_number(left) > to_number(right),
        "gte": lambda left=None, right=None: to_number(left) >= to_number(right),
        "lt": lambda left=None, right=None: to_number(left) < to_number(right),
        "lte": lambda left=None, right=None: to_number(left) <= to_number(right),
        "eq": lambda left=None, right=None: strict_equals(left, right),
        "ne": lambda left=None, right=None: not strict_equals(left, right),
        "default": default_helper,
        "json": json_helper,
        "debug": debug_helper,
    }
    for name, fn in value_helpers.items():
        registry.register(name, HelperKind.VALUE, fn)


__all__ = [
    "and_helper",
    "debug_helper",
    "default_helper",
    "if_equals",
    "if_not_equals",
    "is_empty_helper",
    "is_not_empty_helper",
    "json_helper",
    "loose_equals",
    "not_helper",
    "or_helper",
    "register",
    "strict_equals",
]
