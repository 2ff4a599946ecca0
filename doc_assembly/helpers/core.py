"""Core block helpers every template relies on: ``if``, ``unless``, ``with`` and ``each``."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from loguru import logger

from doc_assembly.values import get_property, is_empty, is_truthy, stringify

from .registry import BlockCall, HelperKind, HelperRegistry, loop_metadata


def if_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body when ``value`` is non-empty (``includeZero`` keeps ``0``)."""
    include_zero = is_truthy(block.hash.get("includeZero"))
    if is_empty(value, include_zero=include_zero):
        return block.inverse()
    return block.fn()


def unless_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body when ``value`` is empty."""
    include_zero = is_truthy(block.hash.get("includeZero"))
    if is_empty(value, include_zero=include_zero):
        return block.fn()
    return block.inverse()


def with_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body with ``value`` as the new context."""
    if is_empty(value):
        return block.inverse()
    return block.fn(value)


def each_helper(block: BlockCall, value: object = None, **_hash: object) -> str:
    """Render the body once per list item or mapping entry."""
    if isinstance(value, cabc.Mapping):
        entries = list(typ.cast("cabc.Mapping[str, object]", value).items())
        if not entries:
            return block.inverse()
        return "".join(
            block.fn(item, {**loop_metadata(index, len(entries)), "key": key})
            for index, (key, item) in enumerate(entries)
        )
    if isinstance(value, list | tuple) and value:
        return "".join(
            block.fn(item, loop_metadata(index, len(value)))
            for index, item in enumerate(value)
        )
    return block.inverse()


def lookup_helper(target: object = None, key: object = None) -> object:
    """Return ``target[key]`` for a dynamically computed ``key``."""
    return get_property(target, stringify(key))


def log_helper(*values: object, **_hash: object) -> str:
    """Write the arguments to the log and render nothing."""
    logger.info("Template log: {}", " ".join(stringify(value) for value in values))
    return ""


def register(registry: HelperRegistry) -> None:
    """Register the built-in helpers on ``registry``."""
    registry.register("if", HelperKind.BLOCK, if_helper)
    registry.register("unless", HelperKind.BLOCK, unless_helper)
    registry.register("with", HelperKind.BLOCK, with_helper)
    registry.register("each", HelperKind.BLOCK, each_helper)
    registry.register("lookup", HelperKind.VALUE, lookup_helper)
    registry.register("log", HelperKind.VALUE, log_helper)


__all__ = [
    "each_helper",
    "if_helper",
    "log_helper",
    "lookup_helper",
    "register",
    "unless_helper",
    "with_helper",
]
