"""Helper registry and the built-in helper families.

:func:`default_registry` assembles every family once per process and freezes
the result, so template engines can share it read-only. Build a custom
registry with :func:`build_registry` (or ``default_registry().copy()``) to add
project-specific helpers.

Examples
--------
>>> from doc_assembly.helpers import default_registry
>>> registry = default_registry()
>>> registry.frozen, "$currency" in registry
(True, True)
"""

from __future__ import annotations

import functools

from . import core, formatting, iteration, logic, media, numeric, strings
from .registry import (
    BlockCall,
    HelperDefinition,
    HelperFn,
    HelperKind,
    HelperRegistry,
    loop_metadata,
)

FAMILIES = (core, logic, numeric, strings, formatting, iteration, media)


def build_registry() -> HelperRegistry:
    """Return a new, unfrozen registry holding every built-in helper family."""
    registry = HelperRegistry()
    for family in FAMILIES:
        family.register(registry)
    return registry


@functools.lru_cache(maxsize=1)
def default_registry() -> HelperRegistry:
    """Return the shared, frozen registry of built-in helpers."""
    registry = build_registry()
    registry.freeze()
    return registry


__all__ = [
    "BlockCall",
    "HelperDefinition",
    "HelperFn",
    "HelperKind",
    "HelperRegistry",
    "build_registry",
    "default_registry",
    "loop_metadata",
]
