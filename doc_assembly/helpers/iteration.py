"""Loop helpers that expose position metadata to their body.

Each iteration passes ``index``, ``number``, ``first``, ``last``, ``odd`` and
``even`` as ``@``-variables, so a body can write ``{{@number}}`` or
``{{#if @last}}``. Non-list input renders the ``{{else}}`` branch.
"""

from __future__ import annotations

import collections.abc as cabc
import re
import typing as typ

from doc_assembly.values import stringify, to_int, to_number

from .registry import BlockCall, HelperKind, HelperRegistry, loop_metadata

NUMERIC_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")

if typ.TYPE_CHECKING:
    from doc_assembly.values import Number


def _iterate(block: BlockCall, items: cabc.Sequence[object]) -> str:
    return "".join(
        block.fn(item, loop_metadata(index, len(items))) for index, item in enumerate(items)
    )


def each_with_index(block: BlockCall, items: object = None, **_hash: object) -> str:
    """Iterate with ``@index``-style keys merged into each item context.

    Scalar items are wrapped as ``{"value": item}`` so the merged keys have a
    mapping to live in.
    """
    if not isinstance(items, list | tuple):
        return block.inverse()
    rendered: list[str] = []
    for index, item in enumerate(items):
        metadata = loop_metadata(index, len(items))
        base = dict(item) if isinstance(item, cabc.Mapping) else {"value": item}
        context = {**base, **{f"@{key}": value for key, value in metadata.items()}}
        rendered.append(block.fn(context, metadata))
    return "".join(rendered)


def times(block: BlockCall, count: object = None, **_hash: object) -> str:
    """Render the body ``count`` times with the loop metadata as context."""
    total = max(to_int(count), 0)
    rendered: list[str] = []
    for index in range(total):
        metadata = loop_metadata(index, total)
        rendered.append(block.fn(metadata, metadata))
    return "".join(rendered)


def range_helper(block: BlockCall, start: object = None, end: object = None, **_hash: object) -> str:
    """Render the body for each integer from ``start`` to ``end`` inclusive."""
    first = to_int(start)
    last = to_int(end)
    total = max(last - first + 1, 0)
    rendered: list[str] = []
    for offset in range(total):
        value = first + offset
        context = {
            "value": value,
            "index": offset,
            "first": value == first,
            "last": value == last,
        }
        rendered.append(block.fn(context, loop_metadata(offset, total)))
    return "".join(rendered)


def limit(block: BlockCall, items: object = None, size: object = None, **_hash: object) -> str:
    """Iterate over the first ``size`` items."""
    if not isinstance(items, list | tuple):
        return block.inverse()
    return _iterate(block, list(items)[: max(to_int(size), 0)])


def offset(block: BlockCall, items: object = None, skip: object = None, **_hash: object) -> str:
    """Iterate over the items after the first ``skip``."""
    if not isinstance(items, list | tuple):
        return block.inverse()
    return _iterate(block, list(items)[max(to_int(skip), 0) :])


def reverse(block: BlockCall, items: object = None, **_hash: object) -> str:
    """Iterate over the items in reverse order."""
    if not isinstance(items, list | tuple):
        return block.inverse()
    return _iterate(block, list(reversed(items)))


def _sort_value(item: object, prop: str | None) -> object:
    if prop and isinstance(item, cabc.Mapping):
        return typ.cast("cabc.Mapping[str, object]", item).get(prop)
    return item


def _is_numeric(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    if not isinstance(value, str):
        return False
    return NUMERIC_PATTERN.match(value.strip().replace(",", "")) is not None


def sort(block: BlockCall, items: object = None, prop: object = None, **_hash: object) -> str:
    """Iterate over the items sorted by ``prop`` (or by the items themselves).

    Keys sort numerically when every key looks like a number and as text
    otherwise; ties keep their original order.
    """
    if not isinstance(items, list | tuple):
        return block.inverse()
    name = stringify(prop) if prop is not None else None
    keys = [_sort_value(item, name) for item in items]
    numeric = all(_is_numeric(key) for key in keys)

    def key_for(position: int) -> tuple[int, Number | str]:
        key = keys[position]
        if numeric:
            return (0, to_number(key))
        return (1 if key is None else 0, stringify(key))

    order = sorted(range(len(items)), key=key_for)
    return _iterate(block, [items[position] for position in order])


def register(registry: HelperRegistry) -> None:
    """Register the iteration helpers on ``registry``."""
    helpers = {
        "eachWithIndex": each_with_index,
        "times": times,
        "range": range_helper,
        "limit": limit,
        "offset": offset,
        "reverse": reverse,
        "sort": sort,
    }
    for name, fn in helpers.items():
        registry.register(name, HelperKind.BLOCK, fn)


__all__ = [
    "each_with_index",
    "limit",
    "offset",
    "range_helper",
    "register",
    "reverse",
    "sort",
    "times",
]
