"""Immutable tree produced by the structured data extractor.

A :class:`DataNode` is a closed variant: a scalar, an ordered list of nodes, or
a named map of nodes. Accessors return ``None`` on a kind mismatch so callers
never have to guard against type errors, and :meth:`DataNode.to_python`
produces a fresh plain copy for template evaluation so the tree itself is never
mutated after extraction.

Example
-------
>>> node = DataNode.from_python({"invoice": {"items": [{"total": "5"}]}})
>>> node.lookup("invoice.items.0.total").as_scalar()
'5'
>>> node.lookup("invoice.missing") is None
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import types
import typing as typ

Scalar = str | int | float | bool


class NodeKind(enum.Enum):
    """Discriminator for :class:`DataNode`."""

    SCALAR = "scalar"
    LIST = "list"
    MAP = "map"


def _empty_fields() -> cabc.Mapping[str, DataNode]:
    return types.MappingProxyType({})


@dc.dataclass(frozen=True, slots=True)
class DataNode:
    """Recursive scalar/list/map value.

    Attributes
    ----------
    kind : NodeKind
        Which variant this node holds.
    scalar : str | int | float | bool | None
        Payload for ``SCALAR`` nodes.
    items : tuple[DataNode, ...]
        Children of ``LIST`` nodes in source order.
    fields : Mapping[str, DataNode]
        Read-only children of ``MAP`` nodes keyed by unique names.
    """

    kind: NodeKind
    scalar: Scalar | None = None
    items: tuple[DataNode, ...] = ()
    fields: cabc.Mapping[str, DataNode] = dc.field(default_factory=_empty_fields)

    @classmethod
    def of_scalar(cls, value: Scalar) -> DataNode:
        """Wrap a scalar value."""
        return cls(NodeKind.SCALAR, scalar=value)

    @classmethod
    def of_list(cls, items: cabc.Iterable[DataNode]) -> DataNode:
        """Wrap an ordered sequence of nodes."""
        return cls(NodeKind.LIST, items=tuple(items))

    @classmethod
    def of_map(cls, fields: cabc.Mapping[str, DataNode]) -> DataNode:
        """Wrap a mapping of nodes; the mapping is copied and frozen."""
        return cls(NodeKind.MAP, fields=types.MappingProxyType(dict(fields)))

    @classmethod
    def empty(cls) -> DataNode:
        """Return an empty map node."""
        return cls(NodeKind.MAP)

    @classmethod
    def from_python(cls, value: object) -> DataNode:
        """Build a tree from plain dicts, lists and scalars.

        ``None`` becomes the empty string so the tree stays within the closed
        variant; unknown objects are stored by their ``str`` form.
        """
        if isinstance(value, DataNode):
            return value
        if isinstance(value, cabc.Mapping):
            return cls.of_map(
                {str(key): cls.from_python(item) for key, item in value.items()}
            )
        if isinstance(value, list | tuple):
            return cls.of_list(cls.from_python(item) for item in value)
        if value is None:
            return cls.of_scalar("")
        if isinstance(value, str | int | float | bool):
            return cls.of_scalar(value)
        return cls.of_scalar(str(value))

    def as_scalar(self) -> Scalar | None:
        """Return the scalar payload or ``None`` for lists and maps."""
        return self.scalar if self.kind is NodeKind.SCALAR else None

    def as_list(self) -> tuple[DataNode, ...] | None:
        """Return the list children or ``None`` for scalars and maps."""
        return self.items if self.kind is NodeKind.LIST else None

    def as_map(self) -> cabc.Mapping[str, DataNode] | None:
        """Return the map children or ``None`` for scalars and lists."""
        return self.fields if self.kind is NodeKind.MAP else None

    def get(self, key: str) -> DataNode | None:
        """Return a map child or list element addressed by ``key``."""
        match self.kind:
            case NodeKind.MAP:
                return self.fields.get(key)
            case NodeKind.LIST if key.isdigit():
                index = int(key)
                return self.items[index] if index < len(self.items) else None
            case _:
                return None

    def lookup(self, path: str | cabc.Sequence[str]) -> DataNode | None:
        """Follow a dotted path (or pre-split segments) through the tree."""
        segments = path.split(".") if isinstance(path, str) else path
        node: DataNode | None = self
        for segment in segments:
            if node is None:
                return None
            node = node.get(segment)
        return node

    def is_empty(self) -> bool:
        """Return ``True`` for empty maps and lists."""
        match self.kind:
            case NodeKind.MAP:
                return not self.fields
            case NodeKind.LIST:
                return not self.items
            case _:
                return False

    def depth(self) -> int:
        """Return the number of nested container levels below this node."""
        children: cabc.Iterable[DataNode]
        match self.kind:
            case NodeKind.MAP:
                children = self.fields.values()
            case NodeKind.LIST:
                children = self.items
            case _:
                return 0
        nested = [child.depth() + 1 for child in children if child.kind is not NodeKind.SCALAR]
        return max(nested, default=0)

    def to_python(self) -> typ.Any:  # noqa: ANN401 - mirrors the closed variant
        """Return a fresh plain ``dict``/``list``/scalar copy of the tree."""
        match self.kind:
            case NodeKind.MAP:
                return {key: child.to_python() for key, child in self.fields.items()}
            case NodeKind.LIST:
                return [child.to_python() for child in self.items]
            case _:
                return self.scalar


__all__ = ["DataNode", "NodeKind", "Scalar"]
