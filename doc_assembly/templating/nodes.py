"""Syntax tree produced by :mod:`doc_assembly.templating.parser`."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(frozen=True, slots=True)
class PathExpr:
    """A reference into the current context or the ``@``-data frame.

    Attributes
    ----------
    parts : tuple[str, ...]
        Property names to follow; empty for ``this``.
    depth : int
        Number of ``../`` steps towards enclosing contexts.
    data : bool
        ``True`` for ``@``-variables such as ``@index`` or ``@root``.
    scoped : bool
        ``True`` when the path starts with ``this``, ``./`` or ``../`` and can
        therefore never name a helper.
    original : str
        Source text, used in diagnostics and block-name matching.
    """

    parts: tuple[str, ...]
    depth: int = 0
    data: bool = False
    scoped: bool = False
    original: str = ""

    @property
    def helper_name(self) -> str | None:
        """Return the name a helper lookup would use, if this path can be one."""
        if self.data or self.scoped or self.depth or len(self.parts) != 1:
            return None
        return self.parts[0]


@dc.dataclass(frozen=True, slots=True)
class Literal:
    """A string, number, boolean or null literal."""

    value: str | int | float | bool | None


@dc.dataclass(frozen=True, slots=True)
class Call:
    """A head expression with positional and ``key=value`` arguments.

    Used both for mustache contents and for parenthesised subexpressions.
    """

    head: Expr
    params: tuple[Expr, ...] = ()
    hash: tuple[tuple[str, Expr], ...] = ()

    @property
    def has_arguments(self) -> bool:
        """Return ``True`` when any positional or hash argument is present."""
        return bool(self.params or self.hash)


Expr = PathExpr | Literal | Call


@dc.dataclass(frozen=True, slots=True)
class TextNode:
    """Literal template text."""

    text: str


@dc.dataclass(frozen=True, slots=True)
class MustacheNode:
    """An output tag such as ``{{name}}`` or ``{{{html}}}``."""

    call: Call
    escaped: bool = True
    line: int = 1
    column: int = 1


@dc.dataclass(frozen=True, slots=True)
class BlockNode:
    """A ``{{#name}}`` or ``{{^name}}`` section with optional ``{{else}}`` branch."""

    call: Call
    program: Program
    inverse: Program | None = None
    inverted: bool = False
    line: int = 1
    column: int = 1


@dc.dataclass(frozen=True, slots=True)
class Program:
    """An ordered sequence of template nodes."""

    nodes: tuple[Node, ...] = ()


Node = TextNode | MustacheNode | BlockNode

__all__ = [
    "BlockNode",
    "Call",
    "Expr",
    "Literal",
    "MustacheNode",
    "Node",
    "PathExpr",
    "Program",
    "TextNode",
]
