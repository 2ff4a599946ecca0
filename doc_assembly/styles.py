"""Resolve style symbols and scope selectors to the preview container.

Style sources use a small SCSS-like vocabulary: ``$name: value;`` declares a
symbol and ``$name`` references one. :func:`resolve` turns such a source into
plain CSS, and :func:`scope` confines the result to one container element so
document styles cannot leak into the host page.

Examples
--------
>>> resolve("$primary: red;\\n.title { color: $primary; }").css
'.title { color: #6A77D8; }'
>>> scope(".row { margin: 0; }\\nbody { font: 12px serif; }")
'.document-preview-content .row { margin: 0; }\\n.document-preview-content { font: 12px serif; }'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import types

from loguru import logger

from doc_assembly._constants import CONTAINER_SELECTOR
from doc_assembly.errors import Diagnostic, Severity

DEFAULT_SYMBOLS: cabc.Mapping[str, str] = types.MappingProxyType(
    {
        "primary": "#6A77D8",
        "secondary": "#139ACE",
        "darken": "#444",
        "grey": "#444",
    }
)

SYMBOL_DECLARATION = re.compile(r"\$[\w-]+\s*:\s*[^;]+;")
SYMBOL_REFERENCE = re.compile(r"\$(?P<name>[A-Za-z_][\w-]*)")
PROPERTY_DECLARATION = re.compile(r"[^;{}]+(?:;|(?=}))")
BLANK_LINE_RUN = re.compile(r"\n\s*\n\s*\n")
LEADING_WS = re.compile(r"\s+")


@dc.dataclass(frozen=True, slots=True)
class CompiledStyle:
    """Plain CSS produced by :func:`resolve`.

    Attributes
    ----------
    css : str
        Stylesheet with every resolvable symbol substituted.
    unresolved : tuple[str, ...]
        Referenced symbol names missing from the symbol table, in order of
        first use.
    diagnostics : tuple[Diagnostic, ...]
        One ``UNRESOLVED_SYMBOL`` warning per unresolved name.
    """

    css: str
    unresolved: tuple[str, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()

    def scoped(self, container: str = CONTAINER_SELECTOR) -> str:
        """Return :attr:`css` scoped to ``container``."""
        return scope(self.css, container)


def _normalise(symbols: cabc.Mapping[str, object]) -> dict[str, str]:
    return {name.removeprefix("$"): str(value) for name, value in symbols.items()}


def _unresolved_names(text: str, table: cabc.Mapping[str, str]) -> list[str]:
    names: dict[str, None] = {}
    for match in SYMBOL_REFERENCE.finditer(text):
        if match["name"] not in table:
            names.setdefault(match["name"])
    return list(names)


def _drop_unresolved_declarations(text: str, table: cabc.Mapping[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        return "" if _unresolved_names(match[0], table) else match[0]

    return PROPERTY_DECLARATION.sub(replace, text)


def resolve(
    style_source: str,
    symbols: cabc.Mapping[str, object] | None = None,
    *,
    strict: bool = False,
) -> CompiledStyle:
    """Substitute style symbols in ``style_source``.

    Parameters
    ----------
    style_source : str
        Source text with ``$name: value;`` declarations and ``$name``
        references.
    symbols : Mapping[str, object], optional
        Symbol table; keys may carry the leading ``$``. Defaults to
        :data:`DEFAULT_SYMBOLS`.
    strict : bool, default False
        Drop declarations referencing unresolved symbols instead of leaving
        the reference in place as literal text.

    Returns
    -------
    CompiledStyle
        The resolved stylesheet and any unresolved-symbol warnings.

    Notes
    -----
    References match whole tokens: ``$primary`` is never substituted inside
    ``$primary-dark``.
    """
    if not style_source:
        return CompiledStyle(css="")
    table = _normalise(DEFAULT_SYMBOLS if symbols is None else symbols)

    text = SYMBOL_DECLARATION.sub("", style_source)
    unresolved = _unresolved_names(text, table)
    if strict and unresolved:
        text = _drop_unresolved_declarations(text, table)

    def substitute(match: re.Match[str]) -> str:
        return table.get(match["name"], match[0])

    text = SYMBOL_REFERENCE.sub(substitute, text)
    text = BLANK_LINE_RUN.sub("\n\n", text).strip()

    diagnostics = tuple(
        Diagnostic(
            code="UNRESOLVED_SYMBOL",
            message=f"Style symbol '${name}' is not defined",
            severity=Severity.WARNING,
            path=f"${name}",
            suggestion="Add the symbol to the symbol table",
        )
        for name in unresolved
    )
    for name in unresolved:
        logger.warning("Unresolved style symbol ${}", name)
    return CompiledStyle(css=text, unresolved=tuple(unresolved), diagnostics=diagnostics)


def _block_end(css: str, open_index: int) -> int:
    """Return the index just past the ``}`` matching ``css[open_index]``."""
    depth = 0
    index = open_index
    while index < len(css):
        if css.startswith("/*", index):
            close = css.find("*/", index + 2)
            index = len(css) if close < 0 else close + 2
            continue
        char = css[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return len(css)


def _at_rule_end(css: str, start: int) -> int:
    semicolon = css.find(";", start)
    brace = css.find("{", start)
    if brace < 0 and semicolon < 0:
        return len(css)
    if brace < 0 or 0 <= semicolon < brace:
        return semicolon + 1
    return _block_end(css, brace)


def _split_selector_list(selector: str) -> list[str]:
    members: list[str] = []
    depth = 0
    current: list[str] = []
    for char in selector:
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        if char == "," and depth == 0:
            members.append("".join(current))
            current = []
            continue
        current.append(char)
    members.append("".join(current))
    return members


def _scope_member(member: str, container: str) -> str:
    if container in member:
        return member
    if member == "body":
        return container
    return f"{container} {member}"


def _scope_selector(selector: str, container: str) -> str:
    body = selector.strip()
    if not body:
        return selector
    lead = selector[: len(selector) - len(selector.lstrip())]
    trail = selector[len(selector.rstrip()) :]
    members = [member.strip() for member in _split_selector_list(body)]
    return lead + ", ".join(_scope_member(member, container) for member in members) + trail


def scope(css: str, container: str = CONTAINER_SELECTOR) -> str:
    """Prefix every top-level selector in ``css`` with ``container``.

    ``body`` is replaced by the container itself. Selectors already naming
    the container are kept. At-rules (``@media``, ``@import``,
    ``@keyframes``, ...) and comments are copied unchanged, as is the
    whitespace between rules.
    """
    if not css:
        return ""
    parts: list[str] = []
    index = 0
    while index < len(css):
        whitespace = LEADING_WS.match(css, index)
        if whitespace is not None:
            parts.append(whitespace[0])
            index = whitespace.end()
            continue
        if css.startswith("/*", index):
            close = css.find("*/", index + 2)
            end = len(css) if close < 0 else close + 2
        elif css[index] == "@":
            end = _at_rule_end(css, index)
        else:
            brace = css.find("{", index)
            if brace < 0:
                parts.append(css[index:])
                break
            end = _block_end(css, brace)
            parts.append(_scope_selector(css[index:brace], container))
            parts.append(css[brace:end])
            index = end
            continue
        parts.append(css[index:end])
        index = end
    return "".join(parts)


__all__ = ["DEFAULT_SYMBOLS", "CompiledStyle", "resolve", "scope"]
