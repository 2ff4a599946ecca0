"""Advisory structure checks for template source.

These checks are heuristics: they count delimiters instead of parsing, so they
also run on templates the parser would reject. Every finding is a warning;
blocking problems are reported by :func:`doc_assembly.templating.parser.parse`.

Examples
--------
>>> [d.code for d in validate_template("<div>{{#if a}}x</div>")]
['UNBALANCED_BLOCKS']
>>> validate_template("<p>{{name}}</p><br/>")
[]
"""

from __future__ import annotations

import re

from doc_assembly.errors import Diagnostic

OPEN_BRACES = re.compile(r"\{\{")
CLOSE_BRACES = re.compile(r"\}\}")
OPEN_BLOCKS = re.compile(r"\{\{~?#\w+")
CLOSE_BLOCKS = re.compile(r"\{\{~?/\w+")
CHECKED_TAGS = ("div", "span", "p", "table", "tr", "td", "th")


def _tag_counts(source: str, tag: str) -> tuple[int, int]:
    opening = re.findall(rf"<{tag}(?:\s[^>]*)?>", source, flags=re.IGNORECASE)
    opened = sum(1 for match in opening if not match.endswith("/>"))
    closed = len(re.findall(rf"</{tag}\s*>", source, flags=re.IGNORECASE))
    return opened, closed


def validate_template(source: str, region: str | None = None) -> list[Diagnostic]:
    """Return advisory warnings about delimiter, block and HTML tag balance.

    Parameters
    ----------
    source : str
        Template text.
    region : str, optional
        Region name recorded as each diagnostic's ``path``.
    """
    diagnostics: list[Diagnostic] = []

    opened = len(OPEN_BRACES.findall(source))
    closed = len(CLOSE_BRACES.findall(source))
    if opened != closed:
        diagnostics.append(
            Diagnostic(
                code="UNBALANCED_BRACES",
                message=f"Unbalanced braces: {opened} opening, {closed} closing",
                path=region,
            )
        )

    opened = len(OPEN_BLOCKS.findall(source))
    closed = len(CLOSE_BLOCKS.findall(source))
    if opened != closed:
        diagnostics.append(
            Diagnostic(
                code="UNBALANCED_BLOCKS",
                message=f"Unbalanced blocks: {opened} opening, {closed} closing",
                path=region,
            )
        )

    unclosed = [
        tag
        for tag in CHECKED_TAGS
        if (counts := _tag_counts(source, tag))[0] != counts[1]
    ]
    if unclosed:
        diagnostics.append(
            Diagnostic(
                code="UNCLOSED_HTML_TAGS",
                message=f"Potentially unclosed HTML tags: {', '.join(unclosed)}",
                path=region,
            )
        )
    return diagnostics


__all__ = ["validate_template"]
