"""Validation passes run before and after markup extraction.

Pre-validation rejects input the extractor cannot safely scan; those findings
are ``CRITICAL`` and stop extraction. Post-parse validation only produces
advisory ``WARNING``/``INFO`` diagnostics about the extracted tree.
"""

from __future__ import annotations

import re
import typing as typ

from doc_assembly._constants import (
    ALTERNATE_KEY_PREFIX,
    MAX_FIELD_NAME_LENGTH,
    MAX_MARKUP_BYTES,
    MAX_NESTING_DEPTH,
)
from doc_assembly.errors import Diagnostic, Severity

from .nodes import DataNode, NodeKind

if typ.TYPE_CHECKING:
    import collections.abc as cabc

CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
OPEN_TAG_PATTERN = re.compile(r"<[^/?!][^>]*[^/]>|<[^/?!>]>")
CLOSE_TAG_PATTERN = re.compile(r"</[^>]+>")
SELF_CLOSING_PATTERN = re.compile(r"<[^>]*/>")
NUMERIC_PATTERN = re.compile(r"^\d+\.?\d*$")
DATE_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),
    re.compile(r"^\d{2}-\d{2}-\d{4}$"),
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}"),
)


def pre_validate(markup: str) -> list[Diagnostic]:
    """Return diagnostics for raw markup before any extraction happens.

    Parameters
    ----------
    markup : str
        Raw UTF-8 text supplied by the caller.

    Returns
    -------
    list[Diagnostic]
        ``CRITICAL`` findings for empty input, input not starting with an
        element, control characters and oversize input, plus an advisory
        ``ERROR`` when tags look unbalanced.
    """
    stripped = markup.strip()
    if not stripped:
        return [
            Diagnostic(
                code="EMPTY_XML",
                message="XML content is empty",
                severity=Severity.CRITICAL,
            )
        ]

    diagnostics: list[Diagnostic] = []
    if not stripped.startswith("<"):
        diagnostics.append(
            Diagnostic(
                code="INVALID_XML_START",
                message="XML content must start with a tag",
                severity=Severity.CRITICAL,
            )
        )

    if CONTROL_CHARACTERS.search(markup):
        line, column = _position(markup, CONTROL_CHARACTERS.search(markup))
        diagnostics.append(
            Diagnostic(
                code="INVALID_CHARACTERS",
                message="XML contains invalid control characters",
                severity=Severity.CRITICAL,
                line=line,
                column=column,
            )
        )

    if len(markup.encode("utf-8")) > MAX_MARKUP_BYTES:
        diagnostics.append(
            Diagnostic(
                code="FILE_TOO_LARGE",
                message="XML file is too large (>10MB)",
                severity=Severity.CRITICAL,
            )
        )

    open_tags = len(OPEN_TAG_PATTERN.findall(markup))
    close_tags = len(CLOSE_TAG_PATTERN.findall(markup))
    self_closing = len(SELF_CLOSING_PATTERN.findall(markup))
    if open_tags != close_tags:
        diagnostics.append(
            Diagnostic(
                code="UNBALANCED_TAGS",
                message=(
                    "XML tags appear to be unbalanced "
                    f"({open_tags} opening, {close_tags} closing, "
                    f"{self_closing} self-closing)"
                ),
                severity=Severity.ERROR,
            )
        )
    return diagnostics


def post_validate(tree: DataNode) -> list[Diagnostic]:
    """Return advisory diagnostics describing the extracted tree."""
    diagnostics: list[Diagnostic] = []
    if tree.is_empty():
        diagnostics.append(
            Diagnostic(
                code="EMPTY_DATA",
                message="Parsed XML contains no data",
                severity=Severity.WARNING,
                suggestion="Verify that the XML file contains valid data elements",
            )
        )

    depth = tree.depth()
    if depth > MAX_NESTING_DEPTH:
        diagnostics.append(
            Diagnostic(
                code="DEEP_NESTING",
                message=f"XML has very deep nesting ({depth} levels)",
                severity=Severity.WARNING,
                suggestion="Consider flattening the XML structure for better performance",
            )
        )

    for path, key, node in _walk(tree, ""):
        diagnostics.extend(_check_field_name(path, key))
        scalar = node.as_scalar()
        if isinstance(scalar, str):
            diagnostics.extend(_check_value(path, scalar))
    return diagnostics


def _walk(
    node: DataNode, prefix: str
) -> cabc.Iterator[tuple[str, str, DataNode]]:
    """Yield ``(path, key, child)`` for every primary field below ``node``."""
    match node.kind:
        case NodeKind.MAP:
            for key, child in node.fields.items():
                if key.startswith(ALTERNATE_KEY_PREFIX) and key[1:] in node.fields:
                    continue
                path = f"{prefix}.{key}" if prefix else key
                yield path, key, child
                yield from _walk(child, path)
        case NodeKind.LIST:
            for index, child in enumerate(node.items):
                path = f"{prefix}.{index}" if prefix else str(index)
                yield from _walk(child, path)
        case _:
            return


def _check_field_name(path: str, key: str) -> list[Diagnostic]:
    findings: list[Diagnostic] = []
    if " " in key:
        findings.append(
            Diagnostic(
                code="FIELD_WITH_SPACES",
                message=f"Field name '{key}' contains spaces",
                severity=Severity.WARNING,
                path=path,
                suggestion="Use camelCase or snake_case for field names",
            )
        )
    if len(key) > MAX_FIELD_NAME_LENGTH:
        findings.append(
            Diagnostic(
                code="LONG_FIELD_NAME",
                message=f"Field name '{key}' is very long ({len(key)} characters)",
                severity=Severity.WARNING,
                path=path,
                suggestion="Consider using shorter, more descriptive names",
            )
        )
    return findings


def _check_value(path: str, value: str) -> list[Diagnostic]:
    findings: list[Diagnostic] = []
    if NUMERIC_PATTERN.match(value):
        findings.append(
            Diagnostic(
                code="NUMERIC_STRING",
                message=f"Field '{path}' contains a numeric value as string",
                severity=Severity.INFO,
                path=path,
                suggestion="Consider using numeric data type",
            )
        )
    if any(pattern.match(value) for pattern in DATE_PATTERNS):
        findings.append(
            Diagnostic(
                code="DATE_STRING",
                message=f"Field '{path}' appears to contain a date as string",
                severity=Severity.INFO,
                path=path,
                suggestion="Consider using ISO date format",
            )
        )
    return findings


def _position(text: str, match: re.Match[str] | None) -> tuple[int | None, int | None]:
    """Return the 1-based line and column of ``match`` within ``text``."""
    if match is None:
        return None, None
    offset = match.start()
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


__all__ = ["post_validate", "pre_validate"]
