"""Text transformation helpers.

All helpers render ``None`` and empty input as ``""``.

Examples
--------
>>> title_case("hello wORLD"), slugify("Hello, World_2024!")
('Hello World', 'hello-world-2024')
>>> truncate("abcdef", 3), replace("a.b.c", ".", "-")
('abc...', 'a-b-c')
"""

from __future__ import annotations

import re

from markupsafe import Markup

from doc_assembly.markup import default_renderer
from doc_assembly.values import stringify, to_int

from .registry import HelperKind, HelperRegistry

WORD_PATTERN = re.compile(r"\w\S*")
TAG_PATTERN = re.compile(r"<[^>]*>")
SLUG_STRIP_PATTERN = re.compile(r"[^\w\s-]", re.ASCII)
SLUG_SEPARATOR_PATTERN = re.compile(r"[\s_-]+")


def capitalize(text: object = None) -> str:
    """Upper-case the first character and lower-case the rest."""
    value = stringify(text)
    return value[:1].upper() + value[1:].lower()


def uppercase(text: object = None) -> str:
    """Return ``text`` in upper case."""
    return stringify(text).upper()


def lowercase(text: object = None) -> str:
    """Return ``text`` in lower case."""
    return stringify(text).lower()


def title_case(text: object = None) -> str:
    """Capitalize each whitespace-separated word."""
    return WORD_PATTERN.sub(
        lambda match: match[0][:1].upper() + match[0][1:].lower(), stringify(text)
    )


def truncate(text: object = None, length: object = 50, suffix: object = "...") -> str:
    """Cut ``text`` to ``length`` characters and append ``suffix`` when shortened."""
    value = stringify(text)
    limit = max(to_int(length), 0)
    return value[:limit] + stringify(suffix) if len(value) > limit else value


def slugify(text: object = None) -> str:
    """Return a lower-case, hyphen-separated slug."""
    value = SLUG_STRIP_PATTERN.sub("", stringify(text).lower())
    return SLUG_SEPARATOR_PATTERN.sub("-", value).strip("-")


def strip_tags(text: object = None) -> str:
    """Remove anything that looks like a markup tag."""
    return TAG_PATTERN.sub("", stringify(text))


def replace(text: object = None, search: object = "", replacement: object = "") -> str:
    """Replace every literal occurrence of ``search``."""
    value = stringify(text)
    needle = stringify(search)
    if not value or not needle:
        return value
    return value.replace(needle, stringify(replacement))


def split(text: object = None, separator: object = ",", index: object = None) -> object:
    """Split ``text``; with ``index`` return that part or ``""``."""
    value = stringify(text)
    if not value:
        return ""
    sep = stringify(separator)
    parts = value.split(sep) if sep else list(value)
    if index is None:
        return parts
    position = to_int(index)
    return parts[position] if 0 <= position < len(parts) else ""


def join(items: object = None, separator: object = ", ") -> str:
    """Join a list with ``separator``; non-lists render as ``""``."""
    if not isinstance(items, list | tuple):
        return ""
    return stringify(separator).join(stringify(item) for item in items)


def markdown(text: object = None) -> Markup:
    """Render markdown text to safe HTML."""
    return default_renderer().render(stringify(text))


def register(registry: HelperRegistry) -> None:
    """Register the string helpers on ``registry``."""
    helpers = {
        "capitalize": capitalize,
        "uppercase": uppercase,
        "lowercase": lowercase,
        "titleCase": title_case,
        "truncate": truncate,
        "slugify": slugify,
        "stripTags": strip_tags,
        "replace": replace,
        "split": split,
        "join": join,
        "markdown": markdown,
    }
    for name, fn in helpers.items():
        registry.register(name, HelperKind.VALUE, fn)


__all__ = [
    "capitalize",
    "join",
    "lowercase",
    "markdown",
    "register",
    "replace",
    "slugify",
    "split",
    "strip_tags",
    "title_case",
    "truncate",
    "uppercase",
]
