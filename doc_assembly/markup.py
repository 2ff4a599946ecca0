"""Render markdown fragments embedded in document data."""

from __future__ import annotations

import functools
import re
import typing as typ

from markdown import Markdown
from markupsafe import Markup
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
DEFAULT_PYGMENTS_STYLE = "default"


class MarkdownRenderer:
    """Convert markdown into safe HTML with highlighted code blocks."""

    def __init__(self, pygments_style: str = DEFAULT_PYGMENTS_STYLE) -> None:
        """Initialize a renderer using the named Pygments style.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for fenced code blocks. Defaults to
            ``"default"``.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def render(self, text: str) -> Markup:
        """Render ``text`` into HTML; blank input renders as empty markup."""
        normalized = FENCED_INDENT_PATTERN.sub(r"\1", text)
        if not normalized.strip():
            return Markup("")
        extensions: list[Extension | str] = [
            "fenced_code",
            "codehilite",
            "tables",
            "sane_lists",
        ]
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        return Markup(md.convert(normalized))


@functools.lru_cache(maxsize=1)
def default_renderer() -> MarkdownRenderer:
    """Return the process-wide markdown renderer."""
    return MarkdownRenderer()


__all__ = ["MarkdownRenderer", "default_renderer"]
