"""Wrap rendered regions and scoped CSS into HTML shells with Jinja2.

Two shells exist: the *preview* fragment (a ``<style>`` element followed by
the container ``<div>``) that host pages embed, and the standalone *document*
used for HTML artefacts and for rasterising.
"""

from __future__ import annotations

import functools
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from doc_assembly._constants import CONTAINER_SELECTOR, DEFAULT_VIEWPORT_WIDTH, GENERATOR_TAG
from doc_assembly.markup import default_renderer

if typ.TYPE_CHECKING:
    from .models import DocumentMetadata

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
HIGHLIGHT_MARKER = 'class="codehilite"'


@functools.lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _container_class(container: str) -> str:
    return container.removeprefix(".")


def render_preview(body: str, css: str, *, container: str = CONTAINER_SELECTOR) -> str:
    """Return the embeddable preview fragment.

    ``body`` and ``css`` are trusted output of the template engine and style
    preprocessor and are inserted verbatim.
    """
    template = _environment().get_template("preview.jinja")
    return template.render(
        body=Markup(body),  # noqa: S704 - rendered template output
        css=Markup(css),  # noqa: S704 - resolved stylesheet
        container_class=_container_class(container),
    )


def render_document(
    body: str,
    css: str,
    metadata: DocumentMetadata,
    *,
    container: str = CONTAINER_SELECTOR,
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH,
    lang: str = "en",
) -> str:
    """Return a complete HTML document with the stylesheet inlined.

    Pygments rules for highlighted code are added when ``body`` contains
    rendered code blocks.
    """
    highlight_css = default_renderer().stylesheet if HIGHLIGHT_MARKER in body else ""
    template = _environment().get_template("document.jinja")
    html = template.render(
        body=Markup(body),  # noqa: S704 - rendered template output
        css=Markup(css),  # noqa: S704 - resolved stylesheet
        highlight_css=Markup(highlight_css),  # noqa: S704 - generated by Pygments
        metadata=metadata,
        generator=GENERATOR_TAG,
        container_class=_container_class(container),
        viewport_width=viewport_width,
        lang=lang,
    )
    if not html.endswith("\n"):
        html += "\n"
    return html


__all__ = ["TEMPLATES_DIR", "render_document", "render_preview"]
