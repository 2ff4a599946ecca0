"""Assemble the four document regions into one document body.

A template is split into regions: ``pagination``, ``header``, ``body`` and
``footer``. Preview and generation place the pagination strip first so it
renders above the header; stored templates keep it last. The two orders are
separate constants so each call site states which one it means.

Examples
--------
>>> sections = {Region.HEADER: "<h1>Hi</h1>", Region.BODY: "<p>x</p>", Region.FOOTER: "  "}
>>> compose(sections, PREVIEW_ORDER)
'<h1>Hi</h1>\\n\\n<p>x</p>'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import typing as typ

from loguru import logger

if typ.TYPE_CHECKING:
    from doc_assembly.data.nodes import DataNode
    from doc_assembly.errors import Diagnostic
    from doc_assembly.templating import TemplateEngine


class Region(enum.StrEnum):
    """Named parts of a document template."""

    PAGINATION = "pagination"
    HEADER = "header"
    BODY = "body"
    FOOTER = "footer"


PREVIEW_ORDER: tuple[Region, ...] = (
    Region.PAGINATION,
    Region.HEADER,
    Region.BODY,
    Region.FOOTER,
)
STORAGE_ORDER: tuple[Region, ...] = (
    Region.HEADER,
    Region.BODY,
    Region.FOOTER,
    Region.PAGINATION,
)
SECTION_SEPARATOR = "\n\n"


@dc.dataclass(frozen=True, slots=True)
class TemplateSource:
    """Raw template text for each region; every region defaults to empty."""

    header: str = ""
    body: str = ""
    footer: str = ""
    pagination: str = ""

    def get(self, region: Region | str) -> str:
        """Return the source of ``region``."""
        return getattr(self, Region(region).value)

    def as_mapping(self) -> dict[Region, str]:
        """Return the regions as a ``Region``-keyed mapping."""
        return {region: self.get(region) for region in Region}

    @classmethod
    def from_mapping(cls, sections: cabc.Mapping[str, str]) -> TemplateSource:
        """Build a source from a mapping keyed by region name.

        Raises
        ------
        ValueError
            If a key is not a region name.
        """
        values: dict[str, str] = {}
        for key, text in sections.items():
            try:
                region = Region(key)
            except ValueError as exc:
                msg = f"Unknown template region {key!r}; expected one of {[r.value for r in Region]}"
                raise ValueError(msg) from exc
            values[region.value] = text or ""
        return cls(**values)


@dc.dataclass(frozen=True, slots=True)
class CompiledSection:
    """One region rendered against the request data."""

    region: Region
    html: str
    diagnostics: tuple[Diagnostic, ...] = ()


def compose(
    sections: cabc.Mapping[Region, str] | cabc.Mapping[str, str],
    order: cabc.Sequence[Region],
) -> str:
    """Join the non-blank ``sections`` in ``order`` with a blank line.

    Regions missing from ``sections`` or holding only whitespace are skipped.
    """
    lookup = {Region(key): value for key, value in sections.items()}
    return SECTION_SEPARATOR.join(
        text for region in order if (text := lookup.get(region) or "").strip()
    )


def compose_for_storage(source: TemplateSource) -> str:
    """Return the stored single-document form of ``source``."""
    return compose(source.as_mapping(), STORAGE_ORDER)


def compile_sections(
    engine: TemplateEngine,
    source: TemplateSource,
    data: DataNode | cabc.Mapping[str, object] | None,
    order: cabc.Sequence[Region] = PREVIEW_ORDER,
) -> tuple[CompiledSection, ...]:
    """Compile and render every region of ``source`` in ``order``.

    Raises
    ------
    TemplateSyntaxError
        From the first region that fails to compile.
    """
    compiled: list[CompiledSection] = []
    for region in order:
        text = source.get(region)
        if not text.strip():
            compiled.append(CompiledSection(region=region, html=""))
            continue
        template = engine.compile(text, region=region.value)
        compiled.append(
            CompiledSection(
                region=region,
                html=template.render(data),
                diagnostics=template.diagnostics,
            )
        )
        logger.debug("Rendered region {} ({} chars)", region.value, len(compiled[-1].html))
    return tuple(compiled)


def compose_sections(sections: cabc.Iterable[CompiledSection], order: cabc.Sequence[Region]) -> str:
    """Compose already rendered sections in ``order``."""
    return compose({section.region: section.html for section in sections}, order)


__all__ = [
    "PREVIEW_ORDER",
    "SECTION_SEPARATOR",
    "STORAGE_ORDER",
    "CompiledSection",
    "Region",
    "TemplateSource",
    "compile_sections",
    "compose",
    "compose_for_storage",
    "compose_sections",
]
