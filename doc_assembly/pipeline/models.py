"""Request and result records exchanged with the assembly pipeline."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import enum
import typing as typ

from doc_assembly._constants import DEFAULT_VIEWPORT_WIDTH, GENERATOR_TAG
from doc_assembly.composer import TemplateSource
from doc_assembly.errors import Diagnostic, Phase, ProcessingError

from .geometry import PageGeometry
from .pagination import PagePlacement


class OutputFormat(enum.StrEnum):
    """Artefact kinds the pipeline can produce."""

    PDF = "pdf"
    HTML = "html"

    @property
    def media_type(self) -> str:
        """Return the MIME type of the artefact."""
        return "application/pdf" if self is OutputFormat.PDF else "text/html; charset=utf-8"

    @property
    def suffix(self) -> str:
        """Return the conventional file suffix, including the dot."""
        return f".{self.value}"


@dc.dataclass(frozen=True, slots=True)
class TemplateMetadata:
    """Descriptive fields of a template, copied into generated documents."""

    name: str = "Untitled document"
    description: str = ""
    author: str | None = None
    keywords: tuple[str, ...] = ()
    category: str | None = None
    version: str | None = None


def _default_geometry() -> PageGeometry:
    return PageGeometry.from_preset()


@dc.dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Everything needed to generate one document.

    Attributes
    ----------
    templates : TemplateSource
        Source text of the four regions.
    data_markup : str
        Raw attribute markup to extract data from.
    style_source : str
        Style source with ``$name`` symbols.
    output_format : OutputFormat
        Artefact to produce.
    geometry : PageGeometry
        Page layout; defaults to A4 portrait with 20 mm margins.
    metadata : TemplateMetadata
        Title, author, subject and keywords for the artefact.
    timeout : float or None
        Seconds allowed by :func:`~doc_assembly.pipeline.generate_with_deadline`.
    symbols : Mapping[str, str] or None
        Style symbol table; ``None`` uses the defaults.
    strict_styles : bool
        Drop declarations that reference unresolved symbols.
    viewport_width : int
        CSS pixel width the rasteriser lays the document out at.
    scale : float
        Device pixel ratio used when rasterising.
    """

    templates: TemplateSource
    data_markup: str
    style_source: str = ""
    output_format: OutputFormat = OutputFormat.PDF
    geometry: PageGeometry = dc.field(default_factory=_default_geometry)
    metadata: TemplateMetadata = dc.field(default_factory=TemplateMetadata)
    timeout: float | None = None
    symbols: cabc.Mapping[str, str] | None = None
    strict_styles: bool = False
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    scale: float = 2.0


@dc.dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Metadata attached to a generated artefact."""

    title: str
    author: str | None
    subject: str
    keywords: tuple[str, ...]
    creator: str = GENERATOR_TAG
    created_at: dt.datetime = dc.field(default_factory=lambda: dt.datetime.now(dt.UTC))
    byte_size: int = 0
    fingerprint: str = ""
    page_count: int = 0
    geometry: PageGeometry | None = None

    @classmethod
    def for_request(cls, request: GenerationRequest, fingerprint: str) -> DocumentMetadata:
        """Return the metadata a request starts with, before any artefact exists."""
        template = request.metadata
        return cls(
            title=template.name,
            author=template.author,
            subject=template.description,
            keywords=tuple(template.keywords),
            fingerprint=fingerprint,
            geometry=request.geometry,
        )

    def to_dict(self) -> dict[str, typ.Any]:
        """Return a JSON-friendly mapping of the metadata."""
        return {
            "title": self.title,
            "author": self.author,
            "subject": self.subject,
            "keywords": list(self.keywords),
            "creator": self.creator,
            "created_at": self.created_at.isoformat(),
            "byte_size": self.byte_size,
            "fingerprint": self.fingerprint,
            "page_count": self.page_count,
            "geometry": self.geometry.to_dict() if self.geometry else None,
        }


@dc.dataclass(frozen=True, slots=True)
class AssembledDocument:
    """Outcome of one generation request, successful or not.

    Attributes
    ----------
    success : bool
        ``True`` when the pipeline reached ``COMPLETED``.
    output_format : OutputFormat
        Artefact kind that was requested.
    artifact : bytes
        Encoded document; empty when ``success`` is ``False``.
    placements : tuple[PagePlacement, ...]
        Page placements of a PDF artefact.
    html : str
        Complete HTML document for HTML artefacts.
    preview_html : str
        Scoped preview markup, or the best effort available on failure.
    elapsed : float
        Wall-clock seconds spent generating.
    fingerprint : str
        SHA-256 digest of the data markup.
    errors : tuple[ProcessingError, ...]
        Phase-tagged failures.
    diagnostics : tuple[Diagnostic, ...]
        Advisory findings gathered along the way.
    metadata : DocumentMetadata
        Document metadata, including byte size and page count.
    phase : Phase
        ``COMPLETED`` on success, otherwise the phase the request failed in
        (``TIMEOUT`` when a deadline expired).
    trace : tuple[Phase, ...]
        Every phase the request passed through, in order.
    """

    success: bool
    output_format: OutputFormat
    artifact: bytes
    metadata: DocumentMetadata
    phase: Phase
    placements: tuple[PagePlacement, ...] = ()
    html: str = ""
    preview_html: str = ""
    elapsed: float = 0.0
    fingerprint: str = ""
    errors: tuple[ProcessingError, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    trace: tuple[Phase, ...] = ()

    @property
    def byte_size(self) -> int:
        """Return the artefact size in bytes."""
        return len(self.artifact)

    @property
    def page_count(self) -> int:
        """Return the number of pages (one for HTML artefacts)."""
        return len(self.placements) if self.placements else int(bool(self.artifact))


__all__ = [
    "AssembledDocument",
    "DocumentMetadata",
    "GenerationRequest",
    "OutputFormat",
    "TemplateMetadata",
]
