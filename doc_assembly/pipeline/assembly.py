"""Run a generation request through every phase of document assembly.

:class:`DocumentAssembler` owns the phase sequence::

    IDLE → VALIDATING → COMPILING_TEMPLATE → COMPILING_STYLE
         → RASTERIZING → PAGINATING → ENCODING → COMPLETED | FAILED

HTML output skips rasterising and paginating. :meth:`DocumentAssembler.generate`
never raises for a failure inside a phase: it returns an
:class:`~doc_assembly.pipeline.models.AssembledDocument` with
``success=False``, an empty artefact, the phase it failed in and a
phase-tagged error, and its trace ends in ``FAILED``.
:meth:`DocumentAssembler.preview` is the synchronous preview entry point and
lets errors propagate.

Examples
--------
>>> import asyncio
>>> from doc_assembly.composer import TemplateSource
>>> request = GenerationRequest(
...     templates=TemplateSource(body="<p>{{#with invoice}}{{_number}}{{/with}}</p>"),
...     data_markup='<invoice number="INV-7"/>',
...     output_format=OutputFormat.HTML,
... )
>>> result = asyncio.run(DocumentAssembler().generate(request))
>>> result.success, "INV-7" in result.preview_html
(True, True)
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import time
import typing as typ

from loguru import logger

from doc_assembly._constants import CONTAINER_SELECTOR
from doc_assembly.composer import PREVIEW_ORDER, compile_sections, compose_sections
from doc_assembly.data import ExtractorShape, extract, fingerprint
from doc_assembly.errors import (
    Diagnostic,
    DocumentAssemblyError,
    EncodingError,
    Phase,
    ProcessingError,
    RasterizationError,
)
from doc_assembly.styles import resolve, scope
from doc_assembly.templating import TemplateEngine

from .backends import Encoder, RasterizedSurface, Rasterizer, ReportLabEncoder
from .documents import render_document, render_preview
from .models import AssembledDocument, DocumentMetadata, GenerationRequest, OutputFormat
from .pagination import PagePlacement, paginate, scaled_height

if typ.TYPE_CHECKING:
    from doc_assembly.data import ExtractionResult


@dc.dataclass(slots=True)
class _Run:
    """Mutable bookkeeping for one request."""

    request: GenerationRequest
    started: float = dc.field(default_factory=time.perf_counter)
    phase: Phase = Phase.IDLE
    trace: list[Phase] = dc.field(default_factory=lambda: [Phase.IDLE])
    diagnostics: list[Diagnostic] = dc.field(default_factory=list)
    errors: list[ProcessingError] = dc.field(default_factory=list)
    fingerprint: str = ""
    preview_html: str = ""

    def enter(self, phase: Phase) -> None:
        logger.debug("Generation phase {} -> {}", self.phase.value, phase.value)
        self.phase = phase
        self.trace.append(phase)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started


@dc.dataclass(frozen=True, slots=True)
class _Rendered:
    body: str
    css: str


class DocumentAssembler:
    """Compose, rasterise, paginate and encode documents.

    Parameters
    ----------
    engine : TemplateEngine, optional
        Template engine; defaults to one backed by the shared helper registry.
    rasterizer : Rasterizer, optional
        Backend turning HTML into a bitmap. Required for PDF output.
    encoder : Encoder, optional
        Backend turning page placements into bytes; defaults to
        :class:`~doc_assembly.pipeline.backends.ReportLabEncoder`.
    shape : ExtractorShape, optional
        Element names the extractor looks for.
    container : str, optional
        Selector every style rule is scoped to.
    """

    def __init__(
        self,
        *,
        engine: TemplateEngine | None = None,
        rasterizer: Rasterizer | None = None,
        encoder: Encoder | None = None,
        shape: ExtractorShape | None = None,
        container: str = CONTAINER_SELECTOR,
    ) -> None:
        self.engine = engine or TemplateEngine()
        self.rasterizer = rasterizer
        self.encoder = encoder or ReportLabEncoder()
        self.shape = shape or ExtractorShape()
        self.container = container

    def _extract(self, request: GenerationRequest) -> ExtractionResult:
        extraction = extract(request.data_markup, self.shape)
        extraction.raise_for_errors()
        return extraction

    def _render(
        self, request: GenerationRequest, extraction: ExtractionResult
    ) -> tuple[str, list[Diagnostic]]:
        sections = compile_sections(
            self.engine, request.templates, extraction.data, PREVIEW_ORDER
        )
        diagnostics = [diagnostic for section in sections for diagnostic in section.diagnostics]
        return compose_sections(sections, PREVIEW_ORDER), diagnostics

    def _style(self, request: GenerationRequest) -> tuple[str, list[Diagnostic]]:
        compiled = resolve(request.style_source, request.symbols, strict=request.strict_styles)
        return scope(compiled.css, self.container), list(compiled.diagnostics)

    def preview(self, request: GenerationRequest) -> str:
        """Return the scoped preview fragment for ``request``.

        Raises
        ------
        ExtractionError
            If the data markup is rejected.
        TemplateSyntaxError
            If a region fails to compile.
        """
        extraction = self._extract(request)
        body, _ = self._render(request, extraction)
        css, _ = self._style(request)
        return render_preview(body, css, container=self.container)

    async def generate(self, request: GenerationRequest) -> AssembledDocument:
        """Produce the artefact described by ``request``.

        Failures inside a phase are reported in the returned document rather
        than raised. Cancellation propagates.
        """
        run = _Run(request=request, fingerprint=fingerprint(request.data_markup))
        return await self._generate(run)

    async def _generate(self, run: _Run) -> AssembledDocument:
        request = run.request
        metadata = DocumentMetadata.for_request(request, run.fingerprint)
        try:
            rendered = self._compile(run)
            if request.output_format is OutputFormat.HTML:
                return self._finish_html(run, rendered, metadata)
            return await self._finish_pdf(run, rendered, metadata)
        except DocumentAssemblyError as exc:
            logger.warning("Generation failed in {}: {}", run.phase.value, exc.message)
            run.errors.append(exc.to_processing_error(run.phase))
            run.diagnostics.extend(d for d in exc.diagnostics if d not in run.diagnostics)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure in {}", run.phase.value)
            run.errors.append(
                ProcessingError(
                    code="INTERNAL_ERROR",
                    message=f"{type(exc).__name__}: {exc}",
                    phase=run.phase,
                )
            )
        return self._failed(run, metadata)

    def _compile(self, run: _Run) -> _Rendered:
        request = run.request
        run.enter(Phase.VALIDATING)
        run.diagnostics.extend(request.geometry.advisories())
        extraction = extract(request.data_markup, self.shape)
        run.diagnostics.extend(extraction.diagnostics)
        extraction.raise_for_errors()

        run.enter(Phase.COMPILING_TEMPLATE)
        body, section_diagnostics = self._render(request, extraction)
        run.diagnostics.extend(section_diagnostics)

        run.enter(Phase.COMPILING_STYLE)
        css, style_diagnostics = self._style(request)
        run.diagnostics.extend(style_diagnostics)
        run.preview_html = render_preview(body, css, container=self.container)
        return _Rendered(body=body, css=css)

    def _finish_html(
        self, run: _Run, rendered: _Rendered, metadata: DocumentMetadata
    ) -> AssembledDocument:
        run.enter(Phase.ENCODING)
        html = render_document(
            rendered.body,
            rendered.css,
            metadata,
            container=self.container,
            viewport_width=run.request.viewport_width,
        )
        artifact = html.encode("utf-8")
        metadata = dc.replace(metadata, byte_size=len(artifact), page_count=1)
        return self._completed(run, artifact, metadata, html=html)

    async def _finish_pdf(
        self, run: _Run, rendered: _Rendered, metadata: DocumentMetadata
    ) -> AssembledDocument:
        request = run.request
        run.enter(Phase.RASTERIZING)
        surface = await self._rasterize(request, rendered)

        run.enter(Phase.PAGINATING)
        image_height = scaled_height(surface.width, surface.height, request.geometry)
        placements = paginate(image_height, request.geometry)
        metadata = dc.replace(metadata, page_count=len(placements))

        run.enter(Phase.ENCODING)
        artifact = self._encode(placements, request, metadata, surface)
        metadata = dc.replace(metadata, byte_size=len(artifact))
        return self._completed(run, artifact, metadata, placements=placements)

    async def _rasterize(self, request: GenerationRequest, rendered: _Rendered) -> RasterizedSurface:
        if self.rasterizer is None:
            msg = "PDF output requires a rasterizer; none is configured"
            raise RasterizationError(msg)
        try:
            return await self.rasterizer.render(
                rendered.body,
                rendered.css,
                request.viewport_width,
                scale=request.scale,
                container=self.container,
            )
        except DocumentAssemblyError:
            raise
        except Exception as exc:
            msg = f"Rasterizer failed: {exc}"
            raise RasterizationError(msg) from exc

    def _encode(
        self,
        placements: tuple[PagePlacement, ...],
        request: GenerationRequest,
        metadata: DocumentMetadata,
        surface: RasterizedSurface,
    ) -> bytes:
        try:
            return self.encoder.encode(placements, request.geometry, metadata, surface=surface)
        except DocumentAssemblyError:
            raise
        except Exception as exc:
            msg = f"Encoder failed: {exc}"
            raise EncodingError(msg) from exc

    def _completed(
        self,
        run: _Run,
        artifact: bytes,
        metadata: DocumentMetadata,
        *,
        html: str = "",
        placements: tuple[PagePlacement, ...] = (),
    ) -> AssembledDocument:
        run.enter(Phase.COMPLETED)
        logger.info(
            "Generated {} document: {} bytes, {} page(s) in {:.3f}s",
            run.request.output_format.value,
            len(artifact),
            metadata.page_count,
            run.elapsed,
        )
        return AssembledDocument(
            success=True,
            output_format=run.request.output_format,
            artifact=artifact,
            metadata=metadata,
            phase=Phase.COMPLETED,
            placements=placements,
            html=html,
            preview_html=run.preview_html,
            elapsed=run.elapsed,
            fingerprint=run.fingerprint,
            errors=tuple(run.errors),
            diagnostics=tuple(run.diagnostics),
            trace=tuple(run.trace),
        )

    def _failed(self, run: _Run, metadata: DocumentMetadata) -> AssembledDocument:
        failed_in = run.phase
        run.enter(Phase.FAILED)
        return AssembledDocument(
            success=False,
            output_format=run.request.output_format,
            artifact=b"",
            metadata=metadata,
            phase=failed_in,
            preview_html=run.preview_html,
            elapsed=run.elapsed,
            fingerprint=run.fingerprint,
            errors=tuple(run.errors),
            diagnostics=tuple(run.diagnostics),
            trace=tuple(run.trace),
        )


def _timed_out(run: _Run, timeout: float) -> AssembledDocument:
    interrupted = run.phase
    run.enter(Phase.TIMEOUT)
    return AssembledDocument(
        success=False,
        output_format=run.request.output_format,
        artifact=b"",
        metadata=DocumentMetadata.for_request(run.request, run.fingerprint),
        phase=Phase.TIMEOUT,
        preview_html=run.preview_html,
        elapsed=run.elapsed,
        fingerprint=run.fingerprint,
        errors=(
            ProcessingError(
                code="TIMEOUT",
                message=f"Document generation exceeded {timeout:g}s",
                phase=Phase.TIMEOUT,
                details={"interrupted_phase": interrupted.value},
            ),
        ),
        diagnostics=tuple(run.diagnostics),
        trace=tuple(run.trace),
    )


async def generate_with_deadline(
    assembler: DocumentAssembler,
    request: GenerationRequest,
    timeout: float | None = None,
) -> AssembledDocument:
    """Run :meth:`DocumentAssembler.generate` with a deadline.

    ``timeout`` defaults to ``request.timeout``; with neither set the request
    runs unbounded. Expiry cancels the request and returns a failed result in
    the ``TIMEOUT`` phase that keeps the trace and any preview compiled before
    the deadline.
    """
    limit = timeout if timeout is not None else request.timeout
    if limit is None:
        return await assembler.generate(request)
    run = _Run(request=request, fingerprint=fingerprint(request.data_markup))
    try:
        async with asyncio.timeout(limit):
            return await assembler._generate(run)  # noqa: SLF001
    except TimeoutError:
        logger.warning("Document generation timed out after {:g}s in {}", limit, run.phase.value)
        return _timed_out(run, limit)


__all__ = ["DocumentAssembler", "generate_with_deadline"]
