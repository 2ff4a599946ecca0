from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as typ

import pytest
from bs4 import BeautifulSoup

from doc_assembly.composer import TemplateSource
from doc_assembly.errors import Phase, Severity, TemplateSyntaxError
from doc_assembly.markup import default_renderer
from doc_assembly.pipeline import (
    DocumentAssembler,
    DocumentMetadata,
    GenerationRequest,
    OutputFormat,
    PageGeometry,
    RasterizedSurface,
    generate_with_deadline,
    render_document,
)

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from conftest import FakeRasterizer

HTML_TRACE = (
    Phase.IDLE,
    Phase.VALIDATING,
    Phase.COMPILING_TEMPLATE,
    Phase.COMPILING_STYLE,
    Phase.ENCODING,
    Phase.COMPLETED,
)
PDF_TRACE = (
    Phase.IDLE,
    Phase.VALIDATING,
    Phase.COMPILING_TEMPLATE,
    Phase.COMPILING_STYLE,
    Phase.RASTERIZING,
    Phase.PAGINATING,
    Phase.ENCODING,
    Phase.COMPLETED,
)


class SlowRasterizer:
    """Never finishes within a short deadline."""

    async def render(
        self,
        html: str,
        css: str,
        viewport_width: int,
        *,
        scale: float = 2.0,
        container: str = ".document-preview-content",
    ) -> RasterizedSurface:
        await asyncio.sleep(5)
        msg = "unreachable"
        raise AssertionError(msg)


class CrashingRasterizer:
    """Fails the way a broken browser install would."""

    async def render(
        self,
        html: str,
        css: str,
        viewport_width: int,
        *,
        scale: float = 2.0,
        container: str = ".document-preview-content",
    ) -> RasterizedSurface:
        msg = "chromium not found"
        raise FileNotFoundError(msg)


def _pdf_request(request: GenerationRequest) -> GenerationRequest:
    return dc.replace(request, output_format=OutputFormat.PDF)


def test_currency_rendered_for_each_product(invoice_markup: str) -> None:
    request = GenerationRequest(
        templates=TemplateSource(
            body="{{#with invoice}}{{#each order.product}}{{$currency total}}{{/each}}{{/with}}"
        ),
        data_markup=invoice_markup,
        output_format=OutputFormat.HTML,
    )
    result = asyncio.run(DocumentAssembler().generate(request))
    assert result.success
    assert "5.005.00" in result.preview_html
    assert "5.005.00" in result.artifact.decode("utf-8")


def test_html_generation_produces_a_scoped_document(html_request: GenerationRequest) -> None:
    result = asyncio.run(DocumentAssembler().generate(html_request))

    assert result.success
    assert result.phase is Phase.COMPLETED
    assert result.trace == HTML_TRACE
    assert result.errors == ()
    assert result.page_count == 1
    assert result.metadata.page_count == 1
    assert result.metadata.byte_size == result.byte_size == len(result.artifact)
    assert result.artifact == result.html.encode("utf-8")

    soup = BeautifulSoup(result.html, "html.parser")
    container = soup.select_one(".document-container .document-preview-content")
    assert container is not None
    children = [child.name for child in container.find_all(recursive=False)]
    assert children == ["div", "h1", "ul", "footer"]
    assert container.h1.get_text() == "Invoice INV-001"
    assert [li.get_text() for li in container.select("li")] == ["Widget: 5.00", "Gadget: 5.00"]
    assert ".document-preview-content h1 { color: #6A77D8; }" in soup.style.get_text()
    assert soup.title.get_text() == "Untitled document"


def test_preview_fragment_matches_generated_preview(html_request: GenerationRequest) -> None:
    assembler = DocumentAssembler()
    fragment = assembler.preview(html_request)
    result = asyncio.run(assembler.generate(html_request))
    assert fragment == result.preview_html
    soup = BeautifulSoup(fragment, "html.parser")
    assert soup.style is not None
    assert soup.select_one("div.document-preview-content h1") is not None


def test_preview_propagates_syntax_errors(html_request: GenerationRequest) -> None:
    request = dc.replace(html_request, templates=TemplateSource(body="{{#each items}}x"))
    with pytest.raises(TemplateSyntaxError, match="Unclosed block"):
        DocumentAssembler().preview(request)


def test_template_syntax_error_fails_in_compile_phase(html_request: GenerationRequest) -> None:
    request = dc.replace(html_request, templates=TemplateSource(body="<p>{{#each items}}x</p>"))
    result = asyncio.run(DocumentAssembler().generate(request))

    assert not result.success
    assert result.phase is Phase.COMPILING_TEMPLATE
    assert result.trace == (Phase.IDLE, Phase.VALIDATING, Phase.COMPILING_TEMPLATE, Phase.FAILED)
    assert result.artifact == b""
    assert result.preview_html == ""
    [error] = result.errors
    assert error.code == "TEMPLATE_SYNTAX_ERROR"
    assert error.phase is Phase.COMPILING_TEMPLATE
    critical = [d for d in result.diagnostics if d.severity is Severity.CRITICAL]
    assert [(d.path, d.line, d.column) for d in critical] == [("body", 1, 4)]


def test_rejected_markup_fails_in_validation(html_request: GenerationRequest) -> None:
    request = dc.replace(html_request, data_markup="   ")
    result = asyncio.run(DocumentAssembler().generate(request))

    assert not result.success
    assert result.phase is Phase.VALIDATING
    assert result.trace == (Phase.IDLE, Phase.VALIDATING, Phase.FAILED)
    [error] = result.errors
    assert error.code == "EXTRACTION_ERROR"
    assert error.details == {"codes": ["EMPTY_XML"]}
    assert [d.code for d in result.diagnostics].count("EMPTY_XML") == 1


def test_pdf_generation_paginates_the_surface(
    html_request: GenerationRequest, fake_rasterizer: FakeRasterizer
) -> None:
    assembler = DocumentAssembler(rasterizer=fake_rasterizer)
    result = asyncio.run(assembler.generate(_pdf_request(html_request)))

    assert result.success, result.errors
    assert result.trace == PDF_TRACE
    assert result.artifact.startswith(b"%PDF")
    # 1200 px at 400 px wide scales to 510 mm against 257 mm of content per A4 page.
    assert result.page_count == 2
    assert result.metadata.page_count == 2
    assert result.metadata.byte_size == len(result.artifact)
    assert [placement.y for placement in result.placements] == [20.0, 20.0 - 257.0]

    [call] = fake_rasterizer.calls
    assert call["viewport_width"] == 800
    assert call["scale"] == 2.0
    assert ".document-preview-content h1" in call["css"]
    assert "Invoice INV-001" in call["html"]


@pytest.mark.parametrize(("height", "pages"), [(100, 1), (600, 1), (2400, 4)])
def test_pdf_page_count_follows_surface_height(
    html_request: GenerationRequest,
    make_rasterizer: typ.Callable[..., FakeRasterizer],
    height: int,
    pages: int,
) -> None:
    assembler = DocumentAssembler(rasterizer=make_rasterizer(width=400, height=height))
    result = asyncio.run(assembler.generate(_pdf_request(html_request)))
    assert result.page_count == pages


def test_custom_container_reaches_the_rasterizer(
    html_request: GenerationRequest, fake_rasterizer: FakeRasterizer
) -> None:
    assembler = DocumentAssembler(rasterizer=fake_rasterizer, container=".my-doc")
    result = asyncio.run(assembler.generate(_pdf_request(html_request)))

    assert result.success
    [call] = fake_rasterizer.calls
    assert call["container"] == ".my-doc"
    assert ".my-doc h1" in call["css"]


def test_pdf_without_rasterizer_fails_in_rasterizing(html_request: GenerationRequest) -> None:
    result = asyncio.run(DocumentAssembler().generate(_pdf_request(html_request)))

    assert not result.success
    assert result.phase is Phase.RASTERIZING
    assert result.trace[-2:] == (Phase.RASTERIZING, Phase.FAILED)
    assert result.errors[0].code == "RASTERIZATION_ERROR"
    assert "document-preview-content" in result.preview_html


def test_rasterizer_exceptions_are_wrapped(html_request: GenerationRequest) -> None:
    assembler = DocumentAssembler(rasterizer=CrashingRasterizer())
    result = asyncio.run(assembler.generate(_pdf_request(html_request)))
    [error] = result.errors
    assert error.code == "RASTERIZATION_ERROR"
    assert "chromium not found" in error.message


def test_encoder_failures_are_reported_in_encoding_phase(
    html_request: GenerationRequest, fake_rasterizer: FakeRasterizer, mocker: MockerFixture
) -> None:
    encoder = mocker.Mock()
    encoder.encode.side_effect = ValueError("disk full")
    assembler = DocumentAssembler(rasterizer=fake_rasterizer, encoder=encoder)
    result = asyncio.run(assembler.generate(_pdf_request(html_request)))

    assert result.phase is Phase.ENCODING
    [error] = result.errors
    assert error.code == "ENCODING_ERROR"
    assert "disk full" in error.message
    encoder.encode.assert_called_once()


def test_unexpected_failures_become_internal_errors(
    html_request: GenerationRequest, mocker: MockerFixture
) -> None:
    assembler = DocumentAssembler()
    mocker.patch.object(assembler.engine, "compile", side_effect=RuntimeError("boom"))
    result = asyncio.run(assembler.generate(html_request))

    assert result.phase is Phase.COMPILING_TEMPLATE
    [error] = result.errors
    assert error.code == "INTERNAL_ERROR"
    assert error.message == "RuntimeError: boom"


def test_deadline_expiry_reports_timeout(html_request: GenerationRequest) -> None:
    assembler = DocumentAssembler(rasterizer=SlowRasterizer())
    request = dc.replace(_pdf_request(html_request), timeout=0.05)
    result = asyncio.run(generate_with_deadline(assembler, request))

    assert not result.success
    assert result.phase is Phase.TIMEOUT
    assert result.trace == (*PDF_TRACE[:5], Phase.TIMEOUT)
    [error] = result.errors
    assert error.code == "TIMEOUT"
    assert error.phase is Phase.TIMEOUT
    assert error.details == {"interrupted_phase": "rasterizing"}
    assert result.artifact == b""


def test_deadline_expiry_keeps_the_compiled_preview(html_request: GenerationRequest) -> None:
    assembler = DocumentAssembler(rasterizer=SlowRasterizer())
    request = dc.replace(_pdf_request(html_request), timeout=0.05)
    result = asyncio.run(generate_with_deadline(assembler, request))

    soup = BeautifulSoup(result.preview_html, "html.parser")
    assert soup.select_one("div.document-preview-content h1").get_text() == "Invoice INV-001"
    assert result.fingerprint
    assert "NUMERIC_STRING" in [d.code for d in result.diagnostics]


def test_deadline_not_reached_returns_normal_result(html_request: GenerationRequest) -> None:
    result = asyncio.run(generate_with_deadline(DocumentAssembler(), html_request, timeout=30))
    assert result.success
    assert result.trace == HTML_TRACE


def test_geometry_advisories_are_collected(html_request: GenerationRequest) -> None:
    request = dc.replace(html_request, geometry=PageGeometry.from_preset(dpi=1200))
    result = asyncio.run(DocumentAssembler().generate(request))
    assert result.success
    assert "DPI_OUT_OF_RANGE" in [d.code for d in result.diagnostics]


def test_strict_styles_drop_unresolved_declarations(html_request: GenerationRequest) -> None:
    request = dc.replace(
        html_request,
        style_source="h1 { color: $brand; margin: 0; }",
        symbols={"accent": "red"},
        strict_styles=True,
    )
    result = asyncio.run(DocumentAssembler().generate(request))
    assert ".document-preview-content h1 { margin: 0; }" in result.html
    assert "UNRESOLVED_SYMBOL" in [d.code for d in result.diagnostics]


def test_highlighted_code_pulls_in_pygments_rules() -> None:
    metadata = DocumentMetadata(title="Notes", author=None, subject="", keywords=())
    body = default_renderer().render("```python\nx = 1\n```")
    soup = BeautifulSoup(render_document(str(body), "", metadata), "html.parser")
    assert soup.select_one(".codehilite") is not None
    assert ".codehilite" in soup.style.get_text()
    assert ".codehilite" not in render_document("<p>x</p>", "", metadata)
