from __future__ import annotations

import typing as typ

import pytest
from PIL import Image

from doc_assembly.composer import TemplateSource
from doc_assembly.pipeline import GenerationRequest, OutputFormat, RasterizedSurface

INVOICE_MARKUP = (
    '<invoice number="INV-001" total="10">'
    '<bill_to name="Ada Lovelace" email="ada@example.com"/>'
    '<order><product id="1" name="Widget" total="5"/>'
    '<product id="2" name="Gadget" total="5"/></order>'
    "</invoice>"
)


class FakeRasterizer:
    """Produce a solid Pillow bitmap of a fixed size instead of a browser render."""

    def __init__(self, width: int = 400, height: int = 1200) -> None:
        self.width = width
        self.height = height
        self.calls: list[dict[str, typ.Any]] = []

    async def render(
        self,
        html: str,
        css: str,
        viewport_width: int,
        *,
        scale: float = 2.0,
        container: str = ".document-preview-content",
    ) -> RasterizedSurface:
        self.calls.append(
            {
                "html": html,
                "css": css,
                "viewport_width": viewport_width,
                "scale": scale,
                "container": container,
            }
        )
        image = Image.new("RGB", (self.width, self.height), "white")
        return RasterizedSurface.from_image(image)


@pytest.fixture()
def invoice_markup() -> str:
    return INVOICE_MARKUP


@pytest.fixture()
def fake_rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture()
def invoice_templates() -> TemplateSource:
    return TemplateSource(
        header="<h1>Invoice {{invoice._number}}</h1>",
        body=(
            "{{#with invoice}}<ul>"
            "{{#each order.product}}<li>{{name}}: {{$currency total}}</li>{{/each}}"
            "</ul>{{/with}}"
        ),
        footer="<footer>{{invoice.bill_to.name}}</footer>",
        pagination='<div class="page-strip">1</div>',
    )


@pytest.fixture()
def html_request(invoice_templates: TemplateSource, invoice_markup: str) -> GenerationRequest:
    return GenerationRequest(
        templates=invoice_templates,
        data_markup=invoice_markup,
        style_source="h1 { color: $primary; }",
        output_format=OutputFormat.HTML,
    )


@pytest.fixture()
def make_rasterizer() -> typ.Callable[..., FakeRasterizer]:
    return FakeRasterizer
