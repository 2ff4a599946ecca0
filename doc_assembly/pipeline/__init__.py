"""Page geometry, pagination and the phased generation pipeline.

The headless-browser rasteriser is not re-exported here; import
:class:`doc_assembly.pipeline.browser.PlaywrightRasterizer` explicitly once the
``browser`` extra is installed.
"""

from .assembly import DocumentAssembler, generate_with_deadline
from .backends import Encoder, RasterizedSurface, Rasterizer, ReportLabEncoder
from .documents import render_document, render_preview
from .geometry import (
    PAGE_DIMENSIONS,
    PAGE_SETUPS,
    Margins,
    Orientation,
    PageGeometry,
    PageSize,
    mm_to_points,
    page_setup,
)
from .models import (
    AssembledDocument,
    DocumentMetadata,
    GenerationRequest,
    OutputFormat,
    TemplateMetadata,
)
from .pagination import PagePlacement, page_count, paginate, scaled_height

__all__ = [
    "PAGE_DIMENSIONS",
    "PAGE_SETUPS",
    "AssembledDocument",
    "DocumentAssembler",
    "DocumentMetadata",
    "Encoder",
    "GenerationRequest",
    "Margins",
    "Orientation",
    "OutputFormat",
    "PageGeometry",
    "PagePlacement",
    "PageSize",
    "RasterizedSurface",
    "Rasterizer",
    "ReportLabEncoder",
    "TemplateMetadata",
    "generate_with_deadline",
    "mm_to_points",
    "page_count",
    "page_setup",
    "paginate",
    "render_document",
    "render_preview",
    "scaled_height",
]
