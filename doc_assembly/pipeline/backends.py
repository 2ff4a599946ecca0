"""Rasterisation and encoding backends behind small protocols.

The pipeline only depends on :class:`Rasterizer` and :class:`Encoder`. This
module ships the ReportLab encoder used by default; the headless-browser
rasteriser lives in :mod:`doc_assembly.pipeline.browser` because it needs the
optional ``browser`` extra.
"""

from __future__ import annotations

import dataclasses as dc
import io
import typing as typ

from loguru import logger
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from doc_assembly._constants import CONTAINER_SELECTOR
from doc_assembly.errors import EncodingError

from .geometry import mm_to_points

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .geometry import PageGeometry
    from .models import DocumentMetadata
    from .pagination import PagePlacement


@dc.dataclass(frozen=True, slots=True)
class RasterizedSurface:
    """A rendered bitmap of the whole document.

    Attributes
    ----------
    image_bytes : bytes
        PNG-encoded image.
    width, height : int
        Pixel dimensions of the image.
    """

    image_bytes: bytes
    width: int
    height: int

    @classmethod
    def from_image(cls, image: Image.Image) -> RasterizedSurface:
        """Encode a Pillow image as PNG and record its size."""
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return cls(image_bytes=buffer.getvalue(), width=image.width, height=image.height)

    @classmethod
    def from_png(cls, image_bytes: bytes) -> RasterizedSurface:
        """Measure PNG bytes with Pillow."""
        with Image.open(io.BytesIO(image_bytes)) as image:
            width, height = image.size
        return cls(image_bytes=image_bytes, width=width, height=height)

    def open(self) -> Image.Image:
        """Return the decoded image."""
        return Image.open(io.BytesIO(self.image_bytes))


class Rasterizer(typ.Protocol):
    """Turns HTML and CSS into one tall bitmap."""

    async def render(
        self,
        html: str,
        css: str,
        viewport_width: int,
        *,
        scale: float = 2.0,
        container: str = CONTAINER_SELECTOR,
    ) -> RasterizedSurface:
        """Render ``html`` styled by ``css`` at ``viewport_width`` CSS pixels.

        ``css`` is scoped to ``container``; the page must wrap ``html`` in an
        element carrying that class.
        """
        ...


class Encoder(typ.Protocol):
    """Turns page placements of a surface into a binary document."""

    def encode(
        self,
        placements: cabc.Sequence[PagePlacement],
        geometry: PageGeometry,
        metadata: DocumentMetadata,
        *,
        surface: RasterizedSurface,
    ) -> bytes:
        """Return the encoded document."""
        ...


class ReportLabEncoder:
    """Draw each page placement into a PDF with ReportLab.

    Every page draws the full image, offset by its placement and clipped to
    the content area so the margins stay blank.
    """

    def __init__(self, *, compress: bool = True) -> None:
        self.compress = compress

    def encode(
        self,
        placements: cabc.Sequence[PagePlacement],
        geometry: PageGeometry,
        metadata: DocumentMetadata,
        *,
        surface: RasterizedSurface,
    ) -> bytes:
        """Return PDF bytes with one page per placement.

        Raises
        ------
        EncodingError
            If there are no placements or the image cannot be decoded.
        """
        if not placements:
            msg = "Cannot encode a document without pages"
            raise EncodingError(msg)
        try:
            with surface.open() as image:
                reader = ImageReader(image.convert("RGB"))
        except OSError as exc:
            msg = f"Rasterised surface is not a readable image: {exc}"
            raise EncodingError(msg) from exc

        buffer = io.BytesIO()
        page_width = geometry.width_points
        page_height = geometry.height_points
        pdf = canvas.Canvas(
            buffer, pagesize=(page_width, page_height), pageCompression=int(self.compress)
        )
        pdf.setTitle(metadata.title)
        pdf.setSubject(metadata.subject)
        pdf.setCreator(metadata.creator)
        if metadata.author:
            pdf.setAuthor(metadata.author)
        if metadata.keywords:
            pdf.setKeywords(", ".join(metadata.keywords))

        clip_x = mm_to_points(geometry.margins.left)
        clip_y = mm_to_points(geometry.margins.bottom)
        clip_width = mm_to_points(geometry.content_width)
        clip_height = mm_to_points(geometry.content_height)
        for placement in placements:
            width = mm_to_points(placement.width)
            height = mm_to_points(placement.height)
            x = mm_to_points(placement.x)
            y = page_height - mm_to_points(placement.y) - height
            pdf.saveState()
            clip = pdf.beginPath()
            clip.rect(clip_x, clip_y, clip_width, clip_height)
            pdf.clipPath(clip, stroke=0, fill=0)
            pdf.drawImage(reader, x, y, width=width, height=height)
            pdf.restoreState()
            pdf.showPage()
        pdf.save()
        data = buffer.getvalue()
        logger.debug("Encoded {} page(s) into {} bytes", len(placements), len(data))
        return data


__all__ = ["Encoder", "RasterizedSurface", "Rasterizer", "ReportLabEncoder"]
