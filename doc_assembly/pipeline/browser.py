"""Headless Chromium rasteriser (requires the ``browser`` extra).

Install with ``pip install 'doc-assembly[browser]'`` followed by
``playwright install chromium``.
"""

from __future__ import annotations

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from doc_assembly._constants import CONTAINER_SELECTOR
from doc_assembly.errors import RasterizationError

from .backends import RasterizedSurface
from .documents import render_document
from .models import DocumentMetadata

INITIAL_VIEWPORT_HEIGHT = 600


class PlaywrightRasterizer:
    """Screenshot the full height of a rendered document.

    A fresh browser is launched per call and closed on every exit path,
    including cancellation.
    """

    def __init__(self, *, wait_until: str = "networkidle", timeout_ms: float = 30_000) -> None:
        self.wait_until = wait_until
        self.timeout_ms = timeout_ms

    async def render(
        self,
        html: str,
        css: str,
        viewport_width: int,
        *,
        scale: float = 2.0,
        container: str = CONTAINER_SELECTOR,
    ) -> RasterizedSurface:
        """Render ``html`` with ``css`` and return a full-page PNG surface.

        ``html`` is wrapped in an element with the ``container`` class so the
        scoped rules in ``css`` apply.

        Raises
        ------
        RasterizationError
            If the browser cannot be launched or the page fails to render.
        """
        metadata = DocumentMetadata(title="", author=None, subject="", keywords=())
        document = render_document(
            html, css, metadata, container=container, viewport_width=viewport_width
        )
        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch()
                try:
                    page = await browser.new_page(
                        viewport={"width": viewport_width, "height": INITIAL_VIEWPORT_HEIGHT},
                        device_scale_factor=scale,
                    )
                    await page.set_content(
                        document, wait_until=self.wait_until, timeout=self.timeout_ms
                    )
                    image_bytes = await page.screenshot(full_page=True, type="png")
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            msg = f"Browser rendering failed: {exc}"
            raise RasterizationError(msg) from exc
        surface = RasterizedSurface.from_png(image_bytes)
        logger.debug("Rasterised document to {}x{} px", surface.width, surface.height)
        return surface


__all__ = ["PlaywrightRasterizer"]
