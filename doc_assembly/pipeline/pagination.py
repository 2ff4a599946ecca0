"""Slice one tall rendered surface into fixed-height pages.

The whole surface is scaled to the content width and drawn once per page,
shifted up by one content height each time, so page ``k`` (0-based) shows the
band ``[k * c, (k + 1) * c)`` of the image inside the margins.

Examples
--------
>>> from doc_assembly.pipeline.geometry import Margins, PageGeometry
>>> geometry = PageGeometry(width=100, height=120, margins=Margins.uniform(10))
>>> [placement.y for placement in paginate(250, geometry)]
[10.0, -90.0, -190.0]
>>> len(paginate(0, geometry))
1
"""

from __future__ import annotations

import dataclasses as dc
import math

from .geometry import PageGeometry


@dc.dataclass(frozen=True, slots=True)
class PagePlacement:
    """Where the full image is drawn on one page, in millimetres.

    Attributes
    ----------
    page_number : int
        1-based page number.
    x, y : float
        Offset of the image's top-left corner from the page's top-left corner.
        ``y`` turns negative from the second page on.
    width, height : float
        Drawn size of the whole image.
    """

    page_number: int
    x: float
    y: float
    width: float
    height: float


def page_count(image_height: float, content_height: float) -> int:
    """Return how many pages an image of ``image_height`` needs (at least one)."""
    if image_height <= 0:
        return 1
    return max(1, math.ceil(image_height / content_height))


def paginate(image_height: float, geometry: PageGeometry) -> tuple[PagePlacement, ...]:
    """Return one placement per page for an image scaled to the content width.

    Parameters
    ----------
    image_height : float
        Height of the scaled image in millimetres.
    geometry : PageGeometry
        Page layout; its content height is the band shown per page.

    Returns
    -------
    tuple[PagePlacement, ...]
        ``ceil(image_height / content_height)`` placements for a positive
        height, otherwise exactly one.
    """
    content = geometry.content_height
    top = geometry.margins.top
    return tuple(
        PagePlacement(
            page_number=index + 1,
            x=float(geometry.margins.left),
            y=float(top - index * content),
            width=float(geometry.content_width),
            height=float(max(image_height, 0)),
        )
        for index in range(page_count(image_height, content))
    )


def scaled_height(pixel_width: int, pixel_height: int, geometry: PageGeometry) -> float:
    """Return the image height in millimetres once scaled to the content width."""
    if pixel_width <= 0:
        return 0.0
    return pixel_height * geometry.content_width / pixel_width


__all__ = ["PagePlacement", "page_count", "paginate", "scaled_height"]
