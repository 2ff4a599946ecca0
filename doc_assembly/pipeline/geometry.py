"""Page sizes, margins and the geometry every page of a document shares.

All lengths are millimetres. A :class:`PageGeometry` is validated on
construction: it must leave a positive content area once the margins are
taken away.

Examples
--------
>>> geometry = PageGeometry.from_preset(PageSize.A4)
>>> geometry.content_width, geometry.content_height
(170.0, 257.0)
>>> PageGeometry.from_preset("letter", Orientation.LANDSCAPE).width
279.4
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from doc_assembly.errors import Diagnostic, GeometryError, Severity

DEFAULT_MARGIN_MM = 20.0
DEFAULT_DPI = 300
MIN_DPI = 72
MAX_DPI = 600
MM_PER_INCH = 25.4
POINTS_PER_INCH = 72


class PageSize(enum.StrEnum):
    """Standard paper sizes."""

    A3 = "A3"
    A4 = "A4"
    A5 = "A5"
    LETTER = "Letter"
    LEGAL = "Legal"

    @classmethod
    def parse(cls, value: str | PageSize) -> PageSize:
        """Return the size named ``value``, ignoring case."""
        if isinstance(value, PageSize):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        msg = f"Unknown page size {value!r}; expected one of {[m.value for m in cls]}"
        raise GeometryError(msg)


class Orientation(enum.StrEnum):
    """Page orientation."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


PAGE_DIMENSIONS: dict[PageSize, tuple[float, float]] = {
    PageSize.A3: (297.0, 420.0),
    PageSize.A4: (210.0, 297.0),
    PageSize.A5: (148.0, 210.0),
    PageSize.LETTER: (215.9, 279.4),
    PageSize.LEGAL: (215.9, 355.6),
}


@dc.dataclass(frozen=True, slots=True)
class Margins:
    """Page margins in millimetres."""

    top: float = DEFAULT_MARGIN_MM
    right: float = DEFAULT_MARGIN_MM
    bottom: float = DEFAULT_MARGIN_MM
    left: float = DEFAULT_MARGIN_MM

    @classmethod
    def uniform(cls, value: float) -> Margins:
        """Return margins of ``value`` on every side."""
        return cls(top=value, right=value, bottom=value, left=value)


@dc.dataclass(frozen=True, slots=True)
class PageGeometry:
    """Physical page layout shared by every page of a document.

    Attributes
    ----------
    width, height : float
        Page size in millimetres.
    margins : Margins
        Space left blank on each side.
    dpi : int
        Resolution used when rasterising.

    Raises
    ------
    GeometryError
        If a dimension or the DPI is not positive, a margin is negative, or
        the margins leave no content area.
    """

    width: float
    height: float
    margins: Margins = dc.field(default_factory=Margins)
    dpi: int = DEFAULT_DPI

    def __post_init__(self) -> None:
        problems = list(self._blocking_problems())
        if problems:
            details = "; ".join(problem.message for problem in problems)
            msg = f"Invalid page geometry: {details}"
            raise GeometryError(msg, diagnostics=problems)

    def _blocking_problems(self) -> typ.Iterator[Diagnostic]:
        if self.width <= 0 or self.height <= 0:
            yield Diagnostic(
                code="INVALID_PAGE_SIZE",
                message=f"page size {self.width}x{self.height} mm must be positive",
                severity=Severity.CRITICAL,
            )
        if self.dpi <= 0:
            yield Diagnostic(
                code="INVALID_DPI",
                message=f"DPI {self.dpi} must be positive",
                severity=Severity.CRITICAL,
            )
        sides = dc.asdict(self.margins)
        negative = sorted(side for side, value in sides.items() if value < 0)
        if negative:
            yield Diagnostic(
                code="NEGATIVE_MARGIN",
                message=f"margins must not be negative ({', '.join(negative)})",
                severity=Severity.CRITICAL,
            )
        if self.width > 0 and self.height > 0 and (
            self.content_width <= 0 or self.content_height <= 0
        ):
            yield Diagnostic(
                code="MARGINS_TOO_LARGE",
                message="margins leave no room for content",
                severity=Severity.CRITICAL,
                suggestion="Reduce the margins or use a larger page size",
            )

    @property
    def content_width(self) -> float:
        """Width available between the left and right margins."""
        return self.width - self.margins.left - self.margins.right

    @property
    def content_height(self) -> float:
        """Height available between the top and bottom margins."""
        return self.height - self.margins.top - self.margins.bottom

    @property
    def width_points(self) -> float:
        """Page width in PDF points."""
        return mm_to_points(self.width)

    @property
    def height_points(self) -> float:
        """Page height in PDF points."""
        return mm_to_points(self.height)

    def advisories(self) -> list[Diagnostic]:
        """Return non-blocking findings, such as a DPI outside 72-600."""
        if MIN_DPI <= self.dpi <= MAX_DPI:
            return []
        return [
            Diagnostic(
                code="DPI_OUT_OF_RANGE",
                message=f"DPI {self.dpi} is outside the supported range {MIN_DPI}-{MAX_DPI}",
                severity=Severity.WARNING,
            )
        ]

    @classmethod
    def from_preset(
        cls,
        size: PageSize | str = PageSize.A4,
        orientation: Orientation | str = Orientation.PORTRAIT,
        margins: Margins | None = None,
        dpi: int = DEFAULT_DPI,
    ) -> PageGeometry:
        """Build a geometry from a standard paper size."""
        width, height = PAGE_DIMENSIONS[PageSize.parse(size)]
        if Orientation(orientation) is Orientation.LANDSCAPE:
            width, height = height, width
        return cls(width=width, height=height, margins=margins or Margins(), dpi=dpi)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly description of the geometry."""
        return {
            "width_mm": self.width,
            "height_mm": self.height,
            "margins_mm": dc.asdict(self.margins),
            "dpi": self.dpi,
        }


PAGE_SETUPS: dict[str, tuple[PageSize, Orientation, float, int]] = {
    "standard": (PageSize.A4, Orientation.PORTRAIT, 20.0, 300),
    "compact": (PageSize.A4, Orientation.PORTRAIT, 10.0, 300),
    "landscape": (PageSize.A4, Orientation.LANDSCAPE, 20.0, 300),
    "letter": (PageSize.LETTER, Orientation.PORTRAIT, 25.4, 300),
    "legal": (PageSize.LEGAL, Orientation.PORTRAIT, 25.4, 300),
    "draft": (PageSize.A4, Orientation.PORTRAIT, 20.0, 150),
}


def page_setup(name: str) -> PageGeometry:
    """Return the geometry of a named page setup.

    Raises
    ------
    GeometryError
        If ``name`` is not one of :data:`PAGE_SETUPS`.
    """
    try:
        size, orientation, margin, dpi = PAGE_SETUPS[name]
    except KeyError:
        msg = f"Unknown page setup {name!r}; expected one of {sorted(PAGE_SETUPS)}"
        raise GeometryError(msg) from None
    return PageGeometry.from_preset(size, orientation, Margins.uniform(margin), dpi)


def mm_to_points(value: float) -> float:
    """Convert millimetres to PDF points."""
    return value / MM_PER_INCH * POINTS_PER_INCH


__all__ = [
    "DEFAULT_DPI",
    "PAGE_DIMENSIONS",
    "PAGE_SETUPS",
    "Margins",
    "Orientation",
    "PageGeometry",
    "PageSize",
    "mm_to_points",
    "page_setup",
]
