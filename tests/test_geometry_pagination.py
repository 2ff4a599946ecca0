from __future__ import annotations

import math
import random

import pytest

from doc_assembly.errors import GeometryError
from doc_assembly.pipeline import (
    Margins,
    Orientation,
    PageGeometry,
    PageSize,
    mm_to_points,
    page_count,
    page_setup,
    paginate,
    scaled_height,
)


@pytest.fixture()
def small_page() -> PageGeometry:
    return PageGeometry(width=100, height=120, margins=Margins.uniform(10))


def test_a4_preset_content_area() -> None:
    geometry = PageGeometry.from_preset()
    assert (geometry.width, geometry.height) == (210.0, 297.0)
    assert (geometry.content_width, geometry.content_height) == (170.0, 257.0)
    assert geometry.width_points == pytest.approx(595.2756, rel=1e-5)


def test_landscape_swaps_dimensions() -> None:
    geometry = PageGeometry.from_preset("letter", Orientation.LANDSCAPE)
    assert (geometry.width, geometry.height) == (279.4, 215.9)


def test_page_size_parse_ignores_case() -> None:
    assert PageSize.parse("legal") is PageSize.LEGAL
    with pytest.raises(GeometryError, match="Unknown page size"):
        PageSize.parse("B5")


@pytest.mark.parametrize(
    ("kwargs", "codes"),
    [
        ({"width": 0, "height": 100}, ["INVALID_PAGE_SIZE"]),
        ({"width": 100, "height": 100, "dpi": 0}, ["INVALID_DPI"]),
        ({"width": 100, "height": 100, "margins": Margins(top=-1)}, ["NEGATIVE_MARGIN"]),
        ({"width": 100, "height": 100, "margins": Margins.uniform(50)}, ["MARGINS_TOO_LARGE"]),
    ],
)
def test_invalid_geometry_is_rejected(kwargs: dict[str, object], codes: list[str]) -> None:
    with pytest.raises(GeometryError) as excinfo:
        PageGeometry(**kwargs)  # type: ignore[arg-type]
    assert [diagnostic.code for diagnostic in excinfo.value.diagnostics] == codes
    assert isinstance(excinfo.value, ValueError)


def test_dpi_outside_range_is_advisory() -> None:
    assert PageGeometry.from_preset(dpi=300).advisories() == []
    [advisory] = PageGeometry.from_preset(dpi=50).advisories()
    assert advisory.code == "DPI_OUT_OF_RANGE"
    assert not advisory.is_blocking


def test_named_page_setups() -> None:
    compact = page_setup("compact")
    assert compact.margins == Margins.uniform(10.0)
    assert page_setup("draft").dpi == 150
    assert page_setup("landscape").width == 297.0
    with pytest.raises(GeometryError, match="Unknown page setup 'poster'"):
        page_setup("poster")


def test_mm_to_points() -> None:
    assert mm_to_points(25.4) == pytest.approx(72.0)


def test_zero_height_still_yields_one_page(small_page: PageGeometry) -> None:
    [placement] = paginate(0, small_page)
    assert placement.page_number == 1
    assert placement.y == 10.0
    assert page_count(-5, 100) == 1


def test_placements_shift_by_one_content_height(small_page: PageGeometry) -> None:
    placements = paginate(250, small_page)
    assert [placement.page_number for placement in placements] == [1, 2, 3]
    assert [placement.y for placement in placements] == [10.0, -90.0, -190.0]
    assert {(placement.x, placement.width, placement.height) for placement in placements} == {
        (10.0, 80.0, 250.0)
    }


@pytest.mark.parametrize(
    ("height", "expected"),
    [(1, 1), (100, 1), (100.5, 2), (200, 2), (250, 3)],
)
def test_page_count_is_the_ceiling(height: float, expected: int, small_page: PageGeometry) -> None:
    assert len(paginate(height, small_page)) == expected


def test_page_count_matches_ceiling_for_arbitrary_heights() -> None:
    rng = random.Random(1234)
    geometry = PageGeometry.from_preset()
    for _ in range(200):
        height = rng.uniform(0.01, 5000)
        assert len(paginate(height, geometry)) == math.ceil(height / geometry.content_height)


def test_scaled_height_keeps_aspect_ratio() -> None:
    geometry = PageGeometry.from_preset()
    assert scaled_height(400, 1200, geometry) == pytest.approx(510.0)
    assert scaled_height(0, 1200, geometry) == 0.0
