from __future__ import annotations

import pytest

from doc_assembly.composer import (
    PREVIEW_ORDER,
    STORAGE_ORDER,
    Region,
    TemplateSource,
    compile_sections,
    compose,
    compose_for_storage,
    compose_sections,
)
from doc_assembly.templating import TemplateEngine

SOURCE = TemplateSource(header="H", body="B", footer="F", pagination="P")


def test_preview_order_puts_pagination_first() -> None:
    assert compose(SOURCE.as_mapping(), PREVIEW_ORDER) == "P\n\nH\n\nB\n\nF"


def test_storage_order_puts_pagination_last() -> None:
    assert compose_for_storage(SOURCE) == "H\n\nB\n\nF\n\nP"
    assert STORAGE_ORDER[-1] is Region.PAGINATION


def test_blank_regions_are_skipped() -> None:
    sections = {"header": "  \n", "body": "<p>x</p>", "footer": ""}
    assert compose(sections, PREVIEW_ORDER) == "<p>x</p>"
    assert compose({}, PREVIEW_ORDER) == ""


def test_from_mapping_accepts_region_names() -> None:
    source = TemplateSource.from_mapping({"body": "x", "footer": ""})
    assert source == TemplateSource(body="x")
    assert source.get(Region.BODY) == source.get("body") == "x"


def test_from_mapping_rejects_unknown_regions() -> None:
    with pytest.raises(ValueError, match="Unknown template region 'headr'"):
        TemplateSource.from_mapping({"headr": "x"})


def test_compile_sections_renders_each_region(invoice_markup: str) -> None:
    from doc_assembly.data import extract

    source = TemplateSource(
        header="<div>{{invoice._number}}", body="{{invoice.bill_to.name}}", footer=" "
    )
    sections = compile_sections(TemplateEngine(), source, extract(invoice_markup).data)
    assert [section.region for section in sections] == list(PREVIEW_ORDER)
    by_region = {section.region: section for section in sections}
    assert by_region[Region.HEADER].html == "<div>INV-001"
    assert [d.code for d in by_region[Region.HEADER].diagnostics] == ["UNCLOSED_HTML_TAGS"]
    assert by_region[Region.FOOTER].html == ""
    assert compose_sections(sections, PREVIEW_ORDER) == "<div>INV-001\n\nAda Lovelace"
