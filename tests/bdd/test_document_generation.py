"""Behaviour tests for end-to-end document generation using pytest-bdd.

These scenarios load a template bundle from disk, feed it invoice markup and
drive the assembler through to a finished HTML page or paginated PDF. The PDF
scenario swaps the browser for a fixed-size bitmap so no Chromium install is
needed.

Usage
-----
Run ``pytest tests/bdd/test_document_generation.py -v`` or filter with
``pytest -k document_generation`` to execute only these scenarios.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from doc_assembly.config import load_template_bundle
from doc_assembly.errors import Phase
from doc_assembly.pipeline import DocumentAssembler, OutputFormat

if typ.TYPE_CHECKING:
    from doc_assembly.config import TemplateBundle
    from doc_assembly.pipeline import AssembledDocument

    from conftest import FakeRasterizer

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "document_generation.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]

BODY_TEMPLATE = (
    "{{#with invoice}}<ul>"
    "{{#each order.product}}<li>{{name}}: {{$currency total}}</li>{{/each}}"
    "</ul>{{/with}}"
)


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Parameters
    ----------
    None
        This fixture does not accept parameters.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {}


def _write_bundle(root: Path, body: str) -> Path:
    bundle = root / "invoice"
    bundle.mkdir()
    (bundle / "header.hbs").write_text(
        "<h1>Invoice {{invoice._number}}</h1>", encoding="utf-8"
    )
    (bundle / "body.hbs").write_text(body, encoding="utf-8")
    (bundle / "footer.hbs").write_text(
        "<footer>{{invoice.bill_to.name}}</footer>", encoding="utf-8"
    )
    (bundle / "style.scss").write_text("h1 { color: $primary; }", encoding="utf-8")
    (bundle / "template.yaml").write_text("name: Invoice\n", encoding="utf-8")
    return bundle


@given("an invoice template bundle")
def given_invoice_bundle(tmp_path: Path, scenario_state: ScenarioState) -> None:
    """Write a header, body, footer and style bundle to a temporary directory.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory provided by pytest.
    scenario_state : ScenarioState
        Shared scenario state that receives the loaded bundle.

    Returns
    -------
    None
        The bundle is stored under ``scenario_state["bundle"]``.
    """
    scenario_state["bundle"] = load_template_bundle(_write_bundle(tmp_path, BODY_TEMPLATE))


@given("an invoice template bundle with an unclosed block")
def given_broken_bundle(tmp_path: Path, scenario_state: ScenarioState) -> None:
    """Write a bundle whose body opens an ``each`` block without closing it.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory provided by pytest.
    scenario_state : ScenarioState
        Shared scenario state that receives the loaded bundle.

    Returns
    -------
    None
        The bundle is stored under ``scenario_state["bundle"]``.
    """
    body = "<ul>{{#each invoice.order.product}}<li>{{name}}</li></ul>"
    scenario_state["bundle"] = load_template_bundle(_write_bundle(tmp_path, body))


@given("invoice data markup")
def given_invoice_markup(invoice_markup: str, scenario_state: ScenarioState) -> None:
    """Use the shared two-product invoice as the document data.

    Parameters
    ----------
    invoice_markup : str
        Attribute markup provided by the ``invoice_markup`` fixture.
    scenario_state : ScenarioState
        Shared scenario state that receives the markup.

    Returns
    -------
    None
        The markup is stored under ``scenario_state["markup"]``.
    """
    scenario_state["markup"] = invoice_markup


@given("empty data markup")
def given_empty_markup(scenario_state: ScenarioState) -> None:
    """Use whitespace-only markup as the document data.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state that receives the markup.

    Returns
    -------
    None
        The markup is stored under ``scenario_state["markup"]``.
    """
    scenario_state["markup"] = "  \n"


@given(
    parsers.parse(
        "a rasterizer producing a surface {width:d} pixels wide and {height:d} pixels tall"
    )
)
def given_rasterizer(
    make_rasterizer: typ.Callable[..., FakeRasterizer],
    scenario_state: ScenarioState,
    width: int,
    height: int,
) -> None:
    """Install a rasterizer that returns a blank bitmap of a fixed size.

    Parameters
    ----------
    make_rasterizer : Callable[..., FakeRasterizer]
        Factory fixture building fake rasterizers.
    scenario_state : ScenarioState
        Shared scenario state that receives the rasterizer.
    width : int
        Surface width in pixels.
    height : int
        Surface height in pixels.

    Returns
    -------
    None
        The rasterizer is stored under ``scenario_state["rasterizer"]``.
    """
    scenario_state["rasterizer"] = make_rasterizer(width=width, height=height)


def _generate(scenario_state: ScenarioState, output_format: OutputFormat) -> None:
    bundle = typ.cast("TemplateBundle", scenario_state["bundle"])
    markup = typ.cast("str", scenario_state["markup"])
    assembler = DocumentAssembler(rasterizer=scenario_state.get("rasterizer"))
    request = bundle.request(markup, output_format=output_format)
    scenario_state["result"] = asyncio.run(assembler.generate(request))


@when("I generate an HTML document")
def when_generate_html(scenario_state: ScenarioState) -> None:
    """Run the assembler with HTML output.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the bundle and markup.

    Returns
    -------
    None
        The generation result is stored under ``scenario_state["result"]``.
    """
    _generate(scenario_state, OutputFormat.HTML)


@when("I generate a PDF document")
def when_generate_pdf(scenario_state: ScenarioState) -> None:
    """Run the assembler with PDF output.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the bundle, markup and rasterizer.

    Returns
    -------
    None
        The generation result is stored under ``scenario_state["result"]``.
    """
    _generate(scenario_state, OutputFormat.PDF)


def _result(scenario_state: ScenarioState) -> AssembledDocument:
    return typ.cast("AssembledDocument", scenario_state["result"])


@then("the generation succeeds")
def then_generation_succeeds(scenario_state: ScenarioState) -> None:
    """Assert the request completed without errors.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.

    Returns
    -------
    None
        This step asserts on the stored result.
    """
    result = _result(scenario_state)
    assert result.success, result.errors
    assert result.phase is Phase.COMPLETED
    assert result.trace[-1] is Phase.COMPLETED


@then("the document lists every product with its price")
def then_products_listed(scenario_state: ScenarioState) -> None:
    """Assert each product line renders inside the scoped container.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.

    Returns
    -------
    None
        This step asserts on the generated HTML.
    """
    soup = BeautifulSoup(_result(scenario_state).html, "html.parser")
    items = soup.select(".document-preview-content li")
    assert [item.get_text() for item in items] == ["Widget: 5.00", "Gadget: 5.00"]
    assert soup.title is not None
    assert soup.title.get_text() == "Invoice"


@then("the phase trace skips rasterizing")
def then_trace_skips_rasterizing(scenario_state: ScenarioState) -> None:
    """Assert HTML output never entered the rasterizing or paginating phases.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.

    Returns
    -------
    None
        This step asserts on the phase trace.
    """
    trace = _result(scenario_state).trace
    assert Phase.RASTERIZING not in trace
    assert Phase.PAGINATING not in trace
    assert trace[-2:] == (Phase.ENCODING, Phase.COMPLETED)


@then(parsers.parse("the PDF has {pages:d} pages"))
def then_pdf_page_count(scenario_state: ScenarioState, pages: int) -> None:
    """Assert the encoded PDF reports the expected page count.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.
    pages : int
        Expected number of pages.

    Returns
    -------
    None
        This step asserts on the artifact and its metadata.
    """
    result = _result(scenario_state)
    assert result.artifact.startswith(b"%PDF")
    assert result.page_count == pages
    assert result.metadata.page_count == pages


@then(parsers.parse("the generation fails in the {phase} phase"))
def then_generation_fails(scenario_state: ScenarioState, phase: str) -> None:
    """Assert the request failed and names the phase that failed.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.
    phase : str
        Expected failing phase value, such as ``compiling_template``.

    Returns
    -------
    None
        This step asserts on the stored result.
    """
    result = _result(scenario_state)
    assert not result.success
    assert result.phase is Phase(phase)
    assert result.trace[-1] is Phase.FAILED
    assert result.errors
    assert result.artifact == b""


@then("the preview is empty")
def then_preview_empty(scenario_state: ScenarioState) -> None:
    """Assert no preview fragment was produced.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the generation result.

    Returns
    -------
    None
        This step asserts on the preview fragment.
    """
    assert _result(scenario_state).preview_html == ""
