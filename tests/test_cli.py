from __future__ import annotations

import typing as typ
from pathlib import Path
from textwrap import dedent

import msgspec.json as msgspec_json
import pytest

from doc_assembly import cli
from doc_assembly.pipeline import OutputFormat

if typ.TYPE_CHECKING:
    from conftest import FakeRasterizer


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, invoice_markup: str) -> Path:
    """Lay out a bundle and a data file, and run from the workspace root."""
    bundle = tmp_path / "invoice"
    bundle.mkdir()
    (bundle / "header.hbs").write_text("<h1>Invoice {{invoice._number}}</h1>", encoding="utf-8")
    (bundle / "body.hbs").write_text(
        "<p>{{invoice.bill_to.name}}</p><p>{{due_date}}</p>", encoding="utf-8"
    )
    (bundle / "style.scss").write_text("h1 { color: $primary; }", encoding="utf-8")
    (bundle / "template.yaml").write_text("name: Invoice\nauthor: Billing\n", encoding="utf-8")
    (tmp_path / "invoice.xml").write_text(invoice_markup, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_generate_html_writes_artifact_and_sidecar(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.generate(
        workspace / "invoice",
        data=workspace / "invoice.xml",
        output_format=OutputFormat.HTML,
        output_dir=workspace / "out",
    )

    html = (workspace / "out" / "invoice.html").read_text(encoding="utf-8")
    assert "Invoice INV-001" in html
    meta = msgspec_json.decode((workspace / "out" / ".invoice-meta.json").read_bytes())
    assert meta["format"] == "html"
    assert meta["title"] == "Invoice"
    assert meta["author"] == "Billing"
    assert meta["page_count"] == 1
    assert meta["byte_size"] == len(html.encode("utf-8"))
    assert isinstance(meta["diagnostics"], list)

    out = capsys.readouterr().out
    assert "wrote out/invoice.html" in out
    assert "wrote out/.invoice-meta.json" in out


def test_generate_uses_configuration_file(workspace: Path) -> None:
    config_path = workspace / "site.yaml"
    config_path.write_text(
        dedent(
            """
            output:
              format: html
              directory: dist
              metadata_sidecar: false
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )
    cli.generate(workspace / "invoice", data=workspace / "invoice.xml", config=config_path)

    assert (workspace / "dist" / "invoice.html").is_file()
    assert not (workspace / "dist" / ".invoice-meta.json").exists()


def test_generate_pdf_uses_the_rasterizer(
    workspace: Path,
    monkeypatch: pytest.MonkeyPatch,
    make_rasterizer: typ.Callable[..., FakeRasterizer],
) -> None:
    monkeypatch.setattr(cli, "_browser_rasterizer", lambda: make_rasterizer())
    cli.generate(workspace / "invoice", data=workspace / "invoice.xml")

    pdf = (workspace / "out" / "invoice.pdf").read_bytes()
    assert pdf.startswith(b"%PDF")
    meta = msgspec_json.decode((workspace / "out" / ".invoice-meta.json").read_bytes())
    assert meta["page_count"] == 2
    assert meta["geometry"]["width_mm"] == 210.0


def test_generate_failure_exits_with_phase_tagged_errors(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (workspace / "invoice" / "body.hbs").write_text("{{#each items}}", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.generate(
            workspace / "invoice",
            data=workspace / "invoice.xml",
            output_format=OutputFormat.HTML,
        )
    assert excinfo.value.code == 1
    assert "error [compiling_template] TEMPLATE_SYNTAX_ERROR" in capsys.readouterr().err
    assert not (workspace / "out").exists()


def test_missing_explicit_config_is_an_error(workspace: Path) -> None:
    with pytest.raises(FileNotFoundError, match="nope.yaml"):
        cli.generate(
            workspace / "invoice", data=workspace / "invoice.xml", config=workspace / "nope.yaml"
        )


def test_preview_prints_scoped_fragment(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.preview(workspace / "invoice", data=workspace / "invoice.xml")
    out = capsys.readouterr().out
    assert out.startswith("<style>.document-preview-content h1 { color: #6A77D8; }</style>")
    assert '<div class="document-preview-content">' in out


def test_preview_can_write_to_a_file(workspace: Path) -> None:
    target = workspace / "previews" / "invoice.html"
    cli.preview(workspace / "invoice", data=workspace / "invoice.xml", output=target)
    assert "Invoice INV-001" in target.read_text(encoding="utf-8")


def test_extract_prints_the_data_tree(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.extract_data(workspace / "invoice.xml")
    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload["valid"] is True
    assert payload["data"]["invoice"]["_number"] == "INV-001"
    assert len(payload["fingerprint"]) == 64
    assert {d["code"] for d in payload["diagnostics"]} >= {"NUMERIC_STRING"}


def test_extract_exits_non_zero_for_rejected_markup(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (workspace / "empty.xml").write_text("", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.extract_data(workspace / "empty.xml")
    assert excinfo.value.code == 1
    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload["valid"] is False
    assert [d["code"] for d in payload["diagnostics"]] == ["EMPTY_XML"]
    assert payload["diagnostics"][0]["severity"] == "critical"


def test_variables_lists_references_and_missing_fields(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.variables(workspace / "invoice", data=workspace / "invoice.xml")
    lines = capsys.readouterr().out.splitlines()
    assert "header:" in lines
    assert "body:" in lines
    assert any(line.startswith("  due_date (date) Due date") for line in lines)
    missing = [line for line in lines if line.startswith("missing:")]
    assert len(missing) == 1
    assert "due_date" in missing[0]


def test_helpers_lists_both_kinds(capsys: pytest.CaptureFixture[str]) -> None:
    cli.helpers()
    lines = dict(line.split(": ", 1) for line in capsys.readouterr().out.splitlines())
    assert "each" in lines["block"].split(", ")
    assert "$currency" in lines["value"].split(", ")
