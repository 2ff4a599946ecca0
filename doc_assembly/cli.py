"""Cyclopts CLI entrypoint for assembling documents from template bundles.

The ``docasm`` console script renders a template bundle (four region
templates, a stylesheet and optional metadata) against attribute markup and
writes a PDF or HTML artefact with a JSON metadata sidecar. Supporting
commands preview the scoped HTML, dump the extracted data tree, list the
variables a bundle references and list the registered helpers.

Every option can also be supplied through a ``DOCASM_``-prefixed environment
variable (for example ``DOCASM_CONFIG``).

Examples
--------
Generate an HTML invoice into ``out/``:

>>> from doc_assembly.cli import app
>>> app.run(
...     ["generate", "templates/invoice", "--data", "invoice.xml", "--format", "html"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import sys
import typing as typ
from pathlib import Path

import cyclopts
import msgspec
from cyclopts import App, Parameter
from loguru import logger

from ._constants import DOCUMENT_META_TEMPLATE
from .config import AssemblyConfig, load_assembly_config, load_template_bundle
from .data import extract, missing_required
from .helpers import HelperKind, default_registry
from .pipeline import DocumentAssembler, OutputFormat, generate_with_deadline
from .templating import analyze_sections, suggest_names

if typ.TYPE_CHECKING:
    from .pipeline import AssembledDocument, Rasterizer

DEFAULT_CONFIG = Path("docasm.yaml")

app = App(name="docasm", config=cyclopts.config.Env("DOCASM_", command=False))  # type: ignore[unknown-argument]


def _configure_logging(*, verbose: bool) -> None:
    """Route loguru output to stderr at the requested verbosity."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _load_config(path: Path) -> AssemblyConfig:
    """Load ``path`` when it exists, otherwise fall back to defaults."""
    if path.exists():
        return load_assembly_config(path)
    if path != DEFAULT_CONFIG:
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)
    return AssemblyConfig()


def _print_json(payload: object) -> None:
    print(msgspec.json.format(msgspec.json.encode(payload), indent=2).decode("utf-8"))


def _browser_rasterizer() -> Rasterizer:
    """Return the headless browser rasteriser from the ``browser`` extra."""
    try:
        from .pipeline.browser import PlaywrightRasterizer
    except ModuleNotFoundError as exc:
        msg = "PDF output needs the 'browser' extra: pip install 'doc-assembly[browser]'"
        raise SystemExit(msg) from exc
    return PlaywrightRasterizer()


def _write_outputs(
    result: AssembledDocument, directory: Path, stem: str, *, sidecar: bool
) -> list[Path]:
    """Write the artefact and, optionally, its metadata sidecar."""
    directory.mkdir(parents=True, exist_ok=True)
    artifact_path = directory / f"{stem}{result.output_format.suffix}"
    artifact_path.write_bytes(result.artifact)
    written = [artifact_path]
    if sidecar:
        meta_path = directory / DOCUMENT_META_TEMPLATE.format(stem=stem)
        payload = {
            **result.metadata.to_dict(),
            "format": result.output_format.value,
            "elapsed": round(result.elapsed, 4),
            "diagnostics": result.diagnostics,
        }
        meta_path.write_bytes(msgspec.json.format(msgspec.json.encode(payload), indent=2))
        written.append(meta_path)
    return written


@app.command(help="Generate a PDF or HTML document from a template bundle.")
def generate(
    bundle: typ.Annotated[Path, Parameter(help="Template bundle directory")],
    *,
    data: typ.Annotated[Path, Parameter(help="Attribute markup file with the document data")],
    config: typ.Annotated[Path, Parameter(help="Path to assembly config")] = DEFAULT_CONFIG,
    output_format: typ.Annotated[
        OutputFormat | None, Parameter(name="--format", help="Override the output format")
    ] = None,
    output_dir: typ.Annotated[
        Path | None, Parameter(help="Override the output folder")
    ] = None,
    timeout: typ.Annotated[
        float | None, Parameter(help="Seconds allowed for the whole generation")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Log pipeline progress")] = False,
) -> None:
    """Generate a document and write it beside its metadata sidecar.

    Parameters
    ----------
    bundle : Path
        Directory holding ``header.hbs``, ``body.hbs``, ``footer.hbs``,
        ``pagination.hbs``, ``style.scss`` and optional ``template.yaml``.
    data : Path
        Attribute markup file to extract the document data from.
    config : Path, optional
        Path to the ``docasm.yaml`` configuration; defaults apply when the
        default path does not exist.
    output_format : OutputFormat or None, optional
        Overrides the configured format.
    output_dir : Path or None, optional
        Overrides the configured output directory.
    timeout : float or None, optional
        Overrides the configured generation deadline.
    verbose : bool, optional
        Log debug output to stderr.

    Raises
    ------
    SystemExit
        With status 1 when generation fails; the phase-tagged errors are
        printed to stderr.
    """
    _configure_logging(verbose=verbose)
    settings = _load_config(config)
    template = load_template_bundle(bundle)
    request = template.request(
        data.read_text(encoding="utf-8"), settings, output_format=output_format
    )
    rasterizer = (
        _browser_rasterizer() if request.output_format is OutputFormat.PDF else None
    )
    assembler = DocumentAssembler(rasterizer=rasterizer, container=settings.container)
    result = asyncio.run(generate_with_deadline(assembler, request, timeout))
    if not result.success:
        for error in result.errors:
            print(f"error [{error.phase.value}] {error.code}: {error.message}", file=sys.stderr)
        raise SystemExit(1)
    for diagnostic in result.diagnostics:
        print(f"{diagnostic.severity.value}: {diagnostic.message}", file=sys.stderr)
    written = _write_outputs(
        result,
        output_dir or settings.output.directory,
        template.stem,
        sidecar=settings.output.metadata_sidecar,
    )
    for path in written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Print the scoped HTML preview of a template bundle.")
def preview(
    bundle: typ.Annotated[Path, Parameter(help="Template bundle directory")],
    *,
    data: typ.Annotated[Path, Parameter(help="Attribute markup file with the document data")],
    config: typ.Annotated[Path, Parameter(help="Path to assembly config")] = DEFAULT_CONFIG,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the preview to this file instead of stdout")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Log pipeline progress")] = False,
) -> None:
    """Render the preview fragment; extraction and template errors propagate."""
    _configure_logging(verbose=verbose)
    settings = _load_config(config)
    template = load_template_bundle(bundle)
    request = template.request(data.read_text(encoding="utf-8"), settings)
    html = DocumentAssembler(container=settings.container).preview(request)
    if output is None:
        print(html)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    print(f"wrote {_format_path(output)}")


@app.command(name="extract", help="Extract attribute markup and print the data tree as JSON.")
def extract_data(
    data: typ.Annotated[Path, Parameter(help="Attribute markup file")],
    *,
    verbose: typ.Annotated[bool, Parameter(help="Log extractor progress")] = False,
) -> None:
    """Print the extracted tree, its fingerprint and every diagnostic."""
    _configure_logging(verbose=verbose)
    result = extract(data.read_text(encoding="utf-8"))
    _print_json(
        {
            "valid": result.is_valid,
            "fingerprint": result.fingerprint,
            "byte_size": result.byte_size,
            "data": result.data.to_python(),
            "diagnostics": result.diagnostics,
        }
    )
    if not result.is_valid:
        raise SystemExit(1)


@app.command(help="List the variables a template bundle references.")
def variables(
    bundle: typ.Annotated[Path, Parameter(help="Template bundle directory")],
    *,
    data: typ.Annotated[
        Path | None, Parameter(help="Check the variables against this data file")
    ] = None,
) -> None:
    """Print detected variables per region, naming hints and missing fields."""
    template = load_template_bundle(bundle)
    sources = {region.value: text for region, text in template.source.as_mapping().items()}
    analysis = analyze_sections(sources)
    for region, found in analysis.by_section.items():
        if not found:
            continue
        print(f"{region}:")
        for variable in found:
            print(f"  {variable.name} ({variable.type.value}) {variable.description}".rstrip())
    for hint in suggest_names(analysis.variables):
        print(f"hint: {hint.variable}: {hint.suggestion}")
    if data is not None:
        extraction = extract(data.read_text(encoding="utf-8"))
        names = [variable.name for variable in analysis.variables]
        for diagnostic in missing_required(names, extraction.data):
            print(f"missing: {diagnostic.message}")


@app.command(help="List the registered template helpers.")
def helpers() -> None:
    """Print block helpers then value helpers."""
    registry = default_registry()
    for kind in HelperKind:
        print(f"{kind.value}: {', '.join(registry.names(kind))}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``docasm`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()


__all__ = ["app", "main"]
