"""Typed dataclasses describing doc_assembly configuration and template bundles."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from doc_assembly._constants import CONTAINER_SELECTOR, DEFAULT_VIEWPORT_WIDTH
from doc_assembly.errors import GeometryError
from doc_assembly.pipeline import (
    PAGE_SETUPS,
    GenerationRequest,
    Margins,
    OutputFormat,
    PageGeometry,
    TemplateMetadata,
)

if typ.TYPE_CHECKING:
    from doc_assembly.composer import TemplateSource


class ConfigError(ValueError):
    """Raised when a configuration file or template bundle is invalid."""


@dc.dataclass(slots=True)
class PageSettings:
    """Page layout selected by configuration.

    A named ``setup`` supplies the defaults; explicit ``size``,
    ``orientation``, ``margins`` and ``dpi`` values override it.
    """

    setup: str | None = None
    size: str | None = None
    orientation: str | None = None
    margins: Margins | None = None
    dpi: int | None = None

    def geometry(self) -> PageGeometry:
        """Return the page geometry these settings describe.

        Raises
        ------
        GeometryError
            If the setup name, size or resulting layout is invalid.
        """
        name = self.setup or "standard"
        try:
            size, orientation, margin, dpi = PAGE_SETUPS[name]
        except KeyError as exc:
            msg = f"Unknown page setup {name!r}; expected one of {sorted(PAGE_SETUPS)}"
            raise GeometryError(msg) from exc
        return PageGeometry.from_preset(
            self.size or size,
            self.orientation or orientation,
            self.margins or Margins.uniform(margin),
            self.dpi if self.dpi is not None else dpi,
        )


@dc.dataclass(slots=True)
class StyleSettings:
    """Style symbol table and resolution mode."""

    symbols: dict[str, str] | None = None
    strict: bool = False


@dc.dataclass(slots=True)
class OutputSettings:
    """Where and how generated artefacts are written."""

    format: OutputFormat = OutputFormat.PDF
    directory: Path = dc.field(default_factory=lambda: Path("out"))
    metadata_sidecar: bool = True
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    scale: float = 2.0
    timeout: float | None = None


@dc.dataclass(slots=True)
class AssemblyConfig:
    """Top-level configuration for document generation runs."""

    page: PageSettings = dc.field(default_factory=PageSettings)
    style: StyleSettings = dc.field(default_factory=StyleSettings)
    output: OutputSettings = dc.field(default_factory=OutputSettings)
    container: str = CONTAINER_SELECTOR


@dc.dataclass(slots=True)
class TemplateBundle:
    """A template directory: four regions, a stylesheet and metadata."""

    path: Path
    source: TemplateSource
    style_source: str = ""
    metadata: TemplateMetadata = dc.field(default_factory=TemplateMetadata)

    @property
    def stem(self) -> str:
        """Return the bundle's directory name, used to name outputs."""
        return self.path.name

    def request(
        self,
        data_markup: str,
        config: AssemblyConfig | None = None,
        *,
        output_format: OutputFormat | None = None,
    ) -> GenerationRequest:
        """Build a generation request for ``data_markup``.

        Parameters
        ----------
        data_markup : str
            Attribute markup holding the document data.
        config : AssemblyConfig, optional
            Page, style and output settings; defaults apply when omitted.
        output_format : OutputFormat, optional
            Overrides the configured output format.
        """
        settings = config or AssemblyConfig()
        return GenerationRequest(
            templates=self.source,
            data_markup=data_markup,
            style_source=self.style_source,
            output_format=output_format or settings.output.format,
            geometry=settings.page.geometry(),
            metadata=self.metadata,
            timeout=settings.output.timeout,
            symbols=settings.style.symbols,
            strict_styles=settings.style.strict,
            viewport_width=settings.output.viewport_width,
            scale=settings.output.scale,
        )


__all__ = [
    "AssemblyConfig",
    "ConfigError",
    "OutputSettings",
    "PageSettings",
    "StyleSettings",
    "TemplateBundle",
]
