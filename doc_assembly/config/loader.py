"""Load assembly configuration and template bundles from disk."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from doc_assembly.composer import Region, TemplateSource

from .helpers import (
    _build_output_settings,
    _build_page_settings,
    _build_style_settings,
    _build_template_metadata,
    _load_yaml_mapping,
    _section,
)
from .models import AssemblyConfig, ConfigError, TemplateBundle

TEMPLATE_SUFFIX = ".hbs"
STYLE_FILENAME = "style.scss"
METADATA_FILENAME = "template.yaml"


def load_assembly_config(path: Path) -> AssemblyConfig:
    """Load the YAML configuration describing page, style and output choices.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``docasm.yaml``).

    Returns
    -------
    AssemblyConfig
        Parsed configuration with defaults applied for absent sections.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    ConfigError
        If a section or field holds an invalid value.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_assembly_config(Path("docasm.yaml"))  # doctest: +SKIP
    >>> config.page.geometry().content_width  # doctest: +SKIP
    170.0
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    raw = _load_yaml_mapping(path)
    unknown = sorted(set(raw) - {"page", "style", "output", "container"})
    if unknown:
        msg = f"Unknown configuration sections: {', '.join(unknown)}."
        raise ConfigError(msg)

    container = str(raw.get("container") or AssemblyConfig().container).strip()
    if not container.startswith("."):
        msg = f"Container selector {container!r} must be a class selector."
        raise ConfigError(msg)

    config = AssemblyConfig(
        page=_build_page_settings(_section(raw, "page")),
        style=_build_style_settings(_section(raw, "style")),
        output=_build_output_settings(_section(raw, "output"), base_dir=path.parent),
        container=container,
    )
    logger.debug("Loaded assembly configuration from {}", path)
    return config


def load_template_bundle(path: Path) -> TemplateBundle:
    """Load a template bundle directory.

    A bundle holds one ``<region>.hbs`` file per region (``header``, ``body``,
    ``footer`` and ``pagination``), an optional ``style.scss`` stylesheet and
    optional ``template.yaml`` metadata. Absent region files are blank.

    Raises
    ------
    FileNotFoundError
        If ``path`` is not a directory.
    ConfigError
        If the bundle holds no region files at all.
    """
    if not path.is_dir():
        msg = f"Template bundle '{path}' not found."
        raise FileNotFoundError(msg)

    regions: dict[str, str] = {}
    for region in Region:
        region_path = path / f"{region.value}{TEMPLATE_SUFFIX}"
        if region_path.is_file():
            regions[region.value] = region_path.read_text(encoding="utf-8")
    if not regions:
        msg = f"Template bundle '{path}' contains no {TEMPLATE_SUFFIX} region files."
        raise ConfigError(msg)

    style_path = path / STYLE_FILENAME
    style_source = style_path.read_text(encoding="utf-8") if style_path.is_file() else ""

    metadata_path = path / METADATA_FILENAME
    metadata_raw = _load_yaml_mapping(metadata_path) if metadata_path.is_file() else {}
    metadata = _build_template_metadata(metadata_raw, fallback_name=path.name)

    logger.debug("Loaded template bundle {} ({})", path.name, ", ".join(sorted(regions)))
    return TemplateBundle(
        path=path,
        source=TemplateSource.from_mapping(regions),
        style_source=style_source,
        metadata=metadata,
    )


__all__ = [
    "METADATA_FILENAME",
    "STYLE_FILENAME",
    "TEMPLATE_SUFFIX",
    "load_assembly_config",
    "load_template_bundle",
]
