"""Load and validate doc_assembly configuration and template bundles.

This subpackage parses the optional ``docasm.yaml`` file (page setup, style
symbols, output settings) into slotted dataclasses and loads template bundle
directories holding the four region templates, a stylesheet and
``template.yaml`` metadata. The entry points are :func:`load_assembly_config`
and :func:`load_template_bundle`.

Examples
--------
>>> from pathlib import Path
>>> from doc_assembly.config import load_template_bundle
>>> bundle = load_template_bundle(Path("templates/invoice"))  # doctest: +SKIP
>>> request = bundle.request('<invoice number="X"/>')  # doctest: +SKIP
>>> request.geometry.content_width  # doctest: +SKIP
170.0
"""

from .loader import load_assembly_config, load_template_bundle
from .models import (
    AssemblyConfig,
    ConfigError,
    OutputSettings,
    PageSettings,
    StyleSettings,
    TemplateBundle,
)

__all__ = [
    "AssemblyConfig",
    "ConfigError",
    "OutputSettings",
    "PageSettings",
    "StyleSettings",
    "TemplateBundle",
    "load_assembly_config",
    "load_template_bundle",
]
