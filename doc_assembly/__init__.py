"""Assemble print-ready documents from region templates and attribute markup.

This package extracts data from attribute markup, renders the header, body,
footer and pagination regions with a logic-light template language, scopes a
symbol-substituted stylesheet to the document container and turns the result
into a paginated PDF or a standalone HTML file.

Exports
-------
- ``app``: Cyclopts application behind the ``docasm`` console script.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``DocumentAssembler`` and ``GenerationRequest``: the generation pipeline.

Examples
--------
>>> from doc_assembly import main
>>> main()  # doctest: +SKIP
>>> from doc_assembly import __version__
>>> __version__
'0.1.0'
"""

from __future__ import annotations

from ._constants import __version__
from .cli import app, main
from .composer import Region, TemplateSource
from .data import DataNode, extract
from .errors import Diagnostic, DocumentAssemblyError, Phase, ProcessingError, Severity
from .pipeline import (
    AssembledDocument,
    DocumentAssembler,
    GenerationRequest,
    OutputFormat,
    PageGeometry,
    generate_with_deadline,
)
from .styles import resolve, scope
from .templating import TemplateEngine

__all__ = [
    "AssembledDocument",
    "DataNode",
    "Diagnostic",
    "DocumentAssembler",
    "DocumentAssemblyError",
    "GenerationRequest",
    "OutputFormat",
    "PageGeometry",
    "Phase",
    "ProcessingError",
    "Region",
    "Severity",
    "TemplateEngine",
    "TemplateSource",
    "__version__",
    "app",
    "extract",
    "generate_with_deadline",
    "main",
    "resolve",
    "scope",
]
