"""Turn raw attribute markup into an immutable lookup tree.

The primary entry point is :func:`extract`, which validates the input, picks
one of the two supported document shapes and returns an
:class:`ExtractionResult` carrying a :class:`DataNode` tree, advisory
diagnostics and a SHA-256 content fingerprint.

Examples
--------
>>> from doc_assembly.data import extract
>>> result = extract('<invoice number="INV-1" total="10"/>')
>>> result.is_valid
True
>>> result.data.lookup("invoice.total").as_scalar()
'10'
"""

from .extractor import (
    ExtractionResult,
    ExtractorShape,
    extract,
    fingerprint,
    missing_required,
    serialize,
)
from .nodes import DataNode, NodeKind, Scalar
from .validation import post_validate, pre_validate

__all__ = [
    "DataNode",
    "ExtractionResult",
    "ExtractorShape",
    "NodeKind",
    "Scalar",
    "extract",
    "fingerprint",
    "missing_required",
    "post_validate",
    "pre_validate",
    "serialize",
]
