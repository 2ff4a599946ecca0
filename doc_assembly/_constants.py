"""Common literal values used across doc_assembly.

These constants keep selector names, size ceilings and metadata keys
centralized so the extractor, style preprocessor, pipeline and tests can import
the same values without drifting. Intended for internal use within the
doc_assembly package.

Examples
--------
>>> from doc_assembly import _constants
>>> _constants.DOCUMENT_META_TEMPLATE.format(stem="invoice")
'.invoice-meta.json'
>>> _constants.MAX_MARKUP_BYTES
10485760
"""

__version__ = "0.1.0"

GENERATOR_TAG = f"doc-assembly/{__version__}"
CONTAINER_SELECTOR = ".document-preview-content"
MAX_MARKUP_BYTES = 10 * 1024 * 1024
MAX_NESTING_DEPTH = 10
MAX_FIELD_NAME_LENGTH = 50
ALTERNATE_KEY_PREFIX = "_"
DEFAULT_VIEWPORT_WIDTH = 800
CSS_PIXELS_PER_INCH = 96
DOCUMENT_META_TEMPLATE = ".{stem}-meta.json"
