"""Logic-light template language with pluggable helpers.

Templates use double-brace placeholders (``{{customer.name}}``), block
helpers (``{{#each items}}…{{/each}}``) and value helpers
(``{{$currency total}}``). Compile once with :class:`TemplateEngine` and render
a :class:`CompiledTemplate` against any number of data trees.

Examples
--------
>>> from doc_assembly.templating import TemplateEngine
>>> TemplateEngine().render("<b>{{name}}</b>", {"name": "<Ada>"})
'<b>&lt;Ada&gt;</b>'
"""

from .engine import CompiledTemplate, Frame, TemplateData, TemplateEngine
from .parser import parse, parse_expression, parse_path
from .validation import validate_template
from .variables import (
    SectionAnalysis,
    TemplateVariable,
    VariableSuggestion,
    VariableType,
    analyze_sections,
    detect_variables,
    suggest_names,
)

__all__ = [
    "CompiledTemplate",
    "Frame",
    "SectionAnalysis",
    "TemplateData",
    "TemplateEngine",
    "TemplateVariable",
    "VariableSuggestion",
    "VariableType",
    "analyze_sections",
    "detect_variables",
    "parse",
    "parse_expression",
    "parse_path",
    "suggest_names",
    "validate_template",
]
