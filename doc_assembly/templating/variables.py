"""List the plain data references a template expects.

Only simple mustaches such as ``{{customer_name}}`` or ``{{invoice.total}}``
count as variables. Helper calls, block tags and anything with arguments or
operators are skipped. Types and descriptions are guessed from the name.

Examples
--------
>>> [(v.name, v.type.value) for v in detect_variables("{{due_date}} {{$currency total}} {{email}}")]
[('due_date', 'date'), ('email', 'email')]
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import re

VARIABLE_PATTERN = re.compile(r"\{\{\s*([^}]+)\s*\}\}")
OPERATOR_PATTERN = re.compile(r"[+\-*/%=<>!&|]")


class VariableType(enum.StrEnum):
    """Coarse data type inferred from a variable name."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    BOOLEAN = "boolean"


TYPE_HINTS: tuple[tuple[VariableType, tuple[str, ...]], ...] = (
    (VariableType.DATE, ("date", "time", "created", "updated", "issued", "due")),
    (
        VariableType.NUMBER,
        ("amount", "price", "total", "cost", "tax", "subtotal", "quantity", "rate", "number", "id"),
    ),
    (VariableType.EMAIL, ("email", "mail")),
    (VariableType.URL, ("url", "link", "website", "domain")),
    (VariableType.PHONE, ("phone", "tel", "mobile", "fax")),
    (
        VariableType.BOOLEAN,
        ("is_", "has_", "can_", "should_", "active", "enabled", "visible"),
    ),
)

DESCRIPTIONS: dict[str, str] = {
    "name": "Customer or user name",
    "customer_name": "Customer full name",
    "company_name": "Company or business name",
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email address",
    "phone": "Phone number",
    "mobile": "Mobile phone number",
    "fax": "Fax number",
    "address": "Physical address",
    "street": "Street address",
    "city": "City name",
    "state": "State or province",
    "zip": "ZIP or postal code",
    "country": "Country name",
    "date": "Date value",
    "date_issued": "Date when issued",
    "due_date": "Due date",
    "created_at": "Creation date",
    "updated_at": "Last update date",
    "amount": "Monetary amount",
    "total": "Total amount",
    "subtotal": "Subtotal before taxes",
    "tax": "Tax amount",
    "tax_rate": "Tax rate percentage",
    "price": "Unit price",
    "cost": "Cost value",
    "title": "Document title",
    "description": "Description text",
    "notes": "Additional notes",
    "comments": "Comments",
    "id": "Unique identifier",
    "invoice_number": "Invoice number",
    "order_number": "Order number",
    "reference": "Reference number",
    "quantity": "Quantity amount",
    "count": "Count or number of items",
    "weight": "Weight value",
    "size": "Size specification",
}


@dc.dataclass(frozen=True, slots=True)
class TemplateVariable:
    """A plain data reference found in template source."""

    name: str
    type: VariableType = VariableType.STRING
    description: str = ""
    required: bool = True


@dc.dataclass(frozen=True, slots=True)
class VariableSuggestion:
    """A naming hint for one variable."""

    variable: str
    suggestion: str
    reason: str


@dc.dataclass(frozen=True, slots=True)
class SectionAnalysis:
    """Variables found across several template regions."""

    variables: tuple[TemplateVariable, ...]
    by_section: dict[str, tuple[TemplateVariable, ...]]


def _is_plain_reference(name: str) -> bool:
    if name.startswith(("$", "#", "/", "^", "!", "{", "&", "@")):
        return False
    if name in {"else", "this"}:
        return False
    if " " in name:
        return False
    return OPERATOR_PATTERN.search(name) is None


def infer_type(name: str) -> VariableType:
    """Guess the type of a variable from substrings of its name."""
    lowered = name.lower()
    for variable_type, hints in TYPE_HINTS:
        if any(hint in lowered for hint in hints):
            return variable_type
    return VariableType.STRING


def describe(name: str) -> str:
    """Return a human-readable description for a variable name."""
    lowered = name.lower()
    if lowered in DESCRIPTIONS:
        return DESCRIPTIONS[lowered]
    for key, description in DESCRIPTIONS.items():
        if key in lowered:
            return description
    words = name.replace("_", " ").lower()
    return f"Dynamic value for {words[:1].upper()}{words[1:]}"


def detect_variables(source: str) -> list[TemplateVariable]:
    """Return each distinct plain variable in ``source``, in order of appearance."""
    seen: set[str] = set()
    variables: list[TemplateVariable] = []
    for match in VARIABLE_PATTERN.finditer(source):
        name = match.group(1).strip().strip("~").strip()
        if name in seen or not _is_plain_reference(name):
            continue
        seen.add(name)
        variables.append(
            TemplateVariable(name=name, type=infer_type(name), description=describe(name))
        )
    return variables


def analyze_sections(sections: cabc.Mapping[str, str]) -> SectionAnalysis:
    """Detect variables per section and across all sections without duplicates."""
    by_section: dict[str, tuple[TemplateVariable, ...]] = {}
    combined: dict[str, TemplateVariable] = {}
    for section, source in sections.items():
        found = detect_variables(source)
        by_section[section] = tuple(found)
        for variable in found:
            combined.setdefault(variable.name, variable)
    return SectionAnalysis(variables=tuple(combined.values()), by_section=by_section)


def suggest_names(variables: cabc.Iterable[TemplateVariable]) -> list[VariableSuggestion]:
    """Return naming hints for very short or ``_``-prefixed variable names."""
    suggestions: list[VariableSuggestion] = []
    for variable in variables:
        name = variable.name
        if len(name) <= 2:
            suggestions.append(
                VariableSuggestion(
                    variable=name,
                    suggestion=f'Consider using a more descriptive name than "{name}"',
                    reason="Short variable names are harder to understand",
                )
            )
        if name.startswith("_") and not name.startswith(("_id", "_date")):
            suggestions.append(
                VariableSuggestion(
                    variable=name,
                    suggestion=f'Consider removing leading underscore from "{name}"',
                    reason="Leading underscores are typically reserved for system variables",
                )
            )
    return suggestions


__all__ = [
    "SectionAnalysis",
    "TemplateVariable",
    "VariableSuggestion",
    "VariableType",
    "analyze_sections",
    "describe",
    "detect_variables",
    "infer_type",
    "suggest_names",
]
