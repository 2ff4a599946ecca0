from __future__ import annotations

import pytest

from doc_assembly.templating import (
    TemplateVariable,
    VariableType,
    analyze_sections,
    detect_variables,
    suggest_names,
)
from doc_assembly.templating.variables import describe, infer_type


def test_detect_variables_skips_helpers_and_blocks() -> None:
    source = (
        "{{customer_name}} {{#if paid}}{{invoice.total}}{{/if}} "
        "{{$currency total}} {{customer_name}} {{~ email ~}} {{this}}"
    )
    found = [(variable.name, variable.type) for variable in detect_variables(source)]
    assert found == [
        ("customer_name", VariableType.STRING),
        ("invoice.total", VariableType.NUMBER),
        ("email", VariableType.EMAIL),
    ]


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("due_date", VariableType.DATE),
        ("has_discount", VariableType.BOOLEAN),
        ("website_url", VariableType.URL),
        ("mobile", VariableType.PHONE),
        ("subtotal", VariableType.NUMBER),
        ("city", VariableType.STRING),
    ],
)
def test_infer_type_from_name(name: str, expected: VariableType) -> None:
    assert infer_type(name) is expected


def test_describe_falls_back_to_a_generated_label() -> None:
    assert describe("customer_name") == "Customer full name"
    assert describe("billing_city") == "City name"
    assert describe("shipping_mode") == "Dynamic value for Shipping mode"


def test_suggest_names_flags_short_and_underscored_names() -> None:
    variables = [
        TemplateVariable(name="x"),
        TemplateVariable(name="_secret"),
        TemplateVariable(name="_id_ref"),
        TemplateVariable(name="total"),
    ]
    assert [suggestion.variable for suggestion in suggest_names(variables)] == ["x", "_secret"]


def test_analyze_sections_merges_without_duplicates() -> None:
    analysis = analyze_sections({"header": "{{title}}", "body": "{{title}} {{total}}"})
    assert [variable.name for variable in analysis.variables] == ["title", "total"]
    assert len(analysis.by_section["body"]) == 2
    assert len(analysis.by_section["header"]) == 1
