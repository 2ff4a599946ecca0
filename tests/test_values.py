from __future__ import annotations

import math

import pytest
from markupsafe import Markup

from doc_assembly.values import (
    get_property,
    is_blank,
    is_empty,
    is_truthy,
    stringify,
    to_builtins,
    to_number,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (3.0, "3"),
        (2.5, "2.5"),
        (math.nan, "0"),
        ({"a": 1}, "[object Object]"),
        (["a", 1, None], "a,1,"),
    ],
)
def test_stringify(value: object, expected: str) -> None:
    assert stringify(value) == expected


def test_stringify_keeps_markup_type() -> None:
    rendered = stringify(Markup("<b>x</b>"))
    assert isinstance(rendered, Markup)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("42", 42),
        (" 4.5 ", 4.5),
        ("1,234.5", 1234.5),
        ("n/a", 0),
        ("", 0),
        (None, 0),
        (True, 1),
        (math.inf, 0),
        ([1], 0),
    ],
)
def test_to_number_degrades_to_zero(value: object, expected: float) -> None:
    assert to_number(value) == expected


def test_emptiness_rules() -> None:
    assert is_empty(None)
    assert is_empty("")
    assert is_empty([])
    assert is_empty(0)
    assert not is_empty(0, include_zero=True)
    assert not is_empty({})
    assert is_blank({})
    assert is_blank("   ")
    assert is_truthy([])
    assert not is_truthy(math.nan)


def test_get_property_handles_mappings_and_sequences() -> None:
    assert get_property({"a": 1}, "a") == 1
    assert get_property(["x", "y"], "1") == "y"
    assert get_property(["x"], "5") is None
    assert get_property("abc", "length") == 3
    assert get_property(7, "anything") is None


def test_to_builtins_copies_nested_structures() -> None:
    source = {"items": ({"name": Markup("<i>a</i>")},)}
    result = to_builtins(source)
    assert result == {"items": [{"name": "<i>a</i>"}]}
    assert type(result["items"][0]["name"]) is str  # type: ignore[index]
