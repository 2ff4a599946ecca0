"""Behaviour tests for style resolution and container scoping using pytest-bdd.

The scenarios cover how document stylesheets are confined to the preview
container and how symbol references that the table cannot satisfy are
handled in lenient and strict modes.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from doc_assembly.styles import resolve, scope

if typ.TYPE_CHECKING:
    from doc_assembly.styles import CompiledStyle

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "style_scoping.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Parameters
    ----------
    None
        This fixture does not accept parameters.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {}


@given(parsers.parse('the stylesheet "{css}"'))
def given_stylesheet(scenario_state: ScenarioState, css: str) -> None:
    """Record the stylesheet under test.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state that receives the stylesheet.
    css : str
        Stylesheet text taken from the step.

    Returns
    -------
    None
        The stylesheet is stored under ``scenario_state["css"]``.
    """
    scenario_state["css"] = css


@when("the stylesheet is scoped")
def when_scoped(scenario_state: ScenarioState) -> None:
    """Scope the stylesheet to the default preview container.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the stylesheet.

    Returns
    -------
    None
        The scoped text is stored under ``scenario_state["result"]``.
    """
    scenario_state["result"] = scope(typ.cast("str", scenario_state["css"]))


@when("the stylesheet is resolved")
def when_resolved(scenario_state: ScenarioState) -> None:
    """Resolve symbols against the default table in lenient mode.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the stylesheet.

    Returns
    -------
    None
        The compiled style and its CSS are stored in the scenario state.
    """
    style = resolve(typ.cast("str", scenario_state["css"]))
    scenario_state["style"] = style
    scenario_state["result"] = style.css


@when("the stylesheet is resolved strictly")
def when_resolved_strictly(scenario_state: ScenarioState) -> None:
    """Resolve symbols against the default table in strict mode.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the stylesheet.

    Returns
    -------
    None
        The compiled style and its CSS are stored in the scenario state.
    """
    style = resolve(typ.cast("str", scenario_state["css"]), strict=True)
    scenario_state["style"] = style
    scenario_state["result"] = style.css


@then(parsers.parse('the result is "{expected}"'))
def then_result_is(scenario_state: ScenarioState, expected: str) -> None:
    """Assert the produced stylesheet text.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the result.
    expected : str
        Expected stylesheet text.

    Returns
    -------
    None
        This step asserts on the stored result.
    """
    assert scenario_state["result"] == expected


@then(parsers.parse('the symbol "{name}" is reported as unresolved'))
def then_symbol_unresolved(scenario_state: ScenarioState, name: str) -> None:
    """Assert a warning names the unresolved symbol.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared scenario state holding the compiled style.
    name : str
        Symbol name without the leading ``$``.

    Returns
    -------
    None
        This step asserts on the compiled style.
    """
    style = typ.cast("CompiledStyle", scenario_state["style"])
    assert name in style.unresolved
    assert [d.path for d in style.diagnostics if d.code == "UNRESOLVED_SYMBOL"] == [f"${name}"]
