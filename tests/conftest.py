"""Shared fixtures for dmn-engine tests.

DMN files used by several tests live in tests/resources/. Tables that only
one test needs are built inline with the build_dmn fixture.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence
from xml.sax.saxutils import escape, quoteattr

import pytest

from dmn_engine import DmnEngine

RESOURCES_DIR = Path(__file__).parent / "resources"

DMN_NAMESPACE = "https://www.omg.org/spec/DMN/20191111/MODEL/"


@pytest.fixture
def resources() -> Path:
    """Directory with the DMN test models."""
    return RESOURCES_DIR


@pytest.fixture
def engine() -> DmnEngine:
    """Engine with default configuration."""
    return DmnEngine()


def _attrs(**attributes: str | None) -> str:
    return "".join(f" {name}={quoteattr(value)}" for name, value in attributes.items() if value is not None)


def _build_dmn(
    inputs: Sequence[tuple[str, str | None]] = (),
    outputs: Sequence[tuple[str | None, str | None]] = (("result", None),),
    rules: Sequence[tuple[Sequence[str], Sequence[str]]] = (),
    hit_policy: str | None = None,
    aggregation: str | None = None,
    decision_id: str = "decision",
    output_values: dict[int, str] | None = None,
) -> bytes:
    """Build a single-table DMN document.

    Args:
        inputs: (expression, typeRef) per input column.
        outputs: (name, typeRef) per output column.
        rules: (input entries, output entries) per rule.
        hit_policy: hitPolicy attribute.
        aggregation: aggregation attribute.
        decision_id: Id of the decision.
        output_values: Allowed values text keyed by output column index.

    Returns:
        UTF-8 encoded DMN XML.
    """
    output_values = output_values or {}
    parts = [
        f'<definitions xmlns="{DMN_NAMESPACE}" id="definitions" name="test" namespace="http://example.org">',
        f'<decision id="{decision_id}" name="Test">',
        f"<decisionTable{_attrs(id='table', hitPolicy=hit_policy, aggregation=aggregation)}>",
    ]
    for index, (expression, type_ref) in enumerate(inputs):
        parts.append(
            f'<input id="input{index}"><inputExpression{_attrs(typeRef=type_ref)}>'
            f"<text>{escape(expression)}</text></inputExpression></input>"
        )
    for index, (name, type_ref) in enumerate(outputs):
        values = ""
        if index in output_values:
            values = f"<outputValues><text>{escape(output_values[index])}</text></outputValues>"
        parts.append(f"<output{_attrs(id=f'output{index}', name=name, typeRef=type_ref)}>{values}</output>")
    for index, (input_entries, output_entries) in enumerate(rules):
        parts.append(f'<rule id="rule{index}">')
        parts.extend(f"<inputEntry><text>{escape(text)}</text></inputEntry>" for text in input_entries)
        parts.extend(f"<outputEntry><text>{escape(text)}</text></outputEntry>" for text in output_entries)
        parts.append("</rule>")
    parts.append("</decisionTable></decision></definitions>")
    return "".join(parts).encode("utf-8")


@pytest.fixture
def build_dmn() -> Callable[..., bytes]:
    """Builder for single-table DMN documents (see _build_dmn)."""
    return _build_dmn
