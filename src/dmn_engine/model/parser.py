"""Structural parser - turn DMN XML into a ModelHandle.

Accepts any of:
- a file path (str or os.PathLike)
- raw bytes
- a readable stream (binary or text, anything with read())
- an already-parsed ModelHandle (returned unchanged)

Elements are matched by local name so DMN 1.1, 1.2 and 1.3 documents (and
documents without a namespace) are read the same way. Vendor extension
elements and attributes are ignored.

The parser checks structure only: a <definitions> root, an id on every
decision, unique decision ids. It does not validate the logic payload
(that is the compiler's job) nor apply the DMN XML schema.
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Any, Union

from dmn_engine.constants import ANONYMOUS_SOURCE_LABEL
from dmn_engine.exceptions import ModelParseError
from dmn_engine.model.definitions import (
    DecisionDefinition,
    DecisionTableLogic,
    InputClause,
    InvocationLogic,
    LiteralExpressionLogic,
    LogicVariant,
    ModelHandle,
    OtherLogic,
    OutputClause,
    RuleDefinition,
)
from dmn_engine.utils.file_helpers import compute_checksum

__all__ = [
    "ModelSource",
    "parse_model",
    "parse_model_bytes",
]

logger = logging.getLogger(__name__)

ModelSource = Union[str, "os.PathLike[str]", bytes, IO[Any], ModelHandle]

# Element names that carry decision logic, in the DMN "expression" family
_LOGIC_ELEMENTS: dict[str, LogicVariant] = {variant.value: variant for variant in LogicVariant}
_LOGIC_ELEMENTS.pop(LogicVariant.UNKNOWN.value)


def _local(tag: Any) -> str:
    """Strip the "{namespace}" prefix from an element tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _text_of(element: ET.Element | None) -> str:
    """Return the stripped content of an element's <text> child.

    Returns "" when the element or its <text> child is missing.
    """
    if element is None:
        return ""
    text = _child(element, "text")
    if text is None or text.text is None:
        return ""
    return text.text.strip()


def _plain_text(element: ET.Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


# =============================================================================
# Logic payloads
# =============================================================================


def _parse_decision_table(element: ET.Element) -> DecisionTableLogic:
    inputs = []
    for input_el in _children(element, "input"):
        expression_el = _child(input_el, "inputExpression")
        inputs.append(
            InputClause(
                id=input_el.get("id"),
                label=input_el.get("label"),
                expression=_text_of(expression_el),
                type_ref=expression_el.get("typeRef") if expression_el is not None else None,
            )
        )

    outputs = []
    for output_el in _children(element, "output"):
        values_el = _child(output_el, "outputValues")
        output_values: tuple[str, ...] = ()
        if values_el is not None:
            raw = _text_of(values_el)
            output_values = tuple(_split_top_level(raw)) if raw else ()
        outputs.append(
            OutputClause(
                id=output_el.get("id"),
                name=output_el.get("name"),
                label=output_el.get("label"),
                type_ref=output_el.get("typeRef"),
                output_values=output_values,
            )
        )

    rules = []
    for rule_el in _children(element, "rule"):
        rules.append(
            RuleDefinition(
                id=rule_el.get("id"),
                description=_plain_text(_child(rule_el, "description")),
                input_entries=tuple(_text_of(entry) for entry in _children(rule_el, "inputEntry")),
                output_entries=tuple(_text_of(entry) for entry in _children(rule_el, "outputEntry")),
            )
        )

    return DecisionTableLogic(
        id=element.get("id"),
        hit_policy=element.get("hitPolicy"),
        aggregation=element.get("aggregation"),
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        rules=tuple(rules),
    )


def _split_top_level(text: str) -> list[str]:
    """Split a comma separated list, ignoring commas inside quotes or brackets."""
    parts: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    for char in text:
        if char == '"':
            in_string = not in_string
        elif not in_string and char in "([":
            depth += 1
        elif not in_string and char in ")]":
            depth -= 1
        if char == "," and depth == 0 and not in_string:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def _parse_logic(element: ET.Element | None) -> tuple[LogicVariant, Any]:
    if element is None:
        return LogicVariant.UNKNOWN, None

    variant = _LOGIC_ELEMENTS[_local(element.tag)]
    if variant == LogicVariant.DECISION_TABLE:
        return variant, _parse_decision_table(element)
    if variant == LogicVariant.LITERAL_EXPRESSION:
        return variant, LiteralExpressionLogic(
            text=_text_of(element),
            expression_language=element.get("expressionLanguage"),
        )
    if variant == LogicVariant.INVOCATION:
        target = _child(element, "literalExpression")
        bindings = tuple(
            binding_param.get("name", "")
            for binding in _children(element, "binding")
            for binding_param in _children(binding, "parameter")
        )
        return variant, InvocationLogic(target=_text_of(target) or None, bindings=bindings)
    return variant, OtherLogic(element=variant.value)


def _parse_decision(element: ET.Element, source_label: str) -> DecisionDefinition:
    decision_id = element.get("id")
    if not decision_id:
        raise ModelParseError(
            f"Decision without an id found in model '{source_label}'.",
            source_label=source_label,
        )

    logic_element = next((child for child in element if _local(child.tag) in _LOGIC_ELEMENTS), None)
    if logic_element is None:
        logger.debug("Decision '%s' in '%s' has no recognized logic element", decision_id, source_label)
    variant, logic = _parse_logic(logic_element)

    required = []
    for requirement in _children(element, "informationRequirement"):
        required_el = _child(requirement, "requiredDecision")
        if required_el is not None and required_el.get("href"):
            required.append(required_el.get("href", "").lstrip("#"))

    return DecisionDefinition(
        id=decision_id,
        name=element.get("name"),
        logic_variant=variant,
        logic=logic,
        required_decisions=tuple(required),
    )


# =============================================================================
# Entry points
# =============================================================================


def parse_model_bytes(data: bytes | str, source_label: str = ANONYMOUS_SOURCE_LABEL) -> ModelHandle:
    """Parse a DMN XML document into a ModelHandle.

    Args:
        data: Raw XML bytes, or already decoded text. For text the XML
            declaration's encoding is ignored.
        source_label: Name recorded on the handle and used in error messages.

    Returns:
        Immutable ModelHandle.

    Raises:
        ModelParseError: If the document is not well-formed or not a DMN model.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ModelParseError(f"Unable to parse model '{source_label}': {e}", source_label=source_label) from e

    if _local(root.tag) != "definitions":
        raise ModelParseError(
            f"Unable to parse model '{source_label}': expected a <definitions> root element "
            f"but found <{_local(root.tag)}>.",
            source_label=source_label,
        )

    decisions = [_parse_decision(element, source_label) for element in _children(root, "decision")]

    seen: set[str] = set()
    for decision in decisions:
        if decision.id in seen:
            raise ModelParseError(
                f"Duplicate decision id '{decision.id}' in model '{source_label}'.",
                source_label=source_label,
            )
        seen.add(decision.id)

    namespace = root.tag[1:].split("}", 1)[0] if root.tag.startswith("{") else None
    handle = ModelHandle(
        source_label=source_label,
        checksum=compute_checksum(data.encode("utf-8") if isinstance(data, str) else data),
        namespace=root.get("namespace") or namespace,
        name=root.get("name"),
        decisions=tuple(decisions),
    )
    logger.debug("Parsed model '%s' with %d decision(s)", source_label, len(handle.decisions))
    return handle


def parse_model(source: ModelSource) -> ModelHandle:
    """Parse a model from a path, bytes, stream or existing handle.

    Args:
        source: File path, raw bytes, readable stream, or ModelHandle.

    Returns:
        Immutable ModelHandle.

    Raises:
        ModelParseError: If the source cannot be read or is not a DMN model.
    """
    if isinstance(source, ModelHandle):
        return source

    if isinstance(source, (bytes, bytearray)):
        return parse_model_bytes(bytes(source))

    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        label = os.fspath(source)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ModelParseError(f"Unable to read model '{label}': {e}", source_label=label) from e
        return parse_model_bytes(data, source_label=label)

    read = getattr(source, "read", None)
    if callable(read):
        name = getattr(source, "name", None)
        label = os.fspath(name) if isinstance(name, (str, os.PathLike)) else ANONYMOUS_SOURCE_LABEL
        try:
            content = read()
        except OSError as e:
            raise ModelParseError(f"Unable to read model '{label}': {e}", source_label=label) from e
        return parse_model_bytes(content, source_label=label)

    raise ModelParseError(f"Unsupported model source type: {type(source).__name__}")
