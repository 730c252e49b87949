"""Decision model definitions.

Immutable, parsed representation of a DMN model as produced by the
structural parser. Nothing here is executable; the compiler turns a
DecisionDefinition into a CompiledDecisionTable.

Model structure:
    ModelHandle
    ├── source_label: File name or "<stream>"
    ├── checksum: "sha256:<hex>" of the source bytes
    └── decisions: tuple[DecisionDefinition]
        └── DecisionDefinition
            ├── id, name
            ├── logic_variant: LogicVariant
            └── logic: DecisionLogic (tagged on "kind")
                ├── DecisionTableLogic
                │   ├── hit_policy, aggregation (raw tokens)
                │   ├── inputs: InputClause...
                │   ├── outputs: OutputClause...
                │   └── rules: RuleDefinition...
                ├── LiteralExpressionLogic
                ├── InvocationLogic
                └── OtherLogic
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "LogicVariant",
    "InputClause",
    "OutputClause",
    "RuleDefinition",
    "DecisionTableLogic",
    "LiteralExpressionLogic",
    "InvocationLogic",
    "OtherLogic",
    "DecisionLogic",
    "DecisionDefinition",
    "ModelHandle",
]


class LogicVariant(str, Enum):
    """Kind of decision logic attached to a decision.

    Values match the DMN element names.
    """

    DECISION_TABLE = "decisionTable"
    LITERAL_EXPRESSION = "literalExpression"
    INVOCATION = "invocation"
    CONTEXT = "context"
    RELATION = "relation"
    LIST = "list"
    FUNCTION_DEFINITION = "functionDefinition"
    UNKNOWN = "unknown"


# =============================================================================
# Decision Table
# =============================================================================


class InputClause(BaseModel):
    """Declared input column of a decision table.

    Attributes:
        id: Column identifier.
        label: Human-readable label.
        expression: Input expression text, evaluated once per call.
        type_ref: Declared typeRef of the input expression.
    """

    id: str | None = None
    label: str | None = None
    expression: str = ""
    type_ref: str | None = None

    model_config = ConfigDict(frozen=True)


class OutputClause(BaseModel):
    """Declared output column of a decision table.

    Attributes:
        id: Column identifier.
        name: Output name used in results.
        label: Human-readable label.
        type_ref: Declared typeRef of the output values.
        output_values: Allowed values in priority order (highest first),
            as raw expression text. Used by PRIORITY and OUTPUT ORDER.
    """

    id: str | None = None
    name: str | None = None
    label: str | None = None
    type_ref: str | None = None
    output_values: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class RuleDefinition(BaseModel):
    """A single row of a decision table, as raw text.

    Attributes:
        id: Rule identifier.
        description: Optional annotation.
        input_entries: One unary-test text per input column ("" or "-" for any).
        output_entries: One expression text per output column.
    """

    id: str | None = None
    description: str | None = None
    input_entries: tuple[str, ...] = ()
    output_entries: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class DecisionTableLogic(BaseModel):
    """Raw decision table payload.

    hit_policy and aggregation are kept as the tokens found in the source;
    the compiler validates them.
    """

    kind: Literal["decisionTable"] = "decisionTable"
    id: str | None = None
    hit_policy: str | None = None
    aggregation: str | None = None
    inputs: tuple[InputClause, ...] = ()
    outputs: tuple[OutputClause, ...] = ()
    rules: tuple[RuleDefinition, ...] = ()

    model_config = ConfigDict(frozen=True)


class LiteralExpressionLogic(BaseModel):
    """Raw literal expression payload (not executable by this engine)."""

    kind: Literal["literalExpression"] = "literalExpression"
    text: str = ""
    expression_language: str | None = None

    model_config = ConfigDict(frozen=True)


class InvocationLogic(BaseModel):
    """Raw invocation payload (not executable by this engine)."""

    kind: Literal["invocation"] = "invocation"
    target: str | None = None
    bindings: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class OtherLogic(BaseModel):
    """Any other logic element, kept only by name."""

    kind: Literal["other"] = "other"
    element: str | None = None

    model_config = ConfigDict(frozen=True)


DecisionLogic = Annotated[
    Union[DecisionTableLogic, LiteralExpressionLogic, InvocationLogic, OtherLogic],
    Field(discriminator="kind"),
]


# =============================================================================
# Decisions and Models
# =============================================================================


class DecisionDefinition(BaseModel):
    """Declared, unresolved form of a single decision.

    Attributes:
        id: Identifier, unique within its model.
        name: Optional display name.
        logic_variant: Which kind of logic the decision carries.
        logic: Raw logic payload, or None if the decision has no logic element.
        required_decisions: Ids of decisions this one declares a requirement on.
            Metadata only; requirement graphs are not evaluated.
    """

    id: str
    name: str | None = None
    logic_variant: LogicVariant = LogicVariant.UNKNOWN
    logic: DecisionLogic | None = None
    required_decisions: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class ModelHandle(BaseModel):
    """Immutable, parsed decision model.

    Attributes:
        source_label: Name of the source the model was read from.
        checksum: "sha256:<hex>" of the source bytes. Identifies the model
            content for compile caching.
        namespace: Model namespace attribute, if any.
        name: Model name attribute, if any.
        decisions: Declared decisions in document order.
    """

    source_label: str
    checksum: str
    namespace: str | None = None
    name: str | None = None
    decisions: tuple[DecisionDefinition, ...] = ()

    model_config = ConfigDict(frozen=True)

    def __iter__(self) -> Iterator[DecisionDefinition]:  # type: ignore[override]
        return iter(self.decisions)

    def get_decision(self, decision_id: str) -> DecisionDefinition | None:
        """Return the decision with the given id, or None."""
        for decision in self.decisions:
            if decision.id == decision_id:
                return decision
        return None

    def decision_ids(self) -> list[str]:
        return [decision.id for decision in self.decisions]
