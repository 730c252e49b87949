"""Exceptions raised by dmn-engine.

Errors fall into two families:

- DmnParseError: detected eagerly while parsing, resolving or compiling
  a decision, before any evaluation is attempted.
- DmnEvaluationError: detected lazily, per evaluate() call.

None of these are recovered internally. The engine reports a descriptive
error and leaves retry/fallback policy to the caller.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from dmn_engine.constants import MAX_CONTEXT_SNAPSHOT_VALUE_LENGTH

__all__ = [
    "DmnEngineError",
    "DmnParseError",
    "ModelParseError",
    "DecisionNotFoundError",
    "AmbiguousDecisionError",
    "UnsupportedLogicError",
    "DecisionCompileError",
    "DmnEvaluationError",
    "RuleConflictError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "InvalidConfigurationError",
]


class DmnEngineError(Exception):
    """Base class for all dmn-engine errors."""


# =============================================================================
# Parse / resolve / compile time
# =============================================================================


class DmnParseError(DmnEngineError):
    """A decision could not be turned into an executable form."""


class ModelParseError(DmnParseError):
    """The structural parser could not read the model source.

    Attributes:
        source_label: Name of the source (file name or "<stream>").
    """

    def __init__(self, message: str, source_label: str | None = None) -> None:
        super().__init__(message)
        self.source_label = source_label


class DecisionNotFoundError(DmnParseError):
    """The requested decision does not exist in the model.

    Attributes:
        decision_id: Requested identifier, or None for a no-id lookup.
        source_label: Label of the model that was searched.
    """

    def __init__(self, source_label: str, decision_id: str | None = None) -> None:
        if decision_id is None:
            message = f"Unable to find decision in model '{source_label}'."
        else:
            message = f"Unable to find decision with id '{decision_id}' in model '{source_label}'."
        super().__init__(message)
        self.decision_id = decision_id
        self.source_label = source_label


class AmbiguousDecisionError(DmnParseError):
    """No decision id was given but the model declares several decisions.

    Attributes:
        decision_ids: Identifiers declared by the model, in document order.
        source_label: Label of the model that was searched.
    """

    def __init__(self, source_label: str, decision_ids: Iterable[str]) -> None:
        self.decision_ids = tuple(decision_ids)
        self.source_label = source_label
        super().__init__(
            f"Unable to select a decision in model '{source_label}': it declares "
            f"{len(self.decision_ids)} decisions ({', '.join(self.decision_ids)}). "
            "Specify the decision id."
        )


class UnsupportedLogicError(DmnParseError):
    """The decision's logic variant cannot be compiled.

    Attributes:
        decision_id: Identifier of the rejected decision.
        logic_variant: The variant tag that is not supported.
    """

    def __init__(self, decision_id: str, logic_variant: str) -> None:
        super().__init__(
            f"The expression type of the decision '{decision_id}' is not supported. "
            f"Found '{logic_variant}'."
        )
        self.decision_id = decision_id
        self.logic_variant = logic_variant


class DecisionCompileError(DmnParseError):
    """The decision logic payload is structurally invalid.

    Attributes:
        decision_id: Identifier of the decision being compiled.
    """

    def __init__(self, message: str, decision_id: str | None = None) -> None:
        if decision_id is not None:
            message = f"Unable to compile decision '{decision_id}': {message}"
        super().__init__(message)
        self.decision_id = decision_id


# =============================================================================
# Evaluation time
# =============================================================================


class DmnEvaluationError(DmnEngineError):
    """A compiled decision failed while being evaluated."""


class RuleConflictError(DmnEvaluationError):
    """A hit policy that requires a single outcome matched several rules.

    Attributes:
        decision_id: Identifier of the evaluated decision.
        hit_policy: Name of the violated hit policy.
        rule_ids: Identifiers of the conflicting rules, in declaration order.
    """

    def __init__(self, decision_id: str, hit_policy: str, rule_ids: Iterable[str]) -> None:
        self.decision_id = decision_id
        self.hit_policy = hit_policy
        self.rule_ids = tuple(rule_ids)
        super().__init__(
            f"Hit policy '{hit_policy}' of decision '{decision_id}' only allows a single "
            f"outcome but the rules {', '.join(repr(r) for r in self.rule_ids)} matched."
        )


class ExpressionError(DmnEvaluationError):
    """An expression could not be evaluated against the input context.

    Attributes:
        expression: Text of the failing expression.
        context: Truncated snapshot of the input context.
        decision_id: Owning decision (set when wrapped by the table evaluator).
        rule_id: Owning rule, if the expression is a rule cell.
        column_id: Owning input/output column.
        reason: Underlying failure description.
    """

    def __init__(
        self,
        reason: str,
        expression: str,
        context: Mapping[str, Any] | None = None,
        decision_id: str | None = None,
        rule_id: str | None = None,
        column_id: str | None = None,
    ) -> None:
        self.reason = reason
        self.expression = expression
        self.context = snapshot_context(context)
        self.decision_id = decision_id
        self.rule_id = rule_id
        self.column_id = column_id
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.decision_id is not None:
            location.append(f"decision '{self.decision_id}'")
        if self.rule_id is not None:
            location.append(f"rule '{self.rule_id}'")
        if self.column_id is not None:
            location.append(f"column '{self.column_id}'")
        where = f" in {', '.join(location)}" if location else ""
        return f"Unable to evaluate expression '{self.expression}'{where}: {self.reason}. Context: {self.context}"

    def with_location(
        self,
        decision_id: str | None = None,
        rule_id: str | None = None,
        column_id: str | None = None,
    ) -> "ExpressionError":
        """Return a copy of this error annotated with its owning decision/rule/column."""
        located = ExpressionError(
            self.reason,
            self.expression,
            decision_id=decision_id or self.decision_id,
            rule_id=rule_id or self.rule_id,
            column_id=column_id or self.column_id,
        )
        # Context is already a snapshot
        located.context = self.context
        located.args = (located._format(),)
        return located


class ExpressionSyntaxError(DmnEngineError):
    """Expression text could not be parsed.

    Attributes:
        expression: The malformed text.
        position: Character offset of the problem, if known.
    """

    def __init__(self, message: str, expression: str, position: int | None = None) -> None:
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Invalid expression '{expression}'{where}: {message}")
        self.expression = expression
        self.position = position


# =============================================================================
# Configuration
# =============================================================================


class InvalidConfigurationError(DmnEngineError, ValueError):
    """Engine configuration file is missing required fields or malformed."""


def snapshot_context(context: Mapping[str, Any] | None) -> dict[str, str]:
    """Build a printable, size-limited copy of an input context.

    Args:
        context: Input context (may be None).

    Returns:
        Dict of variable name to truncated repr of its value.
    """
    if not context:
        return {}

    snapshot: dict[str, str] = {}
    for key, value in context.items():
        text = repr(value)
        if len(text) > MAX_CONTEXT_SNAPSHOT_VALUE_LENGTH:
            text = text[:MAX_CONTEXT_SNAPSHOT_VALUE_LENGTH] + "..."
        snapshot[str(key)] = text
    return snapshot
