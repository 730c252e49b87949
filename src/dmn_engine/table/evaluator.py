"""Table evaluator - execute a compiled decision table against a context.

Evaluation flow:
1. Evaluate every input expression once to get the column subjects
2. Match rules in declaration order (all cells must match, AND logic;
   an empty cell matches anything)
3. Apply the hit policy to the matching rules
4. Evaluate the output entries of the retained rules
5. Assemble an immutable ResultSet

A table without input columns matches every rule. A table without output
columns yields entries with no values.

Evaluation reads only the compiled table and the caller's context and
returns a fresh ResultSet, so it is safe to run concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from dmn_engine.exceptions import ExpressionError, RuleConflictError
from dmn_engine.results import OutputEntry, OutputValue, ResultSet
from dmn_engine.table.compiled import CompiledDecisionTable, CompiledRule
from dmn_engine.table.hit_policy import Aggregation, HitPolicy, aggregate, priority_key
from dmn_engine.types import TypeCoercionError, coerce_value

__all__ = [
    "evaluate_table",
]

logger = logging.getLogger(__name__)


def _evaluate_inputs(table: CompiledDecisionTable, context: Mapping[str, Any]) -> list[Any]:
    """Evaluate each input expression once, coerced to its typeRef."""
    subjects = []
    for column in table.inputs:
        try:
            value = column.expression(context)
        except ExpressionError as e:
            raise e.with_location(decision_id=table.decision_id, column_id=column.id) from e
        try:
            subjects.append(coerce_value(value, column.type_ref, strict=table.strict_types))
        except TypeCoercionError as e:
            raise ExpressionError(
                str(e),
                column.expression.text,
                context,
                decision_id=table.decision_id,
                column_id=column.id,
            ) from e
    return subjects


def _rule_matches(
    table: CompiledDecisionTable,
    rule: CompiledRule,
    subjects: Sequence[Any],
    context: Mapping[str, Any],
) -> bool:
    for column, condition, subject in zip(table.inputs, rule.conditions, subjects):
        if condition is None:
            continue
        try:
            matched = condition(subject, context)
        except ExpressionError as e:
            raise e.with_location(decision_id=table.decision_id, rule_id=rule.id, column_id=column.id) from e
        if not matched:
            return False
    return True


def _output_entry(table: CompiledDecisionTable, rule: CompiledRule, context: Mapping[str, Any]) -> OutputEntry:
    values = []
    for column, expression in zip(table.outputs, rule.outputs):
        try:
            raw = expression(context)
        except ExpressionError as e:
            raise e.with_location(decision_id=table.decision_id, rule_id=rule.id, column_id=column.id) from e
        try:
            value = coerce_value(raw, column.type_ref, strict=table.strict_types)
        except TypeCoercionError as e:
            raise ExpressionError(
                str(e),
                expression.text,
                context,
                decision_id=table.decision_id,
                rule_id=rule.id,
                column_id=column.id,
            ) from e
        values.append(OutputValue(name=column.name, value=value, type_ref=column.type_ref))
    return OutputEntry(tuple(values))


def _aggregated_entry(
    table: CompiledDecisionTable,
    aggregation: Aggregation,
    entries: Sequence[OutputEntry],
) -> OutputEntry:
    # Compiler guarantees exactly one output column for aggregations
    column = table.outputs[0]
    value = aggregate(aggregation, [entry[0].value for entry in entries], table.decision_id)
    type_ref = "integer" if aggregation == Aggregation.COUNT else column.type_ref
    return OutputEntry((OutputValue(name=column.name, value=value, type_ref=type_ref),))


def _apply_hit_policy(
    table: CompiledDecisionTable,
    matched: list[CompiledRule],
    context: Mapping[str, Any],
) -> list[OutputEntry]:
    """Reduce matching rules to output entries according to the hit policy."""
    policy = table.hit_policy

    if not matched:
        if table.aggregation == Aggregation.COUNT:
            return [_aggregated_entry(table, Aggregation.COUNT, [])]
        return []

    if policy == HitPolicy.FIRST:
        return [_output_entry(table, matched[0], context)]

    if policy == HitPolicy.UNIQUE:
        if len(matched) > 1:
            raise RuleConflictError(table.decision_id, policy.value, [rule.id for rule in matched])
        return [_output_entry(table, matched[0], context)]

    if policy == HitPolicy.RULE_ORDER:
        return [_output_entry(table, rule, context) for rule in matched]

    # Remaining policies need the outputs of every matching rule
    entries = [_output_entry(table, rule, context) for rule in matched]

    if policy == HitPolicy.COLLECT:
        if table.aggregation is None:
            return entries
        return [_aggregated_entry(table, table.aggregation, entries)]

    if policy == HitPolicy.ANY:
        if any(entry != entries[0] for entry in entries[1:]):
            raise RuleConflictError(table.decision_id, policy.value, [rule.id for rule in matched])
        return [entries[0]]

    # PRIORITY and OUTPUT ORDER; sorted() is stable so ties keep rule order
    ordered = sorted(entries, key=lambda entry: priority_key(entry, table.outputs))
    if policy == HitPolicy.PRIORITY:
        return ordered[:1]
    return ordered


def evaluate_table(table: CompiledDecisionTable, context: Mapping[str, Any] | None = None) -> ResultSet:
    """Evaluate a compiled decision table.

    Args:
        table: Compiled decision table.
        context: Variable bindings for this call. None is treated as empty.

    Returns:
        ResultSet with the output entries selected by the hit policy.
        Empty if no rule matched.

    Raises:
        RuleConflictError: If UNIQUE or ANY is violated.
        ExpressionError: If an expression fails, located by decision/rule/column.
        DmnEvaluationError: If collected values cannot be aggregated.
    """
    context = context if context is not None else {}

    subjects = _evaluate_inputs(table, context)
    matched = [rule for rule in table.rules if _rule_matches(table, rule, subjects, context)]

    logger.debug(
        "Decision '%s': %d of %d rule(s) matched %s",
        table.decision_id,
        len(matched),
        len(table.rules),
        [rule.id for rule in matched],
    )

    return ResultSet(tuple(_apply_hit_policy(table, matched, context)))
