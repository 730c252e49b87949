"""Logic compiler - turn a DecisionDefinition into an executable table.

Compilation flow:
1. Check the logic variant against SUPPORTED_LOGIC_VARIANTS
   (unsupported -> UnsupportedLogicError)
2. Parse hit policy and aggregation tokens
3. Check table shape: rule arity, output names, aggregation/priority needs
4. Pre-compile every input expression, input entry and output entry
5. Freeze everything into a CompiledDecisionTable

All structural problems are reported here (DecisionCompileError) so that
evaluation never has to validate the table. Compilation is pure: the same
definition always compiles to an equivalent table.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from dmn_engine.constants import DEFAULT_HIT_POLICY, SUPPORTED_LOGIC_VARIANTS
from dmn_engine.exceptions import (
    DecisionCompileError,
    ExpressionError,
    ExpressionSyntaxError,
    UnsupportedLogicError,
)
from dmn_engine.expressions.base import ExpressionEvaluator
from dmn_engine.expressions.simple import SimpleExpressionEvaluator
from dmn_engine.model.definitions import (
    DecisionDefinition,
    DecisionTableLogic,
    OutputClause,
    RuleDefinition,
)
from dmn_engine.table.compiled import (
    CompiledDecisionTable,
    CompiledInput,
    CompiledOutput,
    CompiledRule,
)
from dmn_engine.table.hit_policy import parse_hit_policy
from dmn_engine.types import TypeCoercionError, coerce_value, normalize_type_ref

__all__ = [
    "DecisionCompiler",
    "is_wildcard_entry",
]

logger = logging.getLogger(__name__)


def is_wildcard_entry(text: str) -> bool:
    """Return True for an input entry that matches any value ("" or "-")."""
    return text.strip() in ("", "-")


class DecisionCompiler:
    """Compiles decision definitions into executable decision tables.

    Attributes:
        evaluator: Expression evaluator used to compile cell text.
        default_hit_policy: Hit policy for tables without a hitPolicy attribute.
        strict_types: Whether compiled tables fail on typeRef coercion errors.
    """

    def __init__(
        self,
        evaluator: ExpressionEvaluator | None = None,
        default_hit_policy: str = DEFAULT_HIT_POLICY,
        strict_types: bool = False,
    ) -> None:
        self.evaluator = evaluator or SimpleExpressionEvaluator()
        self.default_hit_policy = default_hit_policy
        self.strict_types = strict_types

    def compile(self, definition: DecisionDefinition) -> CompiledDecisionTable:
        """Compile a decision definition.

        Args:
            definition: Resolved decision definition.

        Returns:
            Immutable CompiledDecisionTable.

        Raises:
            UnsupportedLogicError: If the logic variant is not supported.
            DecisionCompileError: If the table payload is malformed.
        """
        variant = definition.logic_variant.value
        if variant not in SUPPORTED_LOGIC_VARIANTS:
            raise UnsupportedLogicError(definition.id, variant)

        logic = definition.logic
        if isinstance(logic, DecisionTableLogic):
            table = self._compile_table(definition, logic)
            logger.debug(
                "Compiled decision '%s': %s, %d input(s), %d output(s), %d rule(s)",
                definition.id,
                table.hit_policy.value,
                len(table.inputs),
                len(table.outputs),
                len(table.rules),
            )
            return table

        # Variant tag and payload disagree
        raise DecisionCompileError(f"no {variant} payload found", definition.id)

    # =========================================================================
    # Decision tables
    # =========================================================================

    def _compile_table(self, definition: DecisionDefinition, logic: DecisionTableLogic) -> CompiledDecisionTable:
        decision_id = definition.id

        try:
            hit_policy, aggregation = parse_hit_policy(
                logic.hit_policy,
                logic.aggregation,
                default=self.default_hit_policy,
            )
        except ValueError as e:
            raise DecisionCompileError(str(e), decision_id) from e

        if aggregation is not None and len(logic.outputs) != 1:
            raise DecisionCompileError(
                f"aggregation {aggregation.value} requires exactly one output column, "
                f"found {len(logic.outputs)}",
                decision_id,
            )

        compiled_inputs = []
        for index, clause in enumerate(logic.inputs):
            column_id = clause.id or f"input{index}"
            compiled_inputs.append(
                CompiledInput(
                    id=column_id,
                    label=clause.label,
                    expression=self._compile(
                        self.evaluator.compile_input_expression, clause.expression, decision_id, None, column_id
                    ),
                    type_ref=normalize_type_ref(clause.type_ref),
                )
            )
        inputs = tuple(compiled_inputs)

        outputs = self._compile_outputs(definition, logic.outputs)

        if hit_policy.uses_priorities and not any(output.priorities for output in outputs):
            raise DecisionCompileError(
                f"hit policy {hit_policy.value} requires output values on at least one output column",
                decision_id,
            )

        rules = tuple(
            self._compile_rule(decision_id, index, rule, inputs, outputs) for index, rule in enumerate(logic.rules)
        )

        return CompiledDecisionTable(
            decision_id=decision_id,
            decision_name=definition.name,
            hit_policy=hit_policy,
            aggregation=aggregation,
            inputs=inputs,
            outputs=outputs,
            rules=rules,
            strict_types=self.strict_types,
        )

    def _compile_outputs(
        self,
        definition: DecisionDefinition,
        clauses: tuple[OutputClause, ...],
    ) -> tuple[CompiledOutput, ...]:
        decision_id = definition.id
        outputs = []
        seen: set[str] = set()

        for index, clause in enumerate(clauses):
            name = clause.name
            if not name:
                if len(clauses) > 1:
                    raise DecisionCompileError(
                        f"output column {index} has no name; names are required when a table has "
                        "more than one output",
                        decision_id,
                    )
                # A single unnamed output takes the decision's id
                name = decision_id
            if name in seen:
                raise DecisionCompileError(f"duplicate output name '{name}'", decision_id)
            seen.add(name)

            type_ref = normalize_type_ref(clause.type_ref)
            column_id = clause.id or f"output{index}"
            priorities = tuple(
                self._constant(text, type_ref, decision_id, column_id) for text in clause.output_values
            )
            outputs.append(
                CompiledOutput(
                    id=column_id,
                    name=name,
                    label=clause.label,
                    type_ref=type_ref,
                    priorities=priorities,
                )
            )

        return tuple(outputs)

    def _compile_rule(
        self,
        decision_id: str,
        index: int,
        rule: RuleDefinition,
        inputs: tuple[CompiledInput, ...],
        outputs: tuple[CompiledOutput, ...],
    ) -> CompiledRule:
        rule_id = rule.id or f"rule{index}"

        if len(rule.input_entries) != len(inputs):
            raise DecisionCompileError(
                f"rule '{rule_id}' has {len(rule.input_entries)} input entries "
                f"but the table declares {len(inputs)} input column(s)",
                decision_id,
            )
        if len(rule.output_entries) != len(outputs):
            raise DecisionCompileError(
                f"rule '{rule_id}' has {len(rule.output_entries)} output entries "
                f"but the table declares {len(outputs)} output column(s)",
                decision_id,
            )

        conditions = tuple(
            None
            if is_wildcard_entry(text)
            else self._compile(self.evaluator.compile_unary_tests, text, decision_id, rule_id, column.id)
            for column, text in zip(inputs, rule.input_entries)
        )
        rule_outputs = tuple(
            self._compile(self.evaluator.compile_output_expression, text, decision_id, rule_id, column.id)
            for column, text in zip(outputs, rule.output_entries)
        )

        return CompiledRule(
            id=rule_id,
            index=index,
            description=rule.description,
            conditions=conditions,
            outputs=rule_outputs,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _compile(
        self,
        compile_fn: Callable[[str], Any],
        text: str,
        decision_id: str,
        rule_id: str | None,
        column_id: str | None,
    ) -> Any:
        """Compile cell text, reporting syntax errors with their location."""
        try:
            return compile_fn(text)
        except ExpressionSyntaxError as e:
            location = f"rule '{rule_id}', column '{column_id}'" if rule_id else f"column '{column_id}'"
            raise DecisionCompileError(f"{e} ({location})", decision_id) from e

    def _constant(self, text: str, type_ref: str | None, decision_id: str, column_id: str) -> Any:
        """Evaluate an output value literal at compile time."""
        expression = self._compile(self.evaluator.compile_output_expression, text, decision_id, None, column_id)
        try:
            return coerce_value(expression({}), type_ref, strict=self.strict_types)
        except (ExpressionError, TypeCoercionError) as e:
            raise DecisionCompileError(
                f"output value '{text}' of column '{column_id}' is not a constant: {e}",
                decision_id,
            ) from e
