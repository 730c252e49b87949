"""Tests for the decision compiler.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import pytest

from dmn_engine.compiler import DecisionCompiler, is_wildcard_entry
from dmn_engine.exceptions import DecisionCompileError, UnsupportedLogicError
from dmn_engine.model import (
    DecisionDefinition,
    DecisionTableLogic,
    InputClause,
    LiteralExpressionLogic,
    LogicVariant,
    OutputClause,
    RuleDefinition,
    parse_model_bytes,
)
from dmn_engine.table import Aggregation, HitPolicy, evaluate_table


# --- Fixtures ---


@pytest.fixture
def compiler() -> DecisionCompiler:
    return DecisionCompiler()


def table_definition(**table_fields) -> DecisionDefinition:
    return DecisionDefinition(
        id="decision",
        logic_variant=LogicVariant.DECISION_TABLE,
        logic=DecisionTableLogic(**table_fields),
    )


# --- Logic Variants ---


class TestLogicVariants:
    """Tests for variant validation."""

    @pytest.mark.parametrize(
        "variant",
        [
            LogicVariant.LITERAL_EXPRESSION,
            LogicVariant.INVOCATION,
            LogicVariant.CONTEXT,
            LogicVariant.RELATION,
            LogicVariant.LIST,
            LogicVariant.FUNCTION_DEFINITION,
            LogicVariant.UNKNOWN,
        ],
    )
    def test_non_table_variants_are_unsupported(self, compiler: DecisionCompiler, variant: LogicVariant):
        # Arrange
        definition = DecisionDefinition(id="scoring", logic_variant=variant)

        # Act & Assert
        with pytest.raises(UnsupportedLogicError, match="expression type of the decision 'scoring' is not supported"):
            compiler.compile(definition)

    def test_table_variant_without_table_payload_is_rejected(self, compiler: DecisionCompiler):
        # Arrange
        definition = DecisionDefinition(
            id="decision",
            logic_variant=LogicVariant.DECISION_TABLE,
            logic=LiteralExpressionLogic(text="1"),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="no decisionTable payload"):
            compiler.compile(definition)


# --- Hit Policies ---


class TestHitPolicyCompilation:
    """Tests for hit policy and aggregation validation."""

    @pytest.mark.parametrize(
        "token, expected",
        [
            (None, HitPolicy.UNIQUE),
            ("UNIQUE", HitPolicy.UNIQUE),
            ("first", HitPolicy.FIRST),
            ("RULE ORDER", HitPolicy.RULE_ORDER),
            ("RULE_ORDER", HitPolicy.RULE_ORDER),
            ("C", HitPolicy.COLLECT),
        ],
    )
    def test_hit_policy_tokens(self, compiler: DecisionCompiler, token, expected):
        # Act
        table = compiler.compile(table_definition(hit_policy=token))

        # Assert
        assert table.hit_policy == expected

    def test_default_hit_policy_is_configurable(self):
        # Arrange
        compiler = DecisionCompiler(default_hit_policy="FIRST")

        # Act
        table = compiler.compile(table_definition())

        # Assert
        assert table.hit_policy == HitPolicy.FIRST

    def test_collect_shorthand_sets_aggregation(self, compiler: DecisionCompiler):
        # Act
        table = compiler.compile(table_definition(hit_policy="C+", outputs=(OutputClause(name="total"),)))

        # Assert
        assert table.hit_policy == HitPolicy.COLLECT
        assert table.aggregation == Aggregation.SUM

    def test_unknown_hit_policy_fails(self, compiler: DecisionCompiler):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="unknown hit policy 'SOMETIMES'"):
            compiler.compile(table_definition(hit_policy="SOMETIMES"))

    def test_aggregation_without_collect_fails(self, compiler: DecisionCompiler):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="only allowed with hit policy COLLECT"):
            compiler.compile(table_definition(hit_policy="FIRST", aggregation="SUM"))

    def test_unknown_aggregation_fails(self, compiler: DecisionCompiler):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="unknown aggregation"):
            compiler.compile(table_definition(hit_policy="COLLECT", aggregation="AVG"))

    def test_aggregation_requires_single_output(self, compiler: DecisionCompiler):
        # Arrange
        outputs = (OutputClause(name="a"), OutputClause(name="b"))

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="exactly one output column"):
            compiler.compile(table_definition(hit_policy="COLLECT", aggregation="SUM", outputs=outputs))

    @pytest.mark.parametrize("policy", ["PRIORITY", "OUTPUT ORDER"])
    def test_priority_policies_require_output_values(self, compiler: DecisionCompiler, policy: str):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="requires output values"):
            compiler.compile(table_definition(hit_policy=policy, outputs=(OutputClause(name="level"),)))


# --- Table Shape ---


class TestTableShape:
    """Tests for rule arity and output naming."""

    def test_rule_with_too_few_input_entries_fails(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            inputs=(InputClause(expression="a"), InputClause(expression="b")),
            outputs=(OutputClause(name="out"),),
            rules=(RuleDefinition(id="short", input_entries=("1",), output_entries=("2",)),),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="rule 'short' has 1 input entries"):
            compiler.compile(definition)

    def test_rule_with_too_many_output_entries_fails(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            outputs=(OutputClause(name="out"),),
            rules=(RuleDefinition(output_entries=("1", "2")),),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="rule 'rule0' has 2 output entries"):
            compiler.compile(definition)

    def test_unnamed_output_in_multi_output_table_fails(self, compiler: DecisionCompiler):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="has no name"):
            compiler.compile(table_definition(outputs=(OutputClause(name="a"), OutputClause())))

    def test_duplicate_output_names_fail(self, compiler: DecisionCompiler):
        # Act & Assert
        with pytest.raises(DecisionCompileError, match="duplicate output name 'a'"):
            compiler.compile(table_definition(outputs=(OutputClause(name="a"), OutputClause(name="a"))))

    def test_single_unnamed_output_takes_decision_id(self, compiler: DecisionCompiler):
        # Act
        table = compiler.compile(table_definition(outputs=(OutputClause(),)))

        # Assert
        assert table.outputs[0].name == "decision"

    def test_invalid_cell_syntax_fails_with_location(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            inputs=(InputClause(id="amountInput", expression="amount"),),
            outputs=(OutputClause(name="out"),),
            rules=(RuleDefinition(id="broken", input_entries=("[1..",), output_entries=('"x"',)),),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="rule 'broken', column 'amountInput'"):
            compiler.compile(definition)

    def test_invalid_input_expression_names_generated_column_id(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            inputs=(InputClause(expression="amount +"),),
            outputs=(OutputClause(name="out"),),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="column 'input0'"):
            compiler.compile(definition)

    def test_non_ascii_digit_in_output_entry_fails(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            outputs=(OutputClause(name="out"),),
            rules=(RuleDefinition(id="squared", input_entries=(), output_entries=("²",)),),
        )

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="unexpected character"):
            compiler.compile(definition)

    def test_output_values_must_be_constants(self, compiler: DecisionCompiler):
        # Arrange
        outputs = (OutputClause(name="level", output_values=("unknownName",)),)

        # Act & Assert
        with pytest.raises(DecisionCompileError, match="is not a constant"):
            compiler.compile(table_definition(hit_policy="PRIORITY", outputs=outputs))

    def test_wildcard_entries_compile_to_none(self, compiler: DecisionCompiler):
        # Arrange
        definition = table_definition(
            inputs=(InputClause(expression="a"), InputClause(expression="b"), InputClause(expression="c")),
            outputs=(OutputClause(name="out"),),
            rules=(RuleDefinition(input_entries=("", "-", "> 1"), output_entries=("1",)),),
        )

        # Act
        table = compiler.compile(definition)

        # Assert
        conditions = table.rules[0].conditions
        assert conditions[0] is None
        assert conditions[1] is None
        assert conditions[2] is not None

    @pytest.mark.parametrize("text, expected", [("", True), ("  -  ", True), ("-1", False), ("> 0", False)])
    def test_is_wildcard_entry(self, text: str, expected: bool):
        # Act & Assert
        assert is_wildcard_entry(text) is expected


# --- Determinism ---


class TestCompileDeterminism:
    """Compiling twice yields tables that evaluate identically."""

    def test_compiling_twice_evaluates_identically(self, compiler: DecisionCompiler, build_dmn):
        # Arrange
        data = build_dmn(
            inputs=[("score", "integer")],
            outputs=[("grade", "string")],
            hit_policy="FIRST",
            rules=[
                (["> 90"], ['"A"']),
                (["[70..90]"], ['"B"']),
                (["-"], ['"C"']),
            ],
        )
        definition = parse_model_bytes(data).get_decision("decision")

        # Act
        first = compiler.compile(definition)
        second = compiler.compile(definition)

        # Assert
        for score in (95, 90, 70, 12, "80"):
            context = {"score": score}
            assert evaluate_table(first, context) == evaluate_table(second, context)

    def test_compiled_table_does_not_reference_model(self, compiler: DecisionCompiler, build_dmn):
        # Arrange
        model = parse_model_bytes(build_dmn(rules=[([], ['"x"'])]))
        definition = model.get_decision("decision")

        # Act
        table = compiler.compile(definition)
        del model, definition

        # Assert
        assert evaluate_table(table).single_value() == "x"
