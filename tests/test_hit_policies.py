"""Tests for hit policy semantics of decision tables.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from dmn_engine import DmnEngine, DmnEvaluationError, RuleConflictError
from dmn_engine.table import Aggregation, HitPolicy, parse_hit_policy


# --- Fixtures ---


@pytest.fixture
def age_table(build_dmn):
    """Two overlapping rules over an integer 'age' input, string output."""

    def build(hit_policy: str | None, aggregation: str | None = None) -> bytes:
        return build_dmn(
            inputs=[("age", "integer")],
            outputs=[("category", "string")],
            hit_policy=hit_policy,
            aggregation=aggregation,
            rules=[
                (["< 18"], ['"minor"']),
                ([">= 18"], ['"adult"']),
                ([">= 65"], ['"senior"']),
            ],
        )

    return build


@pytest.fixture
def discount_table(build_dmn):
    """Overlapping numeric discounts for COLLECT aggregations."""

    def build(aggregation: str | None) -> bytes:
        return build_dmn(
            inputs=[("loyal", "boolean"), ("amount", "number")],
            outputs=[("discount", "number")],
            hit_policy="COLLECT",
            aggregation=aggregation,
            rules=[
                (["true", "-"], ["5"]),
                (["-", "> 100"], ["10"]),
                (["-", "> 1000"], ["20"]),
            ],
        )

    return build


# --- Single Result Policies ---


class TestUnique:
    """Tests for the UNIQUE hit policy."""

    def test_single_match_returns_entry(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("UNIQUE"))

        # Act
        result = decision.evaluate({"age": 12})

        # Assert
        assert result.single_value() == "minor"

    def test_overlapping_matches_raise_rule_conflict(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("UNIQUE"))

        # Act & Assert
        with pytest.raises(RuleConflictError) as exc_info:
            decision.evaluate({"age": 70})

        error = exc_info.value
        assert error.decision_id == "decision"
        assert error.hit_policy == "UNIQUE"
        assert error.rule_ids == ("rule1", "rule2")

    def test_missing_hit_policy_defaults_to_unique(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table(None))

        # Act & Assert
        assert decision.hit_policy == HitPolicy.UNIQUE
        with pytest.raises(RuleConflictError):
            decision.evaluate({"age": 70})

    def test_no_match_returns_empty_result(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(inputs=[("x", None)], rules=[(["1"], ['"one"'])])
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate({"x": 2})

        # Assert
        assert result.is_empty()
        assert not result
        assert result.single_entry() is None
        assert result.single_value() is None


class TestFirst:
    """Tests for the FIRST hit policy."""

    def test_returns_first_matching_rule(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("FIRST"))

        # Act
        result = decision.evaluate({"age": 70})

        # Assert
        assert len(result) == 1
        assert result.single_value() == "adult"


class TestAny:
    """Tests for the ANY hit policy."""

    def test_equal_outputs_return_one_entry(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(
            inputs=[("x", "integer")],
            hit_policy="ANY",
            rules=[(["> 0"], ['"positive"']), (["> 10"], ['"positive"'])],
        )
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate({"x": 20})

        # Assert
        assert result.to_list() == [{"result": "positive"}]

    def test_different_outputs_raise_rule_conflict(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("ANY"))

        # Act & Assert
        with pytest.raises(RuleConflictError, match="Hit policy 'ANY'"):
            decision.evaluate({"age": 70})


class TestPriority:
    """Tests for PRIORITY and OUTPUT ORDER."""

    @pytest.fixture
    def risk_table(self, build_dmn):
        def build(hit_policy: str) -> bytes:
            return build_dmn(
                inputs=[("score", "integer")],
                outputs=[("risk", "string")],
                hit_policy=hit_policy,
                output_values={0: '"high", "medium", "low"'},
                rules=[
                    (["-"], ['"low"']),
                    (["> 50"], ['"medium"']),
                    (["> 80"], ['"high"']),
                ],
            )

        return build

    def test_priority_returns_highest_ranked_output(self, engine: DmnEngine, risk_table):
        # Arrange
        decision = engine.parse_decision(risk_table("PRIORITY"))

        # Act & Assert
        assert decision.evaluate({"score": 90}).single_value() == "high"
        assert decision.evaluate({"score": 60}).single_value() == "medium"
        assert decision.evaluate({"score": 10}).single_value() == "low"

    def test_boolean_output_does_not_match_numeric_priority(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(
            hit_policy="PRIORITY",
            output_values={0: "1, 0"},
            rules=[([], ["0"]), ([], ["true"])],
        )
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate()

        # Assert
        assert result.single_value() == 0

    def test_output_order_sorts_by_priority(self, engine: DmnEngine, risk_table):
        # Arrange
        decision = engine.parse_decision(risk_table("OUTPUT ORDER"))

        # Act
        result = decision.evaluate({"score": 90})

        # Assert
        assert result.collect("risk") == ["high", "medium", "low"]


# --- Multiple Result Policies ---


class TestRuleOrder:
    """Tests for the RULE ORDER hit policy."""

    def test_returns_all_matches_in_declaration_order(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("RULE ORDER"))

        # Act
        result = decision.evaluate({"age": 70})

        # Assert
        assert result.collect("category") == ["adult", "senior"]


class TestCollect:
    """Tests for COLLECT with and without aggregation."""

    def test_collect_returns_all_matches(self, engine: DmnEngine, age_table):
        # Arrange
        decision = engine.parse_decision(age_table("COLLECT"))

        # Act
        result = decision.evaluate({"age": 70})

        # Assert
        assert [entry["category"] for entry in result] == ["adult", "senior"]

    @pytest.mark.parametrize(
        "aggregation, expected",
        [("SUM", 35), ("MIN", 5), ("MAX", 20), ("COUNT", 3)],
    )
    def test_aggregations(self, engine: DmnEngine, discount_table, aggregation: str, expected: int):
        # Arrange
        decision = engine.parse_decision(discount_table(aggregation))

        # Act
        result = decision.evaluate({"loyal": True, "amount": 5000})

        # Assert
        assert len(result) == 1
        assert result.single_value() == expected

    def test_aggregation_shorthand(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(
            inputs=[("x", None)],
            hit_policy="C+",
            rules=[(["-"], ["1"]), (["-"], ["2"])],
        )
        decision = engine.parse_decision(data)

        # Act & Assert
        assert decision.evaluate({"x": 0}).single_value() == 3

    def test_count_without_matches_is_zero(self, engine: DmnEngine, discount_table):
        # Arrange
        decision = engine.parse_decision(discount_table("COUNT"))

        # Act
        result = decision.evaluate({"loyal": False, "amount": 1})

        # Assert
        assert result.single_value() == 0

    @pytest.mark.parametrize("aggregation", ["SUM", "MIN", "MAX"])
    def test_other_aggregations_without_matches_are_empty(self, engine: DmnEngine, discount_table, aggregation: str):
        # Arrange
        decision = engine.parse_decision(discount_table(aggregation))

        # Act & Assert
        assert decision.evaluate({"loyal": False, "amount": 1}).is_empty()

    def test_sum_of_non_numbers_fails(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(hit_policy="COLLECT", aggregation="SUM", rules=[([], ['"a"']), ([], ['"b"'])])
        decision = engine.parse_decision(data)

        # Act & Assert
        with pytest.raises(DmnEvaluationError, match="not all numbers"):
            decision.evaluate()

    def test_sum_mixes_decimal_and_float(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(hit_policy="C+", rules=[([], ["amount"]), ([], ["1.5"])])
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate({"amount": Decimal("2.5")})

        # Assert
        assert result.single_value() == 4.0

    def test_max_of_strings_is_lexicographic(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(hit_policy="C>", rules=[([], ['"apple"']), ([], ['"pear"'])])
        decision = engine.parse_decision(data)

        # Act & Assert
        assert decision.evaluate().single_value() == "pear"


# --- Table Shapes ---


class TestTableShapes:
    """Tables without inputs or outputs."""

    def test_table_without_inputs_matches_every_rule(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(hit_policy="RULE ORDER", rules=[([], ['"a"']), ([], ['"b"'])])
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate({})

        # Assert
        assert result.collect("result") == ["a", "b"]

    def test_table_without_outputs_yields_empty_entries(self, engine: DmnEngine, build_dmn):
        # Arrange
        data = build_dmn(inputs=[("x", None)], outputs=[], rules=[(["1"], [])])
        decision = engine.parse_decision(data)

        # Act
        result = decision.evaluate({"x": 1})

        # Assert
        assert len(result) == 1
        assert len(result[0]) == 0

    def test_table_without_rules_yields_empty_result(self, engine: DmnEngine, build_dmn):
        # Arrange
        decision = engine.parse_decision(build_dmn(inputs=[("x", None)]))

        # Act & Assert
        assert decision.evaluate({"x": 1}).is_empty()


# --- Token Parsing ---


class TestParseHitPolicy:
    """Tests for hit policy token parsing."""

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("U", (HitPolicy.UNIQUE, None)),
            ("any", (HitPolicy.ANY, None)),
            ("Output Order", (HitPolicy.OUTPUT_ORDER, None)),
            ("OUTPUT_ORDER", (HitPolicy.OUTPUT_ORDER, None)),
            ("C#", (HitPolicy.COLLECT, Aggregation.COUNT)),
            ("C<", (HitPolicy.COLLECT, Aggregation.MIN)),
        ],
    )
    def test_known_tokens(self, token: str, expected):
        # Act & Assert
        assert parse_hit_policy(token) == expected

    def test_blank_token_uses_default(self):
        # Act & Assert
        assert parse_hit_policy("  ", default="FIRST") == (HitPolicy.FIRST, None)

    def test_shorthand_with_explicit_aggregation_is_rejected(self):
        # Act & Assert
        with pytest.raises(ValueError, match="already names an aggregation"):
            parse_hit_policy("C+", "MAX")

    def test_policy_flags(self):
        # Act & Assert
        assert HitPolicy.PRIORITY.is_single_result
        assert not HitPolicy.RULE_ORDER.is_single_result
        assert HitPolicy.OUTPUT_ORDER.uses_priorities
        assert not HitPolicy.FIRST.uses_priorities
