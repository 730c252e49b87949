"""Tests for the simple expression language.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from datetime import date

import pytest

from dmn_engine.exceptions import ExpressionError, ExpressionSyntaxError
from dmn_engine.expressions import SimpleExpressionEvaluator, tokenize


# --- Fixtures ---


@pytest.fixture
def evaluator() -> SimpleExpressionEvaluator:
    return SimpleExpressionEvaluator()


def matches(evaluator: SimpleExpressionEvaluator, text: str, subject, context=None) -> bool:
    return evaluator.compile_unary_tests(text)(subject, context or {})


# --- Tokenizer ---


class TestTokenize:
    """Tests for the tokenizer."""

    def test_interval_tokens(self):
        # Act
        tokens = tokenize("[1..10]")

        # Assert
        assert [token.value for token in tokens] == ["[", 1, "..", 10, "]", None]

    def test_dotted_names_and_floats(self):
        # Act
        tokens = tokenize("applicant.age >= 1.5")

        # Assert
        assert [(token.kind, token.value) for token in tokens[:3]] == [
            ("name", "applicant.age"),
            ("op", ">="),
            ("number", 1.5),
        ]

    def test_string_escapes(self):
        # Act
        tokens = tokenize(r'"say \"hi\""')

        # Assert
        assert tokens[0].value == 'say "hi"'

    def test_unterminated_string_raises(self):
        # Act & Assert
        with pytest.raises(ExpressionSyntaxError, match="unterminated string"):
            tokenize('"open')

    def test_unexpected_character_raises(self):
        # Act & Assert
        with pytest.raises(ExpressionSyntaxError, match="position 2"):
            tokenize("a @ b")

    @pytest.mark.parametrize("text", ["²", "1²", "1.٣"])
    def test_non_ascii_digits_are_not_numbers(self, text: str):
        # Act & Assert
        with pytest.raises(ExpressionSyntaxError, match="unexpected character"):
            tokenize(text)


# --- Expressions ---


class TestExpressions:
    """Tests for input and output expressions."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("42", 42),
            ("-1.5", -1.5),
            ('"text"', "text"),
            ("true", True),
            ("null", None),
            ("", None),
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("10 / 4", 2.5),
            ('"a" + "b"', "ab"),
            ("1 < 2 and 2 < 3", True),
            ("1 > 2 or false", False),
            ("not(true)", False),
            ('date("2024-01-31")', date(2024, 1, 31)),
            ('number("12")', 12),
            ("string(true)", "true"),
        ],
    )
    def test_constant_expressions(self, evaluator: SimpleExpressionEvaluator, text: str, expected):
        # Act & Assert
        assert evaluator.compile_output_expression(text)({}) == expected

    def test_names_resolve_from_context(self, evaluator: SimpleExpressionEvaluator):
        # Arrange
        expression = evaluator.compile_input_expression("applicant.age + bonus")

        # Act & Assert
        assert expression({"applicant": {"age": 30}, "bonus": 2}) == 32

    def test_dotted_name_reads_attributes(self, evaluator: SimpleExpressionEvaluator):
        # Arrange
        expression = evaluator.compile_input_expression("today.year")

        # Act & Assert
        assert expression({"today": date(2024, 5, 1)}) == 2024

    def test_null_propagates_through_arithmetic(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        assert evaluator.compile_input_expression("amount * 2")({"amount": None}) is None

    def test_unknown_variable_raises_expression_error(self, evaluator: SimpleExpressionEvaluator):
        # Arrange
        expression = evaluator.compile_input_expression("missing + 1")

        # Act & Assert
        with pytest.raises(ExpressionError) as exc_info:
            expression({"present": 1})

        error = exc_info.value
        assert error.expression == "missing + 1"
        assert "unknown variable 'missing'" in error.reason
        assert error.context == {"present": "1"}

    def test_division_by_zero_raises(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        with pytest.raises(ExpressionError, match="division by zero"):
            evaluator.compile_output_expression("1 / 0")({})

    def test_adding_string_and_number_raises(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        with pytest.raises(ExpressionError, match="cannot apply"):
            evaluator.compile_output_expression('"a" + 1')({})

    @pytest.mark.parametrize("text", ["1 +", "(1", "foo(1)", "1 2"])
    def test_syntax_errors(self, evaluator: SimpleExpressionEvaluator, text: str):
        # Act & Assert
        with pytest.raises(ExpressionSyntaxError):
            evaluator.compile_output_expression(text)


# --- Unary Tests ---


class TestUnaryTests:
    """Tests for input entry matching."""

    @pytest.mark.parametrize(
        "text, subject, expected",
        [
            ("-", "anything", True),
            ("", None, True),
            ("< 10", 5, True),
            ("< 10", 10, False),
            (">= 10", 10, True),
            ("!= 3", 4, True),
            ("[1..10]", 10, True),
            ("[1..10)", 10, False),
            ("]1..10]", 1, False),
            ("(1..10]", 1, False),
            ("[1..10[", 10, False),
            ('"Fall"', "Fall", True),
            ('"Fall", "Winter"', "Winter", True),
            ('"Fall", "Winter"', "Spring", False),
            ('not("Fall", "Winter")', "Spring", True),
            ('not("Fall")', "Fall", False),
            ("null", None, True),
            ("null", 0, False),
            ("true", True, True),
            ("1", True, False),
            ("? > 5 and ? < 10", 7, True),
            ("? > 5 and ? < 10", 10, False),
            ("(2 + 3)", 5, True),
        ],
    )
    def test_matching(self, evaluator: SimpleExpressionEvaluator, text: str, subject, expected: bool):
        # Act & Assert
        assert matches(evaluator, text, subject) is expected

    def test_endpoints_may_reference_context(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        assert matches(evaluator, "<= limit", 100, {"limit": 100})
        assert not matches(evaluator, "<= limit", 101, {"limit": 100})

    def test_null_subject_never_matches_comparison(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        assert not matches(evaluator, "< 10", None)
        assert not matches(evaluator, "[1..10]", None)

    def test_date_comparison(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        assert matches(evaluator, '< date("2024-01-01")', date(2023, 12, 31))

    def test_incompatible_types_raise(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        with pytest.raises(ExpressionError, match="cannot compare str with int"):
            matches(evaluator, "< 10", "five")

    def test_wildcard_flag(self, evaluator: SimpleExpressionEvaluator):
        # Act & Assert
        assert evaluator.compile_unary_tests("-").is_wildcard
        assert not evaluator.compile_unary_tests("> 1").is_wildcard

    @pytest.mark.parametrize("text", ["[1..", "[1..5", "< ", 'not("a"', '"a",'])
    def test_syntax_errors(self, evaluator: SimpleExpressionEvaluator, text: str):
        # Act & Assert
        with pytest.raises(ExpressionSyntaxError):
            evaluator.compile_unary_tests(text)

    def test_compiled_tests_are_reusable(self, evaluator: SimpleExpressionEvaluator):
        # Arrange
        test = evaluator.compile_unary_tests("[18..65]")

        # Act
        results = [test(age, {}) for age in (17, 18, 40, 65, 66)]

        # Assert
        assert results == [False, True, True, True, False]
