"""Simple expression language - the default ExpressionEvaluator.

A small, FEEL-flavoured language covering what decision table cells need.

Expressions (input expressions and output entries):
    literals     42, -1.5, "text", true, false, null, date("2024-01-31")
    names        amount, applicant.age (dotted paths into mappings/objects)
    arithmetic   a + b, a - b, a * b, a / b, -(a)
    comparison   a < b, a <= b, a > b, a >= b, a = b, a != b
    boolean      a and b, a or b, not(a)
    functions    date(text), string(value), number(value)

Unary tests (input entries), matched against the column subject:
    -  or empty         any value
    < 10, >= limit      comparison with the subject
    [1..10], (0..5]     interval, "(" or "]" at the start and ")" or "["
                        at the end exclude the endpoint
    "a", "b", 3         disjunction: matches if any test matches
    not("a", "b")       negation of a disjunction
    null                subject is null
    ? > 5 and ? < 10    any expression using "?" (the subject) evaluates
                        to true

Null semantics: arithmetic and ordering comparisons with null yield null,
and a null test result never matches. Comparing values of incompatible
types (e.g. a string with a number) is an evaluation error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Mapping

from dmn_engine.exceptions import ExpressionError, ExpressionSyntaxError
from dmn_engine.expressions.base import Context
from dmn_engine.types import TypeCoercionError, coerce_value

__all__ = [
    "SimpleExpression",
    "SimpleUnaryTests",
    "SimpleExpressionEvaluator",
    "tokenize",
]

logger = logging.getLogger(__name__)


class _EvaluationFailure(Exception):
    """Raised inside the AST; converted to ExpressionError by the wrappers."""


# =============================================================================
# Tokenizer
# =============================================================================


@dataclass(frozen=True)
class Token:
    """A lexical token.

    Attributes:
        kind: "number", "string", "name", "op" or "eof".
        value: Parsed value (number, unescaped string, name or operator text).
        position: Offset of the token in the source text.
    """

    kind: str
    value: Any
    position: int


# Longest operators first
_OPERATORS: tuple[str, ...] = ("..", "<=", ">=", "!=", "<", ">", "=", "+", "-", "*", "/", "(", ")", "[", "]", ",", "?")

_ESCAPES: dict[str, str] = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}


def _is_digit(char: str) -> bool:
    # ASCII only; str.isdigit() also accepts superscripts that int() rejects
    return "0" <= char <= "9"


def tokenize(text: str) -> list[Token]:
    """Split expression text into tokens.

    Raises:
        ExpressionSyntaxError: On an unterminated string or unexpected character.
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        char = text[i]

        if char.isspace():
            i += 1
            continue

        if _is_digit(char) or (char == "." and i + 1 < n and _is_digit(text[i + 1])):
            start = i
            while i < n and _is_digit(text[i]):
                i += 1
            is_float = False
            if i + 1 < n and text[i] == "." and _is_digit(text[i + 1]):
                is_float = True
                i += 1
                while i < n and _is_digit(text[i]):
                    i += 1
            literal = text[start:i]
            tokens.append(Token("number", float(literal) if is_float else int(literal), start))
            continue

        if char == '"':
            start = i
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise ExpressionSyntaxError("unterminated string", text, start)
                current = text[i]
                if current == "\\" and i + 1 < n and text[i + 1] in _ESCAPES:
                    chars.append(_ESCAPES[text[i + 1]])
                    i += 2
                    continue
                if current == '"':
                    i += 1
                    break
                chars.append(current)
                i += 1
            tokens.append(Token("string", "".join(chars), start))
            continue

        if char.isalpha() or char == "_":
            start = i
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            # Dotted path: "applicant.age" is one name, "a..b" is not
            while i + 1 < n and text[i] == "." and (text[i + 1].isalpha() or text[i + 1] == "_"):
                i += 1
                while i < n and (text[i].isalnum() or text[i] == "_"):
                    i += 1
            tokens.append(Token("name", text[start:i], start))
            continue

        for operator in _OPERATORS:
            if text.startswith(operator, i):
                tokens.append(Token("op", operator, i))
                i += len(operator)
                break
        else:
            raise ExpressionSyntaxError(f"unexpected character {char!r}", text, i)

    tokens.append(Token("eof", None, n))
    return tokens


# =============================================================================
# Value semantics
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def _comparable(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return True
    if isinstance(left, str) and isinstance(right, str):
        return True
    if isinstance(left, date) and isinstance(right, date):
        return type(left) is type(right)
    return False


_ORDERINGS: dict[str, Callable[[Any, Any], bool]] = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _compare(operator: str, left: Any, right: Any) -> bool | None:
    if operator == "=":
        return _equals(left, right)
    if operator == "!=":
        return not _equals(left, right)
    if left is None or right is None:
        return None
    if not _comparable(left, right):
        raise _EvaluationFailure(f"cannot compare {_type_name(left)} with {_type_name(right)}")
    return _ORDERINGS[operator](left, right)


def _arithmetic(operator: str, left: Any, right: Any) -> Any:
    if left is None or right is None:
        return None
    if operator == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right
    if not (_is_number(left) and _is_number(right)):
        raise _EvaluationFailure(f"cannot apply '{operator}' to {_type_name(left)} and {_type_name(right)}")
    if isinstance(left, Decimal) != isinstance(right, Decimal):
        left, right = float(left), float(right)
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if right == 0:
        raise _EvaluationFailure("division by zero")
    return left / right


def _to_bool(value: Any, operator: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise _EvaluationFailure(f"'{operator}' expects boolean operands, got {_type_name(value)}")


# =============================================================================
# Expression AST
# =============================================================================


@dataclass(frozen=True)
class _Env:
    context: Mapping[str, Any]
    subject: Any = None


class _Node:
    def evaluate(self, env: _Env) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class _Literal(_Node):
    value: Any

    def evaluate(self, env: _Env) -> Any:
        return self.value


@dataclass(frozen=True)
class _Subject(_Node):
    def evaluate(self, env: _Env) -> Any:
        return env.subject


@dataclass(frozen=True)
class _Name(_Node):
    path: str

    def evaluate(self, env: _Env) -> Any:
        head, *rest = self.path.split(".")
        if head not in env.context:
            raise _EvaluationFailure(f"unknown variable '{head}'")
        value = env.context[head]
        for part in rest:
            if value is None:
                return None
            if isinstance(value, Mapping):
                if part not in value:
                    raise _EvaluationFailure(f"'{self.path}' has no member '{part}'")
                value = value[part]
            elif hasattr(value, part):
                value = getattr(value, part)
            else:
                raise _EvaluationFailure(f"'{self.path}' has no member '{part}'")
        return value


@dataclass(frozen=True)
class _Negate(_Node):
    operand: _Node

    def evaluate(self, env: _Env) -> Any:
        value = self.operand.evaluate(env)
        if value is None:
            return None
        if not _is_number(value):
            raise _EvaluationFailure(f"cannot negate {_type_name(value)}")
        return -value


@dataclass(frozen=True)
class _Not(_Node):
    operand: _Node

    def evaluate(self, env: _Env) -> Any:
        value = _to_bool(self.operand.evaluate(env), "not")
        return None if value is None else not value


@dataclass(frozen=True)
class _Binary(_Node):
    operator: str
    left: _Node
    right: _Node

    def evaluate(self, env: _Env) -> Any:
        left = self.left.evaluate(env)
        right = self.right.evaluate(env)
        if self.operator in ("+", "-", "*", "/"):
            return _arithmetic(self.operator, left, right)
        return _compare(self.operator, left, right)


@dataclass(frozen=True)
class _And(_Node):
    left: _Node
    right: _Node

    def evaluate(self, env: _Env) -> Any:
        left = _to_bool(self.left.evaluate(env), "and")
        right = _to_bool(self.right.evaluate(env), "and")
        if left is False or right is False:
            return False
        if left is None or right is None:
            return None
        return True


@dataclass(frozen=True)
class _Or(_Node):
    left: _Node
    right: _Node

    def evaluate(self, env: _Env) -> Any:
        left = _to_bool(self.left.evaluate(env), "or")
        right = _to_bool(self.right.evaluate(env), "or")
        if left is True or right is True:
            return True
        if left is None or right is None:
            return None
        return False


def _fn_date(value: Any) -> date | None:
    if value is None:
        return None
    try:
        return coerce_value(value, "date", strict=True)
    except TypeCoercionError as e:
        raise _EvaluationFailure(str(e)) from e


def _fn_string(value: Any) -> str | None:
    return coerce_value(value, "string")


def _fn_number(value: Any) -> Any:
    if value is None:
        return None
    try:
        return coerce_value(value, "number", strict=True)
    except TypeCoercionError as e:
        raise _EvaluationFailure(str(e)) from e


_FUNCTIONS: dict[str, Callable[[Any], Any]] = {
    "date": _fn_date,
    "string": _fn_string,
    "number": _fn_number,
}


@dataclass(frozen=True)
class _Call(_Node):
    function: str
    argument: _Node

    def evaluate(self, env: _Env) -> Any:
        return _FUNCTIONS[self.function](self.argument.evaluate(env))


# =============================================================================
# Unary test AST
# =============================================================================


class _Test:
    def matches(self, env: _Env) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class _AnyTest(_Test):
    def matches(self, env: _Env) -> bool:
        return True


@dataclass(frozen=True)
class _ComparisonTest(_Test):
    operator: str
    endpoint: _Node

    def matches(self, env: _Env) -> bool:
        return _compare(self.operator, env.subject, self.endpoint.evaluate(env)) is True


@dataclass(frozen=True)
class _IntervalTest(_Test):
    start: _Node
    end: _Node
    start_closed: bool
    end_closed: bool

    def matches(self, env: _Env) -> bool:
        lower = _compare(">=" if self.start_closed else ">", env.subject, self.start.evaluate(env))
        if lower is not True:
            return False
        return _compare("<=" if self.end_closed else "<", env.subject, self.end.evaluate(env)) is True


@dataclass(frozen=True)
class _ValueTest(_Test):
    expression: _Node
    uses_subject: bool

    def matches(self, env: _Env) -> bool:
        value = self.expression.evaluate(env)
        if self.uses_subject:
            return value is True
        return _equals(env.subject, value)


@dataclass(frozen=True)
class _Disjunction(_Test):
    tests: tuple[_Test, ...]

    def matches(self, env: _Env) -> bool:
        return any(test.matches(env) for test in self.tests)


@dataclass(frozen=True)
class _Negation(_Test):
    test: _Test

    def matches(self, env: _Env) -> bool:
        return not self.test.matches(env)


# =============================================================================
# Parser
# =============================================================================


class _Parser:
    """Recursive descent parser over the token list."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0
        self.saw_subject = False

    # --- token helpers ---

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != "eof":
            self.pos += 1
        return token

    def at_op(self, *values: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token.kind == "op" and token.value in values

    def at_keyword(self, *words: str) -> bool:
        token = self.peek()
        return token.kind == "name" and token.value in words

    def expect_op(self, value: str) -> Token:
        if not self.at_op(value):
            raise self.error(f"expected '{value}'")
        return self.advance()

    def expect_end(self) -> None:
        if self.peek().kind != "eof":
            raise self.error("unexpected trailing input")

    def error(self, message: str) -> ExpressionSyntaxError:
        token = self.peek()
        found = "end of input" if token.kind == "eof" else repr(token.value)
        return ExpressionSyntaxError(f"{message}, found {found}", self.text, token.position)

    # --- expressions ---

    def parse_expression(self) -> _Node:
        return self.parse_or()

    def parse_or(self) -> _Node:
        node = self.parse_and()
        while self.at_keyword("or"):
            self.advance()
            node = _Or(node, self.parse_and())
        return node

    def parse_and(self) -> _Node:
        node = self.parse_comparison()
        while self.at_keyword("and"):
            self.advance()
            node = _And(node, self.parse_comparison())
        return node

    def parse_comparison(self) -> _Node:
        node = self.parse_additive()
        if self.at_op("<", "<=", ">", ">=", "=", "!="):
            operator = self.advance().value
            node = _Binary(operator, node, self.parse_additive())
        return node

    def parse_additive(self) -> _Node:
        node = self.parse_multiplicative()
        while self.at_op("+", "-"):
            operator = self.advance().value
            node = _Binary(operator, node, self.parse_multiplicative())
        return node

    def parse_multiplicative(self) -> _Node:
        node = self.parse_unary()
        while self.at_op("*", "/"):
            operator = self.advance().value
            node = _Binary(operator, node, self.parse_unary())
        return node

    def parse_unary(self) -> _Node:
        if self.at_op("-"):
            self.advance()
            operand = self.parse_unary()
            if isinstance(operand, _Literal) and _is_number(operand.value):
                return _Literal(-operand.value)
            return _Negate(operand)
        if self.at_keyword("not") and self.at_op("(", offset=1):
            self.advance()
            self.advance()
            operand = self.parse_expression()
            self.expect_op(")")
            return _Not(operand)
        return self.parse_primary()

    def parse_primary(self) -> _Node:
        token = self.peek()

        if token.kind in ("number", "string"):
            self.advance()
            return _Literal(token.value)

        if token.kind == "name":
            self.advance()
            if token.value == "true":
                return _Literal(True)
            if token.value == "false":
                return _Literal(False)
            if token.value == "null":
                return _Literal(None)
            if self.at_op("("):
                return self.parse_call(token)
            return _Name(token.value)

        if self.at_op("?"):
            self.advance()
            self.saw_subject = True
            return _Subject()

        if self.at_op("("):
            self.advance()
            node = self.parse_expression()
            self.expect_op(")")
            return node

        raise self.error("expected a value")

    def parse_call(self, name: Token) -> _Node:
        if name.value not in _FUNCTIONS:
            raise ExpressionSyntaxError(f"unknown function '{name.value}'", self.text, name.position)
        self.expect_op("(")
        argument = self.parse_expression()
        self.expect_op(")")
        return _Call(name.value, argument)

    # --- unary tests ---

    def parse_unary_tests(self) -> _Test:
        if self.peek().kind == "eof" or (self.at_op("-") and self.peek(1).kind == "eof"):
            self.pos = len(self.tokens) - 1
            return _AnyTest()

        if self.at_keyword("not") and self.at_op("(", offset=1):
            self.advance()
            self.advance()
            tests = self.parse_positive_tests()
            self.expect_op(")")
            self.expect_end()
            return _Negation(tests)

        tests = self.parse_positive_tests()
        self.expect_end()
        return tests

    def parse_positive_tests(self) -> _Test:
        tests = [self.parse_positive_test()]
        while self.at_op(","):
            self.advance()
            tests.append(self.parse_positive_test())
        return tests[0] if len(tests) == 1 else _Disjunction(tuple(tests))

    def parse_positive_test(self) -> _Test:
        if self.at_op("<", "<=", ">", ">=", "=", "!="):
            operator = self.advance().value
            return _ComparisonTest(operator, self.parse_additive())

        if self.at_op("[", "]"):
            return self.parse_interval()

        if self.at_op("("):
            # "(" opens either an interval or a parenthesized expression
            saved = self.pos
            self.advance()
            self.parse_additive()
            is_interval = self.at_op("..")
            self.pos = saved
            if is_interval:
                return self.parse_interval()

        self.saw_subject = False
        expression = self.parse_expression()
        return _ValueTest(expression, uses_subject=self.saw_subject)

    def parse_interval(self) -> _Test:
        opening = self.advance()
        start = self.parse_additive()
        self.expect_op("..")
        end = self.parse_additive()
        if not self.at_op("]", ")", "["):
            raise self.error("expected ']', ')' or '[' to close interval")
        closing = self.advance()
        return _IntervalTest(
            start=start,
            end=end,
            start_closed=opening.value == "[",
            end_closed=closing.value == "]",
        )


@lru_cache(maxsize=1024)
def _parse_expression(text: str) -> _Node:
    if not text.strip():
        return _Literal(None)
    parser = _Parser(text)
    node = parser.parse_expression()
    parser.expect_end()
    return node


@lru_cache(maxsize=1024)
def _parse_unary_tests(text: str) -> _Test:
    return _Parser(text).parse_unary_tests()


# =============================================================================
# Compiled wrappers and evaluator
# =============================================================================


class SimpleExpression:
    """Compiled expression; call with a context to evaluate."""

    __slots__ = ("text", "_node")

    def __init__(self, text: str, node: _Node) -> None:
        self.text = text
        self._node = node

    def __call__(self, context: Context) -> Any:
        env = _Env(context if context is not None else {})
        try:
            return self._node.evaluate(env)
        except _EvaluationFailure as e:
            raise ExpressionError(str(e), self.text, context) from e

    def __repr__(self) -> str:
        return f"SimpleExpression({self.text!r})"


class SimpleUnaryTests:
    """Compiled input entry; call with the column subject and the context."""

    __slots__ = ("text", "_test")

    def __init__(self, text: str, test: _Test) -> None:
        self.text = text
        self._test = test

    @property
    def is_wildcard(self) -> bool:
        return isinstance(self._test, _AnyTest)

    def __call__(self, subject: Any, context: Context) -> bool:
        env = _Env(context if context is not None else {}, subject)
        try:
            return self._test.matches(env)
        except _EvaluationFailure as e:
            raise ExpressionError(str(e), self.text, context) from e

    def __repr__(self) -> str:
        return f"SimpleUnaryTests({self.text!r})"


class SimpleExpressionEvaluator:
    """Default expression evaluator.

    Parsing is memoized per text, so compiling many tables that share cell
    text (or compiling the same table twice) reuses the parsed form.
    """

    name = "simple"

    def compile_input_expression(self, text: str) -> SimpleExpression:
        return SimpleExpression(text, _parse_expression(text))

    def compile_unary_tests(self, text: str) -> SimpleUnaryTests:
        return SimpleUnaryTests(text, _parse_unary_tests(text))

    def compile_output_expression(self, text: str) -> SimpleExpression:
        return SimpleExpression(text, _parse_expression(text))
