"""Expression evaluator interface.

The table compiler never interprets cell text itself. It hands every input
expression, input entry and output entry to an ExpressionEvaluator, which
returns compiled callables:

    compile_input_expression(text)  -> expr(context) -> value
    compile_unary_tests(text)       -> test(subject, context) -> bool
    compile_output_expression(text) -> expr(context) -> value

Compilation failures raise ExpressionSyntaxError.
Evaluation failures raise ExpressionError carrying the expression text and
a snapshot of the context.

Compiled callables must not mutate shared state, so a compiled decision can
be evaluated concurrently.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

__all__ = [
    "Context",
    "CompiledExpression",
    "CompiledUnaryTests",
    "ExpressionEvaluator",
]

Context = Mapping[str, Any]


@runtime_checkable
class CompiledExpression(Protocol):
    """An expression ready to be evaluated against a context."""

    text: str

    def __call__(self, context: Context) -> Any: ...


@runtime_checkable
class CompiledUnaryTests(Protocol):
    """An input entry ready to be matched against a column subject."""

    text: str

    def __call__(self, subject: Any, context: Context) -> bool: ...


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Compiles expression text into evaluable callables."""

    name: str

    def compile_input_expression(self, text: str) -> CompiledExpression: ...

    def compile_unary_tests(self, text: str) -> CompiledUnaryTests: ...

    def compile_output_expression(self, text: str) -> CompiledExpression: ...
