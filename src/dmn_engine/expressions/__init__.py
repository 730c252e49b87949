"""Expression evaluation for decision table cells.

Structure:
    base.py      - ExpressionEvaluator protocol and compiled callable types
    simple.py    - SimpleExpressionEvaluator, the default language

Any object implementing ExpressionEvaluator can be passed to DmnEngine to
replace the default language.
"""

from dmn_engine.expressions.base import (
    CompiledExpression,
    CompiledUnaryTests,
    Context,
    ExpressionEvaluator,
)
from dmn_engine.expressions.simple import (
    SimpleExpression,
    SimpleExpressionEvaluator,
    SimpleUnaryTests,
    tokenize,
)

__all__ = [
    # Interface
    "Context",
    "CompiledExpression",
    "CompiledUnaryTests",
    "ExpressionEvaluator",
    # Default language
    "SimpleExpression",
    "SimpleUnaryTests",
    "SimpleExpressionEvaluator",
    "tokenize",
]
