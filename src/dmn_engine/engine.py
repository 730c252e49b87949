"""DMN engine - the public entry point.

Combines the pipeline steps:

    parse_model    source -> ModelHandle          (structural parser)
    resolve        ModelHandle -> DecisionDefinition
    compile        DecisionDefinition -> Decision (cached)
    evaluate       Decision + context -> ResultSet

Parsing, resolution and compilation errors are raised eagerly from
parse_decision(); evaluation errors are raised per evaluate() call.

Example:
    engine = DmnEngine()
    decision = engine.parse_decision("dish.dmn", "dish")
    result = engine.evaluate(decision, {"season": "Winter", "guests": 4})
    print(result.single_value())
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from dmn_engine.cache import DecisionCache
from dmn_engine.compiler import DecisionCompiler
from dmn_engine.config import EngineConfig
from dmn_engine.decision import Decision
from dmn_engine.expressions.base import ExpressionEvaluator
from dmn_engine.model.definitions import DecisionDefinition, ModelHandle
from dmn_engine.model.parser import ModelSource, parse_model
from dmn_engine.resolver import resolve_decision
from dmn_engine.results import ResultSet

__all__ = [
    "DmnEngine",
]

logger = logging.getLogger(__name__)


class DmnEngine:
    """Parses, compiles and evaluates DMN decisions.

    Instances are safe to share between threads. Compiled decisions are
    cached per instance, keyed by model content checksum and decision id.

    Attributes:
        config: Engine configuration.
        compiler: Compiler used for decision logic.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        evaluator: ExpressionEvaluator | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration (default: EngineConfig()).
            evaluator: Expression evaluator for table cells
                (default: SimpleExpressionEvaluator).
        """
        self.config = config or EngineConfig()
        self.compiler = DecisionCompiler(
            evaluator=evaluator,
            default_hit_policy=self.config.default_hit_policy,
            strict_types=self.config.strict_types,
        )
        self._cache = DecisionCache(self.config.cache_capacity) if self.config.cache_enabled else None

    @property
    def cache_size(self) -> int:
        """Number of compiled decisions currently cached."""
        return len(self._cache) if self._cache is not None else 0

    def clear_cache(self) -> int:
        """Drop all cached decisions. Returns the number removed."""
        if self._cache is None:
            return 0
        removed = self._cache.clear()
        logger.debug("Cleared %d compiled decision(s) from cache", removed)
        return removed

    def parse_model(self, source: ModelSource) -> ModelHandle:
        """Parse a model source (path, bytes, stream or handle).

        Raises:
            ModelParseError: If the source cannot be read or parsed.
        """
        return parse_model(source)

    def parse_decision(self, source: ModelSource, decision_id: str | None = None) -> Decision:
        """Parse a model and compile one of its decisions.

        Args:
            source: File path, bytes, readable stream or ModelHandle.
            decision_id: Decision to compile. If None, the model must
                declare exactly one decision.

        Returns:
            Executable Decision.

        Raises:
            ModelParseError: If the source cannot be parsed.
            DecisionNotFoundError: If the decision cannot be found.
            AmbiguousDecisionError: If no id was given and the model has several decisions.
            UnsupportedLogicError: If the decision logic is not a decision table.
            DecisionCompileError: If the decision table is malformed.
        """
        model = parse_model(source)
        definition = resolve_decision(model, decision_id)
        return self._compile(model, definition)

    def parse_decisions(self, source: ModelSource) -> list[Decision]:
        """Parse a model and compile all of its decisions, in document order.

        Raises:
            ModelParseError: If the source cannot be parsed.
            UnsupportedLogicError: If any decision's logic is not supported.
            DecisionCompileError: If any decision table is malformed.
        """
        model = parse_model(source)
        return [self._compile(model, definition) for definition in model.decisions]

    def evaluate(self, decision: Decision, context: Mapping[str, Any] | None = None) -> ResultSet:
        """Evaluate a compiled decision against an input context.

        Raises:
            RuleConflictError: If the hit policy's uniqueness is violated.
            ExpressionError: If an expression cannot be evaluated.
        """
        return decision.evaluate(context)

    def evaluate_decision(
        self,
        source: ModelSource,
        decision_id: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> ResultSet:
        """Parse, compile and evaluate a decision in one call."""
        return self.evaluate(self.parse_decision(source, decision_id), context)

    def _compile(self, model: ModelHandle, definition: DecisionDefinition) -> Decision:
        if self._cache is None:
            return Decision(self.compiler.compile(definition))

        key = (model.checksum, definition.id)
        cached = self._cache.lookup(key)
        if cached is not None:
            logger.debug("Compile cache hit for decision '%s' of '%s'", definition.id, model.source_label)
            return cached

        decision = Decision(self.compiler.compile(definition))
        return self._cache.store(key, decision)
