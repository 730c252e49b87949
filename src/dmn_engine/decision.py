"""Decision - the executable object handed to callers.

A Decision wraps one compiled decision table. It holds no mutable state,
so a single instance can be cached and evaluated from many threads with
different contexts.
"""

from __future__ import annotations

from typing import Any, Mapping

from dmn_engine.model.definitions import LogicVariant
from dmn_engine.results import ResultSet
from dmn_engine.table.compiled import CompiledDecisionTable
from dmn_engine.table.evaluator import evaluate_table
from dmn_engine.table.hit_policy import HitPolicy

__all__ = [
    "Decision",
]


class Decision:
    """Compiled, reusable decision.

    Attributes:
        id: Decision identifier.
        name: Decision display name, if declared.
        logic_variant: Kind of logic backing the decision.
        table: The compiled decision table.
    """

    __slots__ = ("_table",)

    def __init__(self, table: CompiledDecisionTable) -> None:
        self._table = table

    @property
    def id(self) -> str:
        return self._table.decision_id

    @property
    def name(self) -> str | None:
        return self._table.decision_name

    @property
    def logic_variant(self) -> LogicVariant:
        return LogicVariant.DECISION_TABLE

    @property
    def hit_policy(self) -> HitPolicy:
        return self._table.hit_policy

    @property
    def table(self) -> CompiledDecisionTable:
        return self._table

    def evaluate(self, context: Mapping[str, Any] | None = None) -> ResultSet:
        """Evaluate the decision against an input context.

        Args:
            context: Variable bindings for this call. None means no inputs.

        Returns:
            ResultSet of output entries.

        Raises:
            RuleConflictError: If the hit policy's uniqueness is violated.
            ExpressionError: If an expression cannot be evaluated.
        """
        return evaluate_table(self._table, context)

    def __repr__(self) -> str:
        return f"Decision(id={self.id!r}, hit_policy={self.hit_policy.value!r}, rules={len(self._table.rules)})"
