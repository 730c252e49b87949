"""Compiled decision table - the executable form of a decision table.

Everything here is immutable and self-contained: a compiled table keeps no
reference to the ModelHandle it was compiled from, so the handle may be
discarded and a compiled table may be shared between threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dmn_engine.expressions.base import CompiledExpression, CompiledUnaryTests
from dmn_engine.table.hit_policy import Aggregation, HitPolicy

__all__ = [
    "CompiledInput",
    "CompiledOutput",
    "CompiledRule",
    "CompiledDecisionTable",
]


@dataclass(frozen=True)
class CompiledInput:
    """Input column.

    Attributes:
        id: Column identifier.
        label: Human-readable label.
        expression: Compiled input expression producing the column subject.
        type_ref: Normalized typeRef the subject is coerced to.
    """

    id: str
    label: str | None
    expression: CompiledExpression
    type_ref: str | None = None


@dataclass(frozen=True)
class CompiledOutput:
    """Output column.

    Attributes:
        id: Column identifier.
        name: Name of the value in output entries.
        label: Human-readable label.
        type_ref: Normalized typeRef output values are coerced to.
        priorities: Allowed output values, highest priority first.
    """

    id: str
    name: str
    label: str | None = None
    type_ref: str | None = None
    priorities: tuple[Any, ...] = ()


@dataclass(frozen=True)
class CompiledRule:
    """A rule row.

    Attributes:
        id: Rule identifier.
        index: Zero-based position in the table.
        description: Optional annotation.
        conditions: One compiled input entry per input column,
            None where the cell matches any value.
        outputs: One compiled output entry per output column.
    """

    id: str
    index: int
    conditions: tuple[CompiledUnaryTests | None, ...]
    outputs: tuple[CompiledExpression, ...]
    description: str | None = None


@dataclass(frozen=True)
class CompiledDecisionTable:
    """Executable decision table.

    Attributes:
        decision_id: Identifier of the owning decision.
        decision_name: Display name of the owning decision.
        hit_policy: Validated hit policy.
        aggregation: Aggregation for COLLECT, or None.
        inputs: Input columns in declaration order.
        outputs: Output columns in declaration order.
        rules: Rules in declaration order.
        strict_types: Fail on values that cannot be coerced to their typeRef.
    """

    decision_id: str
    hit_policy: HitPolicy
    inputs: tuple[CompiledInput, ...]
    outputs: tuple[CompiledOutput, ...]
    rules: tuple[CompiledRule, ...]
    aggregation: Aggregation | None = None
    decision_name: str | None = None
    strict_types: bool = False
