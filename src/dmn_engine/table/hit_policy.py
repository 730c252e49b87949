"""Hit policies - how matching rules combine into a result.

Single result policies (at most one output entry):
    UNIQUE     at most one rule may match, otherwise RuleConflictError
    FIRST      first matching rule in declaration order
    ANY        all matching rules must produce equal outputs
    PRIORITY   matching rule with the highest-priority output value

Multiple result policies:
    COLLECT       every matching rule in declaration order, optionally
                  reduced by an aggregation (SUM, MIN, MAX, COUNT)
    RULE ORDER    every matching rule in declaration order
    OUTPUT ORDER  every matching rule sorted by output value priority

Priorities come from the output columns' allowed values: earlier values
have higher priority, values not listed rank lowest.

Tokens are validated when the table is compiled, never during evaluation.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

from dmn_engine.exceptions import DmnEvaluationError

if TYPE_CHECKING:
    from dmn_engine.results import OutputEntry
    from dmn_engine.table.compiled import CompiledOutput

__all__ = [
    "HitPolicy",
    "Aggregation",
    "parse_hit_policy",
    "priority_key",
    "aggregate",
]


class HitPolicy(str, Enum):
    """DMN hit policies. Values are the DMN attribute spellings."""

    UNIQUE = "UNIQUE"
    FIRST = "FIRST"
    PRIORITY = "PRIORITY"
    ANY = "ANY"
    COLLECT = "COLLECT"
    RULE_ORDER = "RULE ORDER"
    OUTPUT_ORDER = "OUTPUT ORDER"

    @property
    def is_single_result(self) -> bool:
        return self in (HitPolicy.UNIQUE, HitPolicy.FIRST, HitPolicy.PRIORITY, HitPolicy.ANY)

    @property
    def uses_priorities(self) -> bool:
        return self in (HitPolicy.PRIORITY, HitPolicy.OUTPUT_ORDER)


class Aggregation(str, Enum):
    """Built-in aggregators for the COLLECT hit policy."""

    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"
    COUNT = "COUNT"


_HIT_POLICY_TOKENS: dict[str, HitPolicy] = {
    "U": HitPolicy.UNIQUE,
    "F": HitPolicy.FIRST,
    "P": HitPolicy.PRIORITY,
    "A": HitPolicy.ANY,
    "C": HitPolicy.COLLECT,
    "R": HitPolicy.RULE_ORDER,
    "O": HitPolicy.OUTPUT_ORDER,
    "RULE_ORDER": HitPolicy.RULE_ORDER,
    "OUTPUT_ORDER": HitPolicy.OUTPUT_ORDER,
}
_HIT_POLICY_TOKENS.update({policy.value: policy for policy in HitPolicy})

_AGGREGATION_TOKENS: dict[str, Aggregation] = {
    "+": Aggregation.SUM,
    "<": Aggregation.MIN,
    ">": Aggregation.MAX,
    "#": Aggregation.COUNT,
}
_AGGREGATION_TOKENS.update({aggregation.value: aggregation for aggregation in Aggregation})


def parse_hit_policy(
    hit_policy: str | None,
    aggregation: str | None = None,
    default: str = HitPolicy.UNIQUE.value,
) -> tuple[HitPolicy, Aggregation | None]:
    """Parse hit policy and aggregation tokens.

    Accepts DMN spellings ("RULE ORDER"), underscore spellings ("RULE_ORDER"),
    single letters ("R") and the collect shorthand with an aggregation
    suffix ("C+", "C<", "C>", "C#"). Matching is case-insensitive.

    Args:
        hit_policy: hitPolicy attribute, or None to use the default.
        aggregation: aggregation attribute, or None.
        default: Token used when hit_policy is None or blank.

    Returns:
        Tuple of (HitPolicy, Aggregation or None).

    Raises:
        ValueError: On an unknown token, or an aggregation on a policy other than COLLECT.
    """
    token = " ".join((hit_policy or "").split()).upper() or default.upper()
    aggregation_token = (aggregation or "").strip().upper()

    # Collect shorthand: "C+" etc.
    if len(token) == 2 and token[0] == "C" and token[1] in _AGGREGATION_TOKENS:
        if aggregation_token:
            raise ValueError(f"hit policy '{hit_policy}' already names an aggregation")
        token, aggregation_token = "C", token[1]

    policy = _HIT_POLICY_TOKENS.get(token)
    if policy is None:
        raise ValueError(f"unknown hit policy '{hit_policy}'")

    if not aggregation_token:
        return policy, None

    parsed_aggregation = _AGGREGATION_TOKENS.get(aggregation_token)
    if parsed_aggregation is None:
        raise ValueError(f"unknown aggregation '{aggregation}'")
    if policy != HitPolicy.COLLECT:
        raise ValueError(f"aggregation '{parsed_aggregation.value}' is only allowed with hit policy COLLECT")
    return policy, parsed_aggregation


def priority_key(entry: OutputEntry, outputs: Sequence[CompiledOutput]) -> tuple[int, ...]:
    """Sort key ranking an output entry by its columns' allowed value order.

    Lower keys rank higher. Columns without allowed values do not contribute.
    """
    key = []
    for output, value in zip(outputs, entry):
        if not output.priorities:
            continue
        key.append(_priority_index(output.priorities, value.value))
    return tuple(key)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _priority_index(priorities: Sequence[Any], value: Any) -> int:
    """Position of value in priorities, or len(priorities) if unlisted.

    Booleans never equal numbers, so True does not rank as 1.
    """
    for index, candidate in enumerate(priorities):
        if isinstance(candidate, bool) == isinstance(value, bool) and candidate == value:
            return index
    return len(priorities)


def aggregate(aggregation: Aggregation, values: Sequence[Any], decision_id: str) -> Any:
    """Reduce the collected values of a single output column.

    None values are ignored. SUM, MIN and MAX of no values is None.

    Raises:
        DmnEvaluationError: If the values cannot be aggregated.
    """
    present = [value for value in values if value is not None]

    if aggregation == Aggregation.COUNT:
        return len(present)
    if not present:
        return None

    if aggregation == Aggregation.SUM:
        if not all(_is_number(value) for value in present):
            raise DmnEvaluationError(
                f"Unable to compute SUM for decision '{decision_id}': collected values {present!r} are not all numbers."
            )
        # Decimal + float is a TypeError
        has_decimal = any(isinstance(value, Decimal) for value in present)
        if has_decimal and any(isinstance(value, float) for value in present):
            present = [float(value) for value in present]
        return sum(present)

    try:
        return min(present) if aggregation == Aggregation.MIN else max(present)
    except TypeError as e:
        raise DmnEvaluationError(
            f"Unable to compute {aggregation.value} for decision '{decision_id}': "
            f"collected values {present!r} are not comparable."
        ) from e
