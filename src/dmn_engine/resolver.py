"""Decision resolver - locate a decision inside a parsed model."""

from __future__ import annotations

import logging

from dmn_engine.exceptions import AmbiguousDecisionError, DecisionNotFoundError
from dmn_engine.model.definitions import DecisionDefinition, ModelHandle

__all__ = [
    "resolve_decision",
]

logger = logging.getLogger(__name__)


def resolve_decision(model: ModelHandle, decision_id: str | None = None) -> DecisionDefinition:
    """Find a decision by id, or the only decision of the model.

    Args:
        model: Parsed model.
        decision_id: Exact identifier to look up. If None, the model must
            declare exactly one decision.

    Returns:
        The matching DecisionDefinition.

    Raises:
        DecisionNotFoundError: If the id is absent, or no id was given and
            the model declares no decision.
        AmbiguousDecisionError: If no id was given and the model declares
            more than one decision.
    """
    if decision_id is not None:
        definition = model.get_decision(decision_id)
        if definition is None:
            raise DecisionNotFoundError(model.source_label, decision_id)
        logger.debug("Resolved decision '%s' in model '%s'", decision_id, model.source_label)
        return definition

    if not model.decisions:
        raise DecisionNotFoundError(model.source_label)
    if len(model.decisions) > 1:
        raise AmbiguousDecisionError(model.source_label, model.decision_ids())

    definition = model.decisions[0]
    logger.debug("Resolved single decision '%s' in model '%s'", definition.id, model.source_label)
    return definition
