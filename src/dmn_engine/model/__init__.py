"""Decision model - parsed, immutable representation of DMN documents.

Structure:
    definitions.py    - ModelHandle, DecisionDefinition and logic payloads
    parser.py         - Structural parser (path/bytes/stream -> ModelHandle)

The model is read-only after parsing. The compiler copies what it needs,
so a handle may be discarded once its decisions are compiled.
"""

from dmn_engine.model.definitions import (
    DecisionDefinition,
    DecisionTableLogic,
    InputClause,
    InvocationLogic,
    LiteralExpressionLogic,
    LogicVariant,
    ModelHandle,
    OtherLogic,
    OutputClause,
    RuleDefinition,
)
from dmn_engine.model.parser import ModelSource, parse_model, parse_model_bytes

__all__ = [
    # Definitions
    "ModelHandle",
    "DecisionDefinition",
    "LogicVariant",
    "DecisionTableLogic",
    "InputClause",
    "OutputClause",
    "RuleDefinition",
    "LiteralExpressionLogic",
    "InvocationLogic",
    "OtherLogic",
    # Parser
    "ModelSource",
    "parse_model",
    "parse_model_bytes",
]
