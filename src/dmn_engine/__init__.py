"""dmn-engine: resolve and evaluate DMN decision tables.

Pipeline:
    model/        - Structural parser producing an immutable ModelHandle
    resolver.py   - Locate a decision in a model
    compiler.py   - Validate and compile decision logic
    table/        - Compiled tables, hit policies, evaluation
    expressions/  - Expression evaluator for table cells
    engine.py     - DmnEngine facade with compile cache
"""

from dmn_engine.config import EngineConfig
from dmn_engine.decision import Decision
from dmn_engine.engine import DmnEngine
from dmn_engine.exceptions import (
    AmbiguousDecisionError,
    DecisionCompileError,
    DecisionNotFoundError,
    DmnEngineError,
    DmnEvaluationError,
    DmnParseError,
    ExpressionError,
    ExpressionSyntaxError,
    ModelParseError,
    RuleConflictError,
    UnsupportedLogicError,
)
from dmn_engine.model import LogicVariant, ModelHandle, parse_model
from dmn_engine.results import OutputEntry, OutputValue, ResultSet
from dmn_engine.table import Aggregation, HitPolicy

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine
    "DmnEngine",
    "EngineConfig",
    "Decision",
    # Model
    "ModelHandle",
    "LogicVariant",
    "parse_model",
    # Tables
    "HitPolicy",
    "Aggregation",
    # Results
    "ResultSet",
    "OutputEntry",
    "OutputValue",
    # Errors
    "DmnEngineError",
    "DmnParseError",
    "ModelParseError",
    "DecisionNotFoundError",
    "AmbiguousDecisionError",
    "UnsupportedLogicError",
    "DecisionCompileError",
    "DmnEvaluationError",
    "RuleConflictError",
    "ExpressionError",
    "ExpressionSyntaxError",
]
