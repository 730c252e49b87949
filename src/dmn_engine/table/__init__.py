"""Decision tables - compiled form, hit policies and evaluation.

Structure:
    compiled.py      - CompiledDecisionTable and its columns/rules
    hit_policy.py    - HitPolicy/Aggregation enums, token parsing, reducers
    evaluator.py     - evaluate_table()
"""

from dmn_engine.table.compiled import (
    CompiledDecisionTable,
    CompiledInput,
    CompiledOutput,
    CompiledRule,
)
from dmn_engine.table.evaluator import evaluate_table
from dmn_engine.table.hit_policy import Aggregation, HitPolicy, parse_hit_policy

__all__ = [
    # Compiled form
    "CompiledDecisionTable",
    "CompiledInput",
    "CompiledOutput",
    "CompiledRule",
    # Hit policies
    "HitPolicy",
    "Aggregation",
    "parse_hit_policy",
    # Evaluation
    "evaluate_table",
]
