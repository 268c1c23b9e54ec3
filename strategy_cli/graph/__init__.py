from strategy_cli.graph.conditions import SUPPORTED_SUBTYPES, parse_condition_config
from strategy_cli.graph.models import StrategyGraph
from strategy_cli.graph.schema import (
    GraphValidationError,
    SchemaVersionError,
    validate_strategy_or_raise,
    validate_strategy_payload,
)
from strategy_cli.graph.evaluator import candidate_numbers, evaluate
from strategy_cli.graph.loader import load_strategy_graph
from strategy_cli.graph.interpreter import compile_program, evaluate_strategy, run_program

__all__ = [
    "GraphValidationError",
    "SUPPORTED_SUBTYPES",
    "SchemaVersionError",
    "StrategyGraph",
    "candidate_numbers",
    "compile_program",
    "evaluate",
    "evaluate_strategy",
    "load_strategy_graph",
    "parse_condition_config",
    "run_program",
    "validate_strategy_or_raise",
    "validate_strategy_payload",
]
