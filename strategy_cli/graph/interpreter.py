from __future__ import annotations

import logging
from typing import Any

from strategy_cli.graph.ir import ConditionStep, StrategyProgram
from strategy_cli.graph.loader import load_strategy_graph
from strategy_cli.graph.models import StrategyGraph
from strategy_cli.graph.wiring import lower_strategy
from strategy_cli.runtime.session import RoundEvaluation
from strategy_cli.settings import GuardLimits


LOGGER = logging.getLogger(__name__)


def _evaluate_steps(program: StrategyProgram, history: object) -> RoundEvaluation:
    ctx = RoundEvaluation(history, history_window=program.history_window)
    for step in program.steps:
        if isinstance(step, ConditionStep):
            ctx.condition(step.node_id, step.subtype, step.kernel, step.arguments)
        else:
            ctx.combine(step.node_id, step.role, step.operator, list(step.inputs))
    return ctx


def run_program(program: StrategyProgram, history: object) -> dict[str, Any]:
    """Interpret a lowered program; the result has the same shape as the compiled script's."""
    ctx = _evaluate_steps(program, history)
    result = ctx.finish(program.actions, program.gating, program.wiring)
    LOGGER.debug(
        "Strategy '%s' evaluated over %s outcomes: trigger=%s numbers=%s",
        program.name,
        len(ctx.history),
        result["trigger"],
        len(result["numbers"]),
    )
    return result


def resolve_actions(program: StrategyProgram, history: object) -> list[dict[str, Any]]:
    """Per-action resolution before gating: trigger flag, candidates and the decision trace."""
    ctx = _evaluate_steps(program, history)
    return [
        {**resolution, "decisionTrace": list(ctx.decision_trace)}
        for resolution in ctx.resolve_actions(program.actions)
    ]


def compile_program(
    payload: dict[str, Any] | StrategyGraph,
    *,
    default_combinator: str = "AND",
    limits: GuardLimits | None = None,
) -> StrategyProgram:
    graph = load_strategy_graph(payload, limits=limits)
    return lower_strategy(graph, default_combinator=default_combinator)


def evaluate_strategy(
    payload: dict[str, Any] | StrategyGraph,
    history: object,
    *,
    default_combinator: str = "AND",
    limits: GuardLimits | None = None,
) -> dict[str, Any]:
    program = compile_program(payload, default_combinator=default_combinator, limits=limits)
    return run_program(program, history)
