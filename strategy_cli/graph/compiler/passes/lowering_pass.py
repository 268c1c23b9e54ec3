from __future__ import annotations

from typing import Any

from strategy_cli.graph.compiler.models import CompileDiagnostic
from strategy_cli.graph.ir import CombineStep, StrategyProgram
from strategy_cli.graph.schema import GraphValidationError, build_strategy_graph
from strategy_cli.graph.wiring import lower_strategy


def run_lowering_pass(
    graph: dict[str, Any],
    default_combinator: str,
) -> tuple[StrategyProgram | None, list[CompileDiagnostic]]:
    diagnostics: list[CompileDiagnostic] = []
    try:
        program = lower_strategy(build_strategy_graph(graph), default_combinator=default_combinator)
    except GraphValidationError as exc:
        for error in exc.errors:
            diagnostics.append(
                CompileDiagnostic(
                    code="LOWERING_FAILED",
                    severity="error",
                    message=error.rstrip("."),
                    hint="The graph must form a DAG before it can be lowered.",
                )
            )
        return None, diagnostics

    for step in program.steps:
        if not isinstance(step, CombineStep):
            continue
        if step.operator == "NOT" and len(step.inputs) > 1:
            diagnostics.append(
                CompileDiagnostic(
                    code="LOWERING_NOT_EXTRA_INPUTS",
                    severity="warning",
                    message=f"NOT node '{step.node_id}' negates only its first input '{step.inputs[0]}'",
                    node_id=step.node_id,
                    hint="Combine the inputs with an AND/OR node before negating them.",
                )
            )
    return program, diagnostics
