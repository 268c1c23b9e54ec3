from __future__ import annotations

from strategy_cli.graph.compiler.models import CompileDiagnostic
from strategy_cli.graph.ir import StrategyProgram
from strategy_cli.runtime.conditions import unsatisfied


def run_subtype_pass(program: StrategyProgram) -> list[CompileDiagnostic]:
    diagnostics: list[CompileDiagnostic] = []
    for step in program.condition_steps:
        if step.kernel is None:
            diagnostics.append(
                CompileDiagnostic(
                    code="COMPILE_UNSUPPORTED_SUBTYPE",
                    severity="error",
                    message=f"Condition subtype '{step.subtype}' has no code template",
                    node_id=step.node_id,
                    path="subtype",
                    hint="Use one of the supported condition subtypes.",
                )
            )
            continue

        if step.kernel is unsatisfied:
            diagnostics.append(
                CompileDiagnostic(
                    code="CONDITION_CONFIG_INVALID",
                    severity="warning",
                    message=f"Config of '{step.subtype}' could not be read; the node always resolves to false",
                    node_id=step.node_id,
                    path="config",
                )
            )
            continue

        missing = sorted(name for name, value in step.arguments.items() if value is None)
        if step.arguments.get("evento") != "numero" and "numero_alvo" in missing:
            missing.remove("numero_alvo")
        if missing:
            diagnostics.append(
                CompileDiagnostic(
                    code="CONDITION_PARAMETER_MISSING",
                    severity="warning",
                    message=f"Parameters {', '.join(missing)} are missing or not numeric; the node resolves to false",
                    node_id=step.node_id,
                    path="config",
                )
            )
    return diagnostics
