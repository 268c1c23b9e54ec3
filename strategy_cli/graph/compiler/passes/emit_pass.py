from __future__ import annotations

from strategy_cli.graph.compiler.emitter import EmitError, render_script
from strategy_cli.graph.compiler.models import CompileDiagnostic
from strategy_cli.graph.ir import StrategyProgram


MIN_SCRIPT_LENGTH = 10


def run_emit_pass(program: StrategyProgram, *, compiler_version: str) -> tuple[str | None, list[CompileDiagnostic]]:
    diagnostics: list[CompileDiagnostic] = []
    try:
        script = render_script(program, compiler_version=compiler_version)
    except EmitError as exc:
        diagnostics.append(
            CompileDiagnostic(
                code="EMIT_FAILED",
                severity="error",
                message=str(exc).rstrip("."),
            )
        )
        return None, diagnostics

    if len(script) < MIN_SCRIPT_LENGTH:
        diagnostics.append(
            CompileDiagnostic(
                code="EMIT_EMPTY_SCRIPT",
                severity="error",
                message="Generated script is empty",
            )
        )
        return None, diagnostics
    return script, diagnostics
