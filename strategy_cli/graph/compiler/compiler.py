from __future__ import annotations

import logging
from typing import Any

from strategy_cli.graph.compiler.diagnostics import render_diagnostics
from strategy_cli.graph.compiler.models import (
    CompileDiagnostic,
    CompileOptions,
    CompileResult,
    CompiledStrategy,
)
from strategy_cli.graph.compiler.passes import (
    run_canonicalize_pass,
    run_cfg_pass,
    run_emit_pass,
    run_finalize_pass,
    run_lowering_pass,
    run_schema_pass,
    run_subtype_pass,
)
from strategy_cli.settings import GuardLimits


LOGGER = logging.getLogger(__name__)


class StrategyCompilationError(ValueError):
    """Raised by ``compile_or_raise`` when compilation reports errors."""

    def __init__(self, diagnostics: list[CompileDiagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        errors = [item for item in self.diagnostics if item.severity == "error"]
        super().__init__(f"Strategy compilation failed:\n{render_diagnostics(errors)}")


class StrategyCompiler:
    """Deterministic compiler from strategy graphs to standalone Python scripts."""

    VERSION = "1.0.0"

    def __init__(self, limits: GuardLimits | None = None) -> None:
        self._limits = limits

    def compile(
        self,
        *,
        graph: dict[str, Any],
        options: CompileOptions | None = None,
    ) -> CompileResult:
        opts = options or CompileOptions()
        diagnostics: list[CompileDiagnostic] = []

        if opts.default_combinator not in {"AND", "OR"}:
            diagnostics.append(
                CompileDiagnostic(
                    code="COMPILE_COMBINATOR_INVALID",
                    severity="error",
                    message=f"Unsupported default combinator '{opts.default_combinator}'",
                    path="options.default_combinator",
                    hint="Use AND or OR.",
                )
            )
            return CompileResult(ok=False, diagnostics=diagnostics, rewritten_graph=graph, compiled=None)

        if not isinstance(graph, dict):
            diagnostics.append(
                CompileDiagnostic(
                    code="SCHEMA_VALIDATION_FAILED",
                    severity="error",
                    message="Strategy payload must be an object",
                )
            )
            return CompileResult(ok=False, diagnostics=diagnostics, rewritten_graph=None, compiled=None)

        rewritten, canonical_diags = run_canonicalize_pass(graph)
        if opts.inject_defaults:
            diagnostics.extend(canonical_diags)
        else:
            diagnostics.extend(item for item in canonical_diags if item.severity != "info")

        schema_diags = run_schema_pass(rewritten, self._limits)
        diagnostics.extend(schema_diags)
        if schema_diags:
            return self._failed(diagnostics, rewritten)

        cfg, cfg_diags = run_cfg_pass(rewritten)
        diagnostics.extend(cfg_diags)

        program, lowering_diags = run_lowering_pass(rewritten, opts.default_combinator)
        diagnostics.extend(lowering_diags)
        if program is None:
            return self._failed(diagnostics, rewritten)

        diagnostics.extend(run_subtype_pass(program))
        if any(item.severity == "error" for item in diagnostics):
            return self._failed(diagnostics, rewritten)

        script, emit_diags = run_emit_pass(program, compiler_version=self.VERSION)
        diagnostics.extend(emit_diags)
        if script is None:
            return self._failed(diagnostics, rewritten)

        compiled: CompiledStrategy = run_finalize_pass(
            graph=rewritten,
            program=program,
            cfg=cfg,
            script=script,
            compiler_version=self.VERSION,
        )
        compiled.warnings = [item for item in diagnostics if item.severity != "error"]
        LOGGER.info(
            "Compiled strategy '%s' to %s (%s steps, hash=%s)",
            compiled.name,
            compiled.filename,
            len(program.steps),
            compiled.compile_hash,
        )

        return CompileResult(
            ok=True,
            diagnostics=diagnostics,
            rewritten_graph=rewritten,
            compiled=compiled,
        )

    def compile_or_raise(
        self,
        *,
        graph: dict[str, Any],
        options: CompileOptions | None = None,
    ) -> CompiledStrategy:
        result = self.compile(graph=graph, options=options)
        if not result.ok or result.compiled is None:
            raise StrategyCompilationError(result.diagnostics)
        return result.compiled

    @staticmethod
    def _failed(diagnostics: list[CompileDiagnostic], rewritten: dict[str, Any]) -> CompileResult:
        LOGGER.warning(
            "Strategy compilation failed with %s error(s)",
            sum(1 for item in diagnostics if item.severity == "error"),
        )
        return CompileResult(ok=False, diagnostics=diagnostics, rewritten_graph=rewritten, compiled=None)


def compile_strategy(graph: dict[str, Any], *, options: CompileOptions | None = None) -> str:
    """Compile a payload and return the script text, raising on any compile error."""
    return StrategyCompiler().compile_or_raise(graph=graph, options=options).script
