from strategy_cli.graph.compiler.compiler import StrategyCompilationError, StrategyCompiler, compile_strategy
from strategy_cli.graph.compiler.diagnostics import render_diagnostic, render_diagnostics
from strategy_cli.graph.compiler.models import (
    CompileDiagnostic,
    CompileOptions,
    CompileResult,
    CompiledStrategy,
)

__all__ = [
    "CompileDiagnostic",
    "CompileOptions",
    "CompileResult",
    "CompiledStrategy",
    "StrategyCompilationError",
    "StrategyCompiler",
    "compile_strategy",
    "render_diagnostic",
    "render_diagnostics",
]
