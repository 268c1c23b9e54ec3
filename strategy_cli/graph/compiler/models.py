from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from strategy_cli.graph.ir import StrategyProgram


DefaultCombinator = Literal["AND", "OR"]
DiagnosticSeverity = Literal["error", "warning", "info"]


@dataclass(slots=True)
class CompileDiagnostic:
    code: str
    severity: DiagnosticSeverity
    message: str
    node_id: str | None = None
    path: str | None = None
    hint: str | None = None


@dataclass(slots=True)
class CompileOptions:
    default_combinator: DefaultCombinator = "AND"
    inject_defaults: bool = True


@dataclass(slots=True)
class CompiledStrategy:
    name: str
    filename: str
    script: str
    compile_hash: str
    program: StrategyProgram
    graph: dict[str, Any]
    action_inputs: dict[str, list[str]] = field(default_factory=dict)
    unreachable_nodes: list[str] = field(default_factory=list)
    warnings: list[CompileDiagnostic] = field(default_factory=list)
    compiler_version: str = "1.0.0"


@dataclass(slots=True)
class CompileResult:
    ok: bool
    diagnostics: list[CompileDiagnostic]
    rewritten_graph: dict[str, Any] | None = None
    compiled: CompiledStrategy | None = None

    @property
    def errors(self) -> list[CompileDiagnostic]:
        return [item for item in self.diagnostics if item.severity == "error"]

    @property
    def warnings(self) -> list[CompileDiagnostic]:
        return [item for item in self.diagnostics if item.severity in {"warning", "info"}]
