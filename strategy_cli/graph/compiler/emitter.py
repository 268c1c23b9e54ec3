"""Print a lowered strategy as a standalone Python script.

The script embeds the runtime modules verbatim (with their package-internal
imports removed and standard-library imports hoisted), so the generated
``evaluate`` runs exactly the kernels the in-process interpreter runs. Each IR
step is printed by the printer registered for its type.
"""

from __future__ import annotations

import ast
import pprint
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

from strategy_cli.graph.ir import CombineStep, ConditionStep, ProgramStep, StrategyProgram
from strategy_cli.runtime import EMBEDDED_MODULES


INDENT = "    "
SCRIPT_IMPORTS = ("json", "sys")


class EmitError(ValueError):
    """Raised when an IR step cannot be printed."""


def print_condition(step: ConditionStep) -> str:
    if step.kernel is None:
        raise EmitError(f"Condition '{step.node_id}' with subtype '{step.subtype}' has no kernel to print.")
    arguments = _literal(step.arguments)
    return f"ctx.condition({step.node_id!r}, {step.subtype!r}, {step.kernel.__name__}, {arguments})"


def print_combine(step: CombineStep) -> str:
    return f"ctx.combine({step.node_id!r}, {step.role!r}, {step.operator!r}, {list(step.inputs)!r})"


PRINTERS: dict[type, Callable[[Any], str]] = {
    ConditionStep: print_condition,
    CombineStep: print_combine,
}


def print_step(step: ProgramStep) -> str:
    printer = PRINTERS.get(type(step))
    if printer is None:
        raise EmitError(f"No printer registered for {type(step).__name__}.")
    return printer(step)


def render_script(program: StrategyProgram, *, compiler_version: str) -> str:
    imports, blocks = collect_runtime_source(EMBEDDED_MODULES)

    lines: list[str] = [
        f"# Strategy artifact: {program.name}",
        f"# Generated by strategy_cli compiler {compiler_version}. Do not edit by hand.",
        "from __future__ import annotations",
        "",
        *imports,
        "",
    ]
    for block in blocks:
        lines.extend(["", block, ""])

    lines.extend(
        [
            "",
            f"METADATA = {_literal(program.metadata)}",
            f"HISTORY_WINDOW = {program.history_window!r}",
            f"GATING = {_literal(program.gating)}",
            f"ACTIONS = {_literal(program.actions)}",
            f"GRAPH_WIRING = {_literal(program.wiring)}",
            "",
            "",
            "def evaluate(history):",
            f"{INDENT}ctx = RoundEvaluation(history, history_window=HISTORY_WINDOW)",
        ]
    )
    lines.extend(f"{INDENT}{print_step(step)}" for step in program.steps)
    lines.extend(
        [
            f"{INDENT}return ctx.finish(ACTIONS, GATING, GRAPH_WIRING)",
            "",
            "",
            'if __name__ == "__main__":',
            f"{INDENT}raw = sys.stdin.read()",
            f"{INDENT}history = json.loads(raw) if raw.strip() else []",
            f"{INDENT}if isinstance(history, dict):",
            f'{INDENT * 2}history = history.get("history", [])',
            f"{INDENT}print(json.dumps(evaluate(history), ensure_ascii=False))",
            "",
        ]
    )
    return "\n".join(lines)


def collect_runtime_source(modules: tuple[ModuleType, ...]) -> tuple[list[str], list[str]]:
    plain_imports: list[str] = list(SCRIPT_IMPORTS)
    from_imports: dict[str, list[str]] = {}
    blocks: list[str] = []

    for module in modules:
        source = Path(module.__file__).read_text(encoding="utf-8")
        source_lines = source.splitlines()
        tree = ast.parse(source)
        for index, node in enumerate(tree.body):
            if isinstance(node, ast.ImportFrom):
                if node.module == "__future__" or (node.module or "").startswith("strategy_cli"):
                    continue
                names = from_imports.setdefault(node.module or "", [])
                for alias in node.names:
                    rendered = f"{alias.name} as {alias.asname}" if alias.asname else alias.name
                    if rendered not in names:
                        names.append(rendered)
                continue
            if isinstance(node, ast.Import):
                for alias in node.names:
                    rendered = f"{alias.name} as {alias.asname}" if alias.asname else alias.name
                    if rendered not in plain_imports:
                        plain_imports.append(rendered)
                continue
            if index == 0 and isinstance(node, ast.Expr) and isinstance(node.value, ast.Constant):
                continue
            if _assigns_all(node):
                continue

            decorators = getattr(node, "decorator_list", [])
            start = min([node.lineno, *(item.lineno for item in decorators)])
            blocks.append("\n".join(source_lines[start - 1 : node.end_lineno]))

    imports = [f"import {name}" for name in sorted(plain_imports)]
    imports.extend(f"from {module} import {', '.join(names)}" for module, names in sorted(from_imports.items()))
    return imports, blocks


def _assigns_all(node: ast.stmt) -> bool:
    return isinstance(node, ast.Assign) and any(
        isinstance(target, ast.Name) and target.id == "__all__" for target in node.targets
    )


def _literal(value: Any) -> str:
    return pprint.pformat(value, indent=1, width=110, sort_dicts=False)
