from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from strategy_cli.graph.compiler.models import CompileDiagnostic


@dataclass(slots=True)
class CFGAnalysis:
    unreachable: list[str]
    action_inputs: dict[str, list[str]]


def run_cfg_pass(graph: dict[str, Any]) -> tuple[CFGAnalysis, list[CompileDiagnostic]]:
    diagnostics: list[CompileDiagnostic] = []

    node_types: dict[str, str] = {}
    for node in graph.get("nodes") or []:
        if isinstance(node, dict) and isinstance(node.get("id"), str):
            node_types[node["id"]] = str(node.get("type") or "")

    reverse: dict[str, list[str]] = {node_id: [] for node_id in node_types}
    for connection in graph.get("connections") or []:
        if not isinstance(connection, dict):
            continue
        source, target = connection.get("from"), connection.get("to")
        if source in reverse and target in reverse:
            reverse[target].append(source)

    actions = [node_id for node_id, node_type in node_types.items() if node_type == "action"]
    contributing: set[str] = set()
    for action in actions:
        _dfs_reachable(action, reverse, contributing)

    unreachable = [node_id for node_id in node_types if node_id not in contributing]
    for node_id in unreachable:
        diagnostics.append(
            CompileDiagnostic(
                code="CFG_UNREACHABLE_NODE",
                severity="warning",
                message=f"Node '{node_id}' does not feed any action",
                node_id=node_id,
                hint="Remove it or connect it towards an action node.",
            )
        )

    action_inputs = {action: list(reverse[action]) for action in actions}
    for node_id, node_type in node_types.items():
        if node_type in {"action", "logic"} and not reverse[node_id]:
            diagnostics.append(
                CompileDiagnostic(
                    code="CFG_NODE_WITHOUT_INPUTS",
                    severity="warning",
                    message=f"{node_type.capitalize()} node '{node_id}' has no inputs and always resolves to false",
                    node_id=node_id,
                    hint="Connect at least one condition or logic node to it.",
                )
            )

    return CFGAnalysis(unreachable=unreachable, action_inputs=action_inputs), diagnostics


def _dfs_reachable(start: str, adjacency: dict[str, list[str]], reachable: set[str]) -> None:
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        for target in adjacency.get(node_id, []):
            if target not in reachable:
                stack.append(target)
