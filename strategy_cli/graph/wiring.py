from __future__ import annotations

import logging
from collections import deque

from strategy_cli.graph.ir import CombineStep, ConditionStep, ProgramStep, StrategyProgram
from strategy_cli.graph.models import ActionNode, ConditionNode, LogicNode, StrategyGraph, TriggerNode
from strategy_cli.graph.schema import GraphValidationError


LOGGER = logging.getLogger(__name__)


def topological_order(graph: StrategyGraph) -> list[str]:
    """Order node ids so every source precedes its targets; ties keep declaration order."""
    order_index = {node.id: index for index, node in enumerate(graph.nodes)}
    indegree = {node.id: 0 for node in graph.nodes}
    adjacency: dict[str, list[str]] = {node.id: [] for node in graph.nodes}
    for connection in graph.connections:
        if connection.source not in adjacency or connection.target not in indegree:
            raise GraphValidationError(
                [f"Connection '{connection.source}' -> '{connection.target}' references a missing node."]
            )
        adjacency[connection.source].append(connection.target)
        indegree[connection.target] += 1

    ready = deque(node_id for node_id in indegree if indegree[node_id] == 0)
    ordered: list[str] = []
    while ready:
        node_id = ready.popleft()
        ordered.append(node_id)
        released: list[str] = []
        for target in adjacency[node_id]:
            indegree[target] -= 1
            if indegree[target] == 0:
                released.append(target)
        ready.extend(sorted(released, key=order_index.__getitem__))

    if len(ordered) != len(indegree):
        stuck = sorted(node_id for node_id, degree in indegree.items() if degree > 0)
        raise GraphValidationError([f"Connections form a cycle through: {', '.join(stuck)}."])
    return ordered


def lower_strategy(graph: StrategyGraph, *, default_combinator: str = "AND") -> StrategyProgram:
    node_map = graph.node_map
    topology = topological_order(graph)
    incoming: dict[str, list[str]] = {node_id: [] for node_id in node_map}
    for connection in graph.connections:
        incoming[connection.target].append(connection.source)

    steps: list[ProgramStep] = []
    for node_id in topology:
        node = node_map[node_id]
        if isinstance(node, TriggerNode):
            continue
        if isinstance(node, ConditionNode):
            steps.append(
                ConditionStep(
                    node_id=node.id,
                    subtype=node.subtype,
                    kernel=node.config.kernel,
                    arguments=node.config.kernel_arguments(),
                )
            )
            continue

        inputs: list[str] = []
        for source in incoming[node.id]:
            if source not in inputs and not isinstance(node_map[source], TriggerNode):
                inputs.append(source)
        steps.append(
            CombineStep(
                node_id=node.id,
                role="action" if isinstance(node, ActionNode) else "logic",
                operator=node.operator or default_combinator,
                inputs=tuple(inputs),
            )
        )

    program = StrategyProgram(
        name=graph.name,
        steps=steps,
        actions=[{"nodeId": node.id, "manualNumbers": list(node.manual_numbers)} for node in graph.action_nodes],
        gating=graph.gating.as_payload(graph.selection_mode),
        wiring=_wiring_summary(graph, topology),
        history_window=graph.history_window,
        metadata={
            "name": graph.name,
            "description": graph.description,
            "version": graph.version,
            "schemaVersion": graph.schema_version,
        },
    )
    LOGGER.debug(
        "Lowered strategy '%s': %s steps, %s actions, window=%s",
        graph.name,
        len(steps),
        len(program.actions),
        program.history_window,
    )
    return program


def _wiring_summary(graph: StrategyGraph, topology: list[str]) -> dict:
    nodes: list[dict] = []
    for node in graph.nodes:
        entry: dict = {"id": node.id, "type": node.kind}
        if isinstance(node, ConditionNode):
            entry["subtype"] = node.subtype
        elif isinstance(node, (LogicNode, ActionNode)) and node.operator:
            entry["operator"] = node.operator
        nodes.append(entry)
    return {
        "nodes": nodes,
        "connections": [{"from": item.source, "to": item.target} for item in graph.connections],
        "topology": list(topology),
        "selectionMode": graph.selection_mode,
    }
