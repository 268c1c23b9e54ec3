from __future__ import annotations

from typing import Any

from strategy_cli.graph.conditions import parse_condition_config
from strategy_cli.graph.models import (
    ActionNode,
    ConditionNode,
    Connection,
    GatingConfig,
    GraphNode,
    LogicNode,
    StrategyGraph,
    TriggerNode,
)
from strategy_cli.runtime.outcomes import is_wheel_digits
from strategy_cli.settings import SUPPORTED_SCHEMA_VERSION, GuardLimits


ALLOWED_NODE_TYPES = {"condition", "logic", "action", "trigger"}
COMBINATORS = {"AND", "OR", "NOT"}


class GraphValidationError(ValueError):
    """Raised when a strategy payload fails structural validation."""

    def __init__(self, errors: list[str], message: str | None = None) -> None:
        self.errors = list(errors)
        if message is None:
            rendered = "\n".join(f"- {error}" for error in self.errors)
            message = f"Strategy validation failed:\n{rendered}"
        super().__init__(message)


class SchemaVersionError(GraphValidationError):
    """Raised when the payload targets a schema version other than the supported one."""

    def __init__(self, expected: str, received: object) -> None:
        self.expected = expected
        self.received = received
        message = f"Unsupported schemaVersion: expected '{expected}', received '{received}'."
        super().__init__([message], message)


def validate_strategy_payload(payload: Any, *, limits: GuardLimits | None = None) -> list[str]:
    """Check a canonical payload and return every structural error found.

    A version mismatch short-circuits: no other check runs against a payload
    written for a different schema.
    """
    limits = limits or GuardLimits()
    if not isinstance(payload, dict):
        return ["Strategy payload must be an object."]

    received = payload.get("schemaVersion")
    if received != SUPPORTED_SCHEMA_VERSION:
        return [SchemaVersionError(SUPPORTED_SCHEMA_VERSION, received).errors[0]]

    errors: list[str] = []
    nodes = payload.get("nodes")
    connections = payload.get("connections")
    if not isinstance(nodes, list):
        errors.append("Top-level field 'nodes' must be a list.")
    if not isinstance(connections, list):
        errors.append("Top-level field 'connections' must be a list.")
    if errors:
        return errors

    node_types: dict[str, str] = {}
    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            errors.append(f"nodes[{index}] must be an object.")
            continue

        node_id = node.get("id")
        if not isinstance(node_id, str) or not node_id.strip():
            errors.append(f"nodes[{index}].id must be a non-empty string.")
            continue
        if node_id in node_types:
            errors.append(f"Duplicate node id '{node_id}'.")
            continue

        node_type = node.get("type")
        if node_type not in ALLOWED_NODE_TYPES:
            errors.append(f"nodes[{index}] '{node_id}' has invalid type '{node_type}'.")
            continue
        node_types[node_id] = node_type

        if node_type == "condition":
            subtype = node.get("subtype")
            if not isinstance(subtype, str) or not subtype.strip():
                errors.append(f"Condition node '{node_id}' requires non-empty string 'subtype'.")

    adjacency: dict[str, list[str]] = {node_id: [] for node_id in node_types}
    for index, connection in enumerate(connections):
        if not isinstance(connection, dict):
            errors.append(f"connections[{index}] must be an object.")
            continue

        dangling = False
        for key in ("from", "to"):
            reference = connection.get(key)
            if not isinstance(reference, str) or reference not in node_types:
                errors.append(f"connections[{index}] references missing node '{reference}' in '{key}'.")
                dangling = True
        if dangling:
            continue

        source, target = connection["from"], connection["to"]
        role_error = _edge_role_error(source, node_types[source], target, node_types[target])
        if role_error:
            errors.append(role_error)
        adjacency[source].append(target)

    cycle = _find_cycle(adjacency)
    if cycle:
        errors.append(f"Connections form a cycle: {' -> '.join(cycle)}.")

    errors.extend(_bound_errors(payload, nodes, connections, limits))

    if "action" not in node_types.values():
        errors.append("Strategy requires at least one action node.")

    return errors


def validate_strategy_or_raise(payload: Any, *, limits: GuardLimits | None = None) -> StrategyGraph:
    errors = validate_strategy_payload(payload, limits=limits)
    if errors:
        received = payload.get("schemaVersion") if isinstance(payload, dict) else None
        if received != SUPPORTED_SCHEMA_VERSION and isinstance(payload, dict):
            raise SchemaVersionError(SUPPORTED_SCHEMA_VERSION, received)
        raise GraphValidationError(errors)
    return build_strategy_graph(payload)


def build_strategy_graph(payload: dict[str, Any]) -> StrategyGraph:
    """Build the typed graph from a canonical payload that already passed validation."""
    gating = payload.get("gating") or {}
    return StrategyGraph(
        schema_version=payload["schemaVersion"],
        name=str(payload.get("name") or ""),
        description=str(payload.get("description") or ""),
        version=payload.get("version"),
        nodes=tuple(_build_node(node) for node in payload["nodes"]),
        connections=tuple(
            Connection(source=item["from"], target=item["to"], id=item.get("id")) for item in payload["connections"]
        ),
        selection_mode=payload.get("selectionMode") or "automatic",
        gating=GatingConfig(
            max_numbers_auto=int(gating.get("maxNumbersAuto", 18)),
            max_numbers_hybrid=int(gating.get("maxNumbersHybrid", 24)),
            min_manual_hybrid=int(gating.get("minManualHybrid", 1)),
            exclude_zero=gating.get("excludeZero") is True,
        ),
    )


def _build_node(node: dict[str, Any]) -> GraphNode:
    node_id = node["id"]
    node_type = node["type"]
    config = node.get("config") if isinstance(node.get("config"), dict) else {}
    label = node.get("label") if isinstance(node.get("label"), str) else None

    if node_type == "condition":
        subtype = node["subtype"]
        return ConditionNode(id=node_id, subtype=subtype, config=parse_condition_config(subtype, config), label=label)

    if node_type == "trigger":
        return TriggerNode(id=node_id, janela=_positive_int(config.get("janela")), label=label)

    operator = _operator(node, config)
    if node_type == "logic":
        return LogicNode(id=node_id, operator=operator, label=label)

    if config.get("orGroup") is True or node.get("orGroup") is True:
        operator = "OR"
    if operator == "NOT":
        operator = None
    manual = config.get("numeros", config.get("manualNumbers", []))
    return ActionNode(id=node_id, operator=operator, manual_numbers=_manual_numbers(manual), label=label)


def _operator(node: dict[str, Any], config: dict[str, Any]) -> str | None:
    for candidate in (config.get("operador"), config.get("operator"), node.get("operator")):
        if isinstance(candidate, str) and candidate.strip().upper() in COMBINATORS:
            return candidate.strip().upper()
    return None


def _manual_numbers(raw: Any) -> tuple[int, ...]:
    if not isinstance(raw, list):
        return ()
    numbers: list[int] = []
    for item in raw:
        if isinstance(item, bool):
            continue
        if isinstance(item, str) and is_wheel_digits(item.strip()):
            item = int(item.strip())
        if isinstance(item, (int, float)) and item == int(item) and 0 <= int(item) <= 36 and int(item) not in numbers:
            numbers.append(int(item))
    return tuple(numbers)


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value) if value >= 1 else None


def _edge_role_error(source: str, source_type: str, target: str, target_type: str) -> str | None:
    if source_type == "action":
        return f"Action node '{source}' is terminal and cannot feed '{target}'."
    if source_type == "trigger" and target_type != "condition":
        return f"Trigger node '{source}' can only feed condition nodes, not {target_type} '{target}'."
    if target_type == "condition" and source_type != "trigger":
        return f"Condition node '{target}' accepts input only from trigger nodes, not {source_type} '{source}'."
    return None


def _find_cycle(adjacency: dict[str, list[str]]) -> list[str] | None:
    visited: set[str] = set()
    for root in adjacency:
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(adjacency.get(root, []))]
        while stack:
            target = next(stack[-1], None)
            if target is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if target in on_path:
                return path[path.index(target) :] + [target]
            if target in visited:
                continue
            visited.add(target)
            path.append(target)
            on_path.add(target)
            stack.append(iter(adjacency.get(target, [])))
    return None


def _bound_errors(
    payload: dict[str, Any],
    nodes: list[Any],
    connections: list[Any],
    limits: GuardLimits,
) -> list[str]:
    errors: list[str] = []
    if len(nodes) > limits.max_nodes:
        errors.append(f"Strategy has {len(nodes)} nodes; the limit is {limits.max_nodes}.")
    if len(connections) > limits.max_connections:
        errors.append(f"Strategy has {len(connections)} connections; the limit is {limits.max_connections}.")

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Top-level field 'name' must be a non-empty string.")
    elif len(name.strip()) > limits.max_name_length:
        errors.append(f"Field 'name' exceeds {limits.max_name_length} characters.")

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        errors.append("Field 'description' must be a string.")
    elif isinstance(description, str) and len(description) > limits.max_description_length:
        errors.append(f"Field 'description' exceeds {limits.max_description_length} characters.")

    for node in nodes:
        if not isinstance(node, dict) or not isinstance(node.get("id"), str):
            continue
        node_id = node["id"]
        if len(node_id) > limits.max_node_id_length:
            errors.append(f"Node id '{node_id[:16]}...' exceeds {limits.max_node_id_length} characters.")
        label = node.get("label")
        if isinstance(label, str) and len(label) > limits.max_label_length:
            errors.append(f"Node '{node_id}' label exceeds {limits.max_label_length} characters.")
    return errors
