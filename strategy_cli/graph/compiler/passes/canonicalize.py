from __future__ import annotations

import copy
import math
from typing import Any

from strategy_cli.graph.compiler.models import CompileDiagnostic
from strategy_cli.graph.models import GATING_DEFAULTS, SELECTION_MODES


DEFAULT_NAME = "Estrategia_Sem_Nome"
DEFAULT_DESCRIPTION = "Estratégia criada via Builder"
DEFAULT_VERSION = "1.0.0"

SUBTYPE_ALIASES = {"pattern": "sequence_custom", "sequence": "sequence_custom"}
LEGACY_ABSENCE_FIELDS = {"alvo": "evento", "spins": "rodadasSemOcorrer"}


def run_canonicalize_pass(payload: dict[str, Any]) -> tuple[dict[str, Any], list[CompileDiagnostic]]:
    diagnostics: list[CompileDiagnostic] = []
    cloned = _unwrap_builder_envelope(copy.deepcopy(payload), diagnostics)

    nodes = cloned.get("nodes")
    if isinstance(nodes, list):
        cloned["nodes"] = [_canonical_node(node, diagnostics) for node in nodes]

    connections = cloned.get("connections")
    if isinstance(connections, list):
        cloned["connections"] = [_canonical_connection(item, index, diagnostics) for index, item in enumerate(connections)]

    mode = cloned.get("selectionMode")
    if mode is None:
        mode = _action_config_value(cloned, "selectionMode")
    normalized_mode = mode.strip().lower() if isinstance(mode, str) else None
    if normalized_mode not in SELECTION_MODES:
        if mode is not None:
            diagnostics.append(
                CompileDiagnostic(
                    code="CANONICAL_SELECTION_MODE_INVALID",
                    severity="warning",
                    message=f"Unknown selectionMode '{mode}', using 'automatic'.",
                    path="selectionMode",
                )
            )
        normalized_mode = "automatic"
    cloned["selectionMode"] = normalized_mode

    cloned["gating"] = _canonical_gating(cloned, diagnostics)
    return cloned, diagnostics


def _unwrap_builder_envelope(payload: dict[str, Any], diagnostics: list[CompileDiagnostic]) -> dict[str, Any]:
    builder = payload.get("builder")
    meta = payload.get("meta")
    if isinstance(builder, dict) and isinstance(meta, dict):
        unwrapped = dict(builder)
        unwrapped["name"] = meta.get("name") or builder.get("name") or DEFAULT_NAME
        unwrapped["description"] = meta.get("description") or DEFAULT_DESCRIPTION
        unwrapped["version"] = meta.get("version") or DEFAULT_VERSION
        unwrapped["schemaVersion"] = payload.get("schemaVersion") or builder.get("schemaVersion")
        diagnostics.append(
            CompileDiagnostic(
                code="CANONICAL_BUILDER_ENVELOPE",
                severity="info",
                message="Unwrapped {builder, meta} envelope.",
                path="builder",
            )
        )
        return unwrapped

    payload.setdefault("name", DEFAULT_NAME)
    if not payload.get("description"):
        payload["description"] = DEFAULT_DESCRIPTION
    if not payload.get("version"):
        payload["version"] = DEFAULT_VERSION
    return payload


def _canonical_node(node: Any, diagnostics: list[CompileDiagnostic]) -> Any:
    if not isinstance(node, dict):
        return node

    normalized = dict(node)
    node_id = str(normalized.get("id") or "") or None
    data = normalized.pop("data", None)
    if isinstance(data, dict):
        for source_key, target_key in (("config", "config"), ("label", "label"), ("conditionType", "subtype")):
            if target_key not in normalized and source_key in data:
                normalized[target_key] = data[source_key]
        diagnostics.append(
            CompileDiagnostic(
                code="CANONICAL_NODE_DATA",
                severity="info",
                message="Lifted 'data' block into node fields.",
                node_id=node_id,
                path="data",
            )
        )

    config = normalized.get("config")
    normalized["config"] = dict(config) if isinstance(config, dict) else {}

    if normalized.get("type") == "signal":
        normalized["type"] = "action"

    subtype = normalized.get("subtype")
    if normalized.get("type") == "condition" and isinstance(subtype, str):
        alias = SUBTYPE_ALIASES.get(subtype)
        if alias is not None:
            normalized["subtype"] = alias
            if subtype == "sequence":
                normalized["config"]["modo"] = "exato"
            diagnostics.append(
                CompileDiagnostic(
                    code="CANONICAL_SUBTYPE_ALIAS",
                    severity="info",
                    message=f"Canonicalized subtype '{subtype}' to '{alias}'.",
                    node_id=node_id,
                    path="subtype",
                )
            )

        if normalized["subtype"] == "absence":
            for legacy, current in LEGACY_ABSENCE_FIELDS.items():
                if legacy in normalized["config"] and current not in normalized["config"]:
                    normalized["config"][current] = normalized["config"].pop(legacy)
                    diagnostics.append(
                        CompileDiagnostic(
                            code="CANONICAL_LEGACY_FIELD",
                            severity="info",
                            message=f"Canonicalized '{legacy}' to '{current}'.",
                            node_id=node_id,
                            path=f"config.{legacy}",
                        )
                    )

    return normalized


def _canonical_connection(connection: Any, index: int, diagnostics: list[CompileDiagnostic]) -> Any:
    if not isinstance(connection, dict):
        return connection

    normalized = dict(connection)
    renamed = False
    for legacy, current in (("source", "from"), ("target", "to")):
        if current not in normalized and legacy in normalized:
            normalized[current] = normalized.pop(legacy)
            renamed = True
    if renamed:
        diagnostics.append(
            CompileDiagnostic(
                code="CANONICAL_CONNECTION_ENDPOINTS",
                severity="info",
                message="Canonicalized 'source'/'target' to 'from'/'to'.",
                path=f"connections[{index}]",
            )
        )
    return normalized


def _canonical_gating(payload: dict[str, Any], diagnostics: list[CompileDiagnostic]) -> dict[str, Any]:
    raw = payload.get("gating")
    gating = dict(raw) if isinstance(raw, dict) else {}

    # Signal nodes may carry their own caps; top-level gating wins.
    nodes = payload.get("nodes") if isinstance(payload.get("nodes"), list) else []
    for node in nodes:
        if isinstance(node, dict) and node.get("type") == "action":
            for key, value in node.get("config", {}).items():
                if key in GATING_DEFAULTS or key == "excludeZero":
                    gating.setdefault(key, value)

    normalized: dict[str, Any] = {}
    for key, default in GATING_DEFAULTS.items():
        value = _bounded_int(gating.get(key))
        if value is None:
            value = default
            if key in gating:
                diagnostics.append(
                    CompileDiagnostic(
                        code="CANONICAL_GATING_DEFAULT",
                        severity="warning",
                        message=f"gating.{key} is not numeric, using {default}.",
                        path=f"gating.{key}",
                    )
                )
        elif value != gating.get(key):
            diagnostics.append(
                CompileDiagnostic(
                    code="CANONICAL_GATING_CLAMPED",
                    severity="info",
                    message=f"gating.{key} clamped to {value}.",
                    path=f"gating.{key}",
                )
            )
        normalized[key] = value

    normalized["excludeZero"] = gating.get("excludeZero") is True
    return normalized


def _action_config_value(payload: dict[str, Any], key: str) -> Any:
    nodes = payload.get("nodes") if isinstance(payload.get("nodes"), list) else []
    for node in nodes:
        if isinstance(node, dict) and node.get("type") == "action" and key in node.get("config", {}):
            return node["config"][key]
    return None


def _bounded_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return min(36, max(1, int(value)))
