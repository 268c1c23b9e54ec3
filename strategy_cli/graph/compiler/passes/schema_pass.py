from __future__ import annotations

import re
from typing import Any

from strategy_cli.graph.compiler.models import CompileDiagnostic
from strategy_cli.graph.schema import validate_strategy_payload
from strategy_cli.settings import SUPPORTED_SCHEMA_VERSION, GuardLimits


NODE_ID_PATTERNS = [
    re.compile(r"Condition node '([^']+)"),
    re.compile(r"Action node '([^']+)"),
    re.compile(r"Trigger node '([^']+)"),
    re.compile(r"Node '([^']+)"),
    re.compile(r"nodes\[\d+\] '([^']+)"),
    re.compile(r"Duplicate node id '([^']+)"),
]


def run_schema_pass(graph: dict[str, Any], limits: GuardLimits | None = None) -> list[CompileDiagnostic]:
    diagnostics: list[CompileDiagnostic] = []
    if graph.get("schemaVersion") != SUPPORTED_SCHEMA_VERSION:
        received = graph.get("schemaVersion")
        diagnostics.append(
            CompileDiagnostic(
                code="SCHEMA_VERSION_MISMATCH",
                severity="error",
                message=f"Expected schemaVersion '{SUPPORTED_SCHEMA_VERSION}', received '{received}'",
                path="schemaVersion",
                hint="Re-export the strategy from a builder that targets the current schema.",
            )
        )
        return diagnostics

    for error in validate_strategy_payload(graph, limits=limits):
        diagnostics.append(
            CompileDiagnostic(
                code="SCHEMA_VALIDATION_FAILED",
                severity="error",
                message=error.rstrip("."),
                node_id=_extract_node_id(error),
                hint="Fix schema issues before compiling.",
            )
        )
    return diagnostics


def _extract_node_id(message: str) -> str | None:
    for pattern in NODE_ID_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None
