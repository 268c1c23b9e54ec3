from __future__ import annotations

import hashlib
import json
import re
from typing import Any

from strategy_cli.graph.compiler.models import CompiledStrategy
from strategy_cli.graph.compiler.passes.cfg_pass import CFGAnalysis
from strategy_cli.graph.ir import StrategyProgram


ARTIFACT_SUFFIX = ".strategy.py"


def artifact_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "_", name.strip()) + ARTIFACT_SUFFIX


def run_finalize_pass(
    *,
    graph: dict[str, Any],
    program: StrategyProgram,
    cfg: CFGAnalysis,
    script: str,
    compiler_version: str,
) -> CompiledStrategy:
    payload = {
        "compiler_version": compiler_version,
        "graph": graph,
    }
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    compile_hash = hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]

    name = str(graph.get("name") or "").strip()
    return CompiledStrategy(
        name=name,
        filename=artifact_filename(name),
        script=script,
        compile_hash=compile_hash,
        program=program,
        graph=graph,
        action_inputs={action: list(sources) for action, sources in cfg.action_inputs.items()},
        unreachable_nodes=list(cfg.unreachable),
        compiler_version=compiler_version,
    )
