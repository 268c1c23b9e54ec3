from strategy_cli.graph.compiler.passes.canonicalize import run_canonicalize_pass
from strategy_cli.graph.compiler.passes.cfg_pass import CFGAnalysis, run_cfg_pass
from strategy_cli.graph.compiler.passes.emit_pass import run_emit_pass
from strategy_cli.graph.compiler.passes.finalize_pass import artifact_filename, run_finalize_pass
from strategy_cli.graph.compiler.passes.lowering_pass import run_lowering_pass
from strategy_cli.graph.compiler.passes.schema_pass import run_schema_pass
from strategy_cli.graph.compiler.passes.subtype_pass import run_subtype_pass

__all__ = [
    "CFGAnalysis",
    "artifact_filename",
    "run_canonicalize_pass",
    "run_cfg_pass",
    "run_emit_pass",
    "run_finalize_pass",
    "run_lowering_pass",
    "run_schema_pass",
    "run_subtype_pass",
]
