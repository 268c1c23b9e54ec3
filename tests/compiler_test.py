from __future__ import annotations

import ast
import copy
import json
import random
import subprocess
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from strategy_cli.graph.compiler import (
    CompileDiagnostic,
    CompileOptions,
    StrategyCompilationError,
    StrategyCompiler,
    compile_strategy,
    render_diagnostic,
    render_diagnostics,
)
from strategy_cli.graph.compiler.passes import artifact_filename
from strategy_cli.graph.interpreter import evaluate_strategy, run_program
from strategy_cli.verification import ARTIFACT_MODULE_NAME, check_parity, load_artifact


SUBTYPE_CONFIGS = {
    "absence": {"evento": "numero", "numeroAlvo": 7, "rodadasSemOcorrer": 6},
    "specific-number": {"numero": 5, "modo": "ocorreu"},
    "dozen_hot": {"janela": 6, "frequenciaMinima": 3},
    "column_hot": {"janela": 6, "frequenciaMinima": 3},
    "mirror": {"raio": 1},
    "sequence_custom": {"sequencia": ["vermelho", "preto"], "modo": "parcial"},
    "repetition": {"evento": "preto", "ocorrencias": 2},
    "trend": {"evento": "vermelho", "janela": 5, "frequenciaMinima": 0.4},
    "repeat-number": {"numero": 9, "ocorrencias": 2},
    "neighbors": {"numero": 0, "raio": 2, "includeZero": False},
    "break": {"evento": "preto", "minimo": 2},
    "time-window": {"inicio": 3, "fim": 8},
    "alternation": {"eixo": "cor", "comprimento": 3},
    "setorDominante": {"setor": "tiers", "janela": 6},
}

STDLIB_MODULES = {"__future__", "copy", "dataclasses", "json", "math", "sys", "typing"}


def every_subtype_graph() -> dict:
    nodes: list[dict] = [{"id": "t1", "type": "trigger", "config": {"janela": 12}}]
    connections: list[dict] = []
    for index, (subtype, config) in enumerate(SUBTYPE_CONFIGS.items()):
        node_id = f"c{index}"
        nodes.append({"id": node_id, "type": "condition", "subtype": subtype, "config": dict(config)})
        connections.append({"from": node_id, "to": "any_signal"})
    connections.append({"from": "t1", "to": "c0"})
    nodes.extend(
        [
            {"id": "not_absence", "type": "logic", "config": {"operador": "NOT"}},
            {"id": "any_signal", "type": "action", "config": {"orGroup": True}},
            {"id": "manual", "type": "action", "config": {"numeros": [0, 17]}},
        ]
    )
    connections.extend([{"from": "c0", "to": "not_absence"}, {"from": "not_absence", "to": "manual"}])
    return {
        "schemaVersion": "v1",
        "name": "Every Subtype",
        "selectionMode": "hybrid",
        "gating": {"maxNumbersHybrid": 10, "excludeZero": True},
        "nodes": nodes,
        "connections": connections,
    }


def simple_graph(**overrides) -> dict:
    payload = {
        "schemaVersion": "v1",
        "name": "Zero Hunter",
        "nodes": [
            {
                "id": "c1",
                "type": "condition",
                "subtype": "absence",
                "config": {"evento": "numero", "numeroAlvo": 7, "rodadasSemOcorrer": 6},
            },
            {"id": "a1", "type": "action"},
        ],
        "connections": [{"from": "c1", "to": "a1"}],
    }
    payload.update(overrides)
    return payload


def sample_histories() -> list[list]:
    rng = random.Random(2024)
    histories: list[list] = [
        [],
        [7],
        [1, 2, 3, 4, 5, 6],
        [9, 9, 26, 0, 15],
        ["vermelho", "preto", 2, 4, "zero"],
        [3, 6, 9, 12, 27, 13, 36, 11, 30],
    ]
    histories.extend([rng.randint(0, 36) for _ in range(rng.randint(5, 25))] for _ in range(12))
    return histories


class StrategyCompilerTests(unittest.TestCase):
    def test_compile_emits_artifact(self) -> None:
        result = StrategyCompiler().compile(graph=simple_graph())
        self.assertTrue(result.ok)
        self.assertEqual(result.errors, [])
        compiled = result.compiled
        self.assertIsNotNone(compiled)
        self.assertEqual(compiled.filename, "Zero_Hunter.strategy.py")
        self.assertEqual(len(compiled.compile_hash), 16)
        self.assertIn("def evaluate(history):", compiled.script)
        self.assertIn("# Strategy artifact: Zero Hunter", compiled.script)

    def test_script_imports_only_the_standard_library(self) -> None:
        script = StrategyCompiler().compile_or_raise(graph=every_subtype_graph()).script
        imported: set[str] = set()
        for node in ast.walk(ast.parse(script)):
            if isinstance(node, ast.Import):
                imported.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                imported.add((node.module or "").split(".")[0])
        self.assertTrue(imported <= STDLIB_MODULES, imported - STDLIB_MODULES)

    def test_compiled_script_matches_interpreter_for_every_subtype(self) -> None:
        compiled = StrategyCompiler().compile_or_raise(graph=every_subtype_graph())
        rows = check_parity(compiled, sample_histories())
        for row in rows:
            self.assertTrue(row.identical, f"{row.history}: {row.mismatched_fields}")
        self.assertTrue(any(row.interpreted["trigger"] for row in rows))
        self.assertTrue(any("exclude-zero" in row.interpreted["gatingApplied"]["reasons"] for row in rows))

    def test_compiled_script_matches_interpreter_with_or_default(self) -> None:
        options = CompileOptions(default_combinator="OR")
        payload = every_subtype_graph()
        payload["nodes"][-2]["config"] = {}
        compiled = StrategyCompiler().compile_or_raise(graph=payload, options=options)
        for row in check_parity(compiled, sample_histories()):
            self.assertTrue(row.identical, f"{row.history}: {row.mismatched_fields}")

    def test_artifact_runs_as_standalone_script(self) -> None:
        compiled = StrategyCompiler().compile_or_raise(graph=simple_graph())
        with TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / compiled.filename
            path.write_text(compiled.script, encoding="utf-8")
            completed = subprocess.run(
                [sys.executable, str(path)],
                input=json.dumps({"history": [1, 2, 3]}),
                capture_output=True,
                text=True,
                check=True,
            )
        self.assertEqual(json.loads(completed.stdout), run_program(compiled.program, [1, 2, 3]))

    def test_artifact_evaluate_is_isolated_per_call(self) -> None:
        evaluate = load_artifact(StrategyCompiler().compile_or_raise(graph=simple_graph()).script)
        first = evaluate([1, 2, 3])
        first["graphWiring"]["nodes"].clear()
        second = evaluate([1, 2, 3])
        self.assertEqual(len(second["graphWiring"]["nodes"]), 2)
        self.assertEqual(second["numbers"], [7])

    def test_artifact_dataclasses_load_as_a_module(self) -> None:
        evaluate = load_artifact(StrategyCompiler().compile_or_raise(graph=simple_graph()).script)
        self.assertNotIn(ARTIFACT_MODULE_NAME, sys.modules)
        self.assertEqual(evaluate.__module__, ARTIFACT_MODULE_NAME)
        verdict_type = evaluate.__globals__["Verdict"]
        self.assertEqual(verdict_type.__module__, ARTIFACT_MODULE_NAME)
        self.assertEqual(verdict_type.__slots__, ("result", "candidates"))
        self.assertEqual(evaluate([1, 2, 3])["numbers"], [7])

    def test_unsupported_subtype_is_rejected_but_interprets_false(self) -> None:
        payload = simple_graph()
        payload["nodes"][0] = {"id": "c1", "type": "condition", "subtype": "lunar_phase", "config": {}}
        result = StrategyCompiler().compile(graph=payload)
        self.assertFalse(result.ok)
        self.assertEqual([(item.code, item.node_id) for item in result.errors], [("COMPILE_UNSUPPORTED_SUBTYPE", "c1")])
        self.assertFalse(evaluate_strategy(payload, [1, 2, 3])["trigger"])

    def test_version_mismatch_stops_compilation(self) -> None:
        result = StrategyCompiler().compile(graph=simple_graph(schemaVersion="v9"))
        self.assertFalse(result.ok)
        self.assertEqual([item.code for item in result.errors], ["SCHEMA_VERSION_MISMATCH"])
        self.assertIsNone(result.compiled)

    def test_schema_errors_carry_node_ids(self) -> None:
        payload = simple_graph()
        payload["connections"].append({"from": "a1", "to": "c1"})
        result = StrategyCompiler().compile(graph=payload)
        codes = {(item.code, item.node_id) for item in result.errors}
        self.assertIn(("SCHEMA_VALIDATION_FAILED", "a1"), codes)

    def test_invalid_combinator(self) -> None:
        result = StrategyCompiler().compile(graph=simple_graph(), options=CompileOptions(default_combinator="XOR"))
        self.assertEqual([item.code for item in result.errors], ["COMPILE_COMBINATOR_INVALID"])

    def test_warnings_do_not_block_compilation(self) -> None:
        payload = simple_graph()
        payload["nodes"].append(
            {"id": "c2", "type": "condition", "subtype": "absence", "config": {"evento": "numero"}}
        )
        payload["nodes"].append({"id": "l1", "type": "logic", "config": {"operador": "NOT"}})
        payload["connections"].extend([{"from": "c1", "to": "l1"}, {"from": "c2", "to": "l1"}, {"from": "l1", "to": "a1"}])
        payload["nodes"].append({"id": "orphan", "type": "condition", "subtype": "mirror"})
        result = StrategyCompiler().compile(graph=payload)
        self.assertTrue(result.ok)
        codes = {item.code for item in result.warnings}
        self.assertIn("CONDITION_PARAMETER_MISSING", codes)
        self.assertIn("LOWERING_NOT_EXTRA_INPUTS", codes)
        self.assertIn("CFG_UNREACHABLE_NODE", codes)
        self.assertEqual(result.compiled.warnings, [item for item in result.diagnostics if item.severity != "error"])

    def test_compiled_strategy_carries_flow_analysis(self) -> None:
        payload = simple_graph()
        payload["nodes"].append({"id": "l1", "type": "logic", "config": {"operador": "OR"}})
        payload["nodes"].append({"id": "c2", "type": "condition", "subtype": "mirror"})
        payload["nodes"].append({"id": "orphan", "type": "condition", "subtype": "mirror"})
        payload["connections"].extend([{"from": "c2", "to": "l1"}, {"from": "l1", "to": "a1"}])
        compiled = StrategyCompiler().compile_or_raise(graph=payload)
        self.assertEqual(compiled.action_inputs, {"a1": ["c1", "l1"]})
        self.assertEqual(compiled.unreachable_nodes, ["orphan"])

    def test_compile_or_raise(self) -> None:
        with self.assertRaises(StrategyCompilationError) as ctx:
            StrategyCompiler().compile_or_raise(graph=simple_graph(nodes=[], connections=[]))
        self.assertTrue(ctx.exception.diagnostics)
        self.assertIn("SCHEMA_VALIDATION_FAILED", str(ctx.exception))

    def test_compile_strategy_returns_script_text(self) -> None:
        self.assertIn("ctx.condition('c1', 'absence', check_absence,", compile_strategy(simple_graph()))

    def test_compile_hash_is_deterministic(self) -> None:
        compiler = StrategyCompiler()
        payload = simple_graph()
        first = compiler.compile_or_raise(graph=payload)
        second = compiler.compile_or_raise(graph=copy.deepcopy(payload))
        renamed = compiler.compile_or_raise(graph=simple_graph(name="Other"))
        self.assertEqual(first.compile_hash, second.compile_hash)
        self.assertEqual(first.script, second.script)
        self.assertNotEqual(first.compile_hash, renamed.compile_hash)

    def test_input_graph_is_not_mutated(self) -> None:
        payload = simple_graph(connections=[{"source": "c1", "target": "a1"}])
        snapshot = copy.deepcopy(payload)
        StrategyCompiler().compile(graph=payload)
        self.assertEqual(payload, snapshot)


class DiagnosticRenderingTests(unittest.TestCase):
    def test_render_diagnostic(self) -> None:
        diagnostic = CompileDiagnostic(code="CFG_UNREACHABLE_NODE", severity="warning", message="Node 'x' is idle", node_id="x")
        self.assertEqual(render_diagnostic(diagnostic), "[WARNING] CFG_UNREACHABLE_NODE: Node 'x' is idle (node=x).")

    def test_render_diagnostic_with_hint(self) -> None:
        diagnostic = CompileDiagnostic(code="E", severity="error", message="broken", path="nodes", hint="Fix it.")
        self.assertEqual(render_diagnostic(diagnostic), "[ERROR] E: broken (path=nodes). Hint: Fix it.")

    def test_errors_sort_first(self) -> None:
        rendered = render_diagnostics(
            [
                CompileDiagnostic(code="B", severity="info", message="later"),
                CompileDiagnostic(code="A", severity="error", message="first"),
            ]
        )
        self.assertEqual(rendered.splitlines(), ["- [ERROR] A: first.", "- [INFO] B: later."])

    def test_artifact_filename(self) -> None:
        self.assertEqual(artifact_filename(" Zero Hunter! "), "Zero_Hunter_.strategy.py")
        self.assertEqual(artifact_filename("dúzia-quente"), "d_zia-quente.strategy.py")


if __name__ == "__main__":
    unittest.main()
