from __future__ import annotations

import asyncio
import io
import json
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from rich.console import Console

from strategy_cli.cli import StrategyCLI, _parse_history, build_parser, main
from strategy_cli.cloud import CallerIdentity, InMemoryTelemetrySink, JsonGraphRepository, LocalArtifactDirectory
from strategy_cli.graph.interpreter import evaluate_strategy
from strategy_cli.graph.schema import SchemaVersionError
from strategy_cli.settings import StrategySettings, load_settings


GRAPH = {
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


class StrategyCLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.graph_path = self.root / "zero.json"
        self.graph_path.write_text(json.dumps(GRAPH), encoding="utf-8")
        self.output = io.StringIO()
        self.app = StrategyCLI(
            settings=StrategySettings(artifact_dir=self.root / "artifacts"),
            console=Console(file=self.output, width=200),
        )

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_compile_writes_script_and_sidecar(self) -> None:
        self.assertEqual(self.app.compile(self.graph_path, out_dir=None, combinator=None), 0)
        script = self.root / "artifacts" / "Zero_Hunter.strategy.py"
        sidecar = self.root / "artifacts" / "Zero_Hunter.strategy.py.json"
        self.assertTrue(script.exists())
        metadata = json.loads(sidecar.read_text(encoding="utf-8"))
        self.assertEqual(metadata["name"], "Zero Hunter")
        self.assertEqual(len(metadata["compileHash"]), 16)
        self.assertEqual(metadata["actionInputs"], {"a1": ["c1"]})
        self.assertEqual(metadata["unreachableNodes"], [])
        self.assertIn("Wrote", self.output.getvalue())

    def test_compile_reports_diagnostics_on_failure(self) -> None:
        broken = dict(GRAPH, schemaVersion="v2")
        self.graph_path.write_text(json.dumps(broken), encoding="utf-8")
        self.assertEqual(self.app.compile(self.graph_path, out_dir=self.root / "out", combinator=None), 1)
        self.assertIn("SCHEMA_VERSION_MISMATCH", self.output.getvalue())
        self.assertFalse((self.root / "out").exists())

    def test_preview_prints_decision_trace(self) -> None:
        self.assertEqual(self.app.preview(self.graph_path, history=[1, 2, 3], combinator=None, as_json=False), 0)
        rendered = self.output.getvalue()
        self.assertIn("Decision trace", rendered)
        self.assertIn("trigger=True numbers=[7]", rendered)

    def test_preview_json(self) -> None:
        self.assertEqual(self.app.preview(self.graph_path, history=[7], combinator="AND", as_json=True), 0)
        self.assertIn('"trigger": false', self.output.getvalue())

    def test_preview_rejects_invalid_graph(self) -> None:
        self.graph_path.write_text(json.dumps(dict(GRAPH, connections=[{"from": "a1", "to": "c1"}])), encoding="utf-8")
        self.assertEqual(self.app.preview(self.graph_path, history=[], combinator=None, as_json=False), 1)
        self.assertIn("Strategy validation failed", self.output.getvalue())

    def test_verify_reports_parity(self) -> None:
        code = self.app.verify(self.graph_path, histories=[[1, 2, 3], [7, 7], []], combinator=None)
        self.assertEqual(code, 0)
        self.assertIn("yes", self.output.getvalue())
        self.assertNotIn("no (", self.output.getvalue())

    def test_main_returns_2_for_missing_file(self) -> None:
        self.assertEqual(main(["preview", str(self.root / "missing.json"), "--history", "1,2"]), 2)

    def test_main_compile_to_directory(self) -> None:
        out_dir = self.root / "main-out"
        self.assertEqual(main(["compile", str(self.graph_path), "--out", str(out_dir)]), 0)
        self.assertTrue((out_dir / "Zero_Hunter.strategy.py").exists())


class ArgumentParsingTests(unittest.TestCase):
    def test_parse_history_from_text_and_file(self) -> None:
        self.assertEqual(_parse_history("3, vermelho, 40, 0", None), [3, "vermelho", 0])
        with TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "history.json"
            path.write_text(json.dumps({"history": [1, "preto"]}), encoding="utf-8")
            self.assertEqual(_parse_history(None, path), [1, "preto"])

    def test_verify_accepts_repeated_histories(self) -> None:
        parsed = build_parser().parse_args(["verify", "graph.json", "--history", "1,2", "--history", "3"])
        self.assertEqual(parsed.history, ["1,2", "3"])
        self.assertEqual(parsed.graph, Path("graph.json"))


class SettingsTests(unittest.TestCase):
    def test_environment_overrides(self) -> None:
        with TemporaryDirectory() as tmp_dir:
            env = {
                "STRATEGY_MAX_NODES": "5",
                "STRATEGY_MAX_CONNECTIONS": "not-a-number",
                "STRATEGY_DEFAULT_COMBINATOR": "or",
                "STRATEGY_ARTIFACT_DIR": tmp_dir,
            }
            with patch.dict(os.environ, env):
                settings = load_settings()
        self.assertEqual(settings.max_nodes, 5)
        self.assertEqual(settings.max_connections, 1000)
        self.assertEqual(settings.default_combinator, "OR")
        self.assertEqual(settings.artifact_dir, Path(tmp_dir))
        self.assertEqual(settings.guard_limits().max_nodes, 5)

    def test_unknown_combinator_falls_back(self) -> None:
        with patch.dict(os.environ, {"STRATEGY_DEFAULT_COMBINATOR": "XOR"}):
            self.assertEqual(load_settings().default_combinator, "AND")

    def test_schema_version_is_pinned(self) -> None:
        with patch.dict(os.environ, {"STRATEGY_SCHEMA_VERSION": "v2"}):
            settings = load_settings()
            self.assertFalse(hasattr(settings, "schema_version"))
            with self.assertRaises(SchemaVersionError):
                evaluate_strategy(dict(GRAPH, schemaVersion="v2"), [1], limits=settings.guard_limits())


class LocalBackendTests(unittest.TestCase):
    def test_graph_repository_round_trip(self) -> None:
        with TemporaryDirectory() as tmp_dir:
            repository = JsonGraphRepository(Path(tmp_dir) / "graphs")
            self.assertEqual(asyncio.run(repository.list_graphs()), [])
            asyncio.run(repository.save_graph("zero/hunter", GRAPH))
            self.assertEqual(asyncio.run(repository.list_graphs()), ["zero_hunter"])
            self.assertEqual(asyncio.run(repository.get_graph("zero/hunter")), GRAPH)
            self.assertIsNone(asyncio.run(repository.get_graph("missing")))

    def test_artifact_directory_records_uploader(self) -> None:
        with TemporaryDirectory() as tmp_dir:
            uploader = LocalArtifactDirectory(Path(tmp_dir))
            receipt = asyncio.run(
                uploader.upload(
                    filename="zero.strategy.py",
                    script="print('ok')\n",
                    metadata={"compileHash": "abc"},
                    identity=CallerIdentity(user_id="u-1"),
                )
            )
            sidecar = json.loads((Path(tmp_dir) / "zero.strategy.py.json").read_text(encoding="utf-8"))
        self.assertEqual(receipt.size_bytes, len("print('ok')\n"))
        self.assertEqual(receipt.compile_hash, "abc")
        self.assertEqual(sidecar, {"compileHash": "abc", "uploadedBy": "u-1"})

    def test_telemetry_sink_keeps_trace_fields(self) -> None:
        sink = InMemoryTelemetrySink()
        result = evaluate_strategy(GRAPH, [1, 2, 3])
        asyncio.run(sink.record(strategy="Zero Hunter", payload=result))
        self.assertEqual(len(sink.records), 1)
        record = sink.records[0]
        self.assertTrue(record["trigger"])
        self.assertEqual(record["decisionTrace"], result["decisionTrace"])
        self.assertNotIn("numbers", record)


if __name__ == "__main__":
    unittest.main()
