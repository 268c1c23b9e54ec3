from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from strategy_cli.cloud.local_backend import LocalArtifactDirectory
from strategy_cli.graph.compiler import CompileOptions, CompileResult, StrategyCompiler
from strategy_cli.graph.compiler.diagnostics import sort_diagnostics
from strategy_cli.graph.interpreter import evaluate_strategy
from strategy_cli.graph.schema import GraphValidationError
from strategy_cli.logging_utils import configure_logging
from strategy_cli.runtime.outcomes import normalize_history
from strategy_cli.settings import StrategySettings, load_settings
from strategy_cli.verification import check_parity


LOGGER = logging.getLogger(__name__)
SEVERITY_STYLES = {"error": "bold red", "warning": "yellow", "info": "dim"}


class StrategyCLI:
    def __init__(self, settings: StrategySettings | None = None, console: Console | None = None) -> None:
        self.settings = settings or load_settings()
        self.console = console or Console(highlight=False)
        self.compiler = StrategyCompiler(limits=self.settings.guard_limits())

    def _options(self, combinator: str | None) -> CompileOptions:
        return CompileOptions(default_combinator=(combinator or self.settings.default_combinator).upper())

    def compile(self, graph_path: Path, *, out_dir: Path | None, combinator: str | None) -> int:
        result = self.compiler.compile(graph=_read_json(graph_path), options=self._options(combinator))
        self._print_diagnostics(result)
        if not result.ok or result.compiled is None:
            return 1

        compiled = result.compiled
        uploader = LocalArtifactDirectory(out_dir or self.settings.artifact_dir)
        receipt = asyncio.run(
            uploader.upload(
                filename=compiled.filename,
                script=compiled.script,
                metadata={
                    "name": compiled.name,
                    "version": compiled.graph.get("version"),
                    "description": compiled.graph.get("description"),
                    "compileHash": compiled.compile_hash,
                    "compilerVersion": compiled.compiler_version,
                    "actionInputs": compiled.action_inputs,
                    "unreachableNodes": compiled.unreachable_nodes,
                },
            )
        )
        self.console.print(
            f"Wrote {receipt.location} ({receipt.size_bytes} bytes, hash {compiled.compile_hash})",
            markup=False,
        )
        return 0

    def preview(self, graph_path: Path, *, history: list[Any], combinator: str | None, as_json: bool) -> int:
        try:
            payload = evaluate_strategy(
                _read_json(graph_path),
                history,
                default_combinator=self._options(combinator).default_combinator,
                limits=self.settings.guard_limits(),
            )
        except GraphValidationError as exc:
            self.console.print(str(exc), style="bold red", markup=False)
            return 1

        if as_json:
            self.console.print_json(json.dumps(payload, ensure_ascii=False))
            return 0

        table = Table(title="Decision trace")
        table.add_column("Node")
        table.add_column("Subtype")
        table.add_column("Result")
        table.add_column("Numbers")
        for entry in payload["decisionTrace"]:
            table.add_row(
                Text(entry["nodeId"]),
                entry["subtype"],
                "true" if entry["result"] else "false",
                ", ".join(str(number) for number in entry.get("contributedNumbers", [])),
            )
        self.console.print(table)

        gating = payload["gatingApplied"]
        self.console.print(
            f"trigger={payload['trigger']} numbers={payload['numbers']} "
            f"mode={gating['selectionMode']} reasons={', '.join(gating['reasons']) or '-'}",
            markup=False,
        )
        return 0

    def verify(self, graph_path: Path, *, histories: list[list[Any]], combinator: str | None) -> int:
        result = self.compiler.compile(graph=_read_json(graph_path), options=self._options(combinator))
        if not result.ok or result.compiled is None:
            self._print_diagnostics(result)
            return 1

        table = Table(title=f"Interpreter vs {result.compiled.filename}")
        table.add_column("History")
        table.add_column("Trigger")
        table.add_column("Numbers")
        table.add_column("Identical")
        failures = 0
        for row in check_parity(result.compiled, histories):
            failures += 0 if row.identical else 1
            table.add_row(
                Text(",".join(str(item) for item in row.history) or "-"),
                str(row.interpreted["trigger"]),
                str(len(row.interpreted["numbers"])),
                "yes" if row.identical else f"no ({', '.join(row.mismatched_fields)})",
            )
        self.console.print(table)
        return 1 if failures else 0

    def _print_diagnostics(self, result: CompileResult) -> None:
        if not result.diagnostics:
            return
        table = Table(title="Compiler diagnostics")
        table.add_column("Severity")
        table.add_column("Code")
        table.add_column("Node")
        table.add_column("Message")
        for item in sort_diagnostics(result.diagnostics):
            table.add_row(
                item.severity,
                item.code,
                item.node_id or "",
                Text(item.message),
                style=SEVERITY_STYLES.get(item.severity),
            )
        self.console.print(table)


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _parse_history(raw: str | None, history_file: Path | None) -> list[Any]:
    if history_file is not None:
        loaded = _read_json(history_file)
        if isinstance(loaded, dict):
            loaded = loaded.get("history", [])
        return [item.as_raw() for item in normalize_history(loaded)]
    return [item.as_raw() for item in normalize_history(raw or "")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="strategy-cli", description="Compile and preview roulette strategy graphs.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser("compile", help="Compile a strategy graph into a standalone script.")
    compile_parser.add_argument("graph", type=Path)
    compile_parser.add_argument("--out", type=Path, default=None, help="Artifact directory.")
    compile_parser.add_argument("--combinator", choices=["AND", "OR"], default=None)

    preview_parser = subparsers.add_parser("preview", help="Evaluate a strategy graph against a history.")
    preview_parser.add_argument("graph", type=Path)
    preview_parser.add_argument("--history", default=None, help="Comma-separated outcomes, oldest first.")
    preview_parser.add_argument("--history-file", type=Path, default=None)
    preview_parser.add_argument("--combinator", choices=["AND", "OR"], default=None)
    preview_parser.add_argument("--json", action="store_true", dest="as_json")

    verify_parser = subparsers.add_parser("verify", help="Check the compiled script against the interpreter.")
    verify_parser.add_argument("graph", type=Path)
    verify_parser.add_argument(
        "--history",
        action="append",
        default=None,
        help="Comma-separated outcomes; repeat for several histories.",
    )
    verify_parser.add_argument("--combinator", choices=["AND", "OR"], default=None)
    return parser


def main(args: Sequence[str] | None = None) -> int:
    configure_logging(rich_output=True)
    parsed = build_parser().parse_args(args)
    app = StrategyCLI()

    try:
        if parsed.command == "compile":
            return app.compile(parsed.graph, out_dir=parsed.out, combinator=parsed.combinator)
        if parsed.command == "preview":
            history = _parse_history(parsed.history, parsed.history_file)
            return app.preview(parsed.graph, history=history, combinator=parsed.combinator, as_json=parsed.as_json)
        histories = [_parse_history(raw, None) for raw in parsed.history or [""]]
        return app.verify(parsed.graph, histories=histories, combinator=parsed.combinator)
    except (OSError, json.JSONDecodeError) as exc:
        LOGGER.error("Could not read input: %s", exc)
        return 2


def run() -> None:
    sys.exit(main())
