from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from strategy_cli.cloud.contracts import (
    ArtifactUploader,
    CallerIdentity,
    GraphRepository,
    TelemetrySink,
    UploadReceipt,
)


LOGGER = logging.getLogger(__name__)

TELEMETRY_FIELDS = ("logicTrace", "graphWiring", "gatingApplied", "decisionTrace")


class JsonGraphRepository(GraphRepository):
    """Stores strategy payloads as one JSON file per graph id."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def _path_for(self, graph_id: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_-]", "_", graph_id)
        return self._root / f"{safe}.json"

    async def get_graph(self, graph_id: str) -> dict[str, Any] | None:
        path = self._path_for(graph_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    async def save_graph(self, graph_id: str, payload: dict[str, Any]) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        self._path_for(graph_id).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    async def list_graphs(self) -> list[str]:
        if not self._root.exists():
            return []
        return sorted(path.stem for path in self._root.glob("*.json"))


class LocalArtifactDirectory(ArtifactUploader):
    """Local stand-in for the upload transport: writes the script plus a metadata sidecar."""

    def __init__(self, root: Path) -> None:
        self._root = root

    async def upload(
        self,
        *,
        filename: str,
        script: str,
        metadata: dict[str, Any],
        identity: CallerIdentity | None = None,
    ) -> UploadReceipt:
        self._root.mkdir(parents=True, exist_ok=True)
        target = self._root / filename
        target.write_text(script, encoding="utf-8")

        sidecar = dict(metadata)
        if identity is not None:
            sidecar["uploadedBy"] = identity.user_id
        target.with_name(f"{filename}.json").write_text(
            json.dumps(sidecar, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        LOGGER.info("Stored strategy artifact %s (%s bytes)", target, len(script.encode("utf-8")))
        return UploadReceipt(
            filename=filename,
            location=str(target),
            size_bytes=len(script.encode("utf-8")),
            compile_hash=metadata.get("compileHash"),
        )


class InMemoryTelemetrySink(TelemetrySink):
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []

    async def record(self, *, strategy: str, payload: dict[str, Any]) -> None:
        entry = {"strategy": strategy, "trigger": bool(payload.get("trigger"))}
        for key in TELEMETRY_FIELDS:
            entry[key] = payload.get(key)
        self.records.append(entry)
