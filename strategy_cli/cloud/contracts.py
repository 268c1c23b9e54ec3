from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(slots=True)
class CallerIdentity:
    user_id: str
    roles: tuple[str, ...] = ()


@dataclass(slots=True)
class UploadReceipt:
    filename: str
    location: str
    size_bytes: int
    compile_hash: str | None = None


class GraphRepository(Protocol):
    async def get_graph(self, graph_id: str) -> dict[str, Any] | None: ...

    async def save_graph(self, graph_id: str, payload: dict[str, Any]) -> None: ...

    async def list_graphs(self) -> list[str]: ...


class IdentityProvider(Protocol):
    async def current_identity(self) -> CallerIdentity | None: ...


class ArtifactUploader(Protocol):
    async def upload(
        self,
        *,
        filename: str,
        script: str,
        metadata: dict[str, Any],
        identity: CallerIdentity | None = None,
    ) -> UploadReceipt: ...


class TelemetrySink(Protocol):
    async def record(self, *, strategy: str, payload: dict[str, Any]) -> None: ...
