from strategy_cli.cloud.contracts import (
    ArtifactUploader,
    CallerIdentity,
    GraphRepository,
    IdentityProvider,
    TelemetrySink,
    UploadReceipt,
)
from strategy_cli.cloud.local_backend import InMemoryTelemetrySink, JsonGraphRepository, LocalArtifactDirectory

__all__ = [
    "ArtifactUploader",
    "CallerIdentity",
    "GraphRepository",
    "IdentityProvider",
    "InMemoryTelemetrySink",
    "JsonGraphRepository",
    "LocalArtifactDirectory",
    "TelemetrySink",
    "UploadReceipt",
]
