from __future__ import annotations

import logging
from typing import Any

from strategy_cli.graph.compiler.passes.canonicalize import run_canonicalize_pass
from strategy_cli.graph.models import StrategyGraph
from strategy_cli.graph.schema import GraphValidationError, validate_strategy_or_raise
from strategy_cli.settings import GuardLimits


LOGGER = logging.getLogger(__name__)


def load_strategy_graph(payload: Any, *, limits: GuardLimits | None = None) -> StrategyGraph:
    """Canonicalize a raw payload and return the validated typed graph."""
    if isinstance(payload, StrategyGraph):
        return payload
    if not isinstance(payload, dict):
        raise GraphValidationError(["Strategy payload must be an object."])

    canonical, diagnostics = run_canonicalize_pass(payload)
    for diagnostic in diagnostics:
        if diagnostic.severity == "warning":
            LOGGER.warning("%s: %s", diagnostic.code, diagnostic.message)
    return validate_strategy_or_raise(canonical, limits=limits)
