from __future__ import annotations

import logging
import sys
import types
from dataclasses import dataclass
from typing import Any, Callable

from strategy_cli.graph.compiler.models import CompiledStrategy
from strategy_cli.graph.interpreter import run_program


LOGGER = logging.getLogger(__name__)

ARTIFACT_MODULE_NAME = "strategy_artifact"


@dataclass(slots=True)
class ParityResult:
    history: list[Any]
    interpreted: dict[str, Any]
    compiled: dict[str, Any]

    @property
    def identical(self) -> bool:
        return self.interpreted == self.compiled

    @property
    def mismatched_fields(self) -> list[str]:
        return sorted(key for key in self.interpreted if self.interpreted.get(key) != self.compiled.get(key))


def load_artifact(script: str, *, filename: str = "<strategy>") -> Callable[[object], dict[str, Any]]:
    """Load generated script text as a throwaway module and return its ``evaluate``.

    The module is only registered in ``sys.modules`` while its body runs, which
    is when the embedded dataclasses resolve their defining module.
    """
    module = types.ModuleType(ARTIFACT_MODULE_NAME)
    module.__file__ = filename
    previous = sys.modules.get(ARTIFACT_MODULE_NAME)
    sys.modules[ARTIFACT_MODULE_NAME] = module
    try:
        exec(compile(script, filename, "exec"), module.__dict__)
    finally:
        if previous is None:
            sys.modules.pop(ARTIFACT_MODULE_NAME, None)
        else:
            sys.modules[ARTIFACT_MODULE_NAME] = previous
    return module.evaluate


def check_parity(compiled: CompiledStrategy, histories: list[list[Any]]) -> list[ParityResult]:
    evaluate_artifact = load_artifact(compiled.script, filename=compiled.filename)
    results: list[ParityResult] = []
    for history in histories:
        result = ParityResult(
            history=list(history),
            interpreted=run_program(compiled.program, history),
            compiled=evaluate_artifact(history),
        )
        if not result.identical:
            LOGGER.warning(
                "Artifact %s diverged from the interpreter on fields %s",
                compiled.filename,
                ", ".join(result.mismatched_fields),
            )
        results.append(result)
    return results
