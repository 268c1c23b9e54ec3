from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

from strategy_cli.runtime.conditions import Verdict


CombineRole = Literal["logic", "action"]


@dataclass(frozen=True, slots=True)
class ConditionStep:
    """Evaluate one condition node with its kernel.

    ``kernel`` is ``None`` when the subtype has no runtime predicate; the
    interpreter resolves such a step to false and the code generator refuses it.
    """

    node_id: str
    subtype: str
    kernel: Callable[..., Verdict] | None
    arguments: dict[str, Any]


@dataclass(frozen=True, slots=True)
class CombineStep:
    node_id: str
    role: CombineRole
    operator: Literal["AND", "OR", "NOT"]
    inputs: tuple[str, ...]


ProgramStep = Union[ConditionStep, CombineStep]


@dataclass(slots=True)
class StrategyProgram:
    """Lowered strategy: evaluation steps in dependency order plus literal descriptors."""

    name: str
    steps: list[ProgramStep]
    actions: list[dict[str, Any]]
    gating: dict[str, Any]
    wiring: dict[str, Any]
    history_window: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def condition_steps(self) -> list[ConditionStep]:
        return [step for step in self.steps if isinstance(step, ConditionStep)]

    @property
    def unsupported_steps(self) -> list[ConditionStep]:
        return [step for step in self.condition_steps if step.kernel is None]
