from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Union

from strategy_cli.graph.conditions import AnyConditionConfig


SelectionMode = Literal["automatic", "hybrid"]
Combinator = Literal["AND", "OR", "NOT"]

SELECTION_MODES = ("automatic", "hybrid")
GATING_DEFAULTS = {"maxNumbersAuto": 18, "maxNumbersHybrid": 24, "minManualHybrid": 1}


@dataclass(frozen=True, slots=True)
class ConditionNode:
    kind: ClassVar[str] = "condition"

    id: str
    subtype: str
    config: AnyConditionConfig
    label: str | None = None


@dataclass(frozen=True, slots=True)
class LogicNode:
    kind: ClassVar[str] = "logic"

    id: str
    operator: Combinator | None = None
    label: str | None = None


@dataclass(frozen=True, slots=True)
class ActionNode:
    kind: ClassVar[str] = "action"

    id: str
    operator: Combinator | None = None
    manual_numbers: tuple[int, ...] = ()
    label: str | None = None


@dataclass(frozen=True, slots=True)
class TriggerNode:
    kind: ClassVar[str] = "trigger"

    id: str
    janela: int | None = None
    label: str | None = None


GraphNode = Union[ConditionNode, LogicNode, ActionNode, TriggerNode]


@dataclass(frozen=True, slots=True)
class Connection:
    source: str
    target: str
    id: str | None = None


@dataclass(frozen=True, slots=True)
class GatingConfig:
    max_numbers_auto: int = 18
    max_numbers_hybrid: int = 24
    min_manual_hybrid: int = 1
    exclude_zero: bool = False

    def as_payload(self, selection_mode: SelectionMode) -> dict[str, Any]:
        return {
            "selectionMode": selection_mode,
            "maxNumbersAuto": self.max_numbers_auto,
            "maxNumbersHybrid": self.max_numbers_hybrid,
            "minManualHybrid": self.min_manual_hybrid,
            "excludeZero": self.exclude_zero,
        }


@dataclass(slots=True)
class StrategyGraph:
    schema_version: str
    name: str
    nodes: tuple[GraphNode, ...]
    connections: tuple[Connection, ...]
    selection_mode: SelectionMode = "automatic"
    gating: GatingConfig = field(default_factory=GatingConfig)
    description: str = ""
    version: str | None = None

    @property
    def node_map(self) -> dict[str, GraphNode]:
        return {node.id: node for node in self.nodes}

    @property
    def condition_nodes(self) -> list[ConditionNode]:
        return [node for node in self.nodes if isinstance(node, ConditionNode)]

    @property
    def action_nodes(self) -> list[ActionNode]:
        return [node for node in self.nodes if isinstance(node, ActionNode)]

    @property
    def trigger_nodes(self) -> list[TriggerNode]:
        return [node for node in self.nodes if isinstance(node, TriggerNode)]

    def incoming(self, node_id: str) -> list[str]:
        return [connection.source for connection in self.connections if connection.target == node_id]

    @property
    def history_window(self) -> int | None:
        sizes = [node.janela for node in self.trigger_nodes if node.janela is not None]
        return min(sizes) if sizes else None
