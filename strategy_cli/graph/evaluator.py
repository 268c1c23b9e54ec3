from __future__ import annotations

from typing import Any

from strategy_cli.graph.conditions import parse_condition_config
from strategy_cli.graph.models import ConditionNode
from strategy_cli.runtime.conditions import UNSATISFIED, Verdict
from strategy_cli.runtime.outcomes import normalize_history


def _as_condition_node(node: ConditionNode | dict[str, Any]) -> ConditionNode | None:
    if isinstance(node, ConditionNode):
        return node
    if not isinstance(node, dict) or not isinstance(node.get("subtype"), str):
        return None
    config = node.get("config") if isinstance(node.get("config"), dict) else {}
    subtype = node["subtype"]
    return ConditionNode(
        id=str(node.get("id") or subtype),
        subtype=subtype,
        config=parse_condition_config(subtype, config),
    )


def verdict_for(node: ConditionNode | dict[str, Any], history: object) -> Verdict:
    condition = _as_condition_node(node)
    if condition is None or condition.config.kernel is None:
        return UNSATISFIED
    return condition.config.kernel(normalize_history(history), **condition.config.kernel_arguments())


def evaluate(node: ConditionNode | dict[str, Any], history: object) -> bool:
    """Boolean decision of one condition node; misconfiguration yields False."""
    return verdict_for(node, history).result


def candidate_numbers(node: ConditionNode | dict[str, Any], history: object) -> list[int]:
    verdict = verdict_for(node, history)
    return verdict.numbers if verdict.result else []
