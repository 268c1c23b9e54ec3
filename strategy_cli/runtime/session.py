from __future__ import annotations

import copy
from typing import Callable

from strategy_cli.runtime.conditions import UNSATISFIED, Verdict
from strategy_cli.runtime.gating import apply_gating, merge_candidates
from strategy_cli.runtime.outcomes import Outcome, normalize_history, window


class RoundEvaluation:
    """Evaluation arena for one history: memo table plus traces, discarded after the call."""

    def __init__(self, history: object, *, history_window: int | None = None) -> None:
        self.history: list[Outcome] = window(normalize_history(history), history_window)
        self._verdicts: dict[str, Verdict] = {}
        self.decision_trace: list[dict] = []
        self.logic_trace: list[dict] = []

    def verdict(self, node_id: str) -> Verdict:
        return self._verdicts.get(node_id, UNSATISFIED)

    def condition(
        self,
        node_id: str,
        subtype: str,
        kernel: Callable[..., Verdict] | None,
        arguments: dict,
    ) -> Verdict:
        if node_id in self._verdicts:
            return self._verdicts[node_id]

        verdict = kernel(self.history, **arguments) if kernel is not None else UNSATISFIED
        self._verdicts[node_id] = verdict

        record: dict = {"nodeId": node_id, "subtype": subtype, "result": verdict.result}
        if verdict.result and verdict.candidates:
            record["contributedNumbers"] = verdict.numbers
        self.decision_trace.append(record)
        return verdict

    def combine(self, node_id: str, role: str, operator: str, inputs: list[str]) -> Verdict:
        if node_id in self._verdicts:
            return self._verdicts[node_id]

        incoming = [(source, self.verdict(source)) for source in inputs]
        if not incoming:
            verdict = UNSATISFIED
        elif operator == "NOT":
            verdict = Verdict(result=not incoming[0][1].result)
        elif operator == "OR":
            passing = [item.candidates for _, item in incoming if item.result]
            verdict = Verdict(result=bool(passing), candidates=tuple(merge_candidates(passing)))
        else:
            passed = all(item.result for _, item in incoming)
            candidates = merge_candidates([item.candidates for _, item in incoming]) if passed else []
            verdict = Verdict(result=passed, candidates=tuple(candidates))

        self._verdicts[node_id] = verdict
        self.logic_trace.append(
            {
                "nodeId": node_id,
                "role": role,
                "operator": operator,
                "inputs": [{"nodeId": source, "result": item.result} for source, item in incoming],
                "result": verdict.result,
            }
        )
        return verdict

    def resolve_actions(self, actions: list[dict]) -> list[dict]:
        resolutions: list[dict] = []
        for action in actions:
            verdict = self.verdict(action["nodeId"])
            resolutions.append(
                {
                    "nodeId": action["nodeId"],
                    "triggered": verdict.result,
                    "candidateNumbers": verdict.numbers if verdict.result else [],
                }
            )
        return resolutions

    def finish(self, actions: list[dict], gating: dict, wiring: dict) -> dict:
        triggered_actions = [action for action in actions if self.verdict(action["nodeId"]).result]
        candidates = merge_candidates([self.verdict(action["nodeId"]).candidates for action in triggered_actions])
        manual: list[int] = []
        for action in triggered_actions:
            manual.extend(action.get("manualNumbers", []))

        decision = apply_gating(
            candidates,
            triggered=bool(triggered_actions),
            selection_mode=gating["selectionMode"],
            max_numbers_auto=gating["maxNumbersAuto"],
            max_numbers_hybrid=gating["maxNumbersHybrid"],
            exclude_zero=gating["excludeZero"],
            manual_numbers=manual,
        )

        graph_wiring = copy.deepcopy(wiring)
        graph_wiring["actions"] = self.resolve_actions(actions)
        graph_wiring["historyLength"] = len(self.history)

        return {
            "trigger": bool(triggered_actions) and bool(decision.numbers),
            "numbers": list(decision.numbers),
            "logicTrace": list(self.logic_trace),
            "graphWiring": graph_wiring,
            "gatingApplied": decision.as_payload(
                selection_mode=gating["selectionMode"],
                exclude_zero=gating["excludeZero"],
                min_manual_hybrid=gating["minManualHybrid"],
                manual_count=len(manual),
            ),
            "decisionTrace": list(self.decision_trace),
        }
