from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class GatingDecision:
    numbers: list[int]
    gated: bool
    reasons: list[str] = field(default_factory=list)
    original_count: int = 0

    def as_payload(self, *, selection_mode: str, exclude_zero: bool, min_manual_hybrid: int, manual_count: int) -> dict:
        return {
            "gated": self.gated,
            "reasons": list(self.reasons),
            "selectionMode": selection_mode,
            "excludeZero": exclude_zero,
            "minManualHybrid": min_manual_hybrid,
            "manualCount": manual_count,
            "originalCount": self.original_count,
            "finalCount": len(self.numbers),
        }


def merge_candidates(groups: list[tuple[tuple[int, float | None], ...]]) -> list[tuple[int, float | None]]:
    """Union candidate lists keeping first-seen order and the highest confidence per number."""
    merged: dict[int, float | None] = {}
    for candidates in groups:
        for number, confidence in candidates:
            if number not in merged:
                merged[number] = confidence
                continue
            current = merged[number]
            if confidence is not None and (current is None or confidence > current):
                merged[number] = confidence
    return list(merged.items())


def rank_candidates(candidates: list[tuple[int, float | None]]) -> list[int]:
    ordered = sorted(
        enumerate(candidates),
        key=lambda item: (-(item[1][1] or 0.0), item[0]),
    )
    return [number for _, (number, _) in ordered]


def apply_gating(
    candidates: list[tuple[int, float | None]],
    *,
    triggered: bool,
    selection_mode: str,
    max_numbers_auto: int,
    max_numbers_hybrid: int,
    exclude_zero: bool,
    manual_numbers: list[int] | tuple[int, ...] = (),
) -> GatingDecision:
    decision = GatingDecision(numbers=[], gated=False, original_count=len(candidates))
    if not triggered:
        decision.gated = True
        decision.reasons.append("signal-inactive")
        return decision

    ranked = rank_candidates(candidates)
    manual: list[int] = []
    for number in manual_numbers:
        if number not in manual:
            manual.append(number)

    if exclude_zero and (0 in ranked or (selection_mode == "hybrid" and 0 in manual)):
        ranked = [number for number in ranked if number != 0]
        manual = [number for number in manual if number != 0]
        decision.reasons.append("exclude-zero")

    if selection_mode == "hybrid":
        limit = max(1, max_numbers_hybrid)
        selected = manual[:limit]
        fill = [number for number in ranked if number not in selected]
        room = limit - len(selected)
        if len(fill) > room or len(manual) > limit:
            decision.reasons.append("limit-applied-hybrid")
        selected.extend(fill[:room])
    else:
        limit = max(1, max_numbers_auto)
        selected = ranked[:limit]
        if len(ranked) > limit:
            decision.reasons.append("limit-applied-auto")

    decision.numbers = selected
    if not selected:
        decision.gated = True
        decision.reasons.append("empty-selection")
    return decision
