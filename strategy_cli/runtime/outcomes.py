from __future__ import annotations

import math
from dataclasses import dataclass


RED_NUMBERS = (1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36)
BLACK_NUMBERS = (2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35)
EUROPEAN_WHEEL = (
    0, 32, 15, 19, 4, 21, 2, 25, 17, 34, 6,
    27, 13, 36, 11, 30, 8, 23, 10, 5, 24,
    16, 33, 1, 20, 14, 31, 9, 22, 18, 29,
    7, 28, 12, 35, 3, 26,
)
TOKEN_ALIASES = {
    "vermelho": "vermelho",
    "red": "vermelho",
    "preto": "preto",
    "black": "preto",
    "zero": "zero",
    "green": "zero",
    "verde": "zero",
}


@dataclass(frozen=True, slots=True)
class Outcome:
    """A single round result: a wheel number or a categorical token."""

    kind: str
    value: int | str

    @property
    def is_number(self) -> bool:
        return self.kind == "number"

    def as_raw(self) -> int | str:
        return self.value


def number_outcome(value: int) -> Outcome:
    return Outcome(kind="number", value=int(value))


def token_outcome(value: str) -> Outcome:
    return Outcome(kind="token", value=value)


def is_wheel_digits(text: str) -> bool:
    """True for plain ASCII digit strings; other Unicode digits stay tokens."""
    return text.isascii() and text.isdigit()


def normalize_outcome(raw: object) -> Outcome | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Outcome):
        return raw
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw) or raw != int(raw):
            return None
        if 0 <= int(raw) <= 36:
            return number_outcome(int(raw))
        return None
    if not isinstance(raw, str):
        return None

    text = raw.strip().lower()
    if not text:
        return None
    if text in TOKEN_ALIASES:
        return token_outcome(TOKEN_ALIASES[text])
    if is_wheel_digits(text):
        number = int(text)
        return number_outcome(number) if number <= 36 else None
    return token_outcome(text)


def normalize_history(raw_history: object) -> list[Outcome]:
    if isinstance(raw_history, str):
        items: list[object] = list(raw_history.split(","))
    elif isinstance(raw_history, (list, tuple)):
        items = list(raw_history)
    else:
        return []

    history: list[Outcome] = []
    for item in items:
        outcome = normalize_outcome(item)
        if outcome is not None:
            history.append(outcome)
    return history


def window(history: list[Outcome], size: int | None) -> list[Outcome]:
    if size is None:
        return list(history)
    if size <= 0:
        return []
    return list(history[-size:])


def numbers_in(history: list[Outcome]) -> list[int]:
    return [int(item.value) for item in history if item.is_number]


def color_of(outcome: Outcome) -> str | None:
    if outcome.is_number:
        if outcome.value == 0:
            return "zero"
        return "vermelho" if outcome.value in RED_NUMBERS else "preto"
    if outcome.value in {"vermelho", "preto", "zero"}:
        return str(outcome.value)
    return None


def matches_event(outcome: Outcome, event: str) -> bool:
    name = (event or "").strip().lower()
    if name in {"vermelho", "preto", "zero"}:
        return color_of(outcome) == name
    if name == "par":
        return outcome.is_number and outcome.value != 0 and int(outcome.value) % 2 == 0
    if name in {"impar", "ímpar"}:
        return outcome.is_number and int(outcome.value) % 2 == 1
    if name.startswith("numero:"):
        target = name.split(":", 1)[1].strip()
        return outcome.is_number and is_wheel_digits(target) and int(outcome.value) == int(target)
    return str(outcome.value) == name


def event_numbers(event: str) -> list[int]:
    name = (event or "").strip().lower()
    if name == "vermelho":
        return list(RED_NUMBERS)
    if name == "preto":
        return list(BLACK_NUMBERS)
    if name == "zero":
        return [0]
    if name == "par":
        return [n for n in range(1, 37) if n % 2 == 0]
    if name in {"impar", "ímpar"}:
        return [n for n in range(1, 37) if n % 2 == 1]
    if name.startswith("numero:"):
        target = name.split(":", 1)[1].strip()
        if is_wheel_digits(target) and int(target) <= 36:
            return [int(target)]
    return []


def wheel_distance(a: int, b: int) -> int | None:
    if a not in EUROPEAN_WHEEL or b not in EUROPEAN_WHEEL:
        return None
    diff = abs(EUROPEAN_WHEEL.index(a) - EUROPEAN_WHEEL.index(b))
    return min(diff, len(EUROPEAN_WHEEL) - diff)


def wheel_neighbors(center: int, radius: int, include_zero: bool) -> list[int]:
    result: list[int] = []
    for number in EUROPEAN_WHEEL:
        distance = wheel_distance(number, center)
        if distance is None or distance > radius:
            continue
        if number == 0 and not include_zero:
            continue
        result.append(number)
    return result


def wheel_opposite(number: int) -> int | None:
    if number not in EUROPEAN_WHEEL:
        return None
    index = EUROPEAN_WHEEL.index(number)
    return EUROPEAN_WHEEL[(index + len(EUROPEAN_WHEEL) // 2) % len(EUROPEAN_WHEEL)]
