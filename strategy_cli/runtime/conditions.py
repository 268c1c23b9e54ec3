from __future__ import annotations

from dataclasses import dataclass

from strategy_cli.runtime.outcomes import (
    BLACK_NUMBERS,
    RED_NUMBERS,
    Outcome,
    color_of,
    event_numbers,
    matches_event,
    normalize_outcome,
    numbers_in,
    wheel_distance,
    wheel_neighbors,
    wheel_opposite,
    window,
)


DOZENS = (
    tuple(range(1, 13)),
    tuple(range(13, 25)),
    tuple(range(25, 37)),
)
COLUMNS = (
    tuple(n for n in range(1, 37) if n % 3 == 1),
    tuple(n for n in range(1, 37) if n % 3 == 2),
    tuple(n for n in range(1, 37) if n % 3 == 0),
)
SECTORS = {
    "voisins": (22, 18, 29, 7, 28, 12, 35, 3, 26, 0, 32, 15, 19, 4, 21, 2, 25),
    "tiers": (27, 13, 36, 11, 30, 8, 23, 10, 5, 24, 16, 33),
    "orphelins": (1, 20, 14, 31, 9, 17, 34, 6),
}


@dataclass(frozen=True, slots=True)
class Verdict:
    """Result of one node: the boolean decision plus proposed bet numbers.

    Each candidate is a ``(number, confidence)`` pair; confidence is the
    originating windowed frequency or ``None`` when the subtype has none.
    """

    result: bool
    candidates: tuple[tuple[int, float | None], ...] = ()

    @property
    def numbers(self) -> list[int]:
        return [number for number, _ in self.candidates]


UNSATISFIED = Verdict(result=False)


def satisfied(numbers: list[int] | tuple[int, ...], confidence: float | None = None) -> Verdict:
    seen: set[int] = set()
    candidates: list[tuple[int, float | None]] = []
    for number in numbers:
        if number in seen:
            continue
        seen.add(number)
        candidates.append((number, confidence))
    return Verdict(result=True, candidates=tuple(candidates))


def unsatisfied(history: list[Outcome]) -> Verdict:
    return UNSATISFIED


def _valid_number(value: float | int | None) -> bool:
    return value is not None and value == int(value) and 0 <= int(value) <= 36


def check_absence(
    history: list[Outcome],
    *,
    evento: str,
    numero_alvo: float | int | None,
    rodadas: float | int | None,
) -> Verdict:
    if rodadas is None:
        return UNSATISFIED
    recent = window(history, int(rodadas))

    if evento == "numero":
        if numero_alvo is None:
            return UNSATISFIED
        if any(item.is_number and item.value == numero_alvo for item in recent):
            return UNSATISFIED
        return satisfied([int(numero_alvo)] if _valid_number(numero_alvo) else [])

    if any(matches_event(item, evento) for item in recent):
        return UNSATISFIED
    return satisfied(event_numbers(evento))


def check_specific_number(
    history: list[Outcome],
    *,
    numero: float | int | None,
    modo: str,
    rodadas: float | int | None,
) -> Verdict:
    if not _valid_number(numero):
        return UNSATISFIED
    target = int(numero)

    if modo == "ocorreu":
        present = any(item.is_number and item.value == target for item in history)
        return satisfied([target]) if present else UNSATISFIED
    if modo == "ausente":
        if rodadas is None:
            return UNSATISFIED
        recent = window(history, int(rodadas))
        if any(item.is_number and item.value == target for item in recent):
            return UNSATISFIED
        return satisfied([target])
    return UNSATISFIED


def _hot_groups(
    history: list[Outcome],
    groups: tuple[tuple[int, ...], ...],
    janela: float | int | None,
    frequencia_minima: float | int | None,
) -> Verdict:
    if janela is None or frequencia_minima is None:
        return UNSATISFIED
    recent = window(history, max(1, int(janela)))
    minimum = max(1, frequencia_minima)
    counts = [0 for _ in groups]
    for number in numbers_in(recent):
        for index, group in enumerate(groups):
            if number in group:
                counts[index] += 1
                break

    hot = [index for index, count in enumerate(counts) if count >= minimum]
    if not hot:
        return UNSATISFIED

    candidates: list[tuple[int, float | None]] = []
    for index in hot:
        confidence = counts[index] / len(recent)
        candidates.extend((number, confidence) for number in groups[index])
    return Verdict(result=True, candidates=tuple(candidates))


def check_dozen_hot(
    history: list[Outcome],
    *,
    janela: float | int | None,
    frequencia_minima: float | int | None,
) -> Verdict:
    return _hot_groups(history, DOZENS, janela, frequencia_minima)


def check_column_hot(
    history: list[Outcome],
    *,
    janela: float | int | None,
    frequencia_minima: float | int | None,
) -> Verdict:
    return _hot_groups(history, COLUMNS, janela, frequencia_minima)


def check_mirror(
    history: list[Outcome],
    *,
    raio: float | int | None,
    include_zero: bool,
) -> Verdict:
    numbers = numbers_in(history)
    if not numbers:
        return UNSATISFIED
    opposite = wheel_opposite(numbers[-1])
    if opposite is None:
        return satisfied([])
    radius = max(0, int(raio)) if raio is not None else 0
    return satisfied(wheel_neighbors(opposite, radius, include_zero))


def check_sequence(
    history: list[Outcome],
    *,
    sequencia: tuple[int | str, ...],
    modo: str,
) -> Verdict:
    expected = [item for item in (normalize_outcome(raw) for raw in sequencia) if item is not None]
    if not expected or len(history) < len(expected):
        return UNSATISFIED

    size = len(expected)
    if modo == "exato":
        matched = history[-size:] == expected
    elif modo == "parcial":
        matched = any(history[start : start + size] == expected for start in range(len(history) - size + 1))
    else:
        return UNSATISFIED

    if not matched:
        return UNSATISFIED
    last = expected[-1]
    if last.is_number:
        return satisfied([int(last.value)])
    return satisfied(event_numbers(str(last.value)))


def check_repetition(
    history: list[Outcome],
    *,
    evento: str,
    ocorrencias: float | int | None,
) -> Verdict:
    if ocorrencias is None or int(ocorrencias) < 1 or len(history) < int(ocorrencias):
        return UNSATISFIED
    if not all(matches_event(item, evento) for item in history[-int(ocorrencias) :]):
        return UNSATISFIED
    return satisfied(event_numbers(evento))


def check_trend(
    history: list[Outcome],
    *,
    evento: str,
    janela: float | int | None,
    frequencia_minima: float | int | None,
) -> Verdict:
    if janela is None or frequencia_minima is None:
        return UNSATISFIED
    recent = window(history, max(1, int(janela)))
    if not recent:
        return UNSATISFIED
    share = sum(1 for item in recent if matches_event(item, evento)) / len(recent)
    if share < frequencia_minima:
        return UNSATISFIED
    return satisfied(event_numbers(evento), confidence=share)


def check_repeat_number(
    history: list[Outcome],
    *,
    numero: float | int | None,
    ocorrencias: float | int | None,
) -> Verdict:
    if not _valid_number(numero) or ocorrencias is None or int(ocorrencias) < 1:
        return UNSATISFIED
    count = int(ocorrencias)
    if len(history) < count:
        return UNSATISFIED
    if not all(item.is_number and item.value == int(numero) for item in history[-count:]):
        return UNSATISFIED
    return satisfied([int(numero)])


def check_neighbors(
    history: list[Outcome],
    *,
    numero: float | int | None,
    raio: float | int | None,
    include_zero: bool,
) -> Verdict:
    if not _valid_number(numero) or raio is None:
        return UNSATISFIED
    center = int(numero)
    radius = max(0, int(raio))
    recent = window(history, max(radius * 2, 12))
    for number in numbers_in(recent):
        distance = wheel_distance(number, center)
        if distance is not None and distance <= radius:
            return satisfied(wheel_neighbors(center, radius, include_zero))
    return UNSATISFIED


def check_break(
    history: list[Outcome],
    *,
    evento: str,
    minimo: float | int | None,
) -> Verdict:
    if minimo is None or not history:
        return UNSATISFIED
    run = 0
    for item in reversed(history):
        if not matches_event(item, evento):
            break
        run += 1
    return satisfied([]) if run >= minimo else UNSATISFIED


def check_time_window(
    history: list[Outcome],
    *,
    inicio: float | int | None,
    fim: float | int | None,
) -> Verdict:
    if inicio is None or fim is None:
        return UNSATISFIED
    return satisfied([]) if inicio <= len(history) <= fim else UNSATISFIED


def check_alternation(
    history: list[Outcome],
    *,
    eixo: str,
    comprimento: float | int | None,
) -> Verdict:
    if comprimento is None or int(comprimento) <= 1 or len(history) < int(comprimento):
        return UNSATISFIED
    recent = history[-int(comprimento) :]

    if eixo == "cor":
        categories = [color_of(item) for item in recent]
        if any(category not in {"vermelho", "preto"} for category in categories):
            return UNSATISFIED
        if any(categories[i] == categories[i - 1] for i in range(1, len(categories))):
            return UNSATISFIED
        upcoming = "preto" if categories[-1] == "vermelho" else "vermelho"
        return satisfied(list(RED_NUMBERS if upcoming == "vermelho" else BLACK_NUMBERS))

    if eixo == "paridade":
        if any(not item.is_number or item.value == 0 for item in recent):
            return UNSATISFIED
        parities = [int(item.value) % 2 for item in recent]
        if any(parities[i] == parities[i - 1] for i in range(1, len(parities))):
            return UNSATISFIED
        upcoming = 1 - parities[-1]
        return satisfied([n for n in range(1, 37) if n % 2 == upcoming])

    return UNSATISFIED


def check_dominant_sector(
    history: list[Outcome],
    *,
    setor: str,
    janela: float | int | None,
    frequencia_minima: float | int | None,
) -> Verdict:
    if janela is None or frequencia_minima is None:
        return UNSATISFIED
    name = setor.strip().lower()
    if name.startswith("tiers"):
        members = SECTORS["tiers"]
    elif name.startswith("orphel"):
        members = SECTORS["orphelins"]
    else:
        members = SECTORS["voisins"]

    recent = window(history, max(1, int(janela)))
    if not recent:
        return UNSATISFIED
    hits = sum(1 for number in numbers_in(recent) if number in members)
    if hits < max(1, frequencia_minima):
        return UNSATISFIED
    return satisfied(list(members), confidence=hits / len(recent))
