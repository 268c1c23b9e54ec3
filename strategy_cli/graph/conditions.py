from __future__ import annotations

import logging
import math
from typing import Annotated, Any, Callable, ClassVar, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from strategy_cli.runtime import conditions as kernels
from strategy_cli.runtime.conditions import Verdict


LOGGER = logging.getLogger(__name__)


def _number_or_none(value: object) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    if value == int(value):
        return int(value)
    return float(value)


def _text(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "sim", "on"}
    return bool(value)


def _tokens(value: object) -> tuple[int | str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    tokens: list[int | str] = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)) and math.isfinite(item) and item == int(item):
            tokens.append(int(item))
        elif isinstance(item, str) and item.strip():
            tokens.append(item.strip().lower())
    return tuple(tokens)


Number = Annotated[Union[int, float, None], BeforeValidator(_number_or_none)]
Text = Annotated[str, BeforeValidator(_text)]
Flag = Annotated[bool, BeforeValidator(_flag)]
Tokens = Annotated[tuple[Union[int, str], ...], BeforeValidator(_tokens)]


class ConditionConfigBase(BaseModel):
    """Typed parameters of one condition subtype.

    Every variant names the runtime kernel it feeds and the keyword arguments it
    passes. The interpreter calls the kernel with those arguments and the code
    generator prints the same call, so both paths share one definition.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    KERNEL: ClassVar[Callable[..., Verdict] | None] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if value is not None and value != ""}

    def kernel_arguments(self) -> dict[str, Any]:
        return {}

    @property
    def kernel(self) -> Callable[..., Verdict] | None:
        return type(self).KERNEL


class AbsenceConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_absence

    subtype: Literal["absence"] = "absence"
    evento: Text = "zero"
    numero_alvo: Number = Field(default=None, validation_alias=AliasChoices("numeroAlvo", "numero", "numero_alvo"))
    rodadas_sem_ocorrer: Number = Field(
        default=10, validation_alias=AliasChoices("rodadasSemOcorrer", "rodadas_sem_ocorrer")
    )

    def kernel_arguments(self) -> dict[str, Any]:
        return {
            "evento": self.evento or "zero",
            "numero_alvo": self.numero_alvo,
            "rodadas": self.rodadas_sem_ocorrer,
        }


class SpecificNumberConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_specific_number

    subtype: Literal["specific-number"] = "specific-number"
    numero: Number = None
    modo: Text = "ocorreu"
    rodadas_sem_ocorrer: Number = Field(
        default=10, validation_alias=AliasChoices("rodadasSemOcorrer", "rodadas_sem_ocorrer")
    )

    def kernel_arguments(self) -> dict[str, Any]:
        return {"numero": self.numero, "modo": self.modo, "rodadas": self.rodadas_sem_ocorrer}


class _HotGroupConfig(ConditionConfigBase):
    janela: Number = 12
    frequencia_minima: Number = Field(
        default=5, validation_alias=AliasChoices("frequenciaMinima", "frequencia_minima")
    )

    def kernel_arguments(self) -> dict[str, Any]:
        return {"janela": self.janela, "frequencia_minima": self.frequencia_minima}


class DozenHotConfig(_HotGroupConfig):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_dozen_hot

    subtype: Literal["dozen_hot"] = "dozen_hot"


class ColumnHotConfig(_HotGroupConfig):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_column_hot

    subtype: Literal["column_hot"] = "column_hot"


class MirrorConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_mirror

    subtype: Literal["mirror"] = "mirror"
    raio: Number = 0
    include_zero: Flag = Field(default=True, validation_alias=AliasChoices("includeZero", "include_zero"))

    def kernel_arguments(self) -> dict[str, Any]:
        return {"raio": self.raio, "include_zero": self.include_zero}


class SequenceCustomConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_sequence

    subtype: Literal["sequence_custom"] = "sequence_custom"
    sequencia: Tokens = ()
    modo: Text = "exato"

    def kernel_arguments(self) -> dict[str, Any]:
        return {"sequencia": self.sequencia, "modo": self.modo}


class RepetitionConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_repetition

    subtype: Literal["repetition"] = "repetition"
    evento: Text = "vermelho"
    ocorrencias: Number = 3

    def kernel_arguments(self) -> dict[str, Any]:
        return {"evento": self.evento or "vermelho", "ocorrencias": self.ocorrencias}


class TrendConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_trend

    subtype: Literal["trend"] = "trend"
    evento: Text = "vermelho"
    janela: Number = 10
    frequencia_minima: Number = Field(
        default=0.6, validation_alias=AliasChoices("frequenciaMinima", "frequencia_minima")
    )

    def kernel_arguments(self) -> dict[str, Any]:
        return {
            "evento": self.evento or "vermelho",
            "janela": self.janela,
            "frequencia_minima": self.frequencia_minima,
        }


class RepeatNumberConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_repeat_number

    subtype: Literal["repeat-number"] = "repeat-number"
    numero: Number = None
    ocorrencias: Number = 2

    def kernel_arguments(self) -> dict[str, Any]:
        return {"numero": self.numero, "ocorrencias": self.ocorrencias}


class NeighborsConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_neighbors

    subtype: Literal["neighbors"] = "neighbors"
    numero: Number = None
    raio: Number = 2
    include_zero: Flag = Field(default=True, validation_alias=AliasChoices("includeZero", "include_zero"))

    def kernel_arguments(self) -> dict[str, Any]:
        return {"numero": self.numero, "raio": self.raio, "include_zero": self.include_zero}


class BreakConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_break

    subtype: Literal["break"] = "break"
    evento: Text = "preto"
    minimo: Number = 3

    def kernel_arguments(self) -> dict[str, Any]:
        return {"evento": self.evento or "preto", "minimo": self.minimo}


class TimeWindowConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_time_window

    subtype: Literal["time-window"] = "time-window"
    inicio: Number = 0
    fim: Number = 9999

    def kernel_arguments(self) -> dict[str, Any]:
        return {"inicio": self.inicio, "fim": self.fim}


class AlternationConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_alternation

    subtype: Literal["alternation"] = "alternation"
    eixo: Text = "cor"
    comprimento: Number = 4

    def kernel_arguments(self) -> dict[str, Any]:
        return {"eixo": self.eixo or "cor", "comprimento": self.comprimento}


class DominantSectorConfig(ConditionConfigBase):
    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.check_dominant_sector

    subtype: Literal["setorDominante"] = "setorDominante"
    setor: Text = "voisins"
    janela: Number = 6
    frequencia_minima: Number = Field(
        default=None, validation_alias=AliasChoices("frequenciaMinima", "frequencia_minima")
    )

    def kernel_arguments(self) -> dict[str, Any]:
        minimum = self.frequencia_minima
        if "frequencia_minima" not in self.model_fields_set and self.janela is not None:
            minimum = math.ceil(max(1, self.janela) / 2)
        return {"setor": self.setor or "voisins", "janela": self.janela, "frequencia_minima": minimum}


class UnknownConditionConfig(ConditionConfigBase):
    """Subtype with no kernel: evaluates to false, refuses to compile."""

    subtype: str = ""


class MisconfiguredConditionConfig(ConditionConfigBase):
    """Known subtype whose parameters could not be read; always false."""

    KERNEL: ClassVar[Callable[..., Verdict]] = kernels.unsatisfied

    subtype: str = ""
    reason: str = ""


ConditionConfig = Annotated[
    AbsenceConfig
    | SpecificNumberConfig
    | DozenHotConfig
    | ColumnHotConfig
    | MirrorConfig
    | SequenceCustomConfig
    | RepetitionConfig
    | TrendConfig
    | RepeatNumberConfig
    | NeighborsConfig
    | BreakConfig
    | TimeWindowConfig
    | AlternationConfig
    | DominantSectorConfig,
    Field(discriminator="subtype"),
]

CONDITION_CONFIG_ADAPTER: TypeAdapter[Any] = TypeAdapter(ConditionConfig)

SUPPORTED_SUBTYPES = frozenset(
    {
        "absence",
        "specific-number",
        "dozen_hot",
        "column_hot",
        "mirror",
        "sequence_custom",
        "repetition",
        "trend",
        "repeat-number",
        "neighbors",
        "break",
        "time-window",
        "alternation",
        "setorDominante",
    }
)

AnyConditionConfig = Union[
    AbsenceConfig,
    SpecificNumberConfig,
    DozenHotConfig,
    ColumnHotConfig,
    MirrorConfig,
    SequenceCustomConfig,
    RepetitionConfig,
    TrendConfig,
    RepeatNumberConfig,
    NeighborsConfig,
    BreakConfig,
    TimeWindowConfig,
    AlternationConfig,
    DominantSectorConfig,
    UnknownConditionConfig,
    MisconfiguredConditionConfig,
]


def parse_condition_config(subtype: str, raw: object) -> AnyConditionConfig:
    if subtype not in SUPPORTED_SUBTYPES:
        return UnknownConditionConfig(subtype=subtype)

    payload = dict(raw) if isinstance(raw, dict) else {}
    payload["subtype"] = subtype
    try:
        return CONDITION_CONFIG_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        LOGGER.debug("Condition config for subtype '%s' could not be parsed: %s", subtype, exc)
        return MisconfiguredConditionConfig(subtype=subtype, reason=str(exc.errors()[0].get("msg", "")))
