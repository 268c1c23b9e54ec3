from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


SUPPORTED_SCHEMA_VERSION = "v1"
DEFAULT_ARTIFACT_DIR = "data/artifacts"
DEFAULT_COMBINATORS = {"AND", "OR"}


@dataclass(slots=True)
class GuardLimits:
    max_nodes: int = 200
    max_connections: int = 1000
    max_name_length: int = 128
    max_label_length: int = 120
    max_description_length: int = 2000
    max_node_id_length: int = 64


@dataclass(slots=True)
class StrategySettings:
    max_nodes: int = 200
    max_connections: int = 1000
    max_name_length: int = 128
    max_label_length: int = 120
    max_description_length: int = 2000
    default_combinator: str = "AND"
    artifact_dir: Path = Path(DEFAULT_ARTIFACT_DIR)

    def guard_limits(self) -> GuardLimits:
        return GuardLimits(
            max_nodes=self.max_nodes,
            max_connections=self.max_connections,
            max_name_length=self.max_name_length,
            max_label_length=self.max_label_length,
            max_description_length=self.max_description_length,
        )


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_choice(name: str, default: str, choices: set[str]) -> str:
    value = (os.getenv(name) or "").strip().upper()
    return value if value in choices else default


def load_settings() -> StrategySettings:
    load_dotenv()

    return StrategySettings(
        max_nodes=_get_int("STRATEGY_MAX_NODES", 200),
        max_connections=_get_int("STRATEGY_MAX_CONNECTIONS", 1000),
        max_name_length=_get_int("STRATEGY_MAX_NAME_LENGTH", 128),
        max_label_length=_get_int("STRATEGY_MAX_LABEL_LENGTH", 120),
        max_description_length=_get_int("STRATEGY_MAX_DESCRIPTION_LENGTH", 2000),
        default_combinator=_get_choice("STRATEGY_DEFAULT_COMBINATOR", "AND", DEFAULT_COMBINATORS),
        artifact_dir=Path(os.getenv("STRATEGY_ARTIFACT_DIR", DEFAULT_ARTIFACT_DIR)).expanduser(),
    )
