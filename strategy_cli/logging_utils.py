from __future__ import annotations

import logging
import os

from rich.logging import RichHandler


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(*, rich_output: bool = False) -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if rich_output:
        logging.basicConfig(level=level, format="%(name)s | %(message)s", handlers=[RichHandler(show_path=False)])
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
