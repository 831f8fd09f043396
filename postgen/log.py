from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "postgen"
SUCCESS = 25

logging.addLevelName(SUCCESS, "SUCCESS")

logger = logging.getLogger(LOGGER_NAME)
_console: Optional[logging.Handler] = None


def success(message: str, *args: object) -> None:
    logger.log(SUCCESS, message, *args)


def is_production() -> bool:
    return os.environ.get("POSTGEN_ENV", "").strip().lower() == "production"


def setup_logger(level: str | int = "INFO") -> logging.Logger:
    global _console
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    # Production builds only report errors.
    if is_production():
        level = max(level, logging.ERROR)
    logger.setLevel(level)

    if _console is not None:
        logger.removeHandler(_console)
    _console = logging.StreamHandler(sys.stdout)
    _console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(_console)
    return logger
