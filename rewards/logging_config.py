"""
Logging for the ``rewards`` package.

Handlers are attached to the package logger rather than the root
logger, so an embedding server (uvicorn, Lambda) keeps control of its
own output.  ``setup_logging`` replaces the package handlers on every
call; ``create_app`` can run many times in one process without
stacking duplicate handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "rewards"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def resolve_level(level: str) -> int:
    """Map a level name to its number, falling back to ``INFO``."""
    numeric_level = logging.getLevelName(level.upper())
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Configure the ``rewards`` logger and return it.

    Records go to stdout and, when ``logfile`` is given, are appended to
    that file as well.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(resolve_level(level))
    logger.propagate = False

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
