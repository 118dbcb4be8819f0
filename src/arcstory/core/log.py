"""Logging setup for command-line use."""
from __future__ import annotations

import logging
import sys

LOGGER_NAME = "arcstory"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if logger.handlers:
        return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)-7s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    return logger
