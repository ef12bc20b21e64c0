"""Simple logging utilities for canvastag."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name."""
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger once, from the CLI or an embedding host.

    Args:
        level: Level name such as "DEBUG". Falls back to CANVASTAG_LOG_LEVEL,
            then WARNING when that is unset or not a known level.
    """
    from ..config.constants import LOG_LEVELS
    from ..config.settings import get_env_var

    level_name = (level or get_env_var("CANVASTAG_LOG_LEVEL", validate=False) or "WARNING").upper()
    if level_name not in LOG_LEVELS:
        level_name = "WARNING"
    logger = get_logger("canvastag")
    logger.setLevel(level_name)
    for handler in logger.handlers:
        handler.setLevel(level_name)
    return logger
