"""Logging setup for the map markers package."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

PACKAGE_LOGGER = "map_markers"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a rich console handler to the package logger once."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(rich_tracebacks=True, show_path=False))
    return logger
