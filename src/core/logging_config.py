"""Structured logging configuration.

This module initializes structlog with a stable structured format.
Events go to stderr so that target files and stdout stay clean.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "info") -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Minimum level name, e.g. ``debug`` or ``warning``.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)


def _level_number(level: str) -> int:
    """Map a level name onto a stdlib logging level number.

    Args:
        level: Case-insensitive level name.

    Returns:
        Numeric level, INFO for unknown names.
    """
    value = logging.getLevelName(level.upper())
    if isinstance(value, int):
        return value
    return logging.INFO


def _stderr_logger_factory(*args: Any) -> Any:
    """Create a print logger bound to the current ``sys.stderr``."""
    return structlog.PrintLogger(file=sys.stderr)
