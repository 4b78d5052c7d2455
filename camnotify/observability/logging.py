"""
structlog configuration.

Call configure_logging() once at process start (the CLI does this). Library
code only calls structlog.get_logger(__name__).
"""

import logging
import sys
from typing import Optional

import structlog

from camnotify.config import settings


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """
    Configure structlog processors and the minimum level.

    Args:
        level: Minimum level name (defaults to settings.log_level)
        json: Render JSON lines instead of console output
            (defaults to settings.log_json)
    """
    level = (level or settings.log_level).upper()
    json = settings.log_json if json is None else json
    numeric_level = logging.getLevelName(level)

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    # Logs go to stderr; stdout carries command output
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
