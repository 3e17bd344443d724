"""
structlog configuration for unl-core.

Library modules only call structlog.get_logger(__name__); applications
call configure_logging() once to choose a level and renderer.
"""

import logging
from typing import Optional

import structlog

from .config import get_settings


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Configure structlog processors and level filtering.

    Args:
        level: Log level name; defaults to UNL_CORE_LOG_LEVEL
        json_output: Render JSON instead of console output; defaults to
            UNL_CORE_LOG_JSON
    """
    if level is None or json_output is None:
        settings = get_settings()
        level = level or settings.log_level
        json_output = settings.log_json if json_output is None else json_output

    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=False,
    )
