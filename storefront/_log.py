"""Structlog configuration with a stdlib bridge.

Provides:
- configure_logging(): one-shot structlog + stdlib setup
- get_logger(): returns a logger bound with its component name
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from storefront.config import Settings

_CONFIGURED = False


def configure_logging(settings: Settings | None = None) -> None:
    """One-shot structlog + stdlib bridge configuration.

    Safe to call multiple times; only the first invocation takes effect.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True

    level_name = settings.log_level if settings else "INFO"
    log_format = settings.log_format if settings else "console"
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = _select_renderer(log_format)
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route logging.getLogger() output (sqlalchemy, aiosqlite) through the same pipeline
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(component: str) -> Any:
    """Return a structlog logger pre-bound with its component."""
    return structlog.get_logger(component=component)


def _select_renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


__all__ = ("configure_logging", "get_logger")
