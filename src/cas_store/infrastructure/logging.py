"""Structured logging configuration.

Every component logs through structlog with snake_case event names and
key/value context. Output goes straight to stdout, one event per line,
rendered as JSON for collectors or as colored text for a terminal.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> FilteringBoundLogger:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' or 'console'

    Returns:
        The root cas_store logger
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return get_logger("cas_store")


def get_logger(name: str | None = None, **initial_context: Any) -> FilteringBoundLogger:
    """
    Get a logger bound to its module name.

    The print logger has no notion of names, so the name travels as the
    ``logger`` key of every event.

    Args:
        name: Logger name (module name typically)
        **initial_context: Initial context to bind to the logger
    """
    if name is not None:
        initial_context.setdefault("logger", name)
    logger = structlog.get_logger()
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
