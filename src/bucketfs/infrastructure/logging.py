"""Structured logging configuration.

bucketfs is a library: it logs to stderr and leaves stdout to the host
application. Exceptions passed as the ``error`` field are flattened into
``error``, ``error_type`` and, when the exception carries one, ``status``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


def expand_error(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Render an exception in the ``error`` field as plain fields."""
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error"] = str(error)
        event_dict["error_type"] = type(error).__name__
        status = getattr(error, "status", None)
        if status is not None:
            event_dict.setdefault("status", status)
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """
    Set up structured logging with structlog.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' for one object per line, 'console' for humans
        stream: Output stream (default: stderr)
    """
    stream = stream or sys.stderr
    numeric_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=stream, level=numeric_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        expand_error,
        structlog.processors.format_exc_info,
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger, optionally bound to initial context (e.g. ``bucket``)."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
