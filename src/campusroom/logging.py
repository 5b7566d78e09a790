"""Structured logging configuration using structlog.

Provides JSON output for production and human-readable console output for development.
All logging throughout the project should use get_logger() instead of print().

The engine never raises on untrusted schedule data; instead it reports what it
recovered from (malformed times, unknown days, dropped records) as log events,
so this module is also the diagnostic channel for data-quality problems.
"""

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(
    json_output: bool = False,
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger to write to one stream.

    Args:
        json_output: If True, output JSON (production). If False, console format (dev).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Destination, stderr by default so stdout carries only CLI output.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    stream = stream or sys.stderr

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    processors.append(
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=stream.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # requests/urllib3 log through stdlib logging
    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(stream)]
    root.setLevel(numeric_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger whose events carry the module name under ``logger_name``.

    Args:
        name: Logger name (typically __name__ from calling module).
    """
    return structlog.get_logger(logger_name=name)


def log_context(**values):
    """Bind values to every event logged inside a ``with`` block.

    Backed by contextvars, so tasks spawned inside the block (asyncio.gather,
    asyncio.to_thread) inherit the values.
    """
    return structlog.contextvars.bound_contextvars(**values)
