"""Structured logging configuration for the CLI."""

from __future__ import annotations

import logging
import os
import sys

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog to write to stderr.

    Reads from environment variables:
        LICENSE_AUDITOR_LOG_FORMAT: console | json (default: console)

    Args:
        verbose: Emit debug events; otherwise only warnings and errors.
    """
    log_level = logging.DEBUG if verbose else logging.WARNING
    log_format = os.environ.get("LICENSE_AUDITOR_LOG_FORMAT", "console").lower()

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
