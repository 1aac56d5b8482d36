"""Structured logging utilities using structlog for run and issue context."""

import os
import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("EVAL_LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("EVAL_LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context binding for run_id and correlation_id
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    run_id: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Logger name (typically component name)
        run_id: Optional eval run ID to bind
        **additional_context: Additional context to bind

    Returns:
        Configured BoundLogger instance with context

    Example:
        >>> logger = get_structured_logger("EvalPipeline", run_id="run-123")
        >>> logger.info("claims_extracted", page="legal", count=12)
    """
    logger = structlog.get_logger(name).bind(component=name)

    if run_id:
        logger = logger.bind(run_id=run_id)

    if additional_context:
        logger = logger.bind(**additional_context)

    return logger


def get_correlation_id() -> str:
    """Generate a correlation ID for tracing a review or run request."""
    return str(uuid.uuid4())


def bind_run_context(
    logger: structlog.BoundLogger,
    run_id: str,
    run_type: str,
    correlation_id: Optional[str] = None,
) -> structlog.BoundLogger:
    """
    Bind eval run context to an existing logger.

    Args:
        logger: Existing logger instance
        run_id: Run ID to bind
        run_type: Run type (daily_rules, weekly_factcheck, on_demand)
        correlation_id: Optional correlation ID for tracing

    Returns:
        Logger with bound run context
    """
    bound_logger = logger.bind(run_id=run_id, run_type=run_type)

    if correlation_id:
        bound_logger = bound_logger.bind(correlation_id=correlation_id)

    return bound_logger


configure_structured_logging()


__all__ = [
    "get_structured_logger",
    "get_correlation_id",
    "bind_run_context",
    "configure_structured_logging",
]
