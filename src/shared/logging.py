"""Structured logging for the AI Factory gateway.

All modules log through structlog key/value events. Output goes to stdout
for the HTTP transport and to stderr for stdio, where stdout is reserved
for protocol messages.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from shared.config import Settings

SERVICE_NAME = "ai-factory"


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging(
    log_level: str = "info",
    json_output: bool = False,
    stream: TextIO | None = None
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Minimum level name, case-insensitive
        json_output: JSON lines instead of console rendering
        stream: Output stream, stdout by default
    """
    stream = stream or sys.stdout
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service,
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # uvicorn and the LLM SDKs log through the standard library
    logging.basicConfig(format="%(message)s", stream=stream, level=level)


def configure_logging(settings: "Settings") -> None:
    """Set up logging for the configured transport and environment."""
    setup_logging(
        settings.log_level,
        json_output=settings.environment == "production",
        stream=sys.stdout if settings.transport == "http" else sys.stderr,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a structlog logger, optionally with bound context."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_context(**context: Any) -> None:
    """Bind values to every log event of the current task."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
