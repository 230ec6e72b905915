"""structlog setup for the async engine services.

Stores, the fact-check pipeline and the maintenance sweeps log key/value
events (``event_ranked``, ``fact_check_completed``) rather than sentences.
A correlation id bound through contextvars ties together every line written
while one fact-check or sweep is running.
"""

import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars
from structlog.processors import JSONRenderer

from realtea_engine.config.settings import settings


def configure_structured_logging(level: Optional[str] = None) -> None:
    """Configure structlog from settings, console on a TTY and JSON elsewhere."""
    processors: list[Any] = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if sys.stderr.isatty() and settings.log_format.lower() == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(JSONRenderer(sort_keys=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger((level or settings.log_level).upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    component: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structlog logger with the component and any extra context bound.

    Example:
        >>> log = get_structured_logger(__name__, component="MaintenanceJobs")
        >>> log.info("rank_sweep_started", events=120)
    """
    log = structlog.get_logger(name)
    if component:
        log = log.bind(component=component)
    if additional_context:
        log = log.bind(**additional_context)
    return log


def get_correlation_id() -> str:
    """New id for one fact-check or sweep run."""
    return str(uuid.uuid4())


def bind_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation id into contextvars for the current task and return it."""
    correlation_id = correlation_id or get_correlation_id()
    bind_contextvars(correlation_id=correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    unbind_contextvars("correlation_id")


configure_structured_logging()


__all__ = [
    "get_structured_logger",
    "get_correlation_id",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_structured_logging",
]
