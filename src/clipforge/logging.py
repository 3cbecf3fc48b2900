"""Structured logging configuration."""

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any
from uuid import UUID

import structlog
from structlog.types import EventDict, WrappedLogger

from clipforge.config import settings

SERVICE_NAME = "clipforge"

# Libraries that log every request or statement at INFO
_CHATTY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def _add_service(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once: the CLI and the API module both call it, and
    the handler installed by an earlier call is replaced rather than doubled.
    """
    log_format = log_format or settings.log_format
    log_level = (log_level or settings.log_level).upper()

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_service,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.set_name(SERVICE_NAME)

    root_logger = logging.getLogger()
    root_logger.handlers = [h for h in root_logger.handlers if h.get_name() != SERVICE_NAME]
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bound_task(task_id: UUID, provider_task_id: str) -> AbstractContextManager[None]:
    """Tag every log line emitted inside the block with the task's ids.

    Poll loops run as their own asyncio tasks, each with a private copy of the
    context, so bindings never leak between tasks.
    """
    return structlog.contextvars.bound_contextvars(
        task_id=str(task_id),
        provider_task_id=provider_task_id,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for a module."""
    return structlog.get_logger(name)
