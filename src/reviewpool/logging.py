"""Structured logging for Reviewpool.

Every engine logs through structlog. stdlib logging only supplies the
output handler (stdout, or a size-rotated file). Two kinds of context are
attached to events:

- a correlation id, set per HTTP request by the request middleware;
- request identifiers such as ``pr_id`` or ``team_name``, bound by the
  route handlers with ``bind_request_context``.

Both live in context variables, so concurrent requests never see each
other's values.

Example:
    >>> setup_logging(LoggingConfig(level="INFO", format="json"))
    >>> get_logger(__name__).info("pr_created", pr_id="pr-1", reviewers=["u2", "u3"])
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any

import structlog

from reviewpool.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding ``correlation_id`` when one is set."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def bind_request_context(**values: str) -> None:
    """Attach identifiers (pr_id, team_name, user_id) to later events of this request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    """Drop the correlation id and every identifier bound for this request."""
    set_correlation_id(None)
    structlog.contextvars.clear_contextvars()


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)

    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def setup_logging(config: LoggingConfig) -> None:
    """Install the handler and the structlog processor chain.

    Replaces any handler previously installed on the root logger, so it
    is safe to call again (the CLI does so after ``--verbose``).

    Args:
        config: Level, renderer and optional log file.
    """
    log_level = getattr(logging, config.level)

    handler = _build_handler(config)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    renderer: Any
    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
