"""Structured JSON logging with correlation_id support.

Uses structlog for structured logging with JSON output.
Every entry written while a service call is in flight carries the
caller's correlation_id and tenant_id.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_tenant_id: ContextVar[str] = ContextVar("tenant_id", default="")


def get_correlation_id() -> str:
    """Get current correlation ID from context ("" outside a call)."""
    return _correlation_id.get()


@contextmanager
def bind_request(correlation_id: str, tenant_id: str = "") -> Iterator[None]:
    """Bind correlation/tenant ids for the duration of a service call."""
    cid_token = _correlation_id.set(correlation_id)
    tid_token = _tenant_id.set(tenant_id)
    try:
        yield
    finally:
        _correlation_id.reset(cid_token)
        _tenant_id.reset(tid_token)


def _add_request_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add correlation_id / tenant_id when bound."""
    cid = _correlation_id.get()
    if cid:
        event_dict.setdefault("correlation_id", cid)
    tid = _tenant_id.get()
    if tid:
        event_dict.setdefault("tenant_id", tid)
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for the service.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for production, "console" for development.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_request_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
