r"""Structured logging utilities for machine-readable log output.

rehttp logs through the standard ``logging`` module under the ``rehttp``
logger hierarchy. This module adds an opt-in JSON formatter and a
correlation id carried in a context variable, so every log line of a
logical call (and the ``X-Correlation-ID`` header set by
``rehttp.middleware.correlation_id_header``) can be tied together.

Example:
    ```python
    import logging

    from rehttp.utils.structured_logging import StructuredFormatter, correlation_scope

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("rehttp")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    with correlation_scope("request-123"):
        response = client.get("/users")
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_scope",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "rehttp_correlation_id", default=None
)

# Attributes present on every LogRecord; anything else came from `extra`
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def get_correlation_id() -> str | None:
    """Get the correlation id of the current context.

    Example:
        ```pycon
        >>> from rehttp.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id()
        >>> get_correlation_id() is None
        True

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation id for the current context.

    The value lives in a context variable, so it is isolated per thread
    and per asyncio task.
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation id for the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Generator[str, None, None]:
    """Set a correlation id for the duration of a ``with`` block.

    The previous value is restored on exit.

    Example:
        ```pycon
        >>> from rehttp.utils.structured_logging import correlation_scope, get_correlation_id
        >>> with correlation_scope("batch-7"):
        ...     get_correlation_id()
        ...
        'batch-7'

        ```
    """
    reset_token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(reset_token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object with the fields ``timestamp``
    (ISO 8601, UTC), ``level``, ``logger``, ``message``, ``module``,
    ``function``, ``line``, ``thread`` and ``process``, plus
    ``correlation_id`` when set, ``exception`` when the record carries
    exception info, and any field passed through ``extra``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from rehttp.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord("rehttp", logging.INFO, __file__, 1, "hello", (), None)
        >>> json.loads(StructuredFormatter().format(record))["message"]
        'hello'

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        """Format the record timestamp as ISO 8601 with milliseconds."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    The fields appear as top-level keys when the handler uses
    ``StructuredFormatter``.

    Args:
        logger: Logger to use.
        level: Log level (e.g. ``logging.INFO``).
        message: Log message.
        **extra: Additional structured fields.
    """
    logger.log(level, message, extra=extra)
