r"""Structured logging utilities for machine-readable log output.

The pipeline logs each dispatch and completion as a DEBUG record whose
``extra`` fields (``event``, ``method``, ``url``, ``status_code``,
``duration_ms``) are emitted as JSON keys by ``StructuredFormatter``.
Structured output is opt-in, configure a handler to enable it:

```python
import logging
from apiflow.utils.structured_logging import StructuredFormatter, correlation_scope

handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())
logger = logging.getLogger("apiflow")
logger.addHandler(handler)
logger.setLevel(logging.DEBUG)

with correlation_scope("request-123"):
    await client.get("/items/42")
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
    from collections.abc import Iterator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "apiflow_correlation_id", default=None
)

# Attributes every LogRecord has, they are not copied as extra fields
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current context.

    Returns:
        The current correlation ID, or None if not set.
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    The ID is stored in a context variable, so concurrent calls running
    in different tasks do not see each other's ID.

    Args:
        correlation_id: The correlation ID to set (e.g. a trace ID).

    Example:
        ```pycon
        >>> from apiflow.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("request-456")
        >>> get_correlation_id()
        'request-456'
        >>> clear_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Set a correlation ID for the duration of a ``with`` block.

    The previous ID is restored on exit.

    Args:
        correlation_id: The correlation ID to set.

    Yields:
        The correlation ID.

    Example:
        ```pycon
        >>> from apiflow.utils.structured_logging import correlation_scope, get_correlation_id
        >>> with correlation_scope("req-1"):
        ...     get_correlation_id()
        ...
        'req-1'
        >>> get_correlation_id()

        ```
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard keys of the JSON output: ``timestamp`` (ISO 8601, UTC),
    ``level``, ``logger``, ``message``, ``module``, ``function``, ``line``,
    plus ``correlation_id`` when set and ``exception`` when the record
    carries exception info. Fields passed through ``extra`` are added as
    top-level keys.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from apiflow.utils.structured_logging import StructuredFormatter
        >>> record = logging.makeLogRecord(
        ...     {"name": "apiflow", "msg": "done", "levelname": "DEBUG", "status_code": 200}
        ... )
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["message"], data["status_code"]
        ('done', 200)

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
        """Format the record timestamp as ISO 8601 with millisecond
        precision; ``datefmt`` is ignored."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    The check on the logger level avoids building records for the
    per-request DEBUG events when DEBUG is disabled.

    Args:
        logger: Logger to use.
        level: Log level (e.g. ``logging.DEBUG``).
        message: Log message.
        **extra: Structured fields added to the record.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
