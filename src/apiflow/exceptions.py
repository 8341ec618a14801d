r"""Exception hierarchy for the API client pipeline.

Every error raised by the request pipeline is one of the classes below.
None of them are retried or swallowed by the pipeline, they always
propagate to the immediate caller.
"""

from __future__ import annotations

__all__ = [
    "ApiClientError",
    "ArgumentValidationError",
    "CancellationError",
    "DeserializationError",
    "HttpStatusError",
]

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ApiClientError(Exception):
    r"""Base class of the errors raised by ``apiflow``."""


class ArgumentValidationError(ApiClientError, ValueError):
    r"""Raised when a required input is missing, empty or whitespace.

    This error is always raised before any I/O happens.

    Args:
        name: The name of the invalid argument.
        message: The error message.

    Example:
        ```pycon
        >>> from apiflow.exceptions import ArgumentValidationError
        >>> err = ArgumentValidationError("url", "url must be a non-empty string")
        >>> err.name
        'url'

        ```
    """

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class HttpStatusError(ApiClientError):
    r"""Raised when the transport reports a non-success status code.

    Args:
        method: The HTTP method of the failed request.
        url: The URL that was requested.
        status_code: The status code reported by the server.
        body: The response body decoded as text.
        response: The response object, kept for diagnostics. Its
            stream is already closed when the error is raised.

    Example:
        ```pycon
        >>> from apiflow.exceptions import HttpStatusError
        >>> err = HttpStatusError(
        ...     method="GET", url="https://api.example.com/items", status_code=404, body="missing"
        ... )
        >>> err.status_code
        404
        >>> str(err)
        'GET request to https://api.example.com/items failed with status 404'

        ```
    """

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int,
        body: str = "",
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(f"{method} request to {url} failed with status {status_code}")
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        self.response = response


class DeserializationError(ApiClientError):
    r"""Raised when a typed value cannot be produced from a response
    body.

    The pipeline never raises this error itself. Concrete clients raise
    it from their deserialization step and the pipeline lets it
    propagate unchanged.

    Args:
        response_type: The type the body was decoded into.
        message: The error message.
    """

    def __init__(self, response_type: object, message: str) -> None:
        super().__init__(message)
        self.response_type = response_type


class CancellationError(asyncio.CancelledError):
    r"""Raised when a ``CancellationToken`` fires during a call.

    This is a subclass of ``asyncio.CancelledError`` so callers can
    handle token cancellation and task cancellation with the same
    ``except`` clause.

    As a consequence, a task whose call is stopped by a token ends in
    the cancelled state rather than the failed state. In particular an
    ``asyncio.TaskGroup`` does not abort the sibling tasks nor raise when
    one of its tasks fails with this error. Check ``task.cancelled()``
    or catch the error inside the task if the group must react to it.
    """
