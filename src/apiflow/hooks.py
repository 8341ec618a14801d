r"""URL formatting and response validation hooks.

Both hooks are single-method strategies with safe defaults, so a minimal
client does not override anything while a richer client can inject
authentication, rewrite URLs or map status codes to its own errors
without touching the pipeline.

Example:
    ```pycon
    >>> import asyncio
    >>> from apiflow.hooks import QueryParamsUrlFormatter
    >>> formatter = QueryParamsUrlFormatter({"api_key": "secret"})
    >>> asyncio.run(formatter.format_url("https://api.example.com/items?page=2"))
    'https://api.example.com/items?page=2&api_key=secret'

    ```
"""

from __future__ import annotations

__all__ = [
    "BaseUrlFormatter",
    "ErrorMappingValidator",
    "IdentityUrlFormatter",
    "QueryParamsUrlFormatter",
    "ResponseValidator",
    "SuccessStatusValidator",
    "UrlFormatter",
]

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from apiflow.cancellation import run_cancellable
from apiflow.core.validation import validate_text
from apiflow.exceptions import HttpStatusError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from apiflow.cancellation import CancellationToken

logger: logging.Logger = logging.getLogger(__name__)


@runtime_checkable
class UrlFormatter(Protocol):
    r"""Define the URL formatting hook, invoked once per request."""

    async def format_url(
        self, url: str, cancellation_token: CancellationToken | None = None
    ) -> str: ...


@runtime_checkable
class ResponseValidator(Protocol):
    r"""Define the response validation hook, invoked once per response.

    Implementations raise to signal failure and return the response to
    signal success.
    """

    async def validate(
        self, response: httpx.Response, cancellation_token: CancellationToken | None = None
    ) -> httpx.Response: ...


class IdentityUrlFormatter:
    r"""Return the URL unchanged."""

    async def format_url(
        self,
        url: str,
        cancellation_token: CancellationToken | None = None,  # noqa: ARG002
    ) -> str:
        return url


class BaseUrlFormatter:
    r"""Prefix relative URLs with a base URL.

    Absolute URLs are returned unchanged.

    Args:
        base_url: The base URL, e.g. ``"https://api.example.com/v2"``.

    Raises:
        ArgumentValidationError: If ``base_url`` is empty.

    Example:
        ```pycon
        >>> import asyncio
        >>> from apiflow.hooks import BaseUrlFormatter
        >>> formatter = BaseUrlFormatter("https://api.example.com/v2/")
        >>> asyncio.run(formatter.format_url("/items/42"))
        'https://api.example.com/v2/items/42'

        ```
    """

    def __init__(self, base_url: str) -> None:
        self._base_url = validate_text(base_url, "base_url").rstrip("/")

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(base_url={self._base_url!r})"

    async def format_url(
        self,
        url: str,
        cancellation_token: CancellationToken | None = None,  # noqa: ARG002
    ) -> str:
        if httpx.URL(url).is_absolute_url:
            return url
        return f"{self._base_url}/{url.lstrip('/')}"


class QueryParamsUrlFormatter:
    r"""Append query parameters to every URL.

    Typical use is API-key authentication through the query string.
    Existing parameters of the URL are kept.

    Args:
        params: The query parameters to append.
    """

    def __init__(self, params: Mapping[str, str]) -> None:
        self._params = dict(params)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(params={sorted(self._params)})"

    async def format_url(
        self,
        url: str,
        cancellation_token: CancellationToken | None = None,  # noqa: ARG002
    ) -> str:
        return str(httpx.URL(url).copy_merge_params(self._params))


class SuccessStatusValidator:
    r"""Enforce a success (2xx) status code.

    On failure the body is read so that the raised ``HttpStatusError``
    carries it for diagnostics.
    """

    async def validate(
        self,
        response: httpx.Response,
        cancellation_token: CancellationToken | None = None,
    ) -> httpx.Response:
        if response.is_success:
            return response
        error = await _build_status_error(response, cancellation_token)
        logger.debug(f"{error.method} request to {error.url} returned status {error.status_code}")
        raise error


class ErrorMappingValidator:
    r"""Map specific status codes to caller-defined exceptions.

    Status codes absent from the mapping are handled by the fallback
    validator (``SuccessStatusValidator`` by default).

    Args:
        mapping: Maps a status code to a callable that receives the
            ``HttpStatusError`` and returns the exception to raise.
        fallback: The validator used for unmapped status codes.

    Example:
        ```pycon
        >>> from apiflow.hooks import ErrorMappingValidator
        >>> validator = ErrorMappingValidator({404: lambda err: KeyError(err.url)})

        ```
    """

    def __init__(
        self,
        mapping: Mapping[int, Callable[[HttpStatusError], Exception]],
        fallback: ResponseValidator | None = None,
    ) -> None:
        self._mapping = dict(mapping)
        self._fallback = fallback if fallback is not None else SuccessStatusValidator()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(status_codes={sorted(self._mapping)}, "
            f"fallback={self._fallback!r})"
        )

    async def validate(
        self,
        response: httpx.Response,
        cancellation_token: CancellationToken | None = None,
    ) -> httpx.Response:
        factory = self._mapping.get(response.status_code)
        if factory is None:
            return await self._fallback.validate(response, cancellation_token)
        error = await _build_status_error(response, cancellation_token)
        raise factory(error) from error


async def _build_status_error(
    response: httpx.Response, cancellation_token: CancellationToken | None
) -> HttpStatusError:
    r"""Read the response body and wrap the response in an
    ``HttpStatusError``."""
    await run_cancellable(response.aread(), cancellation_token)
    request = response.request
    return HttpStatusError(
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        body=response.text,
        response=response,
    )
