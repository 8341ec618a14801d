r"""Base class for typed HTTP API clients.

``ApiClient`` runs every call through the same pipeline:

1. validate the URL,
2. format it (``format_url``),
3. acquire a transport (fixed or factory-resolved),
4. dispatch the request,
5. validate the response (``process_response``),
6. for typed calls, decode the body (``deserialize_response``) and apply
   the transform function,
7. release the response.

Concrete clients implement ``serialize_request`` and
``deserialize_response`` and may override or inject the URL formatting
and response validation hooks.
"""

from __future__ import annotations

__all__ = ["ApiClient"]

import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from apiflow.cancellation import run_cancellable
from apiflow.core.validation import validate_url
from apiflow.exceptions import ArgumentValidationError
from apiflow.hooks import IdentityUrlFormatter, SuccessStatusValidator
from apiflow.transform import identity_transform
from apiflow.transport import TransportProvider
from apiflow.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType
    from typing import Self

    import httpx

    from apiflow.cancellation import CancellationToken
    from apiflow.hooks import ResponseValidator, UrlFormatter
    from apiflow.transform import TransformFunction
    from apiflow.transport import TransportFactory

logger: logging.Logger = logging.getLogger(__name__)

TResponse = TypeVar("TResponse")
TReturn = TypeVar("TReturn")

# Marks body-less requests, ``None`` is a valid request body
_NO_BODY: Any = object()


class ApiClient(ABC):
    r"""Define the base class of typed HTTP API clients.

    Exactly one transport acquisition strategy must be given: either a
    ``transport`` owned by the client for its whole lifetime, or a
    ``transport_factory`` asked for a named transport on each call.

    Args:
        transport: The ``httpx.AsyncClient`` shared by every call. The
            client owns it and closes it in ``aclose()``.
        transport_factory: The factory resolving a transport per call.
        transport_name: The name resolved from ``transport_factory``.
            Defaults to ``DEFAULT_TRANSPORT_NAME``.
        close_factory_transports: Whether transports resolved from the
            factory are closed at the end of each call. Set it to
            ``False`` when the factory keeps ownership of them.
        url_formatter: The URL formatting strategy. Defaults to
            ``IdentityUrlFormatter``.
        response_validator: The response validation strategy. Defaults
            to ``SuccessStatusValidator``.

    Raises:
        ArgumentValidationError: If no strategy or both strategies are
            given, or if ``transport_name`` is empty.

    Example:
        ```pycon
        >>> import asyncio
        >>> from dataclasses import dataclass
        >>> import httpx
        >>> from apiflow import JsonApiClient, pluck
        >>> @dataclass
        ... class Item:
        ...     id: int
        ...
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"id": 42}))
        >>> async def main():
        ...     client = JsonApiClient(
        ...         httpx.AsyncClient(transport=transport, base_url="https://api.example.com")
        ...     )
        ...     async with client:
        ...         return await client.get_as("/items/42", Item, pluck("id"))
        ...
        >>> asyncio.run(main())
        42

        ```
    """

    def __init__(
        self,
        transport: httpx.AsyncClient | None = None,
        *,
        transport_factory: TransportFactory | None = None,
        transport_name: str | None = None,
        close_factory_transports: bool = True,
        url_formatter: UrlFormatter | None = None,
        response_validator: ResponseValidator | None = None,
    ) -> None:
        if transport is not None and transport_factory is not None:
            msg = "transport and transport_factory are mutually exclusive"
            raise ArgumentValidationError("transport", msg)
        if transport_factory is not None:
            self._transport_provider = TransportProvider.from_factory(
                transport_factory, transport_name, close_after_use=close_factory_transports
            )
        else:
            if transport_name is not None:
                msg = "transport_name requires a transport_factory"
                raise ArgumentValidationError("transport_name", msg)
            self._transport_provider = TransportProvider.fixed(transport)

        self._url_formatter = url_formatter if url_formatter is not None else IdentityUrlFormatter()
        self._response_validator = (
            response_validator if response_validator is not None else SuccessStatusValidator()
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(transport_provider={self._transport_provider!r})"

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def transport_provider(self) -> TransportProvider:
        return self._transport_provider

    async def aclose(self) -> None:
        r"""Close the transport owned by the client.

        Only a fixed transport is owned by the client, transports resolved
        from a factory are released at the end of each call.
        """
        await self._transport_provider.aclose()

    async def format_url(
        self, url: str, cancellation_token: CancellationToken | None = None
    ) -> str:
        r"""Rewrite the URL before dispatch.

        The default implementation delegates to the ``url_formatter``
        strategy given at construction.

        Args:
            url: The validated URL passed by the caller.
            cancellation_token: The call cancellation token.

        Returns:
            The URL to dispatch the request to.
        """
        return await self._url_formatter.format_url(url, cancellation_token)

    async def process_response(
        self, response: httpx.Response, cancellation_token: CancellationToken | None = None
    ) -> httpx.Response:
        r"""Validate the response before it is consumed.

        The default implementation delegates to the
        ``response_validator`` strategy given at construction, which
        raises ``HttpStatusError`` for non-2xx responses. Overrides must
        raise to signal a failure.

        Args:
            response: The response returned by the transport.
            cancellation_token: The call cancellation token.

        Returns:
            The validated response.
        """
        return await self._response_validator.validate(response, cancellation_token)

    @abstractmethod
    def serialize_request(self, request: Any) -> dict[str, Any]:
        r"""Convert a request payload to request keyword arguments.

        Args:
            request: The payload passed to ``post``/``post_as``.

        Returns:
            Keyword arguments for ``httpx.AsyncClient.build_request``,
            e.g. ``{"json": {...}}`` or ``{"content": b"..."}``.
        """

    @abstractmethod
    async def deserialize_response(
        self,
        response: httpx.Response,
        response_type: type[TResponse],
        cancellation_token: CancellationToken | None = None,
    ) -> TResponse:
        r"""Decode a validated response into ``response_type``.

        Implementations raise ``DeserializationError`` (or any error of
        their choosing) when the body cannot be decoded. The pipeline
        does not mask it.

        Args:
            response: The validated response, opened in streaming mode.
                Use ``await response.aread()`` to read the body.
            response_type: The type to decode into.
            cancellation_token: The call cancellation token.

        Returns:
            The decoded value.
        """

    async def get(self, url: str, *, cancellation_token: CancellationToken | None = None) -> None:
        r"""Send a GET request and discard the response body.

        Args:
            url: The request URL.
            cancellation_token: Optional cancellation token.

        Raises:
            ArgumentValidationError: If ``url`` is empty.
            HttpStatusError: If the response status is not a success.
            CancellationError: If the token fires during the call.
        """
        async with self._send("GET", url, cancellation_token):
            pass

    async def get_as(
        self,
        url: str,
        response_type: type[TResponse],
        transform: TransformFunction[TResponse, TReturn] | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> TReturn:
        r"""Send a GET request and return the transformed, decoded body.

        Args:
            url: The request URL.
            response_type: The type the body is decoded into.
            transform: Maps ``(response, decoded)`` to the return value.
                Defaults to the identity transform.
            cancellation_token: Optional cancellation token.

        Returns:
            The value produced by ``transform``.

        Raises:
            ArgumentValidationError: If ``url`` is empty.
            HttpStatusError: If the response status is not a success.
            CancellationError: If the token fires during the call.
        """
        return await self._send_typed("GET", url, response_type, transform, cancellation_token)

    async def delete(
        self, url: str, *, cancellation_token: CancellationToken | None = None
    ) -> None:
        r"""Send a DELETE request and discard the response body.

        See ``get`` for the arguments and errors.
        """
        async with self._send("DELETE", url, cancellation_token):
            pass

    async def delete_as(
        self,
        url: str,
        response_type: type[TResponse],
        transform: TransformFunction[TResponse, TReturn] | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> TReturn:
        r"""Send a DELETE request and return the transformed, decoded
        body.

        See ``get_as`` for the arguments and errors.
        """
        return await self._send_typed("DELETE", url, response_type, transform, cancellation_token)

    async def post(
        self,
        url: str,
        request: Any,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> None:
        r"""Send a POST request with a body and discard the response
        body.

        Args:
            url: The request URL.
            request: The payload, converted by ``serialize_request``.
            cancellation_token: Optional cancellation token.

        Raises:
            ArgumentValidationError: If ``url`` is empty.
            HttpStatusError: If the response status is not a success.
            CancellationError: If the token fires during the call.
        """
        async with self._send("POST", url, cancellation_token, request):
            pass

    async def post_as(
        self,
        url: str,
        request: Any,
        response_type: type[TResponse],
        transform: TransformFunction[TResponse, TReturn] | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> TReturn:
        r"""Send a POST request with a body and return the transformed,
        decoded response body.

        Args:
            url: The request URL.
            request: The payload, converted by ``serialize_request``.
            response_type: The type the response body is decoded into.
            transform: Maps ``(response, decoded)`` to the return value.
                Defaults to the identity transform.
            cancellation_token: Optional cancellation token.

        Returns:
            The value produced by ``transform``.
        """
        return await self._send_typed(
            "POST", url, response_type, transform, cancellation_token, request
        )

    async def _send_typed(
        self,
        method: str,
        url: str,
        response_type: type[TResponse],
        transform: TransformFunction[TResponse, TReturn] | None,
        cancellation_token: CancellationToken | None,
        request: Any = _NO_BODY,
    ) -> TReturn:
        transform = identity_transform if transform is None else transform
        async with self._send(method, url, cancellation_token, request) as response:
            typed = await run_cancellable(
                self.deserialize_response(response, response_type, cancellation_token),
                cancellation_token,
            )
            return transform(response, typed)

    @asynccontextmanager
    async def _send(
        self,
        method: str,
        url: str,
        cancellation_token: CancellationToken | None,
        request: Any = _NO_BODY,
    ) -> AsyncIterator[httpx.Response]:
        r"""Run the pipeline up to response validation.

        The validated response is yielded and closed on every exit path.
        """
        validate_url(url)
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()

        formatted_url = validate_url(
            await run_cancellable(self.format_url(url, cancellation_token), cancellation_token)
        )
        if formatted_url != url:
            logger.debug(f"Formatted {method} URL {url} as {formatted_url}")

        async with self._transport_provider.acquire() as transport:
            kwargs = {} if request is _NO_BODY else self.serialize_request(request)
            http_request = transport.build_request(method, formatted_url, **kwargs)
            log_structured(
                logger,
                logging.DEBUG,
                f"Sending {method} request to {http_request.url}",
                event="request.dispatch",
                method=method,
                url=str(http_request.url),
            )
            start_time = time.monotonic()
            response = await run_cancellable(
                transport.send(http_request, stream=True), cancellation_token
            )
            # process_response may replace the response, both are released
            validated = response
            try:
                # The token may fire while the response is being returned
                if cancellation_token is not None:
                    cancellation_token.raise_if_cancelled()
                validated = await run_cancellable(
                    self.process_response(response, cancellation_token), cancellation_token
                )
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{method} request to {http_request.url} returned status "
                    f"{response.status_code}",
                    event="request.complete",
                    method=method,
                    url=str(http_request.url),
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 3),
                )
                yield validated
            finally:
                try:
                    if validated is not response:
                        await validated.aclose()
                finally:
                    await response.aclose()
