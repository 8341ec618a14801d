r"""JSON implementation of ``ApiClient``.

Request payloads are sent as JSON and response bodies are validated
against the requested type with ``pydantic.TypeAdapter``, so any type
pydantic understands can be used as a response type: builtins,
dataclasses, ``TypedDict``, pydantic models, and their containers.
"""

from __future__ import annotations

__all__ = ["JsonApiClient"]

from functools import lru_cache
from typing import TYPE_CHECKING, Any

import pydantic

from apiflow.client import ApiClient
from apiflow.exceptions import DeserializationError

if TYPE_CHECKING:
    import httpx

    from apiflow.cancellation import CancellationToken


@lru_cache(maxsize=256)
def _get_adapter(response_type: Any) -> pydantic.TypeAdapter[Any]:
    return pydantic.TypeAdapter(response_type)


class JsonApiClient(ApiClient):
    r"""Implement an ``ApiClient`` speaking JSON.

    See ``ApiClient`` for the constructor arguments.

    Example:
        ```pycon
        >>> import asyncio
        >>> from typing import Any
        >>> import httpx
        >>> from apiflow import JsonApiClient
        >>> transport = httpx.MockTransport(
        ...     lambda request: httpx.Response(201, json={"id": 7, "name": "foo"})
        ... )
        >>> async def main():
        ...     async with JsonApiClient(
        ...         httpx.AsyncClient(transport=transport, base_url="https://api.example.com")
        ...     ) as client:
        ...         return await client.post_as("/items", {"name": "foo"}, dict[str, Any])
        ...
        >>> asyncio.run(main())
        {'id': 7, 'name': 'foo'}

        ```
    """

    def serialize_request(self, request: Any) -> dict[str, Any]:
        r"""Encode the payload as a JSON body.

        Dataclasses, pydantic models and other types supported by
        pydantic are converted to JSON-compatible values first.

        Args:
            request: The payload.

        Returns:
            ``{"content": ..., "headers": ...}`` keyword arguments with a
            JSON content type.
        """
        content = _get_adapter(type(request)).dump_json(request)
        return {"content": content, "headers": {"Content-Type": "application/json"}}

    async def deserialize_response(
        self,
        response: httpx.Response,
        response_type: Any,
        cancellation_token: CancellationToken | None = None,  # noqa: ARG002
    ) -> Any:
        r"""Validate the JSON body against ``response_type``.

        Args:
            response: The validated response.
            response_type: The type to decode into.
            cancellation_token: Unused, the pipeline races this step
                against the token.

        Returns:
            The decoded value.

        Raises:
            DeserializationError: If the body is empty, not valid JSON,
                or does not match ``response_type``.
        """
        body = await response.aread()
        if not body:
            msg = f"cannot decode an empty body as {response_type!r}"
            raise DeserializationError(response_type, msg)
        try:
            return _get_adapter(response_type).validate_json(body)
        except pydantic.ValidationError as exc:
            msg = f"cannot decode response body as {response_type!r}: {exc}"
            raise DeserializationError(response_type, msg) from exc
