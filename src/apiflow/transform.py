r"""Transform functions applied to typed responses.

A transform function maps the raw ``httpx.Response`` and the payload
decoded from it to the value returned to the caller. It lets a client
decode the body into one shape (e.g. an envelope) and expose another.
"""

from __future__ import annotations

__all__ = ["TransformFunction", "identity_transform", "pluck"]

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import httpx

TResponse = TypeVar("TResponse")
TReturn = TypeVar("TReturn")

TransformFunction = Callable[[httpx.Response, TResponse], TReturn]


def identity_transform(response: httpx.Response, typed: TResponse) -> TResponse:  # noqa: ARG001
    r"""Return the typed payload unchanged.

    Args:
        response: The raw response. Ignored.
        typed: The decoded payload.

    Returns:
        ``typed``.

    Example:
        ```pycon
        >>> import httpx
        >>> from apiflow.transform import identity_transform
        >>> identity_transform(httpx.Response(200), {"id": 42})
        {'id': 42}

        ```
    """
    return typed


def pluck(name: str) -> TransformFunction[Any, Any]:
    r"""Return a transform that extracts one field of the typed payload.

    Mappings are indexed by key, any other object is read by attribute.

    Args:
        name: The key or attribute name to extract.

    Returns:
        The transform function.

    Example:
        ```pycon
        >>> import httpx
        >>> from apiflow.transform import pluck
        >>> pluck("id")(httpx.Response(200), {"id": 42, "name": "foo"})
        42

        ```
    """

    def transform(response: httpx.Response, typed: Any) -> Any:  # noqa: ARG001
        if isinstance(typed, Mapping):
            return typed[name]
        return getattr(typed, name)

    return transform
