r"""apiflow - Base abstraction for typed HTTP API clients.

This package standardizes the lifecycle of every HTTP call made by an API
client built on top of ``httpx``: URL preparation, dispatch, response
validation and response transformation. Concrete clients only supply the
payload shapes and any cross-cutting behavior (auth injection, URL
rewriting, custom error mapping) through well-defined extension points.

Key Features:
    - One pipeline shared by GET, POST and DELETE, body-less and typed forms
    - Transform functions mapping ``(response, decoded)`` to any return value
    - Fixed transport or named transport resolved from a factory per call
    - Pluggable URL formatting and response validation hooks
    - Cooperative cancellation with guaranteed release of every response
    - JSON reference client backed by pydantic

Example:
    ```pycon
    >>> import httpx
    >>> from apiflow import JsonApiClient, QueryParamsUrlFormatter
    >>> client = JsonApiClient(
    ...     httpx.AsyncClient(base_url="https://api.example.com"),
    ...     url_formatter=QueryParamsUrlFormatter({"api_key": "secret"}),
    ... )
    >>> item = await client.get_as("/items/42", dict)  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_TRANSPORT_NAME",
    "ApiClient",
    "ApiClientError",
    "ArgumentValidationError",
    "BaseUrlFormatter",
    "CancellationError",
    "CancellationToken",
    "DeserializationError",
    "ErrorMappingValidator",
    "HttpStatusError",
    "IdentityUrlFormatter",
    "JsonApiClient",
    "QueryParamsUrlFormatter",
    "ResponseValidator",
    "SuccessStatusValidator",
    "TransformFunction",
    "TransportConfig",
    "TransportFactory",
    "TransportKind",
    "TransportProvider",
    "TransportRegistry",
    "UrlFormatter",
    "__version__",
    "identity_transform",
    "pluck",
]

from importlib.metadata import PackageNotFoundError, version

from apiflow.cancellation import CancellationToken
from apiflow.client import ApiClient
from apiflow.core.config import DEFAULT_TIMEOUT, DEFAULT_TRANSPORT_NAME, TransportConfig
from apiflow.exceptions import (
    ApiClientError,
    ArgumentValidationError,
    CancellationError,
    DeserializationError,
    HttpStatusError,
)
from apiflow.hooks import (
    BaseUrlFormatter,
    ErrorMappingValidator,
    IdentityUrlFormatter,
    QueryParamsUrlFormatter,
    ResponseValidator,
    SuccessStatusValidator,
    UrlFormatter,
)
from apiflow.json_client import JsonApiClient
from apiflow.transform import TransformFunction, identity_transform, pluck
from apiflow.transport import (
    TransportFactory,
    TransportKind,
    TransportProvider,
    TransportRegistry,
)

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
