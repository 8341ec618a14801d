r"""Configuration dataclass and defaults for transports.

This module provides configuration constants and a dataclass-based
configuration object used to build the ``httpx.AsyncClient`` instances
that back an ``ApiClient``.
"""

from __future__ import annotations

__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_TRANSPORT_NAME", "TransportConfig"]

from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from apiflow.core.validation import validate_timeout

# Default timeout in seconds for HTTP requests
# Timeouts belong to the transport, the pipeline never enforces one
DEFAULT_TIMEOUT = 10.0

# Name resolved by a transport factory when the client does not ask for
# a specific one
DEFAULT_TRANSPORT_NAME = "default"


@dataclass
class TransportConfig:
    """Configuration for an ``httpx.AsyncClient`` transport.

    Args:
        base_url: Base URL prepended to relative request URLs.
        timeout: Maximum seconds to wait for server responses. Must be > 0
            if numeric. ``None`` disables the timeout.
        headers: Default headers sent with every request.
        follow_redirects: Whether the transport follows redirects.
        transport: Optional low-level ``httpx.AsyncBaseTransport``, e.g. a
            shared connection pool or an ``httpx.MockTransport``.

    Example:
        ```pycon
        >>> from apiflow.core.config import TransportConfig
        >>> config = TransportConfig(base_url="https://api.example.com")
        >>> config.timeout
        10.0
        >>> config.merge(timeout=30.0).timeout
        30.0
        >>> config.timeout  # Original unchanged
        10.0

        ```
    """

    base_url: str = ""
    timeout: float | httpx.Timeout | None = DEFAULT_TIMEOUT
    headers: dict[str, str] = field(default_factory=dict)
    follow_redirects: bool = False
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ArgumentValidationError: If the timeout is not positive.
        """
        validate_timeout(self.timeout)

    def merge(self, **overrides: Any) -> TransportConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new TransportConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to ``httpx.AsyncClient`` keyword
        arguments.

        Returns:
            Dictionary with the transport keyword arguments.

        Example:
            ```pycon
            >>> from apiflow.core.config import TransportConfig
            >>> TransportConfig(base_url="https://api.example.com").to_dict()["base_url"]
            'https://api.example.com'

            ```
        """
        params: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": self.timeout,
            "headers": dict(self.headers),
            "follow_redirects": self.follow_redirects,
        }
        if self.transport is not None:
            params["transport"] = self.transport
        return params

    def create_client(self, **kwargs: Any) -> httpx.AsyncClient:
        """Create a new ``httpx.AsyncClient`` from this configuration.

        Args:
            **kwargs: Extra keyword arguments passed to
                ``httpx.AsyncClient`` (e.g. ``auth``).

        Returns:
            A new, open ``httpx.AsyncClient``. The caller owns it.
        """
        return httpx.AsyncClient(**self.to_dict(), **kwargs)
