r"""Argument validation utilities for the request pipeline.

All the validators raise ``ArgumentValidationError`` and are called
before any I/O happens.
"""

from __future__ import annotations

__all__ = ["validate_not_none", "validate_text", "validate_timeout", "validate_url"]

from typing import TYPE_CHECKING, Any

from apiflow.exceptions import ArgumentValidationError

if TYPE_CHECKING:
    import httpx


def validate_text(value: str | None, name: str) -> str:
    r"""Validate that a string argument is not None, empty or
    whitespace.

    Args:
        value: The value to validate.
        name: The argument name, used in the error message.

    Returns:
        The validated value, unchanged.

    Raises:
        ArgumentValidationError: If the value is None, not a string,
            empty or only whitespace.

    Example:
        ```pycon
        >>> from apiflow.core.validation import validate_text
        >>> validate_text("default", "transport_name")
        'default'
        >>> validate_text("  ", "transport_name")  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        apiflow.exceptions.ArgumentValidationError: transport_name must be a non-empty string, got '  '

        ```
    """
    if not isinstance(value, str) or not value.strip():
        msg = f"{name} must be a non-empty string, got {value!r}"
        raise ArgumentValidationError(name, msg)
    return value


def validate_url(url: str | None) -> str:
    r"""Validate a request URL.

    Args:
        url: The URL to validate.

    Returns:
        The validated URL, unchanged.

    Raises:
        ArgumentValidationError: If the URL is None, empty or whitespace.

    Example:
        ```pycon
        >>> from apiflow.core.validation import validate_url
        >>> validate_url("/items/42")
        '/items/42'

        ```
    """
    return validate_text(url, "url")


def validate_not_none(value: Any, name: str) -> Any:
    r"""Validate that a required argument is not None.

    Args:
        value: The value to validate.
        name: The argument name, used in the error message.

    Returns:
        The validated value, unchanged.

    Raises:
        ArgumentValidationError: If the value is None.
    """
    if value is None:
        msg = f"{name} must not be None"
        raise ArgumentValidationError(name, msg)
    return value


def validate_timeout(timeout: float | httpx.Timeout | None) -> None:
    r"""Validate a transport timeout.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value. ``None`` disables
            the timeout.

    Raises:
        ArgumentValidationError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from apiflow.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(None)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        apiflow.exceptions.ArgumentValidationError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ArgumentValidationError("timeout", msg)
