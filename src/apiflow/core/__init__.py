r"""Core shared configuration and validation logic."""

from __future__ import annotations

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_TRANSPORT_NAME",
    "TransportConfig",
    "validate_not_none",
    "validate_text",
    "validate_timeout",
    "validate_url",
]

from apiflow.core.config import DEFAULT_TIMEOUT, DEFAULT_TRANSPORT_NAME, TransportConfig
from apiflow.core.validation import (
    validate_not_none,
    validate_text,
    validate_timeout,
    validate_url,
)
