r"""Transport acquisition strategies.

A ``TransportProvider`` is chosen once, when the client is built, and
exposes a single ``acquire()`` operation whatever the strategy is:

- ``TransportKind.FIXED``: one ``httpx.AsyncClient`` shared by every call
  for the lifetime of the client, which owns it.
- ``TransportKind.FACTORY``: a named transport resolved from a
  ``TransportFactory`` immediately before each call and never retained
  past that call.
"""

from __future__ import annotations

__all__ = [
    "TransportFactory",
    "TransportKind",
    "TransportProvider",
    "TransportRegistry",
]

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from apiflow.core.config import DEFAULT_TRANSPORT_NAME
from apiflow.core.validation import validate_not_none, validate_text
from apiflow.exceptions import ArgumentValidationError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    import httpx

    from apiflow.core.config import TransportConfig

logger: logging.Logger = logging.getLogger(__name__)


@runtime_checkable
class TransportFactory(Protocol):
    r"""Define a source of named transports."""

    def create_client(self, name: str) -> httpx.AsyncClient: ...


class TransportKind(str, Enum):
    FIXED = "fixed"
    FACTORY = "factory"


class TransportProvider:
    r"""Supply a ready-to-use transport for one call.

    Use the ``fixed`` and ``from_factory`` constructors rather than
    calling ``__init__`` directly.

    Example:
        ```pycon
        >>> import httpx
        >>> from apiflow.transport import TransportProvider
        >>> provider = TransportProvider.fixed(httpx.AsyncClient())
        >>> provider.kind
        <TransportKind.FIXED: 'fixed'>

        ```
    """

    def __init__(
        self,
        kind: TransportKind,
        *,
        transport: httpx.AsyncClient | None = None,
        factory: TransportFactory | None = None,
        name: str | None = None,
        close_after_use: bool = True,
    ) -> None:
        self._kind = TransportKind(kind)
        if self._kind is TransportKind.FIXED:
            self._transport = validate_not_none(transport, "transport")
            self._factory = None
            self._name = None
        else:
            self._transport = None
            self._factory = validate_not_none(factory, "transport_factory")
            self._name = validate_text(
                DEFAULT_TRANSPORT_NAME if name is None else name, "transport_name"
            )
        self._close_after_use = close_after_use

    @classmethod
    def fixed(cls, transport: httpx.AsyncClient) -> TransportProvider:
        r"""Create a provider bound to a single transport instance.

        Args:
            transport: The transport shared by every call. The provider
                owns it and closes it in ``aclose()``.

        Returns:
            The provider.

        Raises:
            ArgumentValidationError: If ``transport`` is None.
        """
        return cls(TransportKind.FIXED, transport=transport)

    @classmethod
    def from_factory(
        cls,
        factory: TransportFactory,
        name: str | None = None,
        *,
        close_after_use: bool = True,
    ) -> TransportProvider:
        r"""Create a provider that resolves a named transport per call.

        Args:
            factory: The factory asked for a transport on each call.
            name: The transport name. Defaults to
                ``DEFAULT_TRANSPORT_NAME``.
            close_after_use: If ``True``, each resolved transport is
                closed when the call ends. Set it to ``False`` when the
                factory pools its transports and keeps ownership of them.

        Returns:
            The provider.

        Raises:
            ArgumentValidationError: If ``factory`` is None or ``name``
                is empty.
        """
        return cls(
            TransportKind.FACTORY, factory=factory, name=name, close_after_use=close_after_use
        )

    def __repr__(self) -> str:
        if self._kind is TransportKind.FIXED:
            return f"{self.__class__.__qualname__}(kind={self._kind.value})"
        return f"{self.__class__.__qualname__}(kind={self._kind.value}, name={self._name!r})"

    @property
    def kind(self) -> TransportKind:
        return self._kind

    @property
    def name(self) -> str | None:
        r"""The transport name resolved per call, ``None`` for a fixed
        transport."""
        return self._name

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[httpx.AsyncClient]:
        r"""Acquire a transport for the duration of one call.

        The fixed transport is yielded as is and stays open. A factory
        transport is resolved on entry and released on every exit path.

        Yields:
            The transport to dispatch the request with.
        """
        if self._kind is TransportKind.FIXED:
            yield self._transport
            return

        logger.debug(f"Resolving transport {self._name!r} from {self._factory!r}")
        transport = self._factory.create_client(self._name)
        try:
            yield transport
        finally:
            if self._close_after_use:
                await transport.aclose()

    async def aclose(self) -> None:
        r"""Close the owned fixed transport.

        Factory transports are released per call, so this is a no-op for
        the factory strategy.
        """
        if self._kind is TransportKind.FIXED:
            await self._transport.aclose()


class TransportRegistry:
    r"""Implement a ``TransportFactory`` backed by named
    configurations.

    Every ``create_client`` call builds a new ``httpx.AsyncClient`` from
    the configuration registered under the requested name.

    Args:
        configs: Initial name to configuration mapping.

    Example:
        ```pycon
        >>> from apiflow.core.config import TransportConfig
        >>> from apiflow.transport import TransportRegistry
        >>> registry = TransportRegistry()
        >>> registry.register("default", TransportConfig(base_url="https://api.example.com"))
        >>> registry.names()
        ['default']

        ```
    """

    def __init__(self, configs: Mapping[str, TransportConfig] | None = None) -> None:
        self._configs: dict[str, TransportConfig] = {}
        for name, config in (configs or {}).items():
            self.register(name, config)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(names={self.names()})"

    def register(self, name: str, config: TransportConfig, **overrides: Any) -> None:
        r"""Register (or replace) the configuration of a named
        transport.

        Args:
            name: The transport name.
            config: The configuration used to build the transport.
            **overrides: Fields of ``config`` to override for this name
                only, e.g. ``base_url``. ``None`` values are ignored.

        Raises:
            ArgumentValidationError: If ``name`` is empty, ``config``
                is None or the ``timeout`` override is not positive.

        Example:
            ```pycon
            >>> from apiflow.core.config import TransportConfig
            >>> from apiflow.transport import TransportRegistry
            >>> shared = TransportConfig(timeout=5.0)
            >>> registry = TransportRegistry()
            >>> registry.register("billing", shared, base_url="https://billing.example.com")
            >>> registry.config("billing").base_url
            'https://billing.example.com'

            ```
        """
        name = validate_text(name, "transport_name")
        config = validate_not_none(config, "config")
        self._configs[name] = config.merge(**overrides) if overrides else config

    def config(self, name: str) -> TransportConfig:
        r"""Return the configuration registered under ``name``.

        Raises:
            ArgumentValidationError: If no transport is registered under
                ``name``.
        """
        config = self._configs.get(name)
        if config is None:
            msg = f"no transport registered under {name!r} (registered: {self.names()})"
            raise ArgumentValidationError("transport_name", msg)
        return config

    def names(self) -> list[str]:
        return sorted(self._configs)

    def create_client(self, name: str) -> httpx.AsyncClient:
        r"""Build a new transport from the named configuration.

        Args:
            name: The transport name.

        Returns:
            A new ``httpx.AsyncClient``. The caller owns it.

        Raises:
            ArgumentValidationError: If no transport is registered under
                ``name``.
        """
        return self.config(name).create_client()
