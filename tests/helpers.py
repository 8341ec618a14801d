r"""Shared test doubles for the request pipeline tests.

The fake transports are real ``httpx.AsyncClient`` instances backed by
``httpx.MockTransport``, so the pipeline runs the same code path as in
production. ``CountingStream`` records how many times a response body is
released and ``FakeTransport`` records how many requests reached the
transport.
"""

from __future__ import annotations

__all__ = [
    "BASE_URL",
    "CountingStream",
    "FakeTransport",
    "FakeTransportFactory",
    "Item",
    "ItemEnvelope",
]

import asyncio
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

BASE_URL = "https://api.example.com"


@dataclass
class Item:
    id: int
    name: str = ""


@dataclass
class ItemEnvelope:
    data: Item
    total: int = 1


class CountingStream(httpx.AsyncByteStream):
    """Response body stream counting how many times it is closed."""

    def __init__(self, content: bytes = b"") -> None:
        self._content = content
        self.close_count = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._content:
            yield self._content

    async def aclose(self) -> None:
        self.close_count += 1


class FakeTransport:
    """Fake server returning a fixed status and body.

    Args:
        status_code: The status code of every response.
        body: The response body. Non-bytes values are encoded as JSON.
        block: If ``True``, requests hang until cancelled.
    """

    def __init__(self, status_code: int = 200, body: Any = b"", block: bool = False) -> None:
        self.status_code = status_code
        self.body = body if isinstance(body, bytes) else json.dumps(body).encode()
        self.block = block
        self.requests: list[httpx.Request] = []
        self.streams: list[CountingStream] = []
        self.started = asyncio.Event()

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def close_counts(self) -> list[int]:
        return [stream.close_count for stream in self.streams]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.started.set()
        if self.block:
            await asyncio.Event().wait()
        stream = CountingStream(self.body)
        self.streams.append(stream)
        return httpx.Response(self.status_code, stream=stream)

    def create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=BASE_URL)


@dataclass
class FakeTransportFactory:
    """Transport factory building a new client per call on top of a
    ``FakeTransport``."""

    transport: FakeTransport
    names: list[str] = field(default_factory=list)
    clients: list[httpx.AsyncClient] = field(default_factory=list)

    def create_client(self, name: str) -> httpx.AsyncClient:
        self.names.append(name)
        client = self.transport.create_client()
        self.clients.append(client)
        return client
