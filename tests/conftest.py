from __future__ import annotations

import pytest

from apiflow import CancellationToken, JsonApiClient
from tests.helpers import FakeTransport, FakeTransportFactory


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Create a fake server returning ``200`` with the body
    ``{"id": 42}``."""
    return FakeTransport(status_code=200, body={"id": 42})


@pytest.fixture
def fixed_client(fake_transport: FakeTransport) -> JsonApiClient:
    """Create a JSON client bound to a single fake transport."""
    return JsonApiClient(fake_transport.create_client())


@pytest.fixture
def transport_factory(fake_transport: FakeTransport) -> FakeTransportFactory:
    """Create a factory resolving a new fake transport per call."""
    return FakeTransportFactory(fake_transport)


@pytest.fixture
def factory_client(transport_factory: FakeTransportFactory) -> JsonApiClient:
    """Create a JSON client resolving its transport from a factory."""
    return JsonApiClient(transport_factory=transport_factory)


@pytest.fixture(params=["fixed", "factory"])
def client(
    request: pytest.FixtureRequest,
    fake_transport: FakeTransport,
    transport_factory: FakeTransportFactory,
) -> JsonApiClient:
    """Create a JSON client for each transport acquisition strategy.

    Both clients share ``fake_transport`` so tests can assert on the
    requests that reached it.
    """
    if request.param == "fixed":
        return JsonApiClient(fake_transport.create_client())
    return JsonApiClient(transport_factory=transport_factory)


@pytest.fixture
def cancellation_token() -> CancellationToken:
    """Create a fresh cancellation token."""
    return CancellationToken()
