"""
Pytest configuration and fixtures for testing.

Every test gets its own client registry and notification router, patched
into the modules that use the process-wide instances.
"""

from unittest.mock import patch

import pytest

from letmeknow.managers.client_registry import ClientRegistry
from letmeknow.routing import NotificationRouter


@pytest.fixture
def registry():
    """
    Provides an empty ClientRegistry.

    Returns:
        ClientRegistry: Fresh registry instance
    """
    return ClientRegistry()


@pytest.fixture
def router(registry):
    """
    Provides a fail-fast NotificationRouter bound to the registry fixture.

    Returns:
        NotificationRouter: Router instance
    """
    return NotificationRouter(registry, fail_fast=True)


@pytest.fixture
def relay_state(registry, router):
    """
    Patches the registry and router fixtures over the module-level
    instances used by the WebSocket endpoint and the health endpoint.

    Yields:
        tuple[ClientRegistry, NotificationRouter]: The patched instances
    """
    with (
        patch("letmeknow.api.ws.websocket.client_registry", registry),
        patch("letmeknow.api.ws.consumers.relay.client_registry", registry),
        patch("letmeknow.api.ws.consumers.relay.notification_router", router),
        patch("letmeknow.api.http.health.client_registry", registry),
    ):
        yield registry, router


@pytest.fixture
def mock_websocket():
    """
    Provides a mock relay WebSocket connection.

    Returns:
        MagicMock: Mocked RelayWebSocket instance
    """
    from tests.mocks.websocket_mocks import create_mock_websocket

    return create_mock_websocket()


def create_relay_consumer():
    """
    Factory function to create a Relay endpoint instance outside of an
    ASGI server.

    Returns:
        Relay: Endpoint instance
    """
    from letmeknow.api.ws.consumers.relay import Relay

    consumer = Relay(scope={"type": "websocket"}, receive=None, send=None)
    consumer.connection_id = "test-1234"
    consumer.address = "127.0.0.1:5000"
    return consumer
