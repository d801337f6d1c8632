"""Mock factories for relay tests."""

from tests.mocks.websocket_mocks import (
    create_asgi_channel,
    create_mock_websocket,
    sent_responses,
)

__all__ = [
    "create_asgi_channel",
    "create_mock_websocket",
    "sent_responses",
]
