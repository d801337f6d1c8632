"""
Mock factory functions for WebSocket testing.

Provides mock relay connections and an in-memory ASGI channel for driving
an endpoint's full lifecycle.
"""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from starlette.datastructures import Address


def create_mock_websocket(host: str = "127.0.0.1", port: int = 5000):
    """
    Creates a mock relay WebSocket connection.

    Returns:
        MagicMock: Mocked RelayWebSocket instance
    """
    from letmeknow.api.ws.websocket import RelayWebSocket

    ws_mock = MagicMock(spec=RelayWebSocket)

    # Send operations
    ws_mock.send_frame = AsyncMock()
    ws_mock.send_response = AsyncMock()
    ws_mock.send_json = AsyncMock()
    ws_mock.send_text = AsyncMock()

    # Connection lifecycle
    ws_mock.accept = AsyncMock()
    ws_mock.close = AsyncMock()

    ws_mock.client = Address(host, port)
    ws_mock.headers = {}
    ws_mock.query_params = {}

    return ws_mock


def sent_responses(ws_mock) -> list[dict[str, Any]]:
    """
    Responses written through ``send_response``, as wire dicts.

    Args:
        ws_mock: Mock created by `create_mock_websocket`

    Returns:
        list[dict]: Serialized responses in call order
    """
    return [
        json.loads(call.args[0].model_dump_json(exclude_none=True))
        for call in ws_mock.send_response.call_args_list
    ]


def create_asgi_channel(
    frames: list[str | bytes], client: tuple[str, int] = ("127.0.0.1", 5000)
):
    """
    Creates an in-memory ASGI WebSocket channel.

    The receive side yields a connect event, one receive event per frame
    and a final disconnect event. Everything the application sends is
    collected.

    Args:
        frames: Inbound frames; str for text, bytes for binary
        client: Peer address put in the scope

    Returns:
        tuple: (scope, receive, send, sent) where ``sent`` is the list of
        ASGI messages sent by the application
    """
    events: list[dict[str, Any]] = [{"type": "websocket.connect"}]
    for frame in frames:
        if isinstance(frame, bytes):
            events.append({"type": "websocket.receive", "bytes": frame})
        else:
            events.append({"type": "websocket.receive", "text": frame})
    events.append({"type": "websocket.disconnect", "code": 1000})

    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return events.pop(0)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    scope = {
        "type": "websocket",
        "path": "/websocket",
        "headers": [],
        "query_string": b"",
        "client": client,
        "subprotocols": [],
    }
    return scope, receive, send, sent
