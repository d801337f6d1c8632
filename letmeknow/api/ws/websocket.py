import uuid
from typing import Any, NamedTuple, Type

from pydantic import BaseModel
from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from letmeknow.api.ws.constants import FrameKind
from letmeknow.logging import logger, set_log_context
from letmeknow.managers.client_registry import client_registry
from letmeknow.utils.metrics import ws_connections_active, ws_connections_total


class InboundMessage(NamedTuple):
    """Payload of one received frame and the kind of frame it came in."""

    data: str | bytes
    frame_kind: FrameKind


class RelayWebSocket(WebSocket):  # type: ignore[misc]
    """WebSocket that writes text or binary frames on request."""

    async def send_frame(
        self, text: str, frame_kind: FrameKind = FrameKind.TEXT
    ) -> None:
        """
        Sends a serialized message.

        Args:
            text: Serialized message.
            frame_kind: Binary frames carry the UTF-8 encoded text.
        """
        if frame_kind == FrameKind.BINARY:
            await self.send({"type": "websocket.send", "bytes": text.encode()})
        else:
            await self.send({"type": "websocket.send", "text": text})

    async def send_response(
        self, data: BaseModel, frame_kind: FrameKind = FrameKind.TEXT
    ) -> None:
        """Serializes a response model, leaving out unset optional fields."""
        await self.send_frame(data.model_dump_json(exclude_none=True), frame_kind)


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint managing one relay connection.

    Accepts every upgrade (no origin check, no authentication), tracks the
    connection in the client registry for its whole lifetime and runs the
    read loop. Subclasses implement `on_receive` and return False from it
    to end the connection.
    """

    encoding = None  # Text and binary frames are both accepted
    websocket_class: Type[WebSocket] = RelayWebSocket

    async def dispatch(self) -> None:
        """
        Runs the connection lifecycle.

        1. Accepts the connection and registers it (`on_connect`).
        2. Reads frames and hands them to `on_receive` until the peer
           disconnects or `on_receive` asks to terminate.
        3. Closes the socket if it is still open.
        4. Always deregisters the connection (`on_disconnect`).
        """
        websocket = self.websocket_class(
            self.scope, receive=self.receive, send=self.send
        )
        await self.on_connect(websocket)  # type: ignore[no-untyped-call]

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    if not await self.on_receive(websocket, data):
                        close_code = status.WS_1003_UNSUPPORTED_DATA
                        await self.close_websocket(websocket, close_code)
                        break
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except WebSocketDisconnect as exc:
            close_code = exc.code
        except Exception as exc:
            # Catch-all for unexpected errors
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)  # type: ignore[no-untyped-call]

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> InboundMessage:
        """
        Extracts the payload of a received frame.

        Parsing is left to `on_receive` so that parse errors can be
        answered on the connection.
        """
        if message.get("text") is not None:
            return InboundMessage(message["text"], FrameKind.TEXT)
        return InboundMessage(message.get("bytes") or b"", FrameKind.BINARY)

    async def close_websocket(self, websocket: WebSocket, code: int) -> None:
        """Closes the socket unless either side already closed it."""
        if (
            websocket.application_state == WebSocketState.CONNECTED
            and websocket.client_state == WebSocketState.CONNECTED
        ):
            try:
                await websocket.close(code=code)
            except (RuntimeError, OSError) as e:
                logger.debug(f"Error closing websocket: {e}")

    async def on_connect(self, websocket):  # type: ignore[no-untyped-def]
        """
        Accepts the connection and adds it to the client registry.

        A short connection id is generated and put in the log context so
        every log line of this connection can be told apart.
        """
        await super().on_connect(websocket)

        self.connection_id = str(uuid.uuid4())[:8]
        self.address = (
            f"{websocket.client.host}:{websocket.client.port}"
            if websocket.client
            else "-"
        )
        set_log_context(connection_id=self.connection_id, client=self.address)

        await client_registry.add(websocket, self.address)
        ws_connections_total.inc()
        ws_connections_active.inc()

        logger.info(f"Client connected: {self.address}")
        logger.info(f"Connected clients: {await client_registry.snapshot()}")

    async def on_disconnect(self, websocket, close_code):  # type: ignore[no-untyped-def]
        """Removes the connection from the client registry."""
        await super().on_disconnect(websocket, close_code)

        client = await client_registry.get(websocket)
        if await client_registry.remove(websocket):
            ws_connections_active.dec()

        display = client.display() if client else getattr(self, "address", "-")
        logger.info(f"Client disconnected: {display} (code {close_code})")
        logger.info(f"Connected clients: {await client_registry.snapshot()}")
