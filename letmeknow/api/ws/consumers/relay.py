from fastapi import APIRouter
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError
from starlette.websockets import WebSocketDisconnect

from letmeknow.api.ws.constants import (
    MSG_NOT_REGISTERED,
    FrameKind,
    MessageType,
)
from letmeknow.api.ws.validation import (
    parse_message,
    parse_notification,
    parse_register,
)
from letmeknow.api.ws.websocket import InboundMessage, RelayWebSocketEndpoint
from letmeknow.exceptions import ProtocolViolationError, RelayError
from letmeknow.logging import logger
from letmeknow.managers.client_registry import client_registry
from letmeknow.routing import notification_router
from letmeknow.schemas.request import RegisterRequest
from letmeknow.schemas.response import ErrorResponse, StatusResponse
from letmeknow.settings import app_settings
from letmeknow.utils.metrics import (
    registrations_total,
    ws_messages_received_total,
    ws_requests_rejected_total,
)

router = APIRouter()


@router.websocket_route(app_settings.WS_PATH)
class Relay(RelayWebSocketEndpoint):
    """
    Notification relay endpoint.

    Every inbound frame runs through the validation pipeline and is either
    a registration, which binds a userID to the connection once, or a
    notification, which is fanned out by the notification router. Each
    `on_receive` call returns whether the connection stays open.
    """

    async def on_receive(self, websocket, message: InboundMessage) -> bool:
        """
        Handles one inbound frame.

        Malformed messages are answered with an error and end the
        connection. A notification from an unregistered connection is
        answered with an error but the connection stays open.

        Args:
            websocket: The connection the frame arrived on.
            message: Raw frame payload and its frame kind.

        Returns:
            False if the connection must be terminated.
        """
        logger.debug(f"Recv: {message.data!r}")

        try:
            document = parse_message(message.data)
            ws_messages_received_total.labels(type=document["type"]).inc()

            if document["type"] == MessageType.REGISTER:
                return await self.handle_register(
                    websocket, parse_register(document), message.frame_kind
                )

            if not await client_registry.is_registered(websocket):
                raise ProtocolViolationError(MSG_NOT_REGISTERED)

            return await self.handle_notification(
                websocket, document, message.frame_kind
            )
        except RelayError as ex:
            return await self.reject(websocket, ex, message.frame_kind)

    async def handle_register(
        self,
        websocket,
        request: RegisterRequest,
        frame_kind: FrameKind,
    ) -> bool:
        result = await client_registry.register(websocket, request.user_id)
        registrations_total.labels(status=result.reason).inc()

        if result.succeeded:
            logger.info(f"Client registered with userID: {request.user_id}")
        logger.info(f"Connected clients: {await client_registry.snapshot()}")

        response = (
            StatusResponse.registered()
            if result.succeeded
            else StatusResponse.already_registered()
        )
        return await self.send_reply(websocket, response, frame_kind)

    async def handle_notification(
        self, websocket, document: dict, frame_kind: FrameKind
    ) -> bool:
        request = parse_notification(document)
        logger.debug(f"Request data: {request.data}")

        try:
            payload = request.data.model_dump_json(exclude_none=True)
        except (PydanticSerializationError, ValueError) as ex:
            logger.error(f"Error marshalling JSON: {ex}")
            return False

        report = await notification_router.deliver(
            payload, request.targets, websocket, frame_kind
        )
        if report.failed:
            logger.warning(
                f"Notification delivered to {report.delivered} client(s), "
                f"{report.failed} failed, {report.skipped} skipped"
            )

        return await self.send_reply(
            websocket, StatusResponse.notification_sent(), frame_kind
        )

    async def reject(
        self, websocket, ex: RelayError, frame_kind: FrameKind
    ) -> bool:
        """Answers a rejected request with an error response."""
        logger.warning(
            f"{ex.message}" + (f": {ex.error}" if ex.error else "")
        )
        ws_requests_rejected_total.labels(reason=type(ex).__name__).inc()

        sent = await self.send_reply(
            websocket,
            ErrorResponse(message=ex.message, error=ex.error),
            frame_kind,
        )
        return sent and not ex.terminates_connection

    async def send_reply(
        self, websocket, response: BaseModel, frame_kind: FrameKind
    ) -> bool:
        """
        Writes a response to the connection.

        Returns:
            False if the write failed, which ends the connection.
        """
        try:
            await websocket.send_response(response, frame_kind)
        except PydanticSerializationError as e:
            logger.error(f"Error marshalling JSON: {e}")
            return False
        except (WebSocketDisconnect, OSError, RuntimeError) as e:
            logger.warning(f"Error writing message: {e}")
            return False
        return True
