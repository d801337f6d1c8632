import os
import pkgutil
import time
from dataclasses import dataclass
from importlib import import_module
from typing import Iterable

from fastapi import APIRouter
from starlette.websockets import WebSocketDisconnect

from letmeknow.api.ws.constants import FrameKind
from letmeknow.logging import logger
from letmeknow.managers.client_registry import (
    Client,
    ClientRegistry,
    RelayConnection,
    client_registry,
)
from letmeknow.settings import app_settings
from letmeknow.utils.metrics import (
    notification_delivery_failures_total,
    notification_fanout_duration_seconds,
    notifications_delivered_total,
)


def matches_target(user_id: str | None, target: str) -> bool:
    """
    Check a userID against one target.

    A target ending in ``*`` matches every userID starting with the rest
    of the target; any other target must be equal. An unset userID never
    matches.
    """
    if not user_id:
        return False
    if target.endswith("*"):
        return user_id.startswith(target[:-1])
    return user_id == target


def select_recipients(
    clients: Iterable[Client], targets: list[str], sender: RelayConnection
) -> list[Client]:
    """
    Compute the delivery set for one notification.

    With targets, every client matching any of them is selected, the
    sender included. Without targets, every client except the sender is
    selected, registered or not.
    """
    if targets:
        return [
            client
            for client in clients
            if any(matches_target(client.user_id, t) for t in targets)
        ]
    return [client for client in clients if client.connection is not sender]


@dataclass
class DeliveryReport:
    delivered: int = 0
    failed: int = 0
    skipped: int = 0


class NotificationRouter:
    """
    Fans notification payloads out to the clients of a registry.

    The registry lock is held from recipient selection until the last
    write, so no connection can join or leave in the middle of a pass.
    """

    def __init__(
        self, registry: ClientRegistry, fail_fast: bool = True
    ) -> None:
        """
        Args:
            registry: Registry to select recipients from.
            fail_fast: Abandon the rest of the pass after the first write
                failure instead of continuing with the next recipient.
        """
        self.registry = registry
        self.fail_fast = fail_fast

    async def deliver(
        self,
        payload: str,
        targets: list[str],
        sender: RelayConnection,
        frame_kind: FrameKind = FrameKind.TEXT,
    ) -> DeliveryReport:
        """
        Write a serialized notification to every selected client.

        Args:
            payload: Serialized notification.
            targets: userIDs or ``prefix*`` patterns, empty for everyone
                but the sender.
            sender: Connection the notification came from.
            frame_kind: Frame kind to write the payload with.

        Returns:
            DeliveryReport with delivered, failed and skipped counts.
        """
        report = DeliveryReport()
        start_time = time.time()

        async with self.registry.locked() as clients:
            recipients = select_recipients(clients, targets, sender)

            for index, client in enumerate(recipients):
                try:
                    await client.connection.send_frame(payload, frame_kind)
                except (
                    WebSocketDisconnect,
                    OSError,
                    RuntimeError,
                ) as e:
                    # WebSocketDisconnect: Client disconnected
                    # OSError: Network errors
                    # RuntimeError: WebSocket in invalid state
                    logger.warning(
                        f"Error writing message to client {client.display()}: {e}"
                    )
                    report.failed += 1
                    notification_delivery_failures_total.inc()
                    if self.fail_fast:
                        report.skipped = len(recipients) - index - 1
                        break
                    continue

                report.delivered += 1
                notifications_delivered_total.inc()

        notification_fanout_duration_seconds.observe(time.time() - start_time)
        logger.debug(
            f"Notification fan-out to {len(recipients)} recipient(s): {report}"
        )
        return report


notification_router = NotificationRouter(
    client_registry, fail_fast=app_settings.FANOUT_FAIL_FAST
)


# Track registered modules to prevent duplicate logging
_registered_http_modules: set[str] = set()
_registered_ws_modules: set[str] = set()


def collect_subrouters() -> APIRouter:
    """
    Collects the HTTP and WebSocket routers of the application.

    Every module in `api/http` and `api/ws/consumers` is imported and its
    `router` is included into the returned main router.
    """
    main_router: APIRouter = APIRouter()

    app_dir = os.path.dirname(__file__)
    app_name = os.path.basename(app_dir)

    for _, module, _ in pkgutil.iter_modules([f"{app_dir}/api/http"]):
        api = import_module(f".{module}", package=f"{app_name}.api.http")
        main_router.include_router(api.router)

        # Only log on first registration
        if module not in _registered_http_modules:
            logger.info(f'Register "{module}" api')
            _registered_http_modules.add(module)

    for _, module, _ in pkgutil.iter_modules([f"{app_dir}/api/ws/consumers"]):
        ws_consumer = import_module(
            f".{module}", package=f"{app_name}.api.ws.consumers"
        )
        main_router.include_router(ws_consumer.router)

        if module not in _registered_ws_modules:
            logger.info(f'Register "{module}" websocket consumer')
            _registered_ws_modules.add(module)

    return main_router
