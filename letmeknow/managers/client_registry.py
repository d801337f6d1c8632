import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, NamedTuple, Protocol, runtime_checkable

from letmeknow.api.ws.constants import FrameKind, RegistrationStatus
from letmeknow.logging import logger


@runtime_checkable
class RelayConnection(Protocol):
    """
    Connection tracked by the registry.

    Implemented by `letmeknow.api.ws.websocket.RelayWebSocket`.
    """

    async def send_frame(
        self, text: str, frame_kind: FrameKind = FrameKind.TEXT
    ) -> None: ...


@dataclass
class Client:
    """
    One accepted connection plus its optional identity.

    Attributes:
        connection: The connection; identity key for every registry lookup.
        address: Peer address, for diagnostics only.
        user_id: Registered identity. Once non-empty it never changes.
    """

    connection: RelayConnection
    address: str = "-"
    user_id: str | None = None

    @property
    def is_registered(self) -> bool:
        return bool(self.user_id)

    def display(self) -> str:
        return f"{self.address} ({self.user_id or 'unregistered'})"


class RegistrationResult(NamedTuple):
    succeeded: bool
    reason: RegistrationStatus


class ClientRegistry:
    """
    Registry of connected clients shared by every connection task.

    All mutations and every read that feeds a delivery decision run under
    one asyncio lock, so a fan-out never sees the list grow or shrink
    while it iterates.
    """

    def __init__(self) -> None:
        self._clients: list[Client] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._clients)

    def _find(self, connection: RelayConnection) -> Client | None:
        for client in self._clients:
            if client.connection is connection:
                return client
        return None

    async def add(
        self, connection: RelayConnection, address: str = "-"
    ) -> Client:
        """
        Appends a new, unregistered client.

        Args:
            connection: The accepted connection.
            address: Peer address used in diagnostics.

        Returns:
            The created client record.
        """
        client = Client(connection=connection, address=address)
        async with self._lock:
            self._clients.append(client)
        logger.debug(
            f"websocket object ({id(connection)}) added to connected clients"
        )
        return client

    async def remove(self, connection: RelayConnection) -> bool:
        """
        Removes the client owning the connection.

        The list is rebuilt without the entry instead of deleting by
        index, and removing an unknown connection is a no-op.

        Returns:
            True if a client was removed.
        """
        async with self._lock:
            remaining = [
                client
                for client in self._clients
                if client.connection is not connection
            ]
            removed = len(remaining) != len(self._clients)
            self._clients = remaining

        if removed:
            logger.debug(
                f"websocket object ({id(connection)}) removed from connected clients"
            )
        return removed

    async def register(
        self, connection: RelayConnection, user_id: str
    ) -> RegistrationResult:
        """
        Binds a userID to the client owning the connection, once.

        Args:
            connection: The registering connection.
            user_id: Identity to store.

        Returns:
            RegistrationResult: succeeded with ``registered``, or not
            succeeded with ``already_registered`` (nothing changed) or
            ``not_connected`` (connection unknown).
        """
        async with self._lock:
            client = self._find(connection)
            if client is None:
                return RegistrationResult(
                    False, RegistrationStatus.NOT_CONNECTED
                )

            if client.is_registered:
                logger.info(
                    f"Client already registered with userID: {client.user_id}"
                )
                return RegistrationResult(
                    False, RegistrationStatus.ALREADY_REGISTERED
                )

            client.user_id = user_id

        return RegistrationResult(True, RegistrationStatus.REGISTERED)

    async def is_registered(self, connection: RelayConnection) -> bool:
        async with self._lock:
            client = self._find(connection)
            return client is not None and client.is_registered

    async def get(self, connection: RelayConnection) -> Client | None:
        async with self._lock:
            return self._find(connection)

    async def snapshot(self) -> list[str]:
        """Display strings of all clients, in connection order."""
        async with self._lock:
            return [client.display() for client in self._clients]

    async def counts(self) -> tuple[int, int]:
        """Number of connected and of registered clients."""
        async with self._lock:
            registered = sum(1 for c in self._clients if c.is_registered)
            return len(self._clients), registered

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[tuple[Client, ...]]:
        """
        Holds the registry lock and yields the current clients.

        Used for the whole scan-and-deliver step of a fan-out. Do not call
        other registry methods inside the block, the lock is not
        re-entrant.
        """
        async with self._lock:
            yield tuple(self._clients)


client_registry = ClientRegistry()
