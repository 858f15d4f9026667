import uuid
from dataclasses import dataclass

from starlette.websockets import WebSocket

from relay.logging import logger


@dataclass(frozen=True)
class Unbound:
    """Connection accepted but not yet joined to a room."""


@dataclass(frozen=True)
class Bound:
    """Connection joined to ``room_id`` as ``user_id``."""

    room_id: str
    user_id: str


ConnectionState = Unbound | Bound

UNBOUND = Unbound()


@dataclass
class _Connection:
    websocket: WebSocket
    state: ConnectionState = UNBOUND


class ConnectionRegistry:
    """
    Registry of live WebSocket connections and the identity bound to each.

    Every connection starts ``Unbound`` and can be bound to a room exactly
    once. All methods are synchronous, so they are safe to call from any
    coroutine running on the event loop.
    """

    def __init__(self) -> None:
        self.connections: dict[str, _Connection] = {}

    def __len__(self) -> int:
        return len(self.connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self.connections

    def register(self, websocket: WebSocket) -> str:
        """
        Track a newly accepted WebSocket connection.

        Args:
            websocket: The accepted connection.

        Returns:
            A unique id for the connection.
        """
        connection_id = str(uuid.uuid4())
        self.connections[connection_id] = _Connection(websocket=websocket)
        logger.debug(
            f"websocket object ({id(websocket)}) registered as {connection_id}"
        )
        return connection_id

    def identify(self, connection_id: str, user_id: str, room_id: str) -> bool:
        """
        Bind a connection to a user and a room.

        A connection is bound at most once; later calls are refused.

        Returns:
            True if the binding was made, False if the connection is unknown
            or already bound.
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            return False

        if isinstance(connection.state, Bound):
            logger.warning(
                f"Connection {connection_id} is already bound to room "
                f"{connection.state.room_id} as {connection.state.user_id}"
            )
            return False

        connection.state = Bound(room_id=room_id, user_id=user_id)
        return True

    def unregister(self, connection_id: str) -> Bound | None:
        """
        Forget a connection.

        Unknown ids are ignored; this only happens when a close races with
        shutdown.

        Returns:
            The connection's binding, or None if it never joined a room.
        """
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return None

        logger.debug(
            f"websocket object ({id(connection.websocket)}) unregistered "
            f"for {connection_id}"
        )
        if isinstance(connection.state, Bound):
            return connection.state
        return None

    def get_state(self, connection_id: str) -> ConnectionState | None:
        """Return the connection's state, or None for unknown ids."""
        connection = self.connections.get(connection_id)
        return connection.state if connection else None

    def get_websocket(self, connection_id: str) -> WebSocket | None:
        connection = self.connections.get(connection_id)
        return connection.websocket if connection else None

    def connections_in_room(self, room_id: str) -> list[tuple[str, WebSocket]]:
        """
        List ``(connection_id, websocket)`` pairs bound to a room.

        Returns a snapshot, so callers may await between sends without being
        affected by connections joining or leaving.
        """
        return [
            (connection_id, connection.websocket)
            for connection_id, connection in self.connections.items()
            if isinstance(connection.state, Bound)
            and connection.state.room_id == room_id
        ]

    def clear(self) -> None:
        self.connections.clear()


connection_registry = ConnectionRegistry()
