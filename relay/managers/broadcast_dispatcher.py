import asyncio
from dataclasses import dataclass
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect

from relay.logging import logger
from relay.managers.connection_registry import (
    ConnectionRegistry,
    connection_registry,
)
from relay.schemas.events import encode_event
from relay.settings import app_settings
from relay.utils.metrics import ws_messages_sent_total


@dataclass(frozen=True)
class DeliveryResult:
    """
    Outcome of delivering one event to one connection.

    Attributes:
        connection_id: Recipient connection.
        delivered: True if the frame was handed to the transport.
        error: Failure description when ``delivered`` is False.
    """

    connection_id: str
    delivered: bool
    error: str | None = None


class BroadcastDispatcher:
    """
    Delivers outbound events to the connections bound to a room.

    Delivery is best effort: a failing recipient is logged and reported in
    the returned results, but never raises and never prevents delivery to
    the other recipients. Failing connections are left registered; they are
    cleaned up when the transport reports the close.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        send_timeout: float | None = None,
    ) -> None:
        self.registry = registry
        self.send_timeout = send_timeout

    async def _safe_send(
        self, connection_id: str, websocket: WebSocket, event: str, text: str
    ) -> DeliveryResult:
        try:
            await asyncio.wait_for(
                websocket.send_text(text), timeout=self.send_timeout
            )
        except (
            WebSocketDisconnect,
            ConnectionError,
            RuntimeError,
            asyncio.TimeoutError,
        ) as e:
            # WebSocketDisconnect: Client disconnected
            # ConnectionError: Network errors
            # RuntimeError: WebSocket in invalid state (e.g. already closed)
            # TimeoutError: Peer stopped draining its buffer
            logger.warning(
                f"Failed to send {event} to connection {connection_id}: "
                f"{e!r}"
            )
            ws_messages_sent_total.labels(event=event, result="failed").inc()
            return DeliveryResult(connection_id, delivered=False, error=repr(e))
        except Exception as e:
            logger.warning(
                f"Unexpected error sending {event} to connection "
                f"{connection_id}: {e!r}"
            )
            ws_messages_sent_total.labels(event=event, result="failed").inc()
            return DeliveryResult(connection_id, delivered=False, error=repr(e))

        ws_messages_sent_total.labels(event=event, result="delivered").inc()
        return DeliveryResult(connection_id, delivered=True)

    async def send(
        self, connection_id: str, event: str, payload: Any
    ) -> DeliveryResult:
        """
        Deliver an event to a single connection.

        Args:
            connection_id: Recipient connection.
            event: Outbound event name.
            payload: JSON-serializable payload or pydantic model(s).

        Returns:
            DeliveryResult for the recipient.
        """
        event = str(event)
        websocket = self.registry.get_websocket(connection_id)
        if websocket is None:
            logger.debug(
                f"Connection {connection_id} is gone, {event} not sent"
            )
            return DeliveryResult(
                connection_id, delivered=False, error="unknown connection"
            )

        return await self._safe_send(
            connection_id, websocket, event, encode_event(event, payload)
        )

    async def broadcast(
        self,
        room_id: str,
        exclude_connection_id: str | None,
        event: str,
        payload: Any,
    ) -> list[DeliveryResult]:
        """
        Deliver an event to every connection bound to a room.

        The payload is serialized once and sent to all recipients
        concurrently.

        Args:
            room_id: Target room.
            exclude_connection_id: Connection to skip (usually the sender),
                or None to include every connection of the room.
            event: Outbound event name.
            payload: JSON-serializable payload or pydantic model(s).

        Returns:
            One DeliveryResult per recipient.
        """
        event = str(event)
        recipients = [
            (connection_id, websocket)
            for connection_id, websocket in self.registry.connections_in_room(
                room_id
            )
            if connection_id != exclude_connection_id
        ]
        if not recipients:
            return []

        text = encode_event(event, payload)
        results = await asyncio.gather(
            *[
                self._safe_send(connection_id, websocket, event, text)
                for connection_id, websocket in recipients
            ]
        )

        failed = sum(1 for result in results if not result.delivered)
        if failed:
            logger.info(
                f"{event} reached {len(results) - failed}/{len(results)} "
                f"connections in room {room_id}"
            )

        return list(results)


broadcast_dispatcher = BroadcastDispatcher(
    connection_registry, send_timeout=app_settings.SEND_TIMEOUT_SECONDS
)
