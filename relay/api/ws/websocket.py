import json
import math
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from relay.api.ws.handlers.session_handlers import end_session
from relay.constants import WS_POLICY_VIOLATION_CODE
from relay.exceptions import MalformedEventError
from relay.logging import clear_log_context, logger, set_log_context
from relay.managers.connection_registry import connection_registry
from relay.settings import app_settings
from relay.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
    ws_messages_dropped_total,
)


def _reject_constant(token: str) -> float:
    raise MalformedEventError(f"non-finite number {token} in frame")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise MalformedEventError(f"number {token} is out of range")
    return value


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint speaking the relay's JSON event protocol.

    Registers each accepted connection, decodes every frame into a JSON
    value and hands it to ``on_receive``. Frames that cannot be decoded are
    dropped without closing the connection. When the transport closes, the
    session is torn down and the connection forgotten.
    """

    encoding = None  # Text and binary frames are both decoded as JSON
    websocket_class: type[WebSocket] = WebSocket

    connection_id: str | None = None

    async def dispatch(self) -> None:
        """
        Run the connection lifecycle.

        Frames are handled one at a time, in arrival order. Decoding errors
        are logged and skipped; any other error closes the connection with
        1011 and is re-raised. ``on_disconnect`` always runs.
        """
        websocket = self.websocket_class(
            self.scope, receive=self.receive, send=self.send
        )
        await self.on_connect(websocket)  # type: ignore[no-untyped-call]

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while self.connection_id is not None:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    try:
                        data = await self.decode(websocket, message)
                    except MalformedEventError as e:
                        ws_messages_dropped_total.labels(
                            reason="malformed"
                        ).inc()
                        logger.warning(f"Dropping frame: {e}")
                        continue
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)  # type: ignore[no-untyped-call]

    async def decode(self, websocket: WebSocket, message: dict[str, Any]) -> Any:
        """
        Decode a text or binary frame as UTF-8 JSON.

        Raises:
            MalformedEventError: If the frame is not valid UTF-8 JSON or
                holds a non-finite number (NaN, Infinity, 1e999).
        """
        if message.get("text") is not None:
            raw = message["text"]
        elif message.get("bytes") is not None:
            try:
                raw = message["bytes"].decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedEventError(f"binary frame is not UTF-8: {e}")
        else:
            raise MalformedEventError("empty frame")

        try:
            return json.loads(
                raw, parse_constant=_reject_constant, parse_float=_finite_float
            )
        except json.JSONDecodeError as e:
            raise MalformedEventError(f"frame is not JSON: {e}")

    def _origin_allowed(self, websocket: WebSocket) -> bool:
        if app_settings.allow_any_origin:
            return True
        return websocket.headers.get("origin") in app_settings.ALLOWED_ORIGINS

    async def on_connect(self, websocket):  # type: ignore[no-untyped-def]
        """
        Accept the connection and register it as Unbound.

        Upgrades from origins outside ALLOWED_ORIGINS are rejected with a
        policy violation close code.
        """
        if not self._origin_allowed(websocket):
            logger.warning(
                f"Rejecting websocket from origin "
                f"{websocket.headers.get('origin')!r}"
            )
            ws_connections_total.labels(status="rejected_origin").inc()
            await websocket.close(code=WS_POLICY_VIOLATION_CODE)
            return

        await super().on_connect(websocket)

        self.connection_id = connection_registry.register(websocket)
        set_log_context(connection_id=self.connection_id)

        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()
        logger.debug(f"Client connected to websocket ({self.connection_id})")

    async def on_disconnect(self, websocket, close_code):  # type: ignore[no-untyped-def]
        """
        End the session of a closed connection.

        Removes its member from the room, announces the departure to the
        remaining members and unregisters the connection.
        """
        await super().on_disconnect(websocket, close_code)

        if self.connection_id is None:
            return

        try:
            await end_session(self.connection_id)
        finally:
            ws_connections_active.dec()
            logger.debug(
                f"Client {self.connection_id} disconnected with code {close_code}"
            )
            clear_log_context()
