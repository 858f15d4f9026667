from typing import Any

from fastapi import APIRouter
from pydantic import ValidationError

from relay.api.ws.websocket import RelayWebSocketEndpoint
from relay.logging import logger
from relay.routing import event_router
from relay.schemas.events import EventEnvelope
from relay.settings import app_settings
from relay.utils.metrics import ws_messages_dropped_total

router = APIRouter()


@router.websocket_route(app_settings.WS_PATH)
class Session(RelayWebSocketEndpoint):
    """
    WebSocket endpoint of a collaborative editing session.

    Each decoded frame must be an ``{"event": ..., "data": ...}`` envelope;
    it is routed through ``event_router`` to the session protocol handlers.
    """

    async def on_receive(self, websocket, data: Any):
        """
        Route a decoded frame.

        Frames that are not envelopes are dropped; the connection stays
        open.
        """
        try:
            envelope = EventEnvelope.model_validate(data)
        except ValidationError:
            ws_messages_dropped_total.labels(reason="malformed").inc()
            logger.debug(f"Received invalid envelope: {data!r}")
            return

        await event_router.handle_event(self.connection_id, envelope)
