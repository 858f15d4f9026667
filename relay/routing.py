import os
import pkgutil
import time
from dataclasses import dataclass
from importlib import import_module
from typing import Any

from fastapi import APIRouter
from pydantic import ValidationError

from relay.api.ws.constants import INBOUND_EVENTS, EventName
from relay.exceptions import InvalidPayloadError
from relay.logging import logger
from relay.managers.connection_registry import (
    Bound,
    ConnectionRegistry,
    ConnectionState,
    Unbound,
    connection_registry,
)
from relay.schemas.events import EventContext, EventEnvelope
from relay.schemas.generic_typing import HandlerCallableType, PayloadModelType
from relay.utils.metrics import (
    ws_event_processing_duration_seconds,
    ws_messages_dropped_total,
    ws_messages_received_total,
)


@dataclass(frozen=True)
class HandlerEntry:
    handler: HandlerCallableType
    requires: type[Unbound] | type[Bound]
    payload_model: PayloadModelType | None = None


class EventRouter:
    """
    Router for inbound WebSocket events.

    Maps event names to protocol handlers, together with the connection
    state each handler requires and an optional pydantic model the payload
    must satisfy. Events that are unknown, arrive in the wrong state or carry
    an invalid payload are dropped without reaching a handler.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        """
        Args:
            registry: Connection registry used to look up connection state.
        """
        self.registry = registry
        self.handlers_registry: dict[EventName, HandlerEntry] = {}

    def register(
        self,
        *events: EventName,
        requires: type[Unbound] | type[Bound] = Bound,
        payload_model: PayloadModelType | None = None,
    ):
        """
        Decorator registering a handler for one or more inbound events.

        Args:
            *events: Event names the handler serves.
            requires: Connection state the handler needs, ``Unbound`` or
                ``Bound``.
            payload_model: Optional pydantic model validating the payload.
                Without it the raw payload is passed through untouched.

        Raises:
            ValueError: If a different handler is already registered for
                one of the events.
        """

        def decorator(func: HandlerCallableType):
            for event in events:
                # Re-importing a handler module registers the same function
                if event in self.handlers_registry:
                    if self.handlers_registry[event].handler != func:
                        raise ValueError(
                            f"Different handler already registered for event {event}"
                        )
                    continue

                self.handlers_registry[event] = HandlerEntry(
                    handler=func,
                    requires=requires,
                    payload_model=payload_model,
                )
                logger.info(
                    f"Register {func.__module__}.{func.__name__} for event: "
                    f"{event} (requires {requires.__name__})"
                )

            return func

        return decorator

    def _drop(self, reason: str, message: str) -> None:
        ws_messages_dropped_total.labels(reason=reason).inc()
        logger.debug(message)

    def _resolve_event(self, name: str) -> EventName | None:
        try:
            event = EventName(name)
        except ValueError:
            return None
        return event if event in INBOUND_EVENTS else None

    def _validate_payload(
        self, event: EventName, entry: HandlerEntry, data: Any
    ) -> Any:
        """
        Validate the payload against the handler's model, if it has one.

        Raises:
            InvalidPayloadError: If validation fails.
        """
        if entry.payload_model is None:
            return data

        try:
            return entry.payload_model.model_validate(data)
        except ValidationError as e:
            raise InvalidPayloadError(
                str(event), f"{e.error_count()} validation error(s)"
            ) from e

    def _state_allows(
        self, state: ConnectionState, entry: HandlerEntry
    ) -> bool:
        return isinstance(state, entry.requires)

    async def handle_event(
        self, connection_id: str, envelope: EventEnvelope
    ) -> bool:
        """
        Route an inbound event to its handler.

        Args:
            connection_id: Connection the event arrived on.
            envelope: Decoded event frame.

        Returns:
            True if a handler ran, False if the event was dropped.
        """
        event = self._resolve_event(envelope.event)
        if event is None or event not in self.handlers_registry:
            self._drop(
                "unknown_event",
                f"Dropping unknown event {envelope.event!r} from {connection_id}",
            )
            return False

        state = self.registry.get_state(connection_id)
        if state is None:
            self._drop(
                "invalid_state",
                f"Dropping {event} from unregistered connection {connection_id}",
            )
            return False

        entry = self.handlers_registry[event]
        if not self._state_allows(state, entry):
            if isinstance(state, Bound):
                logger.warning(
                    f"Ignoring {event} from {connection_id}: already in room "
                    f"{state.room_id} as {state.user_id}"
                )
                ws_messages_dropped_total.labels(reason="invalid_state").inc()
            else:
                self._drop(
                    "invalid_state",
                    f"Dropping {event} from {connection_id}: not in a room yet",
                )
            return False

        try:
            data = self._validate_payload(event, entry, envelope.data)
        except InvalidPayloadError as e:
            self._drop("invalid_payload", f"{e} (connection {connection_id})")
            return False

        ws_messages_received_total.labels(event=event.value).inc()

        start_time = time.time()
        await entry.handler(
            EventContext(
                connection_id=connection_id, event=event.value, state=state
            ),
            data,
        )
        ws_event_processing_duration_seconds.labels(
            event=event.value
        ).observe(time.time() - start_time)

        return True


event_router = EventRouter(connection_registry)


# Track registered modules to prevent duplicate logging
_registered_http_modules: set[str] = set()
_registered_ws_modules: set[str] = set()


def collect_subrouters() -> APIRouter:
    """
    Collects all HTTP and WebSocket routers of the application.

    Every module in ``api/http`` and ``api/ws/consumers`` exposes a
    ``router`` attribute, which is included in the returned router.
    """
    main_router: APIRouter = APIRouter()

    relay_dir = os.path.dirname(__file__)
    package_name = os.path.basename(relay_dir)

    for _, module, _ in pkgutil.iter_modules([f"{relay_dir}/api/http"]):
        api = import_module(f".{module}", package=f"{package_name}.api.http")
        main_router.include_router(api.router)

        if module not in _registered_http_modules:
            logger.info(f'Register "{module}" api')
            _registered_http_modules.add(module)

    for _, module, _ in pkgutil.iter_modules([f"{relay_dir}/api/ws/consumers"]):
        ws_consumer = import_module(
            f".{module}", package=f"{package_name}.api.ws.consumers"
        )
        main_router.include_router(ws_consumer.router)

        if module not in _registered_ws_modules:
            logger.info(f'Register "{module}" websocket consumer')
            _registered_ws_modules.add(module)

    return main_router
