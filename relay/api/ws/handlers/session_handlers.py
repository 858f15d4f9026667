"""
Session protocol handlers.

A connection starts Unbound and may only ``join-room``. After a successful
join it is Bound to one room for the rest of its life, and everything it
sends is relayed to the other members of that room. Room store mutations
always complete before any broadcast is awaited.
"""

from typing import Any

from relay.api.ws.constants import OPAQUE_EVENTS, EventName
from relay.constants import ORIGIN_VECTOR
from relay.logging import logger, set_log_context
from relay.managers.broadcast_dispatcher import broadcast_dispatcher
from relay.managers.connection_registry import Bound, Unbound, connection_registry
from relay.managers.room_store import room_store
from relay.routing import event_router
from relay.schemas.events import (
    EventContext,
    JoinRoomData,
    UserJoinedModel,
    UserLeftModel,
    UserTransformData,
)
from relay.utils.metrics import record_room_stats, ws_messages_dropped_total
from relay.utils.timestamps import unix_timestamp_ms


def _publish_room_stats() -> None:
    record_room_stats(room_store.room_count(), room_store.member_count())


@event_router.register(
    EventName.JOIN_ROOM, requires=Unbound, payload_model=JoinRoomData
)
async def join_room(ctx: EventContext, data: JoinRoomData) -> None:
    """
    Bind the connection to a room and introduce it to the room's members.

    The joiner receives ``existing-users`` with everyone already present;
    the others receive ``user-joined``.
    """
    if not connection_registry.identify(
        ctx.connection_id, data.user_id, data.room_id
    ):
        return

    username = data.username or data.user_id
    position = data.position or ORIGIN_VECTOR
    rotation = data.rotation or ORIGIN_VECTOR

    result = room_store.join(
        data.room_id,
        data.user_id,
        username,
        position,
        rotation,
        connection_id=ctx.connection_id,
    )
    _publish_room_stats()

    set_log_context(room_id=data.room_id, user_id=data.user_id)
    logger.info(f"User {username} ({data.user_id}) joined room {data.room_id}")

    await broadcast_dispatcher.send(
        ctx.connection_id,
        EventName.EXISTING_USERS,
        [member.to_wire() for member in result.existing_members],
    )
    await broadcast_dispatcher.broadcast(
        data.room_id,
        ctx.connection_id,
        EventName.USER_JOINED,
        UserJoinedModel(
            user_id=data.user_id,
            username=username,
            position=position,
            timestamp=unix_timestamp_ms(),
        ),
    )


@event_router.register(
    EventName.USER_TRANSFORM, requires=Bound, payload_model=UserTransformData
)
async def user_transform(ctx: EventContext, data: UserTransformData) -> None:
    """
    Store the sender's new transform and relay it to the room.

    Transforms naming another user, or arriving after the sender's member
    entry is gone, are dropped without a broadcast.
    """
    binding: Bound = ctx.state  # type: ignore[assignment]

    if data.user_id is not None and data.user_id != binding.user_id:
        ws_messages_dropped_total.labels(reason="stale").inc()
        logger.debug(
            f"Dropping user-transform for {data.user_id} sent by "
            f"{binding.user_id}"
        )
        return

    if not room_store.update_transform(
        binding.room_id,
        binding.user_id,
        data.position,
        data.rotation,
        connection_id=ctx.connection_id,
    ):
        ws_messages_dropped_total.labels(reason="stale").inc()
        logger.debug(
            f"Dropping stale user-transform for {binding.user_id} in room "
            f"{binding.room_id}"
        )
        return

    await broadcast_dispatcher.broadcast(
        binding.room_id,
        ctx.connection_id,
        EventName.USER_TRANSFORM,
        data.relay_payload(binding.user_id),
    )


@event_router.register(*OPAQUE_EVENTS, requires=Bound)
async def relay_to_room(ctx: EventContext, data: Any) -> None:
    """Relay a scene or chat payload verbatim to the rest of the room."""
    binding: Bound = ctx.state  # type: ignore[assignment]

    await broadcast_dispatcher.broadcast(
        binding.room_id, ctx.connection_id, ctx.event, data
    )


async def end_session(connection_id: str) -> None:
    """
    Tear down a closed connection.

    Removes the member it owns and tells the rest of the room with
    ``user-left``. Connections that never joined, or whose member entry was
    taken over by a newer connection, leave silently.
    """
    binding = connection_registry.unregister(connection_id)
    if binding is None:
        return

    result = room_store.leave(
        binding.room_id, binding.user_id, connection_id=connection_id
    )
    if not result.removed:
        logger.debug(
            f"Member {binding.user_id} in room {binding.room_id} is owned by "
            f"another connection, not removed"
        )
        return

    _publish_room_stats()
    logger.info(f"User {binding.user_id} left room {binding.room_id}")

    if result.room_became_empty:
        return

    await broadcast_dispatcher.broadcast(
        binding.room_id,
        None,
        EventName.USER_LEFT,
        UserLeftModel(user_id=binding.user_id, timestamp=unix_timestamp_ms()),
    )
