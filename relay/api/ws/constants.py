from enum import Enum


class EventName(str, Enum):
    """
    Names of the events exchanged over a relay WebSocket connection.

    Attributes:
        JOIN_ROOM: Client asks to enter a room (inbound).
        USER_TRANSFORM: A member moved; inbound from the mover, relayed to peers.
        OBJECT_TRANSFORM: Opaque scene edit relayed to peers.
        CHAT_MESSAGE: Opaque chat payload relayed to peers.
        ADD_OBJECT: Opaque scene edit relayed to peers.
        REMOVE_OBJECT: Opaque scene edit relayed to peers.
        EXISTING_USERS: Snapshot of the room sent to a joiner (outbound).
        USER_JOINED: Announces a joiner to its peers (outbound).
        USER_LEFT: Announces a departure to the remaining peers (outbound).

    Example:
        >>> str(EventName.JOIN_ROOM)
        'join-room'
    """

    JOIN_ROOM = "join-room"
    USER_TRANSFORM = "user-transform"
    OBJECT_TRANSFORM = "object-transform"
    CHAT_MESSAGE = "chat-message"
    ADD_OBJECT = "add-object"
    REMOVE_OBJECT = "remove-object"
    EXISTING_USERS = "existing-users"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"

    def __str__(self):
        return self.value


# Events a client is allowed to send
INBOUND_EVENTS: frozenset[EventName] = frozenset(
    {
        EventName.JOIN_ROOM,
        EventName.USER_TRANSFORM,
        EventName.OBJECT_TRANSFORM,
        EventName.CHAT_MESSAGE,
        EventName.ADD_OBJECT,
        EventName.REMOVE_OBJECT,
    }
)

# Inbound events relayed to room peers without inspection
OPAQUE_EVENTS: tuple[EventName, ...] = (
    EventName.OBJECT_TRANSFORM,
    EventName.CHAT_MESSAGE,
    EventName.ADD_OBJECT,
    EventName.REMOVE_OBJECT,
)
