from dataclasses import dataclass, field

from relay.logging import logger
from relay.schemas.member import MemberModel

Vector = tuple[float, float, float]


@dataclass(frozen=True)
class JoinResult:
    """
    Outcome of ``RoomStore.join``.

    Attributes:
        is_new_room: True if the join created the room.
        existing_members: Members already in the room, excluding the joiner.
    """

    is_new_room: bool
    existing_members: list[MemberModel] = field(default_factory=list)


@dataclass(frozen=True)
class LeaveResult:
    """
    Outcome of ``RoomStore.leave``.

    Attributes:
        removed: True if a member entry was deleted.
        room_became_empty: True if the room was deleted as a result.
    """

    removed: bool
    room_became_empty: bool


class RoomStore:
    """
    Process-wide mapping of room ids to their members.

    Rooms are created on first join and deleted as soon as their last member
    leaves. Every method is a synchronous in-memory operation, which keeps
    mutations serialized when the store is only used from the event loop.

    Member entries remember the connection that owns them. When
    ``connection_id`` is passed to ``update_transform`` or ``leave``, the
    operation only applies to the entry if that connection still owns it,
    so a superseded connection cannot move or remove its successor.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, dict[str, MemberModel]] = {}

    def join(
        self,
        room_id: str,
        user_id: str,
        username: str,
        position: Vector,
        rotation: Vector,
        connection_id: str | None = None,
    ) -> JoinResult:
        """
        Add a member to a room, creating the room if needed.

        Joining with a ``user_id`` already present overwrites the entry;
        the last join wins.

        Returns:
            JoinResult with the members the joiner should be told about.
        """
        is_new_room = room_id not in self.rooms
        members = self.rooms.setdefault(room_id, {})

        if user_id in members:
            logger.debug(
                f"User {user_id} re-joined room {room_id}, replacing entry"
            )

        members[user_id] = MemberModel(
            user_id=user_id,
            username=username,
            position=position,
            rotation=rotation,
            connection_id=connection_id,
        )

        if is_new_room:
            logger.info(f"Room {room_id} created")

        return JoinResult(
            is_new_room=is_new_room,
            existing_members=self.members_except(room_id, user_id),
        )

    def _owned_member(
        self, room_id: str, user_id: str, connection_id: str | None
    ) -> MemberModel | None:
        member = self.rooms.get(room_id, {}).get(user_id)
        if member is None:
            return None
        if connection_id is not None and member.connection_id != connection_id:
            return None
        return member

    def update_transform(
        self,
        room_id: str,
        user_id: str,
        position: Vector,
        rotation: Vector,
        connection_id: str | None = None,
    ) -> bool:
        """
        Update a member's position and rotation in place.

        Returns:
            True if the member was updated, False if it is absent (a stale
            message after a leave) or owned by another connection.
        """
        member = self._owned_member(room_id, user_id, connection_id)
        if member is None:
            return False

        member.position = position
        member.rotation = rotation
        return True

    def leave(
        self, room_id: str, user_id: str, connection_id: str | None = None
    ) -> LeaveResult:
        """
        Remove a member, deleting the room once it is empty.
        """
        if self._owned_member(room_id, user_id, connection_id) is None:
            return LeaveResult(removed=False, room_became_empty=False)

        members = self.rooms[room_id]
        del members[user_id]

        if members:
            return LeaveResult(removed=True, room_became_empty=False)

        del self.rooms[room_id]
        logger.info(f"Room {room_id} is empty, removed")
        return LeaveResult(removed=True, room_became_empty=True)

    def members_except(self, room_id: str, user_id: str) -> list[MemberModel]:
        """List the members of a room other than ``user_id``."""
        return [
            member
            for member_id, member in self.rooms.get(room_id, {}).items()
            if member_id != user_id
        ]

    def get_member(self, room_id: str, user_id: str) -> MemberModel | None:
        return self.rooms.get(room_id, {}).get(user_id)

    def has_room(self, room_id: str) -> bool:
        return room_id in self.rooms

    def room_ids(self) -> list[str]:
        return list(self.rooms)

    def room_count(self) -> int:
        return len(self.rooms)

    def member_count(self) -> int:
        return sum(len(members) for members in self.rooms.values())

    def clear(self) -> None:
        self.rooms.clear()


room_store = RoomStore()
