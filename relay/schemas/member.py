from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from relay.constants import ORIGIN_VECTOR
from relay.fields.vector3 import Vector3


class MemberModel(BaseModel):
    """
    A user's live presence record within one room.

    Attributes:
        user_id: Identifier of the user, unique within the room.
        username: Display name.
        position: Last known position.
        rotation: Last known rotation.
        connection_id: Connection that currently owns this entry. Never
            serialized to clients.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    username: str
    position: Vector3 = ORIGIN_VECTOR
    rotation: Vector3 = ORIGIN_VECTOR
    connection_id: str | None = Field(default=None, exclude=True)

    def to_wire(self) -> dict:
        """Serialize as ``{userId, username, position, rotation}``."""
        return self.model_dump(mode="json", by_alias=True)
