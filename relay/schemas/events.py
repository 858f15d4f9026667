import json
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from relay.fields.vector3 import Vector3
from relay.managers.connection_registry import ConnectionState


class EventEnvelope(BaseModel):
    """
    A single frame exchanged over a relay connection.

    Attributes:
        event: Event name, e.g. ``join-room``.
        data: Event payload. Opaque for relayed scene events.
    """

    event: str
    data: Any = None


def encode_event(event: str, payload: Any) -> str:
    """
    Serialize an outbound event into a JSON text frame.

    Pydantic models are dumped with their camelCase aliases, lists of models
    item by item; everything else is passed to ``json.dumps`` as is.
    """
    return json.dumps({"event": str(event), "data": _to_jsonable(payload)})


def _to_jsonable(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    if isinstance(payload, (list, tuple)):
        return [_to_jsonable(item) for item in payload]
    return payload


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JoinRoomData(_CamelModel):
    """
    Payload of an inbound ``join-room`` event.

    ``user_id`` and ``room_id`` must be non-empty strings; position and
    rotation fall back to the origin when omitted or null.
    """

    user_id: str = Field(min_length=1)
    room_id: str = Field(min_length=1)
    username: str | None = None
    position: Vector3 | None = None
    rotation: Vector3 | None = None

    @field_validator("username", mode="before")
    @classmethod
    def _blank_username(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UserTransformData(_CamelModel):
    """
    Payload of an inbound ``user-transform`` event.

    Position and rotation are validated for the room store, but the
    payload is relayed as the sender wrote it: vectors keep their list or
    ``{x, y, z}`` form and unknown keys pass through.
    """

    model_config = ConfigDict(extra="allow")

    user_id: str | None = None
    position: Vector3
    rotation: Vector3

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_raw(cls, data: Any, handler: Any) -> "UserTransformData":
        model = handler(data)
        if isinstance(data, dict):
            model._raw = dict(data)
        return model

    def relay_payload(self, user_id: str) -> dict[str, Any]:
        """Build the outbound payload, tagged with the sender's user id."""
        payload = {
            key: value
            for key, value in self._raw.items()
            if key not in ("userId", "user_id")
        }
        payload["userId"] = user_id
        return payload


class UserJoinedModel(_CamelModel):
    user_id: str
    username: str
    position: Vector3
    timestamp: int


class UserLeftModel(_CamelModel):
    user_id: str
    timestamp: int


@dataclass(frozen=True)
class EventContext:
    """
    What a protocol handler knows about the event it is serving.

    Attributes:
        connection_id: Connection the event arrived on.
        event: Name of the event.
        state: Connection state at the time the event was routed.
    """

    connection_id: str
    event: str
    state: ConnectionState
