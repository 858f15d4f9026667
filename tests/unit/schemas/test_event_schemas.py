"""
Tests for the relay's event schemas.

This module tests the Vector3 field, inbound payload validation and the
JSON encoding of outbound events.
"""

import json

import pytest
from pydantic import TypeAdapter, ValidationError

from relay.api.ws.constants import EventName
from relay.fields.vector3 import Vector3
from relay.schemas.events import (
    EventEnvelope,
    JoinRoomData,
    UserJoinedModel,
    UserTransformData,
    encode_event,
)
from relay.schemas.member import MemberModel


class TestVector3:
    """Test the Vector3 field type."""

    adapter = TypeAdapter(Vector3)

    def test_list_form(self):
        assert self.adapter.validate_python([1, 2, 3]) == (1.0, 2.0, 3.0)

    def test_mapping_form(self):
        """Editors may send vectors as {x, y, z} objects."""
        assert self.adapter.validate_python({"x": 1, "y": 2.5, "z": -3}) == (
            1.0,
            2.5,
            -3.0,
        )

    def test_serializes_as_list(self):
        assert self.adapter.dump_python((1.0, 2.0, 3.0)) == [1.0, 2.0, 3.0]

    @pytest.mark.parametrize(
        "value",
        [
            [1, 2],
            [1, 2, 3, 4],
            {"x": 1, "y": 2},
            ["a", "b", "c"],
            "1,2,3",
            None,
            [float("nan"), 0, 0],
            [0, float("inf"), 0],
            {"x": 0, "y": 0, "z": float("-inf")},
        ],
    )
    def test_rejects_invalid_vectors(self, value):
        with pytest.raises(ValidationError):
            self.adapter.validate_python(value)


class TestJoinRoomData:
    """Test join-room payload validation."""

    def test_minimal_join(self):
        data = JoinRoomData.model_validate({"userId": "u1", "roomId": "lobby"})

        assert data.user_id == "u1"
        assert data.room_id == "lobby"
        assert data.username is None
        assert data.position is None
        assert data.rotation is None

    def test_blank_username_is_treated_as_missing(self):
        data = JoinRoomData.model_validate(
            {"userId": "u1", "roomId": "lobby", "username": "   "}
        )

        assert data.username is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"userId": "u1"},
            {"roomId": "lobby"},
            {"userId": "", "roomId": "lobby"},
            {"userId": "u1", "roomId": ""},
            {"userId": 7, "roomId": "lobby"},
        ],
    )
    def test_requires_user_and_room(self, payload):
        with pytest.raises(ValidationError):
            JoinRoomData.model_validate(payload)


class TestUserTransformData:
    """Test user-transform payload handling."""

    def test_requires_position_and_rotation(self):
        with pytest.raises(ValidationError):
            UserTransformData.model_validate({"position": [0, 0, 0]})

    def test_relay_payload_keeps_sender_format(self):
        """Vectors and unknown keys are relayed as sent; userId is the sender."""
        data = UserTransformData.model_validate(
            {
                "userId": "spoofed",
                "position": {"x": 1, "y": 2, "z": 3},
                "rotation": [0, 1, 0],
                "velocity": [0.5, 0, 0],
            }
        )

        assert data.position == (1.0, 2.0, 3.0)
        assert data.relay_payload("u1") == {
            "userId": "u1",
            "position": {"x": 1, "y": 2, "z": 3},
            "rotation": [0, 1, 0],
            "velocity": [0.5, 0, 0],
        }


class TestEncodeEvent:
    """Test outbound event encoding."""

    def test_encodes_model_with_camel_case(self):
        frame = encode_event(
            EventName.USER_JOINED,
            UserJoinedModel(
                user_id="u1",
                username="Alice",
                position=(1.0, 2.0, 3.0),
                timestamp=1700000000000,
            ),
        )

        assert json.loads(frame) == {
            "event": "user-joined",
            "data": {
                "userId": "u1",
                "username": "Alice",
                "position": [1.0, 2.0, 3.0],
                "timestamp": 1700000000000,
            },
        }

    def test_encodes_list_of_members(self):
        members = [
            MemberModel(user_id="u1", username="Alice", connection_id="c1"),
            MemberModel(user_id="u2", username="Bob"),
        ]

        decoded = json.loads(encode_event(EventName.EXISTING_USERS, members))

        assert [member["userId"] for member in decoded["data"]] == ["u1", "u2"]
        assert all("connectionId" not in member for member in decoded["data"])

    def test_passes_raw_payload_through(self):
        payload = {"id": "cube", "children": [{"id": 1}], "visible": False}

        assert json.loads(encode_event("add-object", payload)) == {
            "event": "add-object",
            "data": payload,
        }


class TestEventEnvelope:
    """Test inbound envelope validation."""

    def test_data_defaults_to_none(self):
        assert EventEnvelope.model_validate({"event": "chat-message"}).data is None

    @pytest.mark.parametrize("value", [[], "join-room", {"data": {}}, 42])
    def test_rejects_non_envelopes(self, value):
        with pytest.raises(ValidationError):
            EventEnvelope.model_validate(value)
