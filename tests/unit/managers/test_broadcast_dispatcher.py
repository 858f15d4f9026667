"""
Tests for the broadcast dispatcher.

This module tests room-scoped fan-out, sender exclusion, direct sends and
isolation of per-recipient delivery failures.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect

from relay.managers.broadcast_dispatcher import BroadcastDispatcher
from relay.managers.connection_registry import ConnectionRegistry
from relay.schemas.events import UserLeftModel
from tests.mocks.websocket_mocks import (
    create_failing_websocket,
    create_mock_websocket,
    sent_events,
)


def _bind(registry, ws, user_id, room_id):
    connection_id = registry.register(ws)
    registry.identify(connection_id, user_id, room_id)
    return connection_id


class TestBroadcast:
    """Tests for BroadcastDispatcher.broadcast."""

    @pytest.mark.asyncio
    async def test_broadcast_excludes_sender(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws_a, ws_b, ws_c = (create_mock_websocket() for _ in range(3))
        a = _bind(registry, ws_a, "u1", "lobby")
        _bind(registry, ws_b, "u2", "lobby")
        _bind(registry, ws_c, "u3", "lobby")

        results = await dispatcher.broadcast(
            "lobby", a, "chat-message", {"text": "hi"}
        )

        assert len(results) == 2
        assert all(result.delivered for result in results)
        ws_a.send_text.assert_not_called()
        assert sent_events(ws_b) == [
            {"event": "chat-message", "data": {"text": "hi"}}
        ]
        assert sent_events(ws_c) == sent_events(ws_b)

    @pytest.mark.asyncio
    async def test_broadcast_is_room_scoped(self):
        """Connections in other rooms and unbound ones receive nothing."""
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws_a, ws_b, ws_other, ws_unbound = (
            create_mock_websocket() for _ in range(4)
        )
        a = _bind(registry, ws_a, "u1", "lobby")
        _bind(registry, ws_b, "u2", "lobby")
        _bind(registry, ws_other, "u3", "studio")
        registry.register(ws_unbound)

        await dispatcher.broadcast("lobby", a, "add-object", {"id": 7})

        ws_b.send_text.assert_called_once()
        ws_other.send_text.assert_not_called()
        ws_unbound.send_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_without_exclusion_reaches_everyone(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws_a, ws_b = create_mock_websocket(), create_mock_websocket()
        _bind(registry, ws_a, "u1", "lobby")
        _bind(registry, ws_b, "u2", "lobby")

        results = await dispatcher.broadcast(
            "lobby", None, "user-left", UserLeftModel(user_id="u3", timestamp=1)
        )

        assert len(results) == 2
        expected = {"event": "user-left", "data": {"userId": "u3", "timestamp": 1}}
        assert sent_events(ws_a) == [expected]
        assert sent_events(ws_b) == [expected]

    @pytest.mark.asyncio
    async def test_broadcast_to_empty_room(self):
        dispatcher = BroadcastDispatcher(ConnectionRegistry())

        assert await dispatcher.broadcast("lobby", None, "chat-message", {}) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc",
        [
            WebSocketDisconnect(code=1006),
            ConnectionError("reset"),
            RuntimeError("closed"),
            ValueError("unexpected"),
        ],
    )
    async def test_failed_peer_does_not_block_others(self, exc):
        """A failing recipient is reported, the others still receive."""
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws_sender = create_mock_websocket()
        ws_broken = create_failing_websocket(exc)
        ws_ok = create_mock_websocket()
        sender = _bind(registry, ws_sender, "u1", "lobby")
        broken = _bind(registry, ws_broken, "u2", "lobby")
        ok = _bind(registry, ws_ok, "u3", "lobby")

        results = await dispatcher.broadcast(
            "lobby", sender, "object-transform", {"id": 1}
        )

        by_connection = {result.connection_id: result for result in results}
        assert by_connection[ok].delivered is True
        assert by_connection[broken].delivered is False
        assert by_connection[broken].error
        ws_ok.send_text.assert_called_once()
        # Failing peers stay registered until their transport closes
        assert broken in registry

    @pytest.mark.asyncio
    async def test_slow_peer_times_out(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry, send_timeout=0.01)

        async def never_drains(_text):
            await asyncio.sleep(1)

        ws_slow = create_mock_websocket()
        ws_slow.send_text = AsyncMock(side_effect=never_drains)
        slow = _bind(registry, ws_slow, "u1", "lobby")

        results = await dispatcher.broadcast("lobby", None, "chat-message", {})

        assert results[0].connection_id == slow
        assert results[0].delivered is False


class TestSend:
    """Tests for BroadcastDispatcher.send."""

    @pytest.mark.asyncio
    async def test_send_to_single_connection(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws = create_mock_websocket()
        connection_id = registry.register(ws)

        result = await dispatcher.send(connection_id, "existing-users", [])

        assert result.delivered is True
        assert sent_events(ws) == [{"event": "existing-users", "data": []}]

    @pytest.mark.asyncio
    async def test_send_to_unknown_connection(self):
        dispatcher = BroadcastDispatcher(ConnectionRegistry())

        result = await dispatcher.send("missing", "existing-users", [])

        assert result.delivered is False
        assert result.error == "unknown connection"
