"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the relay's process-wide state,
WebSocket mocks and the FastAPI test client.
"""

import os

import pytest

# Keep test runs from writing log files or serving a local bundle
os.environ.setdefault("LOG_FILE_PATH", os.devnull)
os.environ.setdefault("STATIC_DIR", "__no_static_dir__")

from fastapi.testclient import TestClient  # noqa: E402

from relay import application  # noqa: E402
from relay.managers.connection_registry import connection_registry  # noqa: E402
from relay.managers.room_store import room_store  # noqa: E402
from tests.mocks.websocket_mocks import create_mock_websocket  # noqa: E402


@pytest.fixture(autouse=True)
def reset_relay_state():
    """
    Empty the process-wide room store and connection registry around every
    test.
    """
    room_store.clear()
    connection_registry.clear()
    yield
    room_store.clear()
    connection_registry.clear()


@pytest.fixture
def mock_websocket():
    """
    Provides a mocked WebSocket connection.

    Returns:
        MagicMock: WebSocket mock with async send/receive methods
    """
    return create_mock_websocket()


@pytest.fixture
def client():
    """
    Provides a TestClient with the lifespan running.

    All WebSocket sessions opened through this client share one event loop,
    so one session's broadcast can be received by another.

    Yields:
        TestClient: Client for the full relay application
    """
    with TestClient(application()) as test_client:
        yield test_client


@pytest.fixture
def join_payload():
    """
    Provides a factory for join-room frames.

    Returns:
        Callable: Builds a join-room envelope for the given user and room
    """

    def factory(user_id, room_id="lobby", username=None, **extra):
        data = {"userId": user_id, "roomId": room_id, **extra}
        if username is not None:
            data["username"] = username
        return {"event": "join-room", "data": data}

    return factory
