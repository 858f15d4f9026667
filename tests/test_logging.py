"""Tests for structured logging functionality."""

import json
import logging

import pytest

from relay.logging import (
    HumanReadableFormatter,
    StructuredJSONFormatter,
    clear_log_context,
    get_log_context,
    set_log_context,
)


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(level=logging.INFO, msg="Member joined", **extra):
    record = logging.LogRecord(
        name="relay",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


class TestLogContext:
    """Test log context management."""

    def test_set_log_context_merges_fields(self):
        set_log_context(connection_id="c1")
        set_log_context(room_id="lobby", user_id="u1")

        assert get_log_context() == {
            "connection_id": "c1",
            "room_id": "lobby",
            "user_id": "u1",
        }

    def test_set_log_context_does_not_mutate_previous_value(self):
        set_log_context(connection_id="c1")
        before = get_log_context()

        set_log_context(room_id="lobby")

        assert before == {"connection_id": "c1"}

    def test_clear_log_context(self):
        set_log_context(connection_id="c1")

        clear_log_context()

        assert get_log_context() == {}


class TestStructuredJSONFormatter:
    """Test JSON log formatting."""

    def test_includes_standard_and_context_fields(self):
        set_log_context(connection_id="c1", room_id="lobby")

        data = json.loads(StructuredJSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "relay"
        assert data["message"] == "Member joined"
        assert data["connection_id"] == "c1"
        assert data["room_id"] == "lobby"
        assert "environment" in data

    def test_includes_extra_fields(self):
        data = json.loads(
            StructuredJSONFormatter().format(_record(event="join-room"))
        )

        assert data["event"] == "join-room"

    def test_truncates_oversized_messages(self):
        data = json.loads(
            StructuredJSONFormatter().format(_record(msg="x" * 300_000))
        )

        assert data["message"].endswith("... [TRUNCATED]")
        assert len(data["message"]) < 300_000


class TestHumanReadableFormatter:
    """Test console log formatting."""

    def test_prefixes_short_connection_id(self):
        set_log_context(connection_id="5f0c1d2e-aaaa-bbbb")

        line = HumanReadableFormatter().format(_record())

        assert "[5f0c1d2e]" in line
        assert line.endswith("INFO: Member joined")

    def test_dash_outside_connection(self):
        line = HumanReadableFormatter().format(_record(level=logging.WARNING))

        assert "[-]" in line
        assert "WARNING" in line
