"""Tests for the relay CLI."""

from unittest.mock import patch

from rich.console import Console
from typer.testing import CliRunner

from cli import typer_app

runner = CliRunner()


def test_events_lists_every_inbound_event():
    # Wide enough that handler paths are not wrapped
    with patch("cli.console", Console(width=200)):
        result = runner.invoke(typer_app, ["events"])

    assert result.exit_code == 0
    for event in (
        "join-room",
        "user-transform",
        "object-transform",
        "chat-message",
        "add-object",
        "remove-object",
    ):
        assert event in result.output
    assert "6/6 handlers registered" in result.output
    assert "user-left" not in result.output


def test_serve_runs_uvicorn():
    with patch("cli.uvicorn.run") as run:
        result = runner.invoke(typer_app, ["serve", "--port", "4000"])

    assert result.exit_code == 0
    run.assert_called_once()
    args, kwargs = run.call_args
    assert args == ("relay:app",)
    assert kwargs["port"] == 4000
    assert kwargs["reload"] is False
