"""
CLI tool for running and inspecting the session relay.

Provides commands for serving the relay and viewing which protocol handler
serves each inbound event.
"""

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from relay.api.ws.constants import INBOUND_EVENTS, EventName
from relay.api.ws.handlers import load_handlers
from relay.routing import event_router
from relay.settings import app_settings

typer_app = typer.Typer(
    name="relay-cli",
    help="Session relay CLI - serve the relay and inspect its event handlers",
    add_completion=False,
)
console = Console()


@typer_app.command(name="events")
def events():
    """
    Display a table of the inbound events and their handlers.

    Shows the event name, the connection state the handler requires and the
    handler function. Inbound events without a handler are flagged.

    Example:
        python cli.py events
    """
    load_handlers()

    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Registered Event Handlers[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()

    table = Table(
        "Event",
        "Requires",
        "Handler Path",
        title="Event Handlers Registry",
        show_lines=True,
    )

    missing_handlers = []

    for event in EventName:
        if event not in INBOUND_EVENTS:
            continue

        entry = event_router.handlers_registry.get(event)
        if not entry:
            table.add_row(
                f"[dim]{event.value}[/dim]",
                "",
                "[red]No handler registered[/red]",
            )
            missing_handlers.append(event.value)
            continue

        handler_path = (
            f"{entry.handler.__module__}.[yellow]{entry.handler.__name__}[/yellow]"
        )
        table.add_row(
            f"[green]{event.value}[/green]",
            entry.requires.__name__,
            handler_path,
        )

    console.print(table)
    console.print()

    total = len(INBOUND_EVENTS)
    registered = total - len(missing_handlers)
    console.print(
        f"[bold]Summary:[/bold] {registered}/{total} handlers registered"
    )
    console.print()


@typer_app.command(name="serve")
def serve(
    host: str = typer.Option(
        app_settings.HOST, "--host", help="Interface to bind"
    ),
    port: int = typer.Option(
        app_settings.PORT, "--port", "-p", help="Port to listen on"
    ),
    reload: bool = typer.Option(
        False, "--reload", help="Restart the server on code changes"
    ),
):
    """
    Run the relay with uvicorn.

    Example:
        python cli.py serve --port 3000
    """
    console.print(
        f"[green]✓[/green] Relay listening on [cyan]{host}:{port}[/cyan], "
        f"sessions at [cyan]{app_settings.WS_PATH}[/cyan]"
    )
    uvicorn.run("relay:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    typer_app()
