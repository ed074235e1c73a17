#!/usr/bin/env python3
"""
roomstate CLI

Main entrypoint for the roomstate command-line tool.
"""

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table

from cli.commands import events, replay
from roomstate.logging_config import setup_logging

app = typer.Typer(
    name="roomstate",
    help="Planning poker room projection CLI",
    add_completion=False,
)

console = Console()

app.add_typer(events.app, name="events", help="Recorded event stream operations")
app.command(name="replay")(replay.replay_command)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override ROOMSTATE_LOG_LEVEL"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="Override ROOMSTATE_LOG_FORMAT (json, text)"),
):
    """Configure logging for all commands."""
    setup_logging(level=log_level, log_format=log_format)


@app.command()
def version():
    """Show version information."""
    from cli import __version__
    from roomstate.core.events import EventType

    table = Table(show_header=False, box=None)
    table.add_row("[bold]roomstate[/bold]", f"v{__version__}")
    table.add_row("Event types", str(len(EventType)))

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
