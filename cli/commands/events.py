"""
Event stream commands: tail, inspect
"""

import json
import os
import typer
from typing import List, Optional
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from roomstate.core.errors import RoomStateError
from roomstate.core.events import Event
from roomstate.stream import FileEventStore

from .replay import DEFAULT_EVENTS_PATH

app = typer.Typer()
console = Console()

EVENTS_OPTION = typer.Option(
    os.getenv("ROOMSTATE_EVENTS_PATH", DEFAULT_EVENTS_PATH),
    "--events",
    "-e",
    help="Path to recorded event stream (JSONL or JSON array)",
)


def _load(events_path: str) -> List[Event]:
    return list(FileEventStore(events_path, create=False).read())


def _summary_table(title: str, indexed: List[tuple]) -> Table:
    table = Table(title=title)
    table.add_column("#", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Room", style="yellow")
    table.add_column("User", style="dim")
    table.add_column("Correlation", style="dim")
    for idx, ev in indexed:
        table.add_row(
            str(idx),
            escape(ev.type_name),
            escape(str(ev.room_id)),
            escape(str(ev.user_id or "-")),
            escape(str(ev.correlation_id or "-")),
        )
    return table


def _fail(json_output: bool, events_path: str, error: Exception) -> None:
    if isinstance(error, FileNotFoundError):
        if json_output:
            print(json.dumps({"error": "Event stream not found", "path": events_path}))
        else:
            console.print(f"[red]Error: Event stream not found:[/red] {escape(events_path)}")
    else:
        if json_output:
            print(json.dumps({"error": str(error)}))
        else:
            console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(2)


@app.command()
def tail(
    events_path: str = EVENTS_OPTION,
    lines: Optional[int] = typer.Option(None, "--lines", "-n", help="Number of events to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show the last events of a recorded stream.

    Examples:
        roomstate events tail --events session.jsonl
        roomstate events tail --lines 10 --json
    """
    try:
        indexed = list(enumerate(_load(events_path)))
    except (FileNotFoundError, RoomStateError) as e:
        _fail(json_output, events_path, e)
        return

    if lines:
        indexed = indexed[-lines:]

    if json_output:
        print(json.dumps({"events": [ev.to_action() for _, ev in indexed], "count": len(indexed)}, indent=2))
    elif not indexed:
        console.print("[yellow]Event stream is empty[/yellow]")
    else:
        console.print(_summary_table(f"Event stream: {escape(events_path)}", indexed))
        console.print(f"\n[bold]Total events:[/bold] {len(indexed)}")

    raise typer.Exit(0)


@app.command()
def inspect(
    events_path: str = EVENTS_OPTION,
    from_index: Optional[int] = typer.Option(None, "--from", help="Start at stream position"),
    to_index: Optional[int] = typer.Option(None, "--to", help="End at stream position"),
    event_type: Optional[str] = typer.Option(None, "--event-type", "-t", help="Filter by action type or event name"),
    room_id: Optional[str] = typer.Option(None, "--room", "-r", help="Filter by room"),
    show_payload: bool = typer.Option(False, "--payload", "-p", help="Show full payload"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Inspect a recorded stream with filters.

    Examples:
        roomstate events inspect --from 0 --to 10
        roomstate events inspect --event-type STORY_ADDED
        roomstate events inspect --event-type joinedRoom --payload --json
    """
    try:
        indexed = list(enumerate(_load(events_path)))
    except (FileNotFoundError, RoomStateError) as e:
        _fail(json_output, events_path, e)
        return

    if from_index is not None:
        indexed = [(i, ev) for i, ev in indexed if i >= from_index]
    if to_index is not None:
        indexed = [(i, ev) for i, ev in indexed if i <= to_index]
    if event_type:
        indexed = [(i, ev) for i, ev in indexed if event_type in (ev.type_name, ev.name)]
    if room_id:
        indexed = [(i, ev) for i, ev in indexed if ev.room_id == room_id]

    if not indexed:
        if json_output:
            print(json.dumps({"events": [], "count": 0}))
        else:
            console.print("[yellow]No events match the filters[/yellow]")
        raise typer.Exit(0)

    if json_output:
        records = []
        for idx, ev in indexed:
            action = ev.to_action()
            if not show_payload:
                action["event"]["payload"] = "<hidden>"
            action["index"] = idx
            records.append(action)
        print(json.dumps({"events": records, "count": len(records)}, indent=2))
    else:
        for idx, ev in indexed:
            console.print(f"\n[bold cyan]Event {idx}[/bold cyan]")
            console.print(f"  Type: [green]{escape(ev.type_name)}[/green] ({escape(str(ev.name))})")
            console.print(f"  Room: [yellow]{escape(str(ev.room_id))}[/yellow]")
            console.print(f"  User: {escape(str(ev.user_id or '-'))}")
            if ev.correlation_id:
                console.print(f"  Correlation: {escape(ev.correlation_id)}")
            if show_payload:
                console.print("  Payload:")
                console.print(Syntax(json.dumps(ev.payload, indent=2), "json", theme="monokai", line_numbers=False))

        console.print(f"\n[bold]Total events:[/bold] {len(indexed)}")

    raise typer.Exit(0)
