"""
Replay command: rebuild room state from a recorded event stream
"""

import json
import os
import typer
from dataclasses import replace
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from roomstate.core import RoomState, create_reducer
from roomstate.core.canonical import state_hash
from roomstate.core.errors import RoomStateError
from roomstate.core.events import EventType
from roomstate.metrics import start_metrics_server
from roomstate.preferences import FilePreferenceStore, InMemoryPreferenceStore
from roomstate.query import active_stories, own_user, trashed_stories
from roomstate.replay import replay as replay_events
from roomstate.stream import FileEventStore

console = Console()

DEFAULT_EVENTS_PATH = "./room-events.jsonl"


def projection_hash(state: RoomState) -> str:
    """Hash of the projected room, excluding the wall-clock action log."""
    data = state.to_dict()
    data.pop("actionLog", None)
    return state_hash(data)


def find_join_command(store: FileEventStore, user_id: str) -> Optional[str]:
    """Correlation id of the recorded join of the given user, if any."""
    for ev in store.read():
        if ev.type == EventType.JOINED_ROOM and ev.user_id == user_id and ev.correlation_id:
            return ev.correlation_id
    return None


def replay_command(
    events_path: str = typer.Option(
        os.getenv("ROOMSTATE_EVENTS_PATH", DEFAULT_EVENTS_PATH),
        "--events",
        "-e",
        help="Path to recorded event stream (JSONL or JSON array)",
    ),
    join_command: Optional[str] = typer.Option(
        None, "--join-command", "-c", help="Correlation id of our own pending join command"
    ),
    as_user: Optional[str] = typer.Option(
        None, "--as-user", help="Replay as this user (looks up its recorded join command)"
    ),
    room_id: Optional[str] = typer.Option(None, "--room", "-r", help="Only replay events of this room"),
    until: Optional[int] = typer.Option(None, "--until", "-u", help="Replay until stream position (inclusive)"),
    preferences_path: Optional[str] = typer.Option(
        None, "--preferences", "-p", help="Preference file to seed presets and receive own identity writes"
    ),
    show_state: bool = typer.Option(False, "--show-state", "-s", help="Show final state"),
    show_log: bool = typer.Option(False, "--show-log", "-l", help="Show action log"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    metrics_port: Optional[int] = typer.Option(None, "--metrics-port", help="Expose Prometheus metrics on this port"),
):
    """
    Replay a recorded event stream and show the resulting room state.

    Examples:
        roomstate replay --events session.jsonl
        roomstate replay --events session.jsonl --as-user 8a6f...
        roomstate replay --events session.jsonl --until 10 --show-log
        roomstate replay --events session.jsonl --json
    """
    try:
        if metrics_port:
            start_metrics_server(metrics_port)

        store = FileEventStore(events_path, create=False)
        preferences = FilePreferenceStore(preferences_path) if preferences_path else InMemoryPreferenceStore()
        reducer = create_reducer(preferences=preferences)

        if as_user and not join_command:
            join_command = find_join_command(store, as_user)
            if join_command is None and not json_output:
                console.print(f"[yellow]No recorded join for user {escape(as_user)}, replaying as observer[/yellow]")

        initial = replace(RoomState.initial(preferences.load()), pending_join_command_id=join_command)

        if not json_output:
            console.print("[bold]Replaying event stream...[/bold]")

        result = replay_events(store, reducer, room_id=room_id, until=until, initial=initial)
        state = result.state

        if json_output:
            output = {
                "success": True,
                "events_replayed": result.applied,
                "room_id": state.room_id,
                "user_id": state.user_id,
                "users": len(state.users),
                "stories": len(state.stories),
                "projection_hash": projection_hash(state),
            }
            if show_state:
                output["state"] = state.to_dict()
            elif show_log:
                output["action_log"] = [e.to_dict() for e in state.action_log]
            print(json.dumps(output, indent=2))
        else:
            console.print(f"[green]✓ Replayed {result.applied} events[/green]")

            table = Table(title="Room", show_header=False)
            table.add_column("Field", style="green")
            table.add_column("Value", style="cyan")
            me = own_user(state)
            table.add_row("Room", escape(str(state.room_id)))
            table.add_row("Own user", escape(me.username or me.id) if me else "-")
            table.add_row("Users", str(len(state.users)))
            table.add_row("Stories", f"{len(active_stories(state))} active, {len(trashed_stories(state))} trashed")
            table.add_row("Selected story", escape(str(state.selected_story)))
            table.add_row("Auto reveal", str(state.auto_reveal))
            table.add_row("Password protected", str(state.password_protected))
            table.add_row("Unseen error", str(state.unseen_error))
            table.add_row("Projection hash", projection_hash(state))
            console.print(table)

            if show_log:
                log_table = Table(title="Action Log (newest first)")
                log_table.add_column("Time", style="dim")
                log_table.add_column("Message")
                for entry in state.action_log:
                    # messages carry user text (titles, names) that must not be read as markup
                    message = escape(entry.message)
                    if entry.is_error:
                        message = f"[red]{message}[/red]"
                    log_table.add_row(entry.tstamp, message)
                console.print(log_table)

            if show_state:
                console.print("\n[bold]Final State:[/bold]")
                console.print(Syntax(json.dumps(state.to_dict(), indent=2), "json", theme="monokai"))

        raise typer.Exit(0)

    except FileNotFoundError:
        if json_output:
            print(json.dumps({"error": "Event stream not found", "path": events_path}))
        else:
            console.print(f"[red]Error: Event stream not found:[/red] {escape(events_path)}")
        raise typer.Exit(2)
    except RoomStateError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)
