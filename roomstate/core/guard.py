"""
Session guard: runs before dispatch.

Handles rejected join commands (username repair, password prompt), adopts
the room id of the first join, and drops events addressed to other rooms.
"""

from dataclasses import dataclass, replace
from typing import Any

from ..logging_config import get_logger
from ..metrics import EVENTS_DROPPED
from .events import Event, EventType
from .state import RoomState

JOIN_COMMAND = "joinRoom"


@dataclass(frozen=True)
class GuardResult:
    """
    Fields:
        state: State to continue with (or to return, if proceed is False)
        proceed: Whether the event goes on to the dispatch table
    """
    state: RoomState
    proceed: bool


def is_failed_join(event: Event) -> bool:
    if event.name != EventType.COMMAND_REJECTED.event_name:
        return False
    command = (event.payload or {}).get("command")
    return isinstance(command, dict) and command.get("name") == JOIN_COMMAND


def guard(state: RoomState, event: Event, preferences: Any) -> GuardResult:
    if is_failed_join(event):
        reason = str(event.payload.get("reason") or "")

        # A stored username that no longer passes the server's format check
        if "validation Error" in reason and "/username" in reason:
            preferences.set_preset_username("")
            return GuardResult(replace(state, preset_username=""), proceed=False)

        if "Not Authorized" in reason:
            return GuardResult(
                replace(state, authorization_failed=event.payload["command"].get("roomId")),
                proceed=False,
            )

    # A room created by our own join is not known locally yet
    if not state.room_id and event.name == EventType.JOINED_ROOM.event_name:
        state = replace(state, room_id=event.room_id)

    if state.room_id != event.room_id:
        get_logger(__name__, room_id=state.room_id).warning(
            f"Event with different roomId received. localRoomId={state.room_id}, "
            f"eventRoomId={event.room_id} ({event.name})"
        )
        EVENTS_DROPPED.labels(reason="room_mismatch").inc()
        return GuardResult(state, proceed=False)

    return GuardResult(state, proceed=True)
