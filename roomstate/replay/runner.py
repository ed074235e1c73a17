"""
Replay runner: reconstruct room state from an event stream.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.reducer import Reducer
from ..core.state import RoomState
from ..stream.source import EventSource


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Fields:
        state: Final state after applying events
        applied: Number of events fed to the reducer (dropped ones included)
    """
    state: RoomState
    applied: int


def replay(
    source: EventSource,
    reducer: Reducer,
    room_id: Optional[str] = None,
    until: Optional[int] = None,
    initial: Optional[RoomState] = None,
) -> ReplayResult:
    """
    Replay events to reconstruct state.

    Args:
        source: Event stream to read from
        reducer: Reducer with registered handlers
        room_id: Filter by room (None = all; the reducer drops foreign rooms anyway)
        until: Stop after this position of the (room-filtered) stream, inclusive (None = all)
        initial: Starting state (e.g. seeded presets or a pending join command id)

    Returns:
        ReplayResult with final state and count
    """
    st = initial if initial is not None else RoomState.initial()
    count = 0

    for idx, ev in enumerate(source.read(room_id=room_id)):
        if until is not None and idx > until:
            break
        st = reducer.apply(st, ev)
        count += 1

    return ReplayResult(state=st, applied=count)
