"""
Own-identity correlation.

Before the join resolves the client does not know its user id, so the join
event is matched by the correlation id of the pending join command. After
that, the stored user id is the only source of truth.
"""

from typing import Optional

from .events import Event
from .state import RoomState


def is_own_join(state: RoomState, event: Event) -> bool:
    return bool(state.pending_join_command_id) and state.pending_join_command_id == event.correlation_id


def is_own_user(state: RoomState, user_id: Optional[str]) -> bool:
    return state.user_id is not None and state.user_id == user_id
