"""
Core room projection primitives.

This module provides:
- Event / EventType: Delivered room events and their closed catalogue
- RoomState, User, Story, LogEntry: Immutable projected state
- Reducer: Session guard, handler dispatch and action log composition
- Indexers: Server snapshot lists -> keyed mappings
"""

from .events import Event, EventType
from .state import LogEntry, Presets, RoomState, Story, User
from .context import ReducerContext
from .reducer import EventHandler, Reducer, create_reducer
from .action_log import ConstantLog, DerivedLog, LogMessage, NoLog
from .clock import FixedClock, SystemClock, format_time
from .ids import new_log_id, sequential_ids
from .indexers import index_estimations, index_stories, index_users
from .cards import DEFAULT_CARD_CONFIG, card_for_value
from .errors import EventFormatError, EventStoreError, PreferenceStoreError, RoomStateError

__all__ = [
    "Event",
    "EventType",
    "LogEntry",
    "Presets",
    "RoomState",
    "Story",
    "User",
    "ReducerContext",
    "EventHandler",
    "Reducer",
    "create_reducer",
    "ConstantLog",
    "DerivedLog",
    "LogMessage",
    "NoLog",
    "FixedClock",
    "SystemClock",
    "format_time",
    "new_log_id",
    "sequential_ids",
    "index_estimations",
    "index_stories",
    "index_users",
    "DEFAULT_CARD_CONFIG",
    "card_for_value",
    "EventFormatError",
    "EventStoreError",
    "PreferenceStoreError",
    "RoomStateError",
]
