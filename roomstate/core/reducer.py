"""
Reducer: folds room events into RoomState.

One event in, one new state out. The reducer:
- runs the session guard (rejected joins, room adoption, cross-room drops)
- looks up the handler registered for the event's action type
- applies its transition, then its log strategy
Unknown event types are ignored (state returned unchanged) and reported to
the log and metrics. Nothing here raises for unknown types or foreign rooms.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from ..logging_config import get_logger
from ..metrics import EVENTS_APPLIED, EVENTS_DROPPED
from .action_log import LogFn, LogStrategy, append_log_entry, to_log_strategy
from .context import ReducerContext
from .events import Event, EventType
from .guard import guard
from .handlers import register_handlers
from .state import RoomState

# Transition signature: (state, payload, event, ctx) -> new_state
Transition = Callable[[RoomState, Dict[str, Any], Event, ReducerContext], RoomState]


@dataclass(frozen=True)
class EventHandler:
    transition: Transition
    log: LogStrategy


class Reducer:
    """
    Registry of event handlers for room state transitions.

    Usage:
        reducer = Reducer(ReducerContext(preferences=store))
        reducer.register(EventType.STORY_ADDED, on_story_added, log_story_added)
        new_state = reducer.apply(state, event)
    """

    def __init__(self, ctx: Optional[ReducerContext] = None) -> None:
        self.ctx = ctx or ReducerContext()
        self._handlers: Dict[Union[EventType, str], EventHandler] = {}

    def register(
        self,
        event_type: Union[EventType, str],
        transition: Transition,
        log: Union[LogStrategy, str, LogFn, None] = None,
    ) -> None:
        """
        Register event handler.

        Args:
            event_type: Action type
            transition: Pure function (state, payload, event, ctx) -> new_state
            log: Log strategy, constant message, or log function (None: no log)
        """
        self._handlers[EventType.coerce(event_type)] = EventHandler(transition, to_log_strategy(log))

    def handler_for(self, event_type: Union[EventType, str, None]) -> Optional[EventHandler]:
        return self._handlers.get(EventType.coerce(event_type))

    def apply(self, state: RoomState, event: Event) -> RoomState:
        """
        Apply event to state.

        Returns:
            New state; the input state itself if the event was dropped or
            its transition changed nothing and produced no log entry
        """
        checked = guard(state, event, self.ctx.preferences)
        if not checked.proceed:
            return checked.state
        state = checked.state

        handler = self.handler_for(event.type)
        if handler is None:
            get_logger(__name__, room_id=state.room_id).warning(
                f"No matching backend-event handler for {event.type_name} ({event.name})"
            )
            EVENTS_DROPPED.labels(reason="unknown_type").inc()
            return state

        new_state = handler.transition(state, event.payload, event, self.ctx) or state
        new_state = append_log_entry(handler.log, state, new_state, event, self.ctx)
        EVENTS_APPLIED.labels(event_type=event.type_name).inc()
        return new_state

    def apply_action(self, state: RoomState, action: Dict[str, Any]) -> RoomState:
        """Parse a transport action and apply it."""
        return self.apply(state, Event.from_action(action))


def create_reducer(
    preferences: Any = None,
    clock: Any = None,
    new_log_id: Optional[Callable[[], str]] = None,
) -> Reducer:
    """Reducer with the full room event table registered."""
    kwargs: Dict[str, Any] = {}
    if preferences is not None:
        kwargs["preferences"] = preferences
    if clock is not None:
        kwargs["clock"] = clock
    if new_log_id is not None:
        kwargs["new_log_id"] = new_log_id

    reducer = Reducer(ReducerContext(**kwargs))
    register_handlers(reducer)
    return reducer
