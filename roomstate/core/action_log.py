"""
Action log composition.

Each handler carries a log strategy next to its transition. The strategy is
rendered with the username of the acting user, the event payload, the state
before and after the transition, and the event. A rendered message is
prepended to the action log as a new LogEntry; no message means no entry.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

from .clock import format_time
from .events import Event
from .state import LogEntry, RoomState


@dataclass(frozen=True)
class LogMessage:
    message: str
    is_error: bool = False


LogResult = Union[str, LogMessage, None]
LogFn = Callable[[str, Dict[str, Any], RoomState, RoomState, Event], LogResult]


def _to_message(result: LogResult) -> Optional[LogMessage]:
    if not result:
        return None
    if isinstance(result, LogMessage):
        return result if result.message else None
    return LogMessage(message=str(result))


@dataclass(frozen=True)
class NoLog:
    """The event never produces a log entry."""

    def render(self, username: str, payload: Dict[str, Any], old_state: RoomState,
               new_state: RoomState, event: Event) -> Optional[LogMessage]:
        return None


@dataclass(frozen=True)
class ConstantLog:
    """The event always logs the same text."""
    message: str

    def render(self, username: str, payload: Dict[str, Any], old_state: RoomState,
               new_state: RoomState, event: Event) -> Optional[LogMessage]:
        return _to_message(self.message)


@dataclass(frozen=True)
class DerivedLog:
    """The log text is computed from the event and both state snapshots."""
    fn: LogFn

    def render(self, username: str, payload: Dict[str, Any], old_state: RoomState,
               new_state: RoomState, event: Event) -> Optional[LogMessage]:
        return _to_message(self.fn(username, payload, old_state, new_state, event))


LogStrategy = Union[NoLog, ConstantLog, DerivedLog]


def to_log_strategy(log: Union[LogStrategy, str, LogFn, None]) -> LogStrategy:
    """Normalize what a handler registration passes as its log."""
    if log is None:
        return NoLog()
    if isinstance(log, (NoLog, ConstantLog, DerivedLog)):
        return log
    if isinstance(log, str):
        return ConstantLog(log)
    if callable(log):
        return DerivedLog(log)
    raise TypeError(f"unsupported log strategy: {log!r}")


def acting_username(state: RoomState, user_id: Optional[str]) -> str:
    user = state.users.get(user_id) if user_id else None
    return (user.username or "") if user else ""


def append_log_entry(
    strategy: LogStrategy,
    old_state: RoomState,
    new_state: RoomState,
    event: Event,
    ctx: Any,
) -> RoomState:
    """
    Render the strategy and prepend the resulting entry to new_state.action_log.

    The username comes from new_state: a user who just joined is not in
    old_state yet.
    """
    username = acting_username(new_state, event.user_id)
    message = strategy.render(username, event.payload, old_state, new_state, event)
    if message is None:
        return new_state

    entry = LogEntry(
        tstamp=format_time(ctx.clock.now()),
        log_id=ctx.new_log_id(),
        message=message.message,
        is_error=message.is_error,
    )
    return replace(new_state, action_log=(entry,) + tuple(new_state.action_log))
