"""
Invocation context handed to every transition.

Carries the collaborators a transition may touch: the local preference
store (own identity writes only), the clock for log timestamps, and the
log id factory. One context is built per session.
"""

from dataclasses import dataclass, field
from typing import Any

from .clock import SystemClock
from .ids import IdFactory, new_log_id


def _default_preferences() -> Any:
    from ..preferences import InMemoryPreferenceStore

    return InMemoryPreferenceStore()


@dataclass(frozen=True)
class ReducerContext:
    preferences: Any = field(default_factory=_default_preferences)
    clock: Any = field(default_factory=SystemClock)
    new_log_id: IdFactory = new_log_id
