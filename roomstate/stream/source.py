"""
EventSource abstract interface.

Defines the contract for ordered room event streams.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional

from ..core.events import Event


class EventSource(ABC):
    """
    Abstract ordered event stream.

    Implementations must yield events in delivery order; the reducer does
    no reordering of its own.
    """

    @abstractmethod
    def read(self, room_id: Optional[str] = None, from_index: int = 0) -> Iterator[Event]:
        """
        Read events from the stream.

        Args:
            room_id: Only events of this room (None = all)
            from_index: Skip events before this position (inclusive start)

        Yields:
            Events in delivery order
        """
        ...


class MemoryEventSource(EventSource):
    """Event stream held in a list."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self.events: List[Event] = list(events)

    def append(self, event: Event) -> None:
        self.events.append(event)

    def read(self, room_id: Optional[str] = None, from_index: int = 0) -> Iterator[Event]:
        for ev in self.events[from_index:]:
            if room_id is not None and ev.room_id != room_id:
                continue
            yield ev
