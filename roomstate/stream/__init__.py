"""
Event stream storage.

This module provides:
- EventSource: Abstract interface for reading an ordered room event stream
- FileEventStore: File-based append-only recording (JSONL, or a JSON array)
- MemoryEventSource: In-memory stream for tests and embedding
"""

from .source import EventSource, MemoryEventSource
from .file_store import FileEventStore

__all__ = [
    "EventSource",
    "MemoryEventSource",
    "FileEventStore",
]
