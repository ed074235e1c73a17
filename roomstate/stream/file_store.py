"""
File-based event stream using append-only JSONL format.

Each line is one transport action: {"type": ..., "event": {...}}. Raw
backend events ({"name": ..., "roomId": ...}) are accepted too, as is a
file holding a single JSON array of either shape (browser recordings).
Array recordings are read-only: appending to one raises EventStoreError.
"""

import json
import os
from typing import Any, Iterator, List, Optional

from ..core.canonical import canonical_json_str
from ..core.errors import EventFormatError, EventStoreError
from ..core.events import Event
from .source import EventSource


class FileEventStore(EventSource):
    """
    File-based append-only event stream.

    Guarantees:
    - Append-only (no mutations)
    - Fsync after each append
    - Read order equals append order
    """

    def __init__(self, path: str, create: bool = True) -> None:
        """
        Args:
            path: Path to JSONL file
            create: Create an empty file if missing (replay tools pass False)
        """
        self.path = path
        # number of stored records, counted on first append
        self._count: Optional[int] = None
        if not create:
            if not os.path.exists(path):
                raise FileNotFoundError(path)
            return

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        if not os.path.exists(path):
            with open(path, "wb") as f:
                f.write(b"")

    def _count_lines(self) -> int:
        count = 0
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                stripped = line.strip()
                if not stripped:
                    continue
                if count == 0 and stripped.startswith("["):
                    raise EventStoreError(f"{self.path}: cannot append to a JSON array recording")
                count += 1
        return count

    def append(self, event: Event) -> int:
        """
        Append event to the stream.

        Returns:
            Index of the appended event

        Raises:
            EventStoreError: If the file holds a JSON array or the write fails
        """
        line = canonical_json_str(event.to_action()) + "\n"
        try:
            if self._count is None:
                self._count = self._count_lines()
            with open(self.path, "ab") as f:
                f.write(line.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex

        index = self._count
        self._count += 1
        return index

    def _records(self) -> Iterator[Any]:
        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()

        stripped = content.lstrip()
        if stripped.startswith("["):
            try:
                records: List[Any] = json.loads(content)
            except ValueError as ex:
                raise EventStoreError(f"{self.path}: invalid JSON array: {ex}") from ex
            yield from records
            return

        for lineno, line in enumerate(content.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except ValueError as ex:
                raise EventStoreError(f"{self.path}:{lineno}: invalid JSON: {ex}") from ex

    def read_raw(self) -> List[Any]:
        """All records as stored (for inspection tools)."""
        try:
            return list(self._records())
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex

    def read(self, room_id: Optional[str] = None, from_index: int = 0) -> Iterator[Event]:
        try:
            for idx, rec in enumerate(self._records()):
                if idx < from_index:
                    continue
                try:
                    ev = Event.from_action(rec)
                except EventFormatError as ex:
                    raise EventStoreError(f"{self.path}: record {idx}: {ex}") from ex
                if room_id is not None and ev.room_id != room_id:
                    continue
                yield ev
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex
