"""
Identifier generation for action log entries.
"""

import itertools
import uuid
from typing import Callable

IdFactory = Callable[[], str]


def new_log_id() -> str:
    """Fresh random log entry id."""
    return str(uuid.uuid4())


def sequential_ids(prefix: str = "log") -> IdFactory:
    """
    Deterministic id factory: prefix-1, prefix-2, ...

    Useful for replays and tests that compare log entries.
    """
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"
