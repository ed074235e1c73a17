"""
Replay of recorded event streams.

Replay feeds a stream through the reducer to rebuild room state. Same
events (with a fixed clock and id factory) always produce the same state.
"""

from .runner import ReplayResult, replay

__all__ = [
    "ReplayResult",
    "replay",
]
