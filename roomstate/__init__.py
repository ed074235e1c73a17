"""
roomstate

Client-side projection of a planning poker room: folds the ordered stream
of room events into an immutable room state and a human-readable action log.
"""

__version__ = "0.1.0"
