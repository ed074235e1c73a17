"""
Exception types for the room state projection.
"""


class RoomStateError(Exception):
    """Base class for all roomstate errors."""
    pass


class EventFormatError(RoomStateError):
    """Raised when an event envelope cannot be parsed."""
    pass


class EventStoreError(RoomStateError):
    """Raised when event stream storage operations fail."""
    pass


class PreferenceStoreError(RoomStateError):
    """Raised when the local preference store cannot be written."""
    pass
