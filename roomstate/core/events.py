"""
Event model for room state transitions.

Events are immutable records delivered by the transport, one at a time and
in order per room. The reducer dispatches on the action ``type``; the guard
looks at the backend event ``name``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import EventFormatError


class EventType(str, Enum):
    """
    Closed catalogue of backend event action types.

    Each member's value is the action type; ``event_name`` is the name the
    backend puts on the event itself.
    """

    ROOM_CREATED = "ROOM_CREATED"
    JOINED_ROOM = "JOINED_ROOM"
    LEFT_ROOM = "LEFT_ROOM"
    KICKED = "KICKED"
    CONNECTION_LOST = "CONNECTION_LOST"
    COMMAND_REJECTED = "COMMAND_REJECTED"
    STORY_ADDED = "STORY_ADDED"
    STORY_SELECTED = "STORY_SELECTED"
    IMPORT_FAILED = "IMPORT_FAILED"
    USERNAME_SET = "USERNAME_SET"
    EMAIL_SET = "EMAIL_SET"
    AVATAR_SET = "AVATAR_SET"
    STORY_ESTIMATE_GIVEN = "STORY_ESTIMATE_GIVEN"
    CONSENSUS_ACHIEVED = "CONSENSUS_ACHIEVED"
    STORY_ESTIMATE_CLEARED = "STORY_ESTIMATE_CLEARED"
    REVEALED = "REVEALED"
    NEW_ESTIMATION_ROUND_STARTED = "NEW_ESTIMATION_ROUND_STARTED"
    EXCLUDED_FROM_ESTIMATIONS = "EXCLUDED_FROM_ESTM"
    INCLUDED_IN_ESTIMATIONS = "INCLUDED_IN_ESTM"
    STORY_CHANGED = "STORY_CHANGED"
    STORY_DELETED = "STORY_DELETED"
    STORY_TRASHED = "STORY_TRASHED"
    STORY_RESTORED = "STORY_RESTORED"
    CARD_CONFIG_SET = "CARD_CONFIG_SET"
    AUTO_REVEAL_ON = "AUTO_REVEAL_ON"
    AUTO_REVEAL_OFF = "AUTO_REVEAL_OFF"
    PASSWORD_SET = "PASSWORD_SET"
    PASSWORD_CLEARED = "PASSWORD_CLEARED"
    TOKEN_ISSUED = "TOKEN_ISSUED"

    @property
    def event_name(self) -> str:
        return _EVENT_NAMES[self]

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["EventType"]:
        """Resolve a backend event name (e.g. "joinedRoom"), None if unknown."""
        return _TYPES_BY_NAME.get(name) if name else None

    @classmethod
    def coerce(cls, value: Union["EventType", str, None]) -> Union["EventType", str, None]:
        """Return the enum member for a known type string, the input otherwise."""
        if value is None or isinstance(value, EventType):
            return value
        try:
            return cls(value)
        except ValueError:
            return value


_EVENT_NAMES = {
    EventType.ROOM_CREATED: "roomCreated",
    EventType.JOINED_ROOM: "joinedRoom",
    EventType.LEFT_ROOM: "leftRoom",
    EventType.KICKED: "kicked",
    EventType.CONNECTION_LOST: "connectionLost",
    EventType.COMMAND_REJECTED: "commandRejected",
    EventType.STORY_ADDED: "storyAdded",
    EventType.STORY_SELECTED: "storySelected",
    EventType.IMPORT_FAILED: "importFailed",
    EventType.USERNAME_SET: "usernameSet",
    EventType.EMAIL_SET: "emailSet",
    EventType.AVATAR_SET: "avatarSet",
    EventType.STORY_ESTIMATE_GIVEN: "storyEstimateGiven",
    EventType.CONSENSUS_ACHIEVED: "consensusAchieved",
    EventType.STORY_ESTIMATE_CLEARED: "storyEstimateCleared",
    EventType.REVEALED: "revealed",
    EventType.NEW_ESTIMATION_ROUND_STARTED: "newEstimationRoundStarted",
    EventType.EXCLUDED_FROM_ESTIMATIONS: "excludedFromEstimations",
    EventType.INCLUDED_IN_ESTIMATIONS: "includedInEstimations",
    EventType.STORY_CHANGED: "storyChanged",
    EventType.STORY_DELETED: "storyDeleted",
    EventType.STORY_TRASHED: "storyTrashed",
    EventType.STORY_RESTORED: "storyRestored",
    EventType.CARD_CONFIG_SET: "cardConfigSet",
    EventType.AUTO_REVEAL_ON: "autoRevealOn",
    EventType.AUTO_REVEAL_OFF: "autoRevealOff",
    EventType.PASSWORD_SET: "passwordSet",
    EventType.PASSWORD_CLEARED: "passwordCleared",
    EventType.TOKEN_ISSUED: "tokenIssued",
}

_TYPES_BY_NAME = {name: event_type for event_type, name in _EVENT_NAMES.items()}


@dataclass(frozen=True)
class Event:
    """
    Immutable event envelope.

    Fields:
        type: Action type (EventType member, or the raw string if unknown)
        name: Backend event name (e.g. "joinedRoom", "commandRejected")
        room_id: Room the event belongs to
        user_id: Acting user (the one who issued the command)
        correlation_id: Echo of the command id, set for the originator's own commands
        payload: Event-specific data
    """
    type: Union[EventType, str, None]
    name: Optional[str]
    room_id: Optional[str]
    user_id: Optional[str] = None
    correlation_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(
        event_type: EventType,
        room_id: Optional[str],
        user_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> "Event":
        """Build an event of a known type, filling in the backend name."""
        return Event(
            type=event_type,
            name=event_type.event_name,
            room_id=room_id,
            user_id=user_id,
            correlation_id=correlation_id,
            payload=dict(payload or {}),
        )

    @staticmethod
    def from_action(action: Any) -> "Event":
        """
        Parse a transport action ``{type, event: {name, roomId, userId, correlationId?, payload}}``.

        A bare backend event (no ``event`` wrapper, but a ``name``) is accepted
        too; its action type is derived from the name.

        Raises:
            EventFormatError: If the envelope is not a mapping or has no event body
        """
        if not isinstance(action, dict):
            raise EventFormatError(f"event action must be an object, got {type(action).__name__}")

        if "event" in action:
            body = action["event"]
            action_type = action.get("type")
        elif "name" in action:
            body = action
            action_type = None
        else:
            raise EventFormatError("event action has neither 'event' nor 'name'")

        if not isinstance(body, dict):
            raise EventFormatError("event body must be an object")

        if not action_type:
            action_type = EventType.from_name(body.get("name"))

        payload = body.get("payload")
        return Event(
            type=EventType.coerce(action_type),
            name=body.get("name"),
            room_id=body.get("roomId"),
            user_id=body.get("userId"),
            correlation_id=body.get("correlationId"),
            payload=payload if isinstance(payload, dict) else {},
        )

    def to_action(self) -> Dict[str, Any]:
        """Serialize back to the transport action shape."""
        body: Dict[str, Any] = {
            "name": self.name,
            "roomId": self.room_id,
            "userId": self.user_id,
            "payload": dict(self.payload),
        }
        if self.correlation_id is not None:
            body["correlationId"] = self.correlation_id
        action_type = self.type.value if isinstance(self.type, EventType) else self.type
        return {"type": action_type, "event": body}

    @property
    def type_name(self) -> str:
        if isinstance(self.type, EventType):
            return self.type.value
        return str(self.type)
