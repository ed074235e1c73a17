"""
State model for the room projection.

RoomState is the local mirror of one room. Every type here is immutable:
transitions build new instances with ``dataclasses.replace`` and copy each
mapping they change, so earlier snapshots stay valid.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class User:
    """A participant of the room."""
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    email_hash: Optional[str] = None
    avatar: Optional[int] = None
    excluded: bool = False
    disconnected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "emailHash": self.email_hash,
            "avatar": self.avatar,
            "excluded": self.excluded,
            "disconnected": self.disconnected,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "User":
        return User(
            id=data["id"],
            username=data.get("username"),
            email=data.get("email"),
            email_hash=data.get("emailHash"),
            avatar=data.get("avatar"),
            excluded=bool(data.get("excluded", False)),
            disconnected=bool(data.get("disconnected", False)),
        )


@dataclass(frozen=True)
class Story:
    """An estimable work item."""
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[int] = None
    trashed: bool = False
    revealed: bool = False
    consensus: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "createdAt": self.created_at,
            "trashed": self.trashed,
            "revealed": self.revealed,
            "consensus": self.consensus,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Story":
        return Story(
            id=data["id"],
            title=data.get("title"),
            description=data.get("description"),
            created_at=data.get("createdAt"),
            trashed=bool(data.get("trashed", False)),
            revealed=bool(data.get("revealed", False)),
            consensus=data.get("consensus"),
        )


@dataclass(frozen=True)
class LogEntry:
    """One line of the action log."""
    tstamp: str
    log_id: str
    message: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tstamp": self.tstamp,
            "logId": self.log_id,
            "message": self.message,
            "isError": self.is_error,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LogEntry":
        return LogEntry(
            tstamp=data["tstamp"],
            log_id=data["logId"],
            message=data["message"],
            is_error=bool(data.get("isError", False)),
        )


@dataclass(frozen=True)
class Presets:
    """Identity values kept by the local preference store."""
    username: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[int] = None
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "avatar": self.avatar,
            "userId": self.user_id,
        }

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "Presets":
        data = data or {}
        return Presets(
            username=data.get("username"),
            email=data.get("email"),
            avatar=data.get("avatar"),
            user_id=data.get("userId"),
        )


@dataclass(frozen=True)
class RoomState:
    """
    Immutable local mirror of a room.

    Fields:
        room_id: Joined room, None before joining
        user_id: Own user id within the room, None until the join resolves
        users: user id -> User
        stories: story id -> Story
        estimations: story id -> (user id -> value); a missing key means no estimates this round
        selected_story: Story open for estimation
        highlighted_story: Story focused in the backlog (may differ from selected_story)
        card_config: Ordered cards ({label, value, color}) valid in this room
        action_log: Log entries, newest first
        pending_join_command_id: Correlation id of the in-flight join command
        authorization_failed: Room id whose password-protected join was rejected
        unseen_error: Set when any command was rejected
        user_token: Credential issued after join
        preset_*: Mirrors of the own identity held by the preference store
    """
    room_id: Optional[str] = None
    user_id: Optional[str] = None
    users: Dict[str, User] = field(default_factory=dict)
    stories: Dict[str, Story] = field(default_factory=dict)
    estimations: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    selected_story: Optional[str] = None
    highlighted_story: Optional[str] = None
    card_config: Tuple[Dict[str, Any], ...] = ()
    auto_reveal: bool = False
    password_protected: bool = False
    applause: bool = False
    action_log: Tuple[LogEntry, ...] = ()
    pending_join_command_id: Optional[str] = None
    authorization_failed: Optional[str] = None
    unseen_error: bool = False
    user_token: Optional[str] = None
    preset_username: Optional[str] = None
    preset_email: Optional[str] = None
    preset_avatar: Optional[int] = None

    @staticmethod
    def initial(presets: Optional[Presets] = None) -> "RoomState":
        """Empty state, optionally seeded with the stored identity presets."""
        if presets is None:
            return RoomState()
        return RoomState(
            preset_username=presets.username,
            preset_email=presets.email,
            preset_avatar=presets.avatar,
        )

    def with_user(self, user: User) -> "RoomState":
        users = dict(self.users)
        users[user.id] = user
        return replace(self, users=users)

    def without_user(self, user_id: Optional[str]) -> "RoomState":
        users = dict(self.users)
        users.pop(user_id, None)
        return replace(self, users=users)

    def with_story(self, story: Story) -> "RoomState":
        stories = dict(self.stories)
        stories[story.id] = story
        return replace(self, stories=stories)

    def user_or_new(self, user_id: str) -> User:
        """Known user, or a blank one for ids this client has not seen yet."""
        return self.users.get(user_id) or User(id=user_id)

    def story_or_new(self, story_id: str) -> Story:
        return self.stories.get(story_id) or Story(id=story_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roomId": self.room_id,
            "userId": self.user_id,
            "users": {k: v.to_dict() for k, v in self.users.items()},
            "stories": {k: v.to_dict() for k, v in self.stories.items()},
            "estimations": {k: dict(v) for k, v in self.estimations.items()},
            "selectedStory": self.selected_story,
            "highlightedStory": self.highlighted_story,
            "cardConfig": [dict(c) for c in self.card_config],
            "autoReveal": self.auto_reveal,
            "passwordProtected": self.password_protected,
            "applause": self.applause,
            "actionLog": [e.to_dict() for e in self.action_log],
            "pendingJoinCommandId": self.pending_join_command_id,
            "authorizationFailed": self.authorization_failed,
            "unseenError": self.unseen_error,
            "userToken": self.user_token,
            "presetUsername": self.preset_username,
            "presetEmail": self.preset_email,
            "presetAvatar": self.preset_avatar,
        }

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "RoomState":
        data = data or {}
        return RoomState(
            room_id=data.get("roomId"),
            user_id=data.get("userId"),
            users={k: User.from_dict(v) for k, v in (data.get("users") or {}).items()},
            stories={k: Story.from_dict(v) for k, v in (data.get("stories") or {}).items()},
            estimations={k: dict(v) for k, v in (data.get("estimations") or {}).items()},
            selected_story=data.get("selectedStory"),
            highlighted_story=data.get("highlightedStory"),
            card_config=tuple(dict(c) for c in data.get("cardConfig") or ()),
            auto_reveal=bool(data.get("autoReveal", False)),
            password_protected=bool(data.get("passwordProtected", False)),
            applause=bool(data.get("applause", False)),
            action_log=tuple(LogEntry.from_dict(e) for e in data.get("actionLog") or ()),
            pending_join_command_id=data.get("pendingJoinCommandId"),
            authorization_failed=data.get("authorizationFailed"),
            unseen_error=bool(data.get("unseenError", False)),
            user_token=data.get("userToken"),
            preset_username=data.get("presetUsername"),
            preset_email=data.get("presetEmail"),
            preset_avatar=data.get("presetAvatar"),
        )
