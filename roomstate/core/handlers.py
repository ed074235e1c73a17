"""
Event handler table for room state.

Each backend event type maps to a transition ``(state, payload, event, ctx)
-> new_state`` and a log strategy. Transitions are pure apart from writes
of the own identity to the preference store in ``ctx``.

Log producers read entities with .get(): a story or user this client does
not know yields neutral text instead of an exception, so logging can never
block a transition.
"""

from dataclasses import replace
from typing import Any, Dict, Optional

from ..logging_config import get_logger
from ..metrics import COMMANDS_REJECTED
from .action_log import DerivedLog, LogMessage, NoLog
from .cards import DEFAULT_CARD_CONFIG, card_for_value
from .events import Event, EventType
from .identity import is_own_join, is_own_user
from .indexers import index_estimations, index_stories, index_users
from .state import RoomState, Story

NEW_USER = "New user"


def register_handlers(reducer) -> None:
    for event_type, (transition, log) in HANDLERS.items():
        reducer.register(event_type, transition, log)


def _name(state: RoomState, user_id: Optional[str], default: str = NEW_USER) -> str:
    user = state.users.get(user_id) if user_id else None
    return (user.username if user else None) or default


def _title(state: RoomState, story_id: Optional[str]) -> str:
    story = state.stories.get(story_id) if story_id else None
    return (story.title if story else None) or ""


# -- room membership ---------------------------------------------------------


def on_room_created(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return state


def log_room_created(username, payload, old_state, new_state, ev) -> str:
    return f'Room "{payload.get("id")}" created'


def on_joined_room(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    if is_own_join(state, ev):
        ctx.preferences.set_preset_user_id(ev.user_id)

        # the server sends the current room snapshot along with our own join
        stories = payload.get("stories")
        return replace(
            state,
            room_id=ev.room_id,
            user_id=ev.user_id,
            selected_story=payload.get("selectedStory"),
            highlighted_story=payload.get("selectedStory"),
            users=index_users(payload.get("users")),
            stories=index_stories(stories),
            estimations=index_estimations(stories),
            pending_join_command_id=None,
            authorization_failed=None,
            card_config=tuple(payload.get("cardConfig") or ()),
            auto_reveal=bool(payload.get("autoReveal")),
            password_protected=bool(payload.get("passwordProtected")),
        )

    # someone else joined: only the list of users changes
    if payload.get("users") is None:
        if ev.user_id in state.users:
            return state
        return state.with_user(state.user_or_new(ev.user_id))
    return replace(state, users=index_users(payload.get("users")))


def log_joined_room(username, payload, old_state, new_state, ev) -> str:
    if not old_state.user_id:
        return f'You joined room "{new_state.room_id}"'
    # the joining user is only known in new_state
    return f"{_name(new_state, ev.user_id)} joined"


def on_left_room(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    if is_own_user(state, ev.user_id):
        return RoomState.initial(ctx.preferences.load())
    return state.without_user(ev.user_id)


def log_left_room(username, payload, old_state, new_state, ev) -> str:
    return f"{_name(old_state, ev.user_id)} left the room"


def on_kicked(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    # subject is the kicked user from the payload; ev.user_id is the kicking user
    kicked_user_id = payload.get("userId")
    if is_own_user(state, kicked_user_id):
        return RoomState.initial(ctx.preferences.load())
    return state.without_user(kicked_user_id)


def log_kicked(username, payload, old_state, new_state, ev) -> str:
    return (
        f"{_name(old_state, payload.get('userId'))} was kicked from the room "
        f"by {_name(old_state, ev.user_id)}"
    )


def on_connection_lost(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    user = state.users.get(ev.user_id)
    if user is None:
        return state
    return state.with_user(replace(user, disconnected=True))


def log_connection_lost(username, payload, old_state, new_state, ev) -> str:
    return f"{username or NEW_USER} lost the connection"


# -- stories -----------------------------------------------------------------


def on_story_added(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return state.with_story(
        Story(
            id=payload["storyId"],
            title=payload.get("title"),
            description=payload.get("description"),
            created_at=payload.get("createdAt"),
        )
    )


def log_story_added(username, payload, old_state, new_state, ev) -> str:
    return f'{username} added new story "{payload.get("title")}"'


def on_story_changed(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story = state.story_or_new(payload["storyId"])
    return state.with_story(replace(story, title=payload.get("title"), description=payload.get("description")))


def log_story_changed(username, payload, old_state, new_state, ev) -> str:
    return f'{username} changed story "{payload.get("title")}"'


def on_story_trashed(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload["storyId"]
    next_state = state.with_story(replace(state.story_or_new(story_id), trashed=True))
    if state.highlighted_story == story_id:
        next_state = replace(next_state, highlighted_story=None)
    return next_state


def log_story_trashed(username, payload, old_state, new_state, ev) -> str:
    return f'{username} moved story "{_title(old_state, payload.get("storyId"))}" to trash'


def on_story_restored(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload["storyId"]
    return state.with_story(replace(state.story_or_new(story_id), trashed=False))


def log_story_restored(username, payload, old_state, new_state, ev) -> str:
    return f'{username} restored story "{_title(old_state, payload.get("storyId"))}" from trash'


def on_story_deleted(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    stories = dict(state.stories)
    stories.pop(payload["storyId"], None)
    return replace(state, stories=stories)


def log_story_deleted(username, payload, old_state, new_state, ev) -> str:
    # the story is gone from new_state
    story_id = payload.get("storyId")
    line = f'{username} deleted story "{_title(old_state, story_id)}"'
    story = old_state.stories.get(story_id)
    if story is not None and story.consensus is not None:
        line += f". It was estimated {story.consensus}"
    return line


def on_story_selected(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload.get("storyId")
    return replace(
        state,
        selected_story=story_id,
        highlighted_story=state.highlighted_story or story_id,
        applause=False,
    )


def log_story_selected(username, payload, old_state, new_state, ev) -> str:
    story_id = payload.get("storyId")
    if not story_id:
        return "Currently no story is selected"
    return f'{username} selected current story "{_title(new_state, story_id)}"'


def on_import_failed(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return state


def log_import_failed(username, payload, old_state, new_state, ev) -> str:
    return f"CSV import failed. {payload.get('message', '')}"


# -- user identity -----------------------------------------------------------


def on_username_set(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    username = payload.get("username")
    own = is_own_user(state, ev.user_id)
    if own:
        ctx.preferences.set_preset_username(username)

    next_state = state.with_user(replace(state.user_or_new(ev.user_id), username=username))
    if own:
        next_state = replace(next_state, preset_username=username)
    return next_state


def log_username_set(username, payload, old_state, new_state, ev) -> Optional[str]:
    old_username = _name(old_state, ev.user_id, default="")
    new_username = payload.get("username")

    if old_username and old_username != new_username:
        return f'"{old_username}" is now called "{new_username}"'
    if not old_username and new_username:
        # first name after joining
        return f'{NEW_USER} is now called "{new_username}"'
    return None


def on_email_set(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    email = payload.get("email")
    own = is_own_user(state, ev.user_id)
    if own:
        ctx.preferences.set_preset_email(email)

    user = replace(state.user_or_new(ev.user_id), email=email, email_hash=payload.get("emailHash"))
    next_state = state.with_user(user)
    if own:
        next_state = replace(next_state, preset_email=email)
    return next_state


def log_email_set(username, payload, old_state, new_state, ev) -> str:
    return f"{_name(old_state, ev.user_id)} set his/her email address"


def on_avatar_set(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    avatar = payload.get("avatar")
    own = is_own_user(state, ev.user_id)
    if own:
        ctx.preferences.set_preset_avatar(avatar)

    next_state = state.with_user(replace(state.user_or_new(ev.user_id), avatar=avatar))
    if own:
        next_state = replace(next_state, preset_avatar=avatar)
    return next_state


def log_avatar_set(username, payload, old_state, new_state, ev) -> str:
    return f"{_name(old_state, ev.user_id)} set his/her avatar"


def on_excluded(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return state.with_user(replace(state.user_or_new(ev.user_id), excluded=True))


def log_excluded(username, payload, old_state, new_state, ev) -> str:
    return f"{username} is now excluded from estimations"


def on_included(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return state.with_user(replace(state.user_or_new(ev.user_id), excluded=False))


def log_included(username, payload, old_state, new_state, ev) -> str:
    return f"{username} is no longer excluded from estimations"


# -- estimation --------------------------------------------------------------


def on_story_estimate_given(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload["storyId"]
    story_estimations = dict(state.estimations.get(story_id) or {})
    story_estimations[ev.user_id] = payload.get("value")

    estimations = dict(state.estimations)
    estimations[story_id] = story_estimations
    return replace(state, estimations=estimations)


def on_story_estimate_cleared(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload["storyId"]
    if story_id not in state.estimations:
        return state

    story_estimations = dict(state.estimations[story_id])
    story_estimations.pop(ev.user_id, None)

    estimations = dict(state.estimations)
    estimations[story_id] = story_estimations
    return replace(state, estimations=estimations)


def on_consensus_achieved(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story = state.story_or_new(payload["storyId"])
    next_state = state.with_story(replace(story, consensus=payload.get("value")))
    return replace(next_state, applause=True)


def log_consensus_achieved(username, payload, old_state, new_state, ev) -> str:
    story = new_state.stories.get(payload.get("storyId"))
    # rooms that never set a deck estimate with the default one
    card_config = old_state.card_config or DEFAULT_CARD_CONFIG
    card = card_for_value(card_config, story.consensus if story else None)
    label = card.get("label") if card else "-"
    return f'Consensus achieved for story "{_title(new_state, payload.get("storyId"))}": {label}'


def on_revealed(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story = state.story_or_new(payload["storyId"])
    return state.with_story(replace(story, revealed=True))


def log_revealed(username, payload, old_state, new_state, ev) -> str:
    title = _title(new_state, payload.get("storyId"))
    if payload.get("manually"):
        return f'{username} manually revealed estimates for story "{title}"'
    return f'Estimates were automatically revealed for story "{title}"'


def on_new_estimation_round_started(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    story_id = payload["storyId"]
    story = state.story_or_new(story_id)
    next_state = state.with_story(replace(story, revealed=False, consensus=None))

    estimations = dict(next_state.estimations)
    estimations.pop(story_id, None)
    return replace(next_state, estimations=estimations, applause=False)


def log_new_estimation_round_started(username, payload, old_state, new_state, ev) -> str:
    return f'{username} started a new estimation round for story "{_title(new_state, payload.get("storyId"))}"'


# -- room settings -----------------------------------------------------------


def on_card_config_set(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, card_config=tuple(payload.get("cardConfig") or ()))


def log_card_config_set(username, payload, old_state, new_state, ev) -> str:
    return f"{username} set new custom card configuration for this room"


def on_auto_reveal_on(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, auto_reveal=True)


def log_auto_reveal_on(username, payload, old_state, new_state, ev) -> str:
    return f"{username} enabled auto reveal for this room"


def on_auto_reveal_off(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, auto_reveal=False)


def log_auto_reveal_off(username, payload, old_state, new_state, ev) -> str:
    return f"{username} disabled auto reveal for this room"


def on_password_set(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, password_protected=True)


def log_password_set(username, payload, old_state, new_state, ev) -> str:
    return f"{username} set a password for this room"


def on_password_cleared(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, password_protected=False)


def log_password_cleared(username, payload, old_state, new_state, ev) -> str:
    return f"{username} removed password protection for this room"


def on_token_issued(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    return replace(state, user_token=payload.get("token"))


def on_command_rejected(state: RoomState, payload: Dict[str, Any], ev: Event, ctx) -> RoomState:
    command_name = (payload.get("command") or {}).get("name", "unknown")
    get_logger(__name__, room_id=ev.room_id).error(
        f"Command {command_name} rejected: {payload.get('reason')}"
    )
    COMMANDS_REJECTED.labels(command=command_name).inc()
    return replace(state, unseen_error=True)


def log_command_rejected(username, payload, old_state, new_state, ev) -> LogMessage:
    command_name = (payload.get("command") or {}).get("name")
    return LogMessage(
        message=f'Command "{command_name}" was not successful. \n {payload.get("reason")}',
        is_error=True,
    )


# Estimates in progress are never logged: they would hint at other users' cards.
HANDLERS = {
    EventType.ROOM_CREATED: (on_room_created, DerivedLog(log_room_created)),
    EventType.JOINED_ROOM: (on_joined_room, DerivedLog(log_joined_room)),
    EventType.LEFT_ROOM: (on_left_room, DerivedLog(log_left_room)),
    EventType.KICKED: (on_kicked, DerivedLog(log_kicked)),
    EventType.CONNECTION_LOST: (on_connection_lost, DerivedLog(log_connection_lost)),
    EventType.STORY_ADDED: (on_story_added, DerivedLog(log_story_added)),
    EventType.STORY_CHANGED: (on_story_changed, DerivedLog(log_story_changed)),
    EventType.STORY_TRASHED: (on_story_trashed, DerivedLog(log_story_trashed)),
    EventType.STORY_RESTORED: (on_story_restored, DerivedLog(log_story_restored)),
    EventType.STORY_DELETED: (on_story_deleted, DerivedLog(log_story_deleted)),
    EventType.STORY_SELECTED: (on_story_selected, DerivedLog(log_story_selected)),
    EventType.IMPORT_FAILED: (on_import_failed, DerivedLog(log_import_failed)),
    EventType.USERNAME_SET: (on_username_set, DerivedLog(log_username_set)),
    EventType.EMAIL_SET: (on_email_set, DerivedLog(log_email_set)),
    EventType.AVATAR_SET: (on_avatar_set, DerivedLog(log_avatar_set)),
    EventType.EXCLUDED_FROM_ESTIMATIONS: (on_excluded, DerivedLog(log_excluded)),
    EventType.INCLUDED_IN_ESTIMATIONS: (on_included, DerivedLog(log_included)),
    EventType.STORY_ESTIMATE_GIVEN: (on_story_estimate_given, NoLog()),
    EventType.STORY_ESTIMATE_CLEARED: (on_story_estimate_cleared, NoLog()),
    EventType.CONSENSUS_ACHIEVED: (on_consensus_achieved, DerivedLog(log_consensus_achieved)),
    EventType.REVEALED: (on_revealed, DerivedLog(log_revealed)),
    EventType.NEW_ESTIMATION_ROUND_STARTED: (on_new_estimation_round_started, DerivedLog(log_new_estimation_round_started)),
    EventType.CARD_CONFIG_SET: (on_card_config_set, DerivedLog(log_card_config_set)),
    EventType.AUTO_REVEAL_ON: (on_auto_reveal_on, DerivedLog(log_auto_reveal_on)),
    EventType.AUTO_REVEAL_OFF: (on_auto_reveal_off, DerivedLog(log_auto_reveal_off)),
    EventType.PASSWORD_SET: (on_password_set, DerivedLog(log_password_set)),
    EventType.PASSWORD_CLEARED: (on_password_cleared, DerivedLog(log_password_cleared)),
    EventType.TOKEN_ISSUED: (on_token_issued, NoLog()),
    EventType.COMMAND_REJECTED: (on_command_rejected, DerivedLog(log_command_rejected)),
}
