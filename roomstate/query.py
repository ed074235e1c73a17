"""
Read-only queries over room state.
"""

from typing import Any, Dict, List, Optional

from .core.state import RoomState, Story, User


def own_user(state: RoomState) -> Optional[User]:
    return state.users.get(state.user_id) if state.user_id else None


def selected_story(state: RoomState) -> Optional[Story]:
    return state.stories.get(state.selected_story) if state.selected_story else None


def is_a_story_selected(state: RoomState) -> bool:
    return selected_story(state) is not None


def active_stories(state: RoomState) -> List[Story]:
    """Stories not in the trash, oldest first."""
    return sorted(
        (s for s in state.stories.values() if not s.trashed),
        key=lambda s: (s.created_at or 0, s.id),
    )


def trashed_stories(state: RoomState) -> List[Story]:
    return sorted(
        (s for s in state.stories.values() if s.trashed),
        key=lambda s: (s.created_at or 0, s.id),
    )


def estimations_for(state: RoomState, story_id: str) -> Dict[str, Any]:
    """user id -> value for the story's current round (empty if none)."""
    return dict(state.estimations.get(story_id) or {})


def has_estimated(state: RoomState, story_id: str, user_id: Optional[str] = None) -> bool:
    """Whether the user (default: own user) gave an estimate this round."""
    user_id = user_id or state.user_id
    return user_id is not None and user_id in (state.estimations.get(story_id) or {})


def users_sorted(state: RoomState) -> List[User]:
    """Own user first, then others by name."""
    return sorted(
        state.users.values(),
        key=lambda u: (u.id != state.user_id, (u.username or "").lower(), u.id),
    )
