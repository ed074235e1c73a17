"""
Tests for reducer purity and the room-level properties of the projection.

Critical: a transition never mutates the snapshot it was given.
"""

from dataclasses import replace

from roomstate.core import (
    Event,
    EventType,
    FixedClock,
    RoomState,
    Story,
    User,
    create_reducer,
    format_time,
    sequential_ids,
)
from roomstate.core.canonical import canonical_json_str
from roomstate.core.reducer import Reducer
from roomstate.preferences import InMemoryPreferenceStore


def _reducer(preferences=None):
    return create_reducer(
        preferences=preferences or InMemoryPreferenceStore(),
        clock=FixedClock(0),
        new_log_id=sequential_ids(),
    )


def _ev(event_type, payload=None, room_id="r1", user_id="u1", correlation_id=None):
    return Event.create(event_type, room_id, user_id=user_id, payload=payload, correlation_id=correlation_id)


def test_reducer_deterministic_output():
    """Same (state, event) must produce the same state."""
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1", username="A")})
    e = _ev(EventType.STORY_ADDED, {"storyId": "s1", "title": "T", "description": "d", "createdAt": 1})

    s1 = _reducer().apply(state, e)
    s2 = _reducer().apply(state, e)

    assert canonical_json_str(s1.to_dict()) == canonical_json_str(s2.to_dict())


def test_reducer_immutability():
    """Reducer must not mutate the input state."""
    users = {"u1": User(id="u1", username="A"), "u2": User(id="u2", username="B")}
    state = RoomState(room_id="r1", user_id="u1", users=users, estimations={"s1": {"u2": 5}})
    original = canonical_json_str(state.to_dict())

    r = _reducer()
    r.apply(state, _ev(EventType.LEFT_ROOM, user_id="u2"))
    r.apply(state, _ev(EventType.STORY_ESTIMATE_GIVEN, {"storyId": "s1", "value": 3}))
    r.apply(state, _ev(EventType.STORY_ESTIMATE_CLEARED, {"storyId": "s1"}, user_id="u2"))
    r.apply(state, _ev(EventType.USERNAME_SET, {"username": "Z"}, user_id="u2"))

    assert canonical_json_str(state.to_dict()) == original
    assert state.users is users
    assert state.estimations == {"s1": {"u2": 5}}


def test_room_created_and_import_failed_never_change_state():
    """roomCreated and importFailed only log."""
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1", username="A")})
    r = _reducer()

    created = r.apply(state, _ev(EventType.ROOM_CREATED, {"id": "r1"}))
    failed = r.apply(state, _ev(EventType.IMPORT_FAILED, {"message": "bad csv"}))

    assert replace(created, action_log=()) == state
    assert replace(failed, action_log=()) == state
    assert created.action_log[0].message == 'Room "r1" created'
    assert failed.action_log[0].message == "CSV import failed. bad csv"


def test_foreign_room_event_returns_same_object():
    """Events of another room return the input state itself."""
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1")})
    r = _reducer()

    for event_type in (EventType.STORY_ADDED, EventType.LEFT_ROOM, EventType.JOINED_ROOM, EventType.KICKED):
        e = _ev(event_type, {"storyId": "s1", "userId": "u1", "users": []}, room_id="other")
        assert r.apply(state, e) is state


def test_unknown_event_type_is_ignored():
    state = RoomState(room_id="r1")
    e = Event(type="MODERATOR_SET", name="moderatorSet", room_id="r1", user_id="u1", payload={"moderatorId": "x"})

    assert _reducer().apply(state, e) is state


def test_unknown_event_type_with_empty_registry():
    """A bare Reducer without handlers ignores everything but still guards."""
    state = RoomState(room_id="r1")
    e = _ev(EventType.STORY_ADDED, {"storyId": "s1"})

    assert Reducer().apply(state, e) is state


def test_own_join_adopts_full_snapshot():
    """Matching correlation id: own user id and full snapshot are adopted."""
    prefs = InMemoryPreferenceStore()
    state = RoomState(pending_join_command_id="c1", authorization_failed="r1")
    e = _ev(
        EventType.JOINED_ROOM,
        {
            "users": [{"id": "u1", "username": "Me"}, {"id": "u2", "username": "Other"}],
            "stories": [
                {"id": "s1", "title": "One", "createdAt": 1, "estimations": {"u2": 8}},
                {"id": "s2", "title": "Two", "createdAt": 2, "trashed": True},
            ],
            "selectedStory": "s1",
            "cardConfig": [{"label": "8", "value": 8, "color": "#fff"}],
            "autoReveal": True,
            "passwordProtected": True,
        },
        correlation_id="c1",
    )

    result = _reducer(prefs).apply(state, e)

    assert result.room_id == "r1"
    assert result.user_id == "u1"
    assert set(result.users) == {"u1", "u2"}
    assert result.stories["s2"].trashed is True
    assert result.estimations == {"s1": {"u2": 8}}
    assert result.selected_story == "s1"
    assert result.highlighted_story == "s1"
    assert result.card_config == ({"label": "8", "value": 8, "color": "#fff"},)
    assert result.auto_reveal is True
    assert result.password_protected is True
    assert result.pending_join_command_id is None
    assert result.authorization_failed is None
    assert prefs.load().user_id == "u1"
    assert result.action_log[0].message == 'You joined room "r1"'


def test_other_join_changes_only_users():
    """Non-matching or absent correlation id: only users change."""
    state = RoomState(
        room_id="r1",
        user_id="u1",
        users={"u1": User(id="u1", username="Me")},
        stories={"s1": Story(id="s1", title="One")},
        pending_join_command_id="c1",
    )
    for correlation_id in ("other", None):
        e = _ev(
            EventType.JOINED_ROOM,
            {"users": [{"id": "u1", "username": "Me"}, {"id": "u2"}], "stories": []},
            user_id="u2",
            correlation_id=correlation_id,
        )
        result = _reducer().apply(state, e)

        assert replace(result, users=state.users, action_log=()) == state
        assert set(result.users) == {"u1", "u2"}
        assert result.action_log[0].message == "New user joined"


def test_own_leave_resets_state():
    state = RoomState(
        room_id="r1",
        user_id="u1",
        users={"u1": User(id="u1", username="A"), "u2": User(id="u2")},
        stories={"s1": Story(id="s1")},
        user_token="tok",
    )
    result = _reducer().apply(state, _ev(EventType.LEFT_ROOM, user_id="u1"))

    assert replace(result, action_log=()) == RoomState.initial()
    assert result.action_log[0].message == "A left the room"


def test_own_kick_resets_state_keeping_presets():
    """Reset state is seeded from the preference store."""
    prefs = InMemoryPreferenceStore()
    prefs.set_preset_username("A")
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1", username="A"), "u2": User(id="u2", username="B")})

    result = _reducer(prefs).apply(state, _ev(EventType.KICKED, {"userId": "u1"}, user_id="u2"))

    assert replace(result, action_log=()) == RoomState.initial(prefs.load())
    assert result.preset_username == "A"
    assert result.action_log[0].message == "A was kicked from the room by B"


def test_estimation_round_reset():
    state = RoomState(
        room_id="r1",
        user_id="u1",
        users={"u1": User(id="u1", username="A")},
        stories={"s1": Story(id="s1", title="One", revealed=True, consensus=5)},
        estimations={"s1": {"u1": 5, "u2": 5}, "s2": {"u1": 1}},
        applause=True,
    )
    result = _reducer().apply(state, _ev(EventType.NEW_ESTIMATION_ROUND_STARTED, {"storyId": "s1"}))

    assert result.stories["s1"].revealed is False
    assert result.stories["s1"].consensus is None
    assert "s1" not in result.estimations
    assert result.estimations["s2"] == {"u1": 1}
    assert result.applause is False
    assert result.action_log[0].message == 'A started a new estimation round for story "One"'


def test_estimates_are_never_logged():
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1", username="A")})
    r = _reducer()

    given = r.apply(state, _ev(EventType.STORY_ESTIMATE_GIVEN, {"storyId": "s1", "value": 3}))
    cleared = r.apply(given, _ev(EventType.STORY_ESTIMATE_CLEARED, {"storyId": "s1"}))

    assert given.estimations == {"s1": {"u1": 3}}
    assert cleared.estimations == {"s1": {}}
    assert given.action_log == ()
    assert cleared.action_log == ()


def test_story_added_example():
    state = RoomState(room_id="r1", users={}, stories={})
    e = _ev(EventType.STORY_ADDED, {"storyId": "s1", "title": "Feature X", "description": "d", "createdAt": 100})

    result = _reducer().apply(state, e)

    assert result.stories == {"s1": Story(id="s1", title="Feature X", description="d", created_at=100)}
    assert len(result.action_log) == 1
    assert 'added new story "Feature X"' in result.action_log[0].message


def test_someone_else_left_example():
    state = RoomState(
        room_id="r1",
        user_id="u1",
        users={"u1": User(id="u1", username="A"), "u2": User(id="u2", username="B")},
    )
    result = _reducer().apply(state, _ev(EventType.LEFT_ROOM, {"userId": "u2"}, user_id="u2"))

    assert result.users == {"u1": User(id="u1", username="A")}
    assert result.action_log[0].message == "B left the room"


def test_log_entries_are_prepended():
    state = RoomState(room_id="r1", user_id="u1", users={"u1": User(id="u1", username="A")})
    r = _reducer()

    s1 = r.apply(state, _ev(EventType.AUTO_REVEAL_ON))
    s2 = r.apply(s1, _ev(EventType.PASSWORD_SET))

    assert [e.message for e in s2.action_log] == [
        "A set a password for this room",
        "A enabled auto reveal for this room",
    ]
    assert [e.log_id for e in s2.action_log] == ["log-2", "log-1"]
    assert s2.action_log[0].tstamp == format_time(0)


def test_sequence_determinism():
    """Sequence of events must produce the same result every run."""
    events = [
        _ev(EventType.JOINED_ROOM, {"users": [{"id": "u1", "username": "A"}], "stories": []}, correlation_id="c1"),
        _ev(EventType.STORY_ADDED, {"storyId": "s1", "title": "T", "createdAt": 1}),
        _ev(EventType.STORY_SELECTED, {"storyId": "s1"}),
        _ev(EventType.STORY_ESTIMATE_GIVEN, {"storyId": "s1", "value": 2}),
        _ev(EventType.REVEALED, {"storyId": "s1", "manually": True}),
    ]

    results = []
    for _ in range(10):
        r = _reducer()
        s = RoomState(pending_join_command_id="c1")
        for e in events:
            s = r.apply(s, e)
        results.append(canonical_json_str(s.to_dict()))

    assert len(set(results)) == 1
