"""
Tests for action log composition.
"""

import pytest

from roomstate.core import (
    ConstantLog,
    DerivedLog,
    Event,
    EventType,
    FixedClock,
    LogMessage,
    NoLog,
    ReducerContext,
    RoomState,
    User,
    format_time,
    sequential_ids,
)
from roomstate.core.action_log import acting_username, append_log_entry, to_log_strategy


def _ctx():
    return ReducerContext(clock=FixedClock(60_000), new_log_id=sequential_ids("entry"))


def _event(user_id="u1"):
    return Event.create(EventType.STORY_ADDED, "r1", user_id=user_id, payload={"title": "T"})


def test_no_log_returns_new_state_unchanged():
    old, new = RoomState(), RoomState(room_id="r1")

    assert append_log_entry(NoLog(), old, new, _event(), _ctx()) is new


def test_constant_log_is_used_verbatim():
    result = append_log_entry(ConstantLog("hello"), RoomState(), RoomState(), _event(), _ctx())

    entry = result.action_log[0]
    assert entry.message == "hello"
    assert entry.is_error is False
    assert entry.log_id == "entry-1"
    assert entry.tstamp == format_time(60_000)


def test_derived_log_receives_username_from_new_state():
    """A user who only exists after the transition is still named."""
    seen = {}

    def fn(username, payload, old_state, new_state, event):
        seen["args"] = (username, payload, old_state, new_state, event)
        return f"{username} did {payload['title']}"

    old = RoomState(room_id="r1")
    new = RoomState(room_id="r1", users={"u1": User(id="u1", username="Newbie")})
    ev = _event()

    result = append_log_entry(DerivedLog(fn), old, new, ev, _ctx())

    assert result.action_log[0].message == "Newbie did T"
    assert seen["args"] == ("Newbie", ev.payload, old, new, ev)


@pytest.mark.parametrize("empty", [None, ""])
def test_empty_derived_result_appends_nothing(empty):
    new = RoomState(room_id="r1")

    assert append_log_entry(DerivedLog(lambda *args: empty), RoomState(), new, _event(), _ctx()) is new


def test_structured_error_message():
    strategy = DerivedLog(lambda *args: LogMessage("boom", is_error=True))
    result = append_log_entry(strategy, RoomState(), RoomState(), _event(), _ctx())

    assert result.action_log[0].message == "boom"
    assert result.action_log[0].is_error is True


def test_entries_are_prepended_and_never_removed():
    ctx = _ctx()
    state = RoomState()
    for text in ("one", "two", "three"):
        state = append_log_entry(ConstantLog(text), state, state, _event(), ctx)

    assert [e.message for e in state.action_log] == ["three", "two", "one"]
    assert len({e.log_id for e in state.action_log}) == 3


def test_acting_username_defaults_to_empty():
    state = RoomState(users={"u1": User(id="u1"), "u2": User(id="u2", username="B")})

    assert acting_username(state, "u1") == ""
    assert acting_username(state, "missing") == ""
    assert acting_username(state, None) == ""
    assert acting_username(state, "u2") == "B"


def test_to_log_strategy():
    assert to_log_strategy(None) == NoLog()
    assert to_log_strategy("x") == ConstantLog("x")
    assert isinstance(to_log_strategy(lambda *a: "x"), DerivedLog)
    assert to_log_strategy(ConstantLog("y")) == ConstantLog("y")
    with pytest.raises(TypeError):
        to_log_strategy(42)
