"""
Tests for the roomstate CLI.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from typer.testing import CliRunner

from cli.main import app

FIXTURE = str(Path(__file__).parent / "fixtures" / "estimation_round.jsonl")

runner = CliRunner()


def _invoke(*args):
    """Run the CLI with logging silenced, restoring the root logger afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        return runner.invoke(app, ["--log-level", "CRITICAL", *args])
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


def test_replay_json_as_user():
    result = _invoke("replay", "--events", FIXTURE, "--as-user", "u1", "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["success"] is True
    assert data["events_replayed"] == 13
    assert data["room_id"] == "r1"
    assert data["user_id"] == "u1"
    assert data["users"] == 1
    assert data["stories"] == 2


def test_replay_projection_hash_is_stable():
    first = _invoke("replay", "--events", FIXTURE, "--join-command", "c-join", "--json")
    second = _invoke("replay", "--events", FIXTURE, "--join-command", "c-join", "--json")

    assert json.loads(first.stdout)["projection_hash"] == json.loads(second.stdout)["projection_hash"]


def test_replay_writes_preferences():
    with tempfile.TemporaryDirectory() as tmpdir:
        prefs = os.path.join(tmpdir, "prefs.json")
        result = _invoke("replay", "--events", FIXTURE, "--as-user", "u1", "--preferences", prefs, "--json")

        assert result.exit_code == 0, result.output
        with open(prefs) as f:
            assert json.load(f)["userId"] == "u1"


def test_replay_rich_output_with_log():
    result = _invoke("replay", "--events", FIXTURE, "--as-user", "u1", "--show-log")

    assert result.exit_code == 0, result.output
    assert "Replayed 13 events" in result.stdout
    assert "Bob left the room" in result.stdout


def _write_bracketed_stream(path):
    actions = [
        {"type": "JOINED_ROOM", "event": {"name": "joinedRoom", "roomId": "r1", "userId": "u1", "correlationId": "c1",
                                          "payload": {"users": [{"id": "u1", "username": "[bold]Al[/bold]"}], "stories": []}}},
        {"type": "STORY_ADDED", "event": {"name": "storyAdded", "roomId": "r1", "userId": "u1",
                                          "payload": {"storyId": "s1", "title": "fix [/] parser", "createdAt": 1}}},
        {"type": "COMMAND_REJECTED", "event": {"name": "commandRejected", "roomId": "r1", "userId": "u1",
                                               "payload": {"command": {"name": "[red]x"}, "reason": "bad [/]"}}},
    ]
    with open(path, "w") as f:
        for action in actions:
            f.write(json.dumps(action) + "\n")


def test_replay_log_shows_bracketed_text_literally():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "room.jsonl")
        _write_bracketed_stream(path)

        result = _invoke("replay", "--events", path, "--join-command", "c1", "--show-log")

        assert result.exit_code == 0, result.output
        assert "fix [/] parser" in result.stdout
        assert "[bold]Al[/bold]" in result.stdout
        assert "bad [/]" in result.stdout


def test_events_inspect_shows_bracketed_ids_literally():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "room.jsonl")
        with open(path, "w") as f:
            f.write(json.dumps({"name": "storyAdded", "roomId": "r[/]1", "userId": "[b]u1", "payload": {"storyId": "s"}}) + "\n")

        result = _invoke("events", "inspect", "--events", path)

        assert result.exit_code == 0, result.output
        assert "r[/]1" in result.stdout
        assert "[b]u1" in result.stdout


def test_replay_missing_file():
    result = _invoke("replay", "--events", "/nonexistent/events.jsonl", "--json")

    assert result.exit_code == 2
    assert json.loads(result.stdout)["error"] == "Event stream not found"


def test_events_inspect_filters_by_type():
    result = _invoke("events", "inspect", "--events", FIXTURE, "--event-type", "storyEstimateGiven", "--payload", "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["count"] == 2
    assert [e["index"] for e in data["events"]] == [6, 10]
    assert data["events"][1]["event"]["payload"] == {"storyId": "s1", "value": 5}


def test_events_tail():
    result = _invoke("events", "tail", "--events", FIXTURE, "--lines", "2", "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["count"] == 2
    assert data["events"][-1]["type"] == "LEFT_ROOM"


def test_version():
    result = _invoke("version")

    assert result.exit_code == 0
    assert "roomstate" in result.stdout
