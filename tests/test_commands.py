# tests/test_commands.py

from __future__ import annotations

import base64

from taskboard.cli.commands import CommandRegistry, registry
from taskboard.core.state import AppState


def _run(state: AppState, line: str) -> str:
    reply = registry.handle(state, line)
    assert reply is not None
    return reply


def test_command_registry_routes_2_and_3_params(state: AppState) -> None:
    reg = CommandRegistry()
    notes: list[str] = []

    def h2(state, args):
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, '/a x "y z"') == "h2:x,y z"
    assert reg.handle(state, "/aa") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_list_and_toggle(state: AppState) -> None:
    assert _run(state, "/add --minutes 10 --important Write docs") == "Task #1 added."
    assert _run(state, "/add Review PR") == "Task #2 added."

    listing = _run(state, "/list")
    assert "Tasks 2/2" in listing
    assert "Write docs" in listing and "Review PR" in listing

    assert _run(state, "/done 1") == "Task #1 marked as complete."
    assert _run(state, "/done #1") == "Task #1 marked as incomplete."
    assert _run(state, "/important 2") == "Task #2 marked as important."
    assert _run(state, "/count") == "0 of 2 task(s) completed."


def test_missing_task_and_bad_arguments(state: AppState) -> None:
    assert _run(state, "/done 99") == "Task not found: 99"
    assert _run(state, "/done abc").startswith("Invalid arguments for /done")
    assert _run(state, "/sort random").startswith("Invalid arguments for /sort")
    assert _run(state, "/add --user 5 orphan") == "User not found: 5"
    assert state.tasks.count_tasks() == 0


def test_show_keeps_one_status_visible(state: AppState) -> None:
    _run(state, "/add a")
    assert "show: incomplete" in _run(state, "/show completed")
    assert _run(state, "/show incomplete") == "At least one of completed/incomplete must stay visible."
    assert "show: completed+incomplete" in _run(state, "/show completed")


def test_more_extends_window_by_page_size(state: AppState) -> None:
    for i in range(5):
        _run(state, f"/add task {i}")

    first = _run(state, "/list")
    assert "Tasks 3/5" in first
    assert "2 more, use /more" in first

    assert "Tasks 5/5" in _run(state, "/more")
    assert _run(state, "/more") == "No more tasks."

    # Any selection change goes back to the first page.
    assert "Tasks 3/5" in _run(state, "/sort oldest")


def test_done_all_applies_to_filtered_tasks_only(state: AppState) -> None:
    _run(state, "/add --minutes 5 quick one")
    _run(state, "/add --minutes 60 long one")
    _run(state, "/add --minutes 2 quick two")

    _run(state, "/duration quick")
    assert _run(state, "/done-all on") == "2 task(s) changed."
    assert _run(state, "/done-all on") == "0 task(s) changed."
    assert _run(state, "/count") == "2 of 3 task(s) completed."

    _run(state, "/duration all")
    assert _run(state, "/toggle-all") == "3 task(s) toggled."
    assert _run(state, "/count") == "1 of 3 task(s) completed."


def test_history_lists_changes(state: AppState) -> None:
    _run(state, "/add chores")
    assert "no status changes recorded yet" in _run(state, "/history 1")

    _run(state, "/done 1")
    _run(state, "/important 1")

    out = _run(state, "/history 1")
    assert "Completed" in out and "Important" in out
    only_imp = _run(state, "/history 1 important")
    assert "Important" in only_imp and "Completed" not in only_imp
    assert _run(state, "/history 1 bogus").startswith("Invalid arguments for /history")


def test_stats_and_users(state: AppState) -> None:
    assert _run(state, "/stats") == "No users."
    assert _run(state, "/users") == "No users."

    assert _run(state, "/adduser Naruto orange") == "User #1 added."
    _run(state, "/add --user 1 --minutes 5 train")
    _run(state, "/done 1")

    out = _run(state, "/stats")
    assert "Naruto" in out
    assert "TOTAL" in out

    assert "sort: completed asc" in _run(state, "/stats completed")
    assert "sort: completed desc" in _run(state, "/stats completed")

    assert "#1 Naruto (color: orange" in _run(state, "/users")
    assert "users: 1" in _run(state, "/users 1")

    assert _run(state, "/deluser 1") == "User #1 deleted; 1 task(s) now have no owner."
    assert state.board.query.user_ids == frozenset()


def test_changes_and_activity(state: AppState) -> None:
    assert _run(state, "/changes") == "No changes recorded."
    _run(state, "/add a")
    _run(state, "/done 1")

    assert "#1 a -> completed" in _run(state, "/changes")
    assert _run(state, "/changes important") == "No changes recorded."

    out = _run(state, '/activity "10 days" total')
    assert out.startswith("Activity over 10 days (total):")
    assert len(out.splitlines()) == 1 + 6
    assert _run(state, "/activity forever").startswith("Periods:")


def test_avatar_reads_file_and_emits(state: AppState, tmp_path) -> None:
    _run(state, "/adduser Lee")
    path = tmp_path / "avatar.b64"
    path.write_text(base64.b64encode(b"image-bytes").decode("ascii"), "utf-8")
    notes: list[str] = []

    reply = registry.handle(state, f"/avatar 1 {path}", emit=notes.append)

    assert reply == "Avatar of user #1 updated."
    assert notes and notes[0].startswith("Reading")
    user = state.users.get_user(1)
    assert user is not None and user.image is not None
