# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from taskboard.tasks.task_models import ChangeType, TaskNotFoundError
from taskboard.tasks.task_store import TaskStore
from taskboard.users.user_store import UserStore

from .fakes import Recorder


def _history_total(store: TaskStore) -> int:
    return sum(len(store.get_task_history(t.id)) for t in store.get_tasks())


def test_add_task_sets_created_equal_updated(store: TaskStore) -> None:
    task_id = store.add_task(title="  Buy milk ", description="  ", duration=10, now_ts=100.0)
    task = store.get_task(task_id)

    assert task is not None
    assert task.title == "Buy milk"
    assert task.description is None
    assert task.created_at == task.updated_at == 100.0
    assert task.duration == 10
    assert task.is_completed is False
    assert task.is_important is False


def test_add_task_requires_title(store: TaskStore) -> None:
    with pytest.raises(ValueError):
        store.add_task(title="   ")


def test_toggle_completed_flips_refreshes_and_records(store: TaskStore) -> None:
    task_id = store.add_task(title="t", now_ts=100.0)

    task = store.toggle_completed(task_id, now_ts=200.0)

    assert task.is_completed is True
    assert task.updated_at == 200.0
    stored = store.get_task(task_id)
    assert stored is not None and stored.is_completed is True and stored.updated_at == 200.0

    history = store.get_task_history(task_id)
    assert len(history) == 1
    assert history[0].change_type is ChangeType.COMPLETION
    assert history[0].changed_to is True
    assert history[0].changed_at == 200.0


def test_toggle_twice_restores_value_but_keeps_two_entries(store: TaskStore) -> None:
    task_id = store.add_task(title="t", now_ts=100.0)

    store.toggle_completed(task_id, now_ts=200.0)
    task = store.toggle_completed(task_id, now_ts=300.0)

    assert task.is_completed is False
    history = store.get_task_history(task_id)
    assert [(e.changed_to, e.changed_at) for e in history] == [(False, 300.0), (True, 200.0)]


def test_toggle_important_records_importance_change(store: TaskStore) -> None:
    task_id = store.add_task(title="t", now_ts=100.0)

    task = store.toggle_important(task_id, now_ts=150.0)

    assert task.is_important is True
    assert task.is_completed is False
    (entry,) = store.get_task_history(task_id)
    assert entry.change_type is ChangeType.IMPORTANCE
    assert entry.changed_to is True


def test_toggle_missing_task_raises_and_writes_nothing(store: TaskStore, changes: Recorder) -> None:
    store.add_task(title="t")
    before = len(changes.calls)

    with pytest.raises(TaskNotFoundError):
        store.toggle_completed(999)
    with pytest.raises(TaskNotFoundError):
        store.toggle_important(999)

    assert _history_total(store) == 0
    assert len(changes.calls) == before


def test_toggle_is_atomic_when_history_append_fails(store: TaskStore, monkeypatch: pytest.MonkeyPatch) -> None:
    task_id = store.add_task(title="t", now_ts=100.0)

    def boom(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(TaskStore, "_append_history", staticmethod(boom))

    with pytest.raises(sqlite3.OperationalError):
        store.toggle_completed(task_id, now_ts=200.0)

    task = store.get_task(task_id)
    assert task is not None
    assert task.is_completed is False
    assert task.updated_at == 100.0


def test_set_all_completed_skips_tasks_already_at_value(store: TaskStore) -> None:
    a = store.add_task(title="a")
    b = store.add_task(title="b")
    done = store.add_task(title="done", is_completed=True)

    changed = store.set_all_completed([a, b, done, 999], True, now_ts=500.0)

    assert changed == 2
    assert len(store.get_task_history(a)) == 1
    assert len(store.get_task_history(b)) == 1
    assert store.get_task_history(done) == []
    assert all(t.is_completed for t in store.get_tasks())
    assert store.completed_count() == 3


def test_toggle_all_skips_missing_ids(store: TaskStore) -> None:
    a = store.add_task(title="a")
    b = store.add_task(title="b", is_completed=True)

    flipped = store.toggle_all([a, 12345, b], now_ts=10.0)

    assert flipped == 2
    ta, tb = store.get_task(a), store.get_task(b)
    assert ta is not None and ta.is_completed is True
    assert tb is not None and tb.is_completed is False


def test_toggle_all_stops_on_failure_and_keeps_applied_part(
    store: TaskStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    a = store.add_task(title="a")
    b = store.add_task(title="b")
    c = store.add_task(title="c")

    real_append = TaskStore._append_history

    def flaky(conn, task_id, change_type, changed_to, now_ts):
        if task_id == b:
            raise RuntimeError("boom")
        real_append(conn, task_id, change_type, changed_to, now_ts)

    monkeypatch.setattr(TaskStore, "_append_history", staticmethod(flaky))

    with pytest.raises(RuntimeError):
        store.toggle_all([a, b, c])

    states = {t.id: t.is_completed for t in store.get_tasks()}
    assert states == {a: True, b: False, c: False}


def test_list_all_with_history_count_annotates_counts(store: TaskStore) -> None:
    a = store.add_task(title="a")
    b = store.add_task(title="b")
    store.toggle_completed(a)
    store.toggle_completed(a)
    store.toggle_important(a)

    counts = {t.task.id: t.history_count for t in store.list_all_with_history_count()}

    assert counts == {a: 3, b: 0}


def test_search_is_trimmed_case_insensitive_over_title_and_description(store: TaskStore) -> None:
    milk = store.add_task(title="Buy Milk")
    report = store.add_task(title="Write report", description="monthly MILK numbers")
    store.add_task(title="Call mom")

    found = {t.task.id for t in store.list_all_with_history_count(search_query="  milk ")}

    assert found == {milk, report}


def test_blank_search_is_same_as_no_search(store: TaskStore) -> None:
    store.add_task(title="a")
    store.add_task(title="b", description="x")

    everything = store.list_all_with_history_count()

    assert store.list_all_with_history_count(search_query="   ") == everything
    assert store.list_all_with_history_count(search_query="") == everything
    assert len(everything) == 2


def test_user_filter_and_missing_user_annotation(store: TaskStore, users: UserStore) -> None:
    naruto = users.add_user(name="Naruto")
    sakura = users.add_user(name="Sakura")
    t1 = store.add_task(title="ramen", user_id=naruto)
    t2 = store.add_task(title="study", user_id=sakura)
    orphan = store.add_task(title="orphan", user_id=999)
    legacy = store.add_task(title="legacy")

    only_naruto = store.list_all_with_history_count(user_ids=[naruto])
    assert [t.task.id for t in only_naruto] == [t1]
    assert only_naruto[0].user_name == "Naruto"

    by_id = {t.task.id: t for t in store.list_all_with_history_count(user_ids=[])}
    assert set(by_id) == {t1, t2, orphan, legacy}
    assert by_id[orphan].user_name is None
    assert by_id[legacy].user_name is None


def test_empty_store_lists_nothing(store: TaskStore) -> None:
    assert store.list_all_with_history_count() == []
    assert store.list_all_with_history_count(search_query="x", user_ids=[1]) == []


def test_get_tasks_offset_pages(store: TaskStore) -> None:
    ids = [store.add_task(title=f"t{i}") for i in range(5)]

    assert [t.id for t in store.get_tasks()] == ids
    assert [t.id for t in store.get_tasks(page=2, page_size=2)] == ids[2:4]
    assert [t.id for t in store.get_tasks(page=3, page_size=2)] == ids[4:]
    with pytest.raises(ValueError):
        store.get_tasks(page=0, page_size=2)


def test_list_paginated_walks_all_tasks_in_ascending_order(store: TaskStore) -> None:
    ids = [store.add_task(title=f"t{i}") for i in range(5)]

    seen: list[int] = []
    cursor = None
    pages = 0
    while True:
        page = store.list_paginated(cursor=cursor, num_items=2)
        pages += 1
        seen.extend(t.id for t in page.items)
        cursor = page.continue_cursor
        if page.is_done:
            break

    assert seen == ids
    assert pages == 3


def test_latest_changes_pages_through_equal_timestamps(store: TaskStore) -> None:
    ids = [store.add_task(title=f"t{i}") for i in range(4)]
    store.set_all_completed(ids, True, now_ts=1000.0)

    first = store.get_latest_changes(limit=3)
    assert first.has_more is True
    assert len(first.items) == 3

    second = store.get_latest_changes(limit=3, cursor=first.next_cursor)
    assert second.has_more is False
    assert second.next_cursor is None

    all_ids = [i.entry.id for i in first.items + second.items]
    assert len(all_ids) == len(set(all_ids)) == 4
    assert {i.task_title for i in first.items + second.items} == {"t0", "t1", "t2", "t3"}


def test_latest_changes_chip_filters(store: TaskStore, tmp_path: Path) -> None:
    a = store.add_task(title="a")
    store.toggle_completed(a, now_ts=1.0)  # completed
    store.toggle_completed(a, now_ts=2.0)  # incomplete
    store.toggle_important(a, now_ts=3.0)  # important

    # Legacy entry without a change type counts as a completion change.
    conn = sqlite3.connect(tmp_path / "tasks.sqlite3")
    conn.execute(
        "INSERT INTO task_history(task_id, change_type, changed_to, changed_at) VALUES (?, NULL, 1, 4.0)",
        (a,),
    )
    conn.commit()
    conn.close()

    def kinds(**chips) -> list[tuple[ChangeType, bool]]:
        page = store.get_latest_changes(limit=10, **chips)
        return [(i.entry.change_type, i.entry.changed_to) for i in page.items]

    assert len(kinds()) == 4
    assert kinds(show_completed=True) == [(ChangeType.COMPLETION, True), (ChangeType.COMPLETION, True)]
    assert kinds(show_incomplete=True) == [(ChangeType.COMPLETION, False)]
    assert kinds(show_important=True) == [(ChangeType.IMPORTANCE, True)]
    assert kinds(show_not_important=True) == []


def test_changes_over_time_counts_by_bucket(store: TaskStore, users: UserStore) -> None:
    day = 86400.0
    now = 100 * day
    u = users.add_user(name="Kakashi")
    mine = store.add_task(title="mine", user_id=u)
    other = store.add_task(title="other")

    store.toggle_completed(mine, now_ts=now - 4.5 * day)  # first bucket
    store.toggle_important(mine, now_ts=now - 0.5 * day)  # last bucket
    store.toggle_completed(other, now_ts=now - 0.2 * day)  # last bucket
    store.toggle_completed(other, now_ts=now - 30 * day)  # outside the window

    buckets = store.get_changes_over_time(days=5, now_ts=now)
    assert len(buckets) == 5
    assert buckets[0].completed == 1
    assert buckets[-1].important == 1
    assert buckets[-1].completed == 1
    assert sum(b.total for b in buckets) == 3

    only_mine = store.get_changes_over_time(days=5, user_ids=[u], now_ts=now)
    assert sum(b.total for b in only_mine) == 2


def test_mutations_notify_listener(store: TaskStore, changes: Recorder) -> None:
    task_id = store.add_task(title="t")
    store.toggle_completed(task_id)
    store.toggle_important(task_id)
    store.set_all_completed([task_id], True)  # already completed: no change, no notification
    store.toggle_all([task_id])

    assert changes.calls == ["add_task", "toggle_completed", "toggle_important", "toggle_all"]


def test_legacy_rows_are_migrated_and_defaulted(tmp_path: Path) -> None:
    db = tmp_path / "legacy.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            is_completed INTEGER NOT NULL DEFAULT 0
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE task_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            task_id INTEGER NOT NULL,
            changed_to INTEGER NOT NULL,
            changed_at REAL NOT NULL
        )
        """
    )
    conn.execute("INSERT INTO tasks(title, is_completed) VALUES ('old task', 1)")
    conn.execute("INSERT INTO task_history(task_id, changed_to, changed_at) VALUES (1, 1, 50.0)")
    conn.commit()
    conn.close()

    store = TaskStore(db)
    task = store.get_task(1)

    assert task is not None
    assert task.is_completed is True
    assert task.is_important is False
    assert task.created_at == 0.0
    assert task.updated_at == 0.0
    assert task.duration == 0
    assert task.user_id is None

    (entry,) = store.get_task_history(1)
    assert entry.change_type is ChangeType.COMPLETION

    toggled = store.toggle_important(1, now_ts=60.0)
    assert toggled.is_important is True


def test_truncate_all_tables(store: TaskStore, users: UserStore) -> None:
    users.add_user(name="Hinata")
    task_id = store.add_task(title="t")
    store.toggle_completed(task_id)

    store.truncate_all_tables()

    assert store.count_tasks() == 0
    assert store.get_task_history(task_id) == []
    assert users.get_all_users() == []
