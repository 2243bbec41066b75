# src/taskboard/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from ..storage.sqlite_base import ChangeCallback, SQLiteStore
from .activity import SECONDS_PER_DAY, bucketize, interval_count_for_days
from .task_models import (
    ActivityBucket,
    ChangeFeedItem,
    ChangesPage,
    ChangeType,
    EnrichedTask,
    Task,
    TaskHistoryEntry,
    TaskNotFoundError,
    TaskPage,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

_FIELD_FOR_CHANGE = {
    ChangeType.COMPLETION: "is_completed",
    ChangeType.IMPORTANCE: "is_important",
}


def _placeholders(values: list[Any]) -> str:
    return ",".join("?" for _ in values)


def _normalize_ids(ids: Iterable[int] | None) -> list[int]:
    if not ids:
        return []
    return [int(x) for x in ids]


class TaskStore(SQLiteStore):
    """
    SQLite store for tasks and their change history.

    Status and importance flips go through the change-recording mutators:
    the field flip, the updated_at refresh and the history append commit in
    one transaction. Bulk variants run one transaction per task.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, on_change: ChangeCallback | None = None) -> None:
        super().__init__(db_path, on_change=on_change)
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """Open a connection holding the write lock; commit on success, roll back on error."""
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            description=row["description"],
            is_completed=bool(row["is_completed"]),
            is_important=bool(row["is_important"] or 0),
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            duration=int(row["duration"] or 0),
            user_id=int(row["user_id"]) if row["user_id"] is not None else None,
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> TaskHistoryEntry:
        return TaskHistoryEntry(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            change_type=ChangeType.from_db(row["change_type"]),
            changed_to=bool(row["changed_to"]),
            changed_at=float(row["changed_at"]),
        )

    @staticmethod
    def _append_history(
        conn: sqlite3.Connection,
        task_id: int,
        change_type: ChangeType,
        changed_to: bool,
        now_ts: float,
    ) -> None:
        conn.execute(
            """
            INSERT INTO task_history(task_id, change_type, changed_to, changed_at)
            VALUES (?, ?, ?, ?)
            """,
            (task_id, change_type.value, int(changed_to), now_ts),
        )

    def _flip(self, task_id: int, change_type: ChangeType, now_ts: float) -> Task:
        column = _FIELD_FOR_CHANGE[change_type]
        with self._write() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            if row is None:
                raise TaskNotFoundError(int(task_id))

            task = self._row_to_task(row)
            new_value = not (task.is_completed if change_type is ChangeType.COMPLETION else task.is_important)

            conn.execute(
                f"UPDATE tasks SET {column} = ?, updated_at = ? WHERE id = ?",
                (int(new_value), now_ts, task.id),
            )
            self._append_history(conn, task.id, change_type, new_value, now_ts)

        if change_type is ChangeType.COMPLETION:
            task.is_completed = new_value
        else:
            task.is_important = new_value
        task.updated_at = now_ts
        logger.debug("Task %s %s -> %s", task.id, change_type.value, new_value)
        return task

    # ---- counts ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def completed_count(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks WHERE is_completed = 1").fetchone()
            return int(n)
        finally:
            conn.close()

    # ---- create / read ----

    def add_task(
        self,
        *,
        title: str,
        description: str | None = None,
        user_id: int | None = None,
        duration: int | None = None,
        is_important: bool = False,
        is_completed: bool = False,
        now_ts: float | None = None,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")
        if duration is not None and int(duration) < 0:
            raise ValueError("duration must be >= 0")

        now = time.time() if now_ts is None else float(now_ts)
        desc = description.strip() if description and description.strip() else None

        with self._write() as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(
                    title, description, is_completed, is_important,
                    created_at, updated_at, duration, user_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title.strip(),
                    desc,
                    int(bool(is_completed)),
                    int(bool(is_important)),
                    now,
                    now,
                    int(duration) if duration is not None else None,
                    int(user_id) if user_id is not None else None,
                ),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)

        logger.debug("Task added id=%s user_id=%s duration=%s", task_id, user_id, duration)
        self._changed("add_task")
        return task_id

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def get_tasks(self, page: int | None = None, page_size: int | None = None) -> list[Task]:
        """
        Legacy offset listing ordered by id.

        Without page/page_size every task is returned; otherwise page is 1-based.
        """
        sql = "SELECT * FROM tasks ORDER BY id ASC"
        params: tuple[int, ...] = ()
        if page is not None or page_size is not None:
            page = 1 if page is None else int(page)
            size = DEFAULT_PAGE_SIZE if page_size is None else int(page_size)
            if page < 1:
                raise ValueError("page must be >= 1")
            if size < 1:
                raise ValueError("page_size must be >= 1")
            sql += " LIMIT ? OFFSET ?"
            params = (size, (page - 1) * size)

        conn = self._get_conn()
        try:
            return [self._row_to_task(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def list_paginated(self, *, cursor: int | None = None, num_items: int = DEFAULT_PAGE_SIZE) -> TaskPage:
        """Cursor pagination in ascending id order; cursor is the last id already seen."""
        if int(num_items) < 1:
            raise ValueError("num_items must be >= 1")

        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE id > ? ORDER BY id ASC LIMIT ?",
                (int(cursor or 0), int(num_items) + 1),
            ).fetchall()
        finally:
            conn.close()

        items = [self._row_to_task(r) for r in rows[: int(num_items)]]
        is_done = len(rows) <= int(num_items)
        continue_cursor = items[-1].id if items else cursor
        return TaskPage(items=items, continue_cursor=continue_cursor, is_done=is_done)

    def list_all_with_history_count(
        self,
        *,
        search_query: str | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[EnrichedTask]:
        """
        Every task annotated with its history count and owner name.

        - search_query is trimmed; blank means no search filter
        - search is a case-insensitive substring match on title or description
        - an empty user_ids collection means all users
        - a task pointing at a missing user gets user_name=None
        """
        ids = _normalize_ids(user_ids)
        needle = (search_query or "").strip().casefold()

        sql = """
            SELECT t.*,
                   (SELECT COUNT(*) FROM task_history h WHERE h.task_id = t.id) AS history_count,
                   u.name AS user_name
            FROM tasks t
            LEFT JOIN users u ON u.id = t.user_id
        """
        params: list[Any] = []
        if ids:
            sql += f" WHERE t.user_id IN ({_placeholders(ids)})"
            params.extend(ids)
        sql += " ORDER BY t.id ASC"

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()

        out: list[EnrichedTask] = []
        for r in rows:
            task = self._row_to_task(r)
            if needle:
                haystacks = (task.title.casefold(), (task.description or "").casefold())
                if not any(needle in h for h in haystacks):
                    continue
            out.append(
                EnrichedTask(task=task, history_count=int(r["history_count"]), user_name=r["user_name"])
            )
        return out

    # ---- change-recording mutators ----

    def toggle_completed(self, task_id: int, *, now_ts: float | None = None) -> Task:
        """Flip is_completed and record it. Raises TaskNotFoundError for unknown ids."""
        now = time.time() if now_ts is None else float(now_ts)
        task = self._flip(task_id, ChangeType.COMPLETION, now)
        self._changed("toggle_completed")
        return task

    def toggle_important(self, task_id: int, *, now_ts: float | None = None) -> Task:
        """Flip is_important and record it. Raises TaskNotFoundError for unknown ids."""
        now = time.time() if now_ts is None else float(now_ts)
        task = self._flip(task_id, ChangeType.IMPORTANCE, now)
        self._changed("toggle_important")
        return task

    def toggle_all(self, task_ids: Iterable[int], *, now_ts: float | None = None) -> int:
        """
        Flip completion on each task, one transaction per task.

        Unknown ids are skipped. Any other failure stops the loop; tasks
        already flipped stay flipped. Returns how many tasks were flipped.
        """
        now = time.time() if now_ts is None else float(now_ts)
        flipped = 0
        try:
            for task_id in _normalize_ids(task_ids):
                try:
                    self._flip(task_id, ChangeType.COMPLETION, now)
                except TaskNotFoundError:
                    logger.debug("toggle_all: task %s not found, skipped", task_id)
                    continue
                flipped += 1
        finally:
            if flipped:
                self._changed("toggle_all")
        return flipped

    def set_all_completed(self, task_ids: Iterable[int], value: bool, *, now_ts: float | None = None) -> int:
        """
        Set is_completed=value on each task, one transaction per task.

        Tasks that are missing or already at value are skipped and get no
        history entry. Returns how many tasks changed.
        """
        now = time.time() if now_ts is None else float(now_ts)
        target = bool(value)
        changed = 0
        try:
            for task_id in _normalize_ids(task_ids):
                with self._write() as conn:
                    row = conn.execute("SELECT is_completed FROM tasks WHERE id = ?", (task_id,)).fetchone()
                    if row is None or bool(row["is_completed"]) == target:
                        continue
                    conn.execute(
                        "UPDATE tasks SET is_completed = ?, updated_at = ? WHERE id = ?",
                        (int(target), now, task_id),
                    )
                    self._append_history(conn, task_id, ChangeType.COMPLETION, target, now)
                changed += 1
        finally:
            if changed:
                self._changed("set_all_completed")
        logger.debug("set_all_completed value=%s changed=%s", target, changed)
        return changed

    # ---- history feeds ----

    def get_task_history(self, task_id: int) -> list[TaskHistoryEntry]:
        """All history for one task, newest first."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM task_history
                WHERE task_id = ?
                ORDER BY changed_at DESC, id DESC
                """,
                (int(task_id),),
            ).fetchall()
            return [self._row_to_entry(r) for r in rows]
        finally:
            conn.close()

    def get_latest_changes(
        self,
        *,
        limit: int = 15,
        cursor: tuple[float, int] | None = None,
        user_ids: Iterable[int] | None = None,
        show_completed: bool = False,
        show_incomplete: bool = False,
        show_important: bool = False,
        show_not_important: bool = False,
    ) -> ChangesPage:
        """
        Cross-task change feed, newest first.

        The show_* chips select which kinds of change to include; with no
        chip selected every change is returned. Legacy untagged entries count
        as completion changes.
        """
        if int(limit) < 1:
            raise ValueError("limit must be >= 1")

        where: list[str] = []
        params: list[Any] = []

        ids = _normalize_ids(user_ids)
        if ids:
            where.append(f"t.user_id IN ({_placeholders(ids)})")
            params.extend(ids)

        if cursor is not None:
            at, last_id = cursor
            where.append("(h.changed_at < ? OR (h.changed_at = ? AND h.id < ?))")
            params.extend([float(at), float(at), int(last_id)])

        is_importance = "COALESCE(h.change_type, 'completion') = 'importance'"
        chips: list[str] = []
        if show_completed:
            chips.append(f"(NOT {is_importance} AND h.changed_to = 1)")
        if show_incomplete:
            chips.append(f"(NOT {is_importance} AND h.changed_to = 0)")
        if show_important:
            chips.append(f"({is_importance} AND h.changed_to = 1)")
        if show_not_important:
            chips.append(f"({is_importance} AND h.changed_to = 0)")
        if chips:
            where.append("(" + " OR ".join(chips) + ")")

        sql = """
            SELECT h.*, t.title AS task_title, t.user_id AS task_user_id
            FROM task_history h
            JOIN tasks t ON t.id = h.task_id
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY h.changed_at DESC, h.id DESC LIMIT ?"
        params.append(int(limit) + 1)

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()

        has_more = len(rows) > int(limit)
        items = [
            ChangeFeedItem(
                entry=self._row_to_entry(r),
                task_title=str(r["task_title"] or ""),
                user_id=int(r["task_user_id"]) if r["task_user_id"] is not None else None,
            )
            for r in rows[: int(limit)]
        ]
        next_cursor = (items[-1].entry.changed_at, items[-1].entry.id) if has_more and items else None
        return ChangesPage(items=items, next_cursor=next_cursor, has_more=has_more)

    def get_changes_over_time(
        self,
        *,
        days: int,
        user_ids: Iterable[int] | None = None,
        now_ts: float | None = None,
    ) -> list[ActivityBucket]:
        """Per-bucket change counts over the last `days` days (delta mode)."""
        if int(days) < 1:
            raise ValueError("days must be >= 1")

        end = time.time() if now_ts is None else float(now_ts)
        start = end - int(days) * SECONDS_PER_DAY

        sql = """
            SELECT h.*
            FROM task_history h
            JOIN tasks t ON t.id = h.task_id
            WHERE h.changed_at >= ? AND h.changed_at <= ?
        """
        params: list[Any] = [start, end]
        ids = _normalize_ids(user_ids)
        if ids:
            sql += f" AND t.user_id IN ({_placeholders(ids)})"
            params.extend(ids)

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()

        return bucketize(
            (self._row_to_entry(r) for r in rows),
            start=start,
            end=end,
            count=interval_count_for_days(int(days)),
        )

    # ---- admin ----

    def truncate_all_tables(self) -> None:
        with self._write() as conn:
            conn.execute("DELETE FROM task_history")
            conn.execute("DELETE FROM tasks")
            conn.execute("DELETE FROM users")
        logger.warning("All tables truncated db=%s", self._db_path)
        self._changed("truncate_all_tables")
