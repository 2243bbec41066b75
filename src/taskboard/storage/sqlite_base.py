# src/taskboard/storage/sqlite_base.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class SQLiteStore:
    """
    Shared base for the SQLite-backed stores.

    Tasks, task history and users live in one database file so the task
    listing can join history counts and user names in a single query.

    The schema is migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path, *, on_change: ChangeCallback | None = None) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._on_change = on_change
        self._ensure_schema()

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")

    def _changed(self, reason: str) -> None:
        """Tell the live-query bus that committed data changed."""
        if self._on_change is None:
            return
        try:
            self._on_change(reason)
        except Exception:
            logger.exception("on_change callback failed reason=%s", reason)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    image TEXT,
                    color TEXT
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    is_completed INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL REFERENCES tasks(id),
                    changed_to INTEGER NOT NULL,
                    changed_at REAL NOT NULL
                )
                """
            )

            # Columns that arrived after the first release stay nullable so
            # legacy rows keep working; defaults are applied on read.
            def add_cols(table: str, wanted: dict[str, str]) -> None:
                cur.execute(f"PRAGMA table_info({table})")
                cols = {row["name"] for row in cur.fetchall()}
                for name, decl in wanted.items():
                    if name in cols:
                        continue
                    cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
                    logger.info("Schema migration: added column %s.%s", table, name)

            add_cols(
                "tasks",
                {
                    "is_important": "INTEGER",
                    "created_at": "REAL",
                    "updated_at": "REAL",
                    "duration": "INTEGER",
                    "user_id": "INTEGER",
                },
            )
            add_cols("task_history", {"change_type": "TEXT"})

            cur.execute("CREATE INDEX IF NOT EXISTS idx_history_task ON task_history(task_id)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_history_changed_at ON task_history(changed_at)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)")

            conn.commit()
        finally:
            conn.close()
