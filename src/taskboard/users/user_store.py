# src/taskboard/users/user_store.py

from __future__ import annotations

import base64
import binascii
import logging
import sqlite3
from pathlib import Path

from ..storage.sqlite_base import ChangeCallback, SQLiteStore
from .user_models import User, UserNotFoundError

logger = logging.getLogger(__name__)


class UserStore(SQLiteStore):
    """
    User profiles (name, avatar, color).

    Tasks hold a weak reference to their owner: deleting a user detaches
    its tasks (user_id -> NULL) in the same transaction instead of deleting
    them.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, on_change: ChangeCallback | None = None) -> None:
        super().__init__(db_path, on_change=on_change)
        logger.info("UserStore ready db=%s total=%s", self._db_path, len(self.get_all_users()))

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            image=row["image"],
            color=row["color"],
        )

    @staticmethod
    def _check_image(image_base64: str) -> str:
        cleaned = "".join((image_base64 or "").split())
        if not cleaned:
            raise ValueError("image is empty")
        try:
            base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("image is not valid base64") from e
        return cleaned

    def _update_column(self, user_id: int, column: str, value: str | None, reason: str) -> None:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"UPDATE users SET {column} = ? WHERE id = ?", (value, int(user_id)))
            conn.commit()
            if cur.rowcount != 1:
                raise UserNotFoundError(int(user_id))
        finally:
            conn.close()
        self._changed(reason)

    def add_user(self, *, name: str, color: str | None = None, image: str | None = None) -> int:
        if not name or not name.strip():
            raise ValueError("name is required")
        img = self._check_image(image) if image else None

        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO users(name, image, color) VALUES (?, ?, ?)",
                (name.strip(), img, (color or "").strip() or None),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for users insert")
        finally:
            conn.close()

        logger.debug("User added id=%s name=%s", rowid, name)
        self._changed("add_user")
        return int(rowid)

    def get_user(self, user_id: int) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (int(user_id),)).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def get_all_users(self) -> list[User]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM users ORDER BY name COLLATE NOCASE, id").fetchall()
            return [self._row_to_user(r) for r in rows]
        finally:
            conn.close()

    def update_user_color(self, user_id: int, color: str) -> None:
        value = (color or "").strip()
        if not value:
            raise ValueError("color is required")
        self._update_column(user_id, "color", value, "update_user_color")

    def update_user_image(self, user_id: int, image_base64: str) -> None:
        self._update_column(user_id, "image", self._check_image(image_base64), "update_user_image")

    def delete_user(self, user_id: int) -> int:
        """Delete a user and detach its tasks. Returns how many tasks were detached."""
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            cur = conn.execute("DELETE FROM users WHERE id = ?", (int(user_id),))
            if cur.rowcount != 1:
                conn.rollback()
                raise UserNotFoundError(int(user_id))
            detached = conn.execute(
                "UPDATE tasks SET user_id = NULL WHERE user_id = ?", (int(user_id),)
            ).rowcount
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info("User %s deleted, %s task(s) detached", user_id, detached)
        self._changed("delete_user")
        return int(detached)
