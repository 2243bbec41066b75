# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task API and the command layer.

They depend on Protocols instead of the SQLite stores, so tests can swap in
in-memory fakes.
"""

from typing import Any, Iterable, Protocol


class TaskRepo(Protocol):
    # Listing / aggregation
    def count_tasks(self) -> int: ...
    def completed_count(self) -> int: ...
    def get_task(self, task_id: int) -> Any | None: ...
    def get_tasks(self, page: int | None = None, page_size: int | None = None) -> list[Any]: ...
    def list_paginated(self, *, cursor: int | None = None, num_items: int = 50) -> Any: ...
    def list_all_with_history_count(
            self,
            *,
            search_query: str | None = None,
            user_ids: Iterable[int] | None = None,
    ) -> list[Any]: ...

    # Change-recording mutators
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
    ) -> int: ...
    def toggle_completed(self, task_id: int, *, now_ts: float | None = None) -> Any: ...
    def toggle_important(self, task_id: int, *, now_ts: float | None = None) -> Any: ...
    def toggle_all(self, task_ids: Iterable[int], *, now_ts: float | None = None) -> int: ...
    def set_all_completed(self, task_ids: Iterable[int], value: bool, *, now_ts: float | None = None) -> int: ...

    # History feeds
    def get_task_history(self, task_id: int) -> list[Any]: ...
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
    ) -> Any: ...
    def get_changes_over_time(
            self,
            *,
            days: int,
            user_ids: Iterable[int] | None = None,
            now_ts: float | None = None,
    ) -> list[Any]: ...


class UserRepo(Protocol):
    def add_user(self, *, name: str, color: str | None = None, image: str | None = None) -> int: ...
    def get_user(self, user_id: int) -> Any | None: ...
    def get_all_users(self) -> list[Any]: ...
    def update_user_color(self, user_id: int, color: str) -> None: ...
    def update_user_image(self, user_id: int, image_base64: str) -> None: ...
    def delete_user(self, user_id: int) -> int: ...
