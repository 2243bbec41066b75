# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskboard.cli.bootstrap import create_initial_state
from taskboard.core.state import AppState
from taskboard.tasks.task_store import TaskStore
from taskboard.users.user_store import UserStore

from .fakes import Recorder


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        data_dir=tmp_path,
        db_path=tmp_path / "tasks.sqlite3",
        page_size=3,
        latest_changes_limit=5,
        console_enabled=False,
    )


@pytest.fixture()
def changes() -> Recorder:
    return Recorder()


@pytest.fixture()
def store(tmp_path: Path, changes: Recorder) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3", on_change=changes)


@pytest.fixture()
def users(tmp_path: Path) -> UserStore:
    return UserStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired exactly like the CLI does it.

    NOTE: real SQLite stores on a tmp path; their behavior is part of what we test.
    """
    return create_initial_state(settings=settings)
