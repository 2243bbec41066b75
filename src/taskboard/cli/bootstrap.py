# src/taskboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the stores to the live-query bus and builds AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.live import LiveQueryBus
from ..core.state import AppState
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore
from ..views.board import BoardState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    bus = LiveQueryBus()
    state = AppState(
        settings=settings,
        tasks=TaskStore(settings.db_path, on_change=bus.notify),
        users=UserStore(settings.db_path, on_change=bus.notify),
        bus=bus,
        board=BoardState(page_size=int(getattr(settings, "page_size", 50))),
    )
    logger.debug("State created db=%s page_size=%s", settings.db_path, state.board.page_size)
    return state
