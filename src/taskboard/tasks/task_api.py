# src/taskboard/tasks/task_api.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.live import Subscription
from ..core.state import AppState
from ..views.board import BoardSnapshot
from ..views.stats import StatsTotals, UserStats, compute_user_stats, filter_user_stats, totals
from .task_models import EnrichedTask, Task

logger = logging.getLogger(__name__)


def fetch_board_tasks(state: AppState) -> list[EnrichedTask]:
    """Server side of the list view: search + user set, annotated with history counts."""
    board = state.board
    return state.tasks.list_all_with_history_count(
        search_query=board.search or None,
        user_ids=board.query.user_ids or None,
    )


def load_board(state: AppState) -> BoardSnapshot:
    return state.board.snapshot(fetch_board_tasks(state))


def subscribe_board(state: AppState, callback: Callable[[BoardSnapshot], None]) -> Subscription[BoardSnapshot]:
    """Live list view: callback gets a fresh snapshot after every change."""
    return state.bus.subscribe(lambda: load_board(state), callback)


def load_stats(state: AppState) -> tuple[list[UserStats], StatsTotals]:
    """
    Statistics table for the current board selection.

    Rows cover every user (restricted to the selected user set, if any),
    sorted by the board's stats sort; totals cover the shown rows.
    """
    board = state.board
    tasks = state.tasks.list_all_with_history_count(search_query=board.search or None)
    rows = compute_user_stats(tasks, state.users.get_all_users())
    rows = filter_user_stats(board.stats_sort.apply(rows), board.query.user_ids)
    return rows, totals(rows)


def toggle_task_completed(state: AppState, task_id: int) -> Task:
    """Toggle with an in-flight marker that is cleared even when the call fails."""
    with state.inflight.track(task_id, "completion"):
        task = state.tasks.toggle_completed(task_id)
    logger.info("Task %s marked %s", task.id, "complete" if task.is_completed else "incomplete")
    return task


def toggle_task_important(state: AppState, task_id: int) -> Task:
    with state.inflight.track(task_id, "importance"):
        task = state.tasks.toggle_important(task_id)
    logger.info("Task %s marked %s", task.id, "important" if task.is_important else "not important")
    return task


def set_filtered_completed(state: AppState, value: bool) -> int:
    """Apply set_all_completed to every task the current filters show (not only the visible page)."""
    ids = [t.task.id for t in state.board.ordered(fetch_board_tasks(state))]
    changed = state.tasks.set_all_completed(ids, value)
    logger.info("Set completed=%s on %d of %d filtered task(s)", value, changed, len(ids))
    return changed


def toggle_filtered(state: AppState) -> int:
    ids = [t.task.id for t in state.board.ordered(fetch_board_tasks(state))]
    flipped = state.tasks.toggle_all(ids)
    logger.info("Toggled %d filtered task(s)", flipped)
    return flipped
