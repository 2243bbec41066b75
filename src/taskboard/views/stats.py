# src/taskboard/views/stats.py

"""
Per-user statistics derived from the enriched task list.

One row per user, sortable by any column, plus a totals row over whatever
rows are currently shown.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..tasks.task_models import EnrichedTask, Task
from ..users.user_models import User
from .task_view import is_quick


class StatsColumn(StrEnum):
    USER = "user"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    IMPORTANT = "important"
    CHANGES = "changes"
    LAST_ACTIVE = "last_active"
    INACTIVE = "inactive"
    SHORT = "short"
    LONG = "long"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class UserStats:
    user: User
    completed: int = 0
    incomplete: int = 0
    important: int = 0
    changes: int = 0
    inactive: int = 0
    short: int = 0
    long: int = 0
    last_active: float | None = None  # None when the user owns no tasks


@dataclass(frozen=True, slots=True)
class StatsTotals:
    completed: int = 0
    incomplete: int = 0
    important: int = 0
    changes: int = 0
    inactive: int = 0
    short: int = 0
    long: int = 0


def is_inactive(task: Task) -> bool:
    """Never touched after creation: no updated timestamp, or updated == created."""
    return not task.updated_at or (bool(task.created_at) and task.updated_at == task.created_at)


def compute_user_stats(tasks: Iterable[EnrichedTask], users: Iterable[User]) -> list[UserStats]:
    by_user: dict[int, list[EnrichedTask]] = defaultdict(list)
    for t in tasks:
        if t.task.user_id is not None:
            by_user[t.task.user_id].append(t)

    out: list[UserStats] = []
    for user in users:
        owned = by_user.get(user.id, [])
        out.append(
            UserStats(
                user=user,
                completed=sum(1 for t in owned if t.task.is_completed),
                incomplete=sum(1 for t in owned if not t.task.is_completed),
                important=sum(1 for t in owned if t.task.is_important),
                changes=sum(t.history_count for t in owned),
                inactive=sum(1 for t in owned if is_inactive(t.task)),
                short=sum(1 for t in owned if is_quick(t.task.duration)),
                long=sum(1 for t in owned if not is_quick(t.task.duration)),
                last_active=max((t.task.updated_at for t in owned), default=None),
            )
        )
    return out


def _value(row: UserStats, column: StatsColumn) -> str | float | None:
    if column is StatsColumn.USER:
        return row.user.name.casefold()
    return getattr(row, column.value)


def sort_user_stats(
    rows: Iterable[UserStats],
    column: StatsColumn,
    direction: SortDirection = SortDirection.ASC,
) -> list[UserStats]:
    """Sort by one column; rows without a value go last in either direction."""
    col = StatsColumn(column)
    present: list[UserStats] = []
    missing: list[UserStats] = []
    for r in rows:
        (missing if _value(r, col) is None else present).append(r)

    present.sort(key=lambda r: _value(r, col), reverse=SortDirection(direction) is SortDirection.DESC)
    return present + missing


def filter_user_stats(rows: Iterable[UserStats], selected_user_ids: Collection[int]) -> list[UserStats]:
    """Empty selection means every user."""
    if not selected_user_ids:
        return list(rows)
    return [r for r in rows if r.user.id in selected_user_ids]


def totals(rows: Iterable[UserStats]) -> StatsTotals:
    rows = list(rows)
    return StatsTotals(
        completed=sum(r.completed for r in rows),
        incomplete=sum(r.incomplete for r in rows),
        important=sum(r.important for r in rows),
        changes=sum(r.changes for r in rows),
        inactive=sum(r.inactive for r in rows),
        short=sum(r.short for r in rows),
        long=sum(r.long for r in rows),
    )


class StatsSort:
    """
    Column-header sort state.

    Clicking the active column flips the direction; clicking another column
    selects it in ascending order.
    """

    def __init__(
        self,
        column: StatsColumn = StatsColumn.LAST_ACTIVE,
        direction: SortDirection = SortDirection.DESC,
    ) -> None:
        self.column = StatsColumn(column)
        self.direction = SortDirection(direction)

    def click(self, column: StatsColumn | str) -> None:
        col = StatsColumn(column)
        if col is self.column:
            self.direction = SortDirection.DESC if self.direction is SortDirection.ASC else SortDirection.ASC
        else:
            self.column = col
            self.direction = SortDirection.ASC

    def apply(self, rows: Iterable[UserStats]) -> list[UserStats]:
        return sort_user_stats(rows, self.column, self.direction)
