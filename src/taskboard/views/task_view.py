# src/taskboard/views/task_view.py

"""
Filter, sort and paginate an already-fetched list of enriched tasks.

Pure functions and small state holders only (no storage, no I/O), so any
front end can share them. Front ends differ only in the page increment.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeVar

from ..tasks.task_models import ChangeType, EnrichedTask, TaskHistoryEntry

T = TypeVar("T")

WEB_PAGE_SIZE = 50
MOBILE_PAGE_SIZE = 9

QUICK_MAX_MINUTES = 15


class DurationFilter(StrEnum):
    ALL = "all"
    QUICK = "quick"
    LONG = "long"


class ImportanceFilter(StrEnum):
    ALL = "all"
    IMPORTANT = "important"
    NOT_IMPORTANT = "not-important"


class SortKey(StrEnum):
    LATEST = "latest"
    INACTIVE = "inactive"
    NEWEST = "newest"
    OLDEST = "oldest"
    FREQUENT = "frequent"
    UNFREQUENT = "unfrequent"
    QUICKEST = "quickest"
    LONGEST = "longest"


SORT_LABELS: dict[SortKey, str] = {
    SortKey.LATEST: "Latest Updated",
    SortKey.INACTIVE: "Inactive",
    SortKey.NEWEST: "Newest",
    SortKey.OLDEST: "Oldest",
    SortKey.FREQUENT: "Frequent",
    SortKey.UNFREQUENT: "Unfrequent",
    SortKey.QUICKEST: "Quickest",
    SortKey.LONGEST: "Longest",
}

# (key function, descending)
_SORTS: dict[SortKey, tuple[Callable[[EnrichedTask], float], bool]] = {
    SortKey.LATEST: (lambda t: t.task.updated_at, True),
    SortKey.INACTIVE: (lambda t: t.task.updated_at, False),
    SortKey.NEWEST: (lambda t: t.task.created_at, True),
    SortKey.OLDEST: (lambda t: t.task.created_at, False),
    SortKey.FREQUENT: (lambda t: t.history_count, True),
    SortKey.UNFREQUENT: (lambda t: t.history_count, False),
    SortKey.QUICKEST: (lambda t: t.task.duration, False),
    SortKey.LONGEST: (lambda t: t.task.duration, True),
}


def is_quick(duration: int) -> bool:
    return duration <= QUICK_MAX_MINUTES


@dataclass(slots=True)
class StatusFilter:
    """
    Independent "show completed" / "show incomplete" switches.

    At least one stays on: a toggle that would turn off the last active
    switch is refused and returns False.
    """

    show_completed: bool = True
    show_incomplete: bool = True

    def __post_init__(self) -> None:
        if not (self.show_completed or self.show_incomplete):
            raise ValueError("at least one of show_completed/show_incomplete must be on")

    def toggle_completed(self) -> bool:
        if self.show_completed and not self.show_incomplete:
            return False
        self.show_completed = not self.show_completed
        return True

    def toggle_incomplete(self) -> bool:
        if self.show_incomplete and not self.show_completed:
            return False
        self.show_incomplete = not self.show_incomplete
        return True

    def matches(self, is_completed: bool) -> bool:
        return self.show_completed if is_completed else self.show_incomplete


@dataclass(slots=True)
class TaskQuery:
    status: StatusFilter = field(default_factory=StatusFilter)
    duration: DurationFilter = DurationFilter.ALL
    importance: ImportanceFilter = ImportanceFilter.ALL
    user_ids: frozenset[int] = frozenset()
    sort: SortKey = SortKey.LATEST


def _matches_duration(item: EnrichedTask, mode: DurationFilter) -> bool:
    if mode is DurationFilter.QUICK:
        return is_quick(item.task.duration)
    if mode is DurationFilter.LONG:
        return not is_quick(item.task.duration)
    return True


def _matches_importance(item: EnrichedTask, mode: ImportanceFilter) -> bool:
    if mode is ImportanceFilter.IMPORTANT:
        return item.task.is_important
    if mode is ImportanceFilter.NOT_IMPORTANT:
        return not item.task.is_important
    return True


def apply_filters(tasks: Iterable[EnrichedTask], query: TaskQuery) -> list[EnrichedTask]:
    return [
        t
        for t in tasks
        if query.status.matches(t.task.is_completed)
        and _matches_duration(t, query.duration)
        and _matches_importance(t, query.importance)
        and (not query.user_ids or t.task.user_id in query.user_ids)
    ]


def sort_tasks(tasks: Iterable[EnrichedTask], key: SortKey) -> list[EnrichedTask]:
    # sorted() is stable, and reverse=True keeps equal items in input order too.
    fn, descending = _SORTS[SortKey(key)]
    return sorted(tasks, key=fn, reverse=descending)


def filter_and_sort(tasks: Iterable[EnrichedTask], query: TaskQuery) -> list[EnrichedTask]:
    return sort_tasks(apply_filters(tasks, query), query.sort)


@dataclass(slots=True)
class VisibleWindow:
    """Client-side infinite scroll: show the first visible_count items, grow by page_size."""

    page_size: int = WEB_PAGE_SIZE
    visible_count: int = 0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.visible_count <= 0:
            self.visible_count = self.page_size

    def slice(self, items: Sequence[T]) -> list[T]:
        return list(items[: self.visible_count])

    def has_more(self, total: int) -> bool:
        return total > self.visible_count

    def load_more(self, total: int) -> bool:
        """Grow the window if anything is hidden; returns whether it grew."""
        if not self.has_more(total):
            return False
        self.visible_count += self.page_size
        return True

    def reset(self) -> None:
        self.visible_count = self.page_size


@dataclass(slots=True)
class HistoryFilter:
    """
    Chips for one task's history panel.

    Completion changes match show_completed / show_incomplete by their new
    value, importance changes match show_important / show_not_important.
    With every chip off, everything is shown.
    """

    show_completed: bool = False
    show_incomplete: bool = False
    show_important: bool = False
    show_not_important: bool = False

    def any_selected(self) -> bool:
        return self.show_completed or self.show_incomplete or self.show_important or self.show_not_important

    def matches(self, entry: TaskHistoryEntry) -> bool:
        if not self.any_selected():
            return True
        if entry.change_type is ChangeType.IMPORTANCE:
            return self.show_important if entry.changed_to else self.show_not_important
        return self.show_completed if entry.changed_to else self.show_incomplete

    def apply(self, entries: Iterable[TaskHistoryEntry]) -> list[TaskHistoryEntry]:
        kept = [e for e in entries if self.matches(e)]
        return sorted(kept, key=lambda e: e.changed_at, reverse=True)


def parse_user_ids(raw: Collection[str]) -> frozenset[int]:
    """Parse user ids typed by a user ("3", "4,5"); raises ValueError on junk."""
    out: set[int] = set()
    for chunk in raw:
        for part in chunk.replace(",", " ").split():
            out.add(int(part))
    return frozenset(out)
