# src/taskboard/views/board.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_models import EnrichedTask
from .stats import StatsSort
from .task_view import (
    WEB_PAGE_SIZE,
    DurationFilter,
    ImportanceFilter,
    SortKey,
    TaskQuery,
    VisibleWindow,
    filter_and_sort,
)


@dataclass(slots=True)
class BoardSnapshot:
    visible: list[EnrichedTask]
    total: int
    has_more: bool


@dataclass(slots=True)
class BoardState:
    """
    Selections of one list view (search, filters, sort, scroll window).

    Every selection change resets the scroll window to the first page.
    Search and the user set go to the server query; the remaining
    filters and the sort run over the fetched list.
    """

    page_size: int = WEB_PAGE_SIZE
    search: str = ""
    query: TaskQuery = field(default_factory=TaskQuery)
    stats_sort: StatsSort = field(default_factory=StatsSort)
    window: VisibleWindow = field(init=False)

    def __post_init__(self) -> None:
        self.window = VisibleWindow(page_size=self.page_size)

    def set_search(self, text: str) -> None:
        self.search = (text or "").strip()
        self.window.reset()

    def set_sort(self, key: SortKey | str) -> None:
        self.query.sort = SortKey(key)
        self.window.reset()

    def set_duration(self, mode: DurationFilter | str) -> None:
        self.query.duration = DurationFilter(mode)
        self.window.reset()

    def set_importance(self, mode: ImportanceFilter | str) -> None:
        self.query.importance = ImportanceFilter(mode)
        self.window.reset()

    def set_users(self, user_ids: frozenset[int]) -> None:
        self.query.user_ids = frozenset(user_ids)
        self.window.reset()

    def toggle_show_completed(self) -> bool:
        ok = self.query.status.toggle_completed()
        if ok:
            self.window.reset()
        return ok

    def toggle_show_incomplete(self) -> bool:
        ok = self.query.status.toggle_incomplete()
        if ok:
            self.window.reset()
        return ok

    def snapshot(self, tasks: list[EnrichedTask]) -> BoardSnapshot:
        ordered = filter_and_sort(tasks, self.query)
        return BoardSnapshot(
            visible=self.window.slice(ordered),
            total=len(ordered),
            has_more=self.window.has_more(len(ordered)),
        )

    def ordered(self, tasks: list[EnrichedTask]) -> list[EnrichedTask]:
        return filter_and_sort(tasks, self.query)
