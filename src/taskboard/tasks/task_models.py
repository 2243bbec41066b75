# src/taskboard/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ChangeType(StrEnum):
    """Which boolean field a history entry records."""

    COMPLETION = "completion"
    IMPORTANCE = "importance"

    @classmethod
    def from_db(cls, raw: str | None) -> ChangeType:
        # Entries written before importance tracking carry no tag.
        if not raw:
            return cls.COMPLETION
        try:
            return cls(raw)
        except ValueError:
            return cls.COMPLETION


class TaskNotFoundError(LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


@dataclass(slots=True)
class Task:
    """
    A to-do item.

    Timestamps are epoch seconds. Older rows may lack created/updated
    timestamps, duration or the importance flag; those are defaulted when the
    row is read (0.0 / 0 / False), so 0.0 means "unknown".
    """

    id: int
    title: str
    description: str | None
    is_completed: bool
    is_important: bool
    created_at: float
    updated_at: float
    duration: int  # minutes
    user_id: int | None


@dataclass(frozen=True, slots=True)
class TaskHistoryEntry:
    id: int
    task_id: int
    change_type: ChangeType
    changed_to: bool
    changed_at: float


@dataclass(frozen=True, slots=True)
class EnrichedTask:
    """A task plus the number of history entries that reference it."""

    task: Task
    history_count: int
    user_name: str | None = None


@dataclass(frozen=True, slots=True)
class TaskPage:
    """One page of the cursor-paginated task listing (ascending id)."""

    items: list[Task]
    continue_cursor: int | None
    is_done: bool


@dataclass(frozen=True, slots=True)
class ChangeFeedItem:
    entry: TaskHistoryEntry
    task_title: str
    user_id: int | None


@dataclass(frozen=True, slots=True)
class ChangesPage:
    items: list[ChangeFeedItem]
    # (changed_at, id) of the last item; entries from one bulk call share a timestamp.
    next_cursor: tuple[float, int] | None
    has_more: bool


@dataclass(frozen=True, slots=True)
class ActivityBucket:
    start: float
    end: float
    completed: int = 0
    incomplete: int = 0
    important: int = 0
    not_important: int = 0

    @property
    def total(self) -> int:
        return self.completed + self.incomplete + self.important + self.not_important
