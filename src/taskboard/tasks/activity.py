# src/taskboard/tasks/activity.py

"""
Activity chart helpers.

The chart splits the last N days into a handful of equal-width buckets and
counts history entries per bucket, either per bucket ("delta") or as a
running total ("total").
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from .task_models import ActivityBucket, ChangeType, TaskHistoryEntry

SECONDS_PER_DAY = 86400.0

PERIODS: dict[str, int] = {
    "5 days": 5,
    "10 days": 10,
    "15 days": 15,
    "1 month": 30,
    "2 months": 60,
    "3 months": 90,
    "6 months": 180,
    "1 year": 365,
}


def period_to_days(period: str) -> int:
    """Map a period label like "1 month" to days; unknown labels fall back to 5."""
    return PERIODS.get((period or "").strip().lower(), 5)


def interval_count_for_days(days: int) -> int:
    """Number of chart buckets for a period: between 5 and 12."""
    if days <= 5:
        return 5
    if days <= 10:
        return 6
    if days <= 15:
        return 7
    if days <= 30:
        return 8
    if days <= 60:
        return 9
    if days <= 90:
        return 10
    if days <= 180:
        return 11
    return 12


def bucketize(
    entries: Iterable[TaskHistoryEntry],
    *,
    start: float,
    end: float,
    count: int,
) -> list[ActivityBucket]:
    if count < 1:
        raise ValueError("count must be >= 1")
    if end <= start:
        raise ValueError("end must be after start")

    width = (end - start) / count
    counters = [[0, 0, 0, 0] for _ in range(count)]

    for e in entries:
        if e.changed_at < start or e.changed_at > end:
            continue
        idx = min(int((e.changed_at - start) / width), count - 1)
        if e.change_type is ChangeType.IMPORTANCE:
            slot = 2 if e.changed_to else 3
        else:
            slot = 0 if e.changed_to else 1
        counters[idx][slot] += 1

    return [
        ActivityBucket(
            start=start + i * width,
            end=start + (i + 1) * width,
            completed=c[0],
            incomplete=c[1],
            important=c[2],
            not_important=c[3],
        )
        for i, c in enumerate(counters)
    ]


def cumulative(buckets: list[ActivityBucket]) -> list[ActivityBucket]:
    """Turn per-bucket counts into running totals."""
    out: list[ActivityBucket] = []
    run = [0, 0, 0, 0]
    for b in buckets:
        run = [
            run[0] + b.completed,
            run[1] + b.incomplete,
            run[2] + b.important,
            run[3] + b.not_important,
        ]
        out.append(
            replace(b, completed=run[0], incomplete=run[1], important=run[2], not_important=run[3])
        )
    return out
