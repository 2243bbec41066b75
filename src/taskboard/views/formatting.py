# src/taskboard/views/formatting.py

from __future__ import annotations

import time
from datetime import datetime


def format_duration(minutes: int | None) -> str:
    if not minutes:
        return "Unknown"
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(int(minutes), 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_relative_time(ts: float | None, *, now_ts: float | None = None) -> str:
    """Short "3h ago" style label; 0/None timestamps are unknown."""
    if not ts:
        return "Unknown"

    now = time.time() if now_ts is None else now_ts
    seconds = int(max(0.0, now - ts))
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 5:
        return "just now"
    if seconds < 60:
        return f"{seconds}s ago"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    if days // 7 < 4:
        return f"{days // 7}w ago"
    if days // 30 < 12:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"


def format_datetime(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%d.%m.%Y %H:%M:%S")
