# src/taskboard/core/inflight.py

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterator


class InFlightTracker:
    """
    Per-task "toggling" markers shown while a mutation is pending.

    track() always clears its marker, whether the mutation succeeds or raises.
    """

    def __init__(self) -> None:
        self._pending: set[tuple[str, int]] = set()
        self._lock = threading.Lock()

    @contextlib.contextmanager
    def track(self, task_id: int, kind: str = "completion") -> Iterator[None]:
        key = (kind, int(task_id))
        with self._lock:
            self._pending.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._pending.discard(key)

    def is_pending(self, task_id: int, kind: str = "completion") -> bool:
        with self._lock:
            return (kind, int(task_id)) in self._pending

    def pending(self) -> set[tuple[str, int]]:
        with self._lock:
            return set(self._pending)
