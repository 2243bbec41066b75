# src/taskboard/core/live.py

"""
Live queries.

A query is a zero-argument callable. Subscribers get its result once on
subscribe and again after every committed change the stores report through
notify(). Stores call notify() after commit, so a subscriber never sees a
half-applied mutation.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class Subscription(Generic[T]):
    id: int
    query: Callable[[], T]
    callback: Callable[[T], None]
    bus: LiveQueryBus

    def cancel(self) -> None:
        self.bus._remove(self.id)


class LiveQueryBus:
    """Re-runs subscribed queries whenever the data changes."""

    def __init__(self) -> None:
        self._subs: dict[int, Subscription[Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._subs)

    def _remove(self, sub_id: int) -> None:
        with self._lock:
            self._subs.pop(sub_id, None)

    def subscribe(self, query: Callable[[], T], callback: Callable[[T], None]) -> Subscription[T]:
        """Register a query; callback receives the current result immediately."""
        with self._lock:
            sub = Subscription(id=next(self._ids), query=query, callback=callback, bus=self)
            self._subs[sub.id] = sub
        self._deliver(sub, reason="subscribe")
        return sub

    def notify(self, reason: str = "change") -> None:
        with self._lock:
            subs = list(self._subs.values())
        logger.debug("Change notified reason=%s subscribers=%d", reason, len(subs))
        for sub in subs:
            self._deliver(sub, reason=reason)

    @staticmethod
    def _deliver(sub: Subscription[Any], *, reason: str) -> None:
        try:
            sub.callback(sub.query())
        except Exception:
            # One broken subscriber must not starve the others.
            logger.exception("Live query %s failed reason=%s", sub.id, reason)

    async def watch(self, query: Callable[[], T]) -> AsyncIterator[T]:
        """
        Async stream of query results: the current one, then one per change.

        notify() may run in another thread; results are handed to the
        consuming event loop thread-safely.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[T] = asyncio.Queue()

        def push(result: T) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, result)

        sub = self.subscribe(query, push)
        try:
            while True:
                yield await queue.get()
        finally:
            sub.cancel()
