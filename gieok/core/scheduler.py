"""Scheduling abstraction for timer ticks and delayed feedback.

The game never blocks; it asks a :class:`Scheduler` to call back later. The
desktop app uses a Qt timer implementation, tests and headless runs use
:class:`ManualScheduler`, whose clock only moves when :meth:`advance` is
called.
"""

from __future__ import annotations

import itertools
from typing import Callable, List, Optional, Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        ...

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        ...


class _ManualTask:
    def __init__(
        self,
        due: int,
        seq: int,
        callback: Callable[[], None],
        interval: Optional[int] = None,
    ) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by an explicit millisecond clock."""

    def __init__(self) -> None:
        self._now = 0
        self._tasks: List[_ManualTask] = []
        self._seq = itertools.count()

    @property
    def now(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualTask:
        task = _ManualTask(self._now + max(0, delay_ms), next(self._seq), callback)
        self._tasks.append(task)
        return task

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> _ManualTask:
        if interval_ms <= 0:
            raise ValueError("interval must be positive")
        task = _ManualTask(self._now + interval_ms, next(self._seq), callback, interval=interval_ms)
        self._tasks.append(task)
        return task

    def pending(self) -> int:
        """Number of live (not cancelled) tasks."""
        return sum(1 for task in self._tasks if not task.cancelled)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing every task that falls due, in order."""
        target = self._now + ms
        while True:
            self._tasks = [task for task in self._tasks if not task.cancelled]
            due = [task for task in self._tasks if task.due <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.due, t.seq))
            self._now = task.due
            if task.interval is None:
                self._tasks.remove(task)
            else:
                task.due += task.interval
            task.callback()
        self._now = target
