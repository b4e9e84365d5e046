"""QTimer-backed scheduler for the desktop app."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer


class QtTask:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class QtScheduler:
    """Runs callbacks on the Qt event loop. Timers are parented to *parent*."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTask:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        task = QtTask(timer)

        def _fire() -> None:
            task.cancel()
            callback()

        timer.timeout.connect(_fire)
        timer.start(max(0, delay_ms))
        return task

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> QtTask:
        timer = QTimer(self._parent)
        timer.timeout.connect(callback)
        timer.start(interval_ms)
        return QtTask(timer)
