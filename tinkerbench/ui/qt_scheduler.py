"""Qt event-loop backed timers for repair sessions."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class QtTimerHandle:
    """Repeating :class:`QTimer` that can be cancelled exactly once."""

    def __init__(self, period: float, callback: Callable[[], None], parent: Optional[QObject] = None) -> None:
        self._callback = callback
        self._timer = QTimer(parent)
        self._timer.setInterval(max(1, int(round(period * 1000))))
        self._timer.timeout.connect(self._fire)
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled and self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._timer.stop()

    def _fire(self) -> None:
        # A tick already queued when the timer was stopped must not reach the session.
        if self._cancelled:
            return
        self._callback()


class QtScheduler:
    """Scheduler for Qt hosts; ticks are delivered on the GUI thread."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent

    def schedule_repeating(self, period: float, callback: Callable[[], None]) -> QtTimerHandle:
        handle = QtTimerHandle(period, callback, self._parent)
        handle.start()
        logger.debug("Started Qt timer every %dms", handle.interval_ms)
        return handle
