"""Repeating timers for repair sessions.

Sessions never sleep or spawn threads; they ask a :class:`Scheduler` for a
repeating callback and cancel it when they leave the in-progress state. The
host decides where ticks come from: :class:`ManualScheduler` advances a
virtual clock explicitly (tests, headless hosts) while
``tinkerbench.ui.qt_scheduler.QtScheduler`` drives ticks from the Qt event loop.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, List, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]

# Tolerance when comparing accumulated due times against the virtual clock.
_EPSILON = 1e-9


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_repeating(self, period: float, callback: TickCallback) -> TimerHandle: ...


class ManualTimer:
    """Repeating timer owned by a :class:`ManualScheduler`."""

    def __init__(self, period: float, callback: TickCallback, started_at: float, seq: int) -> None:
        if period <= 0:
            raise ValueError(f"timer period must be > 0, got {period}")
        self._period = period
        self._callback = callback
        self._started_at = started_at
        self._fired = 0
        self._active = True
        self.seq = seq

    @property
    def active(self) -> bool:
        return self._active

    @property
    def period(self) -> float:
        return self._period

    @property
    def next_due(self) -> float:
        # Multiply instead of accumulating so long runs do not drift.
        return self._started_at + (self._fired + 1) * self._period

    def cancel(self) -> None:
        self._active = False

    def fire(self) -> None:
        self._fired += 1
        self._callback()


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`.

    Also serves as the level clock through :meth:`now`, so elapsed times
    line up with the ticks that were delivered.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: List[ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule_repeating(self, period: float, callback: TickCallback) -> ManualTimer:
        timer = ManualTimer(period, callback, self._now, next(self._seq))
        self._timers.append(timer)
        logger.debug("Scheduled timer #%d every %.3fs", timer.seq, period)
        return timer

    def active_timers(self) -> int:
        return sum(1 for t in self._timers if t.active)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due ticks in time order."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        while True:
            self._timers = [t for t in self._timers if t.active]
            if not self._timers:
                break
            timer = min(self._timers, key=lambda t: (t.next_due, t.seq))
            due = timer.next_due
            if due > target + _EPSILON:
                break
            self._now = max(self._now, due)
            timer.fire()
        self._now = target

    def ticks(self, count: int, period: float = 0.1) -> None:
        """Advance by ``count`` periods, one at a time."""
        for _ in range(count):
            self.advance(period)
