from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Type

from tinkerbench.core.geometry import Point, distance
from tinkerbench.core.repairs import (
    Connection,
    HoldDuration,
    LogicAnswer,
    PathFollow,
    RepairKind,
    RepairSpec,
    TapCount,
)
from tinkerbench.core.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

# Period of every session timer, in seconds.
TICK_INTERVAL = 0.1
# Window the player gets to finish a stuck button.
TAP_WINDOW = 3.0
# Pointer samples closer than this to the previous sample are dropped.
SAMPLE_SPACING = 5.0
# Connection strokes with this many samples or fewer are not judged.
MIN_CONNECTION_SAMPLES = 5
# A stroke ending farther than this from the target is extended to it.
CONNECTION_SNAP = 30.0
CONNECTION_TOLERANCE = 40.0
# Slider strokes are only judged once they hold more samples than this.
MIN_SLIDER_SAMPLES = 10
WAYPOINT_RADIUS = 30.0


class SessionState(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Outcome(Enum):
    """How a session left the in-progress state."""

    SUCCESS = "success"
    NEUTRAL_TIMEOUT = "neutral_timeout"
    INSUFFICIENT = "insufficient"
    ABANDONED = "abandoned"
    MISTAKE = "mistake"

    @property
    def charged(self) -> bool:
        """True when the outcome counts against a perfect repair."""
        return self is Outcome.MISTAKE


OutcomeCallback = Callable[["RepairSession", Outcome], None]


class RepairSession:
    """Live mini-game for one broken element.

    Every session follows ``IDLE -> IN_PROGRESS -> SUCCEEDED | FAILED``.
    Leaving ``IN_PROGRESS`` cancels the session timer and reports exactly one
    :class:`Outcome` to the owner. Input that does not apply to the session's
    kind, or arrives outside ``IN_PROGRESS``, is ignored.
    """

    kind: RepairKind
    tracks_pointer = False

    def __init__(
        self,
        element_id: str,
        spec: RepairSpec,
        scheduler: Scheduler,
        on_outcome: OutcomeCallback,
    ) -> None:
        self._element_id = element_id
        self._spec = spec
        self._scheduler = scheduler
        self._on_outcome = on_outcome
        self._state = SessionState.IDLE
        self._timer: Optional[TimerHandle] = None

    @property
    def element_id(self) -> str:
        return self._element_id

    @property
    def spec(self) -> RepairSpec:
        return self._spec

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def tracking(self) -> bool:
        """Whether pointer-move and pointer-up events should reach this session."""
        return self.tracks_pointer and self.in_progress

    def activate(self) -> None:
        if self._state is not SessionState.IDLE:
            return
        self._state = SessionState.IN_PROGRESS
        logger.debug("%s session for %s started", self.kind.value, self._element_id)
        self._on_activate()

    def cancel(self) -> None:
        """Stop the session without reporting an outcome (level teardown)."""
        self._stop_timer()
        if self._state in (SessionState.IDLE, SessionState.IN_PROGRESS):
            self._state = SessionState.CANCELLED

    # Input handlers; each kind overrides the ones it understands.

    def tap(self) -> None:
        pass

    def pointer_move(self, point: Point) -> None:
        pass

    def pointer_up(self) -> None:
        pass

    def hold(self, asserted: bool) -> None:
        pass

    def submit(self, value: int) -> None:
        pass

    def _on_activate(self) -> None:
        pass

    def _start_timer(self, callback: Callable[[], None]) -> None:
        if self.timer_active:
            raise RuntimeError(f"session {self._element_id} already owns a running timer")
        self._timer = self._scheduler.schedule_repeating(TICK_INTERVAL, callback)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _finish(self, outcome: Outcome) -> None:
        if not self.in_progress:
            return
        self._stop_timer()
        self._state = SessionState.SUCCEEDED if outcome is Outcome.SUCCESS else SessionState.FAILED
        logger.debug("%s session for %s ended: %s", self.kind.value, self._element_id, outcome.value)
        self._on_outcome(self, outcome)


class TapCountSession(RepairSession):
    """Stuck button: reach the tap count before the window runs out.

    Running out of time is a neutral reset, not a mistake.
    """

    kind = RepairKind.TAP_COUNT
    _spec: TapCount

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._taps = 0
        self._ticks_left = 0

    @property
    def progress(self) -> int:
        return self._taps

    @property
    def required(self) -> int:
        return self._spec.required

    @property
    def time_remaining(self) -> float:
        return self._ticks_left * TICK_INTERVAL

    def _on_activate(self) -> None:
        self._taps = 0
        # Counted in whole ticks so the window closes on exactly the 30th tick.
        self._ticks_left = round(TAP_WINDOW / TICK_INTERVAL)
        self._start_timer(self._tick)

    def tap(self) -> None:
        if not self.in_progress:
            return
        self._taps += 1
        if self._taps >= self._spec.required:
            self._finish(Outcome.SUCCESS)

    def _tick(self) -> None:
        if not self.in_progress:
            return
        self._ticks_left = max(0, self._ticks_left - 1)
        if self._ticks_left == 0:
            if self._taps >= self._spec.required:
                self._finish(Outcome.SUCCESS)
            else:
                self._finish(Outcome.NEUTRAL_TIMEOUT)


class ConnectionSession(RepairSession):
    """Broken connection: drag from the start point to the end point.

    Points are taken as given; callers translate pointer samples into the
    frame the spec's endpoints are expressed in.
    """

    kind = RepairKind.CONNECTION
    tracks_pointer = True
    _spec: Connection

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._path: List[Point] = []

    @property
    def path(self) -> List[Point]:
        return list(self._path)

    def _on_activate(self) -> None:
        self._path = []

    def pointer_move(self, point: Point) -> None:
        if not self.in_progress:
            return
        if not self._path:
            self._path.append(self._spec.start)
        if distance(self._path[-1], point) > SAMPLE_SPACING:
            self._path.append(point)

    def pointer_up(self) -> None:
        if not self.in_progress:
            return
        if len(self._path) <= MIN_CONNECTION_SAMPLES:
            self._finish(Outcome.INSUFFICIENT)
            return

        if distance(self._path[-1], self._spec.end) > CONNECTION_SNAP:
            self._path.append(self._spec.end)

        start_distance = distance(self._path[0], self._spec.start)
        end_distance = distance(self._path[-1], self._spec.end)
        if start_distance < CONNECTION_TOLERANCE and end_distance < CONNECTION_TOLERANCE:
            self._finish(Outcome.SUCCESS)
        else:
            self._finish(Outcome.MISTAKE)

    def cancel_stroke(self) -> None:
        """Drop the current stroke without judging it."""
        self._finish(Outcome.ABANDONED)


class HoldDurationSession(RepairSession):
    """Overheated contact: keep holding until the duration is reached."""

    kind = RepairKind.HOLD_DURATION
    _spec: HoldDuration

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._holding = False
        self._ticks = 0

    @property
    def holding(self) -> bool:
        return self._holding

    @property
    def progress(self) -> float:
        return min(self._ticks * TICK_INTERVAL, self._spec.seconds)

    def hold(self, asserted: bool) -> None:
        if not self.in_progress:
            return
        if asserted:
            if self._holding:
                return
            self._holding = True
            self._ticks = 0
            self._start_timer(self._tick)
        elif self._holding:
            self._holding = False
            if self.progress < self._spec.seconds:
                self._ticks = 0
                self._finish(Outcome.MISTAKE)

    def _tick(self) -> None:
        if not self.in_progress or not self._holding:
            return
        self._ticks += 1
        if self.progress >= self._spec.seconds:
            self._finish(Outcome.SUCCESS)


class PathFollowSession(RepairSession):
    """Stuck slider: trace a stroke that passes near enough waypoints.

    There is no failing outcome; a stroke that never matches simply keeps
    the session in progress.
    """

    kind = RepairKind.PATH_FOLLOW
    tracks_pointer = True
    _spec: PathFollow

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._path: List[Point] = []

    @property
    def path(self) -> List[Point]:
        return list(self._path)

    @property
    def required_matches(self) -> int:
        # Floor division: 3 waypoints need 2 matches, 4 need 2, 1 needs 0.
        return len(self._spec.waypoints) * 2 // 3

    def matched_waypoints(self) -> int:
        return sum(
            1
            for waypoint in self._spec.waypoints
            if any(distance(waypoint, sample) < WAYPOINT_RADIUS for sample in self._path)
        )

    def _on_activate(self) -> None:
        self._path = []

    def pointer_move(self, point: Point) -> None:
        if not self.in_progress:
            return
        if self._path and distance(self._path[-1], point) <= SAMPLE_SPACING:
            return
        self._path.append(point)
        self._evaluate()

    def pointer_up(self) -> None:
        if not self.in_progress:
            return
        self._evaluate()
        if self.in_progress:
            self._path = []

    def _evaluate(self) -> None:
        if len(self._path) <= MIN_SLIDER_SAMPLES:
            return
        if self.matched_waypoints() >= self.required_matches:
            self._finish(Outcome.SUCCESS)


class LogicAnswerSession(RepairSession):
    """Logic error: one submitted answer decides the attempt."""

    kind = RepairKind.LOGIC_ANSWER
    _spec: LogicAnswer

    @property
    def prompt(self) -> str:
        return self._spec.prompt

    @property
    def awaiting_answer(self) -> bool:
        return self.in_progress

    def submit(self, value: int) -> None:
        if not self.in_progress:
            return
        if value == self._spec.answer:
            self._finish(Outcome.SUCCESS)
        else:
            self._finish(Outcome.MISTAKE)


_SESSION_TYPES: Dict[RepairKind, Type[RepairSession]] = {
    RepairKind.TAP_COUNT: TapCountSession,
    RepairKind.CONNECTION: ConnectionSession,
    RepairKind.HOLD_DURATION: HoldDurationSession,
    RepairKind.PATH_FOLLOW: PathFollowSession,
    RepairKind.LOGIC_ANSWER: LogicAnswerSession,
}


def create_session(
    element_id: str,
    spec: RepairSpec,
    scheduler: Scheduler,
    on_outcome: OutcomeCallback,
) -> RepairSession:
    """Return an idle session matching the spec's kind."""
    return _SESSION_TYPES[spec.kind](element_id, spec, scheduler, on_outcome)
