from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from tinkerbench.core.events import HoldSignal, InputEvent, PointerMove, PointerUp, SubmitAnswer, Tap
from tinkerbench.core.geometry import Point, Size
from tinkerbench.core.repairs import HoldDuration, RepairSpec
from tinkerbench.core.session import ConnectionSession, Outcome, RepairSession, create_session
from tinkerbench.core.timers import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class Element:
    """One interactive part of a tool that may need repairing."""

    id: str
    name: str
    broken: bool
    spec: Optional[RepairSpec] = None
    position: Point = field(default_factory=lambda: Point(0.0, 0.0))
    size: Size = field(default_factory=lambda: Size(0.0, 0.0))

    def __post_init__(self) -> None:
        if self.broken and self.spec is None:
            raise ValueError(f"broken element {self.name!r} needs a repair spec")
        if not self.broken and self.spec is not None:
            raise ValueError(f"working element {self.name!r} cannot carry a repair spec")

    def mark_repaired(self) -> None:
        self.broken = False
        self.spec = None


class LevelListener(Protocol):
    def on_element_repaired(self, element_id: str) -> None: ...

    def on_mistake(self, element_id: str) -> None: ...

    def on_level_complete(self, elapsed_time: float, mistake_count: int) -> None: ...


class ProgressRecorder(Protocol):
    def record_repair(self, tool_id: str, elapsed_time: float, is_perfect: bool) -> object: ...


class UnlockManager(Protocol):
    def mark_repaired(self, tool_id: str) -> None: ...


class LevelCoordinator:
    """Runs the repair mini-games of one tool.

    Owns the element list, at most one session per broken element, the
    mistake counter and the focused ("popup") element. Sessions report back
    through :meth:`on_session_success` / :meth:`on_session_failure`; once the
    last element is repaired the listener, progress recorder and unlock
    manager are each told exactly once.
    """

    def __init__(
        self,
        tool_id: str,
        elements: Iterable[Element],
        scheduler: Scheduler,
        listener: Optional[LevelListener] = None,
        recorder: Optional[ProgressRecorder] = None,
        unlocks: Optional[UnlockManager] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tool_id = tool_id
        self._elements: List[Element] = list(elements)
        self._by_id: Dict[str, Element] = {}
        for element in self._elements:
            if element.id in self._by_id:
                raise ValueError(f"duplicate element id {element.id!r}")
            self._by_id[element.id] = element
        self._scheduler = scheduler
        self._listener = listener
        self._recorder = recorder
        self._unlocks = unlocks
        self._clock = clock
        self._sessions: Dict[str, RepairSession] = {}
        self._mistake_count = 0
        self._start_time = clock()
        self._focused: Optional[str] = None
        self._completion_reported = False
        self._torn_down = False

    @property
    def tool_id(self) -> str:
        return self._tool_id

    @property
    def elements(self) -> Tuple[Element, ...]:
        return tuple(self._elements)

    @property
    def mistake_count(self) -> int:
        return self._mistake_count

    @property
    def start_time(self) -> float:
        return self._start_time

    @property
    def focused_element(self) -> Optional[str]:
        """Id of the element whose mini-game prompt is showing, if any."""
        return self._focused

    @property
    def complete(self) -> bool:
        return all(not element.broken for element in self._elements)

    @property
    def active_sessions(self) -> Dict[str, RepairSession]:
        return dict(self._sessions)

    def element(self, element_id: str) -> Optional[Element]:
        return self._by_id.get(element_id)

    def session(self, element_id: str) -> Optional[RepairSession]:
        return self._sessions.get(element_id)

    def elapsed_time(self) -> float:
        return self._clock() - self._start_time

    def is_perfect(self) -> bool:
        return self._mistake_count == 0

    def dismiss_focus(self) -> None:
        self._focused = None

    # Input

    def activate_element(self, element_id: str) -> None:
        if self._torn_down:
            return
        element = self._by_id.get(element_id)
        if element is None or not element.broken or element.spec is None:
            logger.debug("Ignoring activation of %s: not a broken element", element_id)
            return

        existing = self._sessions.get(element_id)
        if existing is not None and existing.in_progress:
            existing.tap()
            return

        session = create_session(element_id, element.spec, self._scheduler, self._handle_outcome)
        self._sessions[element_id] = session
        self._focused = element_id
        logger.debug("Activated %s (%s)", element.name, element.spec.description)
        session.activate()

    def route_input(self, event: InputEvent) -> None:
        if self._torn_down:
            return
        if isinstance(event, Tap):
            self.activate_element(event.element_id)
        elif isinstance(event, PointerMove):
            session = self._tracking_session(event.element_id)
            if session is not None:
                session.pointer_move(event.point)
        elif isinstance(event, PointerUp):
            session = self._tracking_session(event.element_id)
            if session is not None:
                session.pointer_up()
        elif isinstance(event, HoldSignal):
            self._route_hold(event)
        elif isinstance(event, SubmitAnswer):
            session = self._sessions.get(event.element_id)
            if session is not None:
                session.submit(event.value)
        else:
            logger.debug("Ignoring unknown input event %r", event)

    def tap(self, element_id: str) -> None:
        self.route_input(Tap(element_id))

    def pointer_move(self, element_id: str, point: Point) -> None:
        self.route_input(PointerMove(element_id, point))

    def pointer_up(self, element_id: str) -> None:
        self.route_input(PointerUp(element_id))

    def hold_signal(self, element_id: str, asserted: bool) -> None:
        self.route_input(HoldSignal(element_id, asserted))

    def submit_answer(self, element_id: str, value: int) -> None:
        self.route_input(SubmitAnswer(element_id, value))

    def cancel_connection(self, element_id: str) -> None:
        session = self._sessions.get(element_id)
        if isinstance(session, ConnectionSession):
            session.cancel_stroke()

    def _tracking_session(self, element_id: str) -> Optional[RepairSession]:
        session = self._sessions.get(element_id)
        if session is None or not session.tracking:
            return None
        return session

    def _route_hold(self, event: HoldSignal) -> None:
        session = self._sessions.get(event.element_id)
        if session is None:
            element = self._by_id.get(event.element_id)
            # Pressing a broken contact starts its mini-game.
            if not event.asserted or element is None or not isinstance(element.spec, HoldDuration):
                return
            self.activate_element(event.element_id)
            session = self._sessions.get(event.element_id)
            if session is None:
                return
        session.hold(event.asserted)

    # Session outcomes

    def _handle_outcome(self, session: RepairSession, outcome: Outcome) -> None:
        if outcome is Outcome.SUCCESS:
            self.on_session_success(session.element_id)
        else:
            self.on_session_failure(session.element_id, outcome.charged)

    def on_session_success(self, element_id: str) -> None:
        session = self._sessions.pop(element_id, None)
        if session is None:
            return
        session.cancel()
        element = self._by_id[element_id]
        element.mark_repaired()
        if self._focused == element_id:
            self._focused = None
        logger.info("Repaired %s on %s", element.name, self._tool_id)
        if self._listener is not None:
            self._listener.on_element_repaired(element_id)
        self._check_completion()

    def on_session_failure(self, element_id: str, charged_mistake: bool) -> None:
        session = self._sessions.pop(element_id, None)
        if session is None:
            return
        session.cancel()
        if self._focused == element_id:
            self._focused = None
        if not charged_mistake:
            logger.debug("Reset %s without a mistake", element_id)
            return
        self._mistake_count += 1
        logger.info("Mistake on %s (%d so far)", self._by_id[element_id].name, self._mistake_count)
        if self._listener is not None:
            self._listener.on_mistake(element_id)

    def _check_completion(self) -> None:
        if self._completion_reported or not self.complete:
            return
        self._completion_reported = True
        elapsed = self.elapsed_time()
        perfect = self.is_perfect()
        logger.info(
            "Tool %s repaired in %.1fs with %d mistake(s)", self._tool_id, elapsed, self._mistake_count
        )
        if self._listener is not None:
            self._listener.on_level_complete(elapsed, self._mistake_count)
        if self._recorder is not None:
            self._recorder.record_repair(self._tool_id, elapsed, perfect)
        if self._unlocks is not None:
            self._unlocks.mark_repaired(self._tool_id)

    def teardown(self) -> None:
        """Cancel every session timer; later ticks and events become no-ops."""
        for session in self._sessions.values():
            session.cancel()
        self._sessions.clear()
        self._focused = None
        self._torn_down = True
