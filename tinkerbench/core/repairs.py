from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Sequence, Tuple, Union

from tinkerbench.core.geometry import Point


class RepairKind(Enum):
    TAP_COUNT = "tap_count"
    CONNECTION = "connection"
    LOGIC_ANSWER = "logic_answer"
    HOLD_DURATION = "hold_duration"
    PATH_FOLLOW = "path_follow"


@dataclass(frozen=True)
class TapCount:
    """Stuck button: tap ``required`` times before the window closes."""

    required: int

    def __post_init__(self) -> None:
        if self.required < 1:
            raise ValueError(f"required taps must be >= 1, got {self.required}")

    @property
    def kind(self) -> RepairKind:
        return RepairKind.TAP_COUNT

    @property
    def description(self) -> str:
        return f"Stuck Button - Tap {self.required} times"


@dataclass(frozen=True)
class Connection:
    """Broken connection: drag a line from ``start`` to ``end``."""

    start: Point
    end: Point

    @property
    def kind(self) -> RepairKind:
        return RepairKind.CONNECTION

    @property
    def description(self) -> str:
        return "Broken Connection - Connect the points"


@dataclass(frozen=True)
class LogicAnswer:
    """Logic error: submit the integer ``answer`` to ``prompt``."""

    prompt: str
    answer: int

    @property
    def kind(self) -> RepairKind:
        return RepairKind.LOGIC_ANSWER

    @property
    def description(self) -> str:
        return f"Logic Error - Solve: {self.prompt}"


@dataclass(frozen=True)
class HoldDuration:
    """Overheated contact: keep holding for ``seconds``."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError(f"hold duration must be > 0, got {self.seconds}")

    @property
    def kind(self) -> RepairKind:
        return RepairKind.HOLD_DURATION

    @property
    def description(self) -> str:
        return f"Overheated Contact - Hold for {int(self.seconds)}s"


@dataclass(frozen=True)
class PathFollow:
    """Stuck slider: trace a stroke passing near most of ``waypoints``."""

    waypoints: Tuple[Point, ...]

    def __post_init__(self) -> None:
        if not self.waypoints:
            raise ValueError("path needs at least one waypoint")

    @property
    def kind(self) -> RepairKind:
        return RepairKind.PATH_FOLLOW

    @property
    def description(self) -> str:
        return "Stuck Slider - Follow the path"


RepairSpec = Union[TapCount, Connection, LogicAnswer, HoldDuration, PathFollow]


def _point(raw: Any) -> Point:
    if isinstance(raw, dict):
        return Point(float(raw["x"]), float(raw["y"]))
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return Point(float(raw[0]), float(raw[1]))
    raise ValueError(f"expected a point as [x, y] or {{x, y}}, got {raw!r}")


def _pick_int(raw: Any, rng: random.Random) -> int:
    # [low, high] ranges are inclusive on both ends
    if isinstance(raw, (list, tuple)):
        low, high = _range_bounds(raw)
        return rng.randint(int(low), int(high))
    return int(raw)


def _pick_float(raw: Any, rng: random.Random) -> float:
    if isinstance(raw, (list, tuple)):
        low, high = _range_bounds(raw)
        return rng.uniform(float(low), float(high))
    return float(raw)


def _range_bounds(raw: Sequence[Any]) -> Tuple[Any, Any]:
    if len(raw) != 2:
        raise ValueError(f"expected a [low, high] range, got {list(raw)!r}")
    low, high = raw
    if low > high:
        raise ValueError(f"range low {low} is above high {high}")
    return low, high


def spec_from_dict(data: Dict[str, Any], rng: random.Random) -> RepairSpec:
    """Build a repair spec from catalog data.

    Numeric parameters may be ranges, resolved once here so the resulting
    spec is fixed for the lifetime of the level.
    """
    if not isinstance(data, dict):
        raise ValueError(f"repair must be a mapping, got {data!r}")
    raw_kind = data.get("kind")
    try:
        kind = RepairKind(raw_kind)
    except ValueError:
        raise ValueError(f"unknown repair kind {raw_kind!r}") from None

    try:
        if kind is RepairKind.TAP_COUNT:
            return TapCount(required=_pick_int(data["required"], rng))
        if kind is RepairKind.CONNECTION:
            return Connection(start=_point(data["start"]), end=_point(data["end"]))
        if kind is RepairKind.LOGIC_ANSWER:
            return LogicAnswer(prompt=str(data["prompt"]).strip(), answer=int(data["answer"]))
        if kind is RepairKind.HOLD_DURATION:
            return HoldDuration(seconds=_pick_float(data["seconds"], rng))
        return PathFollow(waypoints=tuple(_point(p) for p in data["waypoints"]))
    except KeyError as e:
        raise ValueError(f"{kind.value} repair is missing {e.args[0]!r}") from None
