"""Input events accepted by the level coordinator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from tinkerbench.core.geometry import Point


@dataclass(frozen=True)
class Tap:
    element_id: str


@dataclass(frozen=True)
class PointerMove:
    element_id: str
    point: Point


@dataclass(frozen=True)
class PointerUp:
    element_id: str


@dataclass(frozen=True)
class HoldSignal:
    element_id: str
    asserted: bool


@dataclass(frozen=True)
class SubmitAnswer:
    element_id: str
    value: int


InputEvent = Union[Tap, PointerMove, PointerUp, HoldSignal, SubmitAnswer]
