"""Tests for tinkerbench.core.repairs and geometry – repair specs."""

from __future__ import annotations

import random

import pytest

from tinkerbench.core.geometry import Point, distance
from tinkerbench.core.repairs import (
    Connection,
    HoldDuration,
    LogicAnswer,
    PathFollow,
    RepairKind,
    TapCount,
    spec_from_dict,
)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

class TestDistance:
    def test_pythagorean(self):
        assert distance(Point(0, 0), Point(3, 4)) == 5.0

    def test_symmetric(self):
        a, b = Point(-2, 7), Point(5, -1)
        assert distance(a, b) == distance(b, a)

    def test_same_point(self):
        assert distance(Point(1.5, 1.5), Point(1.5, 1.5)) == 0.0

    def test_point_is_immutable(self):
        p = Point(1, 2)
        with pytest.raises(AttributeError):
            p.x = 3  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Spec construction
# ---------------------------------------------------------------------------

class TestSpecValidation:
    def test_tap_count_needs_one_tap(self):
        with pytest.raises(ValueError):
            TapCount(required=0)

    def test_hold_needs_positive_duration(self):
        with pytest.raises(ValueError):
            HoldDuration(seconds=0)

    def test_path_needs_waypoint(self):
        with pytest.raises(ValueError):
            PathFollow(waypoints=())

    def test_kinds(self):
        assert TapCount(1).kind is RepairKind.TAP_COUNT
        assert Connection(Point(0, 0), Point(1, 1)).kind is RepairKind.CONNECTION
        assert LogicAnswer("2 + 2", 4).kind is RepairKind.LOGIC_ANSWER
        assert HoldDuration(1.0).kind is RepairKind.HOLD_DURATION
        assert PathFollow((Point(0, 0),)).kind is RepairKind.PATH_FOLLOW


class TestDescriptions:
    def test_tap_count(self):
        assert TapCount(8).description == "Stuck Button - Tap 8 times"

    def test_logic(self):
        assert LogicAnswer("2 + 2", 4).description == "Logic Error - Solve: 2 + 2"

    def test_hold_truncates_seconds(self):
        assert HoldDuration(2.7).description == "Overheated Contact - Hold for 2s"


# ---------------------------------------------------------------------------
# spec_from_dict
# ---------------------------------------------------------------------------

class TestSpecFromDict:
    def test_fixed_tap_count(self):
        spec = spec_from_dict({"kind": "tap_count", "required": 9}, random.Random(0))
        assert spec == TapCount(9)

    def test_tap_count_range_is_inclusive(self):
        rng = random.Random(42)
        values = {spec_from_dict({"kind": "tap_count", "required": [8, 12]}, rng).required for _ in range(200)}
        assert values == {8, 9, 10, 11, 12}

    def test_hold_range(self):
        rng = random.Random(1)
        for _ in range(50):
            spec = spec_from_dict({"kind": "hold_duration", "seconds": [2.0, 3.0]}, rng)
            assert 2.0 <= spec.seconds <= 3.0

    def test_connection_points(self):
        spec = spec_from_dict(
            {"kind": "connection", "start": [0, -120], "end": {"x": 0, "y": -80}}, random.Random(0)
        )
        assert spec == Connection(Point(0, -120), Point(0, -80))

    def test_logic(self):
        spec = spec_from_dict({"kind": "logic_answer", "prompt": " 2 + 2 ", "answer": 4}, random.Random(0))
        assert spec == LogicAnswer("2 + 2", 4)

    def test_path(self):
        spec = spec_from_dict({"kind": "path_follow", "waypoints": [[0, 0], [10, 5]]}, random.Random(0))
        assert spec.waypoints == (Point(0, 0), Point(10, 5))

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="unknown repair kind"):
            spec_from_dict({"kind": "wiggle"}, random.Random(0))

    def test_missing_parameter(self):
        with pytest.raises(ValueError, match="required"):
            spec_from_dict({"kind": "tap_count"}, random.Random(0))

    def test_inverted_range(self):
        with pytest.raises(ValueError):
            spec_from_dict({"kind": "tap_count", "required": [12, 8]}, random.Random(0))

    def test_bad_point(self):
        with pytest.raises(ValueError):
            spec_from_dict({"kind": "connection", "start": [1, 2, 3], "end": [0, 0]}, random.Random(0))

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            spec_from_dict(["tap_count"], random.Random(0))  # type: ignore[arg-type]
