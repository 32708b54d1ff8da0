"""Tests for tinkerbench.core.catalog – YAML-based tool loading."""

from __future__ import annotations

import random
import textwrap
from pathlib import Path

import pytest

from tinkerbench.core.catalog import ToolCatalog
from tinkerbench.core.geometry import Point, Size
from tinkerbench.core.repairs import HoldDuration, LogicAnswer, TapCount


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def tools_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data" / "tools"
    d.mkdir(parents=True)
    return d


def _write(directory: Path, name: str, body: str) -> None:
    (directory / name).write_text(textwrap.dedent(body), encoding="utf-8")


SIMPLE_TOOL = """\
    name: Widget
    icon: gear
    broken: [1, 2]
    elements:
      - name: Knob
        position: [10, 20]
        size: [30, 40]
        repair: {kind: tap_count, required: [3, 4]}
      - name: Lamp
        repair: {kind: hold_duration, seconds: 1.5}
      - name: Label
"""


# ---------------------------------------------------------------------------
# Bundled catalog
# ---------------------------------------------------------------------------

class TestBundledCatalog:
    def test_six_tools_in_order(self):
        catalog = ToolCatalog()
        assert [t.name for t in catalog.all()] == [
            "Calculator", "Compass", "Metronome", "Flashlight", "Timer", "Stopwatch",
        ]
        assert catalog.keys() == ["tool1", "tool2", "tool3", "tool4", "tool5", "tool6"]

    def test_calculator_layout(self):
        calc = ToolCatalog().get("tool1")
        assert len(calc.elements) == 16
        assert calc.broken == (3, 4)
        assert calc.elements[0].position == Point(30, 150)
        assert calc.elements[0].size == Size(70, 70)

    @pytest.mark.parametrize("seed", range(10))
    def test_every_tool_builds(self, seed):
        catalog = ToolCatalog()
        rng = random.Random(seed)
        for tool in catalog.all():
            elements = catalog.build_elements(tool.key, rng)
            broken = [e for e in elements if e.broken]
            low, high = tool.broken
            assert low <= len(broken) <= high
            assert all(e.spec is not None for e in broken)
            assert len({e.id for e in elements}) == len(elements)

    def test_stopwatch_display_is_logic(self):
        catalog = ToolCatalog()
        tool = catalog.get("tool6")
        display = tool.elements[0]
        assert display.repair["kind"] == "logic_answer"

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            ToolCatalog().get("tool99")


# ---------------------------------------------------------------------------
# Custom catalogs
# ---------------------------------------------------------------------------

class TestLoading:
    def test_simple_tool(self, tools_dir):
        _write(tools_dir, "tool1.yaml", SIMPLE_TOOL)
        tool = ToolCatalog(tools_dir).get("tool1")
        assert tool.name == "Widget"
        assert tool.icon == "gear"
        assert [e.name for e in tool.repairable()] == ["Knob", "Lamp"]
        assert tool.elements[1].position == Point(0, 0)

    def test_numeric_sort(self, tools_dir):
        for n in (10, 2, 1):
            _write(tools_dir, f"tool{n}.yaml", SIMPLE_TOOL)
        assert ToolCatalog(tools_dir).keys() == ["tool1", "tool2", "tool10"]

    def test_build_resolves_specs(self, tools_dir):
        _write(tools_dir, "tool1.yaml", SIMPLE_TOOL.replace("[1, 2]", "[2, 2]"))
        elements = ToolCatalog(tools_dir).build_elements("tool1", random.Random(3))
        knob, lamp, label = elements
        assert isinstance(knob.spec, TapCount) and knob.spec.required in (3, 4)
        assert lamp.spec == HoldDuration(1.5)
        assert label.broken is False and label.spec is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ToolCatalog(tmp_path / "nowhere")

    def test_empty_directory(self, tools_dir):
        with pytest.raises(ValueError, match="No tool files"):
            ToolCatalog(tools_dir)

    def test_missing_name(self, tools_dir):
        _write(tools_dir, "tool1.yaml", "elements:\n  - name: A\n")
        with pytest.raises(ValueError, match="name"):
            ToolCatalog(tools_dir)

    def test_empty_file(self, tools_dir):
        _write(tools_dir, "tool1.yaml", "")
        with pytest.raises(ValueError):
            ToolCatalog(tools_dir)

    def test_bad_repair_fails_at_load(self, tools_dir):
        _write(tools_dir, "tool1.yaml", SIMPLE_TOOL.replace("tap_count", "tap_dance"))
        with pytest.raises(ValueError, match="Knob"):
            ToolCatalog(tools_dir)

    def test_broken_range_too_wide(self, tools_dir):
        _write(tools_dir, "tool1.yaml", SIMPLE_TOOL.replace("[1, 2]", "[1, 3]"))
        with pytest.raises(ValueError, match="broken"):
            ToolCatalog(tools_dir)

    def test_logic_prompt(self, tools_dir):
        _write(
            tools_dir,
            "tool1.yaml",
            """\
            name: Pad
            elements:
              - name: Screen
                repair: {kind: logic_answer, prompt: "3 * 3", answer: 9}
            """,
        )
        (screen,) = ToolCatalog(tools_dir).build_elements("tool1", random.Random(0))
        assert screen.spec == LogicAnswer("3 * 3", 9)
