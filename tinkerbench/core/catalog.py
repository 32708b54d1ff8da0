from __future__ import annotations

import random
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from tinkerbench.core.geometry import Point, Size
from tinkerbench.core.level import Element
from tinkerbench.core.repairs import spec_from_dict


@dataclass(frozen=True)
class ElementTemplate:
    name: str
    position: Point
    size: Size
    repair: Optional[Dict[str, Any]] = None

    @property
    def repairable(self) -> bool:
        return self.repair is not None


@dataclass(frozen=True)
class Tool:
    key: str
    name: str
    icon: str
    broken: Tuple[int, int]
    elements: Tuple[ElementTemplate, ...]

    def repairable(self) -> List[ElementTemplate]:
        return [e for e in self.elements if e.repairable]


def _default_tools_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "tools"


def _pair(raw: Any, what: str, source: str) -> Tuple[float, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError(f"{source}: {what} must be a two-item list, got {raw!r}")
    return float(raw[0]), float(raw[1])


class ToolCatalog:
    """Tools the workshop offers, loaded from ``data/tools/tool*.yaml``."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir if base_dir is not None else _default_tools_dir()
        self._tools = self._load_tools()

    def all(self) -> List[Tool]:
        return list(self._tools.values())

    def keys(self) -> List[str]:
        return list(self._tools)

    def get(self, key: str) -> Tool:
        return self._tools[key]

    def build_elements(self, key: str, rng: Optional[random.Random] = None) -> List[Element]:
        """Lay out a fresh level for ``key`` with a random set of broken elements."""
        rng = rng or random.Random()
        tool = self.get(key)
        candidates = [i for i, e in enumerate(tool.elements) if e.repairable]
        low, high = tool.broken
        broken = set(rng.sample(candidates, rng.randint(low, high)))

        elements: List[Element] = []
        for index, template in enumerate(tool.elements):
            is_broken = index in broken
            elements.append(
                Element(
                    id=uuid.uuid4().hex,
                    name=template.name,
                    broken=is_broken,
                    spec=spec_from_dict(template.repair, rng) if is_broken else None,
                    position=template.position,
                    size=template.size,
                )
            )
        return elements

    def _load_tools(self) -> Dict[str, Tool]:
        if not self._base_dir.exists():
            raise FileNotFoundError(f"Tools directory not found: {self._base_dir}")

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^tool(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        tools: Dict[str, Tool] = {}
        for tool_path in sorted(self._base_dir.glob("tool*.yaml"), key=_sort_key):
            raw = yaml.safe_load(tool_path.read_text(encoding="utf-8"))
            tools[tool_path.stem] = self._parse_tool(tool_path.stem, raw, tool_path.name)

        if not tools:
            raise ValueError("No tool files (tool*.yaml) found in data/tools")
        return tools

    def _parse_tool(self, key: str, raw: Any, source: str) -> Tool:
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{source}: expected YAML with 'name' and 'elements'")
        name = raw.get("name")
        if not name or not isinstance(name, str):
            raise ValueError(f"{source}: missing or invalid 'name'")
        raw_elements = raw.get("elements")
        if not raw_elements or not isinstance(raw_elements, list):
            raise ValueError(f"{source}: 'elements' must be a non-empty list")

        templates = tuple(self._parse_element(item, source) for item in raw_elements)
        repairable = sum(1 for t in templates if t.repairable)
        low, high = (int(v) for v in _pair(raw.get("broken", [1, 1]), "'broken'", source))
        if not 1 <= low <= high <= repairable:
            raise ValueError(
                f"{source}: 'broken' range [{low}, {high}] does not fit {repairable} repairable element(s)"
            )
        return Tool(
            key=key,
            name=name.strip(),
            icon=str(raw.get("icon", "")).strip(),
            broken=(low, high),
            elements=templates,
        )

    def _parse_element(self, item: Any, source: str) -> ElementTemplate:
        if not isinstance(item, dict) or not item.get("name"):
            raise ValueError(f"{source}: every element needs a 'name'")
        repair = item.get("repair")
        if repair is not None:
            try:
                # Resolve once up front so bad data fails at load time, not mid-level.
                spec_from_dict(repair, random.Random(0))
            except ValueError as e:
                raise ValueError(f"{source}: element {item['name']!r}: {e}") from None
        x, y = _pair(item.get("position", [0, 0]), "'position'", source)
        width, height = _pair(item.get("size", [0, 0]), "'size'", source)
        return ElementTemplate(
            name=str(item["name"]),
            position=Point(x, y),
            size=Size(width, height),
            repair=repair,
        )
