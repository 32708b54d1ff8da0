from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from tinkerbench.core.paths import data_dir

logger = logging.getLogger(__name__)


class RequirementKind(Enum):
    REPAIR_TOOLS = "repair_tools"
    PERFECT_REPAIR = "perfect_repair"
    SPEED_REPAIR = "speed_repair"
    NO_MISTAKES = "no_mistakes"
    TOTAL_REPAIRS = "total_repairs"


@dataclass(frozen=True)
class Achievement:
    key: str
    title: str
    description: str
    icon: str
    requirement: RequirementKind
    threshold: int


ACHIEVEMENTS: List[Achievement] = [
    Achievement("first_repair", "First Repair", "Repair your first tool", "wrench.fill",
                RequirementKind.REPAIR_TOOLS, 1),
    Achievement("master_repairman", "Master Repairman", "Repair 5 tools", "star.fill",
                RequirementKind.REPAIR_TOOLS, 5),
    Achievement("speed_demon", "Speed Demon", "Repair a tool in under 30 seconds", "bolt.fill",
                RequirementKind.SPEED_REPAIR, 30),
    Achievement("perfect_repair", "Perfect Repair", "Repair a tool without any mistakes",
                "checkmark.circle.fill", RequirementKind.PERFECT_REPAIR, 1),
    Achievement("no_mistakes", "No Mistakes", "Repair 3 tools perfectly", "checkmark.seal.fill",
                RequirementKind.NO_MISTAKES, 3),
    Achievement("veteran", "Veteran", "Repair 10 tools total", "medal.fill",
                RequirementKind.TOTAL_REPAIRS, 10),
]


@dataclass
class GameProgress:
    total_repairs: int = 0
    perfect_repairs: int = 0
    total_play_time: float = 0.0
    fastest_repair: Optional[float] = None
    tools_repaired: Set[str] = field(default_factory=set)
    achievements: Set[str] = field(default_factory=set)
    last_played: float = 0.0

    def add_repair(self, tool_id: str, elapsed: float, is_perfect: bool) -> None:
        self.total_repairs += 1
        if is_perfect:
            self.perfect_repairs += 1
        self.total_play_time += elapsed
        self.tools_repaired.add(tool_id)
        if self.fastest_repair is None or elapsed < self.fastest_repair:
            self.fastest_repair = elapsed

    def meets(self, achievement: Achievement) -> bool:
        kind = achievement.requirement
        if kind is RequirementKind.REPAIR_TOOLS:
            return len(self.tools_repaired) >= achievement.threshold
        if kind is RequirementKind.PERFECT_REPAIR:
            return self.perfect_repairs > 0
        if kind is RequirementKind.SPEED_REPAIR:
            return self.fastest_repair is not None and self.fastest_repair <= achievement.threshold
        if kind is RequirementKind.NO_MISTAKES:
            return self.perfect_repairs >= achievement.threshold
        return self.total_repairs >= achievement.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_repairs": self.total_repairs,
            "perfect_repairs": self.perfect_repairs,
            "total_play_time": self.total_play_time,
            "fastest_repair": self.fastest_repair,
            "tools_repaired": sorted(self.tools_repaired),
            "achievements": sorted(self.achievements),
            "last_played": self.last_played,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameProgress":
        fastest = payload.get("fastest_repair")
        return cls(
            total_repairs=int(payload.get("total_repairs", 0)),
            perfect_repairs=int(payload.get("perfect_repairs", 0)),
            total_play_time=float(payload.get("total_play_time", 0.0)),
            fastest_repair=float(fastest) if fastest is not None else None,
            tools_repaired={str(t) for t in payload.get("tools_repaired", [])},
            achievements={str(a) for a in payload.get("achievements", [])},
            last_played=float(payload.get("last_played", 0.0)),
        )


class ProgressStore:
    """Repair statistics and unlocked achievements.

    Persists to ``progress.json`` in the data directory. Cleared only by
    :meth:`reset`.
    """

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path if file_path is not None else data_dir() / "progress.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._progress = self._load()
        if self._unlock_earned():
            self._save()

    @property
    def progress(self) -> GameProgress:
        return self._progress

    def achievements(self) -> List[Achievement]:
        return list(ACHIEVEMENTS)

    def is_unlocked(self, key: str) -> bool:
        return key in self._progress.achievements

    def record_repair(self, tool_id: str, elapsed_time: float, is_perfect: bool) -> List[Achievement]:
        """Count a finished tool and return the achievements it unlocked."""
        self._progress.add_repair(tool_id, elapsed_time, is_perfect)
        self._progress.last_played = time.time()
        unlocked = self._unlock_earned()
        for achievement in unlocked:
            logger.info("Achievement unlocked: %s", achievement.title)
        self._save()
        return unlocked

    def reset(self) -> None:
        self._progress = GameProgress()
        self._save()

    def save(self) -> None:
        self._save()

    def _unlock_earned(self) -> List[Achievement]:
        unlocked = []
        for achievement in ACHIEVEMENTS:
            if achievement.key in self._progress.achievements:
                continue
            if self._progress.meets(achievement):
                self._progress.achievements.add(achievement.key)
                unlocked.append(achievement)
        return unlocked

    def _load(self) -> GameProgress:
        if not self._file_path.exists():
            return GameProgress()
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
            return GameProgress.from_dict(payload)
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return GameProgress()

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._file_path.write_text(json.dumps(self._progress.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
