from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from tinkerbench.core.paths import data_dir

logger = logging.getLogger(__name__)


class ToolStatus(Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    REPAIRED = "repaired"


class WorkshopStore:
    """Repair status of every tool, with sequential unlocking.

    The first tool is always playable; each later tool opens once the one
    before it is repaired. Only the repaired keys are persisted, to
    ``workshop.json`` in the data directory.
    """

    def __init__(self, tool_keys: Sequence[str], file_path: Optional[Path] = None) -> None:
        if not tool_keys:
            raise ValueError("workshop needs at least one tool")
        self._keys: List[str] = list(tool_keys)
        self._file_path = file_path if file_path is not None else data_dir() / "workshop.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._status: Dict[str, ToolStatus] = {}
        self._reset_statuses()
        for key in self._load():
            if key in self._status:
                self._status[key] = ToolStatus.REPAIRED
        self._unlock_next()

    def keys(self) -> List[str]:
        return list(self._keys)

    def status(self, key: str) -> ToolStatus:
        return self._status[key]

    def statuses(self) -> Dict[str, ToolStatus]:
        return dict(self._status)

    def is_playable(self, key: str) -> bool:
        return self.status(key) is not ToolStatus.LOCKED

    def unlock(self, key: str) -> None:
        if self._status.get(key) is ToolStatus.LOCKED:
            self._status[key] = ToolStatus.IN_PROGRESS

    def mark_repaired(self, tool_id: str) -> None:
        if tool_id not in self._status:
            logger.warning("Ignoring repair of unknown tool %s", tool_id)
            return
        self._status[tool_id] = ToolStatus.REPAIRED
        self._unlock_next()
        self._save()

    def reset(self) -> None:
        self._reset_statuses()
        self._save()

    def _reset_statuses(self) -> None:
        self._status = {key: ToolStatus.LOCKED for key in self._keys}
        self._status[self._keys[0]] = ToolStatus.IN_PROGRESS

    def _unlock_next(self) -> None:
        previous_repaired = True
        for key in self._keys:
            if previous_repaired and self._status[key] is ToolStatus.LOCKED:
                self._status[key] = ToolStatus.IN_PROGRESS
            previous_repaired = self._status[key] is ToolStatus.REPAIRED

    def _load(self) -> List[str]:
        if not self._file_path.exists():
            return []
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load workshop from %s: %s", self._file_path, e)
            return []
        repaired = payload.get("repaired", []) if isinstance(payload, dict) else []
        return [str(key) for key in repaired]

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"repaired": [k for k in self._keys if self._status[k] is ToolStatus.REPAIRED]}
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save workshop to %s: %s", self._file_path, e)
