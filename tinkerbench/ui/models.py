"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass

from tinkerbench.core.catalog import Tool
from tinkerbench.core.workshop import ToolStatus


@dataclass
class ToolState:
    """UI state for a single workshop card: the tool and its repair status."""

    tool: Tool
    status: ToolStatus
    is_current: bool = False

    @property
    def unlocked(self) -> bool:
        return self.status is not ToolStatus.LOCKED
