"""Application wiring for the Tinkerbench repair workshop."""

import logging
import random
from typing import Callable, List, Optional

from tinkerbench.core.catalog import ToolCatalog
from tinkerbench.core.level import LevelCoordinator, LevelListener
from tinkerbench.core.progress import ProgressStore
from tinkerbench.core.timers import Scheduler
from tinkerbench.core.workshop import ToolStatus, WorkshopStore
from tinkerbench.ui.models import ToolState


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class Workshop:
    """Connects the tool catalog, the saved stores and the repair engine."""

    def __init__(
        self,
        catalog: ToolCatalog,
        progress_store: ProgressStore,
        workshop_store: WorkshopStore,
        scheduler: Scheduler,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._catalog = catalog
        self._progress_store = progress_store
        self._workshop_store = workshop_store
        self._scheduler = scheduler
        self._clock = clock

    @classmethod
    def create(cls, scheduler: Scheduler) -> "Workshop":
        """Build a workshop backed by the bundled catalog and the user's data directory."""
        catalog = ToolCatalog()
        return cls(
            catalog=catalog,
            progress_store=ProgressStore(),
            workshop_store=WorkshopStore(catalog.keys()),
            scheduler=scheduler,
        )

    @property
    def progress_store(self) -> ProgressStore:
        return self._progress_store

    @property
    def workshop_store(self) -> WorkshopStore:
        return self._workshop_store

    def tool_states(self) -> List[ToolState]:
        states = []
        current_found = False
        for tool in self._catalog.all():
            status = self._workshop_store.status(tool.key)
            is_current = not current_found and status is ToolStatus.IN_PROGRESS
            current_found = current_found or is_current
            states.append(ToolState(tool=tool, status=status, is_current=is_current))
        return states

    def start_level(
        self,
        tool_key: str,
        listener: Optional[LevelListener] = None,
        rng: Optional[random.Random] = None,
    ) -> LevelCoordinator:
        """Lay out a fresh level for an unlocked tool and return its coordinator."""
        tool = self._catalog.get(tool_key)
        if not self._workshop_store.is_playable(tool_key):
            raise PermissionError(f"{tool.name} is still locked")
        elements = self._catalog.build_elements(tool_key, rng)
        logging.info(
            "Starting %s with %d broken element(s)", tool.name, sum(1 for e in elements if e.broken)
        )
        kwargs = {"clock": self._clock} if self._clock is not None else {}
        return LevelCoordinator(
            tool_id=tool_key,
            elements=elements,
            scheduler=self._scheduler,
            listener=listener,
            recorder=self._progress_store,
            unlocks=self._workshop_store,
            **kwargs,
        )

    def reset_progress(self) -> None:
        self._progress_store.reset()
        self._workshop_store.reset()
