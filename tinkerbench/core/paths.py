from __future__ import annotations

import os
from pathlib import Path

APP_SLUG = "tinkerbench"
HOME_ENV = "TINKERBENCH_HOME"


def data_dir() -> Path:
    """Directory holding saved progress. ``$TINKERBENCH_HOME`` wins over ``~/.tinkerbench``."""
    override = os.getenv(HOME_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / f".{APP_SLUG}"
