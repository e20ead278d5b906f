from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.settings import LOG_DIR


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_NAME = "reminders.log"


def get_logger(name: str, *, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return the ``reminders.<name>`` logger, attaching the rotating file handler once."""

    root = logging.getLogger("reminders")
    if not root.handlers:
        directory = Path(log_dir or LOG_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            directory / LOG_FILE_NAME, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return root.getChild(name)


def enable_console(level: int = logging.INFO) -> None:
    root = logging.getLogger("reminders")
    if any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)


__all__ = ["get_logger", "enable_console", "LOG_FORMAT"]
