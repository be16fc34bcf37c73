from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_LEVEL_ENV = "PROJECT_TREE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_HANDLER_TAG = "_project_tree_handler"


def resolve_level(level_name: Optional[str] = None) -> int:
    # Explicit value wins, then env, default WARNING so CLI output stays clean.
    name = (level_name or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(level_name: Optional[str] = None, log_file: Optional[str] = None) -> int:
    """Configure the project_tree logger once; safe to call again (replaces its handlers)."""
    level = resolve_level(level_name)

    logger = logging.getLogger("project_tree")
    logger.setLevel(level)
    for h in list(logger.handlers):
        if getattr(h, _HANDLER_TAG, False):
            logger.removeHandler(h)
            h.close()

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)

    # Console on stderr: stdout carries command output (text or JSON).
    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(formatter)
    ch.setLevel(level)
    setattr(ch, _HANDLER_TAG, True)
    logger.addHandler(ch)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        # File: rotate at 5MB, keep 7 backups
        fh = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.setLevel(level)
        setattr(fh, _HANDLER_TAG, True)
        logger.addHandler(fh)

    logger.debug("Logging initialized at %s; file: %s", logging.getLevelName(level), log_file)
    return level
