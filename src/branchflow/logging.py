"""Structured JSON logging for the installer.

Writes JSONL to ``branch-flow-install.log`` with rotation (1MB, 3 backups).
The CLI points it at the repository's git directory so the log never
lands in the working tree.
"""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILENAME = "branch-flow-install.log"
_MAX_BYTES = 1024 * 1024  # 1MB
_BACKUP_COUNT = 3

_EXTRA_FIELDS = ("op", "path", "probe", "duration_ms", "error")


class _JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if hasattr(record, "args_data"):
            entry["args"] = record.args_data
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def setup_logging(log_dir: Path) -> logging.Logger:
    """Attach the JSONL file handler for *log_dir* to the ``branchflow`` logger.

    Idempotent per path: a second call with the same directory returns the
    same logger without adding a handler; a different directory replaces it.
    """
    logger = logging.getLogger("branchflow")
    log_path = log_dir / LOG_FILENAME
    target_filename = os.path.abspath(str(log_path))

    for h in logger.handlers[:]:
        if not isinstance(h, RotatingFileHandler):
            continue
        if h.baseFilename == target_filename:
            return logger
        logger.removeHandler(h)
        h.close()

    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
    )
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger
