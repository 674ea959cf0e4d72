"""Process-wide logging for the CLI and the HTTP server.

Records go to a size-rotated file under the data directory and to stderr,
so command output on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LoggingSettings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "hypercorn.access")

_configured_file: Optional[Path] = None


def resolve_level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def configure_logging(level: Optional[str] = None, *, settings: Optional[LoggingSettings] = None) -> Path:
    """Attach the file and stderr handlers to the root logger once; return the log file in use."""

    global _configured_file
    if _configured_file is not None:
        return _configured_file

    settings = settings or get_settings().logging
    log_file = settings.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = (
        RotatingFileHandler(
            str(log_file),
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ),
        logging.StreamHandler(sys.stderr),
    )
    root = logging.getLogger()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(resolve_level(level or settings.level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured_file = log_file
    logging.getLogger(__name__).debug("Logging to %s (level %s)", log_file, logging.getLevelName(root.level))
    return log_file


__all__ = ["configure_logging", "resolve_level"]
