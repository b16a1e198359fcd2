"""Logging configuration for the ``groupchat`` logger tree.

Debug output goes to a rotating file (never to the terminal the chat is
drawn on) unless stderr mirroring is explicitly requested.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from groupchat.config import ClientConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"

_installed: list[logging.Handler] = []


def configure_logging(config: ClientConfig | None = None) -> logging.Logger:
    """Configure the ``groupchat`` logger from *config* (env when omitted).

    Safe to call repeatedly: handlers from a previous call are replaced.
    """
    config = config or ClientConfig.from_env()
    root = logging.getLogger("groupchat")
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    level_name = "DEBUG" if config.debug else config.log_level
    level = getattr(logging, level_name, None)
    root.setLevel(level if isinstance(level, int) else logging.WARNING)
    formatter = logging.Formatter(LOG_FORMAT)

    if config.debug:
        log_file = Path(config.debug_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        _installed.append(file_handler)

    if config.debug_stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)
        _installed.append(stream_handler)

    if not _installed:
        null_handler = logging.NullHandler()
        root.addHandler(null_handler)
        _installed.append(null_handler)

    root.debug(
        "configure_logging: level=%s file=%s stderr=%s",
        level_name, config.debug_file if config.debug else None, config.debug_stderr,
    )
    return root
