"""Logging configuration helpers for the stock checker."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "stockcheck.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_PACKAGE_LOGGER = "stockcheck"


def _build_handlers(level: str) -> list[logging.Handler]:
    os.makedirs(LOG_DIR, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    handlers: list[logging.Handler] = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes to the console and ``logs/stockcheck.log``.

    Handlers live on the package logger; module loggers (``stockcheck.*``)
    propagate to it so a single level change reaches every module.
    """
    root = logging.getLogger(_PACKAGE_LOGGER)
    if not root.handlers:
        root.setLevel(DEFAULT_LEVEL)
        root.propagate = False
        for handler in _build_handlers(DEFAULT_LEVEL):
            root.addHandler(handler)

    if name == _PACKAGE_LOGGER or name.startswith(_PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_PACKAGE_LOGGER}.{name}")


def set_level(level: str | int) -> None:
    """Change the level of the package logger and all of its handlers."""
    root = get_logger(_PACKAGE_LOGGER)
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)
