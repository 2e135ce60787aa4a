from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled console logging.

Every line on stdout starts with INFO|WARN|ERROR|SUMMARY so preview/commit
runs can be grepped by scripts. Modules log through
``logging.getLogger(__name__)``; the ``work_import`` logger configured here is
their common ancestor, so one handler serves the whole package.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "set_level",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "work_import"

# Between INFO=20 and WARNING=30
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
    SUMMARY_LEVEL: "SUMMARY",
}

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; unknown levels fall back to their registered name."""

    def format(self, record: logging.LogRecord) -> str:
        return f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled handler to the package logger. Calling it again is a no-op."""
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    root = logging.getLogger(LOGGER_NAME)
    for old in list(root.handlers):
        root.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    root.addHandler(handler)
    # The root logger would print every line a second time
    root.propagate = False

    _configured = root
    set_level(level)
    return root


def set_level(level: int) -> None:
    """Change the threshold of the package logger and its handlers (``--debug``)."""
    logger = get_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach handlers and forget the configured logger (tests)."""
    global _configured
    if _configured is not None:
        for handler in list(_configured.handlers):
            _configured.removeHandler(handler)
        _configured.propagate = True
    _configured = None
