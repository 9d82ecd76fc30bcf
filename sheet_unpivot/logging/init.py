from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TextIO

"""Package logging: labeled one-line output.

Every line starts with INFO|WARN|ERROR|SUMMARY (DEBUG in debug mode). While a
batch run is inside :func:`sheet_context`, lines are tagged with the sheet
name, so warnings raised deep in the classifier or resolver still say which
sheet they belong to:

    WARN [Q1] header group=month matched no cells

Modules log through ``logging.getLogger(__name__)``; all of them sit below
the ``sheet_unpivot`` logger, which owns the single handler.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
    "sheet_context",
]

LOGGER_NAME = "sheet_unpivot"

# INFO (20) と WARNING (30) の間
SUMMARY_LEVEL = 25

_current_sheet: ContextVar[str | None] = ContextVar("sheet_unpivot_sheet", default=None)
_logger: logging.Logger | None = None


class _SheetFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.sheet = _current_sheet.get()
        return True


class LabeledFormatter(logging.Formatter):
    """``LABEL [sheet] message``; the sheet tag is omitted outside a sheet."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        sheet = getattr(record, "sheet", None)
        message = record.getMessage()
        if sheet:
            return f"{label} [{sheet}] {message}"
        return f"{label} {message}"


def setup_logging(*, debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled stdout handler to the package logger.

    Calling it again returns the already configured logger untouched; use
    :func:`set_debug` to change the level afterwards.

    Args:
        debug: start at DEBUG instead of INFO
        stream: output stream (defaults to ``sys.stdout``)
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    level = logging.DEBUG if debug else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    handler.addFilter(_SheetFilter())
    logger.addHandler(handler)
    logger.setLevel(level)
    # ルートロガーへ流すと二重出力になる
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def set_debug(enabled: bool = True) -> None:
    logger = get_logger()
    level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    logger.debug("debug logging %s", "on" if enabled else "off")


def log_summary(message: str) -> None:
    """Emit ``message`` at SUMMARY level (rendered as ``SUMMARY <message>``)."""
    get_logger().log(SUMMARY_LEVEL, message)


@contextmanager
def sheet_context(sheet: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with ``sheet``."""
    token = _current_sheet.set(sheet)
    try:
        yield
    finally:
        _current_sheet.reset(token)


def reset_logging() -> None:
    """Detach the handler and forget the configured logger (tests)."""
    global _logger
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _logger = None
