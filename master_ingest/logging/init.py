from __future__ import annotations

import logging
import sys

"""Labeled stdout logging for the importer.

Each line reads `LABEL message` with LABEL one of DEBUG, INFO, WARN, ERROR or
SUMMARY, so wrapper scripts can grep a run's output. SUMMARY (25) sits between
INFO and WARNING and carries the final one-line run summary.

Modules log through logging.getLogger(__name__); everything under the
`master_ingest` namespace propagates to the single handler installed here.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

APP_LOGGER_NAME = "master_ingest"
SUMMARY_LEVEL = 25

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def _stdout_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Install the labeled stdout handler on the `master_ingest` logger.

    Calling it again returns the already configured logger. The handler binds
    sys.stdout as it is at call time.
    """
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(APP_LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(_stdout_handler(level))
    logger.setLevel(level)
    # root に流すと二重出力になる
    logger.propagate = False

    _configured = logger
    return logger


def set_debug(logger: logging.Logger) -> None:
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the handler so the next setup_logging() rebinds stdout (tests)."""
    global _configured
    if _configured is not None:
        for handler in list(_configured.handlers):
            _configured.removeHandler(handler)
    _configured = None
