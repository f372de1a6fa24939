"""OVH Diagnostic Bot — Logging Setup.

Centralized logging configuration: colored console output plus a rotating
file handler. Modules obtain their logger through get_logger() so the
handlers are installed exactly once, whichever module is imported first.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# ── Constants ─────────────────────────────────────────────
LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_FILE = LOG_DIR / "diagnostic_bot.log"
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

_CONSOLE_FORMAT = "%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s"
_FILE_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ── ANSI Color Codes ─────────────────────────────────────
COLORS = {
    "DEBUG": "\033[36m",     # Cyan
    "INFO": "\033[32m",      # Green
    "WARNING": "\033[33m",   # Yellow
    "ERROR": "\033[31m",     # Red
    "CRITICAL": "\033[41m",  # Red background
}
RESET = "\033[0m"

_initialized = False
_console_handler: logging.Handler | None = None


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name and timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy: the same record also reaches the file handler.
        record = logging.makeLogRecord(record.__dict__)
        color = COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname:<8}{RESET}"
        return super().format(record)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        color = COLORS.get(logging.getLevelName(record.levelno), "")
        return f"{color}{super().formatTime(record, datefmt)}{RESET}"


def _setup_logging() -> None:
    """Install the console (INFO) and rotating file (DEBUG) handlers.

    Idempotent: later calls are no-ops.
    """
    global _initialized, _console_handler
    if _initialized:
        return

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # ── Console Handler (INFO) ───────────────────────────
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        ColoredFormatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)
    _console_handler = console_handler

    # ── Rotating File Handler (DEBUG) ────────────────────
    file_handler = RotatingFileHandler(
        filename=str(LOG_FILE),
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(file_handler)

    # httpx logs every request at INFO, which floods the console on fan-out.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    _initialized = True


def set_console_level(level: str) -> None:
    """Apply the configured log level to the console handler.

    Args:
        level: Level name from settings.yaml (e.g. "DEBUG", "INFO").
    """
    _setup_logging()
    if _console_handler is not None:
        _console_handler.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Get a named logger with the global configuration applied.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance.
    """
    _setup_logging()
    return logging.getLogger(name)
