"""Umugwaneza ERP: grocery wholesale and vehicle rental ledgers in one workbook.

Importing the package configures its ``log``. Records go to a rotating file
and, from WARNING upwards, to stderr. Two environment variables adjust the
file side without touching code:

``UMUGWANEZA_LOG_DIR``
    Directory for ``umugwaneza_erp.log`` (default ``<project>/.logs``).
``UMUGWANEZA_LOG_LEVEL``
    Level name for the package logger (default ``INFO``).
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR_ENV = "UMUGWANEZA_LOG_DIR"
LOG_LEVEL_ENV = "UMUGWANEZA_LOG_LEVEL"
DEFAULT_LOG_DIR = PROJECT_ROOT / ".logs"
LOG_FILENAME = "umugwaneza_erp.log"
CONSOLE_HANDLER_NAME = "umugwaneza-console"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def resolve_log_dir() -> Path:
    override = os.environ.get(LOG_DIR_ENV, "").strip()
    return Path(override).expanduser() if override else DEFAULT_LOG_DIR


def resolve_log_level(default: int = logging.INFO) -> int:
    """Level named by ``UMUGWANEZA_LOG_LEVEL``, or ``default`` when unset or unknown."""

    raw = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def _configure_logging(name: str = __name__) -> logging.Logger:
    """Attach the file and console handlers to the ``name`` logger once."""

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = resolve_log_level()
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    log_dir = resolve_log_dir()
    log_file = log_dir / LOG_FILENAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as exc:
        print(f"Warning: unable to open log file '{log_file}': {exc}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def set_console_level(level: Union[int, str], logger: Optional[logging.Logger] = None) -> None:
    """Change how much of the package log reaches stderr.

    The file handler keeps its level; the logger itself is lowered when needed
    so records at ``level`` are not filtered before reaching the console.
    """

    logger = logger or log
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    for handler in logger.handlers:
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            handler.setLevel(level)
    if logger.level > level:
        logger.setLevel(level)


log = _configure_logging()
log.info("Logging to '%s' at %s", resolve_log_dir() / LOG_FILENAME, logging.getLevelName(log.level))
