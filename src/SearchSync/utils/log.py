"""SearchSync logging utilities.

All modules log through the package logger `log`. Handlers are installed
once per CLI command by `configure_logging`; library code never configures
logging itself.

Line format: ``mm-dd HH:MM:SS [LVL] message`` with LVL one of
DEBG/INFO/WARN/ERRO.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Final, TextIO

LOG_FORMAT: Final[str] = "%(asctime)s [%(levelabbr)s] %(message)s"
DATE_FORMAT: Final[str] = "%m-%d %H:%M:%S"

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}

log = logging.getLogger("SearchSync")


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


def _log_file_path(log_dir: str, action: str) -> Path:
    action_dir = Path(log_dir or "log") / action
    action_dir.mkdir(parents=True, exist_ok=True)
    return action_dir / f"{action}_{datetime.now().strftime('%m%d%H%M%S')}.log"


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
    stream: TextIO | None = None,
) -> Path | None:
    """Install console (and optional file) handlers on the package logger.

    Replaces any handlers from a previous call, so running several commands
    in one process does not duplicate output.

    Args:
        level: Console level name (e.g. INFO, DEBUG).
        action: CLI command name; names the log file and its directory.
        log_to_file: Also write DEBUG and above to ``<log_dir>/<action>/``.
        log_dir: Base directory for log files.
        stream: Console stream; stderr when omitted.

    Returns:
        Path of the log file, or None when only the console is used.
    """
    console_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = _AbbrevLevelFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    log.addHandler(console)

    log_path: Path | None = None
    if log_to_file and action:
        log_path = _log_file_path(log_dir, action)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    log.setLevel(logging.DEBUG if log_path else console_level)
    log.propagate = False
    return log_path
