"""Runtime configuration: the ``log`` section read by the CLI runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from SearchSync.config.common import expect_bool, expect_str, get_optional_value, get_section

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "log"


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Logging settings for CLI commands.

    Attributes:
        level: Console log level name.
        to_file: Mirror each command's log to ``<dir>/<command>/``.
        dir: Base directory for per-command log files.
    """

    level: str = DEFAULT_LOG_LEVEL
    to_file: bool = False
    dir: str = DEFAULT_LOG_DIR


def load_runtime(raw: Mapping[str, Any]) -> RuntimeConfig:
    """Load the optional ``log`` section; missing keys keep their defaults.

    Raises:
        TypeError: If a value has the wrong type.
    """
    section = get_section(raw, "log", required=False)
    return RuntimeConfig(
        level=expect_str(get_optional_value(section, "level", DEFAULT_LOG_LEVEL), "log.level").upper(),
        to_file=expect_bool(get_optional_value(section, "to_file", False), "log.to_file"),
        dir=expect_str(get_optional_value(section, "dir", DEFAULT_LOG_DIR), "log.dir"),
    )


def check_runtime(config: RuntimeConfig) -> None:
    """Validate the log level name and, when file logging is on, the directory."""
    if not isinstance(logging.getLevelName(config.level), int):
        raise ValueError(f"log.level is not a logging level: {config.level!r}")
    if config.to_file and not config.dir.strip():
        raise ValueError("log.dir must not be empty when log.to_file is true")
