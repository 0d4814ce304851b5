from __future__ import annotations

"""Storage domain configuration for the queue database."""

from dataclasses import dataclass
from typing import Any, Mapping

from SearchSync.config.common import (
    expect_float,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Storage configuration."""

    db_path: str
    busy_timeout: float


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    """Load storage domain config from raw mapping."""
    section = get_section(raw, "storage", required=True)
    return StorageConfig(
        db_path=expect_str(get_required_value(section, "db_path", "storage.db_path"), "storage.db_path"),
        busy_timeout=expect_float(
            get_optional_value(section, "busy_timeout", 30.0),
            "storage.busy_timeout",
        ),
    )


def check_storage(config: StorageConfig) -> None:
    """Validate storage domain constraints."""
    if not config.db_path.strip():
        raise ValueError("storage.db_path must not be empty")
    if config.busy_timeout < 0:
        raise ValueError("storage.busy_timeout must be >= 0")
