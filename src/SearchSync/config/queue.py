from __future__ import annotations

"""Queue processing configuration."""

from dataclasses import dataclass
from typing import Any, Mapping

from SearchSync.config.common import expect_int, get_optional_value, get_section

DEFAULT_BATCHING_SIZE = 100


@dataclass(frozen=True, slots=True)
class QueueConfig:
    """Queue consumer settings."""

    batching_size: int


def load_queue(raw: Mapping[str, Any]) -> QueueConfig:
    """Load queue config; the section is optional."""
    section = get_section(raw, "queue", required=False)
    return QueueConfig(
        batching_size=expect_int(
            get_optional_value(section, "batching_size", DEFAULT_BATCHING_SIZE),
            "queue.batching_size",
        ),
    )


def check_queue(config: QueueConfig) -> None:
    """Validate queue constraints."""
    if config.batching_size <= 0:
        raise ValueError("queue.batching_size must be positive")
