from __future__ import annotations

"""Public configuration API for SearchSync."""

from SearchSync.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from SearchSync.config.entities import EntitiesConfig
from SearchSync.config.queue import QueueConfig
from SearchSync.config.runtime import RuntimeConfig
from SearchSync.config.search import SearchConfig
from SearchSync.config.storage import StorageConfig

__all__ = [
    "RuntimeConfig",
    "SearchConfig",
    "StorageConfig",
    "QueueConfig",
    "EntitiesConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
