"""Storage layer for SearchSync.

Provides database management, schema migrations and the document change
queue.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from SearchSync.storage.db import DatabaseManager
from SearchSync.storage.migration import run_migrations
from SearchSync.storage.queue import DocumentQueue
from SearchSync.utils.log import log

if TYPE_CHECKING:
    from SearchSync.config import AppConfig


def create_storage(config: AppConfig) -> tuple[DatabaseManager, DocumentQueue]:
    """Create the database manager and the change queue.

    Args:
        config: Application configuration containing storage settings.

    Returns:
        Tuple of (db_manager, queue).
    """
    db_path = Path(config.storage.db_path)
    db_manager = DatabaseManager(db_path, busy_timeout=config.storage.busy_timeout)
    log.debug("Queue storage: %s", db_path)
    return db_manager, DocumentQueue(db_manager)


__all__ = [
    "DatabaseManager",
    "DocumentQueue",
    "run_migrations",
    "create_storage",
]
