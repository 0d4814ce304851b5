"""SQLite database utilities."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from SearchSync.storage.migration import run_migrations

DEFAULT_BUSY_TIMEOUT = 30.0


class DatabaseManager:
    """Shared database connection manager.

    Uses singleton pattern so every queue component in a process shares one
    connection per database path. The connection may be used from any thread;
    `lock` serializes access to it within the process. Other processes open
    their own connection and SQLite's file locking serializes their writes.

    Supports context manager protocol for automatic connection cleanup.
    """

    _instance = None

    def __new__(cls, db_path: Path, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        """Create or return existing DatabaseManager instance.

        Args:
            db_path: Absolute path or project-relative path to database file.
            busy_timeout: Seconds to wait for a competing writer's lock.

        Returns:
            DatabaseManager singleton instance.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.db_path = Path(db_path)
            cls._instance.conn = ensure_db(Path(db_path), busy_timeout=busy_timeout)
            cls._instance.lock = threading.Lock()
            run_migrations(cls._instance.conn)
        return cls._instance

    def get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection.

        Returns:
            SQLite connection.
        """
        return self.conn

    def close(self) -> None:
        """Close the database connection and reset singleton instance.

        This allows creating a new instance with a different database path.
        """
        if hasattr(self, "conn") and self.conn:
            self.conn.close()
            type(self)._instance = None

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def ensure_db(db_path: Path, *, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> sqlite3.Connection:
    """Ensure database file exists and return a connection.

    The connection runs in autocommit mode (`isolation_level=None`); callers
    that need atomicity open explicit transactions. Thread affinity checks are
    off because the connection is shared; callers hold `DatabaseManager.lock`.

    Args:
        db_path: Absolute path or project-relative path to database file.
        busy_timeout: Seconds to wait when another connection holds the lock.

    Returns:
        SQLite connection.

    Raises:
        OSError: If directory creation fails.
        sqlite3.Error: If database connection fails.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(
        str(db_path),
        timeout=busy_timeout,
        isolation_level=None,
        check_same_thread=False,
    )
