"""Tests for schema migration mechanism.

Covers:
  1. fresh database     - queue table created, schema_version written
  2. up-to-date         - second run executes no DDL
  3. new migration      - v2 applied to an existing DB, queued rows intact
  4. broken migration   - transaction rolled back, version unchanged
Plus: version-gap validation raises ValueError at startup.
"""

import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from SearchSync.storage.migration import Migration, load_migrations, run_migrations


def _connect(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(str(path), isolation_level=None)


def _current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    ).fetchone()
    return row[0] if row else 0


def _table_names(conn: sqlite3.Connection) -> set[str]:
    return {
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }


_MIGRATIONS = load_migrations()
_LATEST_VERSION = max(m.version for m in _MIGRATIONS)


class TestDiscovery(unittest.TestCase):
    def test_migrations_are_consecutive_from_one(self):
        self.assertEqual([m.version for m in _MIGRATIONS], list(range(1, _LATEST_VERSION + 1)))


class TestFreshDatabase(unittest.TestCase):
    """First run on a database file that does not yet exist."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "queue.db")

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_schema_version_equals_latest(self):
        run_migrations(self._conn)
        self.assertEqual(_current_version(self._conn), _LATEST_VERSION)

    def test_queue_table_created(self):
        run_migrations(self._conn)
        tables = _table_names(self._conn)
        for name in ("search_queue", "schema_version"):
            with self.subTest(table=name):
                self.assertIn(name, tables)

    def test_queue_key_is_unique(self):
        run_migrations(self._conn)
        insert = (
            "INSERT INTO search_queue (entry_id, entry_type, action, status, created_at) "
            "VALUES ('1', 'Article', 'update', 0, 0)"
        )
        self._conn.execute(insert)
        with self.assertRaises(sqlite3.IntegrityError):
            self._conn.execute(insert)

    def test_status_is_constrained(self):
        run_migrations(self._conn)
        with self.assertRaises(sqlite3.IntegrityError):
            self._conn.execute(
                "INSERT INTO search_queue (entry_id, entry_type, action, status, created_at) "
                "VALUES ('1', 'Article', 'update', 2, 0)"
            )


class TestAlreadyUpToDate(unittest.TestCase):
    """Second run after DB is already at the latest version."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "queue.db")
        run_migrations(self._conn)

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_version_unchanged_on_second_run(self):
        version_before = _current_version(self._conn)
        run_migrations(self._conn)
        self.assertEqual(_current_version(self._conn), version_before)

    def test_no_new_tables_on_second_run(self):
        tables_before = _table_names(self._conn)
        run_migrations(self._conn)
        self.assertEqual(_table_names(self._conn), tables_before)


class TestNewMigration(unittest.TestCase):
    """Simulated v2 migration applied to a v1 database."""

    _V2 = Migration(
        version=_LATEST_VERSION + 1,
        description="Add attempts column to search_queue",
        sql="ALTER TABLE search_queue ADD COLUMN attempts INTEGER NOT NULL DEFAULT 0;",
    )

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "queue.db")
        run_migrations(self._conn)
        self._conn.execute(
            "INSERT INTO search_queue (entry_id, entry_type, action, status, created_at) "
            "VALUES ('42', 'Article', 'update', 0, 100)"
        )

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_version_advances(self):
        run_migrations(self._conn, _MIGRATIONS + [self._V2])
        self.assertEqual(_current_version(self._conn), self._V2.version)

    def test_old_rows_preserved_with_new_column(self):
        run_migrations(self._conn, _MIGRATIONS + [self._V2])
        row = self._conn.execute(
            "SELECT entry_id, attempts FROM search_queue"
        ).fetchone()
        self.assertEqual(row, ("42", 0))


class TestRollbackOnError(unittest.TestCase):
    """Bad migration SQL raises; version number must not change."""

    _BAD = Migration(
        version=_LATEST_VERSION + 1,
        description="Intentionally broken migration",
        sql="CREATE TABLE extra (id INTEGER); THIS IS NOT VALID SQL;",
    )

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "queue.db")
        run_migrations(self._conn)

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_error_raised_and_rolled_back(self):
        version_before = _current_version(self._conn)
        with self.assertRaises(sqlite3.Error):
            run_migrations(self._conn, _MIGRATIONS + [self._BAD])
        self.assertEqual(_current_version(self._conn), version_before)
        self.assertNotIn("extra", _table_names(self._conn))


class TestVersionContinuityValidation(unittest.TestCase):
    """run_migrations raises ValueError if the list has a version gap."""

    def test_gap_raises_value_error(self):
        gap_migrations = _MIGRATIONS + [
            Migration(
                version=_LATEST_VERSION + 2,
                description="Gap migration",
                sql="SELECT 1;",
            )
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            conn = _connect(Path(tmpdir) / "queue.db")
            try:
                with self.assertRaises(ValueError):
                    run_migrations(conn, gap_migrations)
            finally:
                conn.close()


if __name__ == "__main__":
    unittest.main()
