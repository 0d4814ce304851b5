"""Document change queue.

Records "this record needs re-indexing / removal" intents in the
``search_queue`` table and hands them to a single periodic consumer as
atomically claimed batches.

Row lifecycle::

    push ──► WAITING ──claim_batch──► RUNNING ──flush──► (deleted)
                ▲                        │
                └────────── push ────────┘

A push for a key that is currently RUNNING moves it back to WAITING, so the
change survives the flush that ends the in-flight batch and is picked up by
the next claim. Rows left RUNNING by a crashed consumer are never reset
automatically; `requeue` is the operator's tool for that.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from SearchSync.core.models import Action, QueueEntry, QueueStatus
from SearchSync.utils.log import log

if TYPE_CHECKING:
    from SearchSync.storage.db import DatabaseManager

QUEUE_TABLE = "search_queue"


class DocumentQueue:
    """SQLite-backed, deduplicating queue of index changes."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the queue.

        Args:
            db_manager: Shared database manager instance.
            clock: Source of the current unix time.
        """
        log.debug("Initializing DocumentQueue")
        self.conn = db_manager.get_connection()
        self._lock = db_manager.lock
        self._clock = clock

    def push(self, action: Action | str, entry_id: str | int, entry_type: str) -> None:
        """Record a pending change, collapsing duplicates.

        Upserts on `(entry_id, entry_type, action)`: an existing row is reset
        to WAITING with a fresh `created_at`.

        Args:
            action: `update` or `delete`.
            entry_id: Primary key of the changed record.
            entry_type: Entity kind of the record.

        Raises:
            ValueError: If `action` is not a known action.
        """
        action = Action(action)
        with self._transaction():
            self.conn.execute(
                f"""
                INSERT INTO {QUEUE_TABLE} (entry_id, entry_type, action, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(entry_id, entry_type, action) DO UPDATE SET
                    status = excluded.status,
                    created_at = excluded.created_at
                """,
                (str(entry_id), entry_type, action.value, int(QueueStatus.WAITING), self._now()),
            )
        log.debug("Queued %s %s:%s", action.value, entry_type, entry_id)

    def claim_batch(self) -> dict[Action, list[QueueEntry]]:
        """Move every WAITING row to RUNNING and return the RUNNING rows.

        The flip and the select run in one write transaction, so no other
        connection can push or claim in between.

        Returns:
            RUNNING entries grouped by action, in insertion order.
        """
        with self._transaction():
            self.conn.execute(
                f"UPDATE {QUEUE_TABLE} SET status = ? WHERE status = ?",
                (int(QueueStatus.RUNNING), int(QueueStatus.WAITING)),
            )
            rows = self.conn.execute(
                f"""
                SELECT entry_id, entry_type, action, status, created_at
                FROM {QUEUE_TABLE}
                WHERE status = ?
                ORDER BY rowid
                """,
                (int(QueueStatus.RUNNING),),
            ).fetchall()

        batch: dict[Action, list[QueueEntry]] = {}
        for entry_id, entry_type, action, status, created_at in rows:
            entry = QueueEntry(
                entry_id=entry_id,
                entry_type=entry_type,
                action=Action(action),
                status=QueueStatus(status),
                created_at=created_at,
            )
            batch.setdefault(entry.action, []).append(entry)

        log.info("Claimed %d queued changes", len(rows))
        return batch

    def flush(self) -> int:
        """Delete every RUNNING row.

        Rows pushed while the batch was in flight are WAITING and survive.

        Returns:
            Number of deleted rows.
        """
        with self._transaction():
            cursor = self.conn.execute(
                f"DELETE FROM {QUEUE_TABLE} WHERE status = ?",
                (int(QueueStatus.RUNNING),),
            )
        log.info("Flushed %d processed changes", cursor.rowcount)
        return cursor.rowcount

    def requeue(self) -> int:
        """Reset RUNNING rows back to WAITING.

        Operator recovery for a consumer that crashed mid-batch. Never call
        this while a consumer is running.

        Returns:
            Number of rows reset.
        """
        with self._transaction():
            cursor = self.conn.execute(
                f"UPDATE {QUEUE_TABLE} SET status = ? WHERE status = ?",
                (int(QueueStatus.WAITING), int(QueueStatus.RUNNING)),
            )
        log.info("Requeued %d stuck changes", cursor.rowcount)
        return cursor.rowcount

    def counts(self) -> dict[QueueStatus, int]:
        """Return the number of rows per status."""
        result = {status: 0 for status in QueueStatus}
        with self._lock:
            rows = self.conn.execute(
                f"SELECT status, COUNT(*) FROM {QUEUE_TABLE} GROUP BY status"
            ).fetchall()
        for status, count in rows:
            result[QueueStatus(status)] = count
        return result

    def entries(self) -> list[QueueEntry]:
        """Return all rows, oldest push first."""
        with self._lock:
            rows = self.conn.execute(
                f"""
                SELECT entry_id, entry_type, action, status, created_at
                FROM {QUEUE_TABLE}
                ORDER BY created_at, rowid
                """
            ).fetchall()
        return [
            QueueEntry(
                entry_id=entry_id,
                entry_type=entry_type,
                action=Action(action),
                status=QueueStatus(status),
                created_at=created_at,
            )
            for entry_id, entry_type, action, status, created_at in rows
        ]

    def _now(self) -> int:
        return int(self._clock())

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        # IMMEDIATE takes the write lock up front so read-then-write cannot interleave.
        with self._lock:
            self.conn.execute("BEGIN IMMEDIATE")
            try:
                yield self.conn
                self.conn.execute("COMMIT")
            except Exception:
                if self.conn.in_transaction:
                    self.conn.execute("ROLLBACK")
                raise
