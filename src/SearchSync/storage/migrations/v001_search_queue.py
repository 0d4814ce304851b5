"""Migration v001: document change queue table."""

from __future__ import annotations

from SearchSync.storage.migration import Migration

MIGRATION = Migration(
    version=1,
    description="Create search_queue table",
    sql="""
        CREATE TABLE IF NOT EXISTS search_queue (
          entry_id TEXT NOT NULL,
          entry_type TEXT NOT NULL,
          action VARCHAR(10) NOT NULL CHECK (length(action) <= 10),
          status INTEGER NOT NULL DEFAULT 0 CHECK (status IN (0, 1)),
          created_at INTEGER NOT NULL CHECK (created_at >= 0),
          PRIMARY KEY (entry_id, entry_type, action)
        );

        CREATE INDEX IF NOT EXISTS idx_search_queue_status
          ON search_queue(status);
    """,
)
