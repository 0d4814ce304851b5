"""Tests for the SearchSync CLI commands."""

from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path
from typing import Any, Mapping, Sequence
from unittest.mock import patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from SearchSync.cli.ui import cli
from SearchSync.core.models import Action, QueueStatus
from SearchSync.services.registry import CallbackRepository, EntityRegistry
from SearchSync.services.searcher import IndexGateway
from SearchSync.storage.db import DatabaseManager
from SearchSync.storage.queue import DocumentQueue

_CONFIG_TEMPLATE = """
log:
  level: INFO
  to_file: false
  dir: log
storage:
  db_path: {db_path}
search:
  endpoint: "{endpoint}"
  endpoint_env: SEARCH_SYNC_TEST_UNSET
  api_version: "2013-01-01"
  timeout: 5
queue:
  batching_size: 2
"""


class _FakeTransport:
    def __init__(self) -> None:
        self.uploads: list[list[Mapping[str, Any]]] = []
        self.requests: list[Mapping[str, Any]] = []

    def search(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        self.requests.append(request)
        return {
            "hits": {
                "found": 2,
                "start": 0,
                "hit": [{"id": "en-1", "fields": {}}, {"id": "en-2", "fields": {}}],
            }
        }

    def upload_documents(self, documents: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
        self.uploads.append(list(documents))
        return {"status": "success"}


_RECORDS = {str(i): {"id": i, "title": f"Article {i}"} for i in range(1, 6)}

_REGISTRY = EntityRegistry({
    "Article": CallbackRepository(
        fetch_many=lambda ids: [_RECORDS[i] for i in ids if i in _RECORDS],
        document=lambda record: {"title": record["title"]},
        all_records=lambda: _RECORDS.values(),
    )
})


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmpdir.name) / "queue.db"
        self.config_path = Path(self._tmpdir.name) / "config.yml"
        self._write_config(endpoint="https://search-test.example.com")
        self.transport = _FakeTransport()
        self.runner = CliRunner()

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _write_config(self, endpoint: str) -> None:
        self.config_path.write_text(
            _CONFIG_TEMPLATE.format(db_path=self.db_path.as_posix(), endpoint=endpoint),
            encoding="utf-8",
        )

    def _push(self, *changes: tuple[Action, str, str]) -> None:
        manager = DatabaseManager(self.db_path)
        try:
            queue = DocumentQueue(manager)
            for action, entry_id, entry_type in changes:
                queue.push(action, entry_id, entry_type)
        finally:
            manager.close()

    def _counts(self) -> dict[QueueStatus, int]:
        manager = DatabaseManager(self.db_path)
        try:
            return DocumentQueue(manager).counts()
        finally:
            manager.close()

    def _invoke(self, *args: str):
        with self.runner.isolated_filesystem(temp_dir=self._tmpdir.name), patch(
            "SearchSync.cli.runner.create_gateway",
            return_value=IndexGateway(self.transport),
        ), patch("SearchSync.cli.runner.create_registry", return_value=_REGISTRY):
            return self.runner.invoke(cli, ["--config", str(self.config_path), *args])

    def test_status(self) -> None:
        self._push((Action.UPDATE, "1", "Article"), (Action.DELETE, "2", "Article"))

        result = self._invoke("status")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("waiting: 2", result.output)
        self.assertIn("running: 0", result.output)

    def test_queue_processes_and_flushes(self) -> None:
        self._push(
            (Action.UPDATE, "1", "Article"),
            (Action.UPDATE, "2", "Article"),
            (Action.UPDATE, "3", "Article"),
            (Action.DELETE, "9", "Article"),
        )

        result = self._invoke("queue")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([len(batch) for batch in self.transport.uploads], [2, 1, 1])
        self.assertEqual(self.transport.uploads[2], [{"type": "delete", "id": "9"}])
        self.assertEqual(self._counts(), {QueueStatus.WAITING: 0, QueueStatus.RUNNING: 0})

    def test_queue_failure_aborts_and_keeps_rows(self) -> None:
        self._push((Action.UPDATE, "1", "Comment"))

        result = self._invoke("queue")

        self.assertNotEqual(result.exit_code, 0)
        self.assertEqual(self._counts(), {QueueStatus.WAITING: 0, QueueStatus.RUNNING: 1})

        result = self._invoke("requeue")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self._counts(), {QueueStatus.WAITING: 1, QueueStatus.RUNNING: 0})

    def test_index_uploads_every_record_in_chunks(self) -> None:
        result = self._invoke("index", "Article")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([len(batch) for batch in self.transport.uploads], [2, 2, 1])
        self.assertEqual(self.transport.uploads[0][0]["fields"]["searchable_type"], "Article")

    def test_flush_removes_every_record(self) -> None:
        result = self._invoke("flush", "Article")

        self.assertEqual(result.exit_code, 0, result.output)
        ids = [doc["id"] for batch in self.transport.uploads for doc in batch]
        self.assertEqual(ids, ["1", "2", "3", "4", "5"])
        self.assertTrue(all(doc["type"] == "delete" for batch in self.transport.uploads for doc in batch))

    def test_index_unknown_kind_fails(self) -> None:
        result = self._invoke("index", "Ghost")

        self.assertNotEqual(result.exit_code, 0)
        self.assertEqual(self.transport.uploads, [])

    def test_query_prints_hit_ids(self) -> None:
        result = self._invoke("query", "star wars", "--type", "Article", "--size", "2")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("en-1", result.output)
        self.assertIn("en-2", result.output)
        request = self.transport.requests[0]
        self.assertEqual(request["query"], "(and (phrase 'star wars'))")
        self.assertEqual(request["filterQuery"], "(and (phrase field='searchable_type' 'Article'))")
        self.assertEqual(request["size"], 2)

    def test_query_without_endpoint_fails(self) -> None:
        self._write_config(endpoint="")

        with self.runner.isolated_filesystem(temp_dir=self._tmpdir.name):
            result = self.runner.invoke(cli, ["--config", str(self.config_path), "query", "x"])

        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
