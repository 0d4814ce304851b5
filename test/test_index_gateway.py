"""Tests for document payloads, search execution and hit hydration."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from typing import Any, Mapping, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from SearchSync.core.models import SearchHit, SearchResult
from SearchSync.core.request import StructuredQuery
from SearchSync.errors import UnknownEntityTypeError
from SearchSync.services.hydration import group_hits, hydrate_hit, result_type
from SearchSync.services.registry import CallbackRepository, EntityRegistry, localized_id
from SearchSync.services.searcher import IndexGateway


class _FakeTransport:
    def __init__(self, response: Mapping[str, Any] | None = None) -> None:
        self.response = response or {"hits": {"found": 0, "start": 0, "hit": []}}
        self.requests: list[Mapping[str, Any]] = []
        self.uploads: list[list[Mapping[str, Any]]] = []

    def search(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        self.requests.append(request)
        return self.response

    def upload_documents(self, documents: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
        self.uploads.append(list(documents))
        return {"status": "success", "adds": len(documents), "deletes": 0}


_ARTICLES = CallbackRepository(
    fetch_many=lambda ids: [],
    document=lambda record: {"title": record["title"], "summary": record.get("summary")},
    locale=lambda record: record.get("locale"),
)


def _response(*hits: dict[str, Any], found: int | None = None) -> dict[str, Any]:
    return {"hits": {"found": len(hits) if found is None else found, "start": 0, "hit": list(hits)}}


class TestDocumentPayloads(unittest.TestCase):
    def test_update_builds_add_operations(self) -> None:
        transport = _FakeTransport()
        gateway = IndexGateway(transport)

        gateway.update("Article", [{"id": 1, "title": "Hello", "summary": None}], _ARTICLES)

        self.assertEqual(
            transport.uploads,
            [[{
                "type": "add",
                "id": "1",
                "fields": {"title": "Hello", "summary": "", "searchable_type": "Article"},
            }]],
        )

    def test_localized_records_get_prefixed_ids(self) -> None:
        transport = _FakeTransport()

        IndexGateway(transport).update("Article", [{"id": 7, "title": "Hallo", "locale": "de"}], _ARTICLES)

        self.assertEqual(transport.uploads[0][0]["id"], "de-7")

    def test_custom_type_field(self) -> None:
        transport = _FakeTransport()

        IndexGateway(transport, type_field="kind").update("Article", [{"id": 1, "title": "x"}], _ARTICLES)

        self.assertEqual(transport.uploads[0][0]["fields"]["kind"], "Article")

    def test_empty_documents_are_skipped(self) -> None:
        transport = _FakeTransport()
        repository = CallbackRepository(fetch_many=lambda ids: [], document=lambda record: {})

        result = IndexGateway(transport).update("Article", [{"id": 1}], repository)

        self.assertIsNone(result)
        self.assertEqual(transport.uploads, [])

    def test_delete_ids(self) -> None:
        transport = _FakeTransport()

        IndexGateway(transport).delete_ids("Article", ["1", 2])

        self.assertEqual(transport.uploads, [[{"type": "delete", "id": "1"}, {"type": "delete", "id": "2"}]])

    def test_remove_uses_searchable_ids(self) -> None:
        transport = _FakeTransport()

        IndexGateway(transport).remove("Article", [{"id": 3, "title": "t", "locale": "fr"}], _ARTICLES)

        self.assertEqual(transport.uploads, [[{"type": "delete", "id": "fr-3"}]])

    def test_empty_delete_sends_nothing(self) -> None:
        transport = _FakeTransport()

        self.assertIsNone(IndexGateway(transport).delete_ids("Article", []))
        self.assertEqual(transport.uploads, [])


class TestSearchExecution(unittest.TestCase):
    def test_execute_parses_envelope(self) -> None:
        transport = _FakeTransport({
            "hits": {
                "found": 12,
                "start": 10,
                "cursor": "next",
                "hit": [{"id": "1", "fields": {"title": ["A"]}, "exprs": {"distance": "3.2"}}],
            },
            "facets": {"genre": {"buckets": [{"value": "Drama", "count": 3}]}},
        })

        result = IndexGateway(transport).execute(StructuredQuery())

        self.assertEqual(result.found, 12)
        self.assertEqual(result.start, 10)
        self.assertEqual(result.cursor, "next")
        self.assertEqual(result.hits[0].flatten(), {"title": "A"})
        self.assertEqual(result.hits[0].exprs["distance"], "3.2")
        self.assertIn("genre", result.facets)
        self.assertEqual(transport.requests[0]["queryParser"], "structured")

    def test_get_hydrates_and_drops_untyped_hits(self) -> None:
        transport = _FakeTransport(_response(
            {"id": "1", "fields": {"title": ["A"], "searchable_type": ["app.models.Article"]}},
            {"id": "2", "fields": {"title": ["B"]}},
        ))

        entities = IndexGateway(transport).get(StructuredQuery())

        self.assertEqual(entities, [{"title": "A", "result_type": "article"}])

    def test_get_uses_factory(self) -> None:
        transport = _FakeTransport(_response(
            {"id": "1", "fields": {"title": ["A"], "searchable_type": ["Article"]}},
        ))

        entities = IndexGateway(transport).get(StructuredQuery(), lambda kind, attrs: (kind, attrs["title"]))

        self.assertEqual(entities, [("Article", "A")])

    def test_paginate_sets_offset(self) -> None:
        transport = _FakeTransport(_response(
            {"id": "1", "fields": {"searchable_type": ["Article"]}},
            found=31,
        ))
        query = StructuredQuery()

        page = IndexGateway(transport).paginate(query, per_page=15, page=3)

        self.assertEqual(transport.requests[0]["start"], 30)
        self.assertEqual(transport.requests[0]["size"], 15)
        self.assertEqual(page.total, 31)
        self.assertEqual(page.last_page, 3)
        self.assertFalse(page.has_more)
        self.assertEqual(len(page.items), 1)

    def test_get_grouped(self) -> None:
        transport = _FakeTransport(_response(
            {"id": "1", "fields": {"searchable_type": ["Article"]}},
            {"id": "2", "fields": {"searchable_type": ["Comment"]}},
            {"id": "3", "fields": {"searchable_type": ["Article"]}},
        ))

        groups = IndexGateway(transport).get_grouped(StructuredQuery())

        self.assertEqual(list(groups), ["article", "comment"])
        self.assertEqual(len(groups["article"]), 2)


class TestHydration(unittest.TestCase):
    def test_result_type(self) -> None:
        for kind in ("Article", "app.models.Article", "App\\Models\\Article", "blog/Article"):
            with self.subTest(kind=kind):
                self.assertEqual(result_type(kind), "article")

    def test_hydrate_hit_pops_type_field(self) -> None:
        hit = SearchHit(id="1", fields={"title": ["A", "B"], "kind": ["Article"]})

        entity = hydrate_hit(hit, type_field="kind")

        self.assertEqual(entity, {"title": "A", "result_type": "article"})

    def test_group_hits_skips_untyped(self) -> None:
        hits = [SearchHit(id="1", fields={}), SearchHit(id="2", fields={"searchable_type": ["Tag"]})]

        self.assertEqual(group_hits(hits), {"tag": [{"result_type": "tag"}]})

    def test_empty_response(self) -> None:
        self.assertEqual(SearchResult.from_response({}).found, 0)


class TestRegistry(unittest.TestCase):
    def test_unknown_kind(self) -> None:
        with self.assertRaises(UnknownEntityTypeError) as ctx:
            EntityRegistry().get("Ghost")
        self.assertEqual(ctx.exception.entry_type, "Ghost")

    def test_register_and_lookup(self) -> None:
        registry = EntityRegistry()
        registry.register("Article", _ARTICLES)

        self.assertIn("Article", registry)
        self.assertIs(registry.get("Article"), _ARTICLES)
        self.assertEqual(registry.kinds(), ["Article"])

    def test_hydrator_dispatches_to_repository(self) -> None:
        repository = CallbackRepository(
            fetch_many=lambda ids: [],
            document=lambda record: record,
            hydrate=lambda attrs: ("article", attrs["title"]),
        )
        hydrate = EntityRegistry({"Article": repository}).hydrator()

        self.assertEqual(hydrate("Article", {"title": "A"}), ("article", "A"))
        self.assertEqual(hydrate("Comment", {"body": "x"}), {"body": "x"})

    def test_localized_id(self) -> None:
        self.assertEqual(localized_id(5, "en"), "en-5")
        self.assertEqual(localized_id(5, None), "5")

    def test_iter_chunks(self) -> None:
        repository = CallbackRepository(
            fetch_many=lambda ids: [],
            document=lambda record: record,
            all_records=lambda: iter(range(5)),
        )

        self.assertEqual(list(repository.iter_chunks(2)), [[0, 1], [2, 3], [4]])

    def test_from_import_paths(self) -> None:
        registry = EntityRegistry.from_import_paths({"Article": f"{__name__}:_ARTICLES"})

        self.assertIs(registry.get("Article"), _ARTICLES)


if __name__ == "__main__":
    unittest.main()
