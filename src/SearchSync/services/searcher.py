"""Index gateway: document uploads and search execution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, Sequence

from SearchSync.core.models import IndexDocument, Page, SearchResult
from SearchSync.services.hydration import (
    DEFAULT_TYPE_FIELD,
    EntityFactory,
    attributes_only,
    group_hits,
    hydrate_hits,
)
from SearchSync.utils.log import log

if TYPE_CHECKING:
    from SearchSync.core.request import StructuredQuery
    from SearchSync.services.registry import EntityRepository


class SearchTransport(Protocol):
    """Protocol for the remote search domain."""

    def search(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        """Execute a compiled request and return the response envelope."""
        raise NotImplementedError

    def upload_documents(self, documents: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
        """Upload add/delete document operations."""
        raise NotImplementedError


class IndexWriter(Protocol):
    """Write side of the index, as used by the batch processor."""

    def update(self, entry_type: str, entities: Sequence[Any], repository: EntityRepository) -> Any:
        raise NotImplementedError

    def delete_ids(self, entry_type: str, ids: Sequence[str]) -> Any:
        raise NotImplementedError


def _blank_nulls(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {name: "" if value is None else value for name, value in fields.items()}


@dataclass(slots=True)
class IndexGateway:
    """Application-facing access to one search domain.

    Attributes:
        transport: Search/upload transport.
        type_field: Reserved document field holding the entity kind.
    """

    transport: SearchTransport
    type_field: str = DEFAULT_TYPE_FIELD

    def build_documents(
        self,
        entry_type: str,
        entities: Iterable[Any],
        repository: EntityRepository,
    ) -> list[IndexDocument]:
        """Build `add` operations for entities.

        `None` values are sent as empty strings and the type field is set to
        `entry_type`. Entities with an empty document are skipped.
        """
        documents: list[IndexDocument] = []
        for entity in entities:
            fields = repository.search_document(entity)
            if not fields:
                continue
            payload = _blank_nulls(fields)
            payload[self.type_field] = entry_type
            documents.append(IndexDocument(type="add", id=repository.searchable_id(entity), fields=payload))
        return documents

    def update(
        self,
        entry_type: str,
        entities: Sequence[Any],
        repository: EntityRepository,
    ) -> Mapping[str, Any] | None:
        """Add or replace entities in the index.

        Returns:
            Upload envelope, or None when there was nothing to send.
        """
        return self._upload(self.build_documents(entry_type, entities, repository), entry_type)

    def remove(
        self,
        entry_type: str,
        entities: Sequence[Any],
        repository: EntityRepository,
    ) -> Mapping[str, Any] | None:
        """Remove entities from the index by their document ids."""
        return self.delete_ids(entry_type, [repository.searchable_id(entity) for entity in entities])

    def delete_ids(self, entry_type: str, ids: Sequence[str]) -> Mapping[str, Any] | None:
        """Remove documents by id; the records themselves need not exist."""
        documents = [IndexDocument(type="delete", id=str(doc_id)) for doc_id in ids]
        return self._upload(documents, entry_type)

    def execute(self, query: StructuredQuery) -> SearchResult:
        """Run a request and parse the response envelope.

        Raises:
            SearchError: If the backend rejects the request or is unreachable.
        """
        request = query.compile()
        log.debug("Search request: %s", request)
        return SearchResult.from_response(self.transport.search(request))

    def get(self, query: StructuredQuery, factory: EntityFactory = attributes_only) -> list[Any]:
        """Run a request and hydrate the hits."""
        return hydrate_hits(self.execute(query).hits, factory, type_field=self.type_field)

    def get_grouped(self, query: StructuredQuery, factory: EntityFactory = attributes_only) -> dict[str, list[Any]]:
        """Run a request and hydrate the hits grouped by result type."""
        return group_hits(self.execute(query).hits, factory, type_field=self.type_field)

    def paginate(
        self,
        query: StructuredQuery,
        *,
        per_page: int = 15,
        page: int = 1,
        factory: EntityFactory = attributes_only,
    ) -> Page[Any]:
        """Fetch one offset-based page of hydrated results.

        Args:
            query: Request to page through; its size and start are overwritten.
            per_page: Hits per page.
            page: 1-based page number.
            factory: Entity factory for hydration.

        Returns:
            Page with hydrated items and the total hit count.
        """
        page = max(1, page)
        query.set_size(per_page).set_start((page - 1) * per_page)
        result = self.execute(query)
        return Page(
            items=hydrate_hits(result.hits, factory, type_field=self.type_field),
            total=result.found,
            page=page,
            per_page=per_page,
        )

    def _upload(self, documents: list[IndexDocument], entry_type: str) -> Mapping[str, Any] | None:
        if not documents:
            return None
        log.debug("Uploading %d %s document operation(s) for %s", len(documents), documents[0].type, entry_type)
        return self.transport.upload_documents([doc.to_dict() for doc in documents])
