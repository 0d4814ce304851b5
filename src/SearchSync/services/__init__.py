"""Service layer for SearchSync.

Wires the index gateway, entity registry and batch processor together and
exposes factory functions used by the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from SearchSync.services.batch import BatchProcessor, BatchReport
from SearchSync.services.changes import ChangeRecorder, Enqueue
from SearchSync.services.registry import CallbackRepository, EntityRegistry, EntityRepository
from SearchSync.services.searcher import IndexGateway, IndexWriter, SearchTransport

if TYPE_CHECKING:
    from SearchSync.config import AppConfig
    from SearchSync.storage.queue import DocumentQueue


def create_gateway(config: AppConfig) -> IndexGateway:
    """Create an index gateway talking HTTP to the configured domain.

    Raises:
        ValueError: If no search endpoint is configured.
    """
    from SearchSync.client.http import HttpSearchTransport

    if not config.search.endpoint:
        raise ValueError(
            f"search.endpoint is not set. Set it in the config or the "
            f"{config.search.endpoint_env} environment variable."
        )
    transport = HttpSearchTransport(
        config.search.endpoint,
        document_endpoint=config.search.document_endpoint or None,
        api_version=config.search.api_version,
        timeout=config.search.timeout,
    )
    return IndexGateway(transport=transport, type_field=config.search.type_field)


def create_registry(config: AppConfig) -> EntityRegistry:
    """Create the entity registry from ``entities`` import paths."""
    return EntityRegistry.from_import_paths(config.entities.repositories)


def create_batch_processor(
    config: AppConfig,
    queue: DocumentQueue,
    gateway: IndexWriter,
    registry: EntityRegistry,
) -> BatchProcessor:
    """Create a batch processor with the configured batching size."""
    return BatchProcessor(
        queue=queue,
        writer=gateway,
        registry=registry,
        batching_size=config.queue.batching_size,
    )


__all__ = [
    "BatchProcessor",
    "BatchReport",
    "CallbackRepository",
    "ChangeRecorder",
    "Enqueue",
    "EntityRegistry",
    "EntityRepository",
    "IndexGateway",
    "IndexWriter",
    "SearchTransport",
    "create_batch_processor",
    "create_gateway",
    "create_registry",
]
