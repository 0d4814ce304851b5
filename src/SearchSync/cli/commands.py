"""Command implementations for SearchSync CLI.

Encapsulates the operator workflows (queue processing, reindexing, ad-hoc
queries), separated from CLI parameter handling and component wiring.
"""

from __future__ import annotations

from dataclasses import dataclass

import click

from SearchSync.core.models import QueueStatus, SearchResult
from SearchSync.query import QueryBuilder
from SearchSync.services.batch import BatchProcessor, BatchReport
from SearchSync.services.registry import EntityRegistry
from SearchSync.services.searcher import IndexGateway
from SearchSync.storage.queue import DocumentQueue
from SearchSync.utils.log import log


@dataclass(slots=True)
class ProcessQueueCommand:
    """Drain one batch of the change queue into the index."""

    processor: BatchProcessor

    def execute(self) -> BatchReport:
        report = self.processor.run()
        if not report.claimed:
            log.info("Queue is empty")
            return report
        for action, entry_type, count in report.groups:
            log.info("%s %s: %d", action.value, entry_type, count)
        log.info(
            "Processed %d queued change(s): %d uploaded, %d deleted, %d flushed",
            report.claimed,
            report.updated,
            report.deleted,
            report.flushed,
        )
        return report


@dataclass(slots=True)
class QueueStatusCommand:
    """Report how many entries are waiting and running."""

    queue: DocumentQueue

    def execute(self) -> dict[QueueStatus, int]:
        counts = self.queue.counts()
        for status, count in counts.items():
            click.echo(f"{status.name.lower()}: {count}")
        if counts[QueueStatus.RUNNING]:
            log.warning(
                "%d entries are running; if no batch is in progress, run `requeue`",
                counts[QueueStatus.RUNNING],
            )
        return counts


@dataclass(slots=True)
class RequeueCommand:
    """Put running entries back to waiting after a failed batch."""

    queue: DocumentQueue

    def execute(self) -> int:
        reset = self.queue.requeue()
        log.info("Requeued %d running entr%s", reset, "y" if reset == 1 else "ies")
        return reset


@dataclass(slots=True)
class ReindexCommand:
    """Upload (or remove) every record of one entity kind.

    Records are walked through the repository in chunks of
    `batching_size`; each chunk is one upload request.
    """

    gateway: IndexGateway
    registry: EntityRegistry
    entry_type: str
    batching_size: int
    remove: bool = False

    def execute(self) -> int:
        repository = self.registry.get(self.entry_type)
        verb = "Removed" if self.remove else "Indexed"
        total = 0
        for chunk in repository.iter_chunks(self.batching_size):
            if self.remove:
                self.gateway.remove(self.entry_type, chunk, repository)
            else:
                self.gateway.update(self.entry_type, chunk, repository)
            total += len(chunk)
            log.info("%s %d %s record(s)", verb, total, self.entry_type)
        if not total:
            log.info("No %s records found", self.entry_type)
        return total


@dataclass(slots=True)
class QueryCommand:
    """Run a phrase query and print the ids of the hits."""

    gateway: IndexGateway
    text: str
    entry_type: str | None = None
    field: str | None = None
    size: int | None = None

    def execute(self) -> SearchResult:
        builder = QueryBuilder(self.gateway).phrase(self.text, self.field)
        if self.entry_type:
            builder.searchable_type(self.entry_type)
        if self.size:
            builder.take(self.size)
        log.debug("Query: %s", builder.build())

        result = builder.execute()
        log.info("Found %d hit(s), showing %d", result.found, len(result.hits))
        for hit in result.hits:
            click.echo(hit.id)
        return result
