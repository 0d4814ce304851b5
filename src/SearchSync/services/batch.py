"""Queue batch processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Sequence, TypeVar

from SearchSync.core.models import Action, QueueEntry
from SearchSync.utils.log import log

if TYPE_CHECKING:
    from SearchSync.services.registry import EntityRegistry
    from SearchSync.services.searcher import IndexWriter
    from SearchSync.storage.queue import DocumentQueue

T = TypeVar("T")

DEFAULT_BATCHING_SIZE = 100


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for offset in range(0, len(items), size):
        yield items[offset:offset + size]


def group_by_type(entries: Sequence[QueueEntry]) -> dict[str, list[QueueEntry]]:
    """Group entries by entity kind, keeping first-seen order."""
    groups: dict[str, list[QueueEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.entry_type, []).append(entry)
    return groups


@dataclass(slots=True)
class BatchReport:
    """Outcome of one processed batch."""

    claimed: int = 0
    updated: int = 0
    deleted: int = 0
    flushed: int = 0
    groups: list[tuple[Action, str, int]] = field(default_factory=list)


@dataclass(slots=True)
class BatchProcessor:
    """Drain the change queue into the index.

    One run claims every waiting change, pushes updates and deletes grouped
    by action and entity kind, then flushes the claimed rows. If any group
    fails the error propagates and the batch is not flushed: its rows stay
    RUNNING until an operator requeues them.

    Attributes:
        queue: Change queue to drain.
        writer: Index write side.
        registry: Repositories used to load records for updates.
        batching_size: Records per fetch and per upload.
    """

    queue: DocumentQueue
    writer: IndexWriter
    registry: EntityRegistry
    batching_size: int = DEFAULT_BATCHING_SIZE

    def run(self) -> BatchReport:
        """Process one batch.

        Returns:
            Counts of claimed, uploaded, deleted and flushed entries.

        Raises:
            UnknownEntityTypeError: If an update references an unregistered kind.
            SearchError: If the index rejects an upload.
        """
        batch = self.queue.claim_batch()
        report = BatchReport(claimed=sum(len(entries) for entries in batch.values()))

        for action in (Action.UPDATE, Action.DELETE):
            for entry_type, entries in group_by_type(batch.get(action, [])).items():
                ids = [entry.entry_id for entry in entries]
                log.info("Processing %s x%d for %s", action.value, len(ids), entry_type)
                if action is Action.UPDATE:
                    report.updated += self._update(entry_type, ids)
                else:
                    report.deleted += self._delete(entry_type, ids)
                report.groups.append((action, entry_type, len(ids)))

        report.flushed = self.queue.flush()
        return report

    def _update(self, entry_type: str, ids: list[str]) -> int:
        repository = self.registry.get(entry_type)
        sent = 0
        for chunk in chunked(ids, self.batching_size):
            entities = repository.fetch(chunk)
            if not entities:
                log.debug("No live %s records among %d ids", entry_type, len(chunk))
                continue
            self.writer.update(entry_type, entities, repository)
            sent += len(entities)
        return sent

    def _delete(self, entry_type: str, ids: list[str]) -> int:
        for chunk in chunked(ids, self.batching_size):
            self.writer.delete_ids(entry_type, chunk)
        return len(ids)
