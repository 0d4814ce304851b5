"""Explicit change notifications feeding the document queue.

The data-mutation path of the application calls a `ChangeRecorder` after a
record is saved, deleted or restored; nothing is wired to ORM events.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from SearchSync.core.models import Action


class Enqueue(Protocol):
    """Anything that accepts index change intents."""

    def push(self, action: Action | str, entry_id: str | int, entry_type: str) -> None:
        """Record that a record needs re-indexing or removal."""
        raise NotImplementedError


@dataclass(slots=True)
class ChangeRecorder:
    """Translate record lifecycle events into queued index changes.

    For localized kinds, pass the document id (``"{locale}-{key}"``) to
    `deleted`, since deletes are applied by id without loading the record.
    """

    queue: Enqueue

    def saved(self, entry_type: str, entry_id: str | int) -> None:
        self.queue.push(Action.UPDATE, entry_id, entry_type)

    def deleted(self, entry_type: str, entry_id: str | int) -> None:
        self.queue.push(Action.DELETE, entry_id, entry_type)

    def restored(self, entry_type: str, entry_id: str | int) -> None:
        self.saved(entry_type, entry_id)
