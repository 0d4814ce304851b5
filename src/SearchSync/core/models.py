from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Generic, Mapping, Sequence, TypeVar

T = TypeVar("T")


class Action(str, Enum):
    """What a queued change asks the index to do."""

    UPDATE = "update"
    DELETE = "delete"


class QueueStatus(IntEnum):
    """Persisted queue row state."""

    WAITING = 0
    RUNNING = 1


@dataclass(frozen=True, slots=True)
class QueueEntry:
    """One pending index change.

    Rows are keyed by `(entry_id, entry_type, action)`; pushing the same key
    again collapses into a single row.

    Attributes:
        entry_id: Primary key of the record, as text.
        entry_type: Entity kind the record belongs to.
        action: Requested index action.
        status: Current queue state.
        created_at: Unix timestamp of the most recent push.
    """

    entry_id: str
    entry_type: str
    action: Action
    status: QueueStatus = QueueStatus.WAITING
    created_at: int = 0


@dataclass(frozen=True, slots=True)
class IndexDocument:
    """A document operation for the index upload endpoint.

    Attributes:
        type: `add` or `delete`.
        id: Document id in the index.
        fields: Field values (only for `add`).
    """

    type: str
    id: str
    fields: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "id": self.id}
        if self.fields is not None:
            payload["fields"] = dict(self.fields)
        return payload


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A single hit from the search response.

    Attributes:
        id: Document id.
        fields: Multi-valued field map as returned by the backend.
        exprs: Values of requested expressions, if any.
    """

    id: str
    fields: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    exprs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "exprs", MappingProxyType(dict(self.exprs)))

    def flatten(self) -> dict[str, Any]:
        """Return the field map with the first value of each field."""
        flat: dict[str, Any] = {}
        for name, values in self.fields.items():
            if isinstance(values, (list, tuple)):
                flat[name] = values[0] if values else None
            else:
                flat[name] = values
        return flat


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Parsed search response envelope.

    Attributes:
        found: Total number of matching documents.
        start: Offset of the first returned hit.
        hits: Returned hits.
        cursor: Cursor for the next page when cursor paging is used.
        facets: Facet buckets keyed by field.
        stats: Statistics keyed by field.
    """

    found: int
    start: int = 0
    hits: tuple[SearchHit, ...] = ()
    cursor: str | None = None
    facets: Mapping[str, Any] = field(default_factory=dict)
    stats: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> SearchResult:
        """Build a result from the backend's `{"hits": {...}}` envelope."""
        hits_obj = payload.get("hits") or {}
        raw_hits = hits_obj.get("hit") or []
        hits = tuple(
            SearchHit(
                id=str(item.get("id", "")),
                fields=item.get("fields") or {},
                exprs=item.get("exprs") or {},
            )
            for item in raw_hits
            if isinstance(item, Mapping)
        )
        return cls(
            found=int(hits_obj.get("found", 0) or 0),
            start=int(hits_obj.get("start", 0) or 0),
            hits=hits,
            cursor=hits_obj.get("cursor"),
            facets=payload.get("facets") or {},
            stats=payload.get("stats") or {},
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of hydrated search results."""

    items: Sequence[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page > 0 else 1

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page
