"""Entity repositories and the registry mapping entity kinds to them.

The index never talks to the application's data layer directly. Each entity
kind is served by a repository that can load records by primary key, walk
every record in chunks, and map a record to its search document.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Mapping, Protocol, Sequence

from SearchSync.errors import UnknownEntityTypeError
from SearchSync.utils.log import log


class EntityRepository(Protocol):
    """Data-access collaborator for one entity kind."""

    def fetch(self, ids: Sequence[str]) -> Sequence[Any]:
        """Load the records that still exist among `ids`."""
        raise NotImplementedError

    def iter_chunks(self, size: int) -> Iterable[Sequence[Any]]:
        """Yield every record of this kind, `size` at a time."""
        raise NotImplementedError

    def searchable_id(self, entity: Any) -> str:
        """Return the document id of a record."""
        raise NotImplementedError

    def search_document(self, entity: Any) -> Mapping[str, Any]:
        """Return the indexed field values of a record."""
        raise NotImplementedError


def localized_id(key: Any, locale: str | None) -> str:
    """Return the document id of a record, prefixed by its locale when localized."""
    return f"{locale}-{key}" if locale else str(key)


@dataclass(slots=True)
class CallbackRepository:
    """Repository assembled from plain callables.

    Attributes:
        fetch_many: Load records by primary keys.
        document: Map a record to its field values.
        key: Return a record's primary key.
        all_records: Return every record (used for full reindex/flush).
        locale: Return a record's locale; makes document ids locale-prefixed.
        hydrate: Rebuild an entity from a flattened search hit.
    """

    fetch_many: Callable[[Sequence[str]], Sequence[Any]]
    document: Callable[[Any], Mapping[str, Any]]
    key: Callable[[Any], Any] = lambda entity: entity["id"]
    all_records: Callable[[], Iterable[Any]] | None = None
    locale: Callable[[Any], str | None] | None = None
    hydrate: Callable[[Mapping[str, Any]], Any] | None = None

    def fetch(self, ids: Sequence[str]) -> Sequence[Any]:
        return self.fetch_many(ids)

    def iter_chunks(self, size: int) -> Iterator[Sequence[Any]]:
        if self.all_records is None:
            return
        chunk: list[Any] = []
        for record in self.all_records():
            chunk.append(record)
            if len(chunk) >= size:
                yield chunk
                chunk = []
        if chunk:
            yield chunk

    def searchable_id(self, entity: Any) -> str:
        locale = self.locale(entity) if self.locale else None
        return localized_id(self.key(entity), locale)

    def search_document(self, entity: Any) -> Mapping[str, Any]:
        return self.document(entity)


class EntityRegistry:
    """Entity kind -> repository lookup."""

    def __init__(self, repositories: Mapping[str, EntityRepository] | None = None) -> None:
        self._repositories: dict[str, EntityRepository] = dict(repositories or {})

    def register(self, entry_type: str, repository: EntityRepository) -> None:
        self._repositories[entry_type] = repository

    def get(self, entry_type: str) -> EntityRepository:
        """Return the repository for a kind.

        Raises:
            UnknownEntityTypeError: If nothing is registered for `entry_type`.
        """
        try:
            return self._repositories[entry_type]
        except KeyError:
            raise UnknownEntityTypeError(entry_type) from None

    def __contains__(self, entry_type: object) -> bool:
        return entry_type in self._repositories

    def kinds(self) -> list[str]:
        return sorted(self._repositories)

    def hydrator(self) -> Callable[[str, dict[str, Any]], Any]:
        """Return a hydration callback dispatching on the entity kind.

        Repositories with a `hydrate` callable rebuild their own entities;
        other kinds hydrate to the flattened attribute dict.
        """

        def _hydrate(entry_type: str, attributes: dict[str, Any]) -> Any:
            repository = self._repositories.get(entry_type)
            hydrate = getattr(repository, "hydrate", None)
            if callable(hydrate):
                return hydrate(attributes)
            return attributes

        return _hydrate

    @classmethod
    def from_import_paths(cls, paths: Mapping[str, str]) -> EntityRegistry:
        """Build a registry from ``"package.module:attribute"`` paths.

        The attribute may be a repository or a zero-argument factory
        returning one.

        Raises:
            ImportError: If a module cannot be imported.
            AttributeError: If the attribute does not exist.
        """
        registry = cls()
        for entry_type, path in paths.items():
            module_name, _, attribute = path.partition(":")
            target = getattr(importlib.import_module(module_name), attribute)
            repository = target if _is_repository(target) else target()
            registry.register(entry_type, repository)
            log.debug("Registered repository for %s: %s", entry_type, path)
        return registry


_REPOSITORY_METHODS = ("fetch", "iter_chunks", "searchable_id", "search_document")


def _is_repository(obj: Any) -> bool:
    if isinstance(obj, type):
        return False
    return all(callable(getattr(obj, name, None)) for name in _REPOSITORY_METHODS)
