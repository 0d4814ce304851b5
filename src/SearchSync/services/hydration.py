"""Search hit hydration.

Turns hits of a search response back into application entities. Each hit's
multi-valued field map is flattened to its first values; the reserved type
field names the entity kind and is handed, with the remaining attributes, to
a caller-supplied factory. Hits without the type field are dropped.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable

from SearchSync.core.models import SearchHit

DEFAULT_TYPE_FIELD = "searchable_type"
RESULT_TYPE_FIELD = "result_type"

EntityFactory = Callable[[str, dict[str, Any]], Any]

_KIND_SEPARATORS = re.compile(r"[\\/.:]")


def result_type(entry_type: str) -> str:
    """Return the short, lower-cased name of an entity kind.

    `app.models.Article`, `App\\Models\\Article` and `Article` all give
    `article`.
    """
    return _KIND_SEPARATORS.split(entry_type)[-1].lower()


def attributes_only(entry_type: str, attributes: dict[str, Any]) -> dict[str, Any]:
    """Default factory: keep the flattened attributes."""
    del entry_type
    return attributes


def hydrate_hit(
    hit: SearchHit,
    factory: EntityFactory = attributes_only,
    *,
    type_field: str = DEFAULT_TYPE_FIELD,
) -> Any | None:
    """Rebuild one entity from a hit.

    Returns:
        The factory's result, or None when the hit carries no type field.
    """
    attributes = hit.flatten()
    entry_type = attributes.pop(type_field, None)
    if not entry_type:
        return None
    attributes[RESULT_TYPE_FIELD] = result_type(str(entry_type))
    return factory(str(entry_type), attributes)


def hydrate_hits(
    hits: Iterable[SearchHit],
    factory: EntityFactory = attributes_only,
    *,
    type_field: str = DEFAULT_TYPE_FIELD,
) -> list[Any]:
    """Rebuild entities from hits, dropping untyped ones."""
    entities: list[Any] = []
    for hit in hits:
        entity = hydrate_hit(hit, factory, type_field=type_field)
        if entity is not None:
            entities.append(entity)
    return entities


def group_hits(
    hits: Iterable[SearchHit],
    factory: EntityFactory = attributes_only,
    *,
    type_field: str = DEFAULT_TYPE_FIELD,
) -> dict[str, list[Any]]:
    """Hydrate hits and group the entities by result type, in hit order."""
    groups: dict[str, list[Any]] = {}
    for hit in hits:
        kind = hit.flatten().get(type_field)
        if not kind:
            continue
        entity = hydrate_hit(hit, factory, type_field=type_field)
        if entity is not None:
            groups.setdefault(result_type(str(kind)), []).append(entity)
    return groups
