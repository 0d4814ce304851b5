"""Fluent query builder.

Chainable front end over `StructuredQuery`: scored clauses (`term`,
`phrase`, ...), their non-scoring `filter_*` counterparts, facets, sorting,
paging, geo-distance helpers and result retrieval through an
`IndexGateway`.

    results = (
        QueryBuilder(gateway)
        .searchable_type("Article", locale="en")
        .phrase("dark side", "title", boost=2)
        .filter_range("year", 1990, 2000)
        .sort("year", "desc")
        .take(20)
        .get()
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

from SearchSync.core.clause import Block
from SearchSync.core.expression import Scalar
from SearchSync.core.request import StructuredQuery
from SearchSync.services.hydration import DEFAULT_TYPE_FIELD, EntityFactory, attributes_only

if TYPE_CHECKING:
    from SearchSync.core.models import Page, SearchResult
    from SearchSync.services.searcher import IndexGateway

LOCALE_FIELD = "locale"


def _flatten(values: Iterable[Any]) -> Iterable[Any]:
    for value in values:
        if isinstance(value, (list, tuple, set, frozenset)):
            yield from _flatten(value)
        else:
            yield value


class QueryBuilder:
    """Chainable structured search query.

    Args:
        gateway: Gateway used by `get`, `first`, `paginate` and `execute`.
        factory: Entity factory used to hydrate hits.
        type_field: Reserved field holding the entity kind.
        size: Initial page size.
    """

    def __init__(
        self,
        gateway: IndexGateway | None = None,
        *,
        factory: EntityFactory = attributes_only,
        type_field: str | None = None,
        size: int = 10,
    ) -> None:
        self.gateway = gateway
        self.factory = factory
        self.type_field = type_field or (gateway.type_field if gateway is not None else DEFAULT_TYPE_FIELD)
        self.request = StructuredQuery(size=size)

    # entity scoping

    def searchable_type(self, entry_type: str, locale: str | None = None) -> QueryBuilder:
        """Restrict results to one entity kind and, optionally, one locale."""
        self.request.filter_query.phrase(entry_type, self.type_field)
        if locale:
            self.by_locale(locale)
        return self

    def by_locale(self, locale: str) -> QueryBuilder:
        """Restrict results to documents indexed for `locale`."""
        self.request.filter_query.phrase(locale, LOCALE_FIELD)
        return self

    def filter(self, filters: Mapping[str, Any]) -> QueryBuilder:
        """Add an exact-phrase filter per field; list values add one phrase each.

        Falsy values are skipped.
        """
        for field, value in filters.items():
            values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
            for item in _flatten(values):
                if item:
                    self.request.filter_query.phrase(item, field)
        return self

    # scored clauses

    def term(self, value: Scalar, field: str | None = None, boost: int | None = None) -> QueryBuilder:
        self.request.query.term(value, field, boost)
        return self

    def phrase(self, value: str, field: str | None = None, boost: int | None = None) -> QueryBuilder:
        self.request.query.phrase(value, field, boost)
        return self

    def prefix(self, value: str, field: str | None = None, boost: int | None = None) -> QueryBuilder:
        self.request.query.prefix(value, field, boost)
        return self

    def near(
        self,
        value: str,
        field: str | None = None,
        distance: int = 3,
        boost: int | None = None,
    ) -> QueryBuilder:
        self.request.query.near(value, field, distance, boost)
        return self

    def range(self, field: str, min: Scalar | None = None, max: Scalar | None = None) -> QueryBuilder:  # noqa: A002,A003
        self.request.query.range(field, min, max)
        return self

    def match_all(self) -> QueryBuilder:
        self.request.query.match_all()
        return self

    def q_and(self, block: Block) -> QueryBuilder:
        self.request.query.and_(block)
        return self

    def q_or(self, block: Block) -> QueryBuilder:
        self.request.query.or_(block)
        return self

    def q_not(self, block: Block) -> QueryBuilder:
        self.request.query.not_(block)
        return self

    # filter clauses

    def filter_term(self, value: Scalar, field: str, boost: int | None = None) -> QueryBuilder:
        self.request.filter_query.term(value, field, boost)
        return self

    def filter_phrase(self, value: str, field: str, boost: int | None = None) -> QueryBuilder:
        self.request.filter_query.phrase(value, field, boost)
        return self

    def filter_prefix(self, value: str, field: str, boost: int | None = None) -> QueryBuilder:
        self.request.filter_query.prefix(value, field, boost)
        return self

    def filter_near(self, value: str, field: str, distance: int = 3, boost: int | None = None) -> QueryBuilder:
        self.request.filter_query.near(value, field, distance, boost)
        return self

    def filter_range(self, field: str, min: Scalar | None = None, max: Scalar | None = None) -> QueryBuilder:  # noqa: A002
        self.request.filter_query.range(field, min, max)
        return self

    def filter_and(self, block: Block) -> QueryBuilder:
        self.request.filter_query.and_(block)
        return self

    def filter_or(self, block: Block) -> QueryBuilder:
        self.request.filter_query.or_(block)
        return self

    def filter_not(self, block: Block) -> QueryBuilder:
        self.request.filter_query.not_(block)
        return self

    # request options

    def cursor(self, cursor: str | int | None = "initial") -> QueryBuilder:
        self.request.set_cursor(cursor)
        return self

    def start(self, start: int) -> QueryBuilder:
        self.request.set_start(start)
        return self

    def take(self, size: int) -> QueryBuilder:
        self.request.set_size(size)
        return self

    def sort(self, field: str, direction: str = "asc") -> QueryBuilder:
        self.request.add_sort(field, direction)
        return self

    def expr(self, name: str, expression: str) -> QueryBuilder:
        self.request.add_expression(name, expression)
        return self

    def facet(self, field: str, sort: str = "bucket", size: int = 10) -> QueryBuilder:
        self.request.add_facet(field, sort, size)
        return self

    def facet_buckets(self, field: str, buckets: Sequence[str], method: str = "filter") -> QueryBuilder:
        self.request.add_facet_buckets(field, buckets, method)
        return self

    def options(self, key: str, value: Any) -> QueryBuilder:
        self.request.set_option(key, value)
        return self

    def return_fields(self, fields: str | Sequence[str]) -> QueryBuilder:
        self.request.set_return_fields(fields)
        return self

    def stats(self, field: str) -> QueryBuilder:
        self.request.add_stats(field)
        return self

    def latlon(
        self,
        field: str,
        lat: float,
        lon: float,
        radius: float = 50,
        add_expr: bool = False,
    ) -> QueryBuilder:
        """Filter to a box of `radius` miles around a point (see `StructuredQuery.latlon`)."""
        self.request.latlon(field, lat, lon, radius, add_expr)
        return self

    def add_distance_expr(self, field: str, lat: float, lon: float) -> QueryBuilder:
        self.request.add_distance_expr(field, lat, lon)
        return self

    # execution

    def build(self) -> dict[str, Any]:
        """Return the compiled request mapping."""
        return self.request.compile()

    def execute(self) -> SearchResult:
        """Run the request and return the raw parsed result."""
        return self._require_gateway().execute(self.request)

    def get(self) -> list[Any]:
        """Run the request and return hydrated entities."""
        return self._require_gateway().get(self.request, self.factory)

    def first(self) -> Any | None:
        """Return the first hydrated entity, or None."""
        self.take(1)
        results = self.get()
        return results[0] if results else None

    def paginate(self, per_page: int = 15, page: int = 1) -> Page[Any]:
        """Return one offset-based page of hydrated entities."""
        return self._require_gateway().paginate(self.request, per_page=per_page, page=page, factory=self.factory)

    def _require_gateway(self) -> IndexGateway:
        if self.gateway is None:
            raise RuntimeError("QueryBuilder has no gateway; pass one to run queries")
        return self.gateway

    def __repr__(self) -> str:
        return f"QueryBuilder({self.build()!r})"
