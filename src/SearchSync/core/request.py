"""Structured search request model.

`StructuredQuery` holds the full shape of one search request (query and
filter clauses, facets, expressions, sort, pagination, returned fields,
statistics and parser options) and compiles it into the ordered mapping
sent to the search backend.
"""

from __future__ import annotations

import json
import math
from typing import Any, Sequence

from SearchSync.core.clause import ClauseBuilder

INITIAL_CURSOR = "initial"
QUERY_PARSER = "structured"
DEFAULT_SIZE = 10

# Miles per degree of latitude; a degree of longitude spans MILES_PER_DEGREE * cos(lat).
MILES_PER_DEGREE = 69


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class StructuredQuery:
    """Request model for the structured query parser.

    Attributes:
        query: Scored query clause (`q`).
        filter_query: Non-scoring filter clause (`fq`).
        cursor: Opaque pagination token; takes precedence over `start`.
        start: Offset of the first hit.
        size: Maximum number of hits.
        expressions: Named expressions usable for sorting or returning.
        facets: Facet specifications keyed by field.
        options: Query parser options.
        return_fields: Comma-separated return fields.
        sort: Ordered `(field, direction)` pairs.
        stats: Fields to compute statistics for.
    """

    def __init__(self, *, size: int = DEFAULT_SIZE) -> None:
        self.query = ClauseBuilder()
        self.filter_query = ClauseBuilder()
        self.cursor: str | None = None
        self.start: int = 0
        self.size: int = size
        self.expressions: dict[str, str] = {}
        self.facets: dict[str, dict[str, Any]] = {}
        self.options: dict[str, Any] = {}
        self.return_fields: str | None = None
        self.sort: list[tuple[str, str]] = []
        self.stats: list[str] = []

    def set_cursor(self, cursor: str | int | None = INITIAL_CURSOR) -> StructuredQuery:
        """Page with a cursor instead of an offset.

        Pass `"initial"` (or any falsy value) for the first page, then the
        cursor returned in the previous response.
        """
        self.cursor = str(cursor) if cursor else INITIAL_CURSOR
        return self

    def set_start(self, start: int) -> StructuredQuery:
        self.start = start
        return self

    def set_size(self, size: int) -> StructuredQuery:
        self.size = size
        return self

    def set_return_fields(self, fields: str | Sequence[str]) -> StructuredQuery:
        """Limit returned fields, e.g. `"title,_score"` or `["title", "_score"]`."""
        self.return_fields = fields if isinstance(fields, str) else ",".join(fields)
        return self

    def set_option(self, key: str, value: Any) -> StructuredQuery:
        """Set a query parser option such as `defaultOperator` or `fields`."""
        self.options[key] = value
        return self

    def add_expression(self, name: str, expression: str) -> StructuredQuery:
        self.expressions[name] = expression
        return self

    def add_facet(self, field: str, sort: str = "bucket", size: int = 10) -> StructuredQuery:
        """Request facet counts for `field`, sorted by `bucket` or `count`."""
        self.facets[field] = {"sort": sort, "size": size}
        return self

    def add_facet_buckets(
        self,
        field: str,
        buckets: Sequence[str],
        method: str = "filter",
    ) -> StructuredQuery:
        """Request counts for explicit values or ranges such as `"[0,10]"`."""
        self.facets[field] = {"buckets": list(buckets), "method": method}
        return self

    def add_sort(self, field: str, direction: str = "asc") -> StructuredQuery:
        self.sort.append((field, direction))
        return self

    def add_stats(self, field: str) -> StructuredQuery:
        self.stats.append(field)
        return self

    def latlon(
        self,
        field: str,
        lat: float,
        lon: float,
        radius: float = 50,
        add_expr: bool = False,
    ) -> StructuredQuery:
        """Filter documents to a bounding box around a point.

        The box spans `radius` miles in each direction, using 69 miles per
        degree of latitude and `69 * cos(lat)` miles per degree of longitude.
        The resulting range runs from the upper-left to the lower-right corner.

        Args:
            field: Lat/lon field.
            lat: Latitude of the centre.
            lon: Longitude of the centre.
            radius: Distance from the centre, in miles.
            add_expr: Also register the `distance` expression.

        Returns:
            This request.
        """
        upper_left, lower_right = bounding_box(lat, lon, radius)
        self.filter_query.range(field, _format_point(*upper_left), _format_point(*lower_right))
        if add_expr:
            self.add_distance_expr(field, lat, lon)
        return self

    def add_distance_expr(self, field: str, lat: float, lon: float) -> StructuredQuery:
        """Register a `distance` expression computing haversine distance to a point."""
        return self.add_expression(
            "distance",
            f"haversin({lat},{lon},{field}.latitude,{field}.longitude)",
        )

    def compile(self) -> dict[str, Any]:
        """Compile the request into the backend's parameter mapping.

        `queryParser` and `size` are always present; `cursor` replaces
        `start` when set. Empty parts are omitted.

        Returns:
            Ordered request mapping.
        """
        request: dict[str, Any] = {}

        if self.cursor:
            request["cursor"] = self.cursor
        if self.expressions:
            request["expr"] = _to_json(self.expressions)
        if self.facets:
            request["facet"] = _to_json(self.facets)
        if self.filter_query:
            request["filterQuery"] = self.filter_query.render()
        if self.query:
            request["query"] = self.query.render()
        if self.options:
            request["queryOptions"] = _to_json(self.options)
        request["queryParser"] = QUERY_PARSER
        if self.return_fields:
            request["return"] = self.return_fields
        request["size"] = self.size
        if self.sort:
            request["sort"] = ",".join(f"{field} {direction}" for field, direction in self.sort)
        if not self.cursor:
            request["start"] = self.start
        if self.stats:
            request["stats"] = "{" + ",".join(f'"{field}":{{}}' for field in self.stats) + "}"

        return request


def bounding_box(lat: float, lon: float, radius: float) -> tuple[tuple[float, float], tuple[float, float]]:
    """Return the (upper-left, lower-right) corners of a box around a point.

    Args:
        lat: Latitude of the centre, in degrees.
        lon: Longitude of the centre, in degrees.
        radius: Half the side of the box, in miles.

    Returns:
        `((lat1, lon1), (lat2, lon2))` with `lat1 > lat2` and `lon1 < lon2`.
    """
    lat_delta = radius / MILES_PER_DEGREE
    lon_delta = radius / abs(math.cos(math.radians(lat)) * MILES_PER_DEGREE)
    return (lat + lat_delta, lon - lon_delta), (lat - lat_delta, lon + lon_delta)


def _format_point(lat: float, lon: float) -> str:
    return f"{lat},{lon}"
