"""Structured query expression nodes.

An `Expression` is an immutable node of the backend's structured query
language. Leaf kinds carry a field/value pair; composite kinds (`and`, `or`,
`not`) carry an ordered tuple of child nodes.

Nodes are created through the per-kind constructors in this module
(`term`, `phrase`, `prefix`, `near`, `range_`, `match_all`, `raw`,
`and_`, `or_`, `not_`). Nodes hold their values unescaped; `render` escapes
string fields, values and range bounds (backslash and single quote) of every
leaf, however it was built, so a rendered leaf is always safe to embed in a
quoted literal. Only `raw` literals are emitted verbatim.

Rendering follows the prefix-operator form of the backend:

- `(term field='title' boost='2' 'star wars')`
- `(near field='plot' distance='3' 'dark side')`
- `(range field=year [1990,2000])`
- `(and (term 'a')(term 'b'))`
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

Scalar = Union[str, int, float]

COMPOSITE_KINDS: frozenset[str] = frozenset({"and", "or", "not"})


class NodeKind(str, Enum):
    """Kinds of structured query nodes."""

    TERM = "term"
    PHRASE = "phrase"
    PREFIX = "prefix"
    NEAR = "near"
    RANGE = "range"
    AND = "and"
    OR = "or"
    NOT = "not"
    MATCH_ALL = "matchall"
    RAW = "raw"

    @property
    def is_composite(self) -> bool:
        return self.value in COMPOSITE_KINDS


def escape(value: Scalar | None) -> Scalar | None:
    """Escape a string for use inside a single-quoted literal.

    Backslashes are doubled and single quotes are backslash-escaped.
    Non-string values are returned unchanged.

    Args:
        value: Raw argument value.

    Returns:
        Escaped value.
    """
    if not isinstance(value, str):
        return value
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _format_scalar(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_bound(value: Scalar) -> str:
    # string bounds (dates, lat/lon pairs) are quoted, numbers are bare
    if isinstance(value, str):
        return f"'{escape(value)}'"
    return _format_scalar(value)


@dataclass(frozen=True, slots=True)
class Expression:
    """One node of a structured query.

    Attributes:
        kind: Node kind.
        field: Target field; `None` searches the default fields.
        value: Search value (leaf kinds only).
        boost: Positive relevance boost.
        distance: Token distance (`near` only).
        min: Lower bound (`range` only).
        max: Upper bound (`range` only).
        children: Child nodes (composite kinds only).
    """

    kind: NodeKind
    field: str | None = None
    value: Scalar | None = None
    boost: int | None = None
    distance: int | None = None
    min: Scalar | None = None
    max: Scalar | None = None
    children: tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        if self.kind.is_composite:
            if not self.children:
                raise ValueError(f"'{self.kind.value}' expression requires at least one child")
        elif self.children:
            raise ValueError(f"'{self.kind.value}' expression cannot have children")
        if self.kind is NodeKind.RANGE and self.min is None and self.max is None:
            raise ValueError("range expression requires at least one bound")
        if self.boost is not None and self.boost <= 0:
            raise ValueError("boost must be a positive integer")

    def render(self) -> str:
        """Serialize this node into the structured query syntax."""
        kind = self.kind
        if kind is NodeKind.MATCH_ALL:
            return "(matchall)"
        if kind is NodeKind.RAW:
            return f"'{_format_scalar(self.value)}'"
        if kind.is_composite:
            return f"({kind.value} " + "".join(child.render() for child in self.children) + ")"
        if kind is NodeKind.RANGE:
            lower = "[" + _format_bound(self.min) if self.min is not None else "{"
            upper = _format_bound(self.max) + "]" if self.max is not None else "}"
            return f"(range field={escape(self.field)} {lower},{upper})"

        parts = [f"({kind.value} "]
        if self.field:
            parts.append(f"field='{escape(self.field)}' ")
        if self.distance:
            parts.append(f"distance='{self.distance}' ")
        if self.boost:
            parts.append(f"boost='{self.boost}' ")
        parts.append(f"'{_format_scalar(escape(self.value))}')")
        return "".join(parts)

    def __str__(self) -> str:
        return self.render()


def _leaf(
    kind: NodeKind,
    value: Scalar,
    field: str | None,
    boost: int | None,
    distance: int | None = None,
) -> Expression:
    return Expression(
        kind=kind,
        field=field,
        value=value,
        boost=boost,
        distance=distance,
    )


def term(value: Scalar, field: str | None = None, boost: int | None = None) -> Expression:
    """Build a `term` node matching a string, number or date value."""
    return _leaf(NodeKind.TERM, value, field, boost)


def phrase(value: str, field: str | None = None, boost: int | None = None) -> Expression:
    """Build a `phrase` node matching an exact phrase."""
    return _leaf(NodeKind.PHRASE, value, field, boost)


def prefix(value: str, field: str | None = None, boost: int | None = None) -> Expression:
    """Build a `prefix` node matching values that start with `value`."""
    return _leaf(NodeKind.PREFIX, value, field, boost)


def near(
    value: str,
    field: str | None = None,
    distance: int = 3,
    boost: int | None = None,
) -> Expression:
    """Build a sloppy phrase node: terms within `distance` positions of each other."""
    return _leaf(NodeKind.NEAR, value, field, boost, distance=distance)


def range_(field: str, min: Scalar | None = None, max: Scalar | None = None) -> Expression | None:  # noqa: A002
    """Build a `range` node on `field`.

    A missing bound renders as an open (exclusive) side. When both bounds are
    missing there is nothing to constrain and `None` is returned.

    Args:
        field: Numeric, date or lat/lon field.
        min: Inclusive lower bound, or `None` for an open lower side.
        max: Inclusive upper bound, or `None` for an open upper side.

    Returns:
        Range node, or `None` when neither bound is given.
    """
    if min is None and max is None:
        return None
    return Expression(kind=NodeKind.RANGE, field=field, min=min, max=max)


def match_all() -> Expression:
    """Build a node matching every document."""
    return Expression(kind=NodeKind.MATCH_ALL)


def raw(literal: str) -> Expression:
    """Wrap a caller-supplied literal verbatim, without escaping."""
    return Expression(kind=NodeKind.RAW, value=literal)


def _composite(kind: NodeKind, children: Iterable[Expression]) -> Expression:
    return Expression(kind=kind, children=tuple(children))


def and_(*children: Expression) -> Expression:
    """Match documents that match every child."""
    return _composite(NodeKind.AND, children)


def or_(*children: Expression) -> Expression:
    """Match documents that match any child."""
    return _composite(NodeKind.OR, children)


def not_(*children: Expression) -> Expression:
    """Exclude documents that match the children."""
    return _composite(NodeKind.NOT, children)
