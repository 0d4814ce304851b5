"""Clause tree builder for structured queries."""

from __future__ import annotations

from typing import Callable, Iterator, Union

from SearchSync.core import expression as expr
from SearchSync.core.expression import Expression, NodeKind, Scalar

Block = Union[str, Callable[["ClauseBuilder"], object]]


class ClauseBuilder:
    """Accumulate an ordered sequence of expression nodes.

    A builder plays one of two roles in a request: the scored *query* or the
    non-scoring *filter*. Top-level nodes are implicitly combined with `and`.
    Every method appends at most one node and returns the builder, so calls
    can be chained:

        clause = ClauseBuilder().term("star", "title").range("year", 1990, 2000)
        str(clause)  # "(and (term field='title' 'star')(range field=year [1990,2000]))"

    Nested boolean blocks take either a callback receiving a fresh sub-builder,
    or a literal string which is wrapped verbatim (it is NOT escaped; callers
    passing user input must escape it themselves).
    """

    __slots__ = ("_nodes",)

    def __init__(self) -> None:
        self._nodes: list[Expression] = []

    @property
    def nodes(self) -> tuple[Expression, ...]:
        """Top-level nodes in insertion order."""
        return tuple(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __iter__(self) -> Iterator[Expression]:
        return iter(self._nodes)

    def add(self, node: Expression | None) -> ClauseBuilder:
        """Append a pre-built node; `None` is ignored."""
        if node is not None:
            self._nodes.append(node)
        return self

    def term(self, value: Scalar, field: str | None = None, boost: int | None = None) -> ClauseBuilder:
        return self.add(expr.term(value, field, boost))

    def phrase(self, value: str, field: str | None = None, boost: int | None = None) -> ClauseBuilder:
        return self.add(expr.phrase(value, field, boost))

    def prefix(self, value: str, field: str | None = None, boost: int | None = None) -> ClauseBuilder:
        return self.add(expr.prefix(value, field, boost))

    def near(
        self,
        value: str,
        field: str | None = None,
        distance: int = 3,
        boost: int | None = None,
    ) -> ClauseBuilder:
        return self.add(expr.near(value, field, distance, boost))

    def range(self, field: str, min: Scalar | None = None, max: Scalar | None = None) -> ClauseBuilder:  # noqa: A002,A003
        """Append a range node; a no-op when both bounds are `None`."""
        return self.add(expr.range_(field, min, max))

    def match_all(self) -> ClauseBuilder:
        return self.add(expr.match_all())

    def and_(self, block: Block) -> ClauseBuilder:
        """Append an `and` block built from a callback or a literal string."""
        return self._block(NodeKind.AND, block)

    def or_(self, block: Block) -> ClauseBuilder:
        """Append an `or` block built from a callback or a literal string."""
        return self._block(NodeKind.OR, block)

    def not_(self, block: Block) -> ClauseBuilder:
        """Append a `not` block built from a callback or a literal string."""
        return self._block(NodeKind.NOT, block)

    def _block(self, kind: NodeKind, block: Block) -> ClauseBuilder:
        if isinstance(block, str):
            children: tuple[Expression, ...] = (expr.raw(block),)
        elif callable(block):
            sub = ClauseBuilder()
            block(sub)
            children = sub.nodes
        else:
            raise TypeError(f"{kind.value} block must be a string or a callable, got {type(block).__name__}")

        if not children:
            return self
        return self.add(Expression(kind=kind, children=children))

    def render(self) -> str:
        """Render all nodes as one `and`-wrapped expression.

        Returns:
            The rendered clause, or an empty string when no node was added.
        """
        if not self._nodes:
            return ""
        return "(and " + "".join(node.render() for node in self._nodes) + ")"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"ClauseBuilder({self.render()!r})"
