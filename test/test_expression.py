"""Tests for structured query expression nodes."""

from __future__ import annotations

import dataclasses
import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from SearchSync.core import expression as expr
from SearchSync.core.expression import Expression, NodeKind, escape


class TestEscape(unittest.TestCase):
    def test_escapes_backslash_before_quote(self) -> None:
        self.assertEqual(escape("O'Neil"), "O\\'Neil")
        self.assertEqual(escape("a\\b"), "a\\\\b")
        self.assertEqual(escape("\\'"), "\\\\\\'")

    def test_non_strings_pass_through(self) -> None:
        self.assertEqual(escape(5), 5)
        self.assertIsNone(escape(None))


class TestLeafRendering(unittest.TestCase):
    def test_term_with_field_and_boost(self) -> None:
        node = expr.term("star wars", "title", 2)
        self.assertEqual(node.render(), "(term field='title' boost='2' 'star wars')")

    def test_term_without_field(self) -> None:
        self.assertEqual(str(expr.term("star")), "(term 'star')")

    def test_numeric_term(self) -> None:
        self.assertEqual(expr.term(1999, "year").render(), "(term field='year' '1999')")

    def test_near_renders_distance_before_boost(self) -> None:
        node = expr.near("dark side", "plot", distance=5, boost=3)
        self.assertEqual(node.render(), "(near field='plot' distance='5' boost='3' 'dark side')")

    def test_near_default_distance(self) -> None:
        self.assertEqual(expr.near("dark side").distance, 3)

    def test_phrase_and_prefix(self) -> None:
        self.assertEqual(expr.phrase("new hope", "title").render(), "(phrase field='title' 'new hope')")
        self.assertEqual(expr.prefix("sta").render(), "(prefix 'sta')")

    def test_render_escapes_values(self) -> None:
        node = expr.phrase("it's a \\ test", "title")
        self.assertEqual(node.value, "it's a \\ test")
        self.assertEqual(node.render(), "(phrase field='title' 'it\\'s a \\\\ test')")

    def test_directly_built_leaf_is_escaped(self) -> None:
        node = Expression(kind=NodeKind.TERM, value="O'Brien", field="na'me")
        self.assertEqual(node.render(), "(term field='na\\'me' 'O\\'Brien')")

    def test_render_does_not_escape_twice(self) -> None:
        node = expr.term("O'Brien")
        self.assertEqual(node.render(), node.render())
        self.assertEqual(expr.and_(node).render(), "(and (term 'O\\'Brien'))")

    def test_match_all(self) -> None:
        self.assertEqual(expr.match_all().render(), "(matchall)")

    def test_raw_is_not_escaped(self) -> None:
        self.assertEqual(expr.raw("it's").render(), "'it's'")


class TestRange(unittest.TestCase):
    def test_closed_range(self) -> None:
        self.assertEqual(expr.range_("year", 1990, 2000).render(), "(range field=year [1990,2000])")

    def test_open_lower_bound(self) -> None:
        self.assertEqual(expr.range_("year", max=2000).render(), "(range field=year {,2000])")

    def test_open_upper_bound(self) -> None:
        self.assertEqual(expr.range_("year", 1990).render(), "(range field=year [1990,})")

    def test_zero_is_a_bound(self) -> None:
        self.assertEqual(expr.range_("rating", 0).render(), "(range field=rating [0,})")

    def test_string_bounds_are_quoted(self) -> None:
        node = expr.range_("release", "2020-01-01T00:00:00Z")
        self.assertEqual(node.render(), "(range field=release ['2020-01-01T00:00:00Z',})")

    def test_string_bounds_are_escaped(self) -> None:
        node = Expression(kind=NodeKind.RANGE, field="tag", min="a'b")
        self.assertEqual(node.render(), "(range field=tag ['a\\'b',})")

    def test_no_bounds_gives_none(self) -> None:
        self.assertIsNone(expr.range_("year"))


class TestCompositeNodes(unittest.TestCase):
    def test_children_are_concatenated(self) -> None:
        node = expr.or_(expr.term("a"), expr.term("b"))
        self.assertEqual(node.render(), "(or (term 'a')(term 'b'))")

    def test_nested_composites(self) -> None:
        node = expr.and_(expr.not_(expr.term("x", "genre")), expr.match_all())
        self.assertEqual(node.render(), "(and (not (term field='genre' 'x'))(matchall))")

    def test_composite_requires_children(self) -> None:
        with self.assertRaises(ValueError):
            expr.and_()

    def test_leaf_cannot_have_children(self) -> None:
        with self.assertRaises(ValueError):
            Expression(kind=NodeKind.TERM, value="a", children=(expr.term("b"),))

    def test_boost_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            expr.term("a", boost=0)

    def test_nodes_are_immutable(self) -> None:
        node = expr.term("a")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            node.value = "b"  # type: ignore[misc]

    def test_kind_flags(self) -> None:
        self.assertTrue(NodeKind.NOT.is_composite)
        self.assertFalse(NodeKind.RANGE.is_composite)


if __name__ == "__main__":
    unittest.main()
