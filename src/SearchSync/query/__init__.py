"""Fluent query construction."""

from __future__ import annotations

from SearchSync.query.builder import QueryBuilder

__all__ = ["QueryBuilder"]
