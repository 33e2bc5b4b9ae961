"""Relational store port (abstract interface).

Defines the CRUD + procedure + transaction contract that the ordering,
cart, catalogue, and payment workflows are written against. This enables
swapping between InMemoryStore (dev/test) and SqlAlchemyStore (SQLite or
PostgreSQL) without changing any workflow code.

Filters are dicts. A plain key is an equality test; ``field__lookup`` keys
apply one of ``LOOKUPS``::

    {"buyer_id": "u-1", "stock_quantity__gte": 1, "id__in": ["a", "b"]}
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import Any

from shared.errors import StoreError
from shared.store.schema import RELATIONS, TABLES

LOOKUPS = frozenset({"eq", "ne", "gt", "gte", "lt", "lte", "in"})


def split_lookup(key: str) -> tuple[str, str]:
    """Split ``"price__gte"`` into ``("price", "gte")``; plain keys are ``eq``."""
    field, sep, lookup = key.rpartition("__")
    if sep and lookup in LOOKUPS:
        return field, lookup
    return key, "eq"


class Store(ABC):
    """Abstract relational store."""

    #: Whether ``transaction()`` gives all-or-nothing semantics
    supports_transactions: bool = True

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def read(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        relations: Iterable[str] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """Return rows of ``table`` matching ``filters``.

        ``relations`` names entries of the relation map to attach to every
        row; dotted names (``"order_items.product"``) expand nested rows.
        """
        self._check_table(table)
        rows = self._select(table, filters or {}, order_by, descending, limit)
        for relation in relations or ():
            self._expand(table, rows, relation)
        return rows

    def read_one(self, table: str, filters: dict[str, Any], relations: Iterable[str] | None = None) -> dict | None:
        rows = self.read(table, filters, relations=relations, limit=1)
        return rows[0] if rows else None

    @abstractmethod
    def _select(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: str | None,
        descending: bool,
        limit: int | None,
    ) -> list[dict]:
        """Return plain rows (no relations) matching ``filters``."""
        ...

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    @abstractmethod
    def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        """Insert one or many rows; return them with ids and defaults filled in."""
        ...

    @abstractmethod
    def update(self, table: str, patch: dict[str, Any], filters: dict[str, Any]) -> list[dict]:
        """Apply ``patch`` to every row matching ``filters``; return the updated rows."""
        ...

    @abstractmethod
    def delete(self, table: str, filters: dict[str, Any]) -> int:
        """Delete every row matching ``filters``; return the count."""
        ...

    @abstractmethod
    def call_procedure(self, name: str, args: dict[str, Any] | None = None) -> Any:
        """Invoke a server-side procedure such as ``generate_order_number``."""
        ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Group writes so they commit together or not at all."""
        ...

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _check_table(self, table: str) -> None:
        if table not in TABLES:
            raise StoreError(f"Unknown table: {table}")

    def _expand(self, table: str, rows: list[dict], relation_path: str) -> None:
        name, _, nested = relation_path.partition(".")
        relation = RELATIONS.get(table, {}).get(name)
        if relation is None:
            raise StoreError(f"Unknown relation {name!r} on {table}")

        keys = {row[relation.local_field] for row in rows if row.get(relation.local_field) is not None}
        related = []
        if keys:
            related = self._select(relation.table, {f"{relation.remote_field}__in": list(keys)}, None, False, None)

        if nested:
            self._expand(relation.table, related, nested)

        if relation.many:
            grouped: dict[Any, list[dict]] = {}
            for child in related:
                grouped.setdefault(child[relation.remote_field], []).append(child)
            for row in rows:
                row[name] = grouped.get(row.get(relation.local_field), [])
        else:
            by_key = {child[relation.remote_field]: child for child in related}
            for row in rows:
                row[name] = by_key.get(row.get(relation.local_field))
