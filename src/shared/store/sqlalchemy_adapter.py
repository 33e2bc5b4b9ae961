"""SQLAlchemy Core adapter for the relational store port.

Runs against SQLite (local, tests) or PostgreSQL (production). Every public
call outside ``transaction()`` runs in its own short transaction; inside
``transaction()`` all calls share one connection and commit together.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy import create_engine, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from shared.errors import StoreError
from shared.store.port import Store, split_lookup
from shared.store.schema import DEFAULTS, TIMESTAMPED
from shared.store.tables import TABLES, metadata, order_number_sequence

logger = structlog.get_logger(__name__)


def _engine_for(database_uri: str) -> Engine:
    if database_uri in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every thread sees the same in-memory database
        return create_engine(
            database_uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_uri)


def _clause(column, lookup: str, expected: Any):
    if lookup == "eq":
        return column.is_(None) if expected is None else column == expected
    if lookup == "ne":
        return column.is_not(None) if expected is None else column != expected
    if lookup == "in":
        return column.in_(list(expected))
    if lookup == "gt":
        return column > expected
    if lookup == "gte":
        return column >= expected
    if lookup == "lt":
        return column < expected
    return column <= expected


class SqlAlchemyStore(Store):
    """Store adapter backed by a SQLAlchemy engine."""

    supports_transactions = True

    def __init__(self, database_uri: str = "sqlite://", engine: Engine | None = None) -> None:
        self.engine = engine or _engine_for(database_uri)
        self._connection: Connection | None = None

    # -------------------------------------------------------------------
    # Schema management
    # -------------------------------------------------------------------
    def setup_db(self) -> None:
        """Create every table (no-op for tables that already exist)."""
        metadata.create_all(self.engine)

    def drop_db(self) -> None:
        """Drop every table."""
        metadata.drop_all(self.engine)

    # -------------------------------------------------------------------
    # Connection handling
    # -------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._connection is not None:
            yield
            return

        try:
            with self.engine.begin() as connection:
                self._connection = connection
                try:
                    yield
                finally:
                    self._connection = None
        except SQLAlchemyError as exc:
            raise StoreError(str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return

        with self.engine.begin() as connection:
            yield connection

    def _execute(self, statement, collect=None):
        """Run ``statement``; ``collect`` reads the result before the connection is released."""
        try:
            with self._connect() as connection:
                result = connection.execute(statement)
                return collect(result) if collect else None
        except SQLAlchemyError as exc:
            logger.warning("Store statement failed", error=str(exc))
            raise StoreError(str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc

    def _where(self, table: str, filters: dict[str, Any]) -> list:
        sa_table = TABLES[table]
        clauses = []
        for key, expected in filters.items():
            field, lookup = split_lookup(key)
            if field not in sa_table.c:
                raise StoreError(f"Unknown column {field!r} on {table}")
            clauses.append(_clause(sa_table.c[field], lookup, expected))
        return clauses

    # -------------------------------------------------------------------
    # Store contract
    # -------------------------------------------------------------------
    def _select(self, table, filters, order_by, descending, limit):
        sa_table = TABLES[table]
        statement = select(sa_table).where(*self._where(table, filters))
        if order_by:
            column = sa_table.c[order_by]
            statement = statement.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            statement = statement.limit(limit)
        return self._execute(statement, lambda result: [dict(row._mapping) for row in result])

    def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        self._check_table(table)
        rows = [rows] if isinstance(rows, dict) else list(rows)
        if not rows:
            return []

        now = datetime.now(UTC)
        prepared = []
        for row in rows:
            record = {**DEFAULTS[table], "id": str(uuid4()), "created_at": now, **row}
            if table in TIMESTAMPED:
                record.setdefault("updated_at", now)
            prepared.append(record)

        self._execute(insert(TABLES[table]).values(prepared))
        return [dict(record) for record in prepared]

    def update(self, table: str, patch: dict[str, Any], filters: dict[str, Any]) -> list[dict]:
        self._check_table(table)
        sa_table = TABLES[table]
        patch = dict(patch)
        if table in TIMESTAMPED:
            patch["updated_at"] = datetime.now(UTC)

        with self.transaction():
            ids = [row["id"] for row in self._select(table, filters, None, False, None)]
            if not ids:
                return []
            self._execute(update(sa_table).where(sa_table.c.id.in_(ids)).values(**patch))
            return self._select(table, {"id__in": ids}, None, False, None)

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        self._check_table(table)
        statement = delete(TABLES[table]).where(*self._where(table, filters))
        return self._execute(statement, lambda result: result.rowcount)

    def call_procedure(self, name: str, args: dict[str, Any] | None = None) -> Any:  # noqa: ARG002
        if name != "generate_order_number":
            raise StoreError(f"Unknown procedure: {name}")

        now = datetime.now(UTC)
        statement = insert(order_number_sequence).values(issued_at=now)
        sequence = self._execute(statement, lambda result: result.inserted_primary_key[0])
        return f"ORD-{now:%Y%m%d}-{sequence:06d}"
