"""Configurable in-memory store for development and testing.

This adapter keeps every table as a dict of rows keyed by id and needs no
database. It can be configured at runtime to fail specific operations,
making it useful for:
- Automated tests of partial-failure paths (e.g. the second seller's order
  insert failing after the first seller's order committed)
- Local development without a database
- Exercising the non-transactional checkout path (``transactional=False``)
"""

import copy
import itertools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog

from shared.errors import StoreError
from shared.store.port import Store, split_lookup
from shared.store.schema import DEFAULTS, TIMESTAMPED

logger = structlog.get_logger(__name__)


@dataclass
class Fault:
    """A configured failure: ``operation`` on ``table`` raises ``message``.

    ``when`` receives the operation payload (the row for inserts, the patch
    for updates, the filters for deletes/reads, the args for procedures).
    ``times`` limits how often the fault fires; ``None`` means always.
    """

    operation: str
    table: str | None
    message: str
    when: Callable[[Any], bool] | None = None
    times: int | None = None

    def matches(self, operation: str, table: str | None, payload: Any) -> bool:
        if self.operation != operation:
            return False
        if self.table is not None and self.table != table:
            return False
        if self.times is not None and self.times <= 0:
            return False
        return self.when is None or bool(self.when(payload))


def _compare(value: Any, lookup: str, expected: Any) -> bool:
    if lookup == "eq":
        return value == expected
    if lookup == "ne":
        return value != expected
    if lookup == "in":
        return value in expected
    if value is None:
        return False
    if lookup == "gt":
        return value > expected
    if lookup == "gte":
        return value >= expected
    if lookup == "lt":
        return value < expected
    return value <= expected


def _matches(row: dict, filters: dict[str, Any]) -> bool:
    for key, expected in filters.items():
        field, lookup = split_lookup(key)
        if not _compare(row.get(field), lookup, expected):
            return False
    return True


class InMemoryStore(Store):
    """Dict-backed store with snapshot transactions and fault injection."""

    def __init__(self, transactional: bool = True) -> None:
        self.supports_transactions = transactional
        self.tables: dict[str, dict[str, dict]] = {table: {} for table in DEFAULTS}
        self.procedures: dict[str, Callable[[dict], Any]] = {
            "generate_order_number": self._generate_order_number,
        }
        self.faults: list[Fault] = []
        self.calls: list[dict] = []
        self._order_sequence = itertools.count(1)
        self._snapshot: dict[str, dict[str, dict]] | None = None

    # -------------------------------------------------------------------
    # Runtime configuration
    # -------------------------------------------------------------------
    def fail_on(
        self,
        operation: str,
        table: str | None = None,
        message: str = "Simulated store failure",
        when: Callable[[Any], bool] | None = None,
        times: int | None = None,
    ) -> Fault:
        """Make ``operation`` (read/insert/update/delete/call_procedure) fail."""
        fault = Fault(operation=operation, table=table, message=message, when=when, times=times)
        self.faults.append(fault)
        return fault

    def clear_faults(self) -> None:
        self.faults.clear()

    def reset(self) -> None:
        """Drop every row, fault, and recorded call."""
        for rows in self.tables.values():
            rows.clear()
        self.faults.clear()
        self.calls.clear()
        self._order_sequence = itertools.count(1)
        self._snapshot = None

    def _record(self, operation: str, table: str | None, payload: Any) -> None:
        self.calls.append({"method": operation, "table": table, "payload": payload})
        for fault in self.faults:
            if fault.matches(operation, table, payload):
                if fault.times is not None:
                    fault.times -= 1
                logger.debug("Injected store failure", operation=operation, table=table)
                raise StoreError(fault.message)

    # -------------------------------------------------------------------
    # Store contract
    # -------------------------------------------------------------------
    def _select(self, table, filters, order_by, descending, limit):
        self._record("read", table, filters)
        rows = [dict(row) for row in self.tables[table].values() if _matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        self._check_table(table)
        rows = [rows] if isinstance(rows, dict) else list(rows)
        now = datetime.now(UTC)

        prepared = []
        for row in rows:
            self._record("insert", table, row)
            record = {**DEFAULTS[table], "id": str(uuid4()), "created_at": now, **row}
            if table in TIMESTAMPED:
                record.setdefault("updated_at", now)
            prepared.append(record)

        for record in prepared:
            self.tables[table][record["id"]] = record
        return [dict(record) for record in prepared]

    def update(self, table: str, patch: dict[str, Any], filters: dict[str, Any]) -> list[dict]:
        self._check_table(table)
        self._record("update", table, patch)
        now = datetime.now(UTC)

        updated = []
        for row in self.tables[table].values():
            if _matches(row, filters):
                row.update(patch)
                if table in TIMESTAMPED:
                    row["updated_at"] = now
                updated.append(dict(row))
        return updated

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        self._check_table(table)
        self._record("delete", table, filters)
        doomed = [row_id for row_id, row in self.tables[table].items() if _matches(row, filters)]
        for row_id in doomed:
            del self.tables[table][row_id]
        return len(doomed)

    def call_procedure(self, name: str, args: dict[str, Any] | None = None) -> Any:
        self._record("call_procedure", name, args or {})
        procedure = self.procedures.get(name)
        if procedure is None:
            raise StoreError(f"Unknown procedure: {name}")
        return procedure(args or {})

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if not self.supports_transactions or self._snapshot is not None:
            # Non-transactional mode, or already inside an outer transaction
            yield
            return

        self._snapshot = copy.deepcopy(self.tables)
        try:
            yield
        except BaseException:
            self.tables = self._snapshot
            raise
        finally:
            self._snapshot = None

    # -------------------------------------------------------------------
    # Procedures
    # -------------------------------------------------------------------
    def _generate_order_number(self, args: dict) -> str:  # noqa: ARG002
        return f"ORD-{datetime.now(UTC):%Y%m%d}-{next(self._order_sequence):06d}"
