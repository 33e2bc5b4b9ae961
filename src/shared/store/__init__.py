"""Store factory.

Provides get_store() / set_store() / reset_store() to swap implementations:
- InMemoryStore for development and testing (default)
- SqlAlchemyStore for SQLite/PostgreSQL, selected with STORE_ADAPTER=sqlalchemy
  and DATABASE_URL
"""

import os

from shared.store.port import Store

_current_store: Store | None = None


def get_store() -> Store:
    """Return the configured store (singleton)."""
    global _current_store
    if _current_store is None:
        adapter = os.environ.get("STORE_ADAPTER", "memory")
        if adapter == "memory":
            from shared.store.memory_adapter import InMemoryStore

            _current_store = InMemoryStore()
        elif adapter == "sqlalchemy":
            from shared.store.sqlalchemy_adapter import SqlAlchemyStore

            store = SqlAlchemyStore(os.environ.get("DATABASE_URL", "sqlite://"))
            store.setup_db()
            _current_store = store
        else:
            raise ValueError(f"Unknown store adapter: {adapter}")
    return _current_store


def set_store(store: Store) -> None:
    """Override the active store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None
