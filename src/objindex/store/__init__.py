"""Backing store: one SQLite FTS5 database per named index."""
from objindex.store.paths import DATABASE_FILENAME, resolve_store
from objindex.store.sqlite import IndexStore, ReadView, StoredHit, WriteSession

__all__ = [
    "DATABASE_FILENAME",
    "IndexStore",
    "ReadView",
    "StoredHit",
    "WriteSession",
    "resolve_store",
]
