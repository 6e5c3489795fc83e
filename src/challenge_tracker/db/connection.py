"""Process-wide key-value store connection.

The adapter is created on first use and reused for the life of the process.
Concurrent first callers block on a lock; the first one builds the adapter
and the rest receive the same instance.
"""

import logging
import threading
from typing import Optional

from ..config import get_settings
from .adapters import KeyValueAdapter, MemoryAdapter, SQLiteAdapter


logger = logging.getLogger(__name__)

_store: Optional[KeyValueAdapter] = None
_store_lock = threading.Lock()


def create_store(backend: str, store_path: Optional[str] = None) -> KeyValueAdapter:
    """Build an adapter for the given backend name."""
    if backend == "memory":
        return MemoryAdapter()
    if backend == "sqlite":
        return SQLiteAdapter(db_path=store_path)
    raise ValueError(f"Unknown store backend: {backend}")


def get_store() -> KeyValueAdapter:
    """Get or create the singleton store adapter."""
    global _store
    if _store is not None:
        return _store

    with _store_lock:
        if _store is None:
            settings = get_settings()
            store_path = str(settings.store_path) if settings.store_path else None
            adapter = create_store(settings.store_backend, store_path)
            adapter.initialize()
            logger.info(f"Initialized {adapter.backend} store")
            _store = adapter

    return _store


def set_store(adapter: Optional[KeyValueAdapter]) -> None:
    """Install a specific adapter as the process store (tests, CLI)."""
    global _store
    with _store_lock:
        _store = adapter


def reset_store() -> None:
    """Close and forget the current store so the next call rebuilds it."""
    global _store
    with _store_lock:
        if _store is not None:
            _store.close()
        _store = None
