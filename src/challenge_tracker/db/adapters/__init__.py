"""Key-value store adapters.

The repository layer talks to storage through a small, Redis-shaped set of
primitives: hashes for records, sorted sets for ordered collections, and a
per-key time-to-live. Implementations:

    # SQLite (default, file-backed)
    from challenge_tracker.db.adapters import SQLiteAdapter
    adapter = SQLiteAdapter(db_path="challenges.db")

    # In-process dictionaries (tests, local development)
    from challenge_tracker.db.adapters import MemoryAdapter
    adapter = MemoryAdapter()

    adapter.hset("challenge:abc", {"duration": "30"})
    adapter.expire("challenge:abc", 60 * 60 * 24 * 60)

Semantics shared by every adapter:
    - Values are strings; callers encode and decode.
    - An expired key is indistinguishable from a missing one.
    - ``expire`` on a missing key is a no-op returning False.
    - Removing the last member of a sorted set removes the key.
    - Using a key as the wrong type raises StoreError.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List


KIND_HASH = "hash"
KIND_ZSET = "zset"


class KeyValueAdapter(ABC):
    """Abstract base class for key-value store adapters."""

    backend: str = "abstract"

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the backing storage (create tables, open files)."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection and any other resources."""
        pass

    @abstractmethod
    @contextmanager
    def transaction(self):
        """Group several operations so other callers see all or none of them.

        Usage:
            with adapter.transaction():
                adapter.zrem(key, old_member)
                adapter.zadd(key, new_member, score)

        Transactions nest; only the outermost block commits.
        """
        pass

    # =========================================================================
    # Hashes
    # =========================================================================

    @abstractmethod
    def hset(self, key: str, mapping: Dict[str, str]) -> int:
        """Set fields on a hash, creating it if needed.

        Returns:
            Number of fields that did not exist before
        """
        pass

    @abstractmethod
    def hgetall(self, key: str) -> Dict[str, str]:
        """All fields of a hash, or an empty dict if the key is missing."""
        pass

    # =========================================================================
    # Sorted sets
    # =========================================================================

    @abstractmethod
    def zadd(self, key: str, member: str, score: float) -> bool:
        """Add a member (or update its score).

        Returns:
            True if the member was new
        """
        pass

    @abstractmethod
    def zrange(self, key: str) -> List[str]:
        """All members ordered by score ascending, ties by member."""
        pass

    @abstractmethod
    def zrem(self, key: str, member: str) -> bool:
        """Remove a member. Returns True if it was present."""
        pass

    # =========================================================================
    # Keys
    # =========================================================================

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys of any type. Returns how many existed."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Whether the key exists and has not expired."""
        pass

    @abstractmethod
    def expire(self, key: str, seconds: int) -> bool:
        """Set a time-to-live on an existing key. Returns False if missing."""
        pass

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Remaining seconds to live; -1 without expiry, -2 if missing."""
        pass

    @abstractmethod
    def keys(self, pattern: str = "*") -> List[str]:
        """Live keys matching a glob pattern, sorted."""
        pass

    # =========================================================================
    # Health Check
    # =========================================================================

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Check store health and connectivity.

        Returns:
            Dict with healthy, backend, version, latency_ms and details
        """
        pass


from .sqlite_adapter import SQLiteAdapter
from .memory_adapter import MemoryAdapter

__all__ = [
    "KeyValueAdapter",
    "SQLiteAdapter",
    "MemoryAdapter",
    "KIND_HASH",
    "KIND_ZSET",
]
