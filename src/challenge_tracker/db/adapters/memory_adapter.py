"""In-process key-value adapter backed by dictionaries.

Used by the test suite and for local development (STORE_BACKEND=memory).
Data lives only as long as the adapter instance.
"""

import copy
import fnmatch
import math
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from . import KeyValueAdapter, KIND_HASH, KIND_ZSET
from ...exceptions import StoreError


class MemoryAdapter(KeyValueAdapter):
    """Dictionary implementation of the KeyValueAdapter interface.

    ``transaction()`` snapshots the data on entry to the outermost block and
    restores it if the block raises.
    """

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.RLock()
        self._tx_depth = 0
        self._hashes: Dict[str, Dict[str, str]] = {}
        self._zsets: Dict[str, Dict[str, float]] = {}
        self._expires: Dict[str, float] = {}

    def initialize(self) -> None:
        pass

    def close(self) -> None:
        with self._lock:
            self._hashes.clear()
            self._zsets.clear()
            self._expires.clear()

    @contextmanager
    def transaction(self):
        with self._lock:
            outermost = self._tx_depth == 0
            snapshot = None
            if outermost:
                snapshot = (
                    copy.deepcopy(self._hashes),
                    copy.deepcopy(self._zsets),
                    dict(self._expires),
                )
            self._tx_depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._hashes, self._zsets, self._expires = snapshot
                raise
            finally:
                self._tx_depth -= 1

    # =========================================================================
    # Key bookkeeping
    # =========================================================================

    def _purge(self, key: str) -> None:
        self._hashes.pop(key, None)
        self._zsets.pop(key, None)
        self._expires.pop(key, None)

    def _live_kind(self, key: str) -> Optional[str]:
        expires_at = self._expires.get(key)
        if expires_at is not None and expires_at <= self._clock():
            self._purge(key)
            return None
        if key in self._hashes:
            return KIND_HASH
        if key in self._zsets:
            return KIND_ZSET
        return None

    def _check_kind(self, key: str, kind: str) -> None:
        current = self._live_kind(key)
        if current is not None and current != kind:
            raise StoreError(
                f"WRONGTYPE key '{key}' holds a {current}, not a {kind}",
                operation=kind,
            )

    # =========================================================================
    # Hashes
    # =========================================================================

    def hset(self, key: str, mapping: Dict[str, str]) -> int:
        if not mapping:
            return 0
        with self._lock:
            self._check_kind(key, KIND_HASH)
            fields = self._hashes.setdefault(key, {})
            added = sum(1 for field in mapping if field not in fields)
            fields.update({field: str(value) for field, value in mapping.items()})
            return added

    def hgetall(self, key: str) -> Dict[str, str]:
        with self._lock:
            self._check_kind(key, KIND_HASH)
            return dict(self._hashes.get(key, {}))

    # =========================================================================
    # Sorted sets
    # =========================================================================

    def zadd(self, key: str, member: str, score: float) -> bool:
        with self._lock:
            self._check_kind(key, KIND_ZSET)
            members = self._zsets.setdefault(key, {})
            is_new = member not in members
            members[member] = float(score)
            return is_new

    def zrange(self, key: str) -> List[str]:
        with self._lock:
            self._check_kind(key, KIND_ZSET)
            members = self._zsets.get(key, {})
            return [m for m, _ in sorted(members.items(), key=lambda item: (item[1], item[0]))]

    def zrem(self, key: str, member: str) -> bool:
        with self._lock:
            if self._live_kind(key) != KIND_ZSET:
                return False
            members = self._zsets[key]
            removed = members.pop(member, None) is not None
            if not members:
                self._purge(key)
            return removed

    # =========================================================================
    # Keys
    # =========================================================================

    def delete(self, *keys: str) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._live_kind(key) is not None:
                    self._purge(key)
                    deleted += 1
        return deleted

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_kind(key) is not None

    def expire(self, key: str, seconds: int) -> bool:
        with self._lock:
            if self._live_kind(key) is None:
                return False
            self._expires[key] = self._clock() + seconds
            return True

    def ttl(self, key: str) -> int:
        with self._lock:
            if self._live_kind(key) is None:
                return -2
            expires_at = self._expires.get(key)
            if expires_at is None:
                return -1
            return int(math.ceil(expires_at - self._clock()))

    def keys(self, pattern: str = "*") -> List[str]:
        with self._lock:
            candidates = list(self._hashes) + list(self._zsets)
            return sorted(
                key for key in candidates
                if self._live_kind(key) is not None and fnmatch.fnmatchcase(key, pattern)
            )

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            key_count = len(self._hashes) + len(self._zsets)
        return {
            "healthy": True,
            "backend": self.backend,
            "version": "n/a",
            "latency_ms": 0.0,
            "details": {"keys": key_count},
        }
