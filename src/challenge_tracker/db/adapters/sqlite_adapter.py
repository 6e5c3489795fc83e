"""SQLite key-value adapter.

Maps the KeyValueAdapter primitives onto three tables:

    kv_keys   one row per key: its type and optional expiry (epoch seconds)
    kv_hash   (key, field) -> value
    kv_zset   (key, member) -> score

SQLite-Specific Considerations:
    - One connection per adapter, opened lazily on first use and reused
    - WAL mode for concurrent readers
    - Autocommit connection; every operation runs inside an explicit
      BEGIN IMMEDIATE / COMMIT so multi-statement writes are atomic
    - Expired keys are purged lazily when touched
"""

import fnmatch
import math
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import KeyValueAdapter, KIND_HASH, KIND_ZSET
from ...exceptions import StoreError


SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_keys (
    key TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    expires_at REAL
);

CREATE TABLE IF NOT EXISTS kv_hash (
    key TEXT NOT NULL,
    field TEXT NOT NULL,
    value TEXT NOT NULL,
    PRIMARY KEY (key, field)
);

CREATE TABLE IF NOT EXISTS kv_zset (
    key TEXT NOT NULL,
    member TEXT NOT NULL,
    score REAL NOT NULL,
    PRIMARY KEY (key, member)
);

CREATE INDEX IF NOT EXISTS idx_kv_zset_score ON kv_zset(key, score);
CREATE INDEX IF NOT EXISTS idx_kv_keys_expires ON kv_keys(expires_at);
"""


def get_default_db_path() -> Path:
    """Get the default store path."""
    env_path = os.environ.get("STORE_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / "challenges.db"


class SQLiteAdapter(KeyValueAdapter):
    """SQLite implementation of the KeyValueAdapter interface.

    Usage:
        adapter = SQLiteAdapter()  # Uses STORE_PATH or ./challenges.db
        adapter = SQLiteAdapter(db_path="custom.db")
    """

    backend = "sqlite"

    def __init__(
        self,
        db_path: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            db_path: Path to the SQLite file (":memory:" works too).
            clock: Source of the current time in epoch seconds, for expiry.
        """
        if db_path:
            self.db_path = Path(db_path) if db_path != ":memory:" else db_path
        else:
            self.db_path = get_default_db_path()

        self._clock = clock
        self._connection: Optional[sqlite3.Connection] = None
        self._connect_lock = threading.Lock()
        self._lock = threading.RLock()
        self._tx_depth = 0

    # =========================================================================
    # Connection management
    # =========================================================================

    def _ensure_connection(self) -> sqlite3.Connection:
        """Open the shared connection on first use.

        Concurrent first callers block on the lock and all receive the one
        connection opened by whichever caller got there first.
        """
        if self._connection is not None:
            return self._connection

        with self._connect_lock:
            if self._connection is None:
                try:
                    conn = sqlite3.connect(
                        str(self.db_path),
                        check_same_thread=False,
                        isolation_level=None,
                    )
                    conn.row_factory = sqlite3.Row
                    conn.execute("PRAGMA journal_mode=WAL")
                    conn.execute("PRAGMA synchronous=NORMAL")
                    conn.execute("PRAGMA busy_timeout=5000")
                    conn.executescript(SCHEMA)
                except sqlite3.Error as e:
                    raise StoreError(f"Failed to open store at {self.db_path}: {e}", operation="connect") from e
                self._connection = conn

        return self._connection

    def initialize(self) -> None:
        """Open the connection and create tables if they don't exist."""
        self._ensure_connection()

    def close(self) -> None:
        """Close the database connection."""
        with self._connect_lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    @contextmanager
    def transaction(self):
        """Run the enclosed operations in one SQLite transaction."""
        with self._lock:
            conn = self._ensure_connection()
            outermost = self._tx_depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._tx_depth += 1
            try:
                yield self
            except sqlite3.Error as e:
                self._tx_depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                raise StoreError(f"Store operation failed: {e}") from e
            except BaseException:
                self._tx_depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                raise
            else:
                self._tx_depth -= 1
                if outermost:
                    conn.execute("COMMIT")

    @contextmanager
    def _get_connection(self):
        """Connection for a single operation, inside a (possibly nested) transaction."""
        with self.transaction():
            yield self._connection

    # =========================================================================
    # Key bookkeeping
    # =========================================================================

    def _purge(self, conn: sqlite3.Connection, key: str) -> None:
        conn.execute("DELETE FROM kv_hash WHERE key = ?", (key,))
        conn.execute("DELETE FROM kv_zset WHERE key = ?", (key,))
        conn.execute("DELETE FROM kv_keys WHERE key = ?", (key,))

    def _live_kind(self, conn: sqlite3.Connection, key: str) -> Optional[str]:
        """Type of a live key, purging it first if it has expired."""
        row = conn.execute(
            "SELECT kind, expires_at FROM kv_keys WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        if row["expires_at"] is not None and row["expires_at"] <= self._clock():
            self._purge(conn, key)
            return None
        return row["kind"]

    def _claim(self, conn: sqlite3.Connection, key: str, kind: str) -> None:
        """Register ``key`` as ``kind``; fail if it already holds another type."""
        current = self._live_kind(conn, key)
        if current is None:
            conn.execute(
                "INSERT INTO kv_keys (key, kind, expires_at) VALUES (?, ?, NULL)",
                (key, kind),
            )
        elif current != kind:
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
        with self._get_connection() as conn:
            self._claim(conn, key, KIND_HASH)
            added = 0
            for field, value in mapping.items():
                cursor = conn.execute(
                    "UPDATE kv_hash SET value = ? WHERE key = ? AND field = ?",
                    (str(value), key, field),
                )
                if cursor.rowcount == 0:
                    conn.execute(
                        "INSERT INTO kv_hash (key, field, value) VALUES (?, ?, ?)",
                        (key, field, str(value)),
                    )
                    added += 1
            return added

    def hgetall(self, key: str) -> Dict[str, str]:
        with self._get_connection() as conn:
            kind = self._live_kind(conn, key)
            if kind is None:
                return {}
            if kind != KIND_HASH:
                raise StoreError(f"WRONGTYPE key '{key}' holds a {kind}, not a hash", operation="hgetall")
            rows = conn.execute(
                "SELECT field, value FROM kv_hash WHERE key = ?", (key,)
            ).fetchall()
            return {row["field"]: row["value"] for row in rows}

    # =========================================================================
    # Sorted sets
    # =========================================================================

    def zadd(self, key: str, member: str, score: float) -> bool:
        with self._get_connection() as conn:
            self._claim(conn, key, KIND_ZSET)
            cursor = conn.execute(
                "UPDATE kv_zset SET score = ? WHERE key = ? AND member = ?",
                (score, key, member),
            )
            if cursor.rowcount:
                return False
            conn.execute(
                "INSERT INTO kv_zset (key, member, score) VALUES (?, ?, ?)",
                (key, member, score),
            )
            return True

    def zrange(self, key: str) -> List[str]:
        with self._get_connection() as conn:
            kind = self._live_kind(conn, key)
            if kind is None:
                return []
            if kind != KIND_ZSET:
                raise StoreError(f"WRONGTYPE key '{key}' holds a {kind}, not a zset", operation="zrange")
            rows = conn.execute(
                "SELECT member FROM kv_zset WHERE key = ? ORDER BY score ASC, member ASC",
                (key,),
            ).fetchall()
            return [row["member"] for row in rows]

    def zrem(self, key: str, member: str) -> bool:
        with self._get_connection() as conn:
            if self._live_kind(conn, key) != KIND_ZSET:
                return False
            cursor = conn.execute(
                "DELETE FROM kv_zset WHERE key = ? AND member = ?", (key, member)
            )
            removed = cursor.rowcount > 0
            remaining = conn.execute(
                "SELECT COUNT(*) AS cnt FROM kv_zset WHERE key = ?", (key,)
            ).fetchone()["cnt"]
            if remaining == 0:
                self._purge(conn, key)
            return removed

    # =========================================================================
    # Keys
    # =========================================================================

    def delete(self, *keys: str) -> int:
        deleted = 0
        with self._get_connection() as conn:
            for key in keys:
                if self._live_kind(conn, key) is not None:
                    self._purge(conn, key)
                    deleted += 1
        return deleted

    def exists(self, key: str) -> bool:
        with self._get_connection() as conn:
            return self._live_kind(conn, key) is not None

    def expire(self, key: str, seconds: int) -> bool:
        with self._get_connection() as conn:
            if self._live_kind(conn, key) is None:
                return False
            conn.execute(
                "UPDATE kv_keys SET expires_at = ? WHERE key = ?",
                (self._clock() + seconds, key),
            )
            return True

    def ttl(self, key: str) -> int:
        with self._get_connection() as conn:
            if self._live_kind(conn, key) is None:
                return -2
            row = conn.execute(
                "SELECT expires_at FROM kv_keys WHERE key = ?", (key,)
            ).fetchone()
            if row["expires_at"] is None:
                return -1
            return int(math.ceil(row["expires_at"] - self._clock()))

    def keys(self, pattern: str = "*") -> List[str]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT key, expires_at FROM kv_keys").fetchall()
            now = self._clock()
            live = []
            for row in rows:
                if row["expires_at"] is not None and row["expires_at"] <= now:
                    self._purge(conn, row["key"])
                    continue
                if fnmatch.fnmatchcase(row["key"], pattern):
                    live.append(row["key"])
            return sorted(live)

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        start = time.perf_counter()
        try:
            with self._get_connection() as conn:
                key_count = conn.execute("SELECT COUNT(*) AS cnt FROM kv_keys").fetchone()["cnt"]
            return {
                "healthy": True,
                "backend": self.backend,
                "version": sqlite3.sqlite_version,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                "details": {"path": str(self.db_path), "keys": key_count},
            }
        except StoreError as e:
            return {
                "healthy": False,
                "backend": self.backend,
                "version": sqlite3.sqlite_version,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                "details": {"path": str(self.db_path), "error": e.message},
            }
