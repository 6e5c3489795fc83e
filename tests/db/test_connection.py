"""Tests for the process-wide store connection."""

import threading

import pytest

from challenge_tracker.config import Settings
from challenge_tracker.db import connection
from challenge_tracker.db.adapters import MemoryAdapter, SQLiteAdapter


@pytest.fixture
def memory_settings(monkeypatch):
    monkeypatch.setattr(connection, "get_settings", lambda: Settings(store_backend="memory"))
    connection.reset_store()
    yield
    connection.reset_store()


class TestCreateStore:

    def test_memory(self):
        assert isinstance(connection.create_store("memory"), MemoryAdapter)

    def test_sqlite(self, tmp_path):
        adapter = connection.create_store("sqlite", str(tmp_path / "s.db"))
        assert isinstance(adapter, SQLiteAdapter)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            connection.create_store("redis")


class TestGetStore:

    def test_returns_same_instance(self, memory_settings):
        assert connection.get_store() is connection.get_store()

    def test_concurrent_first_calls_share_one_adapter(self, memory_settings):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(connection.get_store())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(store is results[0] for store in results)

    def test_reset_rebuilds(self, memory_settings):
        first = connection.get_store()
        connection.reset_store()
        assert connection.get_store() is not first

    def test_set_store(self, memory_settings):
        adapter = MemoryAdapter()
        connection.set_store(adapter)
        assert connection.get_store() is adapter
