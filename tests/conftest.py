"""Shared fixtures for the Challenge Tracker test suite."""

import pytest

from challenge_tracker.db.adapters import MemoryAdapter, SQLiteAdapter
from challenge_tracker.db.repositories.challenge_repository import ChallengeRepository
from challenge_tracker.services.challenge_service import ChallengeService
from challenge_tracker.utils import dates


class FakeToday:
    """Settable replacement for ``dates.today``."""

    def __init__(self, value: str = "2025-01-15"):
        self.value = value

    def __call__(self) -> str:
        return self.value

    def advance(self, days: int = 1) -> None:
        self.value = dates.add_days(self.value, days)


class FakeClock:
    """Settable replacement for ``time.time`` used by the store adapters."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def today() -> FakeToday:
    return FakeToday()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Every store-backed test runs against both adapters."""
    if request.param == "memory":
        adapter = MemoryAdapter()
    else:
        adapter = SQLiteAdapter(db_path=str(tmp_path / "test.db"))
    adapter.initialize()
    yield adapter
    adapter.close()


@pytest.fixture
def repo(store, today) -> ChallengeRepository:
    return ChallengeRepository(store=store, today=today)


@pytest.fixture
def service(repo) -> ChallengeService:
    return ChallengeService(repository=repo, notifier=None)
