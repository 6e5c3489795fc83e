"""Fixtures for API route tests."""

import pytest
from fastapi.testclient import TestClient

from challenge_tracker.api.deps import get_challenge_service
from challenge_tracker.db.connection import set_store
from challenge_tracker.main import app


@pytest.fixture
def client(service, store):
    """TestClient wired to the per-test service and store."""
    app.dependency_overrides[get_challenge_service] = lambda: service
    set_store(store)
    yield TestClient(app)
    app.dependency_overrides.clear()
    set_store(None)
