"""Tests for the admin endpoints."""

import pytest

from challenge_tracker.config import get_settings


ADMIN_PASSWORD = "let-me-in"
ADMIN_TOKEN = "admin-token-123"


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def admin_headers(admin_env):
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def challenge_id(service):
    challenge = service.create_challenge(duration=30, activities=["Push-ups", "Plank"])
    service.log_activities(challenge.id, [("Push-ups", 10), ("Plank", 40)])
    return challenge.id


class TestLogin:

    def test_login_returns_token(self, client, admin_env):
        response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
        assert response.status_code == 200
        assert response.json()["data"]["token"] == ADMIN_TOKEN

    def test_wrong_password(self, client, admin_env):
        response = client.post("/api/admin/login", json={"password": "guess"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_unconfigured_password(self, client, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
        get_settings.cache_clear()
        try:
            response = client.post("/api/admin/login", json={"password": "anything"})
        finally:
            get_settings.cache_clear()
        assert response.status_code == 401


class TestAuthGate:

    def test_missing_token(self, client, admin_env):
        response = client.get("/api/admin/challenges")
        assert response.status_code == 401

    def test_wrong_token(self, client, admin_env):
        response = client.get(
            "/api/admin/challenges", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 401

    def test_valid_token(self, client, admin_headers, challenge_id):
        response = client.get("/api/admin/challenges", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["count"] == 1
        assert data["challenges"][0]["id"] == challenge_id
        assert data["total"] == 1

    def test_filter_by_status(self, client, admin_headers, challenge_id):
        response = client.get(
            "/api/admin/challenges", params={"status": "completed"}, headers=admin_headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["challenges"] == []
        assert data["total"] == 0


class TestChallengeAdmin:

    def test_get_with_logs(self, client, admin_headers, challenge_id):
        response = client.get(f"/api/admin/challenge/{challenge_id}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["challenge"]["id"] == challenge_id
        assert len(data["logs"]) == 2

    def test_update(self, client, admin_headers, challenge_id):
        response = client.put(
            f"/api/admin/challenge/{challenge_id}",
            headers=admin_headers,
            json={"duration": 60, "status": "completed", "email": "x@example.com"},
        )
        assert response.status_code == 200
        challenge = response.json()["data"]["challenge"]
        assert challenge["duration"] == 60
        assert challenge["status"] == "completed"
        assert challenge["completed_at"] is not None
        assert challenge["email"] == "x@example.com"

    def test_update_invalid_status(self, client, admin_headers, challenge_id):
        response = client.put(
            f"/api/admin/challenge/{challenge_id}",
            headers=admin_headers,
            json={"status": "paused"},
        )
        assert response.status_code == 400

    def test_update_missing(self, client, admin_headers):
        response = client.put(
            "/api/admin/challenge/nope", headers=admin_headers, json={"duration": 5}
        )
        assert response.status_code == 404

    def test_delete(self, client, admin_headers, challenge_id):
        response = client.delete(f"/api/admin/challenge/{challenge_id}", headers=admin_headers)
        assert response.status_code == 200
        response = client.get(f"/api/admin/challenge/{challenge_id}", headers=admin_headers)
        assert response.status_code == 404

    def test_recalculate(self, client, admin_headers, challenge_id):
        response = client.post(
            f"/api/admin/challenge/{challenge_id}/recalculate", headers=admin_headers
        )
        assert response.status_code == 200
        metrics = response.json()["data"]["metrics"]
        assert metrics["Plank"]["total_reps"] == 40


class TestLogAdmin:

    def _timestamp(self, service, challenge_id, activity):
        _, logs = service.get_logs(challenge_id)
        return next(log.timestamp for log in logs if log.activity == activity)

    def test_update_log(self, client, admin_headers, service, challenge_id):
        timestamp = self._timestamp(service, challenge_id, "Push-ups")
        response = client.put(
            f"/api/admin/challenge/{challenge_id}/log",
            headers=admin_headers,
            json={"timestamp": timestamp, "reps": 99},
        )
        assert response.status_code == 200
        assert response.json()["data"]["log"]["reps"] == 99

    def test_update_log_conflict(self, client, admin_headers, service, challenge_id):
        timestamp = self._timestamp(service, challenge_id, "Push-ups")
        response = client.put(
            f"/api/admin/challenge/{challenge_id}/log",
            headers=admin_headers,
            json={"timestamp": timestamp, "activity": "Plank"},
        )
        assert response.status_code == 409

    def test_delete_log(self, client, admin_headers, service, challenge_id):
        timestamp = self._timestamp(service, challenge_id, "Plank")
        response = client.put(
            f"/api/admin/challenge/{challenge_id}/log",
            headers=admin_headers,
            json={"timestamp": timestamp, "delete": True},
        )
        assert response.status_code == 200
        _, logs = service.get_logs(challenge_id)
        assert [log.activity for log in logs] == ["Push-ups"]

    def test_unknown_log(self, client, admin_headers, challenge_id):
        response = client.put(
            f"/api/admin/challenge/{challenge_id}/log",
            headers=admin_headers,
            json={"timestamp": 1, "reps": 5},
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LOG_NOT_FOUND"
