"""Tests for the HTTP boundary: registration, results, state and health."""

import pytest
from fastapi.testclient import TestClient

from icekart.core.settings import Settings
from icekart.main import create_app


@pytest.fixture
def app(clock):
    settings = Settings(TOTAL_LAPS=3, CHECKPOINTS_PER_LAP=2)
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestRegister:
    def test_register_returns_racer(self, client):
        response = client.post("/api/register", json={"name": "Alice"})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Alice"
        assert body["id"]
        assert body["laps"] == 0
        assert body["history"] == []

    def test_duplicate_name_conflicts(self, client):
        client.post("/api/register", json={"name": "Alice"})
        response = client.post("/api/register", json={"name": "Alice"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Racer with this name already exists"

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "   "}])
    def test_missing_name_rejected(self, client, body):
        response = client.post("/api/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Name is required"

    @pytest.mark.parametrize(
        "content",
        [b"not json", b'{"name": 42}', b'{"name": "Alice", "avatar": ["x"]}', b"[]"],
    )
    def test_invalid_body_rejected(self, client, app, content):
        response = client.post(
            "/api/register", content=content, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid request"}
        assert len(app.state.engine.registry) == 0


class TestQueries:
    def test_results_rank_active_then_disqualified(self, client, app, clock):
        engine = app.state.engine
        ids = {
            name: client.post("/api/register", json={"name": name}).json()["id"]
            for name in ["Alice", "Bob", "Carol"]
        }
        engine.start()
        for racer_id in ids.values():
            engine.lap(racer_id)
        clock.at(800)
        engine.checkpoint(ids["Bob"])
        engine.disqualify(ids["Alice"])

        response = client.get("/api/results")

        assert response.status_code == 200
        assert [r["name"] for r in response.json()["racers"]] == ["Bob", "Carol", "Alice"]

    def test_state_snapshot(self, client, app, clock):
        app.state.engine.start()
        body = client.get("/api/state").json()
        assert body["type"] == "init"
        assert body["status"] == "racing"
        assert body["startTime"] == clock.start
        assert body["totalLaps"] == 3

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
