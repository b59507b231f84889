from datetime import datetime

from wedding_api.database import get_db
from wedding_api.main import app


class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise RuntimeError("connection refused")


def test_health_does_not_touch_database(client):
    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    datetime.fromisoformat(body["timestamp"])


def test_database_health(client):
    response = client.get("/api/health/db")

    assert response.status_code == 200
    assert response.json() == {"database": "connected", "status": "healthy", "result": 1}


def test_database_health_reports_failure(client):
    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = client.get("/api/health/db")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_error_responses_carry_cors_headers_for_allowed_origins(client):
    allowed = client.get("/api/admin/guestbook", headers={"Origin": "http://localhost:3000"})
    foreign = client.get("/api/admin/guestbook", headers={"Origin": "http://evil.example"})

    assert allowed.status_code == 401
    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "access-control-allow-origin" not in foreign.headers
