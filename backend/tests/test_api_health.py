"""Tests for the health endpoint."""

from app.core.config import settings


def test_health_returns_ok(client):
    # No actor headers: health checks come from outside the auth gateway
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": settings.app_name}
