"""
Tests for bodash health endpoints.
"""

from fastapi.testclient import TestClient

from bodash import __version__


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["database"] == "sqlite"

    def test_health_needs_no_user(self, client: TestClient):
        """Test health check does not require a signed-in user."""
        response = client.get("/health", headers={"X-User-Id": ""})
        assert response.status_code == 200

    def test_optimizer_api_health(self, client: TestClient, fake_api):
        """Test optimization API health and GPU flag."""
        fake_api.using_gpu = True

        response = client.get("/health/optimizer-api")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "using_gpu": True, "gpu_info": None}

    def test_optimizer_api_down(self, client: TestClient, fake_api):
        """Test unreachable optimization API."""
        fake_api.down = True

        response = client.get("/health/optimizer-api")
        assert response.status_code == 503
