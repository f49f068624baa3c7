"""Tests for health endpoint (F6)."""

from credhub import __version__


class TestHealth:
    def test_health_ok(self, client):
        """Health returns ok status and version."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert "timestamp" in data
