"""Integration tests for application-wide behaviour: health, headers, error format."""
import pytest


@pytest.mark.integration
class TestApplication:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"]["status"] == "connected"

    def test_version_header(self, client):
        response = client.get("/health")
        assert response.headers["X-API-Version"] == "1.0.0"

    def test_request_id_header(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_request_id_propagated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "wallet-gw-7"})
        assert response.headers["X-Request-ID"] == "wallet-gw-7"

    def test_error_envelope(self, client):
        """Rejected operations use one error shape with a machine-readable code."""
        response = client.get("/api/v1/meetings/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "not_found", "message": "Meeting not found", "deadline": None},
        }

    def test_openapi_lists_routes(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert "/api/v1/meetings" in paths
        assert "/api/v1/meetings/{meeting_id}/settlement" in paths
        assert "/api/v1/wallets/{wallet_address}/meetings" in paths
