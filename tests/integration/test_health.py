"""
Integration tests for health and utility endpoints.

Tests basic API health and middleware behavior.
"""
from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for /health and /ready endpoints."""

    def test_health_check(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_readiness_check(self, client: TestClient):
        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"


class TestDocsEndpoint:
    """Tests for documentation endpoints."""

    def test_docs_accessible(self, client: TestClient):
        response = client.get("/docs")

        assert response.status_code == 200

    def test_openapi_json(self, client: TestClient):
        response = client.get("/openapi.json")

        assert response.status_code == 200
        data = response.json()
        assert data["info"]["title"] == "AttestCheck API"
        assert "/api/v1/analyze-attestation" in data["paths"]


class TestSecurityHeaders:
    """Tests for security headers in responses."""

    def test_security_headers_present(self, client: TestClient):
        response = client.get("/health")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert "Content-Security-Policy" in response.headers

    def test_correlation_id_in_response(self, client: TestClient):
        response = client.get("/health")

        assert len(response.headers["X-Correlation-ID"]) > 0

    def test_custom_correlation_id(self, client: TestClient):
        custom_id = "test-correlation-123"
        response = client.get("/health", headers={"X-Correlation-ID": custom_id})

        assert response.headers.get("X-Correlation-ID") == custom_id


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_preflight_from_front_end(self, client: TestClient):
        origin = "https://www.verifiermondevis.fr"
        response = client.options(
            "/api/v1/analyze-attestation",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin

    def test_cors_preflight_unknown_origin(self, client: TestClient):
        response = client.options(
            "/api/v1/analyze-attestation",
            headers={
                "Origin": "https://evil.example",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 400
