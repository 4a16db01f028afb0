"""Integration tests for imagegate.api.main: FastAPI REST API endpoints.

All tests use the FastAPI TestClient with the provider mocked by respx, so
the full stack runs (lifespan, middleware, gateway, adapter) without any
real network access. Tests cover:

- ``GET /api/health``: liveness.
- ``POST /api/generate-image``: success and every failure class.
- Rate limiting, security headers and CORS.
- ``GET /`` and other paths: frontend serving.
"""

from __future__ import annotations

import base64

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from imagegate.api.main import create_app
from imagegate.core.gateway import ImageGenerationGateway

from conftest import STABILITY_URL, VALID_PNG_CONTENT, make_config

CITY_PROMPT = "A futuristic city skyline at sunset"


@pytest.fixture
def provider():
    """Mock router for the upstream provider."""
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Health endpoint tests.
# ---------------------------------------------------------------------------


class TestHealth:
    """Test GET /api/health."""

    def test_health_ok(self, test_client):
        resp = test_client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "OK"
        assert data["environment"] == "development"
        assert "timestamp" in data

    def test_health_reports_environment(self):
        with TestClient(create_app(make_config(environment="production"))) as client:
            assert client.get("/api/health").json()["environment"] == "production"


# ---------------------------------------------------------------------------
# Generation endpoint tests.
# ---------------------------------------------------------------------------


class TestGenerateImage:
    """Test POST /api/generate-image."""

    def test_success(self, test_client, provider, stability_success_body):
        route = provider.post(STABILITY_URL).mock(
            return_value=httpx.Response(200, json=stability_success_body)
        )

        resp = test_client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["prompt"] == CITY_PROMPT
        prefix = "data:image/png;base64,"
        assert data["image"].startswith(prefix)
        assert base64.b64decode(data["image"][len(prefix) :]) == VALID_PNG_CONTENT
        assert route.call_count == 1

    def test_prompt_echoed_untrimmed(self, test_client, provider, stability_success_body):
        provider.post(STABILITY_URL).mock(
            return_value=httpx.Response(200, json=stability_success_body)
        )
        resp = test_client.post("/api/generate-image", json={"prompt": "  a red fox  "})
        assert resp.json()["prompt"] == "  a red fox  "

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"prompt": "a"}, "prompt too short or missing"),
            ({"prompt": "   "}, "prompt too short or missing"),
            ({"prompt": 42}, "prompt too short or missing"),
            ({"prompt": None}, "prompt too short or missing"),
            ({}, "prompt too short or missing"),
            ({"prompt": "x" * 501}, "prompt too long"),
        ],
    )
    def test_validation_failures(self, test_client, provider, body, message):
        route = provider.post(STABILITY_URL)

        resp = test_client.post("/api/generate-image", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": message}
        assert route.call_count == 0

    def test_non_object_body(self, test_client):
        resp = test_client.post("/api/generate-image", json=["a prompt"])
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}

    def test_malformed_json(self, test_client):
        resp = test_client.post(
            "/api/generate-image",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_missing_credential(self, provider):
        route = provider.post(STABILITY_URL)
        app = create_app(make_config(provider_api_key=None))

        with TestClient(app) as client:
            resp = client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Server configuration error. Please check API key setup."
        }
        assert route.call_count == 0

    @pytest.mark.parametrize(
        "status_code, message",
        [
            (401, "API authentication failed. Please check the provider API key."),
            (429, "Rate limit exceeded, please wait before trying again"),
            (503, "Model is loading, please try again in a few moments"),
            (400, "Failed to generate image"),
            (404, "Failed to generate image"),
            (502, "Failed to generate image"),
        ],
    )
    def test_upstream_status_mapped(self, test_client, provider, status_code, message):
        provider.post(STABILITY_URL).mock(
            return_value=httpx.Response(status_code, json={"message": "provider detail"})
        )

        resp = test_client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        expected = status_code if status_code in (401, 429, 503) else 500
        assert resp.status_code == expected
        assert resp.json() == {"error": message}

    def test_network_failure(self, test_client, provider):
        provider.post(STABILITY_URL).mock(side_effect=httpx.ConnectError("unreachable"))

        resp = test_client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        assert resp.status_code == 500
        assert resp.json() == {"error": "internal error"}

    def test_injected_gateway(self, test_config, stability_success_body):
        """A pre-built gateway is used as-is."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json=stability_success_body)
        )
        gateway = ImageGenerationGateway(
            test_config, client=httpx.AsyncClient(transport=transport)
        )

        with TestClient(create_app(test_config, gateway=gateway)) as client:
            resp = client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        assert resp.status_code == 200
        assert client.app.state.gateway is gateway


# ---------------------------------------------------------------------------
# Middleware tests.
# ---------------------------------------------------------------------------


class TestRateLimit:
    """Per-client request budget on /api/ paths."""

    def test_limit_enforced(self):
        with TestClient(create_app(make_config(rate_limit_requests=2))) as client:
            assert client.get("/api/health").status_code == 200
            assert client.get("/api/health").status_code == 200
            resp = client.get("/api/health")

        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests, please try again later."}
        assert "Retry-After" in resp.headers

    def test_rate_limit_headers(self, test_client):
        resp = test_client.get("/api/health")
        assert resp.headers["RateLimit-Limit"] == "20"
        assert resp.headers["RateLimit-Remaining"] == "19"

    def test_frontend_not_limited(self):
        with TestClient(create_app(make_config(rate_limit_requests=1))) as client:
            for _ in range(3):
                assert client.get("/").status_code == 200


class TestBodySizeLimit:
    """Oversized request bodies are refused before parsing."""

    def test_oversized_body_rejected(self, provider):
        route = provider.post(STABILITY_URL)
        app = create_app(make_config(max_body_bytes=100))

        with TestClient(app) as client:
            resp = client.post("/api/generate-image", json={"prompt": "x" * 200})

        assert resp.status_code == 413
        assert resp.json() == {"error": "Request body too large"}
        assert route.call_count == 0

    def test_default_cap_is_one_megabyte(self, test_client, provider):
        provider.post(STABILITY_URL)
        body = b'{"prompt": "' + b"x" * (1024 * 1024) + b'"}'

        resp = test_client.post(
            "/api/generate-image",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 413

    def test_body_under_cap_accepted(self, provider, stability_success_body):
        provider.post(STABILITY_URL).mock(
            return_value=httpx.Response(200, json=stability_success_body)
        )
        app = create_app(make_config(max_body_bytes=1000))

        with TestClient(app) as client:
            resp = client.post("/api/generate-image", json={"prompt": CITY_PROMPT})

        assert resp.status_code == 200


class TestSecurityHeaders:
    """Hardening headers on every response."""

    def test_headers_on_api(self, test_client):
        resp = test_client.get("/api/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"

    def test_headers_on_frontend(self, test_client):
        resp = test_client.get("/")
        assert resp.headers["Referrer-Policy"] == "no-referrer"


class TestCors:
    """CORS restricted to configured origins."""

    def test_allowed_origin(self, test_client):
        resp = test_client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_unknown_origin(self, test_client):
        resp = test_client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "access-control-allow-origin" not in resp.headers


# ---------------------------------------------------------------------------
# Frontend tests.
# ---------------------------------------------------------------------------


class TestFrontend:
    """Static page served for non-API paths."""

    def test_index(self, test_client):
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "/api/generate-image" in resp.text

    def test_client_side_route_serves_index(self, test_client):
        resp = test_client.get("/some/client/route")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]

    def test_static_mount(self, test_client):
        resp = test_client.get("/static/index.html")
        assert resp.status_code == 200

    def test_unknown_api_path(self, test_client):
        resp = test_client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_missing_static_dir(self, tmp_path):
        app = create_app(make_config(static_dir=tmp_path / "missing"))
        with TestClient(app) as client:
            resp = client.get("/")
        assert resp.status_code == 404
