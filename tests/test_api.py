"""Tests for SpacePlus API application structure.

Tests cover:
- App factory (create_app)
- Health endpoint
- Request ID middleware
- Error envelopes (APIError, 404, validation, unexpected errors)
- OpenAPI documentation endpoints
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from spaceplus.api import create_app
from spaceplus.api.middleware.errors import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationAPIError,
    error_code_for,
)
from spaceplus.api.middleware.request_id import REQUEST_ID_HEADER
from spaceplus.services.social_scheduler import SocialScheduler


class TestAppFactory:
    """Tests for the create_app factory function."""

    def test_create_app_returns_fastapi_instance(self):
        assert isinstance(create_app(), FastAPI)

    def test_create_app_metadata(self):
        app = create_app()
        assert app.title == "SpacePlus API"
        assert app.version == "1.0.0"
        assert app.docs_url == "/api/docs"
        assert app.redoc_url == "/api/redoc"
        assert app.openapi_url == "/api/openapi.json"

    def test_version_from_settings(self, settings):
        settings.app_version = "2.3.4"
        assert create_app(settings).version == "2.3.4"

    def test_state_holds_settings_and_scheduler(self, settings):
        app = create_app(settings)
        assert app.state.settings is settings
        assert isinstance(app.state.social_scheduler, SocialScheduler)
        assert app.state.social_scheduler.is_running is False

    def test_routes_are_mounted_under_api(self):
        paths = {route.path for route in create_app().routes}
        assert {
            "/api/health",
            "/api/auth/login",
            "/api/news",
            "/api/news/{slug}",
            "/api/admin/social-sources",
            "/api/admin/social-posts",
            "/api/admin/social-scheduler",
        } <= paths


class TestHealthEndpoint:
    """Tests for GET /api/health."""

    async def test_healthy(self, api_client: AsyncClient, mock_db):
        response = await api_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"]["status"] == "connected"
        assert data["scheduler"] == {"is_running": False}
        assert data["environment"] == "dev"
        assert "uptime" in data
        mock_db.execute.assert_awaited_once()

    async def test_unhealthy_when_database_fails(self, api_client: AsyncClient, mock_db):
        mock_db.execute.side_effect = ConnectionError("connection refused")

        response = await api_client.get("/api/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["error"] == "connection refused"


class TestRequestIDMiddleware:
    """Tests for the X-Request-ID middleware."""

    async def test_generates_request_id(self, api_client: AsyncClient):
        response = await api_client.get("/api/health")
        assert response.headers.get(REQUEST_ID_HEADER)

    async def test_echoes_incoming_request_id(self, api_client: AsyncClient):
        response = await api_client.get(
            "/api/health", headers={REQUEST_ID_HEADER: "req-12345"}
        )
        assert response.headers[REQUEST_ID_HEADER] == "req-12345"

    async def test_request_ids_differ(self, api_client: AsyncClient):
        first = await api_client.get("/api/health")
        second = await api_client.get("/api/health")
        assert first.headers[REQUEST_ID_HEADER] != second.headers[REQUEST_ID_HEADER]


class TestErrorEnvelope:
    """Tests for consistent error responses."""

    async def test_unknown_route(self, api_client: AsyncClient):
        response = await api_client.get("/api/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "not_found"
        assert data["request_id"] == response.headers[REQUEST_ID_HEADER]

    async def test_validation_error_is_400(self, api_client: AsyncClient):
        response = await api_client.get("/api/news", params={"page": 0})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "validation_error"
        assert data["detail"]["errors"][0]["loc"] == ["query", "page"]

    async def test_unexpected_error_is_generic_500(self, test_app, mock_db):
        mock_db.execute.side_effect = [RuntimeError("boom")]
        transport = ASGITransport(app=test_app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/news")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_error"
        assert "boom" not in data["message"]

    def test_error_classes(self):
        not_found = NotFoundError("Social source", "abc")
        assert not_found.status_code == 404
        assert not_found.message == "Social source not found: abc"
        assert ValidationAPIError("bad").status_code == 400
        assert AuthenticationError().status_code == 401
        assert AuthorizationError("no").status_code == 403
        assert APIError("conflict", "taken", status_code=409).error == "conflict"

    @pytest.mark.parametrize(
        ("status_code", "code"),
        [
            (401, "unauthorized"),
            (404, "not_found"),
            (405, "method_not_allowed"),
            (599, "http_error"),
        ],
    )
    def test_error_code_for_status(self, status_code, code):
        assert error_code_for(status_code) == code


class TestOpenAPI:
    async def test_openapi_schema(self, api_client: AsyncClient):
        response = await api_client.get("/api/openapi.json")

        assert response.status_code == 200
        schema = response.json()
        assert schema["info"]["title"] == "SpacePlus API"
        assert "/api/admin/social-sources/{source_id}/sync" in schema["paths"]
