"""
Unit tests for domain exceptions and the global exception handlers.

Tests cover:
- Error kinds and their HTTP status codes
- Error envelopes: ``success: false``, ``error``, ``field`` and ``source``
- Handler responses for domain, HTTP, request-parsing and unexpected errors
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from globaledge.core.exceptions import (
    STATUS_BY_KIND,
    AppException,
    BackendUnavailable,
    BusinessRuleViolation,
    ConflictException,
    ErrorKind,
    NotFoundException,
    UnsupportedOperation,
    ValidationFailure,
    add_exception_handlers,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        "exc, status",
        [
            (ValidationFailure("email"), 400),
            (NotFoundException("Asset", "a-1"), 404),
            (ConflictException("Duplicate email"), 409),
            (BusinessRuleViolation("Invalid transition"), 422),
            (UnsupportedOperation("No PDF"), 501),
            (BackendUnavailable("assets", "list"), 503),
            (AppException("boom"), 500),
        ],
    )
    def test_status_codes(self, exc, status):
        assert exc.status_code == status
        assert isinstance(exc, AppException)

    def test_every_kind_has_a_status(self):
        assert set(STATUS_BY_KIND) == set(ErrorKind)


class TestEnvelopes:
    def test_missing_field_message(self):
        exc = ValidationFailure("email")
        assert exc.to_envelope() == {
            "success": False,
            "error": "Missing required field: email",
            "field": "email",
        }

    def test_invalid_field_message(self):
        exc = ValidationFailure("status", "must be one of new, contacted")
        assert exc.message == "Invalid value for 'status': must be one of new, contacted"

    def test_not_found_carries_source(self):
        envelope = NotFoundException("User", "u-1", source="mock").to_envelope()
        assert envelope["source"] == "mock"
        assert "u-1" in envelope["error"]

    def test_backend_unavailable_names_database(self):
        exc = BackendUnavailable("users", "list", cause=ConnectionError("refused"))
        assert exc.source == "database"
        assert isinstance(exc.cause, ConnectionError)
        assert "users" in exc.message

    def test_details_are_optional(self):
        assert "details" not in AppException("x").to_envelope()
        assert AppException("x", details={"k": 1}).to_envelope()["details"] == {"k": 1}


def _app() -> FastAPI:
    # debug=False keeps Starlette from re-raising before the catch-all runs.
    app = FastAPI(debug=False)
    add_exception_handlers(app)
    return app


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )


class TestExceptionHandlers:
    def test_handlers_registered(self):
        from unittest.mock import MagicMock

        mock_app = MagicMock()
        mock_app.exception_handler = MagicMock(return_value=lambda fn: fn)
        add_exception_handlers(mock_app)
        # AppException, StarletteHTTPException, RequestValidationError, Exception
        assert mock_app.exception_handler.call_count == 4

    @pytest.mark.asyncio
    async def test_domain_exception(self):
        app = _app()

        @app.get("/boom")
        async def boom():
            raise BackendUnavailable("assets", "create")

        async with _client(app) as client:
            resp = await client.get("/boom")
        assert resp.status_code == 503
        assert resp.json() == {
            "success": False,
            "error": "Database unavailable: could not create assets",
            "source": "database",
        }

    @pytest.mark.asyncio
    async def test_global_500_handler(self):
        app = _app()

        @app.get("/crash")
        async def crash():
            raise RuntimeError("unexpected")

        async with _client(app) as client:
            resp = await client.get("/crash")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "Internal Server Error" in body["error"]
        assert "unexpected" not in body["error"]

    @pytest.mark.asyncio
    async def test_unparseable_body_returns_422(self):
        from pydantic import BaseModel

        app = _app()

        class Body(BaseModel):
            name: str

        @app.post("/validate")
        async def validate(body: Body):
            return {"ok": True}

        async with _client(app) as client:
            resp = await client.post("/validate", json={})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["details"]

    @pytest.mark.asyncio
    async def test_unknown_route_404(self):
        async with _client(_app()) as client:
            resp = await client.get("/nonexistent")
        assert resp.status_code == 404
        assert resp.json()["success"] is False
