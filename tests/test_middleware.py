"""
Unit tests for middleware — RequestIDMiddleware and RequestTimingMiddleware.

Uses httpx.AsyncClient against a lightweight FastAPI test app to exercise
both middleware classes through their full dispatch cycle.
"""

import logging
import uuid

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from globaledge.core.logging import RequestIDFilter, request_id_ctx
from globaledge.middleware import REQUEST_ID_HEADER, RequestIDMiddleware, RequestTimingMiddleware


@pytest.fixture()
def test_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request):
        return {"state": request.state.request_id, "context": request_id_ctx.get()}

    return app


async def _get(app: FastAPI, **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.get("/test", **kwargs)


class TestRequestIDMiddleware:
    @pytest.mark.asyncio
    async def test_generates_request_id_when_absent(self, test_app):
        resp = await _get(test_app)
        uuid.UUID(resp.headers[REQUEST_ID_HEADER])

    @pytest.mark.asyncio
    async def test_honours_existing_request_id(self, test_app):
        resp = await _get(test_app, headers={REQUEST_ID_HEADER: "trace-12345"})
        assert resp.headers[REQUEST_ID_HEADER] == "trace-12345"

    @pytest.mark.asyncio
    async def test_id_is_visible_to_handlers_and_logging(self, test_app):
        resp = await _get(test_app, headers={REQUEST_ID_HEADER: "trace-abc"})
        assert resp.json() == {"state": "trace-abc", "context": "trace-abc"}

    @pytest.mark.asyncio
    async def test_context_is_cleared_after_request(self, test_app):
        await _get(test_app, headers={REQUEST_ID_HEADER: "trace-abc"})
        assert request_id_ctx.get() is None


class TestRequestTimingMiddleware:
    @pytest.mark.asyncio
    async def test_adds_process_time_header(self, test_app):
        resp = await _get(test_app)
        value = resp.headers["X-Process-Time"]
        assert value.endswith("ms")
        assert float(value[:-2]) >= 0


class TestRequestIDFilter:
    def test_copies_context_onto_record(self):
        record = logging.LogRecord("globaledge", logging.INFO, __file__, 1, "msg", None, None)
        token = request_id_ctx.set("rid-1")
        try:
            assert RequestIDFilter().filter(record) is True
        finally:
            request_id_ctx.reset(token)
        assert record.request_id == "rid-1"
