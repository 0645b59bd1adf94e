"""Tests for JSON log formatting and request id propagation."""
import json
import logging
import sys

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fleet_tracking.api.middleware.request_id import RequestIdMiddleware
from fleet_tracking.core.context import request_id_var
from fleet_tracking.core.logging import JSONFormatter


def _record(msg="Allocated %s", args=("ACM0000000000US",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("fleet_tracking.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "fleet_tracking.test"
        assert entry["message"] == "Allocated ACM0000000000US"
        assert "request_id" not in entry

    def test_includes_request_id(self):
        token = request_id_var.set("req-123")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            request_id_var.reset(token)
        assert entry["request_id"] == "req-123"

    def test_masks_sensitive_extra(self):
        entry = json.loads(
            JSONFormatter().format(_record(api_key="live_abc", owner_type="order"))
        )
        assert entry["extra"] == {"api_key": "********", "owner_type": "order"}

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestRequestIdMiddleware:
    @pytest.fixture
    def app(self):
        _app = FastAPI()
        _app.add_middleware(RequestIdMiddleware)

        @_app.get("/echo")
        async def echo():
            return {"request_id": request_id_var.get()}

        return _app

    @pytest.mark.asyncio
    async def test_client_id_is_kept(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/echo", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"
        assert resp.json() == {"request_id": "abc-123"}

    @pytest.mark.asyncio
    async def test_invalid_id_replaced(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/echo", headers={"X-Request-ID": "bad id!"})
        assert resp.headers["X-Request-ID"] != "bad id!"
        assert resp.json()["request_id"] == resp.headers["X-Request-ID"]
