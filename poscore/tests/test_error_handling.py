"""
Tests for the shared error taxonomy and the JSON error envelope.
"""

import asyncio
import unittest

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from poscore.common.error_handling import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceTimeoutError,
    error_response,
    register_exception_handlers,
    with_timeout,
)


class TestErrorResponse(unittest.TestCase):

    def test_shape_with_details(self):
        body = error_response(ConflictError("Email taken", field="email"))
        self.assertEqual(body, {
            "status": "error",
            "code": "conflict_error",
            "message": "Email taken",
            "details": {"field": "email"},
        })

    def test_details_omitted_when_empty(self):
        body = error_response(NotFoundError("Nope"))
        self.assertNotIn("details", body)

    def test_foreign_exception_is_masked(self):
        body = error_response(RuntimeError("password=hunter2"))
        self.assertEqual(body["message"], "Internal server error")
        self.assertNotIn("hunter2", str(body))

    def test_status_codes(self):
        self.assertEqual(ForbiddenError().status_code, 403)
        self.assertEqual(NotFoundError("x").status_code, 404)
        self.assertEqual(ConflictError("x").status_code, 409)
        self.assertEqual(ServiceTimeoutError().status_code, 503)


@pytest.mark.asyncio
async def test_with_timeout_passes_result_through():
    async def quick():
        return 42

    assert await with_timeout(quick(), 1.0, "quick") == 42


@pytest.mark.asyncio
async def test_with_timeout_raises_service_timeout():
    with pytest.raises(ServiceTimeoutError) as exc_info:
        await with_timeout(asyncio.sleep(1), 0.01, "sleepy")

    assert exc_info.value.details["operation"] == "sleepy"


@pytest.fixture
def error_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Duplicate", field="code")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.get("/items/{item_id}")
    async def item(item_id: int):
        return {"id": item_id}

    return app


@pytest.mark.asyncio
async def test_handlers_render_envelopes(error_app):
    transport = ASGITransport(app=error_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        conflict = await client.get("/conflict")
        boom = await client.get("/boom")
        invalid = await client.get("/items/abc")

    assert conflict.status_code == 409
    assert conflict.json()["details"] == {"field": "code"}

    assert boom.status_code == 500
    assert boom.json() == {"status": "error", "code": "unknown_error", "message": "Internal server error"}

    assert invalid.status_code == 422
    assert invalid.json()["details"]["errors"][0]["field"] == "path.item_id"
