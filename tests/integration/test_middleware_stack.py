"""Integration tests for middleware stack behavior."""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient

from saml2sp.middleware import (
    CorrelationIdMiddleware,
    LoggingMiddleware,
    SecurityHeadersMiddleware,
)

_SECURITY_HEADERS = {
    "cache-control": "no-store",
    "pragma": "no-cache",
    "content-security-policy": "default-src 'none'; frame-ancestors 'none'",
    "x-frame-options": "DENY",
    "x-content-type-options": "nosniff",
    "referrer-policy": "no-referrer",
}


def _build_test_app() -> FastAPI:
    """Build test app with middleware stack wired in production order."""
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/ok")
    async def ok() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/client-error")
    async def client_error() -> None:
        raise HTTPException(status_code=401, detail="unauthorized")

    @app.get("/server-error")
    async def server_error() -> None:
        raise HTTPException(status_code=500, detail="server-error")

    return app


def _assert_security_headers(headers: dict[str, str]) -> None:
    """Assert required security headers are set on response."""
    for header_name, expected_value in _SECURITY_HEADERS.items():
        assert headers.get(header_name) == expected_value


@pytest.mark.asyncio
async def test_headers_present_on_success_and_error_responses() -> None:
    """Correlation ID and security headers are present on 2xx/4xx/5xx."""
    app = _build_test_app()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        ok_response = await client.get("/ok", headers={"x-correlation-id": "cid-test"})
        client_error = await client.get("/client-error")
        server_error = await client.get("/server-error")

    assert ok_response.status_code == 200
    assert ok_response.headers["x-correlation-id"] == "cid-test"
    _assert_security_headers(dict(ok_response.headers))

    assert client_error.status_code == 401
    assert client_error.headers.get("x-correlation-id")
    _assert_security_headers(dict(client_error.headers))

    assert server_error.status_code == 500
    assert server_error.headers.get("x-correlation-id")
    _assert_security_headers(dict(server_error.headers))


@pytest.mark.asyncio
async def test_oversized_inbound_correlation_id_is_replaced() -> None:
    """Caller correlation IDs beyond the length limit are not echoed."""
    app = _build_test_app()
    supplied = "c" * 129

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/ok", headers={"x-correlation-id": supplied})

    assert response.status_code == 200
    assert response.headers["x-correlation-id"] != supplied
    assert len(response.headers["x-correlation-id"]) == 36
