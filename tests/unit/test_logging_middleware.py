"""Unit tests for logging middleware SAML payload redaction."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient

from saml2sp.middleware import logging as logging_module
from saml2sp.middleware.logging import REDACTED, LoggingMiddleware


class _CaptureLogger:
    """Capture structlog-like logger calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, event: str, **kwargs: Any) -> None:
        """Capture info-level calls."""
        self.calls.append(("info", event, kwargs))

    def warning(self, event: str, **kwargs: Any) -> None:
        """Capture warning-level calls."""
        self.calls.append(("warning", event, kwargs))

    def exception(self, event: str, **kwargs: Any) -> None:
        """Capture exception-level calls."""
        self.calls.append(("exception", event, kwargs))


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/login/saml2/sso/sp1")
    async def sso() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/rejected")
    async def rejected() -> None:
        raise HTTPException(status_code=401, detail="rejected")

    return app


@pytest.mark.asyncio
async def test_logging_middleware_redacts_saml_message_parameters(monkeypatch) -> None:
    """Request logs never contain raw SAML messages, signatures, or relay state."""
    capture = _CaptureLogger()
    monkeypatch.setattr(logging_module, "logger", capture)

    async with AsyncClient(
        transport=ASGITransport(app=_build_app()),
        base_url="http://testserver",
    ) as client:
        response = await client.get(
            "/login/saml2/sso/sp1",
            params={
                "SAMLResponse": "c2VjcmV0LXJlc3BvbnNl",
                "Signature": "c2lnbmF0dXJl",
                "RelayState": "relay-secret",
                "SigAlg": "rsa-sha256",
            },
        )

    assert response.status_code == 200
    assert len(capture.calls) == 1
    level, event, payload = capture.calls[0]
    assert level == "info"
    assert event == "request_completed"
    assert payload["query_params"]["SAMLResponse"] == REDACTED
    assert payload["query_params"]["Signature"] == REDACTED
    assert payload["query_params"]["RelayState"] == REDACTED
    assert payload["query_params"]["SigAlg"] == "rsa-sha256"

    serialized = str(payload)
    assert "c2VjcmV0LXJlc3BvbnNl" not in serialized
    assert "relay-secret" not in serialized


@pytest.mark.asyncio
async def test_logging_middleware_logs_client_errors_as_warnings(monkeypatch) -> None:
    """4xx responses are logged at WARNING level."""
    capture = _CaptureLogger()
    monkeypatch.setattr(logging_module, "logger", capture)

    async with AsyncClient(
        transport=ASGITransport(app=_build_app()),
        base_url="http://testserver",
    ) as client:
        response = await client.get("/rejected", headers={"x-forwarded-for": "203.0.113.9"})

    assert response.status_code == 401
    [(level, event, payload)] = capture.calls
    assert (level, event) == ("warning", "request_completed")
    assert payload["status_code"] == 401
    assert payload["client_ip"] == "203.0.113.9"
