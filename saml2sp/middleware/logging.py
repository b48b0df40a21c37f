"""Structured request logging middleware with SAML payload redaction."""

from __future__ import annotations

from time import perf_counter
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from saml2sp.core.parameters import Saml2ParameterNames

SENSITIVE_KEYS = {
    Saml2ParameterNames.SAML_RESPONSE.lower(),
    Saml2ParameterNames.SAML_REQUEST.lower(),
    Saml2ParameterNames.SIGNATURE.lower(),
    Saml2ParameterNames.RELAY_STATE.lower(),
    "authorization",
    "cookie",
    "set-cookie",
}
REDACTED = "***REDACTED***"

logger = structlog.get_logger(__name__)


def _is_sensitive_key(key: str) -> bool:
    """Return True when key carries a SAML message or credential material."""
    normalized = key.lower()
    if normalized in SENSITIVE_KEYS:
        return True
    return "token" in normalized or "password" in normalized


def _redact_mapping(values: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive values from a dictionary."""
    return {key: REDACTED if _is_sensitive_key(key) else value for key, value in values.items()}


def _extract_client_ip(request: Request) -> str:
    """Extract client address using X-Forwarded-For when present."""
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    client = request.client
    return client.host if client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured log per request with redacted metadata."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Log completion metadata for each request."""
        start = perf_counter()
        query_params = _redact_mapping(dict(request.query_params.items()))
        log_fields = {
            "method": request.method,
            "path": request.url.path,
            "query_params": query_params,
            "client_ip": _extract_client_ip(request),
            "user_agent": request.headers.get("user-agent", ""),
        }

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_completed",
                status_code=500,
                duration_ms=round((perf_counter() - start) * 1000, 2),
                **log_fields,
            )
            raise

        event_logger = logger.warning if response.status_code >= 400 else logger.info
        event_logger(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((perf_counter() - start) * 1000, 2),
            **log_fields,
        )
        return response
