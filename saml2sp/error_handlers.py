"""Global exception handlers enforcing API error response contracts."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from saml2sp.core.errors import Saml2AuthenticationError, Saml2ErrorCodes

VALID_ERROR_CODES = Saml2ErrorCodes.all()

_DEFAULT_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: Saml2ErrorCodes.MALFORMED_RESPONSE_DATA,
    401: Saml2ErrorCodes.INVALID_RESPONSE,
    404: Saml2ErrorCodes.RELYING_PARTY_REGISTRATION_NOT_FOUND,
    405: Saml2ErrorCodes.UNSUPPORTED_BINDING,
    422: Saml2ErrorCodes.MALFORMED_RESPONSE_DATA,
    503: Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR,
}

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    """Build standardized JSON error payload."""
    return JSONResponse(status_code=status_code, content={"detail": detail, "code": code})


def _resolve_error_code(status_code: int, raw_code: str | None) -> str:
    """Resolve a valid machine-readable error code."""
    if raw_code in VALID_ERROR_CODES:
        return raw_code
    return _DEFAULT_ERROR_CODE_BY_STATUS.get(
        status_code, Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR
    )


def _extract_detail_and_code(detail: Any) -> tuple[str, str | None]:
    """Normalize exception detail payload into message and optional code."""
    if isinstance(detail, dict):
        raw_detail = detail.get("detail", "Request failed.")
        raw_code = detail.get("code")
        return str(raw_detail), str(raw_code) if raw_code is not None else None
    if isinstance(detail, str):
        return detail, None
    return "Request failed.", None


def _sanitize_detail(detail: str, status_code: int, environment: str) -> str:
    """Hide internal failure details outside development."""
    if environment != "development" and status_code >= 500:
        return "Internal server error."
    return detail


def _extract_client_ip(request: Request) -> str:
    """Extract request client IP with forwarding-header support."""
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    client = request.client
    return client.host if client else "unknown"


def _correlation_id(request: Request) -> str:
    """Return the request correlation ID bound by middleware."""
    return getattr(
        request.state,
        "correlation_id",
        request.headers.get("x-correlation-id", "unknown"),
    )


def _log_auth_failure(request: Request, exc: Saml2AuthenticationError) -> None:
    """Emit WARNING-level log for SAML authentication failures.

    The chained cause is logged by class name only; codec messages and
    payload bytes stay out of both the log and the response.
    """
    cause = exc.__cause__
    logger.warning(
        "auth_failure",
        correlation_id=_correlation_id(request),
        event_type="auth_failure",
        provider="saml2",
        ip_address=_extract_client_ip(request),
        success=False,
        status_code=exc.status_code,
        code=exc.code,
        detail=exc.detail,
        cause=type(cause).__name__ if cause is not None else None,
        path=request.url.path,
        method=request.method,
    )


def register_exception_handlers(app: FastAPI, environment: str) -> None:
    """Register global exception handlers enforcing error shape contract."""

    @app.exception_handler(Saml2AuthenticationError)
    async def handle_saml2_authentication_error(
        request: Request, exc: Saml2AuthenticationError
    ) -> JSONResponse:
        """Render SAML authentication failures without decode internals."""
        _log_auth_failure(request, exc)
        detail = _sanitize_detail(exc.detail, exc.status_code, environment)
        return _error_response(status_code=exc.status_code, detail=detail, code=exc.code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Normalize framework HTTP exceptions to contract payload."""
        raw_detail, raw_code = _extract_detail_and_code(exc.detail)
        code = _resolve_error_code(exc.status_code, raw_code)
        return _error_response(status_code=exc.status_code, detail=raw_detail, code=code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Map request validation errors to standardized payload."""
        detail = "Invalid request payload."
        if environment == "development":
            errors = exc.errors()
            if errors:
                detail = f"Invalid request payload: {errors[0].get('msg', 'validation error')}."
        return _error_response(
            status_code=422, detail=detail, code=Saml2ErrorCodes.MALFORMED_RESPONSE_DATA
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        """Mask internal errors and enforce contract payload."""
        logger.error(
            "unhandled_exception",
            correlation_id=_correlation_id(request),
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        detail = _sanitize_detail(str(exc), 500, environment)
        return _error_response(
            status_code=500, detail=detail, code=Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR
        )
