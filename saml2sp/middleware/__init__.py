"""Middleware package exports."""

from saml2sp.middleware.correlation_id import CorrelationIdMiddleware
from saml2sp.middleware.logging import LoggingMiddleware
from saml2sp.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "CorrelationIdMiddleware",
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
]
