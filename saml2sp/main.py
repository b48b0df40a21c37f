"""FastAPI application factory."""

from fastapi import FastAPI

from saml2sp.config import configure_structlog, get_settings
from saml2sp.core.authentication import Saml2AuthenticationManager
from saml2sp.error_handlers import register_exception_handlers
from saml2sp.middleware.correlation_id import CorrelationIdMiddleware
from saml2sp.middleware.logging import LoggingMiddleware
from saml2sp.middleware.security_headers import SecurityHeadersMiddleware
from saml2sp.routers import health, saml2


def create_app(authentication_manager: Saml2AuthenticationManager | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_structlog(settings)

    app = FastAPI(title=settings.app.service)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(app, environment=settings.app.environment)

    app.include_router(saml2.router)
    app.include_router(health.router)
    if authentication_manager is not None:
        app.dependency_overrides[saml2.get_authentication_manager] = (
            lambda: authentication_manager
        )
    return app
