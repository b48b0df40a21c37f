"""Application settings and logging configuration."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any, Literal

import structlog
from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_CONTEXT: dict[str, str] = {"environment": "development", "service": "saml2-sp"}


class AppSettings(BaseModel):
    """Application identity and runtime settings."""

    environment: Literal["development", "staging", "production"]
    service: str = "saml2-sp"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class RedisSettings(BaseModel):
    """Redis connection settings."""

    url: str = Field(description="Redis URL.")

    @field_validator("url")
    @classmethod
    def validate_redis_url(cls, value: str) -> str:
        """Ensure the Redis URL uses a supported scheme."""
        if not value.startswith(("redis://", "rediss://")):
            raise ValueError("redis.url must start with 'redis://' or 'rediss://'.")
        return value


class RelyingPartySettings(BaseModel):
    """One service provider registration and its asserting party."""

    registration_id: str = Field(min_length=1)
    entity_id: str = "{baseUrl}/saml2/service-provider-metadata/{registrationId}"
    assertion_consumer_service_location: str = "{baseUrl}/login/saml2/sso/{registrationId}"
    asserting_party_entity_id: str
    asserting_party_sso_url: AnyHttpUrl
    asserting_party_x509_certificates: list[SecretStr] = Field(default_factory=list)


class SAML2Settings(BaseModel):
    """SAML 2.0 relying party and response handling settings."""

    registrations: list[RelyingPartySettings] = Field(default_factory=list)
    authn_request_ttl_seconds: int = Field(default=600, ge=1)
    authn_request_cookie_name: str = "SAML2_AUTHN_REQUEST"
    authn_request_cookie_secure: bool = True
    max_inflated_bytes: int | None = Field(
        default=1_048_576,
        ge=1,
        description="Upper bound on inflated Redirect-binding messages; None disables it.",
    )

    @field_validator("registrations")
    @classmethod
    def validate_unique_registration_ids(
        cls, value: list[RelyingPartySettings]
    ) -> list[RelyingPartySettings]:
        """Reject duplicate registration identifiers."""
        seen: set[str] = set()
        for registration in value:
            if registration.registration_id in seen:
                raise ValueError(
                    f"saml2.registrations has duplicate id '{registration.registration_id}'."
                )
            seen.add(registration.registration_id)
        return value


class Settings(BaseSettings):
    """Root application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app: AppSettings
    redis: RedisSettings
    saml2: SAML2Settings = Field(default_factory=SAML2Settings)


def _standard_log_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Inject required structured logging fields."""
    context_vars = structlog.contextvars.get_contextvars()
    event_dict.setdefault("correlation_id", str(context_vars.get("correlation_id", "unknown")))
    event_dict.setdefault("environment", _LOG_CONTEXT["environment"])
    event_dict.setdefault("service", _LOG_CONTEXT["service"])
    event_dict.setdefault("timestamp", datetime.now(UTC).isoformat())
    return event_dict


def configure_structlog(settings: Settings) -> None:
    """Configure structlog for JSON output with required fields."""
    _LOG_CONTEXT["environment"] = settings.app.environment
    _LOG_CONTEXT["service"] = settings.app.service

    log_level = getattr(logging, settings.app.log_level, logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _standard_log_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Load and cache application settings from environment variables."""
    return Settings()
