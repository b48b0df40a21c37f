"""Shared integration-test fixtures for environment-driven application wiring."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest


def _clear_dependency_caches() -> None:
    """Clear all singleton/lru-cache dependencies between tests."""
    from saml2sp.config import get_settings
    from saml2sp.core.authn_requests import (
        get_authentication_request_repository,
        get_redis_client,
    )
    from saml2sp.core.converter import get_saml2_token_converter
    from saml2sp.core.registration import get_relying_party_registration_resolver

    get_settings.cache_clear()
    get_redis_client.cache_clear()
    get_authentication_request_repository.cache_clear()
    get_relying_party_registration_resolver.cache_clear()
    get_saml2_token_converter.cache_clear()


@pytest.fixture
def configured_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Provide environment settings with one registration and a small inflate cap."""
    monkeypatch.setenv("APP__ENVIRONMENT", "production")
    monkeypatch.setenv("APP__SERVICE", "saml2-sp-test")
    monkeypatch.setenv("REDIS__URL", "redis://localhost:6379/15")
    monkeypatch.setenv("SAML2__MAX_INFLATED_BYTES", "2048")
    monkeypatch.setenv(
        "SAML2__REGISTRATIONS",
        json.dumps(
            [
                {
                    "registration_id": "sp1",
                    "asserting_party_entity_id": "https://idp.example.com/metadata",
                    "asserting_party_sso_url": "https://idp.example.com/sso",
                }
            ]
        ),
    )
    _clear_dependency_caches()
    yield
    _clear_dependency_caches()
