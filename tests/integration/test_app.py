"""Integration tests for the assembled application."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from saml2sp.core.authentication import Saml2AuthenticationToken
from saml2sp.core.codec import saml_deflate, saml_encode
from saml2sp.main import create_app


class _EchoAuthenticationManager:
    """Synchronous manager returning the decoded response."""

    def authenticate(self, token: Saml2AuthenticationToken) -> dict[str, str]:
        """Accept the token unchanged."""
        return {
            "registration_id": token.registration_id,
            "saml2_response": token.saml2_response,
            "acs": token.relying_party_registration.assertion_consumer_service_location,
        }


@pytest.mark.asyncio
@pytest.mark.usefixtures("configured_environment")
async def test_create_app_serves_configured_registration() -> None:
    """Environment registrations and the host manager are wired end to end."""
    app = create_app(authentication_manager=_EchoAuthenticationManager())

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="https://sp.example.com"
    ) as client:
        response = await client.post(
            "/login/saml2/sso/sp1",
            data={"SAMLResponse": saml_encode(b"<samlp:Response/>")},
            headers={"x-correlation-id": "cid-app"},
        )

    assert response.status_code == 200
    assert response.json() == {
        "registration_id": "sp1",
        "saml2_response": "<samlp:Response/>",
        "acs": "https://sp.example.com/login/saml2/sso/sp1",
    }
    assert response.headers["x-correlation-id"] == "cid-app"
    assert response.headers["cache-control"] == "no-store"


@pytest.mark.asyncio
@pytest.mark.usefixtures("configured_environment")
async def test_create_app_applies_configured_inflate_cap() -> None:
    """Redirect payloads inflating past the configured cap are rejected."""
    app = create_app(authentication_manager=_EchoAuthenticationManager())

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="https://sp.example.com"
    ) as client:
        response = await client.get(
            "/login/saml2/sso/sp1",
            params={"SAMLResponse": saml_encode(saml_deflate("x" * 4096))},
        )

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid SAML response.", "code": "invalid_response"}


@pytest.mark.asyncio
@pytest.mark.usefixtures("configured_environment")
async def test_create_app_without_manager_fails_closed() -> None:
    """The default manager dependency refuses to authenticate."""
    app = create_app()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="https://sp.example.com"
    ) as client:
        response = await client.post(
            "/login/saml2/sso/sp1",
            data={"SAMLResponse": saml_encode(b"<samlp:Response/>")},
        )

    assert response.status_code == 503
    assert response.json()["code"] == "internal_validation_error"
