"""Unauthenticated SAML 2.0 token handed to the authentication pipeline."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from saml2sp.core.authn_requests import Saml2AuthenticationRequest
from saml2sp.core.registration import RelyingPartyRegistration


@dataclass(frozen=True)
class Saml2AuthenticationToken:
    """Decoded SAML response plus the context needed to validate it.

    Carries no trust assertion. Signature, issuer and assertion checks happen
    downstream.
    """

    relying_party_registration: RelyingPartyRegistration
    saml2_response: str
    authentication_request: Saml2AuthenticationRequest | None = None

    @property
    def is_authenticated(self) -> bool:
        return False

    @property
    def registration_id(self) -> str:
        return self.relying_party_registration.registration_id


class Saml2AuthenticationManager(Protocol):
    """Consumer that validates a token and returns the authenticated result."""

    def authenticate(
        self, token: Saml2AuthenticationToken
    ) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]: ...


def assemble_token(
    relying_party_registration: RelyingPartyRegistration,
    saml2_response: str,
    authentication_request: Saml2AuthenticationRequest | None,
) -> Saml2AuthenticationToken:
    """Bundle a resolved registration, decoded response and correlated request."""
    return Saml2AuthenticationToken(
        relying_party_registration=relying_party_registration,
        saml2_response=saml2_response,
        authentication_request=authentication_request,
    )
