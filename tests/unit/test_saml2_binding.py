"""Unit tests for SAML binding classification."""

from __future__ import annotations

import pytest

from saml2sp.core.binding import Saml2MessageBinding, classify_binding


@pytest.mark.parametrize("method", ["GET", "get", "Get"])
def test_get_requests_use_redirect_binding(method: str) -> None:
    """GET in any case is classified as HTTP-Redirect."""
    assert classify_binding(method) is Saml2MessageBinding.REDIRECT


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
def test_non_get_requests_use_post_binding(method: str) -> None:
    """Every method other than GET is treated as HTTP-POST framing."""
    assert classify_binding(method) is Saml2MessageBinding.POST


def test_binding_urns_match_oasis_binding_identifiers() -> None:
    """Binding members expose their SAML 2.0 URNs."""
    assert Saml2MessageBinding.REDIRECT.urn == "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect"
    assert Saml2MessageBinding.POST.urn == "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST"
