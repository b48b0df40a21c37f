"""SAML 2.0 binding classification for inbound protocol messages."""

from __future__ import annotations

from enum import Enum


class Saml2MessageBinding(str, Enum):
    """HTTP bindings able to carry a SAML 2.0 protocol message."""

    POST = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST"
    REDIRECT = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect"

    @property
    def urn(self) -> str:
        """Return the binding URN."""
        return self.value


def classify_binding(method: str) -> Saml2MessageBinding:
    """Return REDIRECT for GET requests and POST for every other method.

    Only the method is consulted. A GET request carrying an uncompressed
    payload is treated as Redirect framing and will fail inflation.
    """
    if method.upper() == "GET":
        return Saml2MessageBinding.REDIRECT
    return Saml2MessageBinding.POST
