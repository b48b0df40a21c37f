"""Conventional SAML 2.0 binding parameter names."""

from __future__ import annotations


class Saml2ParameterNames:
    """HTTP parameter names defined by the SAML 2.0 bindings."""

    SAML_RESPONSE = "SAMLResponse"
    SAML_REQUEST = "SAMLRequest"
    RELAY_STATE = "RelayState"
    SIG_ALG = "SigAlg"
    SIGNATURE = "Signature"
