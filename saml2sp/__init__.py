"""Public SAML 2.0 response conversion exports."""

from saml2sp.core.authentication import (
    Saml2AuthenticationManager,
    Saml2AuthenticationToken,
    assemble_token,
)
from saml2sp.core.authn_requests import (
    RedisSaml2AuthenticationRequestRepository,
    Saml2AuthenticationRequest,
    Saml2AuthenticationRequestRepository,
    Saml2PostAuthenticationRequest,
    Saml2RedirectAuthenticationRequest,
)
from saml2sp.core.binding import Saml2MessageBinding, classify_binding
from saml2sp.core.converter import Saml2AuthenticationTokenConverter
from saml2sp.core.errors import Saml2AuthenticationError, Saml2Error, Saml2ErrorCodes
from saml2sp.core.parameters import Saml2ParameterNames
from saml2sp.core.registration import (
    AssertingPartyDetails,
    DefaultRelyingPartyRegistrationResolver,
    InMemoryRelyingPartyRegistrationRepository,
    RelyingPartyRegistration,
    RelyingPartyRegistrationResolver,
    resolver_from_callable,
)

__all__ = [
    "AssertingPartyDetails",
    "DefaultRelyingPartyRegistrationResolver",
    "InMemoryRelyingPartyRegistrationRepository",
    "RedisSaml2AuthenticationRequestRepository",
    "RelyingPartyRegistration",
    "RelyingPartyRegistrationResolver",
    "Saml2AuthenticationError",
    "Saml2AuthenticationManager",
    "Saml2AuthenticationRequest",
    "Saml2AuthenticationRequestRepository",
    "Saml2AuthenticationToken",
    "Saml2AuthenticationTokenConverter",
    "Saml2Error",
    "Saml2ErrorCodes",
    "Saml2MessageBinding",
    "Saml2ParameterNames",
    "Saml2PostAuthenticationRequest",
    "Saml2RedirectAuthenticationRequest",
    "assemble_token",
    "classify_binding",
    "resolver_from_callable",
]
