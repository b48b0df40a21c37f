"""Convert inbound SAML 2.0 responses into authentication tokens."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from functools import lru_cache
from urllib.parse import parse_qs

import structlog
from starlette.requests import Request

from saml2sp.config import get_settings
from saml2sp.core.authentication import Saml2AuthenticationToken, assemble_token
from saml2sp.core.authn_requests import (
    Saml2AuthenticationRequest,
    Saml2AuthenticationRequestRepository,
    get_authentication_request_repository,
)
from saml2sp.core.binding import Saml2MessageBinding, classify_binding
from saml2sp.core.codec import DecodeError, decode_message
from saml2sp.core.errors import Saml2AuthenticationError, Saml2Error, Saml2ErrorCodes
from saml2sp.core.parameters import Saml2ParameterNames
from saml2sp.core.registration import (
    RelyingPartyRegistration,
    RelyingPartyRegistrationResolver,
    get_relying_party_registration_resolver,
)

RegistrationLookup = Callable[
    [Request], RelyingPartyRegistration | None | Awaitable[RelyingPartyRegistration | None]
]

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

logger = structlog.get_logger(__name__)


class Saml2AuthenticationTokenConverter:
    """Build ``Saml2AuthenticationToken`` values from inbound HTTP requests.

    Returns None when no registration resolves or no ``SAMLResponse`` is
    present, so another mechanism can handle the request. Undecodable
    payloads raise ``Saml2AuthenticationError`` with ``invalid_response``.
    """

    def __init__(
        self,
        relying_party_registration_resolver: RelyingPartyRegistrationResolver | RegistrationLookup,
        authentication_request_repository: Saml2AuthenticationRequestRepository,
        max_inflated_size: int | None = None,
    ) -> None:
        self._resolve_registration = _adapt_registration_resolver(
            relying_party_registration_resolver
        )
        if authentication_request_repository is None:
            raise TypeError("authentication_request_repository cannot be None")
        self._authentication_request_repository = authentication_request_repository
        self._max_inflated_size = max_inflated_size

    async def convert(self, request: Request) -> Saml2AuthenticationToken | None:
        """Decode the request's SAML response and correlate its context."""
        resolved = self._resolve_registration(request)
        relying_party_registration = await resolved if inspect.isawaitable(resolved) else resolved
        if relying_party_registration is None:
            return None
        saml2_response = await saml_response_parameter(request)
        if not saml2_response:
            return None

        binding = classify_binding(request.method)
        decoded = decode_message(
            saml2_response, binding=binding, max_inflated_size=self._max_inflated_size
        )
        if decoded.error is not None:
            raise _decode_failure(
                decoded.error, binding, relying_party_registration
            ) from decoded.error.cause

        authentication_request = await self._load_authentication_request(request)
        token = assemble_token(
            relying_party_registration=relying_party_registration,
            saml2_response=decoded.value or "",
            authentication_request=authentication_request,
        )
        logger.info(
            "saml2_token_assembled",
            registration_id=token.registration_id,
            binding=binding.name,
            correlated=authentication_request is not None,
        )
        return token

    async def _load_authentication_request(
        self, request: Request
    ) -> Saml2AuthenticationRequest | None:
        """Consume the correlated request, awaiting async repositories."""
        loaded = self._authentication_request_repository.load_and_consume(request)
        return await loaded if inspect.isawaitable(loaded) else loaded


def _adapt_registration_resolver(
    resolver: RelyingPartyRegistrationResolver | RegistrationLookup,
) -> RegistrationLookup:
    """Accept resolver objects as well as plain ``request -> registration`` functions."""
    if resolver is None:
        raise TypeError("relying_party_registration_resolver cannot be None")
    resolve = getattr(resolver, "resolve", None)
    if callable(resolve):
        return lambda request: resolve(request, None)
    if callable(resolver):
        return resolver
    raise TypeError("relying_party_registration_resolver must be a resolver or a callable")


async def saml_response_parameter(request: Request) -> str | None:
    """Read ``SAMLResponse`` from the query string, then from a form body."""
    value = request.query_params.get(Saml2ParameterNames.SAML_RESPONSE)
    if value is not None or request.method.upper() == "GET":
        return value
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith(_FORM_CONTENT_TYPE):
        return None
    body = await request.body()
    if not body:
        return None
    parsed = parse_qs(body.decode("latin-1"), keep_blank_values=True)
    values = parsed.get(Saml2ParameterNames.SAML_RESPONSE)
    return values[-1] if values else None


def _decode_failure(
    error: DecodeError,
    binding: Saml2MessageBinding,
    relying_party_registration: RelyingPartyRegistration,
) -> Saml2AuthenticationError:
    """Log the failed stage and build the uniform authentication error."""
    logger.warning(
        "saml2_response_decode_failed",
        registration_id=relying_party_registration.registration_id,
        binding=binding.name,
        kind=error.kind.value,
        cause=type(error.cause).__name__,
    )
    return Saml2AuthenticationError(
        Saml2Error(Saml2ErrorCodes.INVALID_RESPONSE, "Invalid SAML response."),
        status_code=401,
    )


@lru_cache
def get_saml2_token_converter() -> Saml2AuthenticationTokenConverter:
    """Create and cache the configured token converter."""
    settings = get_settings()
    return Saml2AuthenticationTokenConverter(
        relying_party_registration_resolver=get_relying_party_registration_resolver(),
        authentication_request_repository=get_authentication_request_repository(),
        max_inflated_size=settings.saml2.max_inflated_bytes,
    )
