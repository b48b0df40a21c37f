"""Relying party registrations and per-request registration resolution."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Protocol

from starlette.requests import Request

from saml2sp.config import Settings, get_settings
from saml2sp.core.binding import Saml2MessageBinding

_SSO_PATH_PATTERN = re.compile(r"/login/saml2/sso/(?P<registration_id>[^/]+)/?$")
_REGISTRATION_ID_PATH_PARAM = "registration_id"


@dataclass(frozen=True)
class AssertingPartyDetails:
    """Identity provider details a registration trusts."""

    entity_id: str
    single_sign_on_service_location: str
    single_sign_on_service_binding: Saml2MessageBinding = Saml2MessageBinding.REDIRECT
    verification_x509_certificates: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelyingPartyRegistration:
    """Service provider configuration governing one tenant's SAML messages."""

    registration_id: str
    entity_id: str
    assertion_consumer_service_location: str
    asserting_party: AssertingPartyDetails
    assertion_consumer_service_binding: Saml2MessageBinding = field(
        default=Saml2MessageBinding.POST
    )


class RelyingPartyRegistrationRepository(Protocol):
    """Lookup of registrations by identifier."""

    def find_by_registration_id(self, registration_id: str) -> RelyingPartyRegistration | None: ...


class RelyingPartyRegistrationResolver(Protocol):
    """Resolve the registration that governs an inbound request."""

    def resolve(
        self, request: Request, registration_id: str | None = None
    ) -> RelyingPartyRegistration | None: ...


class InMemoryRelyingPartyRegistrationRepository:
    """Registration repository backed by an immutable mapping."""

    def __init__(self, registrations: Iterable[RelyingPartyRegistration]) -> None:
        by_id: dict[str, RelyingPartyRegistration] = {}
        for registration in registrations:
            if registration.registration_id in by_id:
                raise ValueError(
                    f"Duplicate relying party registration '{registration.registration_id}'."
                )
            by_id[registration.registration_id] = registration
        self._by_id = by_id

    def find_by_registration_id(self, registration_id: str) -> RelyingPartyRegistration | None:
        """Return the registration for the identifier, if any."""
        return self._by_id.get(registration_id)

    def __iter__(self) -> Iterator[RelyingPartyRegistration]:
        return iter(self._by_id.values())


class DefaultRelyingPartyRegistrationResolver:
    """Resolve registrations from the request path and expand URL templates.

    The identifier comes from the explicit argument, then the
    ``registration_id`` path parameter, then a ``/login/saml2/sso/{id}``
    path match. ``{baseUrl}``, ``{baseScheme}``, ``{baseHost}``,
    ``{basePort}``, ``{basePath}`` and ``{registrationId}`` are expanded in
    the entity ID and assertion consumer service location.
    """

    def __init__(self, repository: RelyingPartyRegistrationRepository) -> None:
        self._repository = repository

    def resolve(
        self, request: Request, registration_id: str | None = None
    ) -> RelyingPartyRegistration | None:
        """Return the templated registration for the request, or None."""
        resolved_id = registration_id or self._registration_id_from_request(request)
        if not resolved_id:
            return None
        registration = self._repository.find_by_registration_id(resolved_id)
        if registration is None:
            return None
        variables = _template_variables(request, registration.registration_id)
        return replace(
            registration,
            entity_id=_expand(registration.entity_id, variables),
            assertion_consumer_service_location=_expand(
                registration.assertion_consumer_service_location, variables
            ),
        )

    @staticmethod
    def _registration_id_from_request(request: Request) -> str | None:
        """Extract a registration identifier from path params or path."""
        path_value = request.path_params.get(_REGISTRATION_ID_PATH_PARAM)
        if path_value:
            return str(path_value)
        match = _SSO_PATH_PATTERN.search(request.url.path)
        return match.group("registration_id") if match else None


class _CallableRegistrationResolver:
    """Resolver protocol over a single-argument lookup function."""

    def __init__(
        self, lookup: Callable[[Request], RelyingPartyRegistration | None]
    ) -> None:
        self._lookup = lookup

    def resolve(
        self, request: Request, registration_id: str | None = None
    ) -> RelyingPartyRegistration | None:
        del registration_id
        return self._lookup(request)


def resolver_from_callable(
    lookup: Callable[[Request], RelyingPartyRegistration | None],
) -> RelyingPartyRegistrationResolver:
    """Adapt a ``request -> registration`` function to the resolver protocol."""
    return _CallableRegistrationResolver(lookup)


def registrations_from_settings(settings: Settings) -> list[RelyingPartyRegistration]:
    """Build registrations from the SAML 2.0 settings section."""
    return [
        RelyingPartyRegistration(
            registration_id=item.registration_id,
            entity_id=item.entity_id,
            assertion_consumer_service_location=item.assertion_consumer_service_location,
            asserting_party=AssertingPartyDetails(
                entity_id=item.asserting_party_entity_id,
                single_sign_on_service_location=str(item.asserting_party_sso_url),
                verification_x509_certificates=tuple(
                    certificate.get_secret_value()
                    for certificate in item.asserting_party_x509_certificates
                ),
            ),
        )
        for item in settings.saml2.registrations
    ]


def _template_variables(request: Request, registration_id: str) -> dict[str, str]:
    """Compute URL template variables from the inbound request."""
    url = request.url
    scheme = url.scheme
    # netloc keeps IPv6 brackets; drop any userinfo before splitting off the port.
    authority = url.netloc.rpartition("@")[2]
    port = f":{url.port}" if url.port is not None else ""
    host = authority[: -len(port)] if port and authority.endswith(port) else authority
    base_path = str(request.scope.get("root_path", "")).rstrip("/")
    return {
        "baseUrl": f"{scheme}://{authority}{base_path}",
        "baseScheme": scheme,
        "baseHost": host,
        "basePort": port,
        "basePath": base_path,
        "registrationId": registration_id,
    }


def _expand(template: str, variables: dict[str, str]) -> str:
    """Replace ``{name}`` placeholders with known variables."""
    for name, value in variables.items():
        template = template.replace("{" + name + "}", value)
    return template


@lru_cache
def get_relying_party_registration_resolver() -> RelyingPartyRegistrationResolver:
    """Create and cache the configured registration resolver."""
    repository = InMemoryRelyingPartyRegistrationRepository(
        registrations_from_settings(get_settings())
    )
    return DefaultRelyingPartyRegistrationResolver(repository)
