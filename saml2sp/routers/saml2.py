"""SAML 2.0 assertion consumer service routes."""

from __future__ import annotations

import inspect
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from saml2sp.core.authentication import Saml2AuthenticationManager
from saml2sp.core.authn_requests import (
    RedisSaml2AuthenticationRequestRepository,
    get_authentication_request_repository,
)
from saml2sp.core.converter import (
    Saml2AuthenticationTokenConverter,
    get_saml2_token_converter,
    saml_response_parameter,
)
from saml2sp.core.errors import Saml2AuthenticationError, Saml2Error, Saml2ErrorCodes

router = APIRouter(prefix="/login/saml2", tags=["saml2"])


def get_authentication_manager() -> Saml2AuthenticationManager:
    """Default manager dependency; host applications override it."""
    raise Saml2AuthenticationError(
        Saml2Error(
            Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR,
            "No SAML authentication manager is configured.",
        ),
        status_code=503,
    )


@router.api_route("/sso/{registration_id}", methods=["GET", "POST"], response_model=None)
async def saml2_sso(
    request: Request,
    registration_id: str,
    converter: Annotated[Saml2AuthenticationTokenConverter, Depends(get_saml2_token_converter)],
    repository: Annotated[
        RedisSaml2AuthenticationRequestRepository,
        Depends(get_authentication_request_repository),
    ],
    authentication_manager: Annotated[
        Saml2AuthenticationManager, Depends(get_authentication_manager)
    ],
) -> JSONResponse:
    """Convert the SAML response and hand the token to the authentication manager."""
    token = await converter.convert(request)
    if token is None and not await saml_response_parameter(request):
        raise Saml2AuthenticationError(
            Saml2Error(
                Saml2ErrorCodes.MALFORMED_RESPONSE_DATA,
                "No SAMLResponse parameter found.",
            ),
            status_code=400,
        )
    if token is None:
        raise Saml2AuthenticationError(
            Saml2Error(
                Saml2ErrorCodes.RELYING_PARTY_REGISTRATION_NOT_FOUND,
                "No relying party registration found.",
            ),
            status_code=401,
        )
    outcome = authentication_manager.authenticate(token)
    result = await outcome if inspect.isawaitable(outcome) else outcome
    response = JSONResponse(content=dict(result))
    repository.expire_cookie(response)
    return response
