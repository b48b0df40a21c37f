"""Outbound authentication requests awaiting a SAML response."""

from __future__ import annotations

import json
import secrets
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Protocol

import structlog
from redis import asyncio as redis_async
from redis.asyncio.client import Redis
from redis.exceptions import RedisError
from starlette.requests import Request
from starlette.responses import Response

from saml2sp.config import get_settings
from saml2sp.core.binding import Saml2MessageBinding
from saml2sp.core.errors import Saml2AuthenticationError, Saml2Error, Saml2ErrorCodes

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Saml2AuthenticationRequest(ABC):
    """An issued AuthnRequest kept until its response arrives.

    Concrete requests are the Redirect and POST variants below.
    """

    saml_request: str
    authentication_request_uri: str
    relying_party_registration_id: str
    id: str | None = None
    relay_state: str | None = None

    @property
    @abstractmethod
    def binding(self) -> Saml2MessageBinding:
        """Return the binding the request was sent over."""


@dataclass(frozen=True)
class Saml2RedirectAuthenticationRequest(Saml2AuthenticationRequest):
    """AuthnRequest sent over the HTTP-Redirect binding."""

    sig_alg: str | None = None
    signature: str | None = None

    @property
    def binding(self) -> Saml2MessageBinding:
        return Saml2MessageBinding.REDIRECT


@dataclass(frozen=True)
class Saml2PostAuthenticationRequest(Saml2AuthenticationRequest):
    """AuthnRequest sent over the HTTP-POST binding."""

    @property
    def binding(self) -> Saml2MessageBinding:
        return Saml2MessageBinding.POST


def authentication_request_to_dict(
    authentication_request: Saml2AuthenticationRequest,
) -> dict[str, Any]:
    """Serialize a pending request to a JSON-compatible mapping."""
    payload = asdict(authentication_request)
    payload["binding"] = authentication_request.binding.name
    return payload


def authentication_request_from_dict(payload: dict[str, Any]) -> Saml2AuthenticationRequest:
    """Rebuild a pending request from its serialized mapping."""
    data = dict(payload)
    binding = Saml2MessageBinding[data.pop("binding")]
    if binding is Saml2MessageBinding.REDIRECT:
        return Saml2RedirectAuthenticationRequest(**data)
    return Saml2PostAuthenticationRequest(**data)


class Saml2AuthenticationRequestRepository(Protocol):
    """Store correlating inbound responses with their outbound requests."""

    def load_and_consume(
        self, request: Request
    ) -> Saml2AuthenticationRequest | None | Awaitable[Saml2AuthenticationRequest | None]: ...


class RedisSaml2AuthenticationRequestRepository:
    """Keep pending requests in Redis, correlated through an opaque cookie."""

    def __init__(
        self,
        redis_client: Redis,
        ttl_seconds: int,
        cookie_name: str = "SAML2_AUTHN_REQUEST",
        cookie_secure: bool = True,
    ) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._cookie_name = cookie_name
        self._cookie_secure = cookie_secure

    async def save_authentication_request(
        self,
        authentication_request: Saml2AuthenticationRequest | None,
        response: Response,
    ) -> None:
        """Persist a pending request and hand its key to the browser."""
        if authentication_request is None:
            return
        correlation_key = secrets.token_urlsafe(32)
        try:
            await self._redis.setex(
                self._request_key(correlation_key),
                self._ttl_seconds,
                json.dumps(authentication_request_to_dict(authentication_request)),
            )
        except RedisError as exc:
            raise _backend_unavailable() from exc
        # SameSite=None so the cookie accompanies the cross-site POST from the IdP.
        response.set_cookie(
            self._cookie_name,
            correlation_key,
            max_age=self._ttl_seconds,
            httponly=True,
            secure=self._cookie_secure,
            samesite="none",
        )

    async def load_authentication_request(
        self, request: Request
    ) -> Saml2AuthenticationRequest | None:
        """Read the pending request without consuming it."""
        correlation_key = request.cookies.get(self._cookie_name)
        if not correlation_key:
            return None
        try:
            raw_payload = await self._redis.get(self._request_key(correlation_key))
        except RedisError as exc:
            raise _backend_unavailable() from exc
        return self._deserialize(raw_payload)

    async def load_and_consume(self, request: Request) -> Saml2AuthenticationRequest | None:
        """Load and delete the pending request (one-time use)."""
        correlation_key = request.cookies.get(self._cookie_name)
        if not correlation_key:
            return None
        key = self._request_key(correlation_key)
        try:
            if hasattr(self._redis, "getdel"):
                raw_payload = await self._redis.getdel(key)
            else:
                raw_payload = await self._redis.get(key)
                if raw_payload is not None:
                    await self._redis.delete(key)
        except RedisError as exc:
            raise _backend_unavailable() from exc
        authentication_request = self._deserialize(raw_payload)
        if authentication_request is not None:
            logger.info(
                "saml2_authn_request_consumed",
                relying_party_registration_id=authentication_request.relying_party_registration_id,
                binding=authentication_request.binding.name,
            )
        return authentication_request

    def expire_cookie(self, response: Response) -> None:
        """Clear the correlation cookie on the browser."""
        response.delete_cookie(
            self._cookie_name,
            httponly=True,
            secure=self._cookie_secure,
            samesite="none",
        )

    @staticmethod
    def _deserialize(raw_payload: str | bytes | None) -> Saml2AuthenticationRequest | None:
        """Decode a stored payload, failing closed on corruption."""
        if raw_payload is None:
            return None
        try:
            return authentication_request_from_dict(json.loads(raw_payload))
        except (TypeError, KeyError, ValueError) as exc:
            raise Saml2AuthenticationError(
                Saml2Error(
                    Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR,
                    "Stored authentication request is unreadable.",
                ),
                status_code=401,
            ) from exc

    @staticmethod
    def _request_key(correlation_key: str) -> str:
        """Build Redis key for a pending authentication request."""
        return f"saml2_authn_request:{correlation_key}"


def _backend_unavailable() -> Saml2AuthenticationError:
    """Build the error raised when the request store cannot be reached."""
    return Saml2AuthenticationError(
        Saml2Error(
            Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR,
            "Authentication request store unavailable.",
        ),
        status_code=503,
    )


@lru_cache
def get_redis_client() -> Redis:
    """Create and cache Redis client for pending request storage."""
    settings = get_settings()
    return redis_async.from_url(settings.redis.url, decode_responses=True)


@lru_cache
def get_authentication_request_repository() -> RedisSaml2AuthenticationRequestRepository:
    """Create and cache the pending authentication request repository."""
    settings = get_settings()
    return RedisSaml2AuthenticationRequestRepository(
        redis_client=get_redis_client(),
        ttl_seconds=settings.saml2.authn_request_ttl_seconds,
        cookie_name=settings.saml2.authn_request_cookie_name,
        cookie_secure=settings.saml2.authn_request_cookie_secure,
    )
