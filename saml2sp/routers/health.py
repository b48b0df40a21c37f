"""Health check router endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError

from saml2sp.config import get_settings
from saml2sp.core.authn_requests import get_redis_client
from saml2sp.core.errors import Saml2ErrorCodes

router = APIRouter(prefix="/health", tags=["health"])


async def check_redis_ready() -> bool:
    """Return True when the pending request store responds to PING."""
    client = get_redis_client()
    try:
        return bool(await client.ping())
    except (RedisError, OSError):
        return False


def check_registrations_ready() -> bool:
    """Return True when at least one relying party is registered."""
    return bool(get_settings().saml2.registrations)


@router.get("/live")
async def live() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "live"}


@router.get("/ready")
async def ready(
    redis_ready: Annotated[bool, Depends(check_redis_ready)],
    registrations_ready: Annotated[bool, Depends(check_registrations_ready)],
) -> dict[str, str]:
    """Readiness probe requiring Redis and a configured registration."""
    if not redis_ready or not registrations_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "detail": "Service not ready.",
                "code": Saml2ErrorCodes.INTERNAL_VALIDATION_ERROR,
            },
        )
    return {"status": "ready"}
