"""Shared unit-test fixtures for building Starlette requests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import pytest
from starlette.requests import Request

RequestFactory = Callable[..., Request]


def _build_request(
    method: str = "GET",
    path: str = "/login/saml2/sso/sp1",
    query: dict[str, str] | None = None,
    form: dict[str, str] | None = None,
    body: bytes | None = None,
    content_type: str | None = None,
    cookies: dict[str, str] | None = None,
    path_params: dict[str, Any] | None = None,
    host: str = "sp.example.com",
    scheme: str = "https",
) -> Request:
    """Build an ASGI-backed request without running an application."""
    if form is not None:
        body = urlencode(form).encode("ascii")
        content_type = content_type or "application/x-www-form-urlencoded"
    headers: list[tuple[bytes, bytes]] = [(b"host", host.encode("latin-1"))]
    if content_type is not None:
        headers.append((b"content-type", content_type.encode("latin-1")))
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": scheme,
        "server": (host, 443 if scheme == "https" else 80),
        "path": path,
        "root_path": "",
        "query_string": urlencode(query or {}).encode("ascii"),
        "headers": headers,
        "path_params": path_params or {},
    }
    payload = body or b""

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": payload, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def request_factory() -> RequestFactory:
    """Provide the request builder to tests."""
    return _build_request
