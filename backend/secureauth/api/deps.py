"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from secureauth.core.errors import Unauthorized
from secureauth.services.auth import AccessClaims, AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def get_auth_service() -> AuthService:
    """Return the auth service wired by the application factory."""

    return cast(AuthService, current_app.extensions["auth_service"])


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise Unauthorized("Missing bearer token")
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthorized("Missing bearer token")
    return token


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    The verified claims are stored on ``g.current_claims``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.current_claims = get_auth_service().authenticate(_bearer_token())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_claims() -> AccessClaims:
    """Return the claims verified by :func:`require_auth`."""

    return cast(AccessClaims, g.current_claims)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
