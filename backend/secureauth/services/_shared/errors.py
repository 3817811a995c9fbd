"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask, HTTP or
SQLAlchemy. They are the stable contract between the credential stores, the
auth components and the delivery layer.

The translation to HTTP responses (RFC 7807) is handled by
``secureauth/core/errors.py``.

Taxonomy
--------
- :class:`AuthError` subclasses are the *external* failures of an auth call.
  Each carries a stable ``code`` and a generic, client-safe message.
- :class:`RefreshTokenError` subclasses are *internal* outcomes of refresh
  token verification. The orchestrator collapses them into
  :class:`InvalidOrExpiredRefreshToken` before they cross the boundary.
- :class:`StoreUnavailable` marks transient store failures (retryable).
- :class:`ConfigurationError` is fatal and raised only at startup.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` instances.
    """

    pass


class ConfigurationError(Exception):
    """
    Raised when the process is configured unsafely (e.g. a short signing key).

    This is a startup-time condition: the application must refuse to start
    rather than run with a weak configuration.
    """

    pass


# --------------------------------------------------------------------------- #
# Authentication failures (external)
# --------------------------------------------------------------------------- #


class AuthError(ServiceError):
    """
    Base class for authentication failures surfaced to callers.

    Subclasses define a stable machine-readable ``code`` and a generic
    ``default_message``. Instances built without arguments are identical in
    type, code and message, which keeps distinct internal causes
    indistinguishable from the outside.
    """

    code: str = "unauthorized"
    default_message: str = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class InvalidCredentials(AuthError):
    """Unknown username or wrong password (deliberately merged)."""

    code = "invalid_credentials"
    default_message = "Invalid username or password"


class InvalidOrExpiredRefreshToken(AuthError):
    """Refresh token is unknown, revoked or expired (deliberately merged)."""

    code = "invalid_refresh_token"
    default_message = "Invalid or expired refresh token"


class MalformedOrBadSignatureToken(AuthError):
    """Access token failed its structure, claim or signature checks."""

    code = "invalid_token"
    default_message = "Invalid access token"


class ExpiredAccessToken(AuthError):
    """Access token has a valid signature but ``now >= exp``."""

    code = "token_expired"
    default_message = "Access token has expired"


# --------------------------------------------------------------------------- #
# Refresh token verification outcomes (internal)
# --------------------------------------------------------------------------- #


class RefreshTokenError(ServiceError):
    """Base class for refresh token verification failures."""

    pass


class RefreshTokenNotFound(RefreshTokenError):
    """No record matches the presented token string."""

    def __init__(self) -> None:
        super().__init__("Refresh token not found")


class RefreshTokenRevoked(RefreshTokenError):
    """The record exists but has been revoked."""

    def __init__(self) -> None:
        super().__init__("Refresh token revoked")


class RefreshTokenExpired(RefreshTokenError):
    """The record exists but ``expires_at <= now``."""

    def __init__(self) -> None:
        super().__init__("Refresh token expired")


# --------------------------------------------------------------------------- #
# Infrastructure / provisioning
# --------------------------------------------------------------------------- #


class StoreUnavailable(ServiceError):
    """
    Raised when the credential store cannot be reached (connectivity, timeout).

    Eligible for caller-side retry. Never used for authentication failures.
    """

    def __init__(self, message: str = "Credential store unavailable") -> None:
        super().__init__(message)


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint (username, email) would be violated.

    :param entity: Entity name (e.g., "Identity").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"
