# secureauth/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from secureauth.services._shared.dto import (
    Identity,
    RefreshTokenRecord,
    RefreshTokenState,
    Role,
    normalize_roles,
)
from secureauth.services._shared.errors import ConfigurationError

BEARER = "Bearer"

# ---------------------------- Token claims -------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified claims carried by an access token.

    :param subject: ``sub`` (username).
    :param issuer: ``iss``.
    :param issued_at: ``iat`` as Unix seconds.
    :param expires_at: ``exp`` as Unix seconds.
    :param roles: ``roles`` in token order.
    """

    subject: str
    issuer: str
    issued_at: int
    expires_at: int
    roles: tuple[str, ...]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> AccessClaims:
        """
        Build claims from a decoded payload, validating claim types.

        :raises ValueError: If a claim is missing or has the wrong type.
        """
        sub = payload["sub"]
        iss = payload["iss"]
        iat = payload["iat"]
        exp = payload["exp"]
        roles = payload["roles"]
        if not isinstance(sub, str) or not sub:
            raise ValueError("sub must be a non-empty string")
        if not isinstance(iss, str):
            raise ValueError("iss must be a string")
        for name, value in (("iat", iat), ("exp", exp)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            raise ValueError("roles must be a list of strings")
        return cls(subject=sub, issuer=iss, issued_at=iat, expires_at=exp, roles=tuple(roles))

    def to_payload(self) -> dict[str, Any]:
        """Return the wire payload (exactly ``sub, iss, iat, exp, roles``)."""
        return {
            "sub": self.subject,
            "iss": self.issuer,
            "iat": self.issued_at,
            "exp": self.expires_at,
            "roles": list(self.roles),
        }


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Login name.
    :type username: str
    :param password: Raw password (to be verified, never stored).
    :type password: str
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh token string.
    :type refresh_token: str
    """

    refresh_token: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Any refresh token owned by the identity to sign out.
    :type refresh_token: str
    """

    refresh_token: str = field(repr=False)


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh token string.
    :type refresh_token: str
    :param token_type: Always ``"Bearer"``.
    :type token_type: str
    """

    access_token: str
    refresh_token: str
    token_type: str = BEARER


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Immutable token configuration, built once at process start.

    :param secret: HMAC signing secret (bytes). Hidden from ``repr``.
    :type secret: bytes
    :param issuer: Value of the ``iss`` claim.
    :type issuer: str
    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    secret: bytes = field(repr=False)
    issuer: str
    access_expires: timedelta = timedelta(seconds=900)
    refresh_expires: timedelta = timedelta(seconds=604800)

    def __post_init__(self) -> None:
        if not self.issuer:
            raise ConfigurationError("JWT issuer must not be empty.")
        for name, value in (
            ("access token TTL", self.access_expires),
            ("refresh token TTL", self.refresh_expires),
        ):
            if value.total_seconds() < 1:
                raise ConfigurationError(f"The {name} must be at least one second.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """
        Build the config from a Flask-style mapping.

        Reads ``JWT_SECRET``, ``JWT_ISSUER``, ``ACCESS_TOKEN_TTL_SECONDS`` and
        ``REFRESH_TOKEN_TTL_SECONDS``.

        :raises ConfigurationError: When the secret is missing or a value is invalid.
        """
        raw_secret = config.get("JWT_SECRET")
        if not raw_secret:
            raise ConfigurationError("JWT_SECRET is not configured.")
        secret = raw_secret if isinstance(raw_secret, bytes) else str(raw_secret).encode("utf-8")
        try:
            access_ttl = int(config.get("ACCESS_TOKEN_TTL_SECONDS", 900))
            refresh_ttl = int(config.get("REFRESH_TOKEN_TTL_SECONDS", 604800))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("Token TTLs must be integers (seconds).") from exc
        return cls(
            secret=secret,
            issuer=str(config.get("JWT_ISSUER", "secure-auth-api")),
            access_expires=timedelta(seconds=access_ttl),
            refresh_expires=timedelta(seconds=refresh_ttl),
        )


__all__ = [
    "BEARER",
    "AccessClaims",
    "AuthTokenConfig",
    "Identity",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "RefreshTokenRecord",
    "RefreshTokenState",
    "Role",
    "TokenPairOut",
    "normalize_roles",
]
