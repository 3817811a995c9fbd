"""Credential lifecycle: passwords, access tokens, refresh tokens, orchestration.

:func:`build_auth_service` is the single place where the component graph is
wired. Callers (the Flask factory, tests, scripts) pass the configuration
struct and the stores explicitly; nothing here reads globals.
"""

from __future__ import annotations

from secureauth.services._shared.base import Clock
from secureauth.services._shared.ports import IdentityStore, RefreshTokenStore

from .dto import (
    AccessClaims,
    AuthTokenConfig,
    Identity,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RefreshTokenRecord,
    RefreshTokenState,
    Role,
    TokenPairOut,
)
from .passwords import DEFAULT_METHOD, PasswordVerifier
from .refresh_tokens import RefreshTokenManager
from .service import AuthService
from .tokens import TokenSigner


def build_auth_service(
    cfg: AuthTokenConfig,
    *,
    identities: IdentityStore,
    refresh_store: RefreshTokenStore,
    password_method: str = DEFAULT_METHOD,
    clock: Clock | None = None,
) -> AuthService:
    """
    Wire the auth component graph once.

    :param cfg: Immutable token configuration.
    :param identities: Identity lookup.
    :param refresh_store: Refresh token persistence (may be the same object).
    :param password_method: Werkzeug hashing method string.
    :param clock: Optional shared clock for signer and refresh manager.
    :raises ConfigurationError: If the signing secret is too short.
    """
    return AuthService(
        identities=identities,
        passwords=PasswordVerifier(method=password_method),
        signer=TokenSigner(cfg, clock=clock),
        refresh_tokens=RefreshTokenManager(refresh_store, cfg, clock=clock),
    )


__all__ = [
    "AccessClaims",
    "AuthService",
    "AuthTokenConfig",
    "Identity",
    "LoginIn",
    "LogoutIn",
    "PasswordVerifier",
    "RefreshIn",
    "RefreshTokenManager",
    "RefreshTokenRecord",
    "RefreshTokenState",
    "Role",
    "TokenPairOut",
    "TokenSigner",
    "build_auth_service",
]
