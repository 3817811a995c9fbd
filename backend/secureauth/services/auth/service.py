# secureauth/services/auth/service.py
from __future__ import annotations

import logging

from secureauth.services._shared.base import BaseService
from secureauth.services._shared.errors import (
    ExpiredAccessToken,
    InvalidCredentials,
    InvalidOrExpiredRefreshToken,
    MalformedOrBadSignatureToken,
    RefreshTokenError,
)
from secureauth.services._shared.ports import IdentityStore
from secureauth.services.auth.dto import (
    AccessClaims,
    LoginIn,
    LogoutIn,
    RefreshIn,
    TokenPairOut,
)
from secureauth.services.auth.passwords import PasswordVerifier
from secureauth.services.auth.refresh_tokens import RefreshTokenManager
from secureauth.services.auth.tokens import TokenSigner

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (login / refresh / logout).

    Access tokens are self-contained and cannot be revoked before expiry;
    refresh tokens are store-backed and are the only server-side kill switch.
    Internal failure causes are collapsed into one external error per
    operation.
    """

    def __init__(
        self,
        *,
        identities: IdentityStore,
        passwords: PasswordVerifier,
        signer: TokenSigner,
        refresh_tokens: RefreshTokenManager,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param identities: Identity lookup (credential store).
        :param passwords: Adaptive password verifier.
        :param signer: Access token signer.
        :param refresh_tokens: Refresh token lifecycle manager.
        """
        super().__init__()
        self.identities = identities
        self.passwords = passwords
        self.tokens = signer
        self.refresh_tokens = refresh_tokens

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Access/refresh token pair.
        :raises InvalidCredentials: Unknown username or wrong password.
        :raises StoreUnavailable: The store could not be reached.
        """
        identity = self.identities.find_identity_by_username(dto.username)
        stored_hash = identity.password_hash if identity is not None else None

        # Always pay for one hash computation, known user or not.
        if not self.passwords.verify(dto.password, stored_hash) or identity is None:
            log.info(
                "auth.login.failed",
                extra={"reason": "unknown_user" if identity is None else "bad_password"},
            )
            raise InvalidCredentials()

        # Signing is pure; the refresh write is the only side effect, so a
        # failure at either step leaves nothing behind.
        access = self.tokens.issue(identity)
        record = self.refresh_tokens.create(identity)

        log.info("auth.login.succeeded", extra={"identity_id": identity.id})
        return TokenPairOut(access_token=access, refresh_token=record.token)

    # ------------------------------------------------------------------ #
    # Refresh (no rotation)
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Exchange a valid refresh token for a new access token.

        The refresh token is neither rotated nor extended; the same string is
        returned and stays usable until it expires or is revoked.

        :raises InvalidOrExpiredRefreshToken: Unknown, revoked or expired token.
        :raises StoreUnavailable: The store could not be reached.
        """
        try:
            record = self.refresh_tokens.verify(dto.refresh_token)
        except RefreshTokenError as exc:
            log.info("auth.refresh.rejected", extra={"reason": type(exc).__name__})
            raise InvalidOrExpiredRefreshToken() from None

        access = self.tokens.issue(record.identity)
        return TokenPairOut(access_token=access, refresh_token=record.token)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> int:
        """
        Revoke every refresh token of the identity owning ``dto.refresh_token``.

        Works with tokens in any state, so repeating a logout is harmless.

        :returns: Number of records touched.
        :raises InvalidOrExpiredRefreshToken: The token string is unknown.
        """
        record = self.refresh_tokens.find(dto.refresh_token)
        if record is None:
            raise InvalidOrExpiredRefreshToken()
        touched = self.refresh_tokens.revoke_all_for_identity(record.identity)
        log.info("auth.logout", extra={"identity_id": record.identity.id})
        return touched

    # ------------------------------------------------------------------ #
    # Bearer authentication
    # ------------------------------------------------------------------ #

    def authenticate(self, access_token: str) -> AccessClaims:
        """
        Verify an access token for request authorization (expiry enforced).

        Expired tokens are rejected exactly like malformed ones; only
        :meth:`TokenSigner.verify` keeps the two apart.

        :raises MalformedOrBadSignatureToken: Bad or expired token.
        """
        try:
            return self.tokens.verify(access_token)
        except ExpiredAccessToken:
            raise MalformedOrBadSignatureToken() from None
