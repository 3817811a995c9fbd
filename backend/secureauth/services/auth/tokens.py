# secureauth/services/auth/tokens.py
"""
Access token signer.

Access tokens are compact JWS (``header.payload.signature``) signed with
HMAC-SHA256 through PyJWT. The algorithm is pinned: tokens declaring any other
``alg`` (including ``none``) are rejected.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from secureauth.services._shared.base import BaseService, Clock, to_epoch
from secureauth.services._shared.errors import (
    ConfigurationError,
    ExpiredAccessToken,
    MalformedOrBadSignatureToken,
)
from secureauth.services.auth.dto import AccessClaims, AuthTokenConfig, Identity

log = logging.getLogger(__name__)

ALGORITHM = "HS256"
MIN_SECRET_BYTES = 32  # 256-bit key for HS256
REQUIRED_CLAIMS = ["sub", "iss", "iat", "exp", "roles"]


class TokenSigner(BaseService):
    """
    Create and verify signed access tokens.

    :param cfg: Immutable token configuration (secret, issuer, TTLs).
    :param clock: Optional clock used for ``iat``/``exp`` and expiry checks.
    :raises ConfigurationError: If the secret is shorter than 256 bits.
    """

    def __init__(self, cfg: AuthTokenConfig, *, clock: Clock | None = None) -> None:
        super().__init__(clock=clock)
        if len(cfg.secret) < MIN_SECRET_BYTES:
            raise ConfigurationError(
                f"JWT secret must be at least {MIN_SECRET_BYTES} bytes for {ALGORITHM}."
            )
        self.cfg = cfg
        self._key = cfg.secret

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue(self, identity: Identity) -> str:
        """
        Sign an access token for ``identity``.

        :returns: Encoded JWT whose claims are exactly ``sub, iss, iat, exp, roles``.
        """
        now = to_epoch(self.now_utc())
        claims = AccessClaims(
            subject=identity.username,
            issuer=self.cfg.issuer,
            issued_at=now,
            expires_at=now + int(self.cfg.access_expires.total_seconds()),
            roles=tuple(sorted(identity.roles)),
        )
        return jwt.encode(claims.to_payload(), self._key, algorithm=ALGORITHM)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify(self, token: str) -> AccessClaims:
        """
        Verify signature, structure and expiry.

        :raises MalformedOrBadSignatureToken: Bad signature, shape or issuer.
        :raises ExpiredAccessToken: Signature is valid but ``now >= exp``.
        """
        claims = self._decode(token)
        if to_epoch(self.now_utc()) >= claims.expires_at:
            raise ExpiredAccessToken()
        return claims

    def subject_ignoring_expiry(self, token: str) -> str:
        """
        Return ``sub`` of a signature-valid token even when it has expired.

        Only for extracting identity from an access token presented next to a
        refresh token. Never use it to authorize a request.

        :raises MalformedOrBadSignatureToken: Bad signature, shape or issuer.
        """
        return self._decode(token).subject

    def _decode(self, token: str) -> AccessClaims:
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                issuer=self.cfg.issuer,
                options={
                    "require": REQUIRED_CLAIMS,
                    # time checks run against the injected clock below
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
            return AccessClaims.from_payload(payload)
        except (jwt.InvalidTokenError, ValueError, KeyError, TypeError) as exc:
            log.info("access_token.rejected", extra={"reason": type(exc).__name__})
            raise MalformedOrBadSignatureToken() from exc
