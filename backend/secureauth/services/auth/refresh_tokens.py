# secureauth/services/auth/refresh_tokens.py
from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from secureauth.services._shared.base import BaseService, Clock
from secureauth.services._shared.errors import (
    RefreshTokenExpired,
    RefreshTokenNotFound,
    RefreshTokenRevoked,
)
from secureauth.services._shared.ports import RefreshTokenStore
from secureauth.services.auth.dto import (
    AuthTokenConfig,
    Identity,
    RefreshTokenRecord,
    RefreshTokenState,
)

log = logging.getLogger(__name__)


def new_token_string() -> str:
    """Return a random UUIDv4 string (122 bits of entropy)."""
    return str(uuid4())


class RefreshTokenManager(BaseService):
    """
    Own the lifecycle of opaque, store-backed refresh tokens.

    State machine per record: ``ACTIVE -> REVOKED`` (explicit write) or
    ``ACTIVE -> EXPIRED`` (derived from time). Both are terminal; nothing here
    extends or un-revokes a record.

    :param store: Durable refresh token store.
    :param cfg: Immutable token configuration (``refresh_expires`` is used).
    :param clock: Optional clock.
    :param token_factory: Generator for opaque token strings.
    """

    def __init__(
        self,
        store: RefreshTokenStore,
        cfg: AuthTokenConfig,
        *,
        clock: Clock | None = None,
        token_factory: Callable[[], str] = new_token_string,
    ) -> None:
        super().__init__(clock=clock)
        self.store = store
        self.cfg = cfg
        self._new_token = token_factory

    def create(self, identity: Identity) -> RefreshTokenRecord:
        """
        Create and persist a refresh token for ``identity`` (one durable write).

        :returns: The stored record.
        """
        now = self.now_utc().replace(microsecond=0)
        record = RefreshTokenRecord(
            id=None,
            token=self._new_token(),
            identity=identity,
            expires_at=now + self.cfg.refresh_expires,
            revoked=False,
        )
        return self.store.save_refresh_token(record)

    def verify(self, token: str) -> RefreshTokenRecord:
        """
        Look up ``token`` and check that it is still usable.

        Read-only: no rotation and no expiry extension.

        :raises RefreshTokenNotFound: No such token.
        :raises RefreshTokenRevoked: Token was revoked.
        :raises RefreshTokenExpired: ``expires_at <= now``.
        """
        record = self.store.find_refresh_token_by_token_string(token)
        if record is None:
            raise RefreshTokenNotFound()
        state = record.state(self.now_utc())
        if state is RefreshTokenState.REVOKED:
            raise RefreshTokenRevoked()
        if state is RefreshTokenState.EXPIRED:
            raise RefreshTokenExpired()
        return record

    def find(self, token: str) -> RefreshTokenRecord | None:
        """Return the record for ``token`` in any state, or ``None``."""
        return self.store.find_refresh_token_by_token_string(token)

    def revoke_all_for_identity(self, identity: Identity) -> int:
        """
        Revoke every refresh token owned by ``identity``. Idempotent.

        :returns: Number of records touched by the store.
        """
        touched = self.store.mark_revoked_for_identity(identity)
        log.info(
            "refresh_token.revoked_all",
            extra={"identity_id": identity.id, "count": touched},
        )
        return touched

    def purge_expired(self) -> int:
        """
        Delete records whose expiry has passed (out-of-band cleanup sweep).

        :returns: Number of deleted records.
        """
        removed = self.store.delete_expired_refresh_tokens(self.now_utc())
        log.info("refresh_token.purged", extra={"count": removed})
        return removed
