"""Refresh token repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.orm import joinedload

from secureauth.models.refresh_token import RefreshToken
from secureauth.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Bulk statements (revoke, purge) run as single ``UPDATE``/``DELETE``
    queries so concurrent writers never interleave per-row changes.
    """

    model = RefreshToken

    def _default_eagerload(self, stmt):
        # The owning user is always needed by callers.
        return stmt.options(joinedload(RefreshToken.user))

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Fetch a refresh token row (owner loaded) by its token string."""
        stmt = self._default_eagerload(select(RefreshToken).where(RefreshToken.token == token))
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_all_for_user(self, user_id: int) -> int:
        """Set ``revoked`` on every row owned by ``user_id``.

        :returns: Number of rows matched.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .values(revoked=True)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        """Delete rows whose ``expires_at <= now``.

        :returns: Number of rows removed.
        """
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)
