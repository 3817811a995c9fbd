"""User repository for identity lookups."""

from __future__ import annotations

from typing import cast

from sqlalchemy import or_, select

from secureauth.models.user import User
from secureauth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles token issuance or password checks, only DB-level lookups.
    """

    model = User

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact username.

        :param username: Login name; compared as-is (case-sensitive).
        :type username: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.username == username)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists(self, *, username: str, email: str) -> bool:
        """Return ``True`` when the username or (normalized) email is taken."""
        stmt = select(User.id).where(
            or_(User.username == username, User.email == email.strip().lower())
        )
        return bool(self.session.execute(stmt).first())
