# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError, OperationalError

from secureauth.models.refresh_token import RefreshToken
from secureauth.models.user import User
from secureauth.services._shared.dto import Identity, RefreshTokenRecord
from secureauth.services._shared.errors import ConflictError, StoreUnavailable
from secureauth.services._shared.ports import CredentialStore
from secureauth.uow import SQLAlchemyUnitOfWork


def _utc(dt: datetime) -> datetime:
    # Naive values come back from SQLite; they were written as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_identity(user: User) -> Identity:
    """Map a :class:`User` row to the framework-free :class:`Identity`."""
    return Identity(
        id=user.id,
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
        roles=frozenset(user.roles or ()),
        created_at=_utc(user.created_at) if user.created_at is not None else None,
    )


def to_record(row: RefreshToken) -> RefreshTokenRecord:
    """Map a :class:`RefreshToken` row (owner loaded) to a record."""
    return RefreshTokenRecord(
        id=row.id,
        token=row.token,
        identity=to_identity(row.user),
        expires_at=_utc(row.expires_at),
        revoked=bool(row.revoked),
    )


class SQLAlchemyCredentialStore(CredentialStore):
    """
    Relational credential store (users + refresh tokens).

    Every call runs in its own unit of work and commits before returning, so a
    revocation is visible to any later lookup. Rows are converted to frozen
    records while the session is still open.

    :param uow_factory: Builds a fresh unit of work per call.
    """

    def __init__(self, uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork):
        self._uow_factory = uow_factory

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except OperationalError as exc:
            raise StoreUnavailable() from exc

    # ------------------------- identities ------------------------

    def find_identity_by_username(self, username: str) -> Identity | None:
        with self._guard(), self._uow_factory() as uow:
            user = uow.users.get_by_username(username)
            return to_identity(user) if user is not None else None

    def add_identity(self, identity: Identity) -> Identity:
        try:
            with self._guard(), self._uow_factory() as uow:
                if uow.users.exists(username=identity.username, email=identity.email):
                    raise ConflictError("Identity", "username or email already exists")
                user = User(
                    username=identity.username,
                    email=identity.email,
                    password_hash=identity.password_hash,
                    roles=list(identity.roles),
                )
                uow.users.add(user)
                uow.users.flush()
                return to_identity(user)
        except IntegrityError as exc:
            raise ConflictError("Identity", "username or email already exists") from exc

    # ----------------------- refresh tokens ----------------------

    def find_refresh_token_by_token_string(self, token: str) -> RefreshTokenRecord | None:
        with self._guard(), self._uow_factory() as uow:
            row = uow.refresh_tokens.get_by_token(token)
            return to_record(row) if row is not None else None

    def save_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        try:
            with self._guard(), self._uow_factory() as uow:
                user = uow.users.get(record.identity.id)
                if user is None:
                    raise ConflictError("RefreshToken", "owning identity does not exist")
                row = RefreshToken(
                    token=record.token,
                    user=user,
                    expires_at=_utc(record.expires_at),
                    revoked=record.revoked,
                )
                uow.refresh_tokens.add(row)
                uow.refresh_tokens.flush()
                return to_record(row)
        except IntegrityError as exc:
            raise ConflictError("RefreshToken", "token string already exists") from exc

    def mark_revoked_for_identity(self, identity: Identity) -> int:
        with self._guard(), self._uow_factory() as uow:
            return uow.refresh_tokens.revoke_all_for_user(int(identity.id))

    def delete_expired_refresh_tokens(self, now: datetime) -> int:
        with self._guard(), self._uow_factory() as uow:
            return uow.refresh_tokens.delete_expired(_utc(now))
