from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Protocol

from secureauth.services._shared.dto import Identity, RefreshTokenRecord
from secureauth.services._shared.errors import ConflictError


class IdentityStore(Protocol):
    """Read access to identity records."""

    def find_identity_by_username(self, username: str) -> Identity | None:
        """Return the identity with ``username`` (roles included) or ``None``."""


class RefreshTokenStore(Protocol):
    """
    Durable storage of refresh token records.

    Implementations MUST make a committed ``mark_revoked_for_identity`` visible
    to every subsequent ``find_refresh_token_by_token_string`` call.
    Transient failures MUST surface as ``StoreUnavailable``.
    """

    def find_refresh_token_by_token_string(self, token: str) -> RefreshTokenRecord | None:
        """Return the record (with its owning identity loaded) or ``None``."""

    def save_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        """Persist a new record and return it with its store identifier."""

    def mark_revoked_for_identity(self, identity: Identity) -> int:
        """
        Set ``revoked`` on every record owned by ``identity``.

        :returns: Number of records touched.
        """

    def delete_expired_refresh_tokens(self, now: datetime) -> int:
        """
        Physically delete records with ``expires_at <= now`` (cleanup sweep).

        :returns: Number of records removed.
        """


class CredentialStore(IdentityStore, RefreshTokenStore, Protocol):
    """Single logical store holding identities and refresh tokens."""

    def add_identity(self, identity: Identity) -> Identity:
        """
        Provision a new identity; the store assigns its identifier.

        :returns: The stored identity.
        :raises ConflictError: On a duplicate username or email.
        """


class InMemoryCredentialStore(CredentialStore):
    """
    In-memory credential store.

    .. note::
       Uses a threading lock so concurrent calls observe whole records only.
    """

    def __init__(self) -> None:
        self._identities: dict[str, Identity] = {}
        self._tokens: dict[str, RefreshTokenRecord] = {}
        self._identity_ids = count(1)
        self._ids = count(1)
        self._lock = threading.Lock()

    # ------------------------- identities ------------------------

    def add_identity(self, identity: Identity) -> Identity:
        with self._lock:
            if identity.username in self._identities:
                raise ConflictError("Identity", f"username {identity.username!r} is taken")
            if any(i.email == identity.email for i in self._identities.values()):
                raise ConflictError("Identity", f"email {identity.email!r} is taken")
            stored = replace(identity, id=next(self._identity_ids))
            self._identities[stored.username] = stored
            return stored

    def find_identity_by_username(self, username: str) -> Identity | None:
        with self._lock:
            return self._identities.get(username)

    # ----------------------- refresh tokens ----------------------

    def find_refresh_token_by_token_string(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._tokens.get(token)

    def save_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        with self._lock:
            if record.token in self._tokens:
                raise ConflictError("RefreshToken", "token string already exists")
            stored = replace(record, id=next(self._ids))
            self._tokens[stored.token] = stored
            return stored

    def mark_revoked_for_identity(self, identity: Identity) -> int:
        with self._lock:
            owned = [t for t, r in self._tokens.items() if r.identity.id == identity.id]
            for token in owned:
                self._tokens[token] = replace(self._tokens[token], revoked=True)
            return len(owned)

    def delete_expired_refresh_tokens(self, now: datetime) -> int:
        with self._lock:
            expired = [t for t, r in self._tokens.items() if r.expires_at <= now]
            for token in expired:
                del self._tokens[token]
            return len(expired)
