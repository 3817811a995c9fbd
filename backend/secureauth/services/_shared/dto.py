"""
Domain records shared by the auth components and the credential stores.

Framework-agnostic value objects: the stores build them, the services consume
them. None of them carries behaviour beyond derived state.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Role labels that may be granted to an identity."""

    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    An authenticable principal as loaded from the credential store.

    :param id: Store identifier.
    :param username: Unique login name; becomes the token ``sub``.
    :param email: Unique email address.
    :param password_hash: Adaptive hash output. Hidden from ``repr``.
    :param roles: Immutable set of role labels.
    :param created_at: Creation timestamp (never changed by this package).
    """

    id: int | str
    username: str
    email: str
    password_hash: str = field(repr=False, compare=False)
    roles: frozenset[str] = frozenset()
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles))


class RefreshTokenState(Enum):
    """Lifecycle states of a refresh token record."""

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    One long-lived refresh credential delegated to exactly one identity.

    :param id: Store identifier (``None`` until persisted by SQL stores).
    :param token: Opaque, unguessable token string. Hidden from ``repr``.
    :param identity: Owning identity, loaded together with the record.
    :param expires_at: Absolute expiry (UTC, second resolution).
    :param revoked: Whether the record was explicitly revoked.
    """

    id: int | str | None
    token: str = field(repr=False)
    identity: Identity
    expires_at: datetime
    revoked: bool = False

    def state(self, now: datetime) -> RefreshTokenState:
        """
        Derive the lifecycle state at ``now``.

        Revocation takes precedence over expiry; expiry is exclusive, so a
        record whose ``expires_at`` equals ``now`` is already expired.
        """
        if self.revoked:
            return RefreshTokenState.REVOKED
        if self.expires_at <= now:
            return RefreshTokenState.EXPIRED
        return RefreshTokenState.ACTIVE


def normalize_roles(roles: Iterable[str | Role]) -> frozenset[str]:
    """
    Validate role labels against :class:`Role` and return them as strings.

    :raises ValueError: On unknown labels or an empty role set.
    """
    labels = frozenset(Role(r).value for r in roles)
    if not labels:
        raise ValueError("An identity needs at least one role.")
    return labels
