"""
secureauth.services._shared.ports
=================================

*Ports* (hexagonal interfaces) that define the storage contracts the auth
components depend on.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.IdentityStore`, :class:`~.RefreshTokenStore`,
    :class:`~.CredentialStore` and the :class:`~.InMemoryCredentialStore`
    implementation.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis) live under ``secureauth.infra`` and
implement these protocols.
"""

from __future__ import annotations

from .credential_store import (
    CredentialStore,
    IdentityStore,
    InMemoryCredentialStore,
    RefreshTokenStore,
)

__all__ = [
    "CredentialStore",
    "IdentityStore",
    "InMemoryCredentialStore",
    "RefreshTokenStore",
]
