"""Idempotent seed helpers provisioning bootstrap identities."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from secureauth.services._shared.dto import Identity, Role, normalize_roles
from secureauth.services._shared.ports import CredentialStore
from secureauth.services.auth.passwords import PasswordVerifier

LOGGER = logging.getLogger(__name__)


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    counters = summary.setdefault(table, {"created": 0, "existing": 0})
    counters["created" if created else "existing"] += 1


def admin_fixture(config: Mapping[str, Any]) -> dict[str, Any]:
    """Return the bootstrap administrator described by ``SEED_ADMIN_*`` keys."""
    return {
        "username": config.get("SEED_ADMIN_USERNAME", "admin"),
        "email": config.get("SEED_ADMIN_EMAIL", "admin@test.com"),
        "password": config.get("SEED_ADMIN_PASSWORD", "Admin@123"),
        "roles": [Role.ADMIN],
    }


def seed_identities(
    store: CredentialStore,
    passwords: PasswordVerifier,
    fixtures: list[dict[str, Any]],
    *,
    verbose: bool = False,
) -> dict[str, dict[str, int]]:
    """Create each fixture identity unless its username already exists."""
    summary: dict[str, dict[str, int]] = {}
    for fixture in fixtures:
        if store.find_identity_by_username(fixture["username"]) is not None:
            _touch(summary, "users", created=False)
            continue
        store.add_identity(
            Identity(
                id=0,
                username=fixture["username"],
                email=fixture["email"],
                password_hash=passwords.hash(fixture["password"]),
                roles=normalize_roles(fixture["roles"]),
            )
        )
        _touch(summary, "users", created=True)
        if verbose:
            LOGGER.info("Seeded identity %s", fixture["username"])
    return summary


def run_all(
    store: CredentialStore,
    passwords: PasswordVerifier,
    config: Mapping[str, Any],
    *,
    verbose: bool = False,
) -> dict[str, dict[str, int]]:
    """Run all seeders."""
    if verbose:
        LOGGER.info("Running seed pipeline...")
    return seed_identities(store, passwords, [admin_fixture(config)], verbose=verbose)


__all__ = ["admin_fixture", "run_all", "seed_identities"]
