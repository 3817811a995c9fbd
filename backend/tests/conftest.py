"""Pytest fixtures for the credential lifecycle service.

SQL-backed tests get freshly created tables on an in-memory SQLite database
so data changes never leak between cases. Pure service tests build their
components directly against the in-memory credential store.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest

from secureauth.core.config import TestingConfig
from secureauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from secureauth.factory import create_app  # application factory under test
from secureauth.services._shared.dto import Identity, Role
from secureauth.services._shared.ports import InMemoryCredentialStore
from secureauth.services.auth import AuthTokenConfig, build_auth_service
from secureauth.services.auth.passwords import PasswordVerifier
from tests.helpers.clock import FakeClock

TEST_SECRET = b"unit-test-signing-secret-0123456789abcdef"
FAST_HASH = "pbkdf2:sha256:1000"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create all tables for one test and drop them afterwards.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        try:
            yield _db
        finally:
            _db.session.remove()
            _db.drop_all()


@pytest.fixture()
def session(db):
    """Expose the Flask-scoped session and wire Factory Boy to it."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(db.session)
    yield db.session
    SQLAlchemySession.set(None)


@pytest.fixture()
def client(app, db):
    """Flask test client with a fresh schema."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Pure service wiring ------------------------------------------------------


@pytest.fixture()
def clock():
    """Manually advanced clock starting at a fixed instant."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture()
def token_config():
    """Token configuration with the default TTLs (900 s / 7 days)."""
    return AuthTokenConfig(
        secret=TEST_SECRET,
        issuer="secure-auth-api",
        access_expires=timedelta(seconds=900),
        refresh_expires=timedelta(days=7),
    )


@pytest.fixture()
def passwords():
    """Password verifier with a cheap PBKDF2 cost."""
    return PasswordVerifier(method=FAST_HASH)


@pytest.fixture()
def store():
    """Fresh in-memory credential store."""
    return InMemoryCredentialStore()


@pytest.fixture()
def add_identity(store, passwords):
    """Provision identities into the in-memory store."""

    def _add(username="alice", password="Secret#123", roles=(Role.USER,), email=None):
        return store.add_identity(
            Identity(
                id=0,
                username=username,
                email=email or f"{username}@example.com",
                password_hash=passwords.hash(password),
                roles=frozenset(r.value if isinstance(r, Role) else r for r in roles),
            )
        )

    return _add


@pytest.fixture()
def auth_service(token_config, store, clock):
    """AuthService wired to the in-memory store and the fake clock."""
    return build_auth_service(
        token_config,
        identities=store,
        refresh_store=store,
        password_method=FAST_HASH,
        clock=clock,
    )
