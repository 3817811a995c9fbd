# tests/unit/infra/test_sqlalchemy_credential_store.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from secureauth.infra.sqlalchemy import SQLAlchemyCredentialStore
from secureauth.models import RefreshToken
from secureauth.repositories import UserRepository
from secureauth.services._shared.dto import Identity, RefreshTokenRecord
from secureauth.services._shared.errors import ConflictError, StoreUnavailable
from tests.factories.user import RefreshTokenFactory, UserFactory

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def sql_store(session) -> SQLAlchemyCredentialStore:
    return SQLAlchemyCredentialStore()


def test_find_identity_maps_the_row(sql_store):
    user = UserFactory(username="admin", email="Admin@Test.com", roles=["ADMIN"])

    identity = sql_store.find_identity_by_username("admin")

    assert identity is not None
    assert identity.id == user.id
    assert identity.email == "admin@test.com"
    assert identity.roles == frozenset({"ADMIN"})
    assert identity.password_hash.startswith("pbkdf2:sha256:1000$")
    assert identity.created_at is not None and identity.created_at.tzinfo is not None


def test_find_identity_is_exact_match(sql_store):
    UserFactory(username="admin")
    assert sql_store.find_identity_by_username("Admin") is None
    assert sql_store.find_identity_by_username("missing") is None


def _identity(username: str, email: str) -> Identity:
    return Identity(id=0, username=username, email=email, password_hash="h", roles={"USER"})


def test_add_identity_and_conflicts(sql_store):
    stored = sql_store.add_identity(_identity("new", "new@example.com"))
    assert isinstance(stored.id, int) and stored.id > 0

    with pytest.raises(ConflictError):
        sql_store.add_identity(_identity("new", "other@example.com"))
    with pytest.raises(ConflictError):
        sql_store.add_identity(_identity("other", "NEW@example.com"))


def test_save_and_find_refresh_token(sql_store):
    UserFactory(username="alice")
    alice = sql_store.find_identity_by_username("alice")

    saved = sql_store.save_refresh_token(
        RefreshTokenRecord(
            id=None, token="tok", identity=alice, expires_at=NOW + timedelta(days=7)
        )
    )
    found = sql_store.find_refresh_token_by_token_string("tok")

    assert saved.id is not None
    assert found == saved
    assert found.identity == alice
    assert found.expires_at == NOW + timedelta(days=7)
    assert sql_store.find_refresh_token_by_token_string("nope") is None


def test_duplicate_token_string_is_a_conflict(sql_store):
    row = RefreshTokenFactory(token="dup")
    identity = sql_store.find_identity_by_username(row.user.username)
    with pytest.raises(ConflictError):
        sql_store.save_refresh_token(
            RefreshTokenRecord(id=None, token="dup", identity=identity, expires_at=NOW)
        )


def test_mark_revoked_for_identity_is_scoped_and_visible(sql_store, session):
    alice, bob = UserFactory(), UserFactory()
    RefreshTokenFactory.create_batch(2, user=alice)
    RefreshTokenFactory(user=bob, token="bob-token")

    identity = sql_store.find_identity_by_username(alice.username)
    assert sql_store.mark_revoked_for_identity(identity) == 2

    rows = session.query(RefreshToken).filter_by(user_id=alice.id).all()
    assert rows and all(r.revoked for r in rows)
    assert sql_store.find_refresh_token_by_token_string("bob-token").revoked is False


def test_delete_expired_refresh_tokens(sql_store):
    user = UserFactory()
    RefreshTokenFactory(user=user, token="old", expires_at=NOW - timedelta(seconds=1))
    RefreshTokenFactory(user=user, token="edge", expires_at=NOW)
    RefreshTokenFactory(user=user, token="fresh", expires_at=NOW + timedelta(seconds=1))

    assert sql_store.delete_expired_refresh_tokens(NOW) == 2
    assert sql_store.find_refresh_token_by_token_string("old") is None
    assert sql_store.find_refresh_token_by_token_string("edge") is None
    assert sql_store.find_refresh_token_by_token_string("fresh") is not None


def test_operational_errors_become_store_unavailable(sql_store, monkeypatch):
    def boom(self, username):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(UserRepository, "get_by_username", boom)
    with pytest.raises(StoreUnavailable):
        sql_store.find_identity_by_username("admin")
