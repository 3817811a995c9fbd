# tests/unit/services/test_refresh_token_manager.py
from __future__ import annotations

from datetime import timedelta
from uuid import UUID

import pytest

from secureauth.services._shared.errors import (
    ConflictError,
    RefreshTokenExpired,
    RefreshTokenNotFound,
    RefreshTokenRevoked,
)
from secureauth.services.auth.dto import RefreshTokenState
from secureauth.services.auth.refresh_tokens import RefreshTokenManager, new_token_string


@pytest.fixture()
def manager(store, token_config, clock) -> RefreshTokenManager:
    return RefreshTokenManager(store, token_config, clock=clock)


def test_new_token_string_is_a_uuid4():
    value = new_token_string()
    assert UUID(value).version == 4
    assert new_token_string() != value


def test_create_persists_an_active_record(manager, add_identity, clock, store):
    alice = add_identity()
    record = manager.create(alice)

    assert record.id is not None
    assert record.identity == alice
    assert record.revoked is False
    assert record.expires_at == clock() + timedelta(days=7)
    assert store.find_refresh_token_by_token_string(record.token) == record


def test_verify_returns_the_record_without_changing_it(manager, add_identity, clock):
    record = manager.create(add_identity())
    clock.advance(3600)
    assert manager.verify(record.token) == record
    assert manager.verify(record.token).expires_at == record.expires_at


def test_verify_unknown_token(manager):
    with pytest.raises(RefreshTokenNotFound):
        manager.verify("not-a-real-token")


def test_verify_expiry_is_exclusive(manager, add_identity, clock):
    record = manager.create(add_identity())
    clock.advance(timedelta(days=7).total_seconds() - 1)
    manager.verify(record.token)
    clock.advance(1)  # expires_at == now
    with pytest.raises(RefreshTokenExpired):
        manager.verify(record.token)


def test_revoked_wins_over_expired(manager, add_identity, clock):
    alice = add_identity()
    record = manager.create(alice)
    manager.revoke_all_for_identity(alice)
    clock.advance(timedelta(days=30).total_seconds())
    with pytest.raises(RefreshTokenRevoked):
        manager.verify(record.token)


def test_revoke_all_only_touches_the_owner(manager, add_identity):
    alice = add_identity("alice")
    bob = add_identity("bob")
    a1, a2 = manager.create(alice), manager.create(alice)
    b1 = manager.create(bob)

    assert manager.revoke_all_for_identity(alice) == 2
    for token in (a1.token, a2.token):
        with pytest.raises(RefreshTokenRevoked):
            manager.verify(token)
    assert manager.verify(b1.token).identity == bob


def test_revoke_all_is_idempotent(manager, add_identity, clock):
    alice = add_identity()
    record = manager.create(alice)
    manager.revoke_all_for_identity(alice)
    manager.revoke_all_for_identity(alice)
    assert manager.find(record.token).state(clock()) is RefreshTokenState.REVOKED


def test_revoke_all_without_tokens_returns_zero(manager, add_identity):
    assert manager.revoke_all_for_identity(add_identity()) == 0


def test_find_returns_records_in_any_state(manager, add_identity, clock):
    record = manager.create(add_identity())
    clock.advance(timedelta(days=8).total_seconds())
    found = manager.find(record.token)
    assert found is not None
    assert found.state(clock()) is RefreshTokenState.EXPIRED
    assert manager.find("missing") is None


def test_purge_expired_deletes_only_expired(manager, add_identity, clock, caplog):
    alice = add_identity()
    old = manager.create(alice)
    clock.advance(timedelta(days=5).total_seconds())
    fresh = manager.create(alice)
    clock.advance(timedelta(days=2).total_seconds())  # old expires exactly now

    caplog.set_level("INFO")
    assert manager.purge_expired() == 1
    assert manager.find(old.token) is None
    assert manager.verify(fresh.token) == fresh
    assert "refresh_token.purged" in caplog.text


def test_tokens_are_distinct_per_create(manager, add_identity):
    alice = add_identity()
    tokens = {manager.create(alice).token for _ in range(20)}
    assert len(tokens) == 20


def test_duplicate_token_string_is_a_conflict(store, token_config, clock, add_identity):
    fixed = RefreshTokenManager(store, token_config, clock=clock, token_factory=lambda: "dup")
    alice = add_identity()
    fixed.create(alice)
    with pytest.raises(ConflictError):
        fixed.create(alice)
