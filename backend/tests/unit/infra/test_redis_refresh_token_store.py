# tests/unit/infra/test_redis_refresh_token_store.py
"""
Unit tests for RedisRefreshTokenStore using fakeredis.

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
import redis

from secureauth.infra.redis import RedisRefreshTokenStore
from secureauth.services._shared.dto import Identity, RefreshTokenRecord
from secureauth.services._shared.errors import (
    ConflictError,
    InvalidOrExpiredRefreshToken,
    StoreUnavailable,
)
from secureauth.services._shared.ports import InMemoryCredentialStore
from secureauth.services.auth import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RefreshTokenManager,
    build_auth_service,
)
from secureauth.services.auth.passwords import PasswordVerifier

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def identities():
    store = InMemoryCredentialStore()
    for name in ("alice", "bob"):
        store.add_identity(
            Identity(
                id=0,
                username=name,
                email=f"{name}@example.com",
                password_hash="hash",
                roles={"USER"},
            )
        )
    return store


@pytest.fixture
def rstore(fake_redis, identities):
    """Provide a RedisRefreshTokenStore backed by FakeRedis."""
    return RedisRefreshTokenStore(r=fake_redis, identities=identities)


def _record(identity: Identity, token: str, expires_at: datetime) -> RefreshTokenRecord:
    return RefreshTokenRecord(id=None, token=token, identity=identity, expires_at=expires_at)


def test_save_and_find(rstore, identities, fake_redis):
    alice = identities.find_identity_by_username("alice")
    saved = rstore.save_refresh_token(_record(alice, "tok-1", NOW + timedelta(days=7)))

    assert saved.id == 1
    found = rstore.find_refresh_token_by_token_string("tok-1")
    assert found == saved
    assert found.identity == alice
    assert found.expires_at == NOW + timedelta(days=7)
    assert found.revoked is False
    # No TTL: expired records stay readable until the sweep.
    assert fake_redis.ttl("rt:tok:tok-1") == -1


def test_find_missing(rstore):
    assert rstore.find_refresh_token_by_token_string("nope") is None


def test_duplicate_token_is_a_conflict(rstore, identities):
    alice = identities.find_identity_by_username("alice")
    rstore.save_refresh_token(_record(alice, "dup", NOW + timedelta(days=1)))
    with pytest.raises(ConflictError):
        rstore.save_refresh_token(_record(alice, "dup", NOW + timedelta(days=1)))


def test_mark_revoked_for_identity_is_scoped(rstore, identities):
    alice = identities.find_identity_by_username("alice")
    bob = identities.find_identity_by_username("bob")
    rstore.save_refresh_token(_record(alice, "a1", NOW + timedelta(days=1)))
    rstore.save_refresh_token(_record(alice, "a2", NOW + timedelta(days=1)))
    rstore.save_refresh_token(_record(bob, "b1", NOW + timedelta(days=1)))

    assert rstore.mark_revoked_for_identity(alice) == 2
    assert rstore.find_refresh_token_by_token_string("a1").revoked is True
    assert rstore.find_refresh_token_by_token_string("a2").revoked is True
    assert rstore.find_refresh_token_by_token_string("b1").revoked is False
    # Idempotent
    assert rstore.mark_revoked_for_identity(alice) == 2


def test_delete_expired_sweeps_hash_index_and_zset(rstore, identities, fake_redis):
    alice = identities.find_identity_by_username("alice")
    rstore.save_refresh_token(_record(alice, "old", NOW))
    rstore.save_refresh_token(_record(alice, "new", NOW + timedelta(days=1)))

    assert rstore.delete_expired_refresh_tokens(NOW) == 1
    assert rstore.find_refresh_token_by_token_string("old") is None
    assert rstore.find_refresh_token_by_token_string("new") is not None
    assert fake_redis.smembers(f"rt:idx:u:{alice.id}") == {b"new"}
    assert fake_redis.zrange("rt:idx:exp", 0, -1) == [b"new"]
    assert rstore.delete_expired_refresh_tokens(NOW) == 0


def test_revoke_after_sweep_leaves_no_partial_hash(rstore, identities, fake_redis):
    alice = identities.find_identity_by_username("alice")
    rstore.save_refresh_token(_record(alice, "gone", NOW))
    rstore.delete_expired_refresh_tokens(NOW)

    assert rstore.mark_revoked_for_identity(alice) == 0
    assert fake_redis.exists("rt:tok:gone") == 0


def test_manager_on_redis_store(rstore, identities, token_config):
    alice = identities.find_identity_by_username("alice")
    manager = RefreshTokenManager(rstore, token_config, clock=lambda: NOW)
    record = manager.create(alice)
    assert manager.verify(record.token).identity == alice


def test_connection_errors_become_store_unavailable(identities):
    server = fakeredis.FakeServer()
    server.connected = False  # every command now raises ConnectionError
    broken = fakeredis.FakeRedis(server=server)
    rstore = RedisRefreshTokenStore(r=broken, identities=identities)
    with pytest.raises(StoreUnavailable) as exc:
        rstore.find_refresh_token_by_token_string("x")
    assert isinstance(exc.value.__cause__, redis.ConnectionError)


@pytest.mark.parametrize("token", ["exp", "seq", "u:1", "idx:exp", "idx:seq", "idx:u:1"])
def test_token_strings_never_address_index_keys(fake_redis, token, token_config):
    identities = InMemoryCredentialStore()
    identities.add_identity(
        Identity(
            id=0,
            username="alice",
            email="alice@example.com",
            password_hash=PasswordVerifier(method="pbkdf2:sha256:1000").hash("Secret#123"),
            roles={"USER"},
        )
    )
    svc = build_auth_service(
        token_config,
        identities=identities,
        refresh_store=RedisRefreshTokenStore(r=fake_redis, identities=identities),
        password_method="pbkdf2:sha256:1000",
    )
    # Populates the sequence, expiry and per-user indexes.
    svc.login(LoginIn(username="alice", password="Secret#123"))

    with pytest.raises(InvalidOrExpiredRefreshToken):
        svc.refresh(RefreshIn(refresh_token=token))
    with pytest.raises(InvalidOrExpiredRefreshToken):
        svc.logout(LogoutIn(refresh_token=token))
