# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime

import redis  # type: ignore[import-untyped]
from redis.exceptions import ConnectionError as RedisConnectionError  # type: ignore[import-untyped]
from redis.exceptions import TimeoutError as RedisTimeoutError  # type: ignore[import-untyped]

from secureauth.services._shared.base import from_epoch, to_epoch
from secureauth.services._shared.dto import Identity, RefreshTokenRecord
from secureauth.services._shared.errors import ConflictError, StoreUnavailable
from secureauth.services._shared.ports import IdentityStore, RefreshTokenStore

# Records and indexes live under disjoint prefixes so no client-supplied
# token string can address an index key.
TOKEN_PREFIX = "rt:tok:"
INDEX_PREFIX = "rt:idx:"
EXPIRY_INDEX = f"{INDEX_PREFIX}exp"
ID_SEQUENCE = f"{INDEX_PREFIX}seq"


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Layout:

    * ``rt:tok:<token>``: hash with ``id``, ``user_id``, ``username``,
      ``expires_at`` (Unix seconds) and ``revoked`` (``"0"``/``"1"``).
    * ``rt:idx:u:<user_id>``: set of token strings owned by a user.
    * ``rt:idx:exp``: sorted set of token strings scored by ``expires_at``.

    Keys carry no TTL: expired records stay readable (and report as expired)
    until :meth:`delete_expired_refresh_tokens` sweeps them.

    :param r: A Redis client (already connected).
    :param identities: Resolves the owning identity when a record is loaded.
    """

    r: redis.Redis
    identities: IdentityStore

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token: str) -> str:
        return f"{TOKEN_PREFIX}{token}"

    @staticmethod
    def _ku(user_id: int | str) -> str:
        return f"{INDEX_PREFIX}u:{user_id}"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreUnavailable() from exc

    # -------------------- API ------------------------

    def find_refresh_token_by_token_string(self, token: str) -> RefreshTokenRecord | None:
        with self._guard():
            h = self.r.hgetall(self._k(token))
        if not h:
            return None
        fields = {_s(k): _s(v) for k, v in h.items()}
        username = fields.get("username")
        if not username:
            # Partial hash (never written by save); treat as absent.
            return None
        identity = self.identities.find_identity_by_username(username)
        if identity is None or str(identity.id) != fields.get("user_id"):
            return None
        return RefreshTokenRecord(
            id=int(fields["id"]),
            token=token,
            identity=identity,
            expires_at=from_epoch(int(fields.get("expires_at", "0"))),
            revoked=fields.get("revoked", "0") == "1",
        )

    def save_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        key = self._k(record.token)
        exp_ts = to_epoch(record.expires_at)
        with self._guard():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        if p.exists(key):
                            p.unwatch()
                            raise ConflictError("RefreshToken", "token string already exists")
                        new_id = int(self.r.incr(ID_SEQUENCE))
                        p.multi()
                        p.hset(
                            key,
                            mapping={
                                "id": str(new_id),
                                "user_id": str(record.identity.id),
                                "username": record.identity.username,
                                "expires_at": str(exp_ts),
                                "revoked": "1" if record.revoked else "0",
                            },
                        )
                        p.sadd(self._ku(record.identity.id), record.token)
                        p.zadd(EXPIRY_INDEX, {record.token: exp_ts})
                        p.execute()
                    return replace(record, id=new_id, expires_at=from_epoch(exp_ts))
                except redis.WatchError:
                    # Concurrent modification detected; retry
                    continue

    def mark_revoked_for_identity(self, identity: Identity) -> int:
        key_u = self._ku(identity.id)
        with self._guard():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key_u)
                        tokens = sorted(_s(m) for m in p.smembers(key_u))
                        keys = [self._k(t) for t in tokens]
                        if keys:
                            p.watch(*keys)
                        # Never hset a swept key: that would leave a partial hash behind.
                        live = [k for k in keys if p.exists(k)]
                        p.multi()
                        for k in live:
                            p.hset(k, "revoked", "1")
                        p.execute()
                    return len(live)
                except redis.WatchError:
                    continue

    def delete_expired_refresh_tokens(self, now: datetime) -> int:
        now_ts = to_epoch(now)
        with self._guard():
            expired = [_s(t) for t in self.r.zrangebyscore(EXPIRY_INDEX, "-inf", now_ts)]
            if not expired:
                return 0
            owners = self.r.pipeline(transaction=False)
            for token in expired:
                owners.hget(self._k(token), "user_id")
            user_ids = owners.execute()

            pipe = self.r.pipeline(transaction=True)
            for token, uid in zip(expired, user_ids, strict=True):
                pipe.delete(self._k(token))
                if uid is not None:
                    pipe.srem(self._ku(_s(uid)), token)
            pipe.zrem(EXPIRY_INDEX, *expired)
            pipe.execute()
        return len(expired)
