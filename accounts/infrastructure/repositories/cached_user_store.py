"""
Name: Cached User Store (Decorator)

What it does
------------
A **Decorator** over `UserStorer` that adds:
- Cache-aside for query_by_id / query_by_email (get → miss → storer → set)
- LRU bound + TTL expiry (in memory, thread-safe)
- Invalidation on update/delete (every key holding the user)

Architecture
------------
- Layer: Infrastructure (adapter/decorator)
- Port: `UserStorer` (domain) → the business core cannot tell it is cached

Transactions
------------
new_with_tx() returns a decorator over the tx-bound storer that never READS
from the cache (uncommitted rows must not be served to other callers) but
still invalidates on writes. Its writes also register an invalidation on the
transaction's undo log: a reader outside the transaction may have cached an
uncommitted row, and rollback must not leave it behind.

Invalidation is by user id (UserCache keeps an id -> keys index), so the
email keys of a user are dropped even after its id entry was evicted.

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: CachingUserStore
Responsibilities:
  - Resolve lookups with cache-aside
  - Keep id/email entries consistent on writes
Collaborators:
  - UserStorer (wrapped storer)
  - UserCache (LRU + TTL)
  - crosscutting.config: user_cache_ttl_seconds / user_cache_max_entries
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, List, Optional, Set
from uuid import UUID

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from ...domain.entities import User
from ...domain.query import OrderBy, Page, QueryFilter
from ...domain.repositories import CommitRollbacker, UserStorer


def _id_key(user_id: UUID) -> str:
    return f"id:{user_id}"


def _email_key(email: str) -> str:
    return f"email:{(email or '').strip().lower()}"


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    user: User
    expires_at: float


class UserCache:
    """
    In-memory LRU with TTL. OrderedDict gives deterministic eviction.

    Every entry is also indexed by the id of the user it holds, so all keys of
    a user can be dropped at once even after some of them were evicted.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max = max_entries
        self._clock = clock
        self._lock = Lock()
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._keys_by_user: Dict[UUID, Set[str]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[User]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= self._clock():
                self._drop(key)
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.user

    def set(self, key: str, user: User) -> None:
        with self._lock:
            self._drop(key)
            self._entries[key] = _CacheEntry(
                user=user, expires_at=self._clock() + self._ttl
            )
            self._keys_by_user.setdefault(user.id, set()).add(key)
            while len(self._entries) > self._max:
                oldest = next(iter(self._entries))
                self._drop(oldest)

    def delete(self, key: str) -> Optional[User]:
        with self._lock:
            entry = self._drop(key)
        return entry.user if entry else None

    def invalidate_user(self, user_id: UUID) -> int:
        """Drop every key holding `user_id`. Returns how many were dropped."""
        with self._lock:
            keys = self._keys_by_user.pop(user_id, set())
            for key in keys:
                self._entries.pop(key, None)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._keys_by_user.clear()

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}

    def _drop(self, key: str) -> Optional[_CacheEntry]:
        """Caller must hold the lock."""
        entry = self._entries.pop(key, None)
        if entry is not None:
            keys = self._keys_by_user.get(entry.user.id)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._keys_by_user[entry.user.id]
        return entry


class CachingUserStore:
    """R: UserStorer decorator with cache-aside lookups."""

    def __init__(
        self,
        storer: UserStorer,
        cache: Optional[UserCache] = None,
        *,
        _read_cache: bool = True,
        _tx: Optional[CommitRollbacker] = None,
    ) -> None:
        if cache is None:
            settings = get_settings()
            cache = UserCache(
                ttl_seconds=settings.user_cache_ttl_seconds,
                max_entries=settings.user_cache_max_entries,
            )
        self._storer = storer
        self._cache = cache
        self._read_cache = _read_cache
        self._tx = _tx

    @property
    def cache(self) -> UserCache:
        return self._cache

    def new_with_tx(self, tx: CommitRollbacker) -> "CachingUserStore":
        return CachingUserStore(
            self._storer.new_with_tx(tx), self._cache, _read_cache=False, _tx=tx
        )

    # -----------------------------------------------------------------------
    # Writes: storer first, then keep the cache consistent
    # -----------------------------------------------------------------------
    def create(self, user: User) -> None:
        self._invalidate_on_rollback(user)
        self._storer.create(user)
        if self._read_cache:
            self._put(user)

    def update(self, user: User) -> None:
        self._invalidate_on_rollback(user)
        self._storer.update(user)
        self._invalidate(user)

    def delete(self, user: User) -> None:
        self._invalidate_on_rollback(user)
        self._storer.delete(user)
        self._invalidate(user)

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------
    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        return self._storer.query(filter, order_by, page)

    def count(self, filter: QueryFilter) -> int:
        return self._storer.count(filter)

    def query_by_id(self, user_id: UUID) -> User:
        if self._read_cache:
            cached = self._cache.get(_id_key(user_id))
            if cached is not None:
                return cached

        user = self._storer.query_by_id(user_id)
        if self._read_cache:
            self._put(user)
        return user

    def query_by_email(self, email: str) -> User:
        if self._read_cache:
            cached = self._cache.get(_email_key(email))
            if cached is not None:
                return cached

        user = self._storer.query_by_email(email)
        if self._read_cache:
            self._put(user)
        return user

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    def _put(self, user: User) -> None:
        self._cache.set(_id_key(user.id), user)
        self._cache.set(_email_key(user.email), user)

    def _invalidate(self, user: User) -> None:
        self._cache.invalidate_user(user.id)
        self._cache.delete(_email_key(user.email))

        logger.debug("user cache invalidated", extra={"user_id": str(user.id)})

    def _invalidate_on_rollback(self, user: User) -> None:
        """
        Register a cache invalidation on the bound transaction's undo log.

        Registered before the write so that, undone in reverse order, it runs
        after the storer has restored the row. Handles without an undo log
        (record_undo) are left to the TTL.
        """
        record_undo = getattr(self._tx, "record_undo", None)
        if record_undo is None:
            return

        cache = self._cache
        user_id = user.id
        email_key = _email_key(user.email)

        def undo() -> None:
            cache.invalidate_user(user_id)
            cache.delete(email_key)

        record_undo(undo)
