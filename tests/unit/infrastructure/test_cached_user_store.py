"""
Unit tests for CachingUserStore and UserCache.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from accounts.application.user_business import new_business
from accounts.domain.entities import Role, UpdateUser, User
from accounts.domain.errors import AuthenticationFailureError, UserNotFoundError
from accounts.domain.query import DEFAULT_ORDER_BY, Page, QueryFilter
from accounts.infrastructure.repositories import (
    CachingUserStore,
    InMemoryUserStore,
    UserCache,
)

pytestmark = pytest.mark.unit


class CountingStore(InMemoryUserStore):
    """InMemoryUserStore that counts lookups reaching it."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.lookups = 0

    def new_with_tx(self, tx):
        bound = super().new_with_tx(tx)
        counting = CountingStore(_table=bound._table, _tx=bound._tx)
        return counting

    def query_by_id(self, user_id):
        self.lookups += 1
        return super().query_by_id(user_id)

    def query_by_email(self, email):
        self.lookups += 1
        return super().query_by_email(email)


class ManualClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_user(email: str = "ada@example.com") -> User:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return User(
        id=uuid4(),
        name="Ada",
        email=email,
        password_hash="$argon2id$fake",
        roles=(Role.USER,),
        department="",
        enabled=True,
        date_created=now,
        date_updated=now,
    )


@pytest.fixture
def backing() -> CountingStore:
    return CountingStore()


@pytest.fixture
def cached(backing) -> CachingUserStore:
    return CachingUserStore(backing, UserCache(ttl_seconds=60, max_entries=100))


# =========================================================
# UserCache
# =========================================================


class TestUserCache:
    def test_get_set_and_stats(self):
        cache = UserCache(ttl_seconds=60, max_entries=10)
        usr = make_user()

        assert cache.get("id:x") is None
        cache.set("id:x", usr)

        assert cache.get("id:x") == usr
        assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    def test_entries_expire(self):
        clock = ManualClock()
        cache = UserCache(ttl_seconds=5, max_entries=10, clock=clock)
        cache.set("k", make_user())

        clock.now = 4.9
        assert cache.get("k") is not None
        clock.now = 5.0
        assert cache.get("k") is None
        assert cache.stats()["size"] == 0

    def test_least_recently_used_is_evicted(self):
        cache = UserCache(ttl_seconds=60, max_entries=2)
        a, b, c = make_user("a@x.io"), make_user("b@x.io"), make_user("c@x.io")
        cache.set("a", a)
        cache.set("b", b)
        cache.get("a")

        cache.set("c", c)

        assert cache.get("b") is None
        assert cache.get("a") == a
        assert cache.get("c") == c

    def test_delete_returns_previous_value(self):
        cache = UserCache(ttl_seconds=60, max_entries=10)
        usr = make_user()
        cache.set("k", usr)

        assert cache.delete("k") == usr
        assert cache.delete("k") is None

    def test_clear(self):
        cache = UserCache(ttl_seconds=60, max_entries=10)
        cache.set("k", make_user())

        cache.clear()

        assert cache.stats()["size"] == 0


# =========================================================
# CachingUserStore
# =========================================================


class TestCachingUserStore:
    def test_created_user_is_served_from_cache(self, cached, backing):
        usr = make_user()
        cached.create(usr)

        assert cached.query_by_id(usr.id) == usr
        assert cached.query_by_email("ADA@example.com") == usr
        assert backing.lookups == 0

    def test_miss_then_hit(self, cached, backing):
        usr = make_user()
        backing.create(usr)

        cached.query_by_id(usr.id)
        cached.query_by_id(usr.id)
        cached.query_by_email(usr.email)

        assert backing.lookups == 1

    def test_update_invalidates_old_and_new_email(self, cached, backing):
        usr = make_user("old@example.com")
        cached.create(usr)
        moved = replace(usr, email="new@example.com")

        cached.update(moved)

        assert cached.query_by_id(usr.id) == moved
        with pytest.raises(UserNotFoundError):
            cached.query_by_email("old@example.com")

    def test_delete_invalidates(self, cached):
        usr = make_user()
        cached.create(usr)

        cached.delete(usr)

        with pytest.raises(UserNotFoundError):
            cached.query_by_id(usr.id)
        with pytest.raises(UserNotFoundError):
            cached.query_by_email(usr.email)

    def test_not_found_is_not_cached(self, cached, backing):
        missing = uuid4()

        for _ in range(2):
            with pytest.raises(UserNotFoundError):
                cached.query_by_id(missing)

        assert backing.lookups == 2

    def test_listing_bypasses_cache(self, cached):
        usr = make_user()
        cached.create(usr)

        assert cached.query(QueryFilter(), DEFAULT_ORDER_BY, Page()) == [usr]
        assert cached.count(QueryFilter()) == 1

    def test_transaction_bound_store_never_reads_cache(self, cached, backing):
        usr = make_user()
        cached.create(usr)
        tx = backing.begin()

        bound = cached.new_with_tx(tx)
        assert bound.cache is cached.cache
        assert bound.query_by_id(usr.id) == usr

        extra = make_user("tx@example.com")
        bound.create(extra)
        tx.rollback()

        with pytest.raises(UserNotFoundError):
            cached.query_by_id(extra.id)

    def test_transaction_writes_invalidate_shared_cache(self, cached, backing):
        usr = make_user()
        cached.create(usr)
        tx = backing.begin()

        cached.new_with_tx(tx).update(replace(usr, name="Renamed"))
        tx.commit()

        assert cached.query_by_id(usr.id).name == "Renamed"

    def test_default_cache_comes_from_settings(self, backing):
        store = CachingUserStore(backing)

        assert store.cache.stats()["size"] == 0


def test_business_over_caching_store(delegate, actor_id, new_user, backing, cached):
    bus = new_business(cached, delegate)
    nu = new_user()
    usr = bus.create(actor_id, nu)

    assert bus.authenticate(nu.email, nu.password) == usr

    disabled = bus.update(actor_id, usr, UpdateUser(enabled=False))

    assert bus.query_by_id(usr.id) == disabled
    assert backing.lookups == 1


# =========================================================
# Stale entries after eviction and rollback
# =========================================================


def test_invalidate_user_drops_keys_left_after_eviction():
    cache = UserCache(ttl_seconds=60, max_entries=3)
    usr, other = make_user("old@example.com"), make_user("b@example.com")
    cache.set(f"id:{usr.id}", usr)
    cache.set("email:old@example.com", usr)
    cache.set(f"id:{other.id}", other)
    cache.set("email:b@example.com", other)

    assert cache.get(f"id:{usr.id}") is None
    assert cache.invalidate_user(usr.id) == 1
    assert cache.get("email:old@example.com") is None
    assert cache.get("email:b@example.com") == other


def test_overwritten_key_is_not_invalidated_with_previous_holder():
    cache = UserCache(ttl_seconds=60, max_entries=10)
    first, second = make_user("shared@example.com"), make_user("shared@example.com")
    cache.set("email:shared@example.com", first)
    cache.set("email:shared@example.com", second)

    assert cache.invalidate_user(first.id) == 0
    assert cache.get("email:shared@example.com") == second


def test_old_credentials_fail_after_email_and_password_change_with_evicted_id(
    delegate, actor_id, new_user
):
    backing = InMemoryUserStore()
    cached = CachingUserStore(backing, UserCache(ttl_seconds=60, max_entries=3))
    bus = new_business(cached, delegate)

    usr = bus.create(
        actor_id, new_user(email="old@example.com", password="oldpw")
    )
    bus.create(actor_id, new_user())
    assert cached.cache.get(f"id:{usr.id}") is None

    bus.update(
        actor_id, usr, UpdateUser(email="new@example.com", password="newpw")
    )

    with pytest.raises(AuthenticationFailureError):
        bus.authenticate("old@example.com", "oldpw")
    with pytest.raises(UserNotFoundError):
        bus.query_by_email("old@example.com")
    assert bus.authenticate("new@example.com", "newpw").id == usr.id


def test_rollback_evicts_uncommitted_user_cached_by_outside_reader(
    delegate, actor_id, new_user, backing, cached
):
    bus = new_business(cached, delegate)
    tx = backing.begin()
    nu = new_user()

    usr = bus.new_with_tx(tx).create(actor_id, nu)
    assert bus.query_by_id(usr.id) == usr
    assert bus.query_by_email(nu.email) == usr
    tx.rollback()

    with pytest.raises(UserNotFoundError):
        bus.query_by_id(usr.id)
    with pytest.raises(UserNotFoundError):
        bus.query_by_email(nu.email)


def test_rollback_restores_pre_image_after_outside_read(
    delegate, actor_id, new_user, backing, cached
):
    bus = new_business(cached, delegate)
    usr = bus.create(actor_id, new_user())
    tx = backing.begin()

    bus.new_with_tx(tx).update(actor_id, usr, UpdateUser(name="Uncommitted"))
    assert bus.query_by_id(usr.id).name == "Uncommitted"
    tx.rollback()

    assert bus.query_by_id(usr.id) == usr


def test_commit_keeps_cache_usable(delegate, actor_id, new_user, backing, cached):
    bus = new_business(cached, delegate)
    tx = backing.begin()

    usr = bus.new_with_tx(tx).create(actor_id, new_user())
    tx.commit()

    assert bus.query_by_id(usr.id) == usr
