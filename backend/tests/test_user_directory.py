"""
User directory cache tests.

Verifies:
- TimedCache expiry with an injected clock
- lookups are case-insensitive and skip inactive users
- cached entries are detached snapshots
- invalidate() drops both the id and username entries
"""

import pytest

from storefront.extensions import db
from storefront.models import User
from storefront.permissions import CUSTOMER
from storefront.services.user_directory import (
    ROLE_TTL_SECONDS,
    USER_TTL_SECONDS,
    TimedCache,
    UserDirectory,
    UserSnapshot,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def directory(app, clock):
    return UserDirectory(default_ttl=300, clock=clock)


class TestTimedCache:

    def test_default_ttl(self, clock):
        cache = TimedCache(default_ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(9)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is None

    def test_explicit_ttl_and_delete(self, clock):
        cache = TimedCache(default_ttl=10, clock=clock)
        cache.set("k", "v", ttl=100)
        clock.advance(50)
        assert cache.get("k") == "v"
        cache.delete("k")
        assert cache.get("k") is None
        cache.delete("missing")

    def test_clear(self, clock):
        cache = TimedCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0


class TestLookups:

    def test_case_insensitive(self, directory, make_user):
        user = make_user("Alice", CUSTOMER)
        snapshot = directory.get_by_username("aLiCe")
        assert isinstance(snapshot, UserSnapshot)
        assert snapshot.id == user.id
        assert snapshot.username == "Alice"

    def test_inactive_user_hidden(self, directory, make_user):
        user = make_user("ghost", CUSTOMER)
        user.is_active = False
        db.session.commit()
        assert directory.get_by_username("ghost") is None

    def test_unknown_user(self, directory):
        assert directory.get_by_username("nobody") is None
        assert directory.get_by_username("") is None

    def test_user_cached_for_fifteen_minutes(self, directory, make_user, clock):
        user = make_user("cached", CUSTOMER)
        first = directory.get_by_username("cached")

        # Rename behind the cache's back: the stale snapshot is still served
        user.username = "renamed"
        db.session.commit()
        assert directory.get_by_username("cached") is first

        clock.advance(USER_TTL_SECONDS)
        assert directory.get_by_username("cached") is None
        assert directory.get_by_username("renamed").id == user.id

    def test_role_cached_for_an_hour(self, directory, clock):
        role = directory.get_role(6)
        assert role.name == CUSTOMER
        assert directory.get_role(6) is role
        clock.advance(ROLE_TTL_SECONDS)
        assert directory.get_role(6) is not role

    def test_role_none_and_missing(self, directory):
        assert directory.get_role(None) is None
        assert directory.get_role(999) is None

    def test_snapshot_survives_session_close(self, directory, make_user):
        make_user("detached", CUSTOMER)
        snapshot = directory.get_by_username("detached")
        db.session.remove()
        assert directory.get_by_username("detached").username == snapshot.username


class TestInvalidate:

    def test_drops_username_and_id(self, directory, make_user):
        user = make_user("erin", CUSTOMER)
        directory.get_by_username("erin")
        assert len(directory.cache) == 2

        directory.invalidate(user.id)
        assert len(directory.cache) == 0

    def test_deactivation_takes_effect_after_invalidate(self, directory, make_user):
        user = make_user("frank", CUSTOMER)
        assert directory.get_by_username("frank") is not None

        db.session.get(User, user.id).is_active = False
        db.session.commit()
        directory.invalidate(user.id)

        assert directory.get_by_username("frank") is None

    def test_invalidate_role(self, directory):
        role = directory.get_role(1)
        directory.invalidate_role(1)
        assert directory.get_role(1) is not role
