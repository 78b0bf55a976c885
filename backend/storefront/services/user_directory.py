# Overview: Cached lookups of users and roles for the auth path.

"""
Login and role resolution hit the same few rows over and over, so they go
through a small in-process cache.

WHY snapshots: cached values are frozen dataclasses copied out of the ORM
rows. A cached SQLAlchemy instance would be bound to the session that
loaded it and go stale or detached across requests.

Freshness:
- users: 15 minutes, keyed by lowercased username and by id
- roles: 1 hour, keyed by id

Any write that changes a user's username, role or active flag must call
invalidate(user_id); role renames call invalidate_role(role_id).
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Role, User

USER_TTL_SECONDS = 15 * 60
ROLE_TTL_SECONDS = 60 * 60


def _username_key(username: str) -> str:
    return f"user:username:{username.lower()}"


def _id_key(user_id: int) -> str:
    return f"user:id:{user_id}"


def _role_key(role_id: int) -> str:
    return f"role:{role_id}"


class TimedCache:
    """Thread-safe dict with an absolute expiry per entry."""

    def __init__(self, default_ttl: int = 300, clock=time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, object]] = {}
        self._lock = threading.Lock()

    def get(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value, ttl: int | None = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (self._clock() + lifetime, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass(frozen=True)
class UserSnapshot:
    id: int
    username: str
    email: str | None
    password_hash: str
    role_id: int | None
    is_active: bool

    @classmethod
    def from_model(cls, user: User) -> "UserSnapshot":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            password_hash=user.password_hash,
            role_id=user.role_id,
            is_active=bool(user.is_active),
        )


@dataclass(frozen=True)
class RoleSnapshot:
    id: int
    name: str
    description: str | None


class UserDirectory:
    def __init__(self, default_ttl: int = 300, clock=time.monotonic, cache: TimedCache | None = None):
        self.cache = cache or TimedCache(default_ttl=default_ttl, clock=clock)

    def get_by_username(self, username: str) -> UserSnapshot | None:
        """Case-insensitive lookup of an ACTIVE user."""
        if not username:
            return None
        key = _username_key(username)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        user = (
            db.session.query(User)
            .filter(func.lower(User.username) == username.lower())
            .filter(User.is_active.is_(True))
            .first()
        )
        if user is None:
            return None

        snapshot = UserSnapshot.from_model(user)
        self.cache.set(key, snapshot, ttl=USER_TTL_SECONDS)
        self.cache.set(_id_key(user.id), snapshot, ttl=USER_TTL_SECONDS)
        return snapshot

    def get_role(self, role_id: int | None) -> RoleSnapshot | None:
        if role_id is None:
            return None
        key = _role_key(role_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        role = db.session.get(Role, role_id)
        if role is None:
            return None
        snapshot = RoleSnapshot(id=role.id, name=role.name, description=role.description)
        self.cache.set(key, snapshot, ttl=ROLE_TTL_SECONDS)
        return snapshot

    def invalidate(self, user_id: int) -> None:
        """Drop every cached entry for the user (by id and by username)."""
        usernames = set()
        cached = self.cache.get(_id_key(user_id))
        if cached is not None:
            usernames.add(cached.username)
        user = db.session.get(User, user_id)
        if user is not None:
            usernames.add(user.username)

        self.cache.delete(_id_key(user_id))
        for name in usernames:
            self.cache.delete(_username_key(name))

    def forget_username(self, username: str) -> None:
        """Used on rename: the old username key must not keep serving the user."""
        self.cache.delete(_username_key(username))

    def invalidate_role(self, role_id: int) -> None:
        self.cache.delete(_role_key(role_id))


def get_user_directory() -> UserDirectory:
    return current_app.extensions["user_directory"]
