# Overview: bcrypt password hashing with a configurable work factor.

"""
WHY a class: the work factor is configuration (4 in tests, 12+ in
production) and the hasher is built once per app in create_app().

SECURITY:
- verify() never raises. Empty, truncated or foreign digests simply fail,
  so a corrupt row can never turn a login into a 500.
- bcrypt.checkpw() is constant-time for the comparison itself.
"""

from __future__ import annotations

import bcrypt
from flask import current_app

MIN_WORK_FACTOR = 4
MAX_WORK_FACTOR = 31
DEFAULT_WORK_FACTOR = 10


def resolve_work_factor(value) -> int:
    """Unset or unparseable -> 10; otherwise clamped into bcrypt's 4..31 range."""
    if value is None or isinstance(value, bool):
        return DEFAULT_WORK_FACTOR
    try:
        rounds = int(str(value).strip())
    except ValueError:
        return DEFAULT_WORK_FACTOR
    return max(MIN_WORK_FACTOR, min(MAX_WORK_FACTOR, rounds))


# bcrypt only reads the first 72 bytes; recent releases reject longer input outright.
BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    def __init__(self, work_factor=None):
        self.work_factor = resolve_work_factor(work_factor)

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.work_factor)
        hashed = bcrypt.hashpw(_encode(plaintext), salt)
        return hashed.decode("utf-8")  # Store as string in database

    def verify(self, digest: str | None, plaintext: str | None) -> bool:
        if not digest or plaintext is None:
            return False
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed salt / digest
            return False


def get_password_hasher() -> PasswordHasher:
    return current_app.extensions["password_hasher"]
