# Overview: Service-layer operations for users; registration, login and account management.

"""
WHY: Every action must be attributable. Accounts are created here, passwords
hashed with bcrypt (services/password_hasher.py), and tokens issued on login.

SECURITY NOTES:
- Password: 6-100 characters with at least one uppercase, one lowercase
  and one digit
- Login failures (unknown user, wrong password, deactivated user) all get
  the same 401 message; the real reason is only logged
- Public registration always yields a Customer; only users.create can pick
  another role
- Users are soft-deleted; the user directory cache is invalidated on every
  change to username, role or active flag
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func

from ..errors import Forbidden, NotFound, Unauthenticated, ValidationFailed
from ..extensions import db
from ..models import Role, User
from ..permissions import CUSTOMER, CUSTOMER_ROLE_ID
from ..time_utils import utcnow
from .access_service import Identity, ensure_owner, log_denial
from .concurrency import atomic
from .invariants import ensure_unique, soft_delete_user

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PHONE_PATTERN = r"^(\+84|84|0)(3|5|7|8|9)[0-9]{8}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

INVALID_CREDENTIALS = "Invalid username or password"


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - 6 to 100 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises ValidationFailed with every unmet rule.
    """
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH or len(password) > PASSWORD_MAX_LENGTH:
        problems.append(f"must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        problems.append("must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        problems.append("must contain at least one digit")
    if problems:
        raise ValidationFailed("Password does not meet requirements", errors={"password": "; ".join(problems)})


def _customer_role() -> Role:
    role = db.session.get(Role, CUSTOMER_ROLE_ID)
    if role is None or role.name.lower() != CUSTOMER.lower():
        role = db.session.query(Role).filter(func.lower(Role.name) == CUSTOMER.lower()).first()
    if role is None:
        raise RuntimeError("Customer role missing; run `flask system seed-roles`")
    return role


def _require_role(role_id: int | None) -> Role | None:
    if role_id is None:
        return None
    role = db.session.get(Role, role_id)
    if role is None:
        raise ValidationFailed("Role not found", errors={"roleId": "does not exist"})
    return role


def role_for(user: User) -> Role | None:
    return db.session.get(Role, user.role_id) if user.role_id is not None else None


def serialize_user(user: User) -> dict:
    return user.to_dict(role=role_for(user))


def _create(username: str, password: str, email: str | None, phone: str | None,
            role_id: int | None, is_active: bool = True) -> User:
    validate_password_strength(password)
    ensure_unique(User.username, username, "Username", field="username")
    ensure_unique(User.email, email, "Email", field="email")

    hasher = current_app.extensions["password_hasher"]
    with atomic():
        user = User(
            username=username,
            password_hash=hasher.hash(password),
            email=email,
            phone=phone,
            role_id=role_id,
            is_active=is_active,
        )
        db.session.add(user)
    current_app.logger.info("User created: id=%s username=%s role_id=%s", user.id, user.username, role_id)
    return user


def register(username: str, password: str, email: str | None = None, phone: str | None = None) -> User:
    """Self-service sign-up. The role is always Customer."""
    return _create(username, password, email, phone, _customer_role().id)


def create_user(username: str, password: str, email: str | None, phone: str | None,
                role_id: int | None, is_active: bool | None = None) -> User:
    """Administrative creation with any role."""
    _require_role(role_id)
    return _create(username, password, email, phone, role_id, True if is_active is None else is_active)


@dataclass(frozen=True)
class LoginResult:
    user_id: int
    username: str
    email: str | None
    token: str
    role_id: int | None
    role_name: str | None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "username": self.username,
            "email": self.email,
            "token": self.token,
            "roleId": self.role_id,
            "roleName": self.role_name,
        }


def authenticate(username: str, password: str) -> LoginResult:
    """
    Verify credentials and issue a token.

    SECURITY: Raises the same Unauthenticated for every failure.
    Deactivated users are invisible to the directory, so they fail here too.
    """
    directory = current_app.extensions["user_directory"]
    hasher = current_app.extensions["password_hasher"]

    user = directory.get_by_username(username)
    if user is None or not hasher.verify(user.password_hash, password):
        current_app.logger.warning(
            "Failed login for username=%s reason=%s",
            username,
            "unknown or inactive user" if user is None else "bad password",
        )
        raise Unauthenticated(INVALID_CREDENTIALS)

    role = directory.get_role(user.role_id)
    role_name = role.name if role else None
    token = current_app.extensions["token_service"].issue(user, role_name)
    current_app.logger.info("Login: user_id=%s", user.id)
    return LoginResult(
        user_id=user.id,
        username=user.username,
        email=user.email,
        token=token,
        role_id=user.role_id,
        role_name=role_name,
    )


def list_users_query(include_inactive: bool = False, search: str | None = None, role_id: int | None = None):
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(func.lower(User.username).like(like) | func.lower(User.email).like(like))
    if role_id is not None:
        query = query.filter(User.role_id == role_id)
    return query.order_by(User.id.asc())


def get_user(user_id: int, identity: Identity) -> User:
    """Owner or users.* holders. Inactive users are hidden from everyone else."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    ensure_owner(user.id, "users", identity=identity)
    if not user.is_active and not identity.manages("users"):
        raise NotFound("User not found")
    return user


def update_user(user_id: int, identity: Identity, changes: dict) -> User:
    """
    Apply a partial update. changes keys: username, email, phone, password, role_id, is_active.

    Role and active-flag changes need users.update even for the owner.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    ensure_owner(user.id, "users", identity=identity)

    privileged = {"role_id", "is_active"} & set(changes)
    if privileged and not identity.can("users.update"):
        log_denial(identity, f"changing {', '.join(sorted(privileged))} requires users.update")
        raise Forbidden("Only administrators can change role or account status")

    if "username" in changes:
        ensure_unique(User.username, changes["username"], "Username", exclude_id=user.id, field="username")
    if changes.get("email") is not None:
        ensure_unique(User.email, changes["email"], "Email", exclude_id=user.id, field="email")
    if "role_id" in changes:
        _require_role(changes["role_id"])
    if changes.get("password") is not None:
        validate_password_strength(changes["password"])

    directory = current_app.extensions["user_directory"]
    old_username = user.username

    with atomic():
        if "username" in changes:
            user.username = changes["username"]
        if "email" in changes:
            user.email = changes["email"]
        if "phone" in changes:
            user.phone = changes["phone"]
        if changes.get("password") is not None:
            user.password_hash = current_app.extensions["password_hasher"].hash(changes["password"])
        if "role_id" in changes:
            user.role_id = changes["role_id"]
        if "is_active" in changes:
            user.is_active = bool(changes["is_active"])
        user.updated_at = utcnow()

    directory.invalidate(user.id)
    directory.forget_username(old_username)
    return user


def deactivate_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    soft_delete_user(user, current_app.extensions["user_directory"])
    current_app.logger.info("User deactivated: id=%s", user.id)
    return user
