# Overview: Service-layer operations for roles; seeding and CRUD.

from __future__ import annotations

from sqlalchemy import func

from ..errors import Conflict, NotFound
from ..extensions import db
from ..models import Role, User
from ..permissions import DEFAULT_ROLES
from .concurrency import atomic
from .invariants import ensure_unique, guard_role_delete

BUILTIN_ROLE_IDS = frozenset(role_id for role_id, _, _ in DEFAULT_ROLES)


def seed_default_roles() -> list[Role]:
    """
    Insert any built-in role that is missing. Idempotent.

    Ids are fixed so that role ids in clients and seed data stay stable.
    Existing rows (matched by id or by name) are left untouched.
    """
    created = []
    with atomic():
        for role_id, name, description in DEFAULT_ROLES:
            by_id = db.session.get(Role, role_id)
            by_name = get_role_by_name(name)
            if by_id is not None or by_name is not None:
                continue
            role = Role(id=role_id, name=name, description=description)
            db.session.add(role)
            created.append(role)
    return created


def get_role_by_name(name: str) -> Role | None:
    return db.session.query(Role).filter(func.lower(Role.name) == name.lower()).first()


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFound("Role not found")
    return role


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.id.asc()).all()


def users_in_role_query(role_id: int):
    return db.session.query(User).filter(User.role_id == role_id).order_by(User.id.asc())


def create_role(name: str, description: str | None) -> Role:
    ensure_unique(Role.name, name, "Role name", field="name")
    with atomic():
        role = Role(name=name, description=description)
        db.session.add(role)
    return role


def update_role(role_id: int, *, name: str | None = None, description: str | None = None,
                description_provided: bool = False, directory=None) -> Role:
    role = get_role(role_id)
    with atomic():
        if name is not None and name != role.name:
            if role.id in BUILTIN_ROLE_IDS:
                # grants are keyed by role name
                raise Conflict("Built-in roles cannot be renamed", errors={"name": role.name})
            ensure_unique(Role.name, name, "Role name", exclude_id=role.id, field="name")
            role.name = name
        if description_provided:
            role.description = description
    if directory is not None:
        directory.invalidate_role(role.id)
    return role


def delete_role(role_id: int, directory=None) -> None:
    role = get_role(role_id)
    if role.id in BUILTIN_ROLE_IDS:
        raise Conflict("Built-in roles cannot be deleted", errors={"roleId": role.id})
    guard_role_delete(role.id)
    with atomic():
        db.session.delete(role)
    if directory is not None:
        directory.invalidate_role(role_id)
