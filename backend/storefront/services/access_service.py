# Overview: Per-request identity and the ownership check used by handlers.

"""
The identity comes straight from the validated token (see decorators.py);
nothing is re-read from the database. Role changes therefore take effect
when the user logs in again.

Fail closed: a missing identity, an unknown role or a missing grant all deny.
Denials are logged at WARNING with the path, actor and reason.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, g, has_request_context, request

from ..errors import Forbidden, Unauthenticated
from ..permissions import ALL, grants_cover, permissions_for, resource_wildcard


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str
    role_name: str | None

    @property
    def permissions(self) -> frozenset:
        return permissions_for(self.role_name)

    def can(self, required: str) -> bool:
        return grants_cover(self.permissions, required)

    @property
    def is_admin(self) -> bool:
        return ALL in self.permissions

    def manages(self, resource: str) -> bool:
        """Holds 'all' or '<resource>.*'."""
        grants = self.permissions
        return ALL in grants or resource_wildcard(resource) in grants


def current_identity() -> Identity:
    identity = getattr(g, "identity", None)
    if identity is None:
        raise Unauthenticated()
    return identity


def log_denial(identity: Identity | None, reason: str) -> None:
    path = request.path if has_request_context() else None
    method = request.method if has_request_context() else None
    current_app.logger.warning(
        "Access denied: %s %s user_id=%s role=%s reason=%s",
        method,
        path,
        identity.user_id if identity else None,
        identity.role_name if identity else None,
        reason,
    )


def ensure_permission(required: str, identity: Identity | None = None) -> Identity:
    identity = identity or current_identity()
    if not identity.can(required):
        log_denial(identity, f"missing permission {required}")
        raise Forbidden()
    return identity


def ensure_owner(owner_id: int | None, resource: str, *, identity: Identity | None = None,
                 admin_only_bypass: bool = False) -> Identity:
    """
    Row-level check: the caller must own the row, or manage the resource.

    admin_only_bypass=True narrows the bypass to the global 'all' grant;
    used where ordinary users hold '<resource>.*' (reviews) so that the
    wildcard cannot be used to edit someone else's row.
    """
    identity = identity or current_identity()
    if owner_id is not None and owner_id == identity.user_id:
        return identity

    if admin_only_bypass:
        allowed = identity.is_admin
    else:
        allowed = identity.manages(resource)

    if not allowed:
        log_denial(identity, f"not owner of {resource} row (owner_id={owner_id})")
        raise Forbidden()
    return identity
