# Overview: Flask API routes for user accounts; registration, login and management.

# backend/storefront/routes/users.py
"""
SECURITY:
- /register and /login are public; everything else needs a bearer token
- Listing and deactivating need users.view / users.delete (Admin)
- A user may read and edit their own record; role and active flag changes
  need users.update
"""
from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import paginate, parse_bool_arg, parse_pagination, success_response
from ..services import auth_service
from ..services.auth_service import (
    EMAIL_PATTERN,
    PASSWORD_MAX_LENGTH,
    PHONE_PATTERN,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)
from ..validation import body_field, parse_body, provided_fields

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@dataclass
class RegisterRequest:
    username: str = body_field("username", required=True, min_length=USERNAME_MIN_LENGTH,
                               max_length=USERNAME_MAX_LENGTH)
    password: str = body_field("password", required=True, max_length=PASSWORD_MAX_LENGTH, strip=False)
    email: str = body_field("email", max_length=255, pattern=EMAIL_PATTERN)
    phone: str = body_field("phone", max_length=20, pattern=PHONE_PATTERN)


@dataclass
class LoginRequest:
    username: str = body_field("username", required=True, max_length=USERNAME_MAX_LENGTH)
    password: str = body_field("password", required=True, max_length=PASSWORD_MAX_LENGTH, strip=False)


@dataclass
class CreateUserRequest:
    username: str = body_field("username", required=True, min_length=USERNAME_MIN_LENGTH,
                               max_length=USERNAME_MAX_LENGTH)
    password: str = body_field("password", required=True, max_length=PASSWORD_MAX_LENGTH, strip=False)
    email: str = body_field("email", max_length=255, pattern=EMAIL_PATTERN)
    phone: str = body_field("phone", max_length=20, pattern=PHONE_PATTERN)
    role_id: int = body_field("roleId", int, min_value=1)
    is_active: bool = body_field("isActive", bool, nullable=False)


@dataclass
class UpdateUserRequest:
    username: str = body_field("username", nullable=False, min_length=USERNAME_MIN_LENGTH,
                               max_length=USERNAME_MAX_LENGTH)
    password: str = body_field("password", nullable=False, max_length=PASSWORD_MAX_LENGTH, strip=False)
    email: str = body_field("email", max_length=255, pattern=EMAIL_PATTERN)
    phone: str = body_field("phone", max_length=20, pattern=PHONE_PATTERN)
    role_id: int = body_field("roleId", int, min_value=1)
    is_active: bool = body_field("isActive", bool, nullable=False)


@users_bp.post("/register")
def register():
    """Public sign-up; the new account is always a Customer."""
    body = parse_body(RegisterRequest, request.get_json(silent=True))
    user = auth_service.register(body.username, body.password, body.email, body.phone)
    return success_response(auth_service.serialize_user(user), "User registered successfully")


@users_bp.post("/login")
def login():
    body = parse_body(LoginRequest, request.get_json(silent=True))
    result = auth_service.authenticate(body.username, body.password)
    return success_response(result.to_dict(), "Login successful")


@users_bp.get("")
@require_auth
@require_permission("users.view")
def list_users():
    """
    Query params:
    - includeInactive: bool (default false)
    - search: substring of username or email
    - roleId: int
    - page, pageSize
    """
    page, page_size = parse_pagination(request.args)
    query = auth_service.list_users_query(
        include_inactive=parse_bool_arg(request.args, "includeInactive"),
        search=request.args.get("search"),
        role_id=request.args.get("roleId", type=int),
    )
    return success_response(paginate(query, page, page_size, auth_service.serialize_user))


@users_bp.get("/me")
@require_auth
def me():
    user = auth_service.get_user(g.identity.user_id, g.identity)
    return success_response(auth_service.serialize_user(user))


@users_bp.get("/<int:user_id>")
@require_auth
def get_user(user_id: int):
    user = auth_service.get_user(user_id, g.identity)
    return success_response(auth_service.serialize_user(user))


@users_bp.post("")
@require_auth
@require_permission("users.create")
def create_user():
    body = parse_body(CreateUserRequest, request.get_json(silent=True))
    user = auth_service.create_user(
        body.username, body.password, body.email, body.phone, body.role_id, body.is_active
    )
    return success_response(auth_service.serialize_user(user), "User created successfully", 201)


@users_bp.put("/<int:user_id>")
@require_auth
def update_user(user_id: int):
    payload = request.get_json(silent=True)
    body = parse_body(UpdateUserRequest, payload)
    changes = {name: getattr(body, name) for name in provided_fields(body, payload)}
    user = auth_service.update_user(user_id, g.identity, changes)
    return success_response(auth_service.serialize_user(user), "User updated successfully")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("users.delete")
def delete_user(user_id: int):
    """Soft delete: the account is deactivated, its orders and reviews stay."""
    auth_service.deactivate_user(user_id)
    return success_response(None, "User deactivated successfully")
