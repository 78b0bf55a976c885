# Overview: Flask API routes for roles and their derived permissions.

from dataclasses import dataclass

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..errors import NotFound
from ..permissions import is_known_role, permissions_for
from ..responses import paginate, parse_pagination, success_response
from ..services import role_service
from ..services.auth_service import serialize_user
from ..validation import body_field, parse_body, provided_fields

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@dataclass
class CreateRoleRequest:
    name: str = body_field("name", required=True, min_length=2, max_length=64)
    description: str = body_field("description", max_length=255)


@dataclass
class UpdateRoleRequest:
    name: str = body_field("name", nullable=False, min_length=2, max_length=64)
    description: str = body_field("description", max_length=255)


@roles_bp.get("")
def list_roles():
    """Public: clients need role names to render sign-up and admin screens."""
    return success_response([r.to_dict() for r in role_service.list_roles()])


@roles_bp.get("/<int:role_id>")
@require_auth
@require_permission("roles.view")
def get_role(role_id: int):
    role = role_service.get_role(role_id)
    data = role.to_dict()
    data["users"] = [serialize_user(u) for u in role_service.users_in_role_query(role.id).all()]
    return success_response(data)


@roles_bp.get("/<int:role_id>/users")
@require_auth
@require_permission("roles.view")
def role_users(role_id: int):
    role_service.get_role(role_id)
    page, page_size = parse_pagination(request.args)
    return success_response(paginate(role_service.users_in_role_query(role_id), page, page_size, serialize_user))


@roles_bp.get("/<string:role_name>/permissions")
def role_permissions(role_name: str):
    """Public: the permission set derived from a role name (case and spaces ignored)."""
    if not is_known_role(role_name):
        raise NotFound("Role not found")
    return success_response({
        "role": role_name,
        "permissions": sorted(permissions_for(role_name)),
    })


@roles_bp.post("")
@require_auth
@require_permission("roles.create")
def create_role():
    body = parse_body(CreateRoleRequest, request.get_json(silent=True))
    role = role_service.create_role(body.name, body.description)
    return success_response(role.to_dict(), "Role created successfully", 201)


@roles_bp.put("/<int:role_id>")
@require_auth
@require_permission("roles.update")
def update_role(role_id: int):
    payload = request.get_json(silent=True)
    body = parse_body(UpdateRoleRequest, payload)
    present = provided_fields(body, payload)
    role = role_service.update_role(
        role_id,
        name=body.name,
        description=body.description,
        description_provided="description" in present,
        directory=current_app.extensions["user_directory"],
    )
    return success_response(role.to_dict(), "Role updated successfully")


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_permission("roles.delete")
def delete_role(role_id: int):
    """Blocked with 409 while any user (active or not) holds the role."""
    role_service.delete_role(role_id, directory=current_app.extensions["user_directory"])
    return success_response(None, "Role deleted successfully")
