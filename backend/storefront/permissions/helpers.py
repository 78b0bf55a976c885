# Overview: Role -> permission lookups and the authorization check.

from .definitions import ALL, resource_wildcard, split_permission
from .roles import DEFAULT_ROLE_PERMISSIONS


def normalize_role_name(role_name: str | None) -> str:
    """'Product Manager', 'productmanager' and 'ProductManager' all normalize to 'productmanager'."""
    if not role_name:
        return ""
    return "".join(role_name.split()).lower()


_BY_NORMALIZED_NAME = {
    normalize_role_name(name): perms for name, perms in DEFAULT_ROLE_PERMISSIONS.items()
}


def permissions_for(role_name: str | None) -> frozenset:
    """Permission grants for a role name. Unknown or missing roles get the empty set."""
    return _BY_NORMALIZED_NAME.get(normalize_role_name(role_name), frozenset())


def grants_cover(grants, required: str) -> bool:
    if ALL in grants or required in grants:
        return True
    resource, _ = split_permission(required)
    return resource_wildcard(resource) in grants


def authorize(role_name: str | None, required: str) -> bool:
    """
    True iff the role's grants include "all", the exact permission,
    or "<resource>.*" for the permission's resource.

    Fail closed: unknown roles authorize nothing.
    """
    return grants_cover(permissions_for(role_name), required)


def is_known_role(role_name: str | None) -> bool:
    return normalize_role_name(role_name) in _BY_NORMALIZED_NAME
