# Overview: Permission system package.
# Re-exports all public APIs so callers import from storefront.permissions.

from .definitions import (
    ALL,
    RESOURCES,
    VERBS,
    PERMISSION_DEFINITIONS,
    permission,
    resource_wildcard,
    split_permission,
)
from .roles import (
    ADMIN,
    PRODUCT_MANAGER,
    ORDER_MANAGER,
    ACCOUNT,
    SHIPPER,
    CUSTOMER,
    CUSTOMER_ROLE_ID,
    DEFAULT_ROLES,
    DEFAULT_ROLE_PERMISSIONS,
)
from .vocabularies import (
    PAYMENT_STATUSES,
    SHIPPING_STATUSES,
    COMPLAINT_STATUSES,
    PAYMENT_METHODS,
)
from .helpers import (
    normalize_role_name,
    permissions_for,
    grants_cover,
    authorize,
    is_known_role,
)

__all__ = [
    "ALL",
    "RESOURCES",
    "VERBS",
    "PERMISSION_DEFINITIONS",
    "permission",
    "resource_wildcard",
    "split_permission",
    "ADMIN",
    "PRODUCT_MANAGER",
    "ORDER_MANAGER",
    "ACCOUNT",
    "SHIPPER",
    "CUSTOMER",
    "CUSTOMER_ROLE_ID",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "PAYMENT_STATUSES",
    "SHIPPING_STATUSES",
    "COMPLAINT_STATUSES",
    "PAYMENT_METHODS",
    "normalize_role_name",
    "permissions_for",
    "grants_cover",
    "authorize",
    "is_known_role",
]
