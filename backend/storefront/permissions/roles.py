# Overview: Built-in roles, their fixed ids and their permission grants.

from .definitions import ALL

ADMIN = "Admin"
PRODUCT_MANAGER = "Product Manager"
ORDER_MANAGER = "Order Manager"
ACCOUNT = "Account"
SHIPPER = "Shipper"
CUSTOMER = "Customer"

# (id, name, description). Ids are stable: clients and seed data refer to them.
DEFAULT_ROLES = (
    (1, ADMIN, "Full system access"),
    (2, PRODUCT_MANAGER, "Manages catalog: products, variants and categories"),
    (3, ORDER_MANAGER, "Manages orders and payments"),
    (4, ACCOUNT, "Finance: reports and payment visibility"),
    (5, SHIPPER, "Delivers orders and updates shipment status"),
    (6, CUSTOMER, "Shops, places orders and writes reviews"),
)

CUSTOMER_ROLE_ID = 6

DEFAULT_ROLE_PERMISSIONS = {
    ADMIN: frozenset({ALL}),
    PRODUCT_MANAGER: frozenset({"products.*", "categories.*"}),
    ORDER_MANAGER: frozenset({"orders.*", "payments.*"}),
    ACCOUNT: frozenset({"reports.*", "payments.view"}),
    SHIPPER: frozenset({"shipping.*", "orders.view"}),
    CUSTOMER: frozenset({"products.view", "orders.create", "reviews.*"}),
}
