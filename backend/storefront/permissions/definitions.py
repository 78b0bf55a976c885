# Overview: Permission vocabulary. A permission is "<resource>.<verb>";
# grants may also be "<resource>.*" or the global "all".

ALL = "all"
WILDCARD_VERB = "*"

RESOURCES = (
    "users",
    "roles",
    "categories",
    "products",
    "orders",
    "payments",
    "shipping",
    "reviews",
    "complaints",
    "reports",
)

VERBS = ("view", "create", "update", "delete")


def permission(resource: str, verb: str) -> str:
    return f"{resource}.{verb}"


def resource_wildcard(resource: str) -> str:
    return f"{resource}.{WILDCARD_VERB}"


def split_permission(code: str) -> tuple[str, str]:
    """'orders.view' -> ('orders', 'view'). A code without a dot has an empty verb."""
    resource, _, verb = code.partition(".")
    return resource, verb


# Every concrete permission the API checks. Used by the CLI and tests.
PERMISSION_DEFINITIONS = tuple(permission(r, v) for r in RESOURCES for v in VERBS)
