"""
Role -> permission derivation tests.

Verifies:
- Admin authorizes every (resource, verb)
- roles without a resource wildcard only get what they are explicitly granted
- role names match ignoring case and spaces
- unknown roles authorize nothing
"""

import pytest

from storefront.permissions import (
    ACCOUNT,
    ADMIN,
    CUSTOMER,
    DEFAULT_ROLE_PERMISSIONS,
    ORDER_MANAGER,
    PERMISSION_DEFINITIONS,
    PRODUCT_MANAGER,
    RESOURCES,
    SHIPPER,
    VERBS,
    authorize,
    permission,
    permissions_for,
    split_permission,
)


class TestAdmin:

    @pytest.mark.parametrize("code", PERMISSION_DEFINITIONS)
    def test_admin_authorizes_everything(self, code):
        assert authorize(ADMIN, code)

    def test_admin_authorizes_unlisted_resources(self):
        assert authorize(ADMIN, "anything.whatever")


def _explicitly_granted(role, resource, verb):
    grants = DEFAULT_ROLE_PERMISSIONS[role]
    return permission(resource, verb) in grants


class TestMonotonicity:

    @pytest.mark.parametrize("role", [PRODUCT_MANAGER, ORDER_MANAGER, ACCOUNT, SHIPPER, CUSTOMER])
    def test_non_wildcard_resources_only_allow_explicit_grants(self, role):
        grants = DEFAULT_ROLE_PERMISSIONS[role]
        wildcard_resources = {split_permission(g)[0] for g in grants if g.endswith(".*")}
        for resource in RESOURCES:
            for verb in VERBS:
                expected = resource in wildcard_resources or _explicitly_granted(role, resource, verb)
                assert authorize(role, permission(resource, verb)) is expected, (role, resource, verb)


class TestTable:

    @pytest.mark.parametrize(
        "role,code,expected",
        [
            (PRODUCT_MANAGER, "products.delete", True),
            (PRODUCT_MANAGER, "categories.create", True),
            (PRODUCT_MANAGER, "orders.view", False),
            (ORDER_MANAGER, "orders.update", True),
            (ORDER_MANAGER, "payments.view", True),
            (ORDER_MANAGER, "products.update", False),
            (ACCOUNT, "reports.view", True),
            (ACCOUNT, "payments.view", True),
            (ACCOUNT, "payments.update", False),
            (SHIPPER, "shipping.update", True),
            (SHIPPER, "orders.view", True),
            (SHIPPER, "orders.update", False),
            (CUSTOMER, "products.view", True),
            (CUSTOMER, "orders.create", True),
            (CUSTOMER, "orders.view", False),
            (CUSTOMER, "reviews.delete", True),
            (CUSTOMER, "users.view", False),
        ],
    )
    def test_grants(self, role, code, expected):
        assert authorize(role, code) is expected


class TestRoleNames:

    @pytest.mark.parametrize("name", ["ProductManager", "product manager", "PRODUCT MANAGER", " Product  Manager "])
    def test_normalized(self, name):
        assert permissions_for(name) == DEFAULT_ROLE_PERMISSIONS[PRODUCT_MANAGER]

    @pytest.mark.parametrize("name", [None, "", "Superuser", "Admins"])
    def test_unknown_role_denied(self, name):
        assert permissions_for(name) == frozenset()
        assert not authorize(name, "products.view")
