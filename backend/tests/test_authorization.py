"""
Authorization tests across the API.

Verifies:
- protected routes answer 401 without a valid bearer token
- each role is limited to its grants (403 otherwise)
- row-level ownership: a customer cannot read another customer's order
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from .helpers import TEST_SIGNING_KEY, auth_headers

PROTECTED = [
    ("get", "/api/users"),
    ("get", "/api/users/me"),
    ("get", "/api/cart"),
    ("get", "/api/orders"),
    ("post", "/api/orders"),
    ("get", "/api/payments"),
    ("get", "/api/shipping"),
    ("get", "/api/complaints/my-complaints"),
    ("post", "/api/products"),
    ("delete", "/api/categories/1"),
]


class TestAuthentication:

    @pytest.mark.parametrize("method, path", PROTECTED)
    def test_missing_token(self, client, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 401
        assert resp.get_json()["success"] is False

    @pytest.mark.parametrize("header", ["Bearer", "Bearer ", "Token abc", "Bearer not.a.jwt"])
    def test_malformed_header(self, client, header):
        assert client.get("/api/users/me", headers={"Authorization": header}).status_code == 401

    def test_wrong_signature(self, client, make_user):
        user = make_user("eve")
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(user.id), "iat": now, "exp": now + timedelta(hours=1), "jti": "x"},
            "some-other-signing-key-0123456789-abcdefghij",
            algorithm="HS256",
        )
        assert client.get("/api/users/me", headers=auth_headers(token)).status_code == 401

    def test_expired_token(self, client, app, make_user):
        user = make_user("old")
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(user.id),
                "iat": now - timedelta(hours=4),
                "exp": now - timedelta(hours=1),
                "jti": "y",
                "iss": app.config["JWT_ISSUER"],
                "aud": app.config["JWT_AUDIENCE"],
            },
            TEST_SIGNING_KEY,
            algorithm="HS256",
        )
        resp = client.get("/api/users/me", headers=auth_headers(token))
        assert resp.status_code == 401
        # Reason stays in the log, not the response
        assert resp.get_json()["message"] == "Authentication required"

    def test_public_routes(self, client, product):
        assert client.get("/api/products").status_code == 200
        assert client.get(f"/api/products/{product.id}").status_code == 200
        assert client.get("/api/categories").status_code == 200
        assert client.get("/api/roles").status_code == 200
        assert client.get(f"/api/reviews/product/{product.id}").status_code == 200


class TestRoleGrants:

    @pytest.mark.parametrize("fixture_name, expected", [
        ("admin_headers", 200),
        ("order_manager_headers", 403),
        ("product_manager_headers", 403),
        ("customer_headers", 403),
    ])
    def test_user_listing(self, request, client, fixture_name, expected):
        headers = request.getfixturevalue(fixture_name)
        assert client.get("/api/users", headers=headers).status_code == expected

    @pytest.mark.parametrize("fixture_name, expected", [
        ("admin_headers", 200),
        ("order_manager_headers", 200),
        ("account_headers", 200),
        ("shipper_headers", 403),
        ("customer_headers", 403),
    ])
    def test_payment_listing(self, request, client, fixture_name, expected):
        headers = request.getfixturevalue(fixture_name)
        assert client.get("/api/payments", headers=headers).status_code == expected

    @pytest.mark.parametrize("fixture_name, expected", [
        ("admin_headers", 200),
        ("shipper_headers", 200),
        ("order_manager_headers", 403),
        ("customer_headers", 403),
    ])
    def test_shipping_listing(self, request, client, fixture_name, expected):
        headers = request.getfixturevalue(fixture_name)
        assert client.get("/api/shipping", headers=headers).status_code == expected

    @pytest.mark.parametrize("fixture_name, expected", [
        ("admin_headers", 201),
        ("product_manager_headers", 201),
        ("order_manager_headers", 403),
        ("account_headers", 403),
        ("customer_headers", 403),
    ])
    def test_category_create(self, request, client, fixture_name, expected):
        headers = request.getfixturevalue(fixture_name)
        resp = client.post("/api/categories", json={"name": "Outerwear"}, headers=headers)
        assert resp.status_code == expected

    def test_forbidden_lists_required_permission(self, client, customer_headers):
        resp = client.get("/api/users", headers=customer_headers)
        body = resp.get_json()
        assert body["success"] is False
        assert body["errors"]["requiredPermissions"] == ["users.view"]


class TestOwnership:

    @pytest.fixture
    def carol_order(self, client, customer_headers, product):
        resp = client.post(
            "/api/orders",
            json={"shippingAddress": "7 Elm Street", "items": [{"productId": product.id, "quantity": 1}]},
            headers=customer_headers,
        )
        assert resp.status_code == 201
        return resp.get_json()["data"]

    def test_owner_reads_order(self, client, customer_headers, carol_order):
        assert client.get(f"/api/orders/{carol_order['id']}", headers=customer_headers).status_code == 200

    def test_other_customer_is_forbidden(self, client, other_customer_headers, carol_order):
        resp = client.get(f"/api/orders/{carol_order['id']}", headers=other_customer_headers)
        assert resp.status_code == 403

    @pytest.mark.parametrize("fixture_name", ["admin_headers", "order_manager_headers"])
    def test_managers_read_any_order(self, request, client, carol_order, fixture_name):
        headers = request.getfixturevalue(fixture_name)
        assert client.get(f"/api/orders/{carol_order['id']}", headers=headers).status_code == 200

    def test_missing_order_is_404(self, client, customer_headers):
        assert client.get("/api/orders/999", headers=customer_headers).status_code == 404

    def test_other_customer_cannot_pay(self, client, other_customer_headers, carol_order):
        resp = client.post("/api/payments", json={"orderId": carol_order["id"], "paymentMethod": "Cash"},
                           headers=other_customer_headers)
        assert resp.status_code == 403

    def test_other_customer_cannot_complain_about_order(self, client, other_customer_headers, carol_order):
        resp = client.post(
            "/api/complaints",
            json={"orderId": carol_order["id"], "description": "This is not my order at all"},
            headers=other_customer_headers,
        )
        assert resp.status_code == 403
