"""
Payment and shipping tests.

Verifies:
- one payment and one shipment per order (second attempt is 409)
- methods and statuses come from fixed vocabularies
- the order's payment / shipping status follows its payment / shipment
- Delivered stamps the delivery date
- shipments are visible to the order owner, the assigned shipper and shipping.* holders
"""

import pytest

from storefront.models import Order, Payment, Shipping

from .helpers import auth_headers, fresh, get_auth_token


@pytest.fixture
def order(client, customer_headers, product):
    resp = client.post(
        "/api/orders",
        json={"shippingAddress": "3 Birch Lane", "items": [{"productId": product.id, "quantity": 2}]},
        headers=customer_headers,
    )
    return resp.get_json()["data"]


@pytest.fixture
def shipper(make_user):
    return make_user("sid", "Shipper")


class TestPayments:

    def test_customer_pays_own_order(self, client, customer_headers, order):
        resp = client.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "Credit Card"},
                           headers=customer_headers)
        assert resp.status_code == 201
        payment = resp.get_json()["data"]
        assert payment["amountCents"] == 5000
        assert payment["status"] == "Pending"
        assert payment["paymentDate"].endswith("Z")

    def test_second_payment_conflicts(self, client, customer_headers, order):
        payload = {"orderId": order["id"], "paymentMethod": "Cash"}
        assert client.post("/api/payments", json=payload, headers=customer_headers).status_code == 201
        resp = client.post("/api/payments", json=payload, headers=customer_headers)
        assert resp.status_code == 409
        assert resp.get_json()["errors"]["orderId"] == order["id"]

    @pytest.mark.parametrize("payload", [
        {"paymentMethod": "Bitcoin"},
        {"paymentMethod": "cash"},
        {"paymentMethod": "Cash", "status": "Paid"},
        {"paymentMethod": "Cash", "amountCents": -1},
    ])
    def test_vocabulary(self, client, customer_headers, order, payload):
        resp = client.post("/api/payments", json={"orderId": order["id"], **payload}, headers=customer_headers)
        assert resp.status_code == 400

    def test_unknown_order(self, client, customer_headers):
        resp = client.post("/api/payments", json={"orderId": 999, "paymentMethod": "Cash"}, headers=customer_headers)
        assert resp.status_code == 404

    def test_status_mirrors_onto_order(self, client, order_manager_headers, order):
        payment = client.post(
            "/api/payments", json={"orderId": order["id"], "paymentMethod": "PayPal", "status": "Processing"},
            headers=order_manager_headers,
        ).get_json()["data"]
        assert fresh(Order, order["id"]).payment_status == "Processing"

        resp = client.put(f"/api/payments/{payment['id']}/status", json={"status": "Completed"},
                          headers=order_manager_headers)
        assert resp.status_code == 200
        assert fresh(Payment, payment["id"]).status == "Completed"
        assert fresh(Order, order["id"]).payment_status == "Completed"

    def test_customer_cannot_set_status_or_amount(self, client, customer_headers, order):
        resp = client.post(
            "/api/payments",
            json={"orderId": order["id"], "paymentMethod": "Cash", "amountCents": 1, "status": "Completed"},
            headers=customer_headers,
        )
        assert resp.status_code == 201
        payment = resp.get_json()["data"]
        assert payment["status"] == "Pending"
        assert payment["amountCents"] == 5000
        assert fresh(Order, order["id"]).payment_status == "Pending"

    def test_manager_records_settled_payment(self, client, order_manager_headers, order):
        resp = client.post(
            "/api/payments",
            json={"orderId": order["id"], "paymentMethod": "Bank Transfer", "amountCents": 4000, "status": "Completed"},
            headers=order_manager_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["data"]["amountCents"] == 4000
        assert fresh(Order, order["id"]).payment_status == "Completed"

    def test_customer_cannot_update_status(self, client, customer_headers, order):
        payment = client.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "Cash"},
                              headers=customer_headers).get_json()["data"]
        resp = client.put(f"/api/payments/{payment['id']}/status", json={"status": "Completed"},
                          headers=customer_headers)
        assert resp.status_code == 403

    def test_my_payments_and_visibility(self, client, customer_headers, other_customer_headers,
                                        account_headers, order):
        payment = client.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "Cash"},
                              headers=customer_headers).get_json()["data"]

        mine = client.get("/api/payments/my-payments", headers=customer_headers).get_json()["data"]
        assert mine["totalCount"] == 1
        theirs = client.get("/api/payments/my-payments", headers=other_customer_headers).get_json()["data"]
        assert theirs["totalCount"] == 0

        assert client.get(f"/api/payments/{payment['id']}", headers=customer_headers).status_code == 200
        assert client.get(f"/api/payments/{payment['id']}", headers=other_customer_headers).status_code == 403

    def test_statistics(self, client, customer_headers, order_manager_headers, order):
        payment = client.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "Cash"},
                              headers=customer_headers).get_json()["data"]
        client.put(f"/api/payments/{payment['id']}/status", json={"status": "Completed"},
                   headers=order_manager_headers)

        stats = client.get("/api/payments/statistics", headers=order_manager_headers).get_json()["data"]
        assert stats["totalPayments"] == 1
        assert stats["byStatus"]["Completed"] == 1
        assert stats["byMethod"]["Cash"] == {"count": 1, "amountCents": 5000}
        assert stats["completedAmountCents"] == 5000


class TestShipping:

    def _create(self, client, headers, order_id, **extra):
        return client.post("/api/shipping", json={"orderId": order_id, **extra}, headers=headers)

    def test_create_defaults(self, client, shipper_headers, order):
        resp = self._create(client, shipper_headers, order["id"])
        assert resp.status_code == 201
        shipment = resp.get_json()["data"]
        assert shipment["status"] == "Preparing"
        assert shipment["shippingAddress"] == "3 Birch Lane"

    def test_one_per_order(self, client, shipper_headers, order):
        assert self._create(client, shipper_headers, order["id"]).status_code == 201
        assert self._create(client, shipper_headers, order["id"]).status_code == 409

    def test_unknown_status(self, client, shipper_headers, order):
        assert self._create(client, shipper_headers, order["id"], status="Lost").status_code == 400

    def test_shipper_must_be_active_user(self, client, admin_headers, order):
        assert self._create(client, admin_headers, order["id"], shipperId=999).status_code == 400

    def test_assignment_mirrors_onto_order(self, client, admin_headers, order, shipper):
        resp = self._create(client, admin_headers, order["id"], shipperId=shipper.id, status="Shipped")
        assert resp.status_code == 201
        refreshed = fresh(Order, order["id"])
        assert refreshed.assigned_shipper_id == shipper.id
        assert refreshed.shipping_status == "Shipped"

    def test_delivered_stamps_date(self, client, shipper_headers, order):
        shipment = self._create(client, shipper_headers, order["id"]).get_json()["data"]
        assert shipment["deliveryDate"] is None

        resp = client.put(f"/api/shipping/{shipment['id']}/status", json={"status": "Shipped"},
                          headers=shipper_headers)
        assert resp.get_json()["data"]["shippingDate"] is not None

        resp = client.put(f"/api/shipping/{shipment['id']}/status", json={"status": "Delivered"},
                          headers=shipper_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["deliveryDate"] is not None
        assert fresh(Shipping, shipment["id"]).delivery_date is not None
        assert fresh(Order, order["id"]).shipping_status == "Delivered"

    def test_status_is_case_sensitive(self, client, shipper_headers, order):
        shipment = self._create(client, shipper_headers, order["id"]).get_json()["data"]
        resp = client.put(f"/api/shipping/{shipment['id']}/status", json={"status": "delivered"},
                          headers=shipper_headers)
        assert resp.status_code == 400

    def test_visibility(self, client, admin_headers, customer_headers, other_customer_headers, order, shipper):
        shipment = self._create(client, admin_headers, order["id"], shipperId=shipper.id).get_json()["data"]
        sid_headers = auth_headers(get_auth_token(client, "sid"))

        assert client.get(f"/api/shipping/{shipment['id']}", headers=customer_headers).status_code == 200
        assert client.get(f"/api/shipping/{shipment['id']}", headers=sid_headers).status_code == 200
        assert client.get(f"/api/shipping/{shipment['id']}", headers=other_customer_headers).status_code == 403

        assigned = client.get("/api/shipping/my-assignments", headers=sid_headers).get_json()["data"]
        assert assigned["totalCount"] == 1
        mine = client.get("/api/shipping/my-shipments", headers=customer_headers).get_json()["data"]
        assert mine["totalCount"] == 1

    def test_statistics(self, client, shipper_headers, order):
        self._create(client, shipper_headers, order["id"], status="In Transit")
        stats = client.get("/api/shipping/statistics", headers=shipper_headers).get_json()["data"]
        assert stats["In Transit"] == 1
        assert stats["Delivered"] == 0
