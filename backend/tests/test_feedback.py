"""
Review and complaint tests.

Verifies:
- reviews: rating 1-5, author-only edits with an Admin exception, public stats
- complaints: optional order must be the caller's, status vocabulary, statistics
"""

import pytest

from storefront.models import Complaint, Review

from .helpers import fresh


def _review(client, headers, product_id, rating=4, comment="Fits well"):
    return client.post("/api/reviews", json={"productId": product_id, "rating": rating, "comment": comment},
                       headers=headers)


class TestReviews:

    def test_create_and_list(self, client, customer_headers, product):
        resp = _review(client, customer_headers, product.id)
        assert resp.status_code == 201
        assert resp.get_json()["data"]["username"] == "carol"

        data = client.get(f"/api/reviews/product/{product.id}").get_json()["data"]
        assert data["totalCount"] == 1

    @pytest.mark.parametrize("rating", [0, 6, "5", 4.5])
    def test_rating_bounds(self, client, customer_headers, product, rating):
        assert _review(client, customer_headers, product.id, rating=rating).status_code == 400

    def test_unknown_product(self, client, customer_headers):
        assert _review(client, customer_headers, 999).status_code == 404

    def test_author_edits(self, client, customer_headers, product):
        review = _review(client, customer_headers, product.id).get_json()["data"]
        resp = client.put(f"/api/reviews/{review['id']}", json={"rating": 2}, headers=customer_headers)
        assert resp.status_code == 200
        assert fresh(Review, review["id"]).rating == 2
        assert fresh(Review, review["id"]).comment == "Fits well"

    def test_other_customer_cannot_edit_or_delete(self, client, customer_headers, other_customer_headers, product):
        review = _review(client, customer_headers, product.id).get_json()["data"]
        assert client.put(f"/api/reviews/{review['id']}", json={"rating": 1},
                          headers=other_customer_headers).status_code == 403
        assert client.delete(f"/api/reviews/{review['id']}", headers=other_customer_headers).status_code == 403
        assert fresh(Review, review["id"]).rating == 4

    def test_admin_may_delete(self, client, customer_headers, admin_headers, product):
        review = _review(client, customer_headers, product.id).get_json()["data"]
        assert client.delete(f"/api/reviews/{review['id']}", headers=admin_headers).status_code == 200
        assert fresh(Review, review["id"]) is None

    def test_stats(self, client, customer_headers, other_customer_headers, product):
        _review(client, customer_headers, product.id, rating=5)
        _review(client, other_customer_headers, product.id, rating=2)
        stats = client.get(f"/api/reviews/product/{product.id}/stats").get_json()["data"]
        assert stats["totalReviews"] == 2
        assert stats["averageRating"] == 3.5
        assert stats["distribution"]["5"] == 1
        assert stats["distribution"]["1"] == 0


class TestComplaints:

    DESCRIPTION = "The parcel arrived damaged"

    def test_submit_without_order(self, client, customer_headers):
        resp = client.post("/api/complaints", json={"description": self.DESCRIPTION}, headers=customer_headers)
        assert resp.status_code == 201
        assert resp.get_json()["data"]["status"] == "Pending"

    def test_submit_for_own_order(self, client, customer_headers, product):
        order = client.post(
            "/api/orders",
            json={"shippingAddress": "9 Oak Avenue", "items": [{"productId": product.id, "quantity": 1}]},
            headers=customer_headers,
        ).get_json()["data"]
        resp = client.post("/api/complaints", json={"description": self.DESCRIPTION, "orderId": order["id"]},
                           headers=customer_headers)
        assert resp.status_code == 201
        assert resp.get_json()["data"]["orderId"] == order["id"]

    def test_description_too_short(self, client, customer_headers):
        resp = client.post("/api/complaints", json={"description": "bad"}, headers=customer_headers)
        assert resp.status_code == 400

    def test_visibility(self, client, customer_headers, other_customer_headers, admin_headers):
        complaint = client.post("/api/complaints", json={"description": self.DESCRIPTION},
                                headers=customer_headers).get_json()["data"]
        assert client.get(f"/api/complaints/{complaint['id']}", headers=customer_headers).status_code == 200
        assert client.get(f"/api/complaints/{complaint['id']}", headers=other_customer_headers).status_code == 403
        assert client.get(f"/api/complaints/{complaint['id']}", headers=admin_headers).status_code == 200

        mine = client.get("/api/complaints/my-complaints", headers=other_customer_headers).get_json()["data"]
        assert mine["totalCount"] == 0

    def test_status_flow_and_statistics(self, client, customer_headers, admin_headers):
        complaint = client.post("/api/complaints", json={"description": self.DESCRIPTION},
                                headers=customer_headers).get_json()["data"]

        resp = client.put(f"/api/complaints/{complaint['id']}/status", json={"status": "Solved"},
                          headers=admin_headers)
        assert resp.status_code == 400

        resp = client.put(f"/api/complaints/{complaint['id']}/status", json={"status": "In Progress"},
                          headers=admin_headers)
        assert resp.status_code == 200
        assert fresh(Complaint, complaint["id"]).status == "In Progress"

        stats = client.get("/api/complaints/statistics", headers=admin_headers).get_json()["data"]
        assert stats["totalComplaints"] == 1
        assert stats["openComplaints"] == 1

    def test_customer_cannot_list_all(self, client, customer_headers):
        assert client.get("/api/complaints", headers=customer_headers).status_code == 403
