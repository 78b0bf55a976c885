# Overview: Service-layer operations for product reviews and customer complaints.

from __future__ import annotations

from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import Complaint, Order, Product, Review, User
from ..permissions import COMPLAINT_STATUSES
from ..permissions.vocabularies import INITIAL_COMPLAINT_STATUS
from .access_service import Identity, ensure_owner
from .concurrency import atomic
from .invariants import ensure_status


# -- Reviews --

def reviews_query(product_id: int):
    return (
        db.session.query(Review)
        .filter(Review.product_id == product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )


def serialize_review(review: Review) -> dict:
    author = db.session.get(User, review.user_id)
    return review.to_dict(username=author.username if author else None)


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def review_stats(product_id: int) -> dict:
    _require_product(product_id)
    rows = (
        db.session.query(Review.rating, func.count(Review.id))
        .filter(Review.product_id == product_id)
        .group_by(Review.rating)
        .all()
    )
    distribution = {str(star): 0 for star in range(1, 6)}
    total = 0
    weighted = 0
    for rating, count in rows:
        distribution[str(rating)] = count
        total += count
        weighted += rating * count
    return {
        "productId": product_id,
        "totalReviews": total,
        "averageRating": round(weighted / total, 2) if total else 0,
        "distribution": distribution,
    }


def create_review(identity: Identity, *, product_id: int, rating: int, comment: str | None) -> Review:
    _require_product(product_id)
    with atomic():
        review = Review(product_id=product_id, user_id=identity.user_id, rating=rating, comment=comment)
        db.session.add(review)
    return review


def _authored_review(identity: Identity, review_id: int) -> Review:
    review = db.session.get(Review, review_id)
    if review is None:
        raise NotFound("Review not found")
    # Customers hold reviews.*, so only the global grant may touch other people's reviews.
    ensure_owner(review.user_id, "reviews", identity=identity, admin_only_bypass=True)
    return review


def update_review(identity: Identity, review_id: int, changes: dict) -> Review:
    review = _authored_review(identity, review_id)
    with atomic():
        if "rating" in changes:
            review.rating = changes["rating"]
        if "comment" in changes:
            review.comment = changes["comment"]
    return review


def delete_review(identity: Identity, review_id: int) -> None:
    review = _authored_review(identity, review_id)
    with atomic():
        db.session.delete(review)


# -- Complaints --

def create_complaint(identity: Identity, *, description: str, order_id: int | None = None) -> Complaint:
    if order_id is not None:
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        ensure_owner(order.user_id, "orders", identity=identity, admin_only_bypass=True)

    with atomic():
        complaint = Complaint(
            order_id=order_id,
            user_id=identity.user_id,
            description=description,
            status=INITIAL_COMPLAINT_STATUS,
        )
        db.session.add(complaint)
    return complaint


def complaints_query(*, status: str | None = None, user_id: int | None = None):
    query = db.session.query(Complaint)
    if status:
        ensure_status(status, COMPLAINT_STATUSES, "complaint status")
        query = query.filter(Complaint.status == status)
    if user_id is not None:
        query = query.filter(Complaint.user_id == user_id)
    return query.order_by(Complaint.created_at.desc(), Complaint.id.desc())


def get_complaint(identity: Identity, complaint_id: int) -> Complaint:
    complaint = db.session.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFound("Complaint not found")
    ensure_owner(complaint.user_id, "complaints", identity=identity)
    return complaint


def update_complaint_status(complaint_id: int, status: str) -> Complaint:
    ensure_status(status, COMPLAINT_STATUSES, "complaint status")
    complaint = db.session.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFound("Complaint not found")
    with atomic():
        complaint.status = status
    return complaint


def complaint_statistics() -> dict:
    counts = dict(
        db.session.query(Complaint.status, func.count(Complaint.id)).group_by(Complaint.status).all()
    )
    by_status = {status: counts.get(status, 0) for status in COMPLAINT_STATUSES}
    return {
        "totalComplaints": sum(by_status.values()),
        "byStatus": by_status,
        "openComplaints": by_status["Pending"] + by_status["In Progress"],
    }
