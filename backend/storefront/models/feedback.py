from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Review(db.Model):
    __tablename__ = "reviews"
    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        db.Index("ix_reviews_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.String(1000), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self, username: str | None = None) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "userId": self.user_id,
            "username": username,
            "rating": self.rating,
            "comment": self.comment,
            "createdAt": to_utc_z(self.created_at),
        }


class Complaint(db.Model):
    __tablename__ = "complaints"
    __table_args__ = (
        db.Index("ix_complaints_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    description = db.Column(db.String(2000), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="Pending")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "userId": self.user_id,
            "description": self.description,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }
