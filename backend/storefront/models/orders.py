from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    Customer order.

    payment_status and shipping_status mirror the Payment and Shipping rows
    once those exist; both are restricted to the vocabularies in
    permissions/definitions.py.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("total_amount_cents >= 0", name="ck_orders_total_non_negative"),
        db.Index("ix_orders_user_date", "user_id", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    order_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_address = db.Column(db.String(500), nullable=False)
    payment_status = db.Column(db.String(32), nullable=False, default="Pending")
    shipping_status = db.Column(db.String(32), nullable=False, default="Preparing")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    assigned_shipper_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    updated_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self, items=None) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "orderDate": to_utc_z(self.order_date),
            "totalAmountCents": self.total_amount_cents,
            "shippingAddress": self.shipping_address,
            "paymentStatus": self.payment_status,
            "shippingStatus": self.shipping_status,
            "createdByUserId": self.created_by_user_id,
            "assignedShipperId": self.assigned_shipper_id,
            "updatedAt": to_utc_z(self.updated_at),
        }
        if items is not None:
            data["items"] = [i.to_dict() for i in items]
        return data


class OrderItem(db.Model):
    """
    Order line. Price and names are snapshots taken when the line was written;
    later catalog edits never change a placed order.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_order_cents = db.Column(db.Integer, nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    variant_name = db.Column(db.String(100), nullable=True)

    @property
    def line_total_cents(self) -> int:
        return self.price_at_order_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "variantId": self.variant_id,
            "quantity": self.quantity,
            "priceAtOrderCents": self.price_at_order_cents,
            "lineTotalCents": self.line_total_cents,
            "productName": self.product_name,
            "variantName": self.variant_name,
        }


class Payment(db.Model):
    """At most one payment per order."""
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_payments_order"),
        db.CheckConstraint("amount_cents >= 0", name="ck_payments_amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    status = db.Column(db.String(32), nullable=False, default="Pending")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "paymentMethod": self.payment_method,
            "amountCents": self.amount_cents,
            "paymentDate": to_utc_z(self.payment_date),
            "status": self.status,
        }


class Shipping(db.Model):
    """At most one shipment per order."""
    __tablename__ = "shipping"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_shipping_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    shipper_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    shipping_address = db.Column(db.String(500), nullable=True)
    shipping_date = db.Column(db.DateTime, nullable=True)
    delivery_date = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="Preparing")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "shipperId": self.shipper_id,
            "shippingAddress": self.shipping_address,
            "shippingDate": to_utc_z(self.shipping_date),
            "deliveryDate": to_utc_z(self.delivery_date),
            "status": self.status,
        }
