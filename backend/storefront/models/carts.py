from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Cart(db.Model):
    """One cart per user, created lazily on first access."""
    __tablename__ = "carts"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_carts_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)


class CartItem(db.Model):
    """
    Cart line. At most one line per (cart, product, variant).

    The unique constraint cannot cover variant_id IS NULL on every backend,
    so cart_service merges by (product, variant) before inserting.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", "variant_id", name="uq_cart_items_line"),
        db.CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("carts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    added_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self, product=None, variant=None) -> dict:
        unit_price = product.unit_price_cents if product else None
        return {
            "id": self.id,
            "cartId": self.cart_id,
            "productId": self.product_id,
            "productName": product.name if product else None,
            "variantId": self.variant_id,
            "variantName": variant.display_name if variant else None,
            "quantity": self.quantity,
            "unitPriceCents": unit_price,
            "subtotalCents": unit_price * self.quantity if unit_price is not None else None,
            "addedAt": to_utc_z(self.added_at),
        }
