from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)

    def to_dict(self, product_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }
        if product_count is not None:
            data["productCount"] = product_count
        return data


class Product(db.Model):
    """
    Product master data.

    Prices are authoritative in cents; discount is a whole percent (0-100).
    stock_quantity is the sellable quantity when no variant is targeted.

    version_id turns lost updates on stock into StaleDataError, which
    run_with_retry() retries.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("discount_percent >= 0 AND discount_percent <= 100", name="ck_products_discount_range"),
        db.Index("ix_products_category_name", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock_quantity}>"

    @property
    def unit_price_cents(self) -> int:
        """Price after discount, rounded down to the cent."""
        return self.price_cents * (100 - (self.discount_percent or 0)) // 100

    def to_dict(self, variants=None) -> dict:
        data = {
            "id": self.id,
            "categoryId": self.category_id,
            "name": self.name,
            "description": self.description,
            "priceCents": self.price_cents,
            "discountPercent": self.discount_percent,
            "unitPriceCents": self.unit_price_cents,
            "stockQuantity": self.stock_quantity,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if variants is not None:
            data["variants"] = [v.to_dict() for v in variants]
        return data


class ProductVariant(db.Model):
    """Size/color variant with its own stock. (product, size, color) is unique."""
    __tablename__ = "product_variants"
    __table_args__ = (
        db.UniqueConstraint("product_id", "size", "color", name="uq_product_variants_product_size_color"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_product_variants_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size = db.Column(db.String(20), nullable=True)
    color = db.Column(db.String(50), nullable=True)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.size, self.color) if p]
        return " / ".join(parts) if parts else "Default"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "size": self.size,
            "color": self.color,
            "name": self.display_name,
            "stockQuantity": self.stock_quantity,
        }
