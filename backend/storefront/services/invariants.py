# Overview: Cross-entity rules every write path goes through.

"""
Handlers never write stock, names or statuses directly; they call these
checks first so that the same rule holds no matter which endpoint wrote.

- Uniqueness is case-insensitive and ignores the row being updated.
- Stock is read at write time (optionally under a row lock) and never
  goes negative.
- Status strings must come from their fixed vocabulary.
- Rows that other rows still point to cannot be deleted.
- Users are never deleted, only deactivated.
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import Conflict, InsufficientStock, NotFound, ValidationFailed
from ..extensions import db
from ..models import CartItem, OrderItem, Product, ProductVariant, User
from ..time_utils import utcnow
from .concurrency import atomic, lock_for_update


def ensure_unique(column, value: str | None, label: str, *, exclude_id: int | None = None,
                  field: str | None = None) -> None:
    """Raise Conflict if another row already holds value (case-insensitive) in column."""
    if value is None:
        return
    model = column.class_
    query = db.session.query(model.id).filter(func.lower(column) == value.lower())
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        key = field or column.key
        raise Conflict(f"{label} already exists", errors={key: f"{label} '{value}' is already taken"})


def _load(model, row_id: int, lock: bool):
    query = db.session.query(model).filter(model.id == row_id)
    if lock:
        # Re-read under the lock so identity-map copies are not trusted.
        query = lock_for_update(query).populate_existing()
    return query.first()


def load_stock_target(product_id: int, variant_id: int | None, *, lock: bool = False):
    """
    Fetch (product, variant) for a stock-affecting write.

    The variant, when given, must belong to the product.
    """
    product = _load(Product, product_id, lock)
    if product is None:
        raise NotFound("Product not found")

    variant = None
    if variant_id is not None:
        variant = _load(ProductVariant, variant_id, lock)
        if variant is None:
            raise NotFound("Product variant not found")
        if variant.product_id != product.id:
            raise ValidationFailed(
                "Variant does not belong to this product",
                errors={"variantId": "does not belong to the product"},
            )
    return product, variant


def available_stock(product: Product, variant: ProductVariant | None) -> int:
    return variant.stock_quantity if variant is not None else product.stock_quantity


def ensure_stock_available(product_id: int, variant_id: int | None, requested: int, *, lock: bool = False):
    """
    Raise InsufficientStock unless `requested` units are available right now.

    Returns (product, variant) so callers can decrement without a second read.
    """
    product, variant = load_stock_target(product_id, variant_id, lock=lock)
    available = available_stock(product, variant)
    if requested > available:
        raise InsufficientStock(
            product_id=product.id,
            variant_id=variant.id if variant is not None else None,
            requested=requested,
            available=available,
        )
    return product, variant


def adjust_stock(product: Product, variant: ProductVariant | None, delta: int) -> None:
    """Apply a stock delta (negative = sell, positive = restock) to the targeted row."""
    target = variant if variant is not None else product
    new_value = target.stock_quantity + delta
    ensure_non_negative_stock(new_value)
    target.stock_quantity = new_value
    if variant is None:
        product.updated_at = utcnow()


def ensure_non_negative_stock(value: int) -> None:
    if value is None or value < 0:
        raise ValidationFailed("Stock quantity cannot be negative", errors={"stockQuantity": "must be >= 0"})


def ensure_status(value: str, vocabulary, label: str, *, field: str = "status") -> str:
    if value not in vocabulary:
        raise ValidationFailed(
            f"Invalid {label}",
            errors={field: f"must be one of: {', '.join(vocabulary)}"},
        )
    return value


# -- Referential delete guards --

def guard_category_delete(category_id: int) -> None:
    count = db.session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar()
    if count:
        raise Conflict(
            f"Cannot delete category with {count} product(s). Reassign or delete them first.",
            errors={"productCount": count},
        )


def guard_variant_delete(variant_id: int) -> None:
    in_carts = db.session.query(CartItem.id).filter(CartItem.variant_id == variant_id).first()
    in_orders = db.session.query(OrderItem.id).filter(OrderItem.variant_id == variant_id).first()
    if in_carts or in_orders:
        raise Conflict("Cannot delete variant that is referenced by carts or orders")


def guard_product_delete(product_id: int) -> None:
    in_carts = db.session.query(CartItem.id).filter(CartItem.product_id == product_id).first()
    in_orders = db.session.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if in_carts or in_orders:
        raise Conflict("Cannot delete product that is referenced by carts or orders")


def guard_role_delete(role_id: int) -> None:
    # Inactive users still hold their role, so they count.
    count = db.session.query(func.count(User.id)).filter(User.role_id == role_id).scalar()
    if count:
        raise Conflict(
            f"Cannot delete role assigned to {count} user(s)",
            errors={"userCount": count},
        )


def soft_delete_user(user: User, directory) -> User:
    """Deactivate instead of deleting; cached login data is dropped after the commit."""
    with atomic():
        user.is_active = False
        user.updated_at = utcnow()
    directory.invalidate(user.id)
    return user
