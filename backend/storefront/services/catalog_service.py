# Overview: Service-layer operations for categories, products and variants.

from __future__ import annotations

from sqlalchemy import func

from ..errors import Conflict, NotFound, ValidationFailed
from ..extensions import db
from ..models import Category, Product, ProductVariant, Review
from ..time_utils import utcnow
from .concurrency import atomic, lock_for_update, run_with_retry
from .invariants import (
    ensure_non_negative_stock,
    ensure_unique,
    guard_category_delete,
    guard_product_delete,
    guard_variant_delete,
)


# -- Categories --

def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found")
    return category


def product_count(category_id: int) -> int:
    return db.session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar() or 0


def list_categories() -> list[dict]:
    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .group_by(Product.category_id)
        .all()
    )
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict(product_count=counts.get(c.id, 0)) for c in categories]


def create_category(name: str, description: str | None) -> Category:
    ensure_unique(Category.name, name, "Category name", field="name")
    with atomic():
        category = Category(name=name, description=description)
        db.session.add(category)
    return category


def update_category(category_id: int, name: str | None, description: str | None,
                    description_provided: bool) -> Category:
    category = get_category(category_id)
    if name is not None:
        ensure_unique(Category.name, name, "Category name", exclude_id=category.id, field="name")
    with atomic():
        if name is not None:
            category.name = name
        if description_provided:
            category.description = description
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    guard_category_delete(category.id)
    with atomic():
        db.session.delete(category)


# -- Products --

def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def variants_for(product_id: int) -> list[ProductVariant]:
    return (
        db.session.query(ProductVariant)
        .filter(ProductVariant.product_id == product_id)
        .order_by(ProductVariant.id.asc())
        .all()
    )


def product_query(*, category_id: int | None = None, search: str | None = None,
                  min_price: int | None = None, max_price: int | None = None, in_stock: bool = False):
    """Simple filtered listing; prices are compared on the list price in cents."""
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationFailed("minPrice cannot exceed maxPrice", errors={"minPrice": "must be <= maxPrice"})

    query = db.session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(func.lower(Product.name).like(like) | func.lower(Product.description).like(like))
    if min_price is not None:
        query = query.filter(Product.price_cents >= min_price)
    if max_price is not None:
        query = query.filter(Product.price_cents <= max_price)
    if in_stock:
        query = query.filter(Product.stock_quantity > 0)
    return query.order_by(Product.id.asc())


def _require_category(category_id: int | None) -> None:
    if category_id is not None and db.session.get(Category, category_id) is None:
        raise ValidationFailed("Category not found", errors={"categoryId": "does not exist"})


def create_product(*, name: str, price_cents: int, category_id: int | None = None, description: str | None = None,
                   discount_percent: int = 0, stock_quantity: int = 0) -> Product:
    _require_category(category_id)
    ensure_non_negative_stock(stock_quantity)
    with atomic():
        product = Product(
            name=name,
            description=description,
            category_id=category_id,
            price_cents=price_cents,
            discount_percent=discount_percent or 0,
            stock_quantity=stock_quantity,
        )
        db.session.add(product)
    return product


PRODUCT_FIELDS = ("name", "description", "category_id", "price_cents", "discount_percent", "stock_quantity")


def update_product(product_id: int, changes: dict) -> Product:
    product = get_product(product_id)
    if "category_id" in changes:
        _require_category(changes["category_id"])
    if "stock_quantity" in changes:
        ensure_non_negative_stock(changes["stock_quantity"])

    with atomic():
        for name in PRODUCT_FIELDS:
            if name in changes:
                setattr(product, name, changes[name])
        product.updated_at = utcnow()
    return product


def set_product_stock(product_id: int, quantity: int) -> Product:
    ensure_non_negative_stock(quantity)

    def _op():
        with atomic():
            product = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
            if product is None:
                raise NotFound("Product not found")
            product.stock_quantity = quantity
            product.updated_at = utcnow()
        return product

    return run_with_retry(_op)


def delete_product(product_id: int) -> None:
    """Variants and reviews go with the product; cart or order lines block the delete."""
    product = get_product(product_id)
    guard_product_delete(product.id)
    with atomic():
        db.session.query(Review).filter(Review.product_id == product.id).delete(synchronize_session=False)
        for variant in variants_for(product.id):
            db.session.delete(variant)
        db.session.delete(product)


# -- Variants --

def get_variant(variant_id: int) -> ProductVariant:
    variant = db.session.get(ProductVariant, variant_id)
    if variant is None:
        raise NotFound("Product variant not found")
    return variant


def variant_query(product_id: int | None = None):
    query = db.session.query(ProductVariant)
    if product_id is not None:
        query = query.filter(ProductVariant.product_id == product_id)
    return query.order_by(ProductVariant.id.asc())


def _variant_key_taken(product_id: int, size: str | None, color: str | None, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductVariant.id).filter(ProductVariant.product_id == product_id)
    for column, value in ((ProductVariant.size, size), (ProductVariant.color, color)):
        if value is None:
            query = query.filter(column.is_(None))
        else:
            query = query.filter(func.lower(column) == value.lower())
    if exclude_id is not None:
        query = query.filter(ProductVariant.id != exclude_id)
    return query.first() is not None


def create_variant(*, product_id: int, size: str | None, color: str | None, stock_quantity: int = 0) -> ProductVariant:
    get_product(product_id)
    ensure_non_negative_stock(stock_quantity)
    if _variant_key_taken(product_id, size, color):
        raise Conflict("Variant with this size and color already exists for the product")
    with atomic():
        variant = ProductVariant(product_id=product_id, size=size, color=color, stock_quantity=stock_quantity)
        db.session.add(variant)
    return variant


def update_variant(variant_id: int, changes: dict) -> ProductVariant:
    variant = get_variant(variant_id)
    size = changes.get("size", variant.size)
    color = changes.get("color", variant.color)
    if ("size" in changes or "color" in changes) and _variant_key_taken(variant.product_id, size, color, variant.id):
        raise Conflict("Variant with this size and color already exists for the product")
    if "stock_quantity" in changes:
        ensure_non_negative_stock(changes["stock_quantity"])

    with atomic():
        variant.size = size
        variant.color = color
        if "stock_quantity" in changes:
            variant.stock_quantity = changes["stock_quantity"]
    return variant


def set_variant_stock(variant_id: int, quantity: int) -> ProductVariant:
    ensure_non_negative_stock(quantity)

    def _op():
        with atomic():
            variant = lock_for_update(
                db.session.query(ProductVariant).filter(ProductVariant.id == variant_id)
            ).first()
            if variant is None:
                raise NotFound("Product variant not found")
            variant.stock_quantity = quantity
        return variant

    return run_with_retry(_op)


def delete_variant(variant_id: int) -> None:
    variant = get_variant(variant_id)
    guard_variant_delete(variant.id)
    with atomic():
        db.session.delete(variant)


def variant_availability(variant_id: int, quantity: int = 1) -> dict:
    variant = get_variant(variant_id)
    return {
        "variantId": variant.id,
        "productId": variant.product_id,
        "stockQuantity": variant.stock_quantity,
        "requestedQuantity": quantity,
        "isAvailable": variant.stock_quantity >= quantity,
    }


def distinct_variant_values(product_id: int, column) -> list[str]:
    get_product(product_id)
    rows = (
        db.session.query(column)
        .filter(ProductVariant.product_id == product_id, column.isnot(None))
        .distinct()
        .order_by(column.asc())
        .all()
    )
    return [row[0] for row in rows]
