# Overview: Service-layer operations for shopping carts.

"""
One cart per user, created on first access. Lines merge by
(product, variant): adding an existing pair bumps its quantity instead of
creating a second line.

Stock is checked against the line's resulting quantity at write time,
inside the same transaction that writes the line, with the product /
variant row locked where the database supports it.
"""

from __future__ import annotations

from ..errors import NotFound
from ..extensions import db
from ..models import Cart, CartItem, Product, ProductVariant
from ..time_utils import to_utc_z, utcnow
from .concurrency import atomic, run_with_retry
from .invariants import ensure_stock_available


def find_cart(user_id: int) -> Cart | None:
    return db.session.query(Cart).filter(Cart.user_id == user_id).first()


def _get_or_create_cart(user_id: int) -> Cart:
    """Caller owns the transaction."""
    cart = find_cart(user_id)
    if cart is None:
        cart = Cart(user_id=user_id)
        db.session.add(cart)
        db.session.flush()
    return cart


def get_or_create_cart(user_id: int) -> Cart:
    with atomic():
        cart = _get_or_create_cart(user_id)
    return cart


def cart_lines(cart_id: int) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .filter(CartItem.cart_id == cart_id)
        .order_by(CartItem.id.asc())
        .all()
    )


def serialize_cart(cart: Cart) -> dict:
    items = []
    total_cents = 0
    total_quantity = 0
    for line in cart_lines(cart.id):
        product = db.session.get(Product, line.product_id)
        variant = db.session.get(ProductVariant, line.variant_id) if line.variant_id is not None else None
        data = line.to_dict(product=product, variant=variant)
        items.append(data)
        total_cents += data["subtotalCents"] or 0
        total_quantity += line.quantity
    return {
        "id": cart.id,
        "userId": cart.user_id,
        "items": items,
        "totalItems": total_quantity,
        "totalAmountCents": total_cents,
        "updatedAt": to_utc_z(cart.updated_at),
    }


def _find_line(cart_id: int, product_id: int, variant_id: int | None) -> CartItem | None:
    query = db.session.query(CartItem).filter(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
    if variant_id is None:
        query = query.filter(CartItem.variant_id.is_(None))
    else:
        query = query.filter(CartItem.variant_id == variant_id)
    return query.first()


def add_item(user_id: int, product_id: int, variant_id: int | None, quantity: int) -> Cart:
    """
    Add quantity of (product, variant) to the user's cart, merging with an existing line.

    Raises InsufficientStock when the merged quantity exceeds stock; the
    existing line is left unchanged.
    """
    def _op():
        with atomic():
            cart = _get_or_create_cart(user_id)
            line = _find_line(cart.id, product_id, variant_id)
            new_quantity = (line.quantity if line else 0) + quantity

            ensure_stock_available(product_id, variant_id, new_quantity, lock=True)

            if line is None:
                db.session.add(CartItem(
                    cart_id=cart.id,
                    product_id=product_id,
                    variant_id=variant_id,
                    quantity=new_quantity,
                ))
            else:
                line.quantity = new_quantity
            cart.updated_at = utcnow()
        return cart

    return run_with_retry(_op)


def _owned_line(user_id: int, item_id: int) -> tuple[Cart, CartItem]:
    # Lines in other users' carts are reported as missing.
    cart = find_cart(user_id)
    line = db.session.get(CartItem, item_id)
    if cart is None or line is None or line.cart_id != cart.id:
        raise NotFound("Cart item not found")
    return cart, line


def update_item(user_id: int, item_id: int, quantity: int) -> Cart:
    def _op():
        with atomic():
            cart, line = _owned_line(user_id, item_id)
            if quantity > line.quantity:
                ensure_stock_available(line.product_id, line.variant_id, quantity, lock=True)
            line.quantity = quantity
            cart.updated_at = utcnow()
        return cart

    return run_with_retry(_op)


def remove_item(user_id: int, item_id: int) -> Cart:
    with atomic():
        cart, line = _owned_line(user_id, item_id)
        db.session.delete(line)
        cart.updated_at = utcnow()
    return cart


def clear_cart(user_id: int) -> Cart:
    with atomic():
        cart = _get_or_create_cart(user_id)
        db.session.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
        cart.updated_at = utcnow()
    return cart
