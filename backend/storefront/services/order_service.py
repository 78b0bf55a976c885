# Overview: Service-layer operations for orders and order lines; checkout and stock movement.

"""
Checkout turns either the caller's cart or an explicit item list into an
order, in ONE transaction:

1. lock each product / variant row (in a fixed order, so two checkouts
   touching the same rows cannot deadlock)
2. re-validate stock for every line at its merged quantity
3. decrement stock, snapshot unit price and names into the order lines
4. compute the total; clear the cart if it was the source

Any failure rolls back everything: no partial orders, no stock drift.

Order line edits after checkout move stock the same way: increases are
re-validated and decremented, decreases and deletions restock.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func

from ..errors import NotFound, ValidationFailed
from ..extensions import db
from ..models import CartItem, Order, OrderItem, User
from ..permissions import PAYMENT_STATUSES, SHIPPING_STATUSES
from ..permissions.vocabularies import INITIAL_PAYMENT_STATUS, INITIAL_SHIPPING_STATUS
from ..time_utils import utcnow
from .access_service import Identity, ensure_owner
from .cart_service import find_cart
from .concurrency import atomic, run_with_retry
from .invariants import adjust_stock, ensure_status, ensure_stock_available, load_stock_target


@dataclass(frozen=True)
class LineRequest:
    product_id: int
    variant_id: int | None
    quantity: int


def _merge_lines(lines) -> list[LineRequest]:
    merged: dict[tuple[int, int | None], int] = {}
    for line in lines:
        key = (line.product_id, line.variant_id)
        merged[key] = merged.get(key, 0) + line.quantity
    # Stable lock order
    ordered = sorted(merged.items(), key=lambda kv: (kv[0][0], kv[0][1] or 0))
    return [LineRequest(product_id=p, variant_id=v, quantity=q) for (p, v), q in ordered]


def _snapshot_line(order_id: int, product, variant, quantity: int) -> OrderItem:
    return OrderItem(
        order_id=order_id,
        product_id=product.id,
        variant_id=variant.id if variant is not None else None,
        quantity=quantity,
        price_at_order_cents=product.unit_price_cents,
        product_name=product.name,
        variant_name=variant.display_name if variant is not None else None,
    )


def order_items(order_id: int) -> list[OrderItem]:
    return (
        db.session.query(OrderItem)
        .filter(OrderItem.order_id == order_id)
        .order_by(OrderItem.id.asc())
        .all()
    )


def recompute_total(order: Order) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(OrderItem.price_at_order_cents * OrderItem.quantity), 0))
        .filter(OrderItem.order_id == order.id)
        .scalar()
    )
    order.total_amount_cents = int(total or 0)
    order.updated_at = utcnow()
    return order.total_amount_cents


def checkout(identity: Identity, shipping_address: str, items: list | None = None) -> Order:
    """
    Place an order for the caller. items: LineRequest-like objects; None means
    "check out my cart".
    """
    def _op():
        with atomic():
            cart = None
            if items is None:
                cart = find_cart(identity.user_id)
                source = (
                    db.session.query(CartItem).filter(CartItem.cart_id == cart.id).all()
                    if cart is not None else []
                )
                if not source:
                    raise ValidationFailed("Cart is empty", errors={"items": "nothing to check out"})
            else:
                source = items
                if not source:
                    raise ValidationFailed("Order must contain at least one item", errors={"items": "is empty"})

            lines = _merge_lines(source)

            order = Order(
                user_id=identity.user_id,
                created_by_user_id=identity.user_id,
                shipping_address=shipping_address,
                payment_status=INITIAL_PAYMENT_STATUS,
                shipping_status=INITIAL_SHIPPING_STATUS,
                total_amount_cents=0,
            )
            db.session.add(order)
            db.session.flush()

            total = 0
            for line in lines:
                product, variant = ensure_stock_available(
                    line.product_id, line.variant_id, line.quantity, lock=True
                )
                adjust_stock(product, variant, -line.quantity)
                item = _snapshot_line(order.id, product, variant, line.quantity)
                db.session.add(item)
                total += item.line_total_cents

            order.total_amount_cents = total

            if cart is not None:
                db.session.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
                cart.updated_at = utcnow()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order placed: id=%s user_id=%s total_cents=%s", order.id, order.user_id, order.total_amount_cents
    )
    return order


def orders_query(identity: Identity, *, payment_status: str | None = None, shipping_status: str | None = None):
    """Own orders; holders of orders.* (or all) see every order."""
    query = db.session.query(Order)
    if not identity.manages("orders"):
        query = query.filter(Order.user_id == identity.user_id)
    if payment_status:
        query = query.filter(Order.payment_status == payment_status)
    if shipping_status:
        query = query.filter(Order.shipping_status == shipping_status)
    return query.order_by(Order.order_date.desc(), Order.id.desc())


def find_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    return order


def get_order(identity: Identity, order_id: int) -> Order:
    order = find_order(order_id)
    ensure_owner(order.user_id, "orders", identity=identity)
    return order


def update_status(order_id: int, *, payment_status: str | None = None, shipping_status: str | None = None,
                  assigned_shipper_id: int | None = None) -> Order:
    if payment_status is None and shipping_status is None and assigned_shipper_id is None:
        raise ValidationFailed("Nothing to update", errors={"status": "provide paymentStatus or shippingStatus"})
    if payment_status is not None:
        ensure_status(payment_status, PAYMENT_STATUSES, "payment status", field="paymentStatus")
    if shipping_status is not None:
        ensure_status(shipping_status, SHIPPING_STATUSES, "shipping status", field="shippingStatus")
    if assigned_shipper_id is not None:
        ensure_active_user(assigned_shipper_id, field="assignedShipperId")

    order = find_order(order_id)
    with atomic():
        if payment_status is not None:
            order.payment_status = payment_status
        if shipping_status is not None:
            order.shipping_status = shipping_status
        if assigned_shipper_id is not None:
            order.assigned_shipper_id = assigned_shipper_id
        order.updated_at = utcnow()
    return order


def ensure_active_user(user_id: int, *, field: str) -> User:
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise ValidationFailed("User not found", errors={field: "no active user with this id"})
    return user


# -- Order lines --

def get_item(identity: Identity, item_id: int) -> OrderItem:
    item = db.session.get(OrderItem, item_id)
    if item is None:
        raise NotFound("Order item not found")
    order = find_order(item.order_id)
    ensure_owner(order.user_id, "orders", identity=identity)
    return item


def items_for_order(identity: Identity, order_id: int) -> list[OrderItem]:
    get_order(identity, order_id)
    return order_items(order_id)


def product_sales(product_id: int) -> dict:
    items = (
        db.session.query(OrderItem)
        .filter(OrderItem.product_id == product_id)
        .order_by(OrderItem.id.asc())
        .all()
    )
    return {
        "productId": product_id,
        "items": [i.to_dict() for i in items],
        "totalQuantity": sum(i.quantity for i in items),
        "totalRevenueCents": sum(i.line_total_cents for i in items),
        "orderCount": len({i.order_id for i in items}),
    }


def add_item(order_id: int, product_id: int, variant_id: int | None, quantity: int) -> OrderItem:
    """Add a line to an existing order (merging with a matching line) and take the stock."""
    def _op():
        with atomic():
            order = find_order(order_id)
            query = db.session.query(OrderItem).filter(
                OrderItem.order_id == order.id, OrderItem.product_id == product_id
            )
            query = query.filter(
                OrderItem.variant_id.is_(None) if variant_id is None else OrderItem.variant_id == variant_id
            )
            item = query.first()

            product, variant = ensure_stock_available(product_id, variant_id, quantity, lock=True)
            adjust_stock(product, variant, -quantity)
            if item is None:
                item = _snapshot_line(order.id, product, variant, quantity)
                db.session.add(item)
            else:
                item.quantity += quantity
            db.session.flush()
            recompute_total(order)
        return item

    return run_with_retry(_op)


def update_item(item_id: int, quantity: int) -> OrderItem:
    """Set a line's quantity; the difference is taken from or returned to stock."""
    def _op():
        with atomic():
            item = db.session.get(OrderItem, item_id)
            if item is None:
                raise NotFound("Order item not found")
            delta = quantity - item.quantity
            if delta > 0:
                product, variant = ensure_stock_available(item.product_id, item.variant_id, delta, lock=True)
                adjust_stock(product, variant, -delta)
            elif delta < 0:
                product, variant = load_stock_target(item.product_id, item.variant_id, lock=True)
                adjust_stock(product, variant, -delta)
            item.quantity = quantity
            db.session.flush()
            recompute_total(find_order(item.order_id))
        return item

    return run_with_retry(_op)


def delete_item(item_id: int) -> None:
    def _op():
        with atomic():
            item = db.session.get(OrderItem, item_id)
            if item is None:
                raise NotFound("Order item not found")
            product, variant = load_stock_target(item.product_id, item.variant_id, lock=True)
            adjust_stock(product, variant, item.quantity)
            order = find_order(item.order_id)
            db.session.delete(item)
            db.session.flush()
            recompute_total(order)

    run_with_retry(_op)
