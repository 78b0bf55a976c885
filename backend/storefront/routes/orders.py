# Overview: Flask API routes for orders; checkout and status changes.

# backend/storefront/routes/orders.py
"""
SECURITY:
- Listing shows the caller's own orders; orders.* holders see all
- Reading one order requires owning it or holding orders.*
- Placing an order needs orders.create; status changes need orders.update
"""
from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import paginate, parse_pagination, success_response
from ..services import order_service
from ..validation import body_field, parse_body

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@dataclass
class OrderLineRequest:
    product_id: int = body_field("productId", int, required=True, min_value=1)
    variant_id: int = body_field("variantId", int, min_value=1)
    quantity: int = body_field("quantity", int, required=True, min_value=1)


@dataclass
class CreateOrderRequest:
    shipping_address: str = body_field("shippingAddress", required=True, min_length=5, max_length=500)
    items: list = body_field("items", list, item_schema=OrderLineRequest, min_length=1)


@dataclass
class OrderStatusRequest:
    payment_status: str = body_field("paymentStatus", nullable=False)
    shipping_status: str = body_field("shippingStatus", nullable=False)
    assigned_shipper_id: int = body_field("assignedShipperId", int, min_value=1)


def _serialize(order):
    return order.to_dict(items=order_service.order_items(order.id))


@orders_bp.get("")
@require_auth
def list_orders():
    """
    Query params:
    - paymentStatus / shippingStatus: exact status filter
    - page, pageSize
    """
    page, page_size = parse_pagination(request.args)
    query = order_service.orders_query(
        g.identity,
        payment_status=request.args.get("paymentStatus"),
        shipping_status=request.args.get("shippingStatus"),
    )
    return success_response(paginate(query, page, page_size, _serialize))


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order(order_id: int):
    order = order_service.get_order(g.identity, order_id)
    return success_response(_serialize(order))


@orders_bp.post("")
@require_auth
@require_permission("orders.create")
def create_order():
    """
    Without "items" the caller's cart is checked out (and emptied).
    Stock is re-validated and taken for every line; any shortage fails the whole order.
    """
    body = parse_body(CreateOrderRequest, request.get_json(silent=True))
    order = order_service.checkout(g.identity, body.shipping_address, body.items)
    return success_response(_serialize(order), "Order placed successfully", 201)


@orders_bp.put("/<int:order_id>/status")
@require_auth
@require_permission("orders.update")
def update_order_status(order_id: int):
    body = parse_body(OrderStatusRequest, request.get_json(silent=True))
    order = order_service.update_status(
        order_id,
        payment_status=body.payment_status,
        shipping_status=body.shipping_status,
        assigned_shipper_id=body.assigned_shipper_id,
    )
    return success_response(_serialize(order), "Order status updated")
