# Overview: Flask API routes for individual order lines.

from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import success_response
from ..services import order_service
from ..validation import body_field, parse_body

order_items_bp = Blueprint("order_items", __name__, url_prefix="/api/order-items")


@dataclass
class CreateOrderItemRequest:
    order_id: int = body_field("orderId", int, required=True, min_value=1)
    product_id: int = body_field("productId", int, required=True, min_value=1)
    variant_id: int = body_field("variantId", int, min_value=1)
    quantity: int = body_field("quantity", int, required=True, min_value=1)


@dataclass
class UpdateOrderItemRequest:
    quantity: int = body_field("quantity", int, required=True, min_value=1)


@order_items_bp.get("/order/<int:order_id>")
@require_auth
def items_for_order(order_id: int):
    items = order_service.items_for_order(g.identity, order_id)
    return success_response([i.to_dict() for i in items])


@order_items_bp.get("/product/<int:product_id>")
@require_auth
@require_permission("orders.view")
def items_for_product(product_id: int):
    """Sales of one product across all orders."""
    return success_response(order_service.product_sales(product_id))


@order_items_bp.get("/<int:item_id>")
@require_auth
def get_item(item_id: int):
    return success_response(order_service.get_item(g.identity, item_id).to_dict())


@order_items_bp.post("")
@require_auth
@require_permission("orders.update")
def create_item():
    body = parse_body(CreateOrderItemRequest, request.get_json(silent=True))
    item = order_service.add_item(body.order_id, body.product_id, body.variant_id, body.quantity)
    return success_response(item.to_dict(), "Order item added", 201)


@order_items_bp.put("/<int:item_id>")
@require_auth
@require_permission("orders.update")
def update_item(item_id: int):
    body = parse_body(UpdateOrderItemRequest, request.get_json(silent=True))
    item = order_service.update_item(item_id, body.quantity)
    return success_response(item.to_dict(), "Order item updated")


@order_items_bp.delete("/<int:item_id>")
@require_auth
@require_permission("orders.delete")
def delete_item(item_id: int):
    """Removes the line and puts its quantity back into stock."""
    order_service.delete_item(item_id)
    return success_response(None, "Order item deleted")
