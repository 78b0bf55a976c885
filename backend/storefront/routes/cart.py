# Overview: Flask API routes for the caller's shopping cart.

# backend/storefront/routes/cart.py
"""
SECURITY: every route requires authentication and only ever touches the
caller's own cart. Lines in someone else's cart are reported as 404.
"""
from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..responses import success_response
from ..services import cart_service
from ..validation import body_field, parse_body

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@dataclass
class AddCartItemRequest:
    product_id: int = body_field("productId", int, required=True, min_value=1)
    variant_id: int = body_field("variantId", int, min_value=1)
    quantity: int = body_field("quantity", int, default=1, nullable=False, min_value=1)


@dataclass
class UpdateCartItemRequest:
    quantity: int = body_field("quantity", int, required=True, min_value=1)


@cart_bp.get("")
@require_auth
def get_cart():
    """Returns the caller's cart, creating an empty one on first access."""
    cart = cart_service.get_or_create_cart(g.identity.user_id)
    return success_response(cart_service.serialize_cart(cart))


@cart_bp.post("/items")
@require_auth
def add_item():
    body = parse_body(AddCartItemRequest, request.get_json(silent=True))
    cart = cart_service.add_item(g.identity.user_id, body.product_id, body.variant_id, body.quantity)
    return success_response(cart_service.serialize_cart(cart), "Item added to cart")


@cart_bp.put("/items/<int:item_id>")
@require_auth
def update_item(item_id: int):
    body = parse_body(UpdateCartItemRequest, request.get_json(silent=True))
    cart = cart_service.update_item(g.identity.user_id, item_id, body.quantity)
    return success_response(cart_service.serialize_cart(cart), "Cart item updated")


@cart_bp.delete("/items/<int:item_id>")
@require_auth
def remove_item(item_id: int):
    cart = cart_service.remove_item(g.identity.user_id, item_id)
    return success_response(cart_service.serialize_cart(cart), "Item removed from cart")


@cart_bp.delete("/clear")
@require_auth
def clear_cart():
    cart = cart_service.clear_cart(g.identity.user_id)
    return success_response(cart_service.serialize_cart(cart), "Cart cleared")
