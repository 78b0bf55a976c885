# Overview: Flask API routes for product variants (size / color with their own stock).

from dataclasses import dataclass

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..errors import ValidationFailed
from ..models import ProductVariant
from ..responses import paginate, parse_pagination, success_response
from ..services import catalog_service
from ..validation import body_field, parse_body, provided_fields
from .products import StockRequest

variants_bp = Blueprint("variants", __name__, url_prefix="/api/variants")


@dataclass
class CreateVariantRequest:
    product_id: int = body_field("productId", int, required=True, min_value=1)
    size: str = body_field("size", max_length=20)
    color: str = body_field("color", max_length=50)
    stock_quantity: int = body_field("stockQuantity", int, default=0, nullable=False, min_value=0)


@dataclass
class UpdateVariantRequest:
    size: str = body_field("size", max_length=20)
    color: str = body_field("color", max_length=50)
    stock_quantity: int = body_field("stockQuantity", int, nullable=False, min_value=0)


def _serialize(variant):
    return variant.to_dict()


@variants_bp.get("")
@require_auth
@require_permission("products.view")
def list_variants():
    page, page_size = parse_pagination(request.args)
    return success_response(paginate(catalog_service.variant_query(), page, page_size, _serialize))


@variants_bp.get("/product/<int:product_id>")
def product_variants(product_id: int):
    catalog_service.get_product(product_id)
    return success_response([v.to_dict() for v in catalog_service.variants_for(product_id)])


@variants_bp.get("/product/<int:product_id>/sizes")
def product_sizes(product_id: int):
    return success_response(catalog_service.distinct_variant_values(product_id, ProductVariant.size))


@variants_bp.get("/product/<int:product_id>/colors")
def product_colors(product_id: int):
    return success_response(catalog_service.distinct_variant_values(product_id, ProductVariant.color))


@variants_bp.get("/<int:variant_id>")
def get_variant(variant_id: int):
    return success_response(catalog_service.get_variant(variant_id).to_dict())


@variants_bp.get("/<int:variant_id>/availability")
def variant_availability(variant_id: int):
    """Query param quantity (default 1): is that many in stock right now?"""
    quantity = request.args.get("quantity", "1")
    try:
        quantity = int(quantity)
    except ValueError:
        raise ValidationFailed("quantity must be an integer", errors={"quantity": "must be an integer"})
    if quantity < 1:
        raise ValidationFailed("quantity must be >= 1", errors={"quantity": "must be >= 1"})
    return success_response(catalog_service.variant_availability(variant_id, quantity))


@variants_bp.post("")
@require_auth
@require_permission("products.create")
def create_variant():
    body = parse_body(CreateVariantRequest, request.get_json(silent=True))
    variant = catalog_service.create_variant(
        product_id=body.product_id,
        size=body.size,
        color=body.color,
        stock_quantity=body.stock_quantity,
    )
    return success_response(variant.to_dict(), "Variant created successfully", 201)


@variants_bp.put("/<int:variant_id>")
@require_auth
@require_permission("products.update")
def update_variant(variant_id: int):
    payload = request.get_json(silent=True)
    body = parse_body(UpdateVariantRequest, payload)
    changes = {name: getattr(body, name) for name in provided_fields(body, payload)}
    variant = catalog_service.update_variant(variant_id, changes)
    return success_response(variant.to_dict(), "Variant updated successfully")


@variants_bp.put("/<int:variant_id>/stock")
@require_auth
@require_permission("products.update")
def update_variant_stock(variant_id: int):
    body = parse_body(StockRequest, request.get_json(silent=True))
    variant = catalog_service.set_variant_stock(variant_id, body.stock_quantity)
    return success_response(variant.to_dict(), "Stock updated successfully")


@variants_bp.delete("/<int:variant_id>")
@require_auth
@require_permission("products.delete")
def delete_variant(variant_id: int):
    """409 while any cart or order line references the variant."""
    catalog_service.delete_variant(variant_id)
    return success_response(None, "Variant deleted successfully")
