# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/storefront/routes/products.py
"""
Catalog reads are public. Writes need products.* grants (Product Manager, Admin).

Prices are integer cents; discountPercent is a whole percent 0-100.
"""
from dataclasses import dataclass

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..errors import ValidationFailed
from ..responses import paginate, parse_bool_arg, parse_pagination, success_response
from ..services import catalog_service
from ..validation import body_field, parse_body, provided_fields

# Upper bound on a single price: $1,000,000.00
MAX_PRICE_CENTS = 100_000_000

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@dataclass
class CreateProductRequest:
    name: str = body_field("name", required=True, max_length=200)
    description: str = body_field("description", max_length=5000)
    category_id: int = body_field("categoryId", int, min_value=1)
    price_cents: int = body_field("priceCents", int, required=True, min_value=0, max_value=MAX_PRICE_CENTS)
    discount_percent: int = body_field("discountPercent", int, default=0, nullable=False, min_value=0,
                                       max_value=100)
    stock_quantity: int = body_field("stockQuantity", int, default=0, nullable=False, min_value=0)


@dataclass
class UpdateProductRequest:
    name: str = body_field("name", nullable=False, max_length=200)
    description: str = body_field("description", max_length=5000)
    category_id: int = body_field("categoryId", int, min_value=1)
    price_cents: int = body_field("priceCents", int, nullable=False, min_value=0, max_value=MAX_PRICE_CENTS)
    discount_percent: int = body_field("discountPercent", int, nullable=False, min_value=0, max_value=100)
    stock_quantity: int = body_field("stockQuantity", int, nullable=False, min_value=0)


@dataclass
class StockRequest:
    stock_quantity: int = body_field("stockQuantity", int, required=True, aliases=("quantity",))


def _int_query_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer", errors={name: "must be an integer"})


@products_bp.get("")
def list_products():
    """
    Query params:
    - categoryId: int
    - search: substring of name or description (case-insensitive)
    - minPrice / maxPrice: cents, inclusive
    - inStock: bool
    - page, pageSize
    """
    page, page_size = parse_pagination(request.args)
    query = catalog_service.product_query(
        category_id=_int_query_arg("categoryId"),
        search=request.args.get("search"),
        min_price=_int_query_arg("minPrice"),
        max_price=_int_query_arg("maxPrice"),
        in_stock=parse_bool_arg(request.args, "inStock"),
    )
    return success_response(paginate(query, page, page_size, lambda p: p.to_dict()))


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = catalog_service.get_product(product_id)
    return success_response(product.to_dict(variants=catalog_service.variants_for(product.id)))


@products_bp.post("")
@require_auth
@require_permission("products.create")
def create_product():
    body = parse_body(CreateProductRequest, request.get_json(silent=True))
    product = catalog_service.create_product(
        name=body.name,
        description=body.description,
        category_id=body.category_id,
        price_cents=body.price_cents,
        discount_percent=body.discount_percent,
        stock_quantity=body.stock_quantity,
    )
    return success_response(product.to_dict(variants=[]), "Product created successfully", 201)


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("products.update")
def update_product(product_id: int):
    payload = request.get_json(silent=True)
    body = parse_body(UpdateProductRequest, payload)
    changes = {name: getattr(body, name) for name in provided_fields(body, payload)}
    product = catalog_service.update_product(product_id, changes)
    return success_response(product.to_dict(), "Product updated successfully")


@products_bp.put("/<int:product_id>/stock")
@require_auth
@require_permission("products.update")
def update_stock(product_id: int):
    """Set absolute stock. Negative values are rejected."""
    body = parse_body(StockRequest, request.get_json(silent=True))
    product = catalog_service.set_product_stock(product_id, body.stock_quantity)
    return success_response(product.to_dict(), "Stock updated successfully")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("products.delete")
def delete_product(product_id: int):
    """409 while any cart or order line references the product."""
    catalog_service.delete_product(product_id)
    return success_response(None, "Product deleted successfully")
