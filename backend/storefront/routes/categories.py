# Overview: Flask API routes for product categories.

from dataclasses import dataclass

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..responses import paginate, parse_pagination, success_response
from ..services import catalog_service
from ..validation import body_field, parse_body, provided_fields

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@dataclass
class CategoryRequest:
    name: str = body_field("name", required=True, min_length=2, max_length=100)
    description: str = body_field("description", max_length=500)


@dataclass
class UpdateCategoryRequest:
    name: str = body_field("name", nullable=False, min_length=2, max_length=100)
    description: str = body_field("description", max_length=500)


@categories_bp.get("")
def list_categories():
    return success_response(catalog_service.list_categories())


@categories_bp.get("/<int:category_id>")
def get_category(category_id: int):
    category = catalog_service.get_category(category_id)
    return success_response(category.to_dict(product_count=catalog_service.product_count(category.id)))


@categories_bp.get("/<int:category_id>/products")
def category_products(category_id: int):
    catalog_service.get_category(category_id)
    page, page_size = parse_pagination(request.args)
    query = catalog_service.product_query(category_id=category_id)
    return success_response(paginate(query, page, page_size, lambda p: p.to_dict()))


@categories_bp.post("")
@require_auth
@require_permission("categories.create")
def create_category():
    body = parse_body(CategoryRequest, request.get_json(silent=True))
    category = catalog_service.create_category(body.name, body.description)
    return success_response(category.to_dict(product_count=0), "Category created successfully", 201)


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("categories.update")
def update_category(category_id: int):
    payload = request.get_json(silent=True)
    body = parse_body(UpdateCategoryRequest, payload)
    category = catalog_service.update_category(
        category_id,
        body.name,
        body.description,
        description_provided="description" in provided_fields(body, payload),
    )
    return success_response(category.to_dict(), "Category updated successfully")


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("categories.delete")
def delete_category(category_id: int):
    """409 while any product still belongs to the category."""
    catalog_service.delete_category(category_id)
    return success_response(None, "Category deleted successfully")
