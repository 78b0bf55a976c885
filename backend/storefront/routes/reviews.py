# Overview: Flask API routes for product reviews.

from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import paginate, parse_pagination, success_response
from ..services import feedback_service
from ..validation import body_field, parse_body, provided_fields

reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@dataclass
class CreateReviewRequest:
    product_id: int = body_field("productId", int, required=True, min_value=1)
    rating: int = body_field("rating", int, required=True, min_value=1, max_value=5)
    comment: str = body_field("comment", max_length=1000)


@dataclass
class UpdateReviewRequest:
    rating: int = body_field("rating", int, nullable=False, min_value=1, max_value=5)
    comment: str = body_field("comment", max_length=1000)


@reviews_bp.get("/product/<int:product_id>")
def product_reviews(product_id: int):
    page, page_size = parse_pagination(request.args)
    query = feedback_service.reviews_query(product_id)
    return success_response(paginate(query, page, page_size, feedback_service.serialize_review))


@reviews_bp.get("/product/<int:product_id>/stats")
def product_review_stats(product_id: int):
    return success_response(feedback_service.review_stats(product_id))


@reviews_bp.post("")
@require_auth
@require_permission("reviews.create")
def create_review():
    body = parse_body(CreateReviewRequest, request.get_json(silent=True))
    review = feedback_service.create_review(
        g.identity, product_id=body.product_id, rating=body.rating, comment=body.comment
    )
    return success_response(feedback_service.serialize_review(review), "Review created successfully", 201)


@reviews_bp.put("/<int:review_id>")
@require_auth
def update_review(review_id: int):
    """Author only; Admin is the sole exception."""
    payload = request.get_json(silent=True)
    body = parse_body(UpdateReviewRequest, payload)
    changes = {name: getattr(body, name) for name in provided_fields(body, payload)}
    review = feedback_service.update_review(g.identity, review_id, changes)
    return success_response(feedback_service.serialize_review(review), "Review updated successfully")


@reviews_bp.delete("/<int:review_id>")
@require_auth
def delete_review(review_id: int):
    feedback_service.delete_review(g.identity, review_id)
    return success_response(None, "Review deleted successfully")
