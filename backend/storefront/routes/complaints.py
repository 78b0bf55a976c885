# Overview: Flask API routes for customer complaints.

from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..permissions import COMPLAINT_STATUSES
from ..responses import paginate, parse_pagination, success_response
from ..services import feedback_service
from ..validation import body_field, parse_body

complaints_bp = Blueprint("complaints", __name__, url_prefix="/api/complaints")


@dataclass
class CreateComplaintRequest:
    description: str = body_field("description", required=True, min_length=10, max_length=2000)
    order_id: int = body_field("orderId", int, min_value=1)


@dataclass
class ComplaintStatusRequest:
    status: str = body_field("status", required=True, choices=COMPLAINT_STATUSES)


def _serialize(complaint):
    return complaint.to_dict()


@complaints_bp.post("")
@require_auth
def create_complaint():
    """Any signed-in user. A referenced order must be the caller's own."""
    body = parse_body(CreateComplaintRequest, request.get_json(silent=True))
    complaint = feedback_service.create_complaint(g.identity, description=body.description, order_id=body.order_id)
    return success_response(complaint.to_dict(), "Complaint submitted successfully", 201)


@complaints_bp.get("/my-complaints")
@require_auth
def my_complaints():
    page, page_size = parse_pagination(request.args)
    query = feedback_service.complaints_query(user_id=g.identity.user_id)
    return success_response(paginate(query, page, page_size, _serialize))


@complaints_bp.get("")
@require_auth
@require_permission("complaints.view")
def list_complaints():
    page, page_size = parse_pagination(request.args)
    query = feedback_service.complaints_query(status=request.args.get("status"))
    return success_response(paginate(query, page, page_size, _serialize))


@complaints_bp.get("/statistics")
@require_auth
@require_permission("complaints.view")
def complaint_statistics():
    return success_response(feedback_service.complaint_statistics())


@complaints_bp.get("/<int:complaint_id>")
@require_auth
def get_complaint(complaint_id: int):
    return success_response(feedback_service.get_complaint(g.identity, complaint_id).to_dict())


@complaints_bp.put("/<int:complaint_id>/status")
@require_auth
@require_permission("complaints.update")
def update_complaint_status(complaint_id: int):
    body = parse_body(ComplaintStatusRequest, request.get_json(silent=True))
    complaint = feedback_service.update_complaint_status(complaint_id, body.status)
    return success_response(complaint.to_dict(), "Complaint status updated")
