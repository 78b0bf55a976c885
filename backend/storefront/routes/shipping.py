# Overview: Flask API routes for shipments.

from dataclasses import dataclass
from datetime import datetime

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..permissions import SHIPPING_STATUSES
from ..responses import paginate, parse_pagination, success_response
from ..services import shipping_service
from ..validation import body_field, parse_body

shipping_bp = Blueprint("shipping", __name__, url_prefix="/api/shipping")


@dataclass
class CreateShippingRequest:
    order_id: int = body_field("orderId", int, required=True, min_value=1)
    shipper_id: int = body_field("shipperId", int, min_value=1)
    shipping_address: str = body_field("shippingAddress", max_length=500)
    shipping_date: datetime = body_field("shippingDate", datetime)
    status: str = body_field("status", choices=SHIPPING_STATUSES)


@dataclass
class ShippingStatusRequest:
    status: str = body_field("status", required=True, choices=SHIPPING_STATUSES)


def _serialize(shipment):
    return shipment.to_dict()


@shipping_bp.get("")
@require_auth
@require_permission("shipping.view")
def list_shipments():
    page, page_size = parse_pagination(request.args)
    query = shipping_service.shipments_query(
        status=request.args.get("status"),
        shipper_id=request.args.get("shipperId", type=int),
    )
    return success_response(paginate(query, page, page_size, _serialize))


@shipping_bp.get("/my-shipments")
@require_auth
def my_shipments():
    page, page_size = parse_pagination(request.args)
    return success_response(paginate(shipping_service.my_shipments_query(g.identity), page, page_size, _serialize))


@shipping_bp.get("/my-assignments")
@require_auth
def my_assignments():
    page, page_size = parse_pagination(request.args)
    query = shipping_service.my_assignments_query(g.identity)
    return success_response(paginate(query, page, page_size, _serialize))


@shipping_bp.get("/statistics")
@require_auth
@require_permission("shipping.view")
def shipping_statistics():
    return success_response(shipping_service.status_counts())


@shipping_bp.get("/<int:shipping_id>")
@require_auth
def get_shipment(shipping_id: int):
    return success_response(shipping_service.get_shipment(g.identity, shipping_id).to_dict())


@shipping_bp.post("")
@require_auth
@require_permission("shipping.create")
def create_shipment():
    body = parse_body(CreateShippingRequest, request.get_json(silent=True))
    shipment = shipping_service.create_shipment(
        order_id=body.order_id,
        shipper_id=body.shipper_id,
        shipping_address=body.shipping_address,
        shipping_date=body.shipping_date,
        status=body.status,
    )
    return success_response(shipment.to_dict(), "Shipping record created successfully", 201)


@shipping_bp.put("/<int:shipping_id>/status")
@require_auth
@require_permission("shipping.update")
def update_shipping_status(shipping_id: int):
    """Delivered stamps the delivery date; the order's shipping status follows."""
    body = parse_body(ShippingStatusRequest, request.get_json(silent=True))
    shipment = shipping_service.update_status(shipping_id, body.status)
    return success_response(shipment.to_dict(), "Shipping status updated")
