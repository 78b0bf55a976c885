# Overview: Flask API routes for payments.

from dataclasses import dataclass

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..permissions import PAYMENT_METHODS, PAYMENT_STATUSES
from ..responses import paginate, parse_pagination, success_response
from ..services import payment_service
from ..validation import body_field, parse_body

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@dataclass
class CreatePaymentRequest:
    order_id: int = body_field("orderId", int, required=True, min_value=1)
    payment_method: str = body_field("paymentMethod", required=True, choices=PAYMENT_METHODS)
    amount_cents: int = body_field("amountCents", int, min_value=0)
    status: str = body_field("status", choices=PAYMENT_STATUSES)


@dataclass
class PaymentStatusRequest:
    status: str = body_field("status", required=True, choices=PAYMENT_STATUSES)


def _serialize(payment):
    return payment.to_dict()


@payments_bp.get("")
@require_auth
@require_permission("payments.view")
def list_payments():
    page, page_size = parse_pagination(request.args)
    query = payment_service.payments_query(
        status=request.args.get("status"),
        method=request.args.get("paymentMethod"),
    )
    return success_response(paginate(query, page, page_size, _serialize))


@payments_bp.get("/my-payments")
@require_auth
def my_payments():
    page, page_size = parse_pagination(request.args)
    return success_response(paginate(payment_service.my_payments_query(g.identity), page, page_size, _serialize))


@payments_bp.get("/statistics")
@require_auth
@require_permission("payments.view")
def payment_statistics():
    return success_response(payment_service.statistics())


@payments_bp.get("/<int:payment_id>")
@require_auth
def get_payment(payment_id: int):
    return success_response(payment_service.get_payment(g.identity, payment_id).to_dict())


@payments_bp.post("")
@require_auth
def create_payment():
    """
    The caller must own the order (or hold payments.*).
    A second payment for the same order is rejected with 409.
    amountCents defaults to the order total; status and amountCents are
    ignored unless the caller holds payments.*.
    """
    body = parse_body(CreatePaymentRequest, request.get_json(silent=True))
    payment = payment_service.create_payment(
        g.identity,
        order_id=body.order_id,
        payment_method=body.payment_method,
        amount_cents=body.amount_cents,
        status=body.status,
    )
    return success_response(payment.to_dict(), "Payment created successfully", 201)


@payments_bp.put("/<int:payment_id>/status")
@require_auth
@require_permission("payments.update")
def update_payment_status(payment_id: int):
    body = parse_body(PaymentStatusRequest, request.get_json(silent=True))
    payment = payment_service.update_status(payment_id, body.status)
    return success_response(payment.to_dict(), "Payment status updated")
