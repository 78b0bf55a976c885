# Overview: Service-layer operations for payments; one payment per order.

from __future__ import annotations

from sqlalchemy import func

from ..errors import Conflict, NotFound
from ..extensions import db
from ..models import Order, Payment
from ..permissions import PAYMENT_METHODS, PAYMENT_STATUSES
from ..permissions.vocabularies import INITIAL_PAYMENT_STATUS
from ..time_utils import utcnow
from .access_service import Identity, ensure_owner
from .concurrency import atomic
from .invariants import ensure_status


def payments_query(*, status: str | None = None, method: str | None = None):
    query = db.session.query(Payment)
    if status:
        query = query.filter(Payment.status == status)
    if method:
        query = query.filter(Payment.payment_method == method)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc())


def my_payments_query(identity: Identity):
    return (
        db.session.query(Payment)
        .join(Order, Order.id == Payment.order_id)
        .filter(Order.user_id == identity.user_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )


def _order_for(payment: Payment) -> Order:
    return db.session.get(Order, payment.order_id)


def get_payment(identity: Identity, payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFound("Payment not found")
    order = _order_for(payment)
    ensure_owner(order.user_id if order else None, "payments", identity=identity)
    return payment


def create_payment(identity: Identity, *, order_id: int, payment_method: str,
                   amount_cents: int | None = None, status: str | None = None) -> Payment:
    """
    Record the payment for an order.

    The caller must own the order unless they manage payments. The order's
    payment status mirrors the new payment's status.

    SECURITY: only payments.* holders may set status or amount. Everyone
    else records a Pending payment for the order total; status changes go
    through update_status() behind payments.update.
    """
    ensure_status(payment_method, PAYMENT_METHODS, "payment method", field="paymentMethod")
    if not identity.manages("payments"):
        status = None
        amount_cents = None
    status = status or INITIAL_PAYMENT_STATUS
    ensure_status(status, PAYMENT_STATUSES, "payment status")

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    ensure_owner(order.user_id, "payments", identity=identity)

    if db.session.query(Payment.id).filter(Payment.order_id == order.id).first() is not None:
        raise Conflict("Payment already exists for this order", errors={"orderId": order.id})

    with atomic():
        payment = Payment(
            order_id=order.id,
            payment_method=payment_method,
            amount_cents=order.total_amount_cents if amount_cents is None else amount_cents,
            status=status,
            payment_date=utcnow(),
        )
        db.session.add(payment)
        order.payment_status = status
        order.updated_at = utcnow()
    return payment


def update_status(payment_id: int, status: str) -> Payment:
    ensure_status(status, PAYMENT_STATUSES, "payment status")
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFound("Payment not found")
    with atomic():
        payment.status = status
        order = _order_for(payment)
        if order is not None:
            order.payment_status = status
            order.updated_at = utcnow()
    return payment


def statistics() -> dict:
    by_status = dict(
        db.session.query(Payment.status, func.count(Payment.id)).group_by(Payment.status).all()
    )
    by_method = {
        method: {"count": count, "amountCents": int(amount or 0)}
        for method, count, amount in db.session.query(
            Payment.payment_method, func.count(Payment.id), func.sum(Payment.amount_cents)
        ).group_by(Payment.payment_method).all()
    }
    completed_total = (
        db.session.query(func.coalesce(func.sum(Payment.amount_cents), 0))
        .filter(Payment.status == "Completed")
        .scalar()
    )
    return {
        "totalPayments": sum(by_status.values()),
        "byStatus": {status: by_status.get(status, 0) for status in PAYMENT_STATUSES},
        "byMethod": by_method,
        "completedAmountCents": int(completed_total or 0),
    }
