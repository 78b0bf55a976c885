# Overview: Service-layer operations for shipments; one shipment per order.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..errors import Conflict, Forbidden, NotFound
from ..extensions import db
from ..models import Order, Shipping
from ..permissions import SHIPPING_STATUSES
from ..permissions.vocabularies import DELIVERED, INITIAL_SHIPPING_STATUS
from ..time_utils import utcnow
from .access_service import Identity, log_denial
from .concurrency import atomic
from .invariants import ensure_status
from .order_service import ensure_active_user

SHIPPED = "Shipped"


def shipments_query(*, status: str | None = None, shipper_id: int | None = None):
    query = db.session.query(Shipping)
    if status:
        query = query.filter(Shipping.status == status)
    if shipper_id is not None:
        query = query.filter(Shipping.shipper_id == shipper_id)
    return query.order_by(Shipping.id.desc())


def my_shipments_query(identity: Identity):
    """Shipments for orders the caller placed."""
    return (
        db.session.query(Shipping)
        .join(Order, Order.id == Shipping.order_id)
        .filter(Order.user_id == identity.user_id)
        .order_by(Shipping.id.desc())
    )


def my_assignments_query(identity: Identity):
    """Shipments assigned to the caller as shipper."""
    return db.session.query(Shipping).filter(Shipping.shipper_id == identity.user_id).order_by(Shipping.id.desc())


def get_shipment(identity: Identity, shipping_id: int) -> Shipping:
    """Visible to the order owner, the assigned shipper, and shipping.* holders."""
    shipment = db.session.get(Shipping, shipping_id)
    if shipment is None:
        raise NotFound("Shipping record not found")
    order = db.session.get(Order, shipment.order_id)
    if identity.manages("shipping"):
        return shipment
    if shipment.shipper_id == identity.user_id:
        return shipment
    if order is not None and order.user_id == identity.user_id:
        return shipment
    log_denial(identity, f"not owner or shipper of shipment {shipment.id}")
    raise Forbidden()


def create_shipment(*, order_id: int, shipper_id: int | None = None, shipping_address: str | None = None,
                    shipping_date: datetime | None = None, status: str | None = None) -> Shipping:
    status = status or INITIAL_SHIPPING_STATUS
    ensure_status(status, SHIPPING_STATUSES, "shipping status")

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    if db.session.query(Shipping.id).filter(Shipping.order_id == order.id).first() is not None:
        raise Conflict("Shipping record already exists for this order", errors={"orderId": order.id})
    if shipper_id is not None:
        ensure_active_user(shipper_id, field="shipperId")

    with atomic():
        shipment = Shipping(
            order_id=order.id,
            shipper_id=shipper_id,
            shipping_address=shipping_address or order.shipping_address,
            shipping_date=shipping_date,
            status=status,
        )
        if status == DELIVERED:
            shipment.delivery_date = utcnow()
        db.session.add(shipment)
        order.shipping_status = status
        if shipper_id is not None:
            order.assigned_shipper_id = shipper_id
        order.updated_at = utcnow()
    return shipment


def update_status(shipping_id: int, status: str) -> Shipping:
    """Delivered stamps the delivery date; Shipped stamps the shipping date if unset."""
    ensure_status(status, SHIPPING_STATUSES, "shipping status")
    shipment = db.session.get(Shipping, shipping_id)
    if shipment is None:
        raise NotFound("Shipping record not found")

    with atomic():
        now = utcnow()
        shipment.status = status
        if status == DELIVERED:
            shipment.delivery_date = now
        if status == SHIPPED and shipment.shipping_date is None:
            shipment.shipping_date = now
        order = db.session.get(Order, shipment.order_id)
        if order is not None:
            order.shipping_status = status
            order.updated_at = now
    return shipment


def status_counts() -> dict:
    counts = dict(db.session.query(Shipping.status, func.count(Shipping.id)).group_by(Shipping.status).all())
    return {status: counts.get(status, 0) for status in SHIPPING_STATUSES}
