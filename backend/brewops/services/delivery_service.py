# Overview: Service-layer operations for deliveries; encapsulates business logic and database work.

"""
Delivery persistence.

Every mutation that depends on a lifecycle rule is a single conditional
UPDATE so the rule is checked and applied atomically:

- update / soft-delete: only while created_at >= now - edit window
- accept: only while the row belongs to the caller and is not yet accepted

When the UPDATE touches no row, the row is re-read to report *why*
(not found, locked, already accepted). The pure rules live in
lifecycle_service.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from ..errors import InvalidSupplier, NotFound
from ..extensions import db
from ..models import Delivery, Role, User
from ..permissions import ACCEPTED_STATUSES, PaymentMethod, PaymentStatus, RoleName
from ..time_utils import utcnow
from ..validation import DeliveryInput
from . import lifecycle_service
from .lifecycle_service import DEFAULT_EDIT_WINDOW, Mutability


ACCEPTED_VALUES = sorted(status.value for status in ACCEPTED_STATUSES)


def ensure_supplier_eligible(supplier_id: int) -> User:
    """
    supplier_id must resolve to an active user holding the supplier role.

    Raises:
        InvalidSupplier: before any write happens
    """
    supplier = (
        db.session.query(User)
        .join(Role, User.role_id == Role.id)
        .filter(
            User.id == supplier_id,
            Role.name == RoleName.SUPPLIER.value,
            User.is_active.is_(True),
        )
        .first()
    )
    if not supplier:
        raise InvalidSupplier()
    return supplier


def serialize(delivery: Delivery, now: datetime, window: timedelta = DEFAULT_EDIT_WINDOW) -> dict:
    data = delivery.to_dict()
    if delivery.supplier is not None:
        data["supplier_name"] = delivery.supplier.full_name
        data["supplier_username"] = delivery.supplier.username
    if delivery.staff is not None:
        data["staff_name"] = delivery.staff.full_name
        data["staff_username"] = delivery.staff.username
    data["is_editable"] = lifecycle_service.mutability(delivery.created_at, now, window) is Mutability.EDITABLE
    return data


def _visible():
    return (
        db.session.query(Delivery)
        .options(joinedload(Delivery.supplier), joinedload(Delivery.staff))
        .filter(Delivery.is_deleted.is_(False))
    )


def list_deliveries() -> list[Delivery]:
    return _visible().order_by(Delivery.created_at.desc(), Delivery.delivery_id.desc()).all()


def list_supplier_deliveries(supplier_id: int) -> list[Delivery]:
    return (
        _visible()
        .filter(Delivery.supplier_id == supplier_id)
        .order_by(Delivery.created_at.desc(), Delivery.delivery_id.desc())
        .all()
    )


def find_delivery(delivery_id: int) -> Delivery | None:
    return _visible().filter(Delivery.delivery_id == delivery_id).first()


def get_delivery(delivery_id: int) -> Delivery:
    delivery = find_delivery(delivery_id)
    if not delivery:
        raise NotFound("Delivery not found")
    return delivery


def create_delivery(data: DeliveryInput, *, staff_id: int, now: datetime | None = None) -> Delivery:
    ensure_supplier_eligible(data.supplier_id)

    now = now or utcnow()
    delivery = Delivery(
        supplier_id=data.supplier_id,
        staff_id=staff_id,
        quantity_kg=data.quantity_kg,
        delivery_date=data.delivery_date,
        delivery_time=data.delivery_time,
        payment_status=(data.payment_status or PaymentStatus.PENDING).value,
        created_at=now,
        updated_at=now,
    )
    db.session.add(delivery)
    db.session.commit()
    return delivery


def _explain_missed_write(
    delivery_id: int,
    now: datetime,
    window: timedelta,
    *,
    action: str,
    guard_acceptance: bool = False,
) -> None:
    """Called after a conditional UPDATE matched no row. Always raises."""
    db.session.rollback()
    delivery = find_delivery(delivery_id)
    if not delivery:
        raise NotFound("Delivery not found")
    lifecycle_service.ensure_modifiable(delivery.created_at, now, window, action=action)
    if guard_acceptance:
        lifecycle_service.ensure_acceptable(delivery.payment_status)
    # Row changed between the UPDATE and the re-read
    raise NotFound("Delivery not found")


def update_delivery(
    delivery_id: int,
    data: DeliveryInput,
    *,
    now: datetime | None = None,
    window: timedelta = DEFAULT_EDIT_WINDOW,
) -> Delivery:
    """
    Replace a delivery's recorded fields while it is still editable.

    payment_status is only touched when supplied, and never once the
    supplier has accepted the delivery.

    Raises:
        NotFound, DeliveryLocked, InvalidSupplier, AlreadyAccepted
    """
    now = now or utcnow()

    existing = get_delivery(delivery_id)
    lifecycle_service.ensure_modifiable(existing.created_at, now, window, action="edited")
    ensure_supplier_eligible(data.supplier_id)

    values = {
        "supplier_id": data.supplier_id,
        "quantity_kg": data.quantity_kg,
        "delivery_date": data.delivery_date,
        "delivery_time": data.delivery_time,
        "updated_at": now,
    }
    stmt = update(Delivery).where(
        Delivery.delivery_id == delivery_id,
        Delivery.is_deleted.is_(False),
        Delivery.created_at >= lifecycle_service.edit_cutoff(now, window),
    )
    if data.payment_status is not None:
        values["payment_status"] = data.payment_status.value
        stmt = stmt.where(Delivery.payment_status.notin_(ACCEPTED_VALUES))

    result = db.session.execute(
        stmt.values(**values).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        _explain_missed_write(
            delivery_id, now, window,
            action="edited",
            guard_acceptance=data.payment_status is not None,
        )

    db.session.commit()
    return get_delivery(delivery_id)


def soft_delete_delivery(
    delivery_id: int,
    *,
    now: datetime | None = None,
    window: timedelta = DEFAULT_EDIT_WINDOW,
) -> None:
    """
    Hide a delivery from all reads. There is no way to bring it back.

    Raises:
        NotFound, DeliveryLocked
    """
    now = now or utcnow()

    existing = get_delivery(delivery_id)
    lifecycle_service.ensure_modifiable(existing.created_at, now, window, action="deleted")

    result = db.session.execute(
        update(Delivery)
        .where(
            Delivery.delivery_id == delivery_id,
            Delivery.is_deleted.is_(False),
            Delivery.created_at >= lifecycle_service.edit_cutoff(now, window),
        )
        .values(is_deleted=True, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        _explain_missed_write(delivery_id, now, window, action="deleted")

    db.session.commit()


def accept_delivery(
    delivery_id: int,
    *,
    supplier_id: int,
    method: PaymentMethod,
    now: datetime | None = None,
) -> dict:
    """
    Fix the payment method of a delivery, once, as its assigned supplier.

    Deliveries that belong to another supplier are reported as NotFound so
    their existence is not revealed.

    Raises:
        NotFound, AlreadyAccepted
    """
    now = now or utcnow()
    status = method.accepted_status

    result = db.session.execute(
        update(Delivery)
        .where(
            Delivery.delivery_id == delivery_id,
            Delivery.supplier_id == supplier_id,
            Delivery.is_deleted.is_(False),
            Delivery.payment_status.notin_(ACCEPTED_VALUES),
        )
        .values(payment_status=status.value, payment_method=method.value, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        db.session.rollback()
        owned = (
            db.session.query(Delivery)
            .filter(
                Delivery.delivery_id == delivery_id,
                Delivery.supplier_id == supplier_id,
                Delivery.is_deleted.is_(False),
            )
            .first()
        )
        if not owned:
            raise NotFound("Delivery not found or not assigned to you")
        lifecycle_service.ensure_acceptable(owned.payment_status)
        raise NotFound("Delivery not found or not assigned to you")

    db.session.commit()
    return {
        "delivery_id": delivery_id,
        "payment_method": method.value,
        "payment_status": status.value,
    }
