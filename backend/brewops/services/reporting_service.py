# Overview: Service-layer operations for reporting; read-only aggregate queries over deliveries.

from __future__ import annotations

from datetime import date

from sqlalchemy import extract, func
from sqlalchemy.orm import aliased

from ..extensions import db
from ..models import Delivery, Role, User
from ..permissions import RoleName
from ..time_utils import to_iso_date, utcnow


TOP_SUPPLIERS_LIMIT = 5
TOP_STAFF_LIMIT = 5
RECENT_LIMIT = 10


def _num(value) -> float:
    return round(float(value or 0), 2)


def monthly_totals(year: int) -> list[dict]:
    month = extract("month", Delivery.delivery_date)
    rows = db.session.query(
        month.label("month"),
        func.sum(Delivery.quantity_kg).label("total_quantity"),
    ).filter(
        Delivery.is_deleted.is_(False),
        extract("year", Delivery.delivery_date) == year,
    ).group_by(month).order_by(month).all()

    return [
        {"month": int(row.month), "total_quantity": _num(row.total_quantity)}
        for row in rows
    ]


def top_suppliers(limit: int = TOP_SUPPLIERS_LIMIT) -> list[dict]:
    total = func.sum(Delivery.quantity_kg)
    rows = db.session.query(
        User.username.label("supplier_name"),
        func.count(Delivery.delivery_id).label("delivery_count"),
        total.label("total_quantity"),
        func.avg(Delivery.quantity_kg).label("avg_quantity_per_delivery"),
    ).join(User, Delivery.supplier_id == User.id).join(Role, User.role_id == Role.id).filter(
        Delivery.is_deleted.is_(False),
        Role.name == RoleName.SUPPLIER.value,
    ).group_by(Delivery.supplier_id, User.username).order_by(total.desc()).limit(limit).all()

    return [
        {
            "supplier_name": row.supplier_name,
            "delivery_count": int(row.delivery_count),
            "total_quantity": _num(row.total_quantity),
            "avg_quantity_per_delivery": _num(row.avg_quantity_per_delivery),
        }
        for row in rows
    ]


def payment_status_distribution() -> list[dict]:
    rows = db.session.query(
        Delivery.payment_status,
        func.count(Delivery.delivery_id).label("count"),
        func.sum(Delivery.quantity_kg).label("total_quantity"),
    ).filter(
        Delivery.is_deleted.is_(False),
    ).group_by(Delivery.payment_status).order_by(Delivery.payment_status).all()

    return [
        {
            "payment_status": row.payment_status,
            "count": int(row.count),
            "total_quantity": _num(row.total_quantity),
        }
        for row in rows
    ]


def staff_performance(limit: int = TOP_STAFF_LIMIT) -> list[dict]:
    count = func.count(Delivery.delivery_id)
    rows = db.session.query(
        User.username.label("staff_name"),
        count.label("delivery_count"),
        func.sum(Delivery.quantity_kg).label("total_quantity"),
    ).join(User, Delivery.staff_id == User.id).join(Role, User.role_id == Role.id).filter(
        Delivery.is_deleted.is_(False),
        Role.name == RoleName.STAFF.value,
    ).group_by(Delivery.staff_id, User.username).order_by(count.desc()).limit(limit).all()

    return [
        {
            "staff_name": row.staff_name,
            "delivery_count": int(row.delivery_count),
            "total_quantity": _num(row.total_quantity),
        }
        for row in rows
    ]


def recent_deliveries(limit: int = RECENT_LIMIT) -> list[dict]:
    supplier = aliased(User)
    staff = aliased(User)
    rows = db.session.query(
        Delivery.delivery_id,
        supplier.username.label("supplier_name"),
        staff.username.label("staff_name"),
        Delivery.quantity_kg,
        Delivery.delivery_date,
        Delivery.payment_status,
    ).join(supplier, Delivery.supplier_id == supplier.id).join(
        staff, Delivery.staff_id == staff.id
    ).filter(
        Delivery.is_deleted.is_(False),
    ).order_by(Delivery.delivery_date.desc(), Delivery.delivery_id.desc()).limit(limit).all()

    return [
        {
            "delivery_id": row.delivery_id,
            "supplier_name": row.supplier_name,
            "staff_name": row.staff_name,
            "quantity_kg": _num(row.quantity_kg),
            "delivery_date": to_iso_date(row.delivery_date),
            "payment_status": row.payment_status,
        }
        for row in rows
    ]


def delivery_stats(today: date | None = None) -> dict:
    today = today or utcnow().date()
    return {
        "monthlyData": monthly_totals(today.year),
        "supplierData": top_suppliers(),
        "paymentStatusData": payment_status_distribution(),
        "staffPerformanceData": staff_performance(),
        "recentDeliveries": recent_deliveries(),
    }
