from __future__ import annotations

from ..extensions import db
from ..permissions import PaymentStatus
from ..time_utils import to_hhmm, to_iso_date, to_utc_z, utcnow


class Delivery(db.Model):
    """
    A tea delivery recorded by staff on behalf of a supplier.

    LIFECYCLE:
    - Editable and soft-deletable by staff for a short window after creation
      (see lifecycle_service.can_modify). Never persisted as a flag.
    - payment_status moves into an accepted state (spot/monthly) exactly once,
      by the supplier the delivery is assigned to.
    - Soft-deleted rows stay in the table but are invisible to every read.
    """
    __tablename__ = "delivery"
    __table_args__ = (
        db.CheckConstraint("quantity_kg > 0", name="ck_delivery_quantity_positive"),
        db.Index("ix_delivery_supplier_deleted", "supplier_id", "is_deleted"),
        db.Index("ix_delivery_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    delivery_id = db.Column(db.Integer, primary_key=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    quantity_kg = db.Column(db.Numeric(10, 2), nullable=False)
    delivery_date = db.Column(db.Date, nullable=False)
    delivery_time = db.Column(db.Time, nullable=False)

    payment_status = db.Column(db.String(32), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = db.Column(db.String(16), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    supplier = db.relationship("User", foreign_keys=[supplier_id])
    staff = db.relationship("User", foreign_keys=[staff_id])

    def to_dict(self) -> dict:
        return {
            "delivery_id": self.delivery_id,
            "supplier_id": self.supplier_id,
            "staff_id": self.staff_id,
            "quantity_kg": float(self.quantity_kg) if self.quantity_kg is not None else None,
            "delivery_date": to_iso_date(self.delivery_date),
            "delivery_time": to_hhmm(self.delivery_time),
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "is_deleted": self.is_deleted,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
