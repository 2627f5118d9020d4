"""
Delivery API tests.

Verifies:
- Staff record deliveries for active suppliers only (InvalidSupplier -> 400, no row)
- Edit and soft-delete succeed inside the edit window and return 403 after it
- Soft-deleted deliveries disappear from every read
- Suppliers see only their own deliveries and accept each one exactly once
- Non-owning suppliers get 404 on accept (existence hidden)
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from brewops.errors import AlreadyAccepted, DeliveryLocked, NotFound
from brewops.extensions import db
from brewops.models import Delivery
from brewops.permissions import PaymentMethod, PaymentStatus, RoleName
from brewops.services import delivery_service
from brewops.time_utils import utcnow

from conftest import delivery_input, record_delivery


def _payload(supplier_id, **overrides):
    body = {
        "supplier_id": supplier_id,
        "quantity_kg": 25.5,
        "delivery_date": "2026-04-02",
        "delivery_time": "07:45",
    }
    body.update(overrides)
    return body


def _row_count():
    return db.session.query(Delivery).count()


# =============================================================================
# CREATE
# =============================================================================


class TestCreate:

    def test_staff_records_delivery(self, client, staff, supplier, staff_headers):
        resp = client.post("/api/delivery", json=_payload(supplier.id), headers=staff_headers)
        assert resp.status_code == 201
        delivery_id = resp.json["data"]["delivery_id"]

        delivery = db.session.get(Delivery, delivery_id)
        assert delivery.staff_id == staff.id
        assert delivery.supplier_id == supplier.id
        assert delivery.quantity_kg == Decimal("25.50")
        assert delivery.payment_status == "Pending"
        assert delivery.payment_method is None

    def test_manager_and_admin_can_record(self, client, supplier, manager_headers, admin_headers):
        for headers in (manager_headers, admin_headers):
            resp = client.post("/api/delivery", json=_payload(supplier.id), headers=headers)
            assert resp.status_code == 201

    def test_explicit_payment_status(self, client, supplier, staff_headers):
        resp = client.post(
            "/api/delivery", json=_payload(supplier.id, payment_status="Processing"), headers=staff_headers
        )
        assert resp.status_code == 201
        assert db.session.get(Delivery, resp.json["data"]["delivery_id"]).payment_status == "Processing"

    def test_staff_cannot_preset_accepted_status(self, client, supplier, staff_headers):
        resp = client.post(
            "/api/delivery", json=_payload(supplier.id, payment_status="spot"), headers=staff_headers
        )
        assert resp.status_code == 400
        assert _row_count() == 0

    def test_inactive_supplier_rejected_without_write(self, client, make_user, staff_headers):
        dormant = make_user("dormant", RoleName.SUPPLIER, is_active=False)
        resp = client.post("/api/delivery", json=_payload(dormant.id), headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid supplier ID or supplier is inactive"
        assert _row_count() == 0

    def test_non_supplier_rejected_without_write(self, client, staff, staff_headers):
        resp = client.post("/api/delivery", json=_payload(staff.id), headers=staff_headers)
        assert resp.status_code == 400
        assert _row_count() == 0

    def test_unknown_supplier_rejected(self, client, staff_headers):
        resp = client.post("/api/delivery", json=_payload(9999), headers=staff_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("field,value", [
        ("quantity_kg", 0),
        ("quantity_kg", -3),
        ("quantity_kg", "lots"),
        ("delivery_date", "02/04/2026"),
        ("delivery_time", "25:00"),
        ("supplier_id", "abc"),
    ])
    def test_field_validation(self, client, supplier, staff_headers, field, value):
        body = _payload(supplier.id)
        body[field] = value
        resp = client.post("/api/delivery", json=body, headers=staff_headers)
        assert resp.status_code == 400
        assert any(err["field"] == field for err in resp.json["errors"])
        assert _row_count() == 0


# =============================================================================
# EDIT WINDOW (API)
# =============================================================================


class TestEditWindowApi:

    def test_edit_inside_window(self, client, staff, supplier, staff_headers):
        delivery = record_delivery(supplier.id, staff.id, now=utcnow() - timedelta(minutes=9))
        resp = client.put(
            f"/api/delivery/{delivery.delivery_id}",
            json=_payload(supplier.id, quantity_kg=40),
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert resp.json["data"]["delivery"]["quantity_kg"] == 40.0
        assert resp.json["data"]["delivery"]["is_editable"] is True

    def test_edit_after_window(self, client, staff, supplier, staff_headers):
        delivery = record_delivery(supplier.id, staff.id, now=utcnow() - timedelta(minutes=10, seconds=1))
        resp = client.put(
            f"/api/delivery/{delivery.delivery_id}",
            json=_payload(supplier.id, quantity_kg=40),
            headers=staff_headers,
        )
        assert resp.status_code == 403
        assert resp.json["message"] == "Delivery can only be edited within 10 minutes of creation"
        assert db.session.get(Delivery, delivery.delivery_id).quantity_kg == Decimal("12.50")

    def test_edit_to_inactive_supplier(self, client, staff, supplier, make_user, staff_headers):
        dormant = make_user("dormant", RoleName.SUPPLIER, is_active=False)
        delivery = record_delivery(supplier.id, staff.id)
        resp = client.put(f"/api/delivery/{delivery.delivery_id}", json=_payload(dormant.id), headers=staff_headers)
        assert resp.status_code == 400
        assert db.session.get(Delivery, delivery.delivery_id).supplier_id == supplier.id

    def test_delete_inside_window_hides_row(self, client, staff, supplier, staff_headers, supplier_headers):
        delivery = record_delivery(supplier.id, staff.id)
        resp = client.delete(f"/api/delivery/{delivery.delivery_id}", headers=staff_headers)
        assert resp.status_code == 200

        assert client.get(f"/api/delivery/{delivery.delivery_id}", headers=staff_headers).status_code == 404
        assert client.get("/api/delivery", headers=staff_headers).json["data"]["deliveries"] == []
        assert client.get("/api/delivery/supplier", headers=supplier_headers).json["data"]["deliveries"] == []
        # Soft delete: the row is still there
        assert db.session.get(Delivery, delivery.delivery_id).is_deleted is True

    def test_delete_after_window(self, client, staff, supplier, staff_headers):
        delivery = record_delivery(supplier.id, staff.id, now=utcnow() - timedelta(minutes=15))
        resp = client.delete(f"/api/delivery/{delivery.delivery_id}", headers=staff_headers)
        assert resp.status_code == 403
        assert db.session.get(Delivery, delivery.delivery_id).is_deleted is False

    def test_delete_twice_is_not_found(self, client, staff, supplier, staff_headers):
        delivery = record_delivery(supplier.id, staff.id)
        client.delete(f"/api/delivery/{delivery.delivery_id}", headers=staff_headers)
        resp = client.delete(f"/api/delivery/{delivery.delivery_id}", headers=staff_headers)
        assert resp.status_code == 404

    def test_listing_flags_editability(self, client, staff, supplier, staff_headers):
        fresh = record_delivery(supplier.id, staff.id)
        stale = record_delivery(supplier.id, staff.id, now=utcnow() - timedelta(hours=2))
        rows = {
            row["delivery_id"]: row
            for row in client.get("/api/delivery", headers=staff_headers).json["data"]["deliveries"]
        }
        assert rows[fresh.delivery_id]["is_editable"] is True
        assert rows[stale.delivery_id]["is_editable"] is False
        assert rows[fresh.delivery_id]["supplier_username"] == "supplier_one"
        assert rows[fresh.delivery_id]["staff_username"] == "staff_user"


# =============================================================================
# EDIT WINDOW (service, exact boundaries)
# =============================================================================


class TestEditWindowService:

    def test_exactly_ten_minutes_is_editable(self, staff, supplier):
        created = utcnow() - timedelta(hours=1)
        delivery = record_delivery(supplier.id, staff.id, now=created)
        updated = delivery_service.update_delivery(
            delivery.delivery_id,
            delivery_input(supplier.id, quantity_kg=Decimal("30.00")),
            now=created + timedelta(minutes=10),
        )
        assert updated.quantity_kg == Decimal("30.00")

    def test_one_second_past_is_locked(self, staff, supplier):
        created = utcnow() - timedelta(hours=1)
        delivery = record_delivery(supplier.id, staff.id, now=created)
        with pytest.raises(DeliveryLocked):
            delivery_service.soft_delete_delivery(
                delivery.delivery_id, now=created + timedelta(minutes=10, seconds=1)
            )

    def test_staff_cannot_overwrite_accepted_status(self, staff, supplier):
        delivery = record_delivery(supplier.id, staff.id)
        delivery_service.accept_delivery(
            delivery.delivery_id, supplier_id=supplier.id, method=PaymentMethod.MONTHLY
        )
        with pytest.raises(AlreadyAccepted):
            delivery_service.update_delivery(
                delivery.delivery_id,
                delivery_input(supplier.id, payment_status=PaymentStatus.PENDING),
            )
        assert db.session.get(Delivery, delivery.delivery_id).payment_status == "monthly"


# =============================================================================
# SUPPLIER VIEW AND ACCEPT
# =============================================================================


class TestSupplierAccept:

    def test_supplier_sees_only_own(self, client, staff, supplier, other_supplier, supplier_headers):
        mine = record_delivery(supplier.id, staff.id)
        record_delivery(other_supplier.id, staff.id)

        resp = client.get("/api/delivery/supplier", headers=supplier_headers)
        assert resp.status_code == 200
        assert [row["delivery_id"] for row in resp.json["data"]["deliveries"]] == [mine.delivery_id]

    def test_accept_once(self, client, staff, supplier, supplier_headers):
        delivery = record_delivery(supplier.id, staff.id)
        url = f"/api/delivery/accept/{delivery.delivery_id}"

        first = client.put(url, json={"payment_method": "spot"}, headers=supplier_headers)
        assert first.status_code == 200
        assert first.json["data"] == {
            "delivery_id": delivery.delivery_id,
            "payment_method": "spot",
            "payment_status": "spot",
        }

        second = client.put(url, json={"payment_method": "monthly"}, headers=supplier_headers)
        assert second.status_code == 409
        assert second.json["message"] == "Delivery has already been accepted"

        stored = db.session.get(Delivery, delivery.delivery_id)
        assert stored.payment_status == "spot"
        assert stored.payment_method == "spot"

    def test_paid_delivery_can_still_be_accepted(self, client, staff, supplier, supplier_headers):
        delivery = record_delivery(supplier.id, staff.id, payment_status=PaymentStatus.PAID)
        resp = client.put(
            f"/api/delivery/accept/{delivery.delivery_id}", json={"payment_method": "monthly"}, headers=supplier_headers
        )
        assert resp.status_code == 200

    def test_accept_is_not_bound_by_edit_window(self, client, staff, supplier, supplier_headers):
        delivery = record_delivery(supplier.id, staff.id, now=utcnow() - timedelta(days=2))
        resp = client.put(
            f"/api/delivery/accept/{delivery.delivery_id}", json={"payment_method": "monthly"}, headers=supplier_headers
        )
        assert resp.status_code == 200

    def test_other_supplier_gets_not_found(self, client, staff, supplier, other_supplier_headers):
        delivery = record_delivery(supplier.id, staff.id)
        resp = client.put(
            f"/api/delivery/accept/{delivery.delivery_id}", json={"payment_method": "spot"}, headers=other_supplier_headers
        )
        assert resp.status_code == 404
        assert resp.json["message"] == "Delivery not found or not assigned to you"
        assert db.session.get(Delivery, delivery.delivery_id).payment_status == "Pending"

    def test_missing_delivery_same_answer(self, client, supplier_headers):
        resp = client.put("/api/delivery/accept/4242", json={"payment_method": "spot"}, headers=supplier_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Delivery not found or not assigned to you"

    def test_deleted_delivery_cannot_be_accepted(self, staff, supplier):
        delivery = record_delivery(supplier.id, staff.id)
        delivery_service.soft_delete_delivery(delivery.delivery_id)
        with pytest.raises(NotFound):
            delivery_service.accept_delivery(
                delivery.delivery_id, supplier_id=supplier.id, method=PaymentMethod.SPOT
            )

    @pytest.mark.parametrize("body", [{}, {"payment_method": "cash"}, {"payment_method": "Spot"}])
    def test_invalid_method(self, client, staff, supplier, supplier_headers, body):
        delivery = record_delivery(supplier.id, staff.id)
        resp = client.put(f"/api/delivery/accept/{delivery.delivery_id}", json=body, headers=supplier_headers)
        assert resp.status_code == 400
