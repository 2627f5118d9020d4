"""
Delivery lifecycle rule tests (pure, no database).

Verifies:
- The edit window boundary is inclusive (exactly 10:00 is still editable)
- Anything older is locked, and stays locked
- spot and monthly are terminal; every staff-settable status can be accepted
"""

from datetime import datetime, timedelta, timezone

import pytest

from brewops.errors import AlreadyAccepted, DeliveryLocked
from brewops.permissions import PaymentMethod, PaymentStatus, STAFF_SETTABLE_STATUSES
from brewops.services import lifecycle_service
from brewops.services.lifecycle_service import Mutability


CREATED = datetime(2026, 5, 1, 9, 0, 0)


class TestEditWindow:

    @pytest.mark.parametrize("elapsed", [
        timedelta(0),
        timedelta(minutes=9, seconds=59),
        timedelta(minutes=10),
    ])
    def test_editable_inside_window(self, elapsed):
        assert lifecycle_service.can_modify(CREATED, CREATED + elapsed)
        lifecycle_service.ensure_modifiable(CREATED, CREATED + elapsed)

    @pytest.mark.parametrize("elapsed", [
        timedelta(minutes=10, microseconds=1),
        timedelta(minutes=10, seconds=1),
        timedelta(minutes=11),
        timedelta(days=3),
    ])
    def test_locked_after_window(self, elapsed):
        assert not lifecycle_service.can_modify(CREATED, CREATED + elapsed)
        with pytest.raises(DeliveryLocked):
            lifecycle_service.ensure_modifiable(CREATED, CREATED + elapsed)

    def test_locked_message_names_action(self):
        with pytest.raises(DeliveryLocked) as exc:
            lifecycle_service.ensure_modifiable(CREATED, CREATED + timedelta(hours=1), action="deleted")
        assert exc.value.message == "Delivery can only be deleted within 10 minutes of creation"
        assert exc.value.status_code == 403

    def test_custom_window(self):
        window = timedelta(minutes=2)
        assert lifecycle_service.mutability(CREATED, CREATED + timedelta(minutes=2), window) is Mutability.EDITABLE
        assert lifecycle_service.mutability(CREATED, CREATED + timedelta(minutes=3), window) is Mutability.LOCKED

    def test_aware_and_naive_agree(self):
        aware_now = (CREATED + timedelta(minutes=5)).replace(tzinfo=timezone.utc)
        assert lifecycle_service.can_modify(CREATED, aware_now)

    def test_cutoff(self):
        now = CREATED + timedelta(minutes=30)
        assert lifecycle_service.edit_cutoff(now) == CREATED + timedelta(minutes=20)


class TestAcceptance:

    @pytest.mark.parametrize("status", sorted(STAFF_SETTABLE_STATUSES, key=lambda s: s.value))
    def test_staff_statuses_are_acceptable(self, status):
        assert not lifecycle_service.is_accepted(status)
        lifecycle_service.ensure_acceptable(status.value)

    @pytest.mark.parametrize("status", ["spot", "monthly", PaymentStatus.SPOT])
    def test_accepted_statuses_are_terminal(self, status):
        assert lifecycle_service.is_accepted(status)
        with pytest.raises(AlreadyAccepted):
            lifecycle_service.ensure_acceptable(status)

    def test_unknown_status_is_not_accepted(self):
        assert not lifecycle_service.is_accepted("Bogus")

    def test_method_maps_to_terminal_status(self):
        assert PaymentMethod.SPOT.accepted_status is PaymentStatus.SPOT
        assert PaymentMethod.MONTHLY.accepted_status is PaymentStatus.MONTHLY
