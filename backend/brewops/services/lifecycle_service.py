# Overview: Delivery lifecycle rule; pure policy over edit window and payment acceptance.

"""
Delivery Lifecycle Rule

================================================================================
MUTABILITY:  EDITABLE --(edit window elapses)--> LOCKED
================================================================================

    EDITABLE: now - created_at <= edit window (10 minutes by default)
    LOCKED:   anything older. Monotonic and irreversible.

Computed on demand from created_at; never stored. Applies to field updates
and soft-deletes alike. The boundary is inclusive: exactly 10:00 after
creation is still editable.

================================================================================
PAYMENT:  STAFF-SETTABLE (Pending, Spot Payment Pending, Processing, Paid)
              --(accept by assigned supplier)--> spot | monthly
================================================================================

spot and monthly are terminal. A delivery is accepted at most once.

This module owns no storage. delivery_service consults it and also encodes
the same conditions into its conditional UPDATE statements.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta

from ..errors import AlreadyAccepted, DeliveryLocked
from ..permissions import ACCEPTED_STATUSES, PaymentStatus
from ..time_utils import as_naive_utc


DEFAULT_EDIT_WINDOW = timedelta(minutes=10)


class Mutability(str, enum.Enum):
    EDITABLE = "editable"
    LOCKED = "locked"


def edit_cutoff(now: datetime, window: timedelta = DEFAULT_EDIT_WINDOW) -> datetime:
    """Oldest created_at that is still editable at `now`."""
    return as_naive_utc(now) - window


def can_modify(created_at: datetime, now: datetime, window: timedelta = DEFAULT_EDIT_WINDOW) -> bool:
    return as_naive_utc(now) - as_naive_utc(created_at) <= window


def mutability(created_at: datetime, now: datetime, window: timedelta = DEFAULT_EDIT_WINDOW) -> Mutability:
    return Mutability.EDITABLE if can_modify(created_at, now, window) else Mutability.LOCKED


def locked_message(action: str, window: timedelta = DEFAULT_EDIT_WINDOW) -> str:
    minutes = int(window.total_seconds() // 60)
    return f"Delivery can only be {action} within {minutes} minutes of creation"


def ensure_modifiable(
    created_at: datetime,
    now: datetime,
    window: timedelta = DEFAULT_EDIT_WINDOW,
    *,
    action: str = "modified",
) -> None:
    """
    Raises:
        DeliveryLocked: the edit window has elapsed
    """
    if not can_modify(created_at, now, window):
        raise DeliveryLocked(locked_message(action, window))


def is_accepted(status: str | PaymentStatus) -> bool:
    try:
        return PaymentStatus(status) in ACCEPTED_STATUSES
    except ValueError:
        return False


def ensure_acceptable(status: str | PaymentStatus) -> None:
    """
    Raises:
        AlreadyAccepted: payment method has already been fixed
    """
    if is_accepted(status):
        raise AlreadyAccepted()
