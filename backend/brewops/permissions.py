"""
Role and payment-status constants.

Roles form a closed set. Every access rule in the API is expressed as a
frozenset of RoleName members defined here, so adding a role means touching
this module and every rule that should include it.
"""

from __future__ import annotations

import enum


# =============================================================================
# ROLES
# =============================================================================

class RoleName(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    SUPPLIER = "supplier"
    STAFF = "staff"

    @classmethod
    def parse(cls, value: str) -> "RoleName":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown role: {value}") from None


# Each role is defined as: (id, name, description)
# Ids are fixed so clients can refer to roles by number (register, role change).
ROLE_DEFINITIONS = [
    (1, RoleName.ADMIN, "Full system access including user management"),
    (2, RoleName.MANAGER, "Oversees users, deliveries and reports"),
    (3, RoleName.SUPPLIER, "Delivers tea and accepts payment terms"),
    (4, RoleName.STAFF, "Records deliveries and manages suppliers"),
]


def describe_role(role: RoleName) -> str:
    """Human-readable summary shown in role pickers."""
    if role is RoleName.ADMIN:
        return "Administrator"
    elif role is RoleName.MANAGER:
        return "Manager"
    elif role is RoleName.SUPPLIER:
        return "Tea supplier"
    elif role is RoleName.STAFF:
        return "Collection staff"
    raise AssertionError(f"Unhandled role: {role!r}")


# =============================================================================
# ACCESS RULES (role sets per operation)
# =============================================================================

USER_READERS = frozenset({RoleName.ADMIN, RoleName.MANAGER})
USER_ADMINS = frozenset({RoleName.ADMIN})

SUPPLIER_MANAGERS = frozenset({RoleName.ADMIN, RoleName.STAFF})

DELIVERY_RECORDERS = frozenset({RoleName.STAFF, RoleName.ADMIN, RoleName.MANAGER})
DELIVERY_RECIPIENTS = frozenset({RoleName.SUPPLIER})

ALL_ROLES = frozenset(RoleName)


# =============================================================================
# PAYMENT STATUS
# =============================================================================

class PaymentStatus(str, enum.Enum):
    """
    Single enumeration for a delivery's payment status.

    Values are the exact strings stored and exchanged with clients. Staff pick
    from STAFF_SETTABLE when recording a delivery; the assigned supplier moves
    it into ACCEPTED exactly once.
    """
    PENDING = "Pending"
    SPOT_PAYMENT_PENDING = "Spot Payment Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    SPOT = "spot"
    MONTHLY = "monthly"


class PaymentMethod(str, enum.Enum):
    SPOT = "spot"
    MONTHLY = "monthly"

    @property
    def accepted_status(self) -> PaymentStatus:
        if self is PaymentMethod.SPOT:
            return PaymentStatus.SPOT
        return PaymentStatus.MONTHLY


STAFF_SETTABLE_STATUSES = frozenset({
    PaymentStatus.PENDING,
    PaymentStatus.SPOT_PAYMENT_PENDING,
    PaymentStatus.PROCESSING,
    PaymentStatus.PAID,
})

ACCEPTED_STATUSES = frozenset({PaymentStatus.SPOT, PaymentStatus.MONTHLY})
