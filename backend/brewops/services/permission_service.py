# Overview: Authorization gate; pure role-membership and self-target checks.

"""
Authorization Gate

Stateless and free of I/O: every decision is made from the Identity the
authentication gate attached to the request plus the role set declared for
the operation.
"""

from __future__ import annotations

import enum
from typing import Iterable

from ..errors import Forbidden, SelfActionForbidden, Unauthenticated
from ..permissions import RoleName
from .auth_service import Identity


class SelfAction(str, enum.Enum):
    """Account operations an admin may never aim at their own account."""
    DEACTIVATE = "deactivate"
    CHANGE_ROLE = "change_role"
    DELETE = "delete"


SELF_ACTION_MESSAGES = {
    SelfAction.DEACTIVATE: "You cannot deactivate your own account",
    SelfAction.CHANGE_ROLE: "You cannot change your own role",
    SelfAction.DELETE: "You cannot delete your own account",
}


def has_role(identity: Identity, allowed_roles: Iterable[RoleName]) -> bool:
    return identity.role in frozenset(allowed_roles)


def authorize(identity: Identity | None, allowed_roles: Iterable[RoleName]) -> Identity:
    """
    Permit iff identity's role is a member of allowed_roles.

    Raises:
        Unauthenticated: no identity attached (gate skipped or failed upstream)
        Forbidden: role not in allowed_roles
    """
    if identity is None:
        raise Unauthenticated()
    if not has_role(identity, allowed_roles):
        raise Forbidden()
    return identity


def forbid_self_target(identity: Identity, target_user_id: int, action: SelfAction) -> None:
    """Deny account operations whose target is the caller's own account."""
    if identity.id == target_user_id:
        raise SelfActionForbidden(SELF_ACTION_MESSAGES[action])

