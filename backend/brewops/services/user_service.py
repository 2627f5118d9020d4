# Overview: Service-layer operations for user administration.

"""
User administration for admins and managers.

Deletion is a hard delete. Admins can never deactivate, re-role or delete
their own account (see permission_service.forbid_self_target).
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, NotFound, ValidationError
from ..extensions import db
from ..models import Delivery, Role, User
from ..time_utils import utcnow
from .auth_service import Identity
from .permission_service import SelfAction, forbid_self_target


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def set_user_active(actor: Identity, user_id: int, is_active: bool) -> User:
    if not is_active:
        forbid_self_target(actor, user_id, SelfAction.DEACTIVATE)

    user = get_user(user_id)
    user.is_active = is_active
    user.updated_at = utcnow()
    db.session.commit()
    return user


def set_user_role(actor: Identity, user_id: int, role_id: int) -> User:
    forbid_self_target(actor, user_id, SelfAction.CHANGE_ROLE)

    if not db.session.get(Role, role_id):
        raise ValidationError("Invalid role selected", errors=[{"field": "roleId", "message": "Invalid role selected"}])

    user = get_user(user_id)
    user.role_id = role_id
    user.updated_at = utcnow()
    db.session.commit()
    return user


def has_deliveries(user_id: int) -> bool:
    return db.session.query(Delivery.delivery_id).filter(
        db.or_(Delivery.supplier_id == user_id, Delivery.staff_id == user_id)
    ).first() is not None


def delete_user(actor: Identity | None, user_id: int) -> None:
    """
    Physically remove a user row.

    Raises:
        SelfActionForbidden: actor targets their own account
        NotFound: no such user
        Conflict: deliveries still reference the user
    """
    if actor is not None:
        forbid_self_target(actor, user_id, SelfAction.DELETE)

    user = get_user(user_id)
    if has_deliveries(user_id):
        raise Conflict("User has recorded deliveries; deactivate the account instead")

    db.session.delete(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("User is still referenced by other records") from None
