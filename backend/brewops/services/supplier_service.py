# Overview: Service-layer operations for supplier accounts.

from __future__ import annotations

from ..errors import NotFound
from ..extensions import db
from ..models import Role, User
from ..permissions import RoleName
from ..time_utils import utcnow
from . import auth_service, user_service


def _suppliers():
    return (
        db.session.query(User)
        .join(Role, User.role_id == Role.id)
        .filter(Role.name == RoleName.SUPPLIER.value)
    )


def list_suppliers() -> list[User]:
    return _suppliers().order_by(User.created_at.desc(), User.id.desc()).all()


def get_supplier(supplier_id: int) -> User:
    supplier = _suppliers().filter(User.id == supplier_id).first()
    if not supplier:
        raise NotFound("Supplier not found")
    return supplier


def create_supplier(data: dict) -> User:
    """Create an active supplier account. Duplicate username/email -> Conflict."""
    role = auth_service.get_role_by_name(RoleName.SUPPLIER)
    return auth_service.create_user(
        username=data["username"],
        email=data["email"],
        password=data["password"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        role_id=role.id,
        is_active=True,
    )


def update_supplier(supplier_id: int, data: dict) -> User:
    supplier = get_supplier(supplier_id)
    auth_service.ensure_unique_credentials(data["username"], data["email"], exclude_user_id=supplier_id)

    supplier.username = data["username"]
    supplier.email = data["email"]
    supplier.first_name = data["first_name"]
    supplier.last_name = data["last_name"]
    supplier.is_active = data.get("is_active", supplier.is_active)
    supplier.updated_at = utcnow()
    db.session.commit()
    return supplier


def set_supplier_active(supplier_id: int, is_active: bool) -> User:
    supplier = get_supplier(supplier_id)
    supplier.is_active = is_active
    supplier.updated_at = utcnow()
    db.session.commit()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    get_supplier(supplier_id)
    user_service.delete_user(None, supplier_id)
