from __future__ import annotations

from ..extensions import db
from ..permissions import RoleName, describe_role
from ..time_utils import to_utc_z, utcnow


class Role(db.Model):
    """
    Fixed role catalogue (admin, manager, supplier, staff).

    Seeded out-of-band by `flask system init-roles`; read-only at runtime.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def role_name(self) -> RoleName:
        return RoleName.parse(self.name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "label": describe_role(self.role_name),
        }


class User(db.Model):
    """
    User accounts for every actor: admins, managers, suppliers and staff.

    Exactly one role per user. Username and email are globally unique.
    Inactive users cannot log in and their outstanding tokens stop working
    on the next request.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role_id", "role_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(50), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(50), nullable=True)
    last_name = db.Column(db.String(50), nullable=True)

    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    role = db.relationship("Role", backref=db.backref("users", lazy=True))

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "is_active": self.is_active,
            "role_id": self.role_id,
            "role_name": self.role.name if self.role else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
