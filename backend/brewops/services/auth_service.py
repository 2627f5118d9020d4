# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Password hashing, credential checks, account registration and the
authentication gate that turns a bearer token into a live Identity.

SECURITY NOTES:
- Passwords hashed with bcrypt
- Login accepts username or email; inactive accounts never authenticate
- The gate re-reads the user on every request, so deactivation takes effect
  on the very next call even while the caller's token is still unexpired
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import contains_eager

from ..errors import Conflict, InvalidToken, MissingToken, UserNotFound, ValidationError
from ..extensions import db
from ..models import Role, User
from ..permissions import ROLE_DEFINITIONS, RoleName
from ..validation import Registration
from .token_service import TokenService


BCRYPT_ROUNDS = 10


@dataclass(frozen=True)
class Identity:
    """
    The authenticated caller, resolved from the credential store.

    Never carries the password hash.
    """
    id: int
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    role: RoleName
    role_id: int

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.role_name,
            role_id=user.role_id,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role_name": self.role.value,
            "role_id": self.role_id,
        }


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


# =============================================================================
# AUTHENTICATION GATE
# =============================================================================

def extract_bearer_token(auth_header: str | None) -> str:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if not auth_header:
        raise MissingToken()
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MissingToken()
    return token.strip()


def load_identity(user_id: int) -> Identity:
    """One read against the credential store, joined with the role."""
    user = (
        db.session.query(User)
        .join(User.role)
        .options(contains_eager(User.role))
        .filter(User.id == user_id, User.is_active.is_(True))
        .first()
    )
    if not user:
        raise UserNotFound()
    return Identity.from_user(user)


def authenticate_token(token: str | None, tokens: TokenService) -> Identity:
    """
    Resolve a presented token to a live identity.

    Raises:
        MissingToken: no token presented
        InvalidToken: bad signature, malformed payload, or expired
        UserNotFound: subject missing or deactivated
    """
    if not token:
        raise MissingToken()
    subject_id = tokens.verify(token)
    return load_identity(subject_id)


# =============================================================================
# LOGIN / REGISTRATION
# =============================================================================

def authenticate(identifier: str, password: str) -> User | None:
    """
    Authenticate by username or email.

    Returns the User if credentials are valid and the account is active.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.lower()),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        return user

    return None


def ensure_unique_credentials(username: str, email: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(
        db.or_(User.username == username, User.email == email)
    )
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise Conflict("Username or email already exists")


def create_user(
    *,
    username: str,
    email: str,
    password: str,
    first_name: str | None,
    last_name: str | None,
    role_id: int,
    is_active: bool = True,
) -> User:
    """
    Create a user account.

    Raises:
        Conflict: username or email already taken (no row is written)
        ValidationError: role_id does not exist
    """
    if not db.session.get(Role, role_id):
        raise ValidationError(
            "Validation failed",
            errors=[{"field": "roleId", "message": "Please select a valid role"}],
        )

    ensure_unique_credentials(username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role_id=role_id,
        is_active=is_active,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same name
        db.session.rollback()
        raise Conflict("Username or email already exists") from None
    return user


def register_user(registration: Registration) -> User:
    return create_user(
        username=registration.username,
        email=registration.email,
        password=registration.password,
        first_name=registration.first_name,
        last_name=registration.last_name,
        role_id=registration.role_id,
    )


def get_role_by_name(role: RoleName) -> Role:
    found = db.session.query(Role).filter_by(name=role.value).first()
    if not found:
        raise ValueError(f"Role {role.value} not found; run `flask system init-roles`")
    return found


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.name).all()


def create_default_roles() -> None:
    """Create the fixed roles with their well-known ids if they don't exist."""
    for role_id, name, desc in ROLE_DEFINITIONS:
        existing = db.session.query(Role).filter_by(name=name.value).first()
        if not existing:
            db.session.add(Role(id=role_id, name=name.value, description=desc))

    db.session.commit()
