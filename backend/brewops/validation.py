from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError
from .permissions import PaymentMethod, PaymentStatus, STAFF_SETTABLE_STATUSES


USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
PERSON_NAME_RE = re.compile(r"^[A-Za-z\s]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HHMM_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

MIN_QUANTITY_KG = Decimal("0.01")
MAX_QUANTITY_KG = Decimal("99999999.99")

# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


class FieldErrors:
    """
    Collects per-field problems so a single 400 lists everything wrong
    with the request instead of failing on the first field.
    """

    def __init__(self):
        self.items: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({"field": field, "message": message})

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self.items:
            raise ValidationError(message, errors=self.items)


def require_json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed >= 1 else None
    return None


def parse_bool(value: Any, field: str) -> bool:
    """Accept JSON booleans and the usual string/int spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
        return value.strip().lower() in ("true", "1")
    raise ValidationError("Validation failed", errors=[{"field": field, "message": f"{field} must be a boolean"}])


def parse_role_id(value: Any, field: str = "roleId") -> int:
    role_id = _positive_int(value)
    if role_id is None:
        raise ValidationError("Validation failed", errors=[{"field": field, "message": "Please select a valid role"}])
    return role_id


# =============================================================================
# AUTH
# =============================================================================

def validate_login(payload: Any) -> tuple[str, str]:
    payload = require_json_object(payload)
    errors = FieldErrors()

    identifier = _text(payload, "username") or _text(payload, "email")
    password = payload.get("password") or ""

    if not identifier:
        errors.add("username", "Username or email is required")
    if not isinstance(password, str) or len(password) < 6:
        errors.add("password", "Password must be at least 6 characters long")

    errors.raise_if_any("Validation errors")
    return identifier, password


def _check_password_strength(password: Any, errors: FieldErrors, *, require_mix: bool) -> None:
    if not isinstance(password, str) or len(password) < 6:
        errors.add("password", "Password must be at least 6 characters long")
        return
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.add("password", f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
        return
    if require_mix and not (
        re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)
    ):
        errors.add(
            "password",
            "Password must contain at least one uppercase letter, one lowercase letter, and one number",
        )


def _check_person_name(value: str, field: str, label: str, errors: FieldErrors) -> None:
    if not 2 <= len(value) <= 50:
        errors.add(field, f"{label} must be between 2 and 50 characters")
    elif not PERSON_NAME_RE.match(value):
        errors.add(field, f"{label} can only contain letters and spaces")


@dataclass(frozen=True)
class Registration:
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    role_id: int


def validate_registration(payload: Any) -> Registration:
    payload = require_json_object(payload)
    errors = FieldErrors()

    username = _text(payload, "username")
    email = _text(payload, "email").lower()
    password = payload.get("password")
    first_name = _text(payload, "firstName")
    last_name = _text(payload, "lastName")
    role_id = _positive_int(payload.get("roleId"))

    if not 3 <= len(username) <= 50:
        errors.add("username", "Username must be between 3 and 50 characters")
    elif not USERNAME_RE.match(username):
        errors.add("username", "Username can only contain letters, numbers, and underscores")

    if not EMAIL_RE.match(email):
        errors.add("email", "Please provide a valid email address")

    _check_password_strength(password, errors, require_mix=True)
    _check_person_name(first_name, "firstName", "First name", errors)
    _check_person_name(last_name, "lastName", "Last name", errors)

    if role_id is None:
        errors.add("roleId", "Please select a valid role")

    errors.raise_if_any("Validation errors")
    return Registration(
        username=username,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        role_id=role_id,
    )


# =============================================================================
# SUPPLIERS
# =============================================================================

def validate_supplier_payload(payload: Any, *, creating: bool) -> dict:
    """
    Supplier accounts are created and edited by staff/admins.

    creating=True requires a password; updates never touch the password and
    may carry an optional isActive flag.
    """
    payload = require_json_object(payload)
    errors = FieldErrors()

    username = _text(payload, "username")
    email = _text(payload, "email").lower()
    first_name = _text(payload, "firstName")
    last_name = _text(payload, "lastName")

    if len(username) < 3:
        errors.add("username", "Username must be at least 3 characters long")
    elif len(username) > 50:
        errors.add("username", "Username must be at most 50 characters long")
    if not EMAIL_RE.match(email):
        errors.add("email", "Please provide a valid email")
    if not first_name:
        errors.add("firstName", "First name is required")
    if not last_name:
        errors.add("lastName", "Last name is required")

    cleaned = {
        "username": username,
        "email": email,
        "first_name": first_name[:50],
        "last_name": last_name[:50],
    }

    if creating:
        password = payload.get("password")
        _check_password_strength(password, errors, require_mix=False)
        cleaned["password"] = password
    elif payload.get("isActive") is not None:
        try:
            cleaned["is_active"] = parse_bool(payload["isActive"], "isActive")
        except ValidationError as exc:
            errors.items.extend(exc.errors or [])

    errors.raise_if_any()
    return cleaned


# =============================================================================
# DELIVERIES
# =============================================================================

def _parse_quantity(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        quantity = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not quantity.is_finite() or quantity < MIN_QUANTITY_KG or quantity > MAX_QUANTITY_KG:
        return None
    return quantity.quantize(Decimal("0.01"))


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_hhmm(value: Any) -> time | None:
    if not isinstance(value, str):
        return None
    match = HHMM_RE.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


@dataclass(frozen=True)
class DeliveryInput:
    supplier_id: int
    quantity_kg: Decimal
    delivery_date: date
    delivery_time: time
    payment_status: PaymentStatus | None


def validate_delivery_payload(payload: Any) -> DeliveryInput:
    """Shared by create and full update (PUT)."""
    payload = require_json_object(payload)
    errors = FieldErrors()

    supplier_id = _positive_int(payload.get("supplier_id"))
    if supplier_id is None:
        errors.add("supplier_id", "Valid supplier ID is required")

    quantity = _parse_quantity(payload.get("quantity_kg"))
    if quantity is None:
        errors.add("quantity_kg", "Quantity must be greater than 0")

    delivery_date = _parse_date(payload.get("delivery_date"))
    if delivery_date is None:
        errors.add("delivery_date", "Valid delivery date is required")

    delivery_time = _parse_hhmm(payload.get("delivery_time"))
    if delivery_time is None:
        errors.add("delivery_time", "Valid delivery time is required (HH:MM format)")

    payment_status = None
    raw_status = payload.get("payment_status")
    if raw_status is not None:
        try:
            payment_status = PaymentStatus(raw_status)
        except ValueError:
            payment_status = None
        if payment_status not in STAFF_SETTABLE_STATUSES:
            errors.add("payment_status", "Invalid payment status")

    errors.raise_if_any()
    return DeliveryInput(
        supplier_id=supplier_id,
        quantity_kg=quantity,
        delivery_date=delivery_date,
        delivery_time=delivery_time,
        payment_status=payment_status,
    )


def validate_accept_payload(payload: Any) -> PaymentMethod:
    payload = require_json_object(payload)
    try:
        return PaymentMethod(payload.get("payment_method"))
    except ValueError:
        raise ValidationError(
            "Validation failed",
            errors=[{"field": "payment_method", "message": 'Payment method must be either "spot" or "monthly"'}],
        ) from None
