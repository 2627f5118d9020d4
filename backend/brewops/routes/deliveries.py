# Overview: Flask API routes for tea deliveries; parses input and returns JSON responses.

# backend/brewops/routes/deliveries.py
"""
Delivery routes.

- Staff, managers and admins record deliveries and may edit or soft-delete
  them only inside the edit window after creation.
- Suppliers list their own deliveries and accept each one exactly once,
  choosing spot or monthly payment.
"""

from datetime import timedelta

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles
from ..errors import ApiError
from ..permissions import DELIVERY_RECIPIENTS, DELIVERY_RECORDERS
from ..responses import api_error_response, internal_error_response, success_response
from ..services import delivery_service
from ..time_utils import utcnow
from ..validation import validate_accept_payload, validate_delivery_payload

deliveries_bp = Blueprint("deliveries", __name__, url_prefix="/api/delivery")


def _edit_window() -> timedelta:
    return timedelta(minutes=current_app.config["DELIVERY_EDIT_WINDOW_MINUTES"])


def _serialize_all(deliveries) -> list[dict]:
    now = utcnow()
    window = _edit_window()
    return [delivery_service.serialize(d, now, window) for d in deliveries]


@deliveries_bp.get("/supplier")
@require_auth
@require_roles(*DELIVERY_RECIPIENTS)
def list_supplier_deliveries():
    """Deliveries assigned to the calling supplier."""
    try:
        deliveries = delivery_service.list_supplier_deliveries(g.current_user.id)
        return success_response(data={"deliveries": _serialize_all(deliveries)})
    except Exception:
        current_app.logger.exception("Failed to list supplier deliveries")
        return internal_error_response()


@deliveries_bp.get("")
@require_auth
@require_roles(*DELIVERY_RECORDERS)
def list_deliveries():
    try:
        deliveries = delivery_service.list_deliveries()
        return success_response(data={"deliveries": _serialize_all(deliveries)})
    except Exception:
        current_app.logger.exception("Failed to list deliveries")
        return internal_error_response()


@deliveries_bp.get("/<int:delivery_id>")
@require_auth
@require_roles(*DELIVERY_RECORDERS)
def get_delivery(delivery_id: int):
    try:
        delivery = delivery_service.get_delivery(delivery_id)
        return success_response(data={"delivery": delivery_service.serialize(delivery, utcnow(), _edit_window())})
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get delivery")
        return internal_error_response()


@deliveries_bp.post("")
@require_auth
@require_roles(*DELIVERY_RECORDERS)
def create_delivery():
    """
    Request body:
    - supplier_id: int (active supplier)
    - quantity_kg: number > 0
    - delivery_date: YYYY-MM-DD
    - delivery_time: HH:MM
    - payment_status: optional, defaults to "Pending"
    """
    try:
        data = validate_delivery_payload(request.get_json(silent=True))
        delivery = delivery_service.create_delivery(data, staff_id=g.current_user.id)
        current_app.logger.info(
            "User %s recorded delivery %s for supplier %s", g.current_user.id, delivery.delivery_id, data.supplier_id
        )
        return success_response(
            data={"delivery_id": delivery.delivery_id},
            message="Delivery created successfully",
            status=201,
        )
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create delivery")
        return internal_error_response()


@deliveries_bp.put("/<int:delivery_id>")
@require_auth
@require_roles(*DELIVERY_RECORDERS)
def update_delivery(delivery_id: int):
    try:
        data = validate_delivery_payload(request.get_json(silent=True))
        window = _edit_window()
        delivery = delivery_service.update_delivery(delivery_id, data, now=utcnow(), window=window)
        return success_response(
            data={"delivery": delivery_service.serialize(delivery, utcnow(), window)},
            message="Delivery updated successfully",
        )
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update delivery")
        return internal_error_response()


@deliveries_bp.delete("/<int:delivery_id>")
@require_auth
@require_roles(*DELIVERY_RECORDERS)
def delete_delivery(delivery_id: int):
    try:
        delivery_service.soft_delete_delivery(delivery_id, now=utcnow(), window=_edit_window())
        current_app.logger.info("User %s deleted delivery %s", g.current_user.id, delivery_id)
        return success_response(message="Delivery deleted successfully")
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete delivery")
        return internal_error_response()


@deliveries_bp.put("/accept/<int:delivery_id>")
@require_auth
@require_roles(*DELIVERY_RECIPIENTS)
def accept_delivery(delivery_id: int):
    """
    Request body:
    - payment_method: "spot" | "monthly"
    """
    try:
        method = validate_accept_payload(request.get_json(silent=True))
        result = delivery_service.accept_delivery(
            delivery_id,
            supplier_id=g.current_user.id,
            method=method,
        )
        current_app.logger.info(
            "Supplier %s accepted delivery %s (%s)", g.current_user.id, delivery_id, method.value
        )
        return success_response(data=result, message="Delivery accepted successfully")
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to accept delivery")
        return internal_error_response()
