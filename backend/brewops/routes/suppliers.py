# Overview: Flask API routes for supplier accounts; parses input and returns JSON responses.

# backend/brewops/routes/suppliers.py
"""
Supplier account management for admins and staff.
"""

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles
from ..errors import ApiError
from ..permissions import SUPPLIER_MANAGERS
from ..responses import api_error_response, internal_error_response, success_response
from ..services import supplier_service
from ..validation import parse_bool, require_json_object, validate_supplier_payload

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def list_suppliers():
    try:
        suppliers = [s.to_dict() for s in supplier_service.list_suppliers()]
        return success_response(data={"suppliers": suppliers})
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return internal_error_response()


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def get_supplier(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
        return success_response(data={"supplier": supplier.to_dict()})
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get supplier")
        return internal_error_response()


@suppliers_bp.post("")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def create_supplier():
    """
    Request body:
    - username, email, password, firstName, lastName (all required)
    """
    try:
        data = validate_supplier_payload(request.get_json(silent=True), creating=True)
        supplier = supplier_service.create_supplier(data)
        current_app.logger.info("User %s created supplier %s", g.current_user.id, supplier.id)
        return success_response(
            data={"supplierId": supplier.id, "supplier": supplier.to_dict()},
            message="Supplier created successfully",
            status=201,
        )
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return internal_error_response()


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def update_supplier(supplier_id: int):
    """
    Request body:
    - username, email, firstName, lastName (required)
    - isActive: bool (optional, keeps the current value when omitted)
    """
    try:
        data = validate_supplier_payload(request.get_json(silent=True), creating=False)
        supplier = supplier_service.update_supplier(supplier_id, data)
        return success_response(data={"supplier": supplier.to_dict()}, message="Supplier updated successfully")
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return internal_error_response()


@suppliers_bp.patch("/<int:supplier_id>/status")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def update_supplier_status(supplier_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        is_active = parse_bool(data.get("isActive"), "isActive")
        supplier_service.set_supplier_active(supplier_id, is_active)
        return success_response(message=f"Supplier {'activated' if is_active else 'deactivated'} successfully")
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update supplier status")
        return internal_error_response()


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_roles(*SUPPLIER_MANAGERS)
def delete_supplier(supplier_id: int):
    try:
        supplier_service.delete_supplier(supplier_id)
        current_app.logger.info("User %s deleted supplier %s", g.current_user.id, supplier_id)
        return success_response(message="Supplier deleted successfully")
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return internal_error_response()
